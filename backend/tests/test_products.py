"""
Catalog and inventory editor tests.
"""

import re

import pytest

from counterpos.models import Product, Sale, SaleItem, StockPurchase
from counterpos.services import products_service
from counterpos.services.checkout_service import CheckoutLine, commit_sale


# =============================================================================
# SKU
# =============================================================================


class TestSku:

    def test_format(self):
        sku = products_service.generate_sku("Sports", now_ms=36 ** 3)
        assert re.fullmatch(r"SPO-[0-9A-Z]+-[0-9A-Z]{3}", sku)
        assert sku.split("-")[1] == "1000"

    def test_blank_category_prefix(self):
        assert products_service.generate_sku("", now_ms=0).startswith("GEN-0-")

    def test_short_category(self):
        assert products_service.generate_sku("ab", now_ms=35).startswith("AB-Z-")


# =============================================================================
# LIST / FILTER
# =============================================================================


class TestListProducts:

    def test_search_matches_name_or_sku(self, client, operator_headers, make_product):
        make_product(name="Golden Cricket Cup", sku="TRP-CKT-001")
        make_product(name="Wooden Plaque", sku="TRP-WDN-003", category="Wooden")

        by_name = client.get("/api/products?q=cricket", headers=operator_headers).get_json()
        assert [p["name"] for p in by_name["items"]] == ["Golden Cricket Cup"]

        by_sku = client.get("/api/products?q=wdn", headers=operator_headers).get_json()
        assert [p["sku"] for p in by_sku["items"]] == ["TRP-WDN-003"]

    def test_category_filter_and_all(self, client, operator_headers, make_product):
        make_product(category="Sports")
        make_product(category="Wooden")

        wooden = client.get("/api/products?category=Wooden", headers=operator_headers).get_json()
        assert wooden["count"] == 1
        everything = client.get("/api/products?category=All", headers=operator_headers).get_json()
        assert everything["count"] == 2

    def test_categories_start_with_all(self, client, operator_headers, make_product):
        make_product(category="Wooden")
        make_product(category="Academic")
        resp = client.get("/api/products/categories", headers=operator_headers)
        assert resp.get_json()["categories"] == ["All", "Academic", "Wooden"]

    def test_pagination(self, client, operator_headers, make_product):
        for _ in range(5):
            make_product()
        body = client.get("/api/products?page=2&per_page=2", headers=operator_headers).get_json()
        assert body["count"] == 2
        assert body["pagination"]["total"] == 5
        assert body["pagination"]["total_pages"] == 3

    def test_recent_products_follow_cart_adds(self, client, operator_headers, make_product):
        ids = [make_product(stock_quantity=5).id for _ in range(8)]
        for pid in ids:
            client.post("/api/cart/items", json={"product_id": pid}, headers=operator_headers)
        # Re-adding moves a product to the front
        client.post("/api/cart/items", json={"product_id": ids[0]}, headers=operator_headers)

        recent = client.get("/api/products/recent", headers=operator_headers).get_json()["items"]
        assert [p["id"] for p in recent] == [ids[0], ids[7], ids[6], ids[5], ids[4], ids[3]]


# =============================================================================
# INVENTORY EDITS (ADMIN)
# =============================================================================


class TestInventoryEdits:

    def test_operator_cannot_create(self, client, operator_headers):
        resp = client.post(
            "/api/products",
            json={"name": "Cup", "price_paise": 1000},
            headers=operator_headers,
        )
        assert resp.status_code == 403

    def test_create_generates_sku(self, client, admin_headers):
        resp = client.post(
            "/api/products",
            json={"name": "Glass Memento", "price_paise": 60000, "category": "Corporate", "stock_quantity": 4},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["sku"].startswith("COR-")
        assert body["stock_quantity"] == 4

    def test_create_defaults_category(self, client, admin_headers):
        resp = client.post("/api/products", json={"name": "Badge", "price_paise": 500}, headers=admin_headers)
        assert resp.get_json()["category"] == "General"

    def test_duplicate_sku_conflicts(self, client, admin_headers, make_product):
        make_product(sku="DUP-001")
        resp = client.post(
            "/api/products",
            json={"name": "Copy", "price_paise": 500, "sku": "DUP-001"},
            headers=admin_headers,
        )
        assert resp.status_code == 409

    @pytest.mark.parametrize("payload", [
        {"name": "Cup"},
        {"name": "Cup", "price_paise": -1},
        {"name": "Cup", "price_paise": 10.5},
        {"name": "Cup", "price_paise": 100, "stock_quantity": -3},
        {"name": "", "price_paise": 100},
        {"name": "Cup", "price_paise": 100, "version_id": 7},
    ])
    def test_create_validation(self, client, admin_headers, payload):
        assert client.post("/api/products", json=payload, headers=admin_headers).status_code == 400

    def test_inline_edit(self, client, admin_headers, make_product):
        p = make_product(price_paise=10000, stock_quantity=3)
        resp = client.patch(
            f"/api/products/{p.id}",
            json={"price_paise": 12500, "stock_quantity": 9, "cost_price_paise": 7000},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        body = resp.get_json()
        assert (body["price_paise"], body["stock_quantity"], body["cost_price_paise"]) == (12500, 9, 7000)

    def test_edit_missing_product(self, client, admin_headers, db_session):
        resp = client.patch("/api/products/999", json={"price_paise": 1}, headers=admin_headers)
        assert resp.status_code == 404

    def test_delete_keeps_sale_history(self, client, admin_headers, make_product, db_session):
        p = make_product(name="Brass Medal", sku="MDL-BRS-007", stock_quantity=5)
        pid = p.id
        sale = commit_sale(lines=[CheckoutLine(product_id=pid, quantity=1, unit_price_paise=10000)])
        sale_id = sale.id

        assert client.delete(f"/api/products/{pid}", headers=admin_headers).status_code == 200
        assert client.delete(f"/api/products/{pid}", headers=admin_headers).status_code == 404

        db_session.expire_all()
        assert db_session.get(Product, pid) is None
        item = db_session.query(SaleItem).filter_by(sale_id=sale_id).one()
        assert item.product_id is None
        assert (item.product_name, item.product_sku) == ("Brass Medal", "MDL-BRS-007")
        assert db_session.get(Sale, sale_id) is not None

    def test_delete_removes_purchase_history(self, client, admin_headers, make_product, db_session):
        p = make_product()
        pid = p.id
        client.post(
            "/api/stock-purchases",
            json={"product_id": pid, "quantity": 5, "unit_cost_paise": 4000},
            headers=admin_headers,
        )
        client.delete(f"/api/products/{pid}", headers=admin_headers)
        db_session.expire_all()
        assert db_session.query(StockPurchase).count() == 0


def test_seed_products_only_into_empty_table(db_session):
    assert products_service.seed_products() == len(products_service.SEED_PRODUCTS)
    assert products_service.seed_products() == 0
    assert db_session.query(Product).count() == len(products_service.SEED_PRODUCTS)
