"""
Cart API tests: the cart follows the client's session cookie.
"""

from counterpos.models import Product


def _add(client, headers, product_id):
    return client.post("/api/cart/items", json={"product_id": product_id}, headers=headers)


def test_add_and_totals(client, operator_headers, make_product):
    a = make_product(price_paise=10000, stock_quantity=5)
    b = make_product(price_paise=5000, stock_quantity=5)

    _add(client, operator_headers, a.id)
    _add(client, operator_headers, a.id)
    _add(client, operator_headers, b.id)
    resp = client.patch("/api/cart", json={"discount": "20"}, headers=operator_headers)

    cart = resp.get_json()["cart"]
    assert cart["subtotal_paise"] == 25000
    assert cart["discount_paise"] == 2000
    assert cart["total_paise"] == 23000


def test_out_of_stock_add_is_a_no_op(client, operator_headers, make_product):
    p = make_product(stock_quantity=0)
    resp = _add(client, operator_headers, p.id)
    assert resp.status_code == 200
    assert resp.get_json()["changed"] is False
    assert resp.get_json()["cart"]["lines"] == []


def test_unknown_product(client, operator_headers, db_session):
    assert _add(client, operator_headers, 999).status_code == 404
    assert client.post("/api/cart/items", json={"product_id": "1"}, headers=operator_headers).status_code == 400


def test_adjust_checks_live_stock(client, operator_headers, make_product, db_session):
    p = make_product(stock_quantity=3)
    pid = p.id
    for _ in range(3):
        _add(client, operator_headers, pid)

    resp = client.post(f"/api/cart/items/{pid}/adjust", json={"delta": 1}, headers=operator_headers)
    assert resp.get_json()["changed"] is False
    assert resp.get_json()["cart"]["lines"][0]["quantity"] == 3

    resp = client.post(f"/api/cart/items/{pid}/adjust", json={"delta": -1}, headers=operator_headers)
    assert resp.get_json()["cart"]["lines"][0]["quantity"] == 2

    # Restocked while the line sits in the cart
    db_session.expire_all()
    db_session.get(Product, pid).stock_quantity = 10
    db_session.commit()
    resp = client.post(f"/api/cart/items/{pid}/adjust", json={"delta": 5}, headers=operator_headers)
    assert resp.get_json()["cart"]["lines"][0]["quantity"] == 7


def test_adjust_line_not_in_cart(client, operator_headers, make_product):
    p = make_product()
    resp = client.post(f"/api/cart/items/{p.id}/adjust", json={"delta": 1}, headers=operator_headers)
    assert resp.status_code == 404


def test_remove_line(client, operator_headers, make_product):
    p = make_product()
    _add(client, operator_headers, p.id)
    resp = client.delete(f"/api/cart/items/{p.id}", headers=operator_headers)
    assert resp.get_json()["cart"]["lines"] == []


def test_pricing_mode_switch_empties_cart(client, operator_headers, make_product):
    p = make_product(price_paise=10000, wholesale_price_paise=8000)
    _add(client, operator_headers, p.id)

    resp = client.put("/api/cart/pricing-mode", json={"pricing_mode": "wholesale"}, headers=operator_headers)
    assert resp.get_json()["cart"]["lines"] == []

    resp = _add(client, operator_headers, p.id)
    assert resp.get_json()["cart"]["lines"][0]["unit_price_paise"] == 8000

    bad = client.put("/api/cart/pricing-mode", json={"pricing_mode": "bulk"}, headers=operator_headers)
    assert bad.status_code == 400


def test_checkout_fields(client, operator_headers, db_session):
    resp = client.patch(
        "/api/cart",
        json={"payment_method": "UPI", "customer_name": "  Asha  "},
        headers=operator_headers,
    )
    cart = resp.get_json()["cart"]
    assert (cart["payment_method"], cart["customer_name"]) == ("UPI", "Asha")

    assert client.patch("/api/cart", json={"payment_method": "IOU"}, headers=operator_headers).status_code == 400


def test_clear(client, operator_headers, make_product):
    p = make_product()
    _add(client, operator_headers, p.id)
    client.patch("/api/cart", json={"discount": "5"}, headers=operator_headers)
    cart = client.delete("/api/cart", headers=operator_headers).get_json()["cart"]
    assert cart["lines"] == []
    assert cart["discount_input"] == ""


def test_cart_is_per_client(app, client, operator_headers, make_product):
    p = make_product()
    _add(client, operator_headers, p.id)

    other = app.test_client()
    cart = other.get("/api/cart", headers=operator_headers).get_json()["cart"]
    assert cart["lines"] == []
