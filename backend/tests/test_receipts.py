"""
Receipt preview and print layout tests.
"""

from counterpos.services import receipt_service
from counterpos.services.checkout_service import CheckoutLine, commit_sale


def _sale(make_product, **kwargs):
    cup = make_product(name="Golden Cricket Cup", price_paise=125000, stock_quantity=5)
    medal = make_product(name="Brass Medals (Set of 3)", price_paise=27500, stock_quantity=5)
    return commit_sale(
        lines=[
            CheckoutLine(product_id=cup.id, quantity=1, unit_price_paise=125000),
            CheckoutLine(product_id=medal.id, quantity=2, unit_price_paise=27500),
        ],
        **kwargs,
    )


def test_receipt_fields(db_session, make_product):
    sale = _sale(make_product, discount_paise=5000, payment_method="UPI")
    receipt = receipt_service.build_receipt(sale)

    assert receipt["bill_number"] == sale.bill_number
    assert receipt["customer_name"] == "Walk-in Customer"
    assert receipt["payment_method"] == "UPI"
    assert [(i["name"], i["quantity"], i["line_total"]) for i in receipt["items"]] == [
        ("Golden Cricket Cup", 1, "₹1250.00"),
        ("Brass Medals (Set of 3)", 2, "₹550.00"),
    ]
    assert receipt["subtotal"] == "₹1800.00"
    assert receipt["discount"] == "₹50.00"
    assert receipt["total"] == "₹1750.00"
    assert receipt["store"]["name"] == "Disni Designs"


def test_print_layout(client, operator_headers, make_product):
    sale = _sale(make_product, customer_name="St. Mary's School")

    resp = client.get(f"/api/sales/{sale.id}/receipt/print", headers=operator_headers)
    assert resp.status_code == 200
    assert resp.mimetype == "text/html"
    html = resp.get_data(as_text=True)
    assert sale.bill_number in html
    assert "Golden Cricket Cup" in html
    assert "₹1800.00" in html
    assert "Goods once sold cannot be taken back" in html
    # No discount row when there is no discount
    assert "Discount" not in html


def test_receipt_json_and_missing_sale(client, operator_headers, make_product):
    sale = _sale(make_product)
    resp = client.get(f"/api/sales/{sale.id}/receipt", headers=operator_headers)
    assert resp.get_json()["receipt"]["total_paise"] == 180000

    assert client.get("/api/sales/999/receipt", headers=operator_headers).status_code == 404
    assert client.get("/api/sales/999/receipt/print", headers=operator_headers).status_code == 404
