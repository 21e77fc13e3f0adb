"""
Return workflow tests.

Verifies:
- Creation requires an existing sale and a positive refund
- PENDING -> APPROVED | REJECTED, never back to PENDING
- Repeating a decision is a no-op; switching decisions is refused
- Approval does not touch stock
"""

import pytest

from counterpos.models import Product, Return
from counterpos.services import return_service
from counterpos.services.checkout_service import CheckoutLine, commit_sale
from counterpos.services.return_service import ReturnError
from counterpos.validation import ValidationError


@pytest.fixture
def sale(db_session, make_product):
    product = make_product(name="Gold Cup", price_paise=10000, stock_quantity=5)
    return commit_sale(
        lines=[CheckoutLine(product_id=product.id, quantity=1, unit_price_paise=10000)],
        customer_name="Asha",
    )


class TestReturnService:

    def test_create_is_pending(self, sale):
        return_doc = return_service.create_return(sale_id=sale.id, refund_paise=5000, reason="  Dented  ")
        assert return_doc.status == "PENDING"
        assert return_doc.reason == "Dented"
        assert return_doc.decided_at is None

    def test_unknown_sale(self, db_session):
        with pytest.raises(ReturnError) as excinfo:
            return_service.create_return(sale_id=404, refund_paise=100)
        assert excinfo.value.status_code == 404

    @pytest.mark.parametrize("refund", [0, -100])
    def test_refund_must_be_positive(self, sale, refund):
        with pytest.raises(ValidationError):
            return_service.create_return(sale_id=sale.id, refund_paise=refund)

    def test_approve_is_terminal(self, sale):
        return_doc = return_service.create_return(sale_id=sale.id, refund_paise=5000)
        approved = return_service.approve_return(return_doc.id)
        assert approved.status == "APPROVED"
        decided_at = approved.decided_at
        assert decided_at is not None

        # Same decision again changes nothing
        again = return_service.approve_return(return_doc.id)
        assert again.status == "APPROVED"
        assert again.decided_at == decided_at

        with pytest.raises(ReturnError) as excinfo:
            return_service.reject_return(return_doc.id)
        assert excinfo.value.status_code == 409
        assert return_service.list_returns()[0]["status"] == "APPROVED"

    def test_reject_is_terminal(self, sale):
        return_doc = return_service.create_return(sale_id=sale.id, refund_paise=5000)
        return_service.reject_return(return_doc.id)
        with pytest.raises(ReturnError):
            return_service.approve_return(return_doc.id)

    def test_approval_does_not_restock(self, sale, db_session):
        product_id = sale.items[0].product_id
        stock_before = db_session.get(Product, product_id).stock_quantity

        return_doc = return_service.create_return(sale_id=sale.id, refund_paise=10000)
        return_service.approve_return(return_doc.id)

        assert db_session.get(Product, product_id).stock_quantity == stock_before

    def test_missing_return(self, db_session):
        with pytest.raises(ReturnError) as excinfo:
            return_service.approve_return(12345)
        assert excinfo.value.status_code == 404

    def test_summary(self, sale):
        a = return_service.create_return(sale_id=sale.id, refund_paise=3000)
        b = return_service.create_return(sale_id=sale.id, refund_paise=2000)
        return_service.create_return(sale_id=sale.id, refund_paise=1000)
        return_service.approve_return(a.id)
        return_service.reject_return(b.id)

        summary = return_service.get_return_summary()
        assert summary["counts"] == {"PENDING": 1, "APPROVED": 1, "REJECTED": 1}
        assert summary["total"] == 3
        assert summary["approved_refund_paise"] == 3000

    def test_list_filter(self, sale):
        a = return_service.create_return(sale_id=sale.id, refund_paise=3000)
        return_service.create_return(sale_id=sale.id, refund_paise=2000)
        return_service.approve_return(a.id)

        pending = return_service.list_returns(status="PENDING")
        assert [r["refund_paise"] for r in pending] == [2000]
        assert pending[0]["sale"]["customer_name"] == "Asha"

        with pytest.raises(ReturnError):
            return_service.list_returns(status="LOST")


class TestReturnRoutes:

    def test_create_and_decide(self, client, admin_headers, sale):
        resp = client.post(
            "/api/returns",
            json={"sale_id": sale.id, "refund_paise": 5000, "reason": "Wrong engraving"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        return_id = resp.get_json()["return"]["id"]

        resp = client.post(f"/api/returns/{return_id}/approve", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["return"]["status"] == "APPROVED"

        assert client.post(f"/api/returns/{return_id}/approve", headers=admin_headers).status_code == 200
        resp = client.post(f"/api/returns/{return_id}/reject", headers=admin_headers)
        assert resp.status_code == 409
        assert resp.get_json()["details"]["status"] == "APPROVED"

    def test_create_validation(self, client, admin_headers, sale):
        assert client.post("/api/returns", json={"sale_id": sale.id, "refund_paise": 0},
                           headers=admin_headers).status_code == 400
        assert client.post("/api/returns", json={"sale_id": sale.id, "refund_paise": "50"},
                           headers=admin_headers).status_code == 400
        assert client.post("/api/returns", json={"sale_id": 999, "refund_paise": 50},
                           headers=admin_headers).status_code == 404

    def test_operator_cannot_decide(self, client, operator_headers, sale, db_session):
        return_doc = return_service.create_return(sale_id=sale.id, refund_paise=100)
        resp = client.post(f"/api/returns/{return_doc.id}/approve", headers=operator_headers)
        assert resp.status_code == 403
        db_session.expire_all()
        assert db_session.get(Return, return_doc.id).status == "PENDING"

    def test_summary_route(self, client, admin_headers, sale):
        return_service.create_return(sale_id=sale.id, refund_paise=100)
        body = client.get("/api/returns/summary", headers=admin_headers).get_json()
        assert body["counts"]["PENDING"] == 1
