from datetime import datetime
from decimal import Decimal

import pytest

from urbanpos.extensions import db
from urbanpos.model import Sale, SaleItem
from urbanpos.pos.coupons import utcnow
from urbanpos.services.sale_service import _shift_month, dashboard_summary


def make_sale(sale_id, when, total, cashier="Alice", coupon=None):
    total = Decimal(total)
    sale = Sale(
        id=sale_id,
        sale_date=when,
        subtotal=total,
        discount=Decimal("0"),
        tax=Decimal("0"),
        tax_rate=Decimal("0"),
        total_amount=total,
        payment_method="card",
        applied_coupon=coupon,
        cashier_id="key:1",
        cashier_name=cashier,
        base_currency="USD",
        display_currency="USD",
        conversion_rate=Decimal("1"),
        display_subtotal=total,
        display_discount=Decimal("0"),
        display_tax=Decimal("0"),
        display_total=total,
        items=[SaleItem(line_number=1, product_id=1, product_name="Widget", quantity=1, price_at_time=total)],
    )
    db.session.add(sale)
    db.session.commit()
    return sale


@pytest.fixture
def history(app):
    return [
        make_sale("TXN-A", datetime(2025, 3, 1, 9), "10.00", cashier="Alice"),
        make_sale("TXN-B", datetime(2025, 3, 2, 18), "20.00", cashier="Bob", coupon="SAVE20"),
        make_sale("TXN-C", datetime(2025, 3, 5, 12), "30.00", cashier="Alice"),
    ]


class TestSalesList:
    def ids(self, client, headers, query=""):
        resp = client.get(f"/api/sales?{query}", headers=headers)
        assert resp.status_code == 200
        return [s["id"] for s in resp.get_json()["data"]["sales"]]

    def test_newest_first(self, client, master_headers, history):
        assert self.ids(client, master_headers) == ["TXN-C", "TXN-B", "TXN-A"]

    def test_search(self, client, master_headers, history):
        assert self.ids(client, master_headers, "q=bob") == ["TXN-B"]
        assert self.ids(client, master_headers, "q=save") == ["TXN-B"]

    def test_date_range_is_inclusive(self, client, master_headers, history):
        assert self.ids(client, master_headers, "start=2025-03-01&end=2025-03-02") == ["TXN-B", "TXN-A"]

    def test_bad_date(self, client, master_headers, history):
        assert client.get("/api/sales?start=yesterday", headers=master_headers).status_code == 400

    def test_pagination(self, client, master_headers, history):
        resp = client.get("/api/sales?per_page=2&page=2", headers=master_headers)
        data = resp.get_json()["data"]
        assert data["meta"] == {"page": 2, "pages": 2, "per_page": 2, "total": 3}
        assert [s["id"] for s in data["sales"]] == ["TXN-A"]


class TestSaleDetail:
    def test_detail_and_receipt(self, client, master_headers, history):
        sale = client.get("/api/sales/TXN-B", headers=master_headers).get_json()["data"]["sale"]
        assert sale["applied_coupon"] == "SAVE20"
        assert sale["items"][0]["name"] == "Widget"

        receipt = client.get("/api/sales/TXN-B/receipt", headers=master_headers).get_json()["data"]["receipt"]
        assert receipt["transaction_id"] == "TXN-B"
        assert receipt["total"] == "20.00"
        assert receipt["footer"] == "Thank you for your business!"
        assert "base_total" not in receipt

    def test_missing(self, client, master_headers):
        assert client.get("/api/sales/TXN-NOPE", headers=master_headers).status_code == 404
        assert client.get("/api/sales/TXN-NOPE/receipt", headers=master_headers).status_code == 404


class TestDashboard:
    def test_summary(self, app, catalog, history):
        summary = dashboard_summary(datetime(2025, 3, 20))
        assert summary["total_revenue"] == "60.00"
        assert summary["total_sales"] == 3
        assert summary["total_products"] == 4
        assert len(summary["monthly_sales"]) == 12
        assert summary["monthly_sales"][0] == {"name": "Apr", "year": 2024, "total": "0.00"}
        assert summary["monthly_sales"][-1] == {"name": "Mar", "year": 2025, "total": "60.00"}
        assert [s["id"] for s in summary["recent_sales"]] == ["TXN-C", "TXN-B", "TXN-A"]
        assert {p["name"] for p in summary["low_stock"]} == {"Widget", "Gadget", "Last One", "Sold Out"}

    def test_endpoint(self, client, master_headers, app):
        make_sale("TXN-NOW", utcnow(), "12.34")
        data = client.get("/api/dashboard", headers=master_headers).get_json()["data"]
        assert data["total_revenue"] == "12.34"
        assert data["monthly_sales"][-1]["total"] == "12.34"


@pytest.mark.parametrize("months,expected", [(-1, (2024, 12)), (-12, (2024, 1)), (11, (2025, 12))])
def test_shift_month(months, expected):
    shifted = _shift_month(datetime(2025, 1, 1), months)
    assert (shifted.year, shifted.month) == expected
