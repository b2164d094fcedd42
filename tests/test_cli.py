from decimal import Decimal

from urbanpos.model import AccessKey, Category, Coupon, Product
from urbanpos.services import rate_service
from urbanpos.services.settings_service import get_settings


def test_create_master_key(app):
    result = app.test_cli_runner().invoke(args=["create-master-key", "--key", "boss-key", "--tag-name", "Owner"])
    assert "Master key created" in result.output
    row = AccessKey.query.filter_by(key="boss-key").one()
    assert row.is_master_key
    assert row.tag_name == "Owner"


def test_create_master_key_rejects_short_key(app):
    result = app.test_cli_runner().invoke(args=["create-master-key", "--key", "abc"])
    assert result.exit_code != 0
    assert AccessKey.query.count() == 0


def test_seed_demo_is_idempotent(app):
    runner = app.test_cli_runner()
    runner.invoke(args=["seed-demo"])
    result = runner.invoke(args=["seed-demo"])
    assert "skipping" in result.output
    assert Product.query.count() == 5
    assert Category.query.count() == 2
    assert Coupon.query.filter_by(code="WELCOME10").count() == 1


def test_sync_rates_if_stale_skips_fresh_rates(app, monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("should not be called")

    monkeypatch.setattr(rate_service.requests, "get", fail)
    settings = get_settings()
    settings.last_currency_sync = rate_service._utcnow()

    result = app.test_cli_runner().invoke(args=["sync-rates", "--if-stale"])
    assert "fresh" in result.output


def test_sync_rates_reports_failure(app, monkeypatch):
    app.config["OPEN_EXCHANGE_RATES_APP_ID"] = None
    result = app.test_cli_runner().invoke(args=["sync-rates"])
    assert result.exit_code == 1
    assert "not configured" in result.output


def test_export_then_import(app, catalog, tmp_path):
    path = tmp_path / "products.xlsx"
    runner = app.test_cli_runner()

    result = runner.invoke(args=["export-products", str(path)])
    assert "4 products exported" in result.output

    widget = catalog["widget"]
    widget.price = Decimal("1.00")
    widget.stock_quantity = 1

    result = runner.invoke(args=["import-products", str(path)])
    assert "0 products created, 4 updated" in result.output

    product = Product.query.filter_by(name="Widget").one()
    assert product.price == Decimal("10.00")
    assert product.stock_quantity == 5
    assert product.category_name == "General"
