from datetime import datetime
from decimal import Decimal

import pytest
import requests

from urbanpos.extensions import db
from urbanpos.model import ExchangeRate
from urbanpos.services import rate_service
from urbanpos.services.rate_service import RateSyncError, fetch_rates, rates_are_stale, sync_exchange_rates
from urbanpos.services.settings_service import get_settings


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        return self.payload


@pytest.fixture
def fake_api(monkeypatch):
    calls = []

    def install(payload, status=200):
        def fake_get(url, params=None, timeout=None):
            calls.append({"url": url, "params": params, "timeout": timeout})
            return FakeResponse(payload, status)

        monkeypatch.setattr(rate_service.requests, "get", fake_get)
        return calls

    return install


class TestSettingsApi:
    def test_defaults(self, client, master_headers):
        data = client.get("/api/settings", headers=master_headers).get_json()["data"]["settings"]
        assert data["store_name"] == "UrbanPOS"
        assert data["base_currency"] == "USD"
        assert Decimal(data["default_tax_rate"]) == 0

    def test_update(self, client, master_headers):
        resp = client.put("/api/settings", headers=master_headers, json={
            "store_name": "Corner Shop",
            "store_email": "hello@corner.shop",
            "default_tax_rate": "7.5",
            "base_currency": "eur",
        })
        data = resp.get_json()["data"]["settings"]
        assert resp.status_code == 200
        assert data["base_currency"] == "EUR"
        assert Decimal(data["default_tax_rate"]) == Decimal("7.5")

    @pytest.mark.parametrize("payload", [
        {"default_tax_rate": "101"},
        {"default_tax_rate": "-1"},
        {"store_email": "not-an-email"},
        {"base_currency": "EURO"},
        {"store_name": "  "},
    ])
    def test_validation(self, client, master_headers, payload):
        assert client.put("/api/settings", headers=master_headers, json=payload).status_code == 400


class TestFetchRates:
    def test_requests_the_store_base(self, app, fake_api):
        calls = fake_api({"base": "USD", "rates": {"USD": 1, "EUR": 0.9, "GBP": 0.8}})
        rates = fetch_rates("USD")
        assert rates == {"EUR": Decimal("0.9"), "GBP": Decimal("0.8")}
        assert calls[0]["params"] == {"app_id": "test-app-id", "base": "USD"}
        assert calls[0]["timeout"] == 10

    def test_rebases_usd_answers(self, app, fake_api):
        fake_api({"base": "USD", "rates": {"USD": 1, "EUR": 0.5, "GBP": 0.25}})
        rates = fetch_rates("EUR")
        assert rates == {"USD": Decimal("2"), "GBP": Decimal("0.5")}

    def test_http_error(self, app, fake_api):
        fake_api({"error": True}, status=401)
        with pytest.raises(RateSyncError):
            fetch_rates("USD")

    def test_api_error_payload(self, app, fake_api):
        fake_api({"error": True, "description": "invalid app id"})
        with pytest.raises(RateSyncError, match="invalid app id"):
            fetch_rates("USD")

    def test_missing_app_id(self, app):
        app.config["OPEN_EXCHANGE_RATES_APP_ID"] = None
        with pytest.raises(RateSyncError, match="not configured"):
            fetch_rates("USD")


class TestSync:
    def test_replaces_rates_and_stamps_settings(self, app, fake_api):
        db.session.add(ExchangeRate(code="JPY", rate=Decimal("150"), last_updated=datetime(2020, 1, 1)))
        db.session.commit()
        fake_api({"base": "USD", "rates": {"EUR": 0.9, "BDT": 117.5}})

        assert sync_exchange_rates() == 2

        assert sorted(r.code for r in ExchangeRate.query.all()) == ["BDT", "EUR"]
        assert get_settings().last_currency_sync is not None

    def test_failed_sync_keeps_old_rates(self, app, fake_api):
        db.session.add(ExchangeRate(code="JPY", rate=Decimal("150"), last_updated=datetime(2020, 1, 1)))
        db.session.commit()
        fake_api({}, status=500)

        with pytest.raises(RateSyncError):
            sync_exchange_rates()
        assert [r.code for r in ExchangeRate.query.all()] == ["JPY"]

    def test_endpoint(self, client, master_headers, fake_api):
        fake_api({"base": "USD", "rates": {"EUR": 0.9}})
        resp = client.post("/api/settings/rates/sync", headers=master_headers)
        assert resp.status_code == 200
        assert resp.get_json()["data"]["count"] == 1

        rates = client.get("/api/settings/rates", headers=master_headers).get_json()["data"]["rates"]
        assert [r["code"] for r in rates] == ["EUR"]

    def test_endpoint_failure_is_bad_gateway(self, client, master_headers, fake_api):
        fake_api({}, status=503)
        resp = client.post("/api/settings/rates/sync", headers=master_headers)
        assert resp.status_code == 502
        assert resp.get_json()["status"] is False


class TestStaleness:
    def test_never_synced(self, app):
        assert rates_are_stale(get_settings(), 24)

    def test_age(self, app):
        settings = get_settings()
        settings.last_currency_sync = datetime(2025, 1, 1, 0, 0)
        assert not rates_are_stale(settings, 24, now=datetime(2025, 1, 1, 23, 0))
        assert rates_are_stale(settings, 24, now=datetime(2025, 1, 2, 1, 0))
