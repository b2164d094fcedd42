"""
Exchange-rate sync against Open Exchange Rates.

Rates are stored relative to the store's base currency. The base currency
itself is never stored; its rate is implicitly 1.
"""

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, Optional

import requests
from flask import current_app

from ..extensions import db
from ..model import ExchangeRate
from .settings_service import get_settings

logger = logging.getLogger(__name__)


class RateSyncError(Exception):
    """Raised when exchange rates cannot be fetched or stored."""

    pass


def get_rates() -> Dict[str, Decimal]:
    return {r.code: Decimal(r.rate) for r in ExchangeRate.query.all()}


def list_rates():
    return ExchangeRate.query.order_by(ExchangeRate.code.asc()).all()


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def rates_are_stale(settings, max_age_hours: int, now: Optional[datetime] = None) -> bool:
    if settings.last_currency_sync is None:
        return True
    now = now or _utcnow()
    return now - settings.last_currency_sync > timedelta(hours=max_age_hours)


def fetch_rates(base_currency: str) -> Dict[str, Decimal]:
    """
    Fetch the latest rates for ``base_currency``.

    Free Open Exchange Rates plans ignore ``base`` and always answer in USD;
    in that case the response is rebased onto ``base_currency``.

    Raises:
        RateSyncError: If the app id is missing or the API call fails
    """
    app_id = current_app.config.get("OPEN_EXCHANGE_RATES_APP_ID")
    if not app_id:
        raise RateSyncError("Open Exchange Rates App ID is not configured.")

    url = current_app.config["OPEN_EXCHANGE_RATES_URL"]
    timeout = current_app.config.get("RATE_SYNC_TIMEOUT", 10)

    try:
        response = requests.get(url, params={"app_id": app_id, "base": base_currency}, timeout=timeout)
        response.raise_for_status()
        data = response.json()
    except requests.RequestException as e:
        logger.error("Exchange rate request failed: %s", e)
        raise RateSyncError(f"API call failed: {e}")
    except ValueError as e:
        logger.error("Exchange rate response was not JSON: %s", e)
        raise RateSyncError(f"Invalid response from API: {e}")

    if data.get("error"):
        raise RateSyncError(f"API returned an error: {data.get('description')}")

    try:
        raw = {code.upper(): Decimal(str(rate)) for code, rate in data["rates"].items()}
    except (KeyError, AttributeError, ArithmeticError) as e:
        logger.error("Exchange rate response parsing failed: %s", e)
        raise RateSyncError(f"Invalid response from API: {e}")

    returned_base = (data.get("base") or base_currency).upper()
    if returned_base != base_currency:
        pivot = raw.get(base_currency)
        if not pivot:
            raise RateSyncError(f"API response has no rate for base currency {base_currency}")
        raw = {code: rate / pivot for code, rate in raw.items()}
        raw[returned_base] = Decimal("1") / pivot

    raw.pop(base_currency, None)
    return raw


def sync_exchange_rates() -> int:
    """Replace stored rates with fresh ones and stamp the settings row.

    Rates and ``last_currency_sync`` are written in a single commit.
    Returns the number of rates stored.
    """
    settings = get_settings()
    base = settings.base_currency
    logger.info("Syncing exchange rates against %s", base)

    rates = fetch_rates(base)
    synced_at = _utcnow()

    try:
        ExchangeRate.query.filter(ExchangeRate.code.notin_(list(rates.keys()))).delete(synchronize_session=False)
        for code, rate in rates.items():
            row = db.session.get(ExchangeRate, code)
            if row is None:
                row = ExchangeRate(code=code)
                db.session.add(row)
            row.rate = rate
            row.last_updated = synced_at
        settings.last_currency_sync = synced_at
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.exception("Storing exchange rates failed")
        raise RateSyncError(f"Could not store exchange rates: {e}")

    logger.info("Synced %d exchange rates", len(rates))
    return len(rates)
