# urbanpos/settings/routes.py
import logging

from flask import request, jsonify

from . import bp
from ..services.rate_service import list_rates, sync_exchange_rates
from ..services.settings_service import get_settings, update_settings
from ..extensions import db
from ..utils.api import api_ok, api_error
from ..utils.decorators import permission_required

logger = logging.getLogger(__name__)


@bp.get("")
@permission_required("settings")
def read_settings():
    settings = get_settings()
    db.session.commit()  # persist defaults created on first read
    return jsonify(api_ok("Settings fetched", {"settings": settings.as_api()}))


@bp.put("")
@permission_required("settings")
def write_settings():
    data = request.get_json(silent=True) or {}
    try:
        settings = update_settings(data)
    except ValueError as e:
        db.session.rollback()
        return jsonify(api_error(str(e))), 400
    logger.info("store settings updated: %s", sorted(data.keys()))
    return jsonify(api_ok("Settings updated", {"settings": settings.as_api()}))


@bp.get("/rates")
@permission_required("settings")
def read_rates():
    settings = get_settings()
    return jsonify(api_ok("Exchange rates fetched", {
        "base_currency": settings.base_currency,
        "last_currency_sync": settings.last_currency_sync.isoformat() if settings.last_currency_sync else None,
        "rates": [r.as_api() for r in list_rates()],
    }))


@bp.post("/rates/sync")
@permission_required("settings")
def sync_rates():
    # RateSyncError is turned into a 502 by the app error handler
    count = sync_exchange_rates()
    settings = get_settings()
    return jsonify(api_ok(f"Synced {count} exchange rates", {
        "count": count,
        "base_currency": settings.base_currency,
        "last_currency_sync": settings.last_currency_sync.isoformat() if settings.last_currency_sync else None,
    }))
