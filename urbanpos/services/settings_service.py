# urbanpos/services/settings_service.py
import re

from flask import current_app

from ..extensions import db
from ..model import StoreSettings
from ..model.settings import SETTINGS_ID
from ..utils.money import D

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def get_settings() -> StoreSettings:
    """Return the settings row, creating defaults on first use."""
    settings = db.session.get(StoreSettings, SETTINGS_ID)
    if settings is None:
        settings = StoreSettings(
            id=SETTINGS_ID,
            base_currency=current_app.config.get("DEFAULT_BASE_CURRENCY", "USD").upper(),
        )
        db.session.add(settings)
        db.session.flush()
    return settings


def update_settings(data: dict) -> StoreSettings:
    settings = get_settings()

    if "store_name" in data:
        name = (data.get("store_name") or "").strip()
        if not name:
            raise ValueError("Store name is required.")
        settings.store_name = name

    if "store_address" in data:
        address = (data.get("store_address") or "").strip()
        if not address:
            raise ValueError("Store address is required.")
        settings.store_address = address

    if "store_email" in data:
        email = (data.get("store_email") or "").strip()
        if not _EMAIL_RE.match(email):
            raise ValueError("Please enter a valid email.")
        settings.store_email = email

    if "show_store_address" in data:
        settings.show_store_address = bool(data.get("show_store_address"))

    if "default_tax_rate" in data:
        rate = D(data.get("default_tax_rate"))
        if rate < 0:
            raise ValueError("Tax rate cannot be negative.")
        if rate > 100:
            raise ValueError("Tax rate cannot exceed 100.")
        settings.default_tax_rate = rate

    if "receipt_footer_message" in data:
        settings.receipt_footer_message = (data.get("receipt_footer_message") or "").strip()

    if "base_currency" in data:
        code = (data.get("base_currency") or "").strip().upper()
        if len(code) != 3 or not code.isalpha():
            raise ValueError("Base currency must be a 3-letter code.")
        settings.base_currency = code

    db.session.commit()
    return settings
