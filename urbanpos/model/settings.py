# model/settings.py
from decimal import Decimal

from ..extensions import db

SETTINGS_ID = 1


class StoreSettings(db.Model):
    """Singleton row holding store identity, tax and currency settings."""
    __tablename__ = "store_settings"

    id = db.Column(db.Integer, primary_key=True, default=SETTINGS_ID)
    store_name = db.Column(db.String(180), nullable=False, default="UrbanPOS")
    store_address = db.Column(db.String(255), nullable=False, default="")
    store_email = db.Column(db.String(255), nullable=False, default="")
    show_store_address = db.Column(db.Boolean, nullable=False, default=True)

    # percentage, 0-100
    default_tax_rate = db.Column(db.Numeric(5, 2), nullable=False, default=Decimal("0"))
    receipt_footer_message = db.Column(db.String(500), nullable=False, default="")
    base_currency = db.Column(db.String(3), nullable=False, default="USD")
    last_currency_sync = db.Column(db.DateTime, nullable=True)

    def as_api(self):
        return {
            "store_name": self.store_name,
            "store_address": self.store_address,
            "store_email": self.store_email,
            "show_store_address": self.show_store_address,
            "default_tax_rate": str(self.default_tax_rate),
            "receipt_footer_message": self.receipt_footer_message,
            "base_currency": self.base_currency,
            "last_currency_sync": self.last_currency_sync.isoformat() if self.last_currency_sync else None,
        }
