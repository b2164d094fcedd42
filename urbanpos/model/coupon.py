# --- model/coupon.py ---
from decimal import Decimal

from sqlalchemy.sql import func

from ..extensions import db

PERCENTAGE = "percentage"
FIXED = "fixed"
DISCOUNT_TYPES = (PERCENTAGE, FIXED)


class Coupon(db.Model):
    __tablename__ = "coupon"
    __table_args__ = (
        db.CheckConstraint("usage_count >= 0", name="ck_coupon_usage_count_non_negative"),
        db.CheckConstraint("usage_limit >= 1", name="ck_coupon_usage_limit_positive"),
    )

    id = db.Column(db.Integer, primary_key=True)
    # always stored uppercase
    code = db.Column(db.String(64), unique=True, nullable=False, index=True)

    discount_type = db.Column(db.String(16), nullable=False, default=PERCENTAGE)
    discount_value = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal("0"))

    expiration_date = db.Column(db.DateTime, nullable=False)
    usage_limit = db.Column(db.Integer, nullable=False, default=1)
    usage_count = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    @staticmethod
    def normalize_code(code) -> str:
        return (code or "").strip().upper()

    def as_api(self):
        return {
            "id": self.id,
            "code": self.code,
            "discount_type": self.discount_type,
            "discount_value": str(self.discount_value) if self.discount_value is not None else None,
            "expiration_date": self.expiration_date.isoformat() if self.expiration_date else None,
            "usage_limit": self.usage_limit,
            "usage_count": self.usage_count,
            "is_active": self.is_active,
        }
