# urbanpos/services/coupon_service.py
from datetime import datetime, timezone

from sqlalchemy import update

from ..extensions import db
from ..model import Coupon
from ..model.coupon import DISCOUNT_TYPES, PERCENTAGE
from ..utils.money import D


def find_by_code(code):
    code = Coupon.normalize_code(code)
    if not code:
        return None
    return Coupon.query.filter(Coupon.code == code).first()


def increment_usage(coupon_id, now) -> bool:
    """Atomic +1 that only applies while the coupon is still usable."""
    result = db.session.execute(
        update(Coupon)
        .where(
            Coupon.id == coupon_id,
            Coupon.is_active.is_(True),
            Coupon.expiration_date >= now,
            Coupon.usage_count < Coupon.usage_limit,
        )
        .values(usage_count=Coupon.usage_count + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _parse_iso8601(s):
    if not s:
        return None
    if isinstance(s, datetime):
        dt = s
    else:
        s = str(s).strip()
        # support trailing 'Z' (UTC)
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(s)
        except ValueError:
            return None
    if dt.tzinfo:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)  # store naive UTC
    return dt


def apply_coupon_payload(coupon: Coupon, data: dict, *, creating: bool):
    """Validate ``data`` and copy it onto ``coupon``. Raises ValueError."""
    if creating or "code" in data:
        code = Coupon.normalize_code(data.get("code"))
        if len(code) < 3:
            raise ValueError("Code must be at least 3 characters.")
        clash = Coupon.query.filter(Coupon.code == code)
        if coupon.id is not None:
            clash = clash.filter(Coupon.id != coupon.id)
        if clash.first():
            raise ValueError("Coupon code already exists")
        coupon.code = code

    if creating or "discount_type" in data:
        dtype = (data.get("discount_type") or PERCENTAGE).lower().strip()
        if dtype not in DISCOUNT_TYPES:
            raise ValueError("discount_type must be 'percentage' or 'fixed'")
        coupon.discount_type = dtype

    if creating or "discount_value" in data:
        value = D(data.get("discount_value"))
        if value < D("0.01"):
            raise ValueError("Discount value must be positive.")
        coupon.discount_value = value

    if coupon.discount_type == PERCENTAGE and D(coupon.discount_value) > 100:
        raise ValueError("Percentage discount cannot exceed 100.")

    if creating or "expiration_date" in data:
        expires = _parse_iso8601(data.get("expiration_date"))
        if expires is None:
            raise ValueError("A valid expiration_date is required.")
        coupon.expiration_date = expires

    if creating or "usage_limit" in data:
        try:
            limit = int(data.get("usage_limit") if data.get("usage_limit") is not None else 1)
        except (TypeError, ValueError):
            raise ValueError("usage_limit must be an integer")
        if limit < 1:
            raise ValueError("Usage limit must be at least 1.")
        coupon.usage_limit = limit

    if creating or "is_active" in data:
        coupon.is_active = bool(data.get("is_active", True))

    if creating:
        coupon.usage_count = 0
    return coupon
