# urbanpos/pos/coupons.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional

from ..model.coupon import Coupon
from .errors import CouponRejected, CouponRejection


def utcnow() -> datetime:
    """Naive UTC, matching how timestamps are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is not None:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def check_coupon(coupon, now: Optional[datetime] = None) -> Optional[CouponRejection]:
    """Return why ``coupon`` cannot be used right now, or None if it can."""
    now = _naive_utc(now or utcnow())
    if not coupon.is_active:
        return CouponRejection.INACTIVE
    if _naive_utc(coupon.expiration_date) < now:
        return CouponRejection.EXPIRED
    if int(coupon.usage_count or 0) >= int(coupon.usage_limit or 0):
        return CouponRejection.LIMIT_REACHED
    return None


def resolve_coupon(code, lookup: Callable[[str], Optional[Coupon]], now: Optional[datetime] = None):
    """Find the coupon for ``code`` and make sure it can be applied.

    Raises ``CouponRejected`` carrying the first failing reason. Resolving
    never touches ``usage_count``; that only happens when a sale settles.
    """
    normalized = Coupon.normalize_code(code)
    coupon = lookup(normalized) if normalized else None
    if coupon is None:
        raise CouponRejected(CouponRejection.INVALID_CODE, normalized or None)
    reason = check_coupon(coupon, now)
    if reason is not None:
        raise CouponRejected(reason, coupon.code)
    return coupon
