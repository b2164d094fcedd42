# ------- urbanpos/utils/decorators.py -------
from functools import wraps

from flask import jsonify
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request

from ..pos.session import CashierSession
from .api import api_error


def current_cashier() -> CashierSession:
    verify_jwt_in_request()
    claims = get_jwt()
    return CashierSession(
        cashier_id=str(get_jwt_identity()),
        cashier_name=claims.get("tag_name") or "Unknown",
        is_master=bool(claims.get("is_master")),
        permissions=frozenset(claims.get("permissions") or ()),
    )


def permission_required(page: str, message: str | None = None):
    """Allow master keys and keys whose permission set contains ``page``."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            cashier = current_cashier()
            if not cashier.can_access(page):
                return jsonify(api_error(message or "Forbidden")), 403
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def master_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        cashier = current_cashier()
        if not cashier.is_master:
            return jsonify(api_error("Master key required")), 403
        return fn(*args, **kwargs)
    return wrapper
