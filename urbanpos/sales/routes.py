# urbanpos/sales/routes.py
from datetime import datetime

from flask import request, jsonify

from . import bp, dashboard_bp
from ..pos.coupons import utcnow
from ..services.sale_service import build_receipt, dashboard_summary, get_sale, search_sales
from ..services.settings_service import get_settings
from ..utils.api import api_ok, api_error
from ..utils.decorators import permission_required


def _to_int(v, default):
    try:
        return int(v)
    except (TypeError, ValueError):
        return default


def _parse_date(v):
    if not v:
        return None
    try:
        return datetime.fromisoformat(v.strip())
    except ValueError:
        return None


@bp.get("")
@permission_required("sales")
def list_sales():
    """
    q          -> transaction id, cashier or coupon (substring)
    start, end -> ISO dates, end inclusive
    page       -> default 1
    per_page   -> default 20 (cap 100)
    """
    start = _parse_date(request.args.get("start"))
    end = _parse_date(request.args.get("end"))
    if request.args.get("start") and start is None:
        return jsonify(api_error("Invalid date format for start")), 400
    if request.args.get("end") and end is None:
        return jsonify(api_error("Invalid date format for end")), 400

    query = search_sales((request.args.get("q") or "").strip() or None, start, end)
    page = max(_to_int(request.args.get("page"), 1), 1)
    per_page = min(max(_to_int(request.args.get("per_page"), 20), 1), 100)
    items = query.paginate(page=page, per_page=per_page, error_out=False)

    return jsonify(api_ok("Sales fetched", {
        "meta": {
            "page": items.page,
            "pages": items.pages or 1,
            "per_page": per_page,
            "total": items.total,
        },
        "sales": [s.as_api() for s in items.items],
    }))


@bp.get("/<sale_id>")
@permission_required("sales")
def get_sale_detail(sale_id):
    sale = get_sale(sale_id)
    if not sale:
        return jsonify(api_error("Sale not found")), 404
    return jsonify(api_ok("Sale fetched", {"sale": sale.as_api()}))


@bp.get("/<sale_id>/receipt")
@permission_required("sales")
def get_sale_receipt(sale_id):
    sale = get_sale(sale_id)
    if not sale:
        return jsonify(api_error("Sale not found")), 404
    return jsonify(api_ok("Receipt fetched", {"receipt": build_receipt(sale, get_settings())}))


@dashboard_bp.get("")
@permission_required("dashboard")
def dashboard():
    return jsonify(api_ok("Dashboard fetched", dashboard_summary(utcnow())))
