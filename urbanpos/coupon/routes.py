# urbanpos/coupon/routes.py
from __future__ import annotations

from flask import request, jsonify
from sqlalchemy import desc

from . import bp
from ..extensions import db
from ..model import Coupon
from ..services.coupon_service import apply_coupon_payload
from ..utils.api import api_ok, api_error
from ..utils.decorators import permission_required


@bp.post("")
@permission_required("coupons")
def create_coupon():
    data = request.get_json(silent=True) or {}
    c = Coupon()
    try:
        apply_coupon_payload(c, data, creating=True)
    except ValueError as e:
        return jsonify(api_error(str(e))), 400

    db.session.add(c)
    db.session.commit()
    return jsonify(api_ok("Coupon created", {"coupon": c.as_api()})), 201


@bp.get("")
@permission_required("coupons")
def list_coupons():
    q = (request.args.get("q") or "").strip()
    active = request.args.get("active")

    query = Coupon.query
    if q:
        query = query.filter(Coupon.code.ilike(f"%{q.upper()}%"))
    if active is not None:
        query = query.filter(Coupon.is_active.is_(active.lower() in ("1", "true", "yes")))

    rows = query.order_by(desc(Coupon.created_at), desc(Coupon.id)).all()
    return jsonify(api_ok("Coupons fetched", {"coupons": [c.as_api() for c in rows]}))


@bp.get("/<int:cid>")
@permission_required("coupons")
def get_coupon(cid):
    c = db.session.get(Coupon, cid)
    if not c:
        return jsonify(api_error("Coupon not found")), 404
    return jsonify(api_ok("Coupon fetched", {"coupon": c.as_api()}))


@bp.put("/<int:cid>")
@permission_required("coupons")
def update_coupon(cid):
    c = db.session.get(Coupon, cid)
    if not c:
        return jsonify(api_error("Coupon not found")), 404

    data = request.get_json(silent=True) or {}
    try:
        apply_coupon_payload(c, data, creating=False)
    except ValueError as e:
        db.session.rollback()
        return jsonify(api_error(str(e))), 400

    db.session.commit()
    return jsonify(api_ok("Coupon updated", {"coupon": c.as_api()}))


@bp.delete("/<int:cid>")
@permission_required("coupons")
def delete_coupon(cid):
    c = db.session.get(Coupon, cid)
    if not c:
        return jsonify(api_error("Coupon not found")), 404
    db.session.delete(c)
    db.session.commit()
    return jsonify(api_ok("Coupon deleted", {"id": cid}))
