import hmac
import secrets

from flask import current_app, jsonify, request
from flask_jwt_extended import create_access_token, jwt_required
from sqlalchemy.exc import IntegrityError

from . import bp
from ..extensions import db
from ..model import AccessKey, PAGE_PERMISSIONS
from ..utils.api import api_ok, api_error
from ..utils.decorators import current_cashier, master_required

MIN_KEY_LENGTH = 6


def _issue_token(identity: str, tag_name: str, is_master: bool, permissions):
    return create_access_token(
        identity=identity,
        additional_claims={
            "tag_name": tag_name,
            "is_master": is_master,
            "permissions": list(permissions),
        },
    )


def _session_payload(token, tag_name, is_master, permissions):
    return {
        "token": token,
        "session": {
            "tag_name": tag_name,
            "is_master": is_master,
            "permissions": list(PAGE_PERMISSIONS) if is_master else list(permissions),
        },
    }


@bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    key = (data.get("key") or data.get("access_key") or "").strip()
    if not key:
        return jsonify(api_error("Access key is required")), 400

    master = current_app.config.get("MASTER_ACCESS_KEY")
    if master and hmac.compare_digest(key, master):
        token = _issue_token("master", "Master", True, PAGE_PERMISSIONS)
        current_app.logger.info("login with bootstrap master key")
        return jsonify(api_ok("You've logged in successfully", _session_payload(token, "Master", True, ()))), 200

    row = AccessKey.query.filter_by(key=key).first()
    if not row:
        current_app.logger.info("rejected login with unknown access key")
        return jsonify(api_error("The provided access key is not valid.")), 401

    tag_name = row.tag_name or ("Master" if row.is_master_key else "Unnamed Key")
    token = _issue_token(f"key:{row.id}", tag_name, row.is_master_key, row.permissions)
    return jsonify(api_ok(
        "You've logged in successfully",
        _session_payload(token, tag_name, row.is_master_key, row.permissions),
    )), 200


@bp.get("/me")
@jwt_required()
def me():
    cashier = current_cashier()
    return jsonify(api_ok("OK", {
        "cashier_id": cashier.cashier_id,
        "tag_name": cashier.cashier_name,
        "is_master": cashier.is_master,
        "permissions": list(PAGE_PERMISSIONS) if cashier.is_master else sorted(cashier.permissions),
    })), 200


# ---------------- access key management (master only) ----------------

@bp.get("/keys")
@master_required
def list_keys():
    keys = AccessKey.query.order_by(AccessKey.created_at.desc(), AccessKey.id.desc()).all()
    return jsonify(api_ok("OK", {"keys": [k.as_dict() for k in keys]})), 200


@bp.post("/keys")
@master_required
def create_key():
    data = request.get_json(silent=True) or {}
    tag_name = (data.get("tag_name") or "").strip()
    key = (data.get("key") or "").strip() or secrets.token_urlsafe(9)
    is_master = bool(data.get("is_master_key", False))
    permissions = data.get("permissions") or []

    if not tag_name:
        return jsonify(api_error("Tag Name is required.")), 400
    if len(key) < MIN_KEY_LENGTH:
        return jsonify(api_error(f"Key must be at least {MIN_KEY_LENGTH} characters.")), 400
    if not isinstance(permissions, list):
        return jsonify(api_error("permissions must be a list")), 400
    unknown = [p for p in permissions if p not in PAGE_PERMISSIONS]
    if unknown:
        return jsonify(api_error(f"Unknown permissions: {', '.join(map(str, unknown))}")), 400
    if not is_master and not permissions:
        return jsonify(api_error("You must select at least one permission if it's not a master key.")), 400

    row = AccessKey(tag_name=tag_name, key=key, is_master_key=is_master)
    row.permissions = PAGE_PERMISSIONS if is_master else permissions
    db.session.add(row)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify(api_error("Access key already exists")), 409

    return jsonify(api_ok(f"New key {row.key} has been created.", {"key": row.as_dict()})), 201


@bp.delete("/keys/<int:key_id>")
@master_required
def delete_key(key_id):
    row = db.session.get(AccessKey, key_id)
    if not row:
        return jsonify(api_error("Access key not found")), 404
    db.session.delete(row)
    db.session.commit()
    return jsonify(api_ok("The access key has been removed.")), 200
