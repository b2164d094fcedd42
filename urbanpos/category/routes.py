# --- category/routes.py ---
from flask import request, jsonify
from sqlalchemy import desc

from . import bp
from ..extensions import db
from ..model import Category, Product
from ..utils.api import api_ok, api_error
from ..utils.decorators import permission_required


# ------------------------ helpers ------------------------
def _to_int(v, default=None):
    try:
        return int(v)
    except (TypeError, ValueError):
        return default


def _paginate(query, page, per_page):
    page = max(_to_int(page, 1), 1)
    per_page = min(max(_to_int(per_page, 50), 1), 100)
    items = query.paginate(page=page, per_page=per_page, error_out=False)
    return {
        "meta": {
            "page": items.page,
            "pages": items.pages or 1,
            "per_page": per_page,
            "total": items.total,
        },
        "items": items.items,
    }


def _get_or_404(cid):
    c = db.session.get(Category, cid)
    if c is None:
        return None, (jsonify(api_error("category not found")), 404)
    return c, None
# ------------------------ CATEGORY ROUTES ------------------------

@bp.post("")
@permission_required("inventory")
def create_category():
    data = request.get_json(silent=True) or {}
    name = (data.get("name") or "").strip()
    if not name:
        return jsonify(api_error("Category name is required.")), 400
    if Category.query.filter(Category.name.ilike(name)).first():
        return jsonify(api_error("category name already exists")), 409
    c = Category(name=name, description=(data.get("description") or "").strip() or None)
    db.session.add(c)
    db.session.commit()
    return jsonify(api_ok("Category created", {"category": c.as_dict()})), 201


@bp.get("")
@permission_required("inventory")
def list_categories():
    """
    q        -> substring match on name
    sort     -> name, -name, id, -id
    page     -> default 1
    per_page -> default 50 (cap 100)
    """
    q = (request.args.get("q") or "").strip()
    sort = (request.args.get("sort") or "name").strip()

    qry = Category.query
    if q:
        qry = qry.filter(Category.name.ilike(f"%{q}%"))

    sort_map = {
        "id": Category.id,
        "-id": desc(Category.id),
        "name": Category.name,
        "-name": desc(Category.name),
    }
    qry = qry.order_by(sort_map.get(sort, Category.name))
    page_data = _paginate(qry, request.args.get("page"), request.args.get("per_page"))

    return jsonify(api_ok("Categories fetched", {
        "meta": page_data["meta"],
        "categories": [c.as_dict() for c in page_data["items"]],
    }))


@bp.get("/<int:cid>")
@permission_required("inventory")
def get_category(cid):
    c, missing = _get_or_404(cid)
    if missing:
        return missing
    return jsonify(api_ok("Category fetched", {"category": c.as_dict()}))


@bp.put("/<int:cid>")
@permission_required("inventory")
def update_category(cid):
    c, missing = _get_or_404(cid)
    if missing:
        return missing
    data = request.get_json(silent=True) or {}
    if "name" in data:
        new_name = (data.get("name") or "").strip()
        if not new_name:
            return jsonify(api_error("name cannot be empty")), 400
        exists = Category.query.filter(
            Category.name.ilike(new_name), Category.id != c.id
        ).first()
        if exists:
            return jsonify(api_error("category name already exists")), 409
        c.name = new_name
    if "description" in data:
        c.description = (data.get("description") or "").strip() or None
    db.session.commit()
    return jsonify(api_ok("Category updated", {"category": c.as_dict()}))


@bp.delete("/<int:cid>")
@permission_required("inventory")
def delete_category(cid):
    if Product.query.filter_by(category_id=cid).first():
        return jsonify(api_error("cannot delete: category has products")), 409
    c, missing = _get_or_404(cid)
    if missing:
        return missing
    db.session.delete(c)
    db.session.commit()
    return jsonify(api_ok("deleted")), 200
