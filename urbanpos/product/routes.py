# urbanpos/product/routes.py
from flask import request, jsonify
from sqlalchemy import or_, desc, asc

from . import bp
from ..extensions import db
from ..model import Category, Product
from ..utils.api import api_ok, api_error
from ..utils.decorators import permission_required
from ..utils.money import D


# ---------- helpers ----------
def _parse_bool(v, default=False):
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    return str(v).strip().lower() in {"1", "true", "yes", "y", "on"}


def _parse_int(v, default=0):
    try:
        return int(v)
    except (TypeError, ValueError):
        return default


def _parse_opt_int(v):
    if v is None:
        return None
    if isinstance(v, str) and v.strip().lower() in {"", "null"}:
        return None
    try:
        return int(v)
    except (TypeError, ValueError):
        return None


def _sort_products(query, sort):
    sort = (sort or "").strip()
    mapping = {
        "id": asc(Product.id), "-id": desc(Product.id),
        "name": asc(Product.name), "-name": desc(Product.name),
        "price": asc(Product.price), "-price": desc(Product.price),
        "stock": asc(Product.stock_quantity), "-stock": desc(Product.stock_quantity),
    }
    col = mapping.get(sort, desc(Product.id))  # default newest first (id desc)
    return query.order_by(col)


def _paginate(query, page, per_page):
    page = max(_parse_int(page, 1), 1)
    per_page = min(max(_parse_int(per_page, 10), 1), 100)
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


# unified response helpers
def ok(message: str, data=None, status_code=200):
    resp = jsonify(api_ok(message, data))
    resp.status_code = status_code
    return resp


def err(message: str, status_code=400, data=None):
    resp = jsonify(api_error(message, data))
    resp.status_code = status_code
    return resp


def _apply_payload(p: Product, data: dict, creating: bool):
    """Copy validated fields onto ``p``. Returns an error message or None."""
    if creating or "name" in data:
        name = (data.get("name") or "").strip()
        if not name:
            return "Product name is required."
        p.name = name

    if creating or "price" in data:
        try:
            price = D(data.get("price"))
        except ValueError:
            return "Price must be a number."
        if price <= 0:
            return "Price must be positive."
        p.price = price

    if creating or "stock_quantity" in data:
        stock = _parse_opt_int(data.get("stock_quantity"))
        if stock is None or stock < 0:
            return "Stock must be a non-negative whole number."
        p.stock_quantity = stock

    if "reorder_threshold" in data:
        threshold = _parse_opt_int(data.get("reorder_threshold"))
        if threshold is None or threshold < 0:
            return "Reorder threshold must be a non-negative whole number."
        p.reorder_threshold = threshold

    if "category_id" in data:
        cid = _parse_opt_int(data.get("category_id"))
        if cid is not None and db.session.get(Category, cid) is None:
            return "Category not found."
        p.category_id = cid

    for field in ("description", "image_url", "image_hint"):
        if field in data:
            setattr(p, field, (data.get(field) or "").strip() or None)
    return None


# ---------- routes ----------
@bp.get("")
@permission_required("inventory")
def list_products():
    q = (request.args.get("q") or "").strip()
    category_id = _parse_opt_int(request.args.get("category_id"))
    low_stock = _parse_bool(request.args.get("low_stock"))

    query = Product.query
    if q:
        like = f"%{q}%"
        query = query.filter(or_(Product.name.ilike(like), Product.description.ilike(like)))
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if low_stock:
        query = query.filter(Product.stock_quantity <= Product.reorder_threshold)

    query = _sort_products(query, request.args.get("sort"))
    page_data = _paginate(query, request.args.get("page"), request.args.get("per_page"))
    return ok("Products fetched", {
        "meta": page_data["meta"],
        "products": [p.as_api() for p in page_data["items"]],
    })


@bp.get("/<int:pid>")
@permission_required("inventory")
def get_product(pid):
    p = db.session.get(Product, pid)
    if not p:
        return err("product not found", 404)
    return ok("Product fetched", {"product": p.as_api()})


@bp.post("")
@permission_required("inventory")
def create_product():
    data = request.get_json(silent=True) or {}
    p = Product()
    problem = _apply_payload(p, data, creating=True)
    if problem:
        return err(problem, 400)
    db.session.add(p)
    db.session.commit()
    return ok("Product created", {"product": p.as_api()}, 201)


@bp.put("/<int:pid>")
@permission_required("inventory")
def update_product(pid):
    p = db.session.get(Product, pid)
    if not p:
        return err("product not found", 404)
    data = request.get_json(silent=True) or {}
    problem = _apply_payload(p, data, creating=False)
    if problem:
        db.session.rollback()
        return err(problem, 400)
    db.session.commit()
    return ok("Product updated", {"product": p.as_api()})


@bp.delete("/<int:pid>")
@permission_required("inventory")
def delete_product(pid):
    p = db.session.get(Product, pid)
    if not p:
        return err("product not found", 404)
    db.session.delete(p)
    db.session.commit()
    return ok("Product deleted", {"id": pid})
