# urbanpos/services/catalog_service.py
from sqlalchemy import select, update

from ..extensions import db
from ..model import Product


def get_product(product_id):
    return db.session.get(Product, product_id)


def get_products(product_ids) -> dict:
    ids = set(product_ids)
    if not ids:
        return {}
    rows = db.session.execute(select(Product).where(Product.id.in_(ids))).scalars().all()
    return {p.id: p for p in rows}


def lock_products(product_ids) -> dict:
    """Fresh, row-locked read for use inside the settlement transaction.

    ``populate_existing`` discards whatever the identity map cached earlier
    in the request so prices and stock are the values committed right now.
    """
    ids = set(product_ids)
    if not ids:
        return {}
    stmt = (
        select(Product)
        .where(Product.id.in_(ids))
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return {p.id: p for p in db.session.execute(stmt).scalars().all()}


def decrement_stock(product_id, amount) -> bool:
    """Relative, conditional decrement. False when stock is insufficient."""
    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock_quantity >= amount)
        .values(stock_quantity=Product.stock_quantity - amount)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def low_stock_products(limit=None):
    q = (Product.query
         .filter(Product.stock_quantity <= Product.reorder_threshold)
         .order_by(Product.stock_quantity.asc(), Product.name.asc()))
    if limit:
        q = q.limit(limit)
    return q.all()
