# urbanpos/services/sale_service.py
from datetime import datetime, timedelta

from sqlalchemy import func, or_

from ..extensions import db
from ..model import Product, Sale
from ..pos.currency import CurrencyContext, symbol_for
from ..pos.pricing import Totals
from ..utils.money import D, ZERO, to_string_money
from .catalog_service import low_stock_products


def create_sale(sale: Sale) -> Sale:
    """Stage ``sale`` in the current transaction; the caller commits."""
    db.session.add(sale)
    db.session.flush()
    return sale


def get_sale(sale_id):
    return db.session.get(Sale, sale_id)


def search_sales(q=None, start=None, end=None):
    query = Sale.query
    if q:
        like = f"%{q}%"
        query = query.filter(or_(
            Sale.id.ilike(like),
            Sale.cashier_name.ilike(like),
            Sale.applied_coupon.ilike(like),
        ))
    if start:
        query = query.filter(Sale.sale_date >= start)
    if end:
        # make end inclusive for the whole day
        query = query.filter(Sale.sale_date < end + timedelta(days=1))
    return query.order_by(Sale.sale_date.desc())


def displayed_totals(sale: Sale) -> Totals:
    """Customer-facing totals as stored at settlement; already rounded."""
    subtotal = D(sale.display_subtotal)
    discount = D(sale.display_discount)
    return Totals(
        subtotal=subtotal,
        discount=discount,
        discounted_subtotal=subtotal - discount,
        tax=D(sale.display_tax),
        total=D(sale.display_total),
    )


def build_receipt(sale: Sale, settings) -> dict:
    """Customer receipt rebuilt only from what the sale captured."""
    currency = CurrencyContext(
        base=sale.base_currency,
        display=sale.display_currency,
        rate=D(sale.conversion_rate),
    )
    shown = displayed_totals(sale)

    lines = []
    for item in sale.items:
        unit = D(item.price_at_time)
        lines.append({
            "product_id": item.product_id,
            "name": item.product_name,
            "quantity": item.quantity,
            "unit_price": to_string_money(currency.convert(unit)),
            "amount": to_string_money(currency.convert(unit * item.quantity)),
        })

    receipt = {
        "store": {
            "name": settings.store_name,
            "address": settings.store_address if settings.show_store_address else None,
            "email": settings.store_email or None,
        },
        "transaction_id": sale.id,
        "sale_date": sale.sale_date.isoformat() if sale.sale_date else None,
        "cashier_name": sale.cashier_name,
        "payment_method": sale.payment_method,
        "currency": currency.display,
        "currency_symbol": currency.symbol,
        "conversion_rate": str(currency.rate),
        "lines": lines,
        "subtotal": to_string_money(shown.subtotal),
        "coupon_code": sale.applied_coupon,
        "discount": to_string_money(shown.discount),
        "tax_rate": str(sale.tax_rate),
        "tax": to_string_money(shown.tax),
        "total": to_string_money(shown.total),
        "footer": settings.receipt_footer_message or "Thank you for your business!",
    }
    if currency.is_converted:
        receipt["base_total"] = {
            "currency": currency.base,
            "symbol": symbol_for(currency.base),
            "amount": to_string_money(sale.total_amount),
        }
    return receipt


def _month_start(dt: datetime) -> datetime:
    return dt.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def _shift_month(dt: datetime, months: int) -> datetime:
    index = dt.year * 12 + (dt.month - 1) + months
    return dt.replace(year=index // 12, month=index % 12 + 1)


def dashboard_summary(now: datetime, recent=5) -> dict:
    revenue = db.session.query(func.coalesce(func.sum(Sale.total_amount), 0)).scalar()
    sale_count = db.session.query(func.count(Sale.id)).scalar()
    product_count = db.session.query(func.count(Product.id)).scalar()

    this_month = _month_start(now)
    months = [_shift_month(this_month, -i) for i in range(11, -1, -1)]
    by_month = {(m.year, m.month): ZERO for m in months}

    window = Sale.query.with_entities(Sale.sale_date, Sale.total_amount).filter(Sale.sale_date >= months[0])
    for sale_date, total in window:
        key = (sale_date.year, sale_date.month)
        if key in by_month:
            by_month[key] += D(total)

    latest = Sale.query.order_by(Sale.sale_date.desc()).limit(recent).all()

    return {
        "total_revenue": to_string_money(revenue),
        "total_sales": int(sale_count or 0),
        "total_products": int(product_count or 0),
        "monthly_sales": [
            {"name": m.strftime("%b"), "year": m.year, "total": to_string_money(by_month[(m.year, m.month)])}
            for m in months
        ],
        "recent_sales": [
            {
                "id": s.id,
                "cashier_name": s.cashier_name,
                "sale_date": s.sale_date.isoformat(),
                "total_amount": str(s.total_amount),
            }
            for s in latest
        ],
        "low_stock": [p.as_api() for p in low_stock_products(limit=10)],
    }
