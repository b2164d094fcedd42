# urbanpos/pos/settlement.py
"""Turn a cart into a committed sale.

One session transaction covers the whole settlement: the sale insert, a
conditional stock decrement per line and the conditional coupon usage
increment. Any failure rolls all of it back.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..model import Coupon, Sale, SaleItem
from ..services.catalog_service import decrement_stock, lock_products
from ..services.coupon_service import increment_usage
from ..services.sale_service import build_receipt, create_sale
from .cart import Cart
from .coupons import check_coupon, utcnow
from .currency import CurrencyContext
from .errors import (
    CommitFailed,
    CouponRejected,
    CouponRejection,
    EmptyCart,
    InsufficientStock,
    PosError,
)
from .pricing import Quote, price_cart
from .session import CashierSession

logger = logging.getLogger(__name__)


def new_transaction_id(now: datetime) -> str:
    # microsecond timestamp keeps ids sortable, the random suffix keeps
    # concurrent terminals from colliding
    return f"TXN-{now:%Y%m%d%H%M%S%f}-{uuid.uuid4().hex[:10].upper()}"


@dataclass(frozen=True)
class Settlement:
    sale: Sale
    quote: Quote
    currency: CurrencyContext

    def receipt(self, settings) -> dict:
        return build_receipt(self.sale, settings)


def _reload_coupon(coupon_id):
    return db.session.get(Coupon, coupon_id, with_for_update=True, populate_existing=True)


def settle(
    cart: Cart,
    *,
    coupon: Optional[Coupon],
    tax_rate,
    cashier: CashierSession,
    currency: CurrencyContext,
    payment_method: str = "card",
    now: Optional[datetime] = None,
) -> Settlement:
    """Commit ``cart`` as a sale.

    Prices, stock and coupon eligibility are all re-read inside the
    transaction; nothing the caller priced earlier is trusted. Raises
    ``EmptyCart`` before touching the database, ``InsufficientStock`` or
    ``CommitFailed`` after a rollback, and ``CouponRejected`` if the coupon
    stopped being usable between apply and pay.
    """
    if cart.is_empty:
        raise EmptyCart()

    now = now or utcnow()

    try:
        products = lock_products(cart.product_ids)
        for line in cart:
            product = products.get(line.product_id)
            if product is None:
                raise CommitFailed(
                    f"Product {line.product_id} is no longer available.",
                    product_id=line.product_id,
                )
            if int(product.stock_quantity or 0) < line.quantity:
                raise InsufficientStock(
                    f"Not enough stock for {product.name}.",
                    product_id=product.id,
                    available=int(product.stock_quantity or 0),
                    requested=line.quantity,
                )

        fresh_coupon = None
        if coupon is not None:
            fresh_coupon = _reload_coupon(coupon.id)
            if fresh_coupon is None:
                raise CouponRejected(CouponRejection.INVALID_CODE, coupon.code)
            reason = check_coupon(fresh_coupon, now)
            if reason is not None:
                raise CouponRejected(reason, fresh_coupon.code)

        quote = price_cart(cart, products, fresh_coupon, tax_rate)
        totals = quote.totals.rounded()
        # same basis as the quote: convert unrounded amounts, round once
        shown = quote.totals.converted(currency.rate).rounded()

        sale = Sale(
            id=new_transaction_id(now),
            sale_date=now,
            subtotal=totals.subtotal,
            discount=totals.discount,
            tax=totals.tax,
            tax_rate=quote.tax_rate,
            total_amount=totals.total,
            payment_method=payment_method,
            applied_coupon=fresh_coupon.code if fresh_coupon else None,
            cashier_id=cashier.cashier_id,
            cashier_name=cashier.cashier_name,
            base_currency=currency.base,
            display_currency=currency.display,
            conversion_rate=currency.rate,
            display_subtotal=shown.subtotal,
            display_discount=shown.discount,
            display_tax=shown.tax,
            display_total=shown.total,
            items=[
                SaleItem(
                    line_number=n,
                    product_id=line.product_id,
                    product_name=line.name,
                    quantity=line.quantity,
                    price_at_time=line.unit_price,
                )
                for n, line in enumerate(quote.lines, start=1)
            ],
        )
        create_sale(sale)

        for line in cart:
            if not decrement_stock(line.product_id, line.quantity):
                raise InsufficientStock(
                    f"Stock for product {line.product_id} changed during checkout.",
                    product_id=line.product_id,
                    requested=line.quantity,
                )

        if fresh_coupon is not None and not increment_usage(fresh_coupon.id, now):
            raise CouponRejected(CouponRejection.LIMIT_REACHED, fresh_coupon.code)

        db.session.commit()

    except PosError as e:
        db.session.rollback()
        logger.warning("settlement rolled back for %s: %s", cashier.cashier_name, e.message)
        raise
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.exception("settlement commit failed for %s", cashier.cashier_name)
        raise CommitFailed() from e
    except Exception as e:
        db.session.rollback()
        logger.exception("settlement failed unexpectedly for %s", cashier.cashier_name)
        raise CommitFailed() from e

    logger.info(
        "sale %s settled by %s: %s %s (%d lines)",
        sale.id, cashier.cashier_name, currency.base, sale.total_amount, len(quote.lines),
    )
    return Settlement(sale=sale, quote=quote, currency=currency)
