# urbanpos/pos/pricing.py
"""Cart pricing.

Order of operations is fixed: subtotal, coupon discount, discounted
subtotal, tax on the discounted subtotal, total. Everything is computed in
``Decimal`` at full precision; callers round once, when presenting or storing.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from ..model.coupon import FIXED
from ..utils.money import D, ZERO, round_money, to_string_money
from .cart import Cart
from .errors import ProductUnavailable

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class PricedLine:
    product_id: int
    name: str
    unit_price: Decimal
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def as_api(self, currency=None):
        convert = currency.convert if currency else (lambda x: x)
        return {
            "product_id": self.product_id,
            "name": self.name,
            "quantity": self.quantity,
            "unit_price": to_string_money(convert(self.unit_price)),
            "line_total": to_string_money(convert(self.line_total)),
        }


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    discount: Decimal
    discounted_subtotal: Decimal
    tax: Decimal
    total: Decimal

    def converted(self, rate) -> "Totals":
        rate = D(rate)
        return Totals(*(value * rate for value in self._values()))

    def rounded(self) -> "Totals":
        return Totals(*(round_money(value) for value in self._values()))

    def as_api(self):
        r = self.rounded()
        return {
            "subtotal": str(r.subtotal),
            "discount": str(r.discount),
            "discounted_subtotal": str(r.discounted_subtotal),
            "tax": str(r.tax),
            "total": str(r.total),
        }

    def _values(self):
        return (self.subtotal, self.discount, self.discounted_subtotal, self.tax, self.total)


@dataclass(frozen=True)
class Quote:
    lines: tuple
    totals: Totals
    coupon_code: Optional[str] = None
    tax_rate: Decimal = ZERO


def price_lines(cart: Cart, catalog: Mapping) -> list:
    """Attach the *current* unit price of each product to the cart lines."""
    priced = []
    for line in cart:
        product = catalog.get(line.product_id)
        if product is None:
            raise ProductUnavailable(f"Product {line.product_id} not found.", product_id=line.product_id)
        priced.append(PricedLine(
            product_id=product.id,
            name=product.name,
            unit_price=D(product.price),
            quantity=line.quantity,
        ))
    return priced


def compute_discount(subtotal: Decimal, coupon=None) -> Decimal:
    if coupon is None:
        return ZERO
    value = D(coupon.discount_value)
    if coupon.discount_type == FIXED:
        discount = min(value, subtotal)
    else:
        discount = subtotal * (value / HUNDRED)
    # clamp regardless of how the coupon was created
    return max(ZERO, min(discount, subtotal))


def compute_totals(lines: Iterable[PricedLine], coupon=None, tax_rate=ZERO) -> Totals:
    subtotal = sum((line.line_total for line in lines), ZERO)
    discount = compute_discount(subtotal, coupon)
    discounted_subtotal = subtotal - discount
    tax = discounted_subtotal * (D(tax_rate) / HUNDRED)
    total = discounted_subtotal + tax
    return Totals(subtotal, discount, discounted_subtotal, tax, total)


def price_cart(cart: Cart, catalog: Mapping, coupon=None, tax_rate=ZERO) -> Quote:
    lines = tuple(price_lines(cart, catalog))
    return Quote(
        lines=lines,
        totals=compute_totals(lines, coupon, tax_rate),
        coupon_code=coupon.code if coupon is not None else None,
        tax_rate=D(tax_rate),
    )
