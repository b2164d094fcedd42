# urbanpos/pos/cart.py
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterator, Optional

from .errors import InvalidQuantity, OutOfStock, StockLimitReached


def _as_quantity(qty) -> int:
    if isinstance(qty, bool):
        raise InvalidQuantity()
    try:
        value = int(qty)
    except (TypeError, ValueError):
        raise InvalidQuantity()
    if value != qty and str(value) != str(qty).strip():
        raise InvalidQuantity()
    return value


@dataclass(frozen=True)
class CartLine:
    """A product reference and how many of it. Prices are never cached here."""

    product_id: int
    quantity: int


@dataclass(frozen=True)
class Cart:
    """Insertion-ordered cart, at most one line per product.

    Every operation returns a new ``Cart``; product stock is only read, never
    changed. Stock is decremented by settlement alone.
    """

    lines: tuple = ()

    def __iter__(self) -> Iterator[CartLine]:
        return iter(self.lines)

    def __len__(self) -> int:
        return len(self.lines)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def product_ids(self) -> list:
        return [line.product_id for line in self.lines]

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def line_for(self, product_id) -> Optional[CartLine]:
        return next((line for line in self.lines if line.product_id == product_id), None)

    def add(self, product, qty=1) -> "Cart":
        qty = _as_quantity(qty)
        if qty < 1:
            raise InvalidQuantity("Quantity to add must be at least 1.")

        stock = int(product.stock_quantity or 0)
        if stock <= 0:
            raise OutOfStock(f"{product.name} is currently out of stock.", product_id=product.id)

        existing = self.line_for(product.id)
        new_qty = (existing.quantity if existing else 0) + qty
        if new_qty > stock:
            raise StockLimitReached(
                f"You cannot add more {product.name} than is available in stock.",
                product_id=product.id,
                available=stock,
            )

        if existing:
            return self._with_line(replace(existing, quantity=new_qty))
        return Cart(self.lines + (CartLine(product.id, new_qty),))

    def set_quantity(self, product, qty) -> "Cart":
        qty = _as_quantity(qty)
        if qty <= 0:
            return self.remove(product.id)

        stock = int(product.stock_quantity or 0)
        if qty > stock:
            raise StockLimitReached(
                f"You cannot add more {product.name} than is available in stock.",
                product_id=product.id,
                available=stock,
            )

        existing = self.line_for(product.id)
        if existing is None:
            return Cart(self.lines + (CartLine(product.id, qty),))
        return self._with_line(replace(existing, quantity=qty))

    def remove(self, product_id) -> "Cart":
        return Cart(tuple(line for line in self.lines if line.product_id != product_id))

    def clear(self) -> "Cart":
        return Cart()

    def _with_line(self, new_line: CartLine) -> "Cart":
        return Cart(tuple(
            new_line if line.product_id == new_line.product_id else line
            for line in self.lines
        ))
