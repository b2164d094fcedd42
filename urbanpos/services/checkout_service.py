# urbanpos/services/checkout_service.py
from ..pos.cart import Cart
from ..pos.coupons import resolve_coupon
from ..pos.currency import currency_context
from ..pos.errors import EmptyCart, ProductUnavailable
from ..pos.pricing import price_cart
from ..pos.settlement import settle
from .catalog_service import get_products
from .coupon_service import find_by_code
from .rate_service import get_rates
from .settings_service import get_settings


def _parse_lines(items):
    if not isinstance(items, list):
        raise ValueError("items must be a list of {product_id, quantity}")
    parsed = []
    for raw in items:
        if not isinstance(raw, dict) or raw.get("product_id") is None:
            raise ValueError("each item needs a product_id")
        try:
            pid = int(raw.get("product_id"))
        except (TypeError, ValueError):
            raise ValueError("product_id must be an integer")
        parsed.append((pid, raw.get("quantity", raw.get("qty", 1))))
    return parsed


def build_cart(items):
    """Replay submitted lines through the cart rules against current stock.

    Returns ``(cart, catalog)`` where ``catalog`` maps product id to the
    product rows that were read.
    """
    parsed = _parse_lines(items)
    catalog = get_products(pid for pid, _ in parsed)
    cart = Cart()
    for pid, qty in parsed:
        product = catalog.get(pid)
        if product is None:
            raise ProductUnavailable(f"Product {pid} not found.", product_id=pid)
        cart = cart.add(product, qty)
    return cart, catalog


def checkout_context(currency_code=None):
    settings = get_settings()
    currency = currency_context(currency_code, settings.base_currency, get_rates())
    return settings, currency


def quote(items, coupon_code=None, currency_code=None):
    cart, catalog = build_cart(items)
    settings, currency = checkout_context(currency_code)
    coupon = resolve_coupon(coupon_code, find_by_code) if coupon_code else None
    return cart, price_cart(cart, catalog, coupon, settings.default_tax_rate), currency


def checkout(items, cashier, coupon_code=None, currency_code=None, payment_method="card"):
    cart, _ = build_cart(items)
    if cart.is_empty:
        raise EmptyCart()
    settings, currency = checkout_context(currency_code)
    coupon = resolve_coupon(coupon_code, find_by_code) if coupon_code else None
    settlement = settle(
        cart,
        coupon=coupon,
        tax_rate=settings.default_tax_rate,
        cashier=cashier,
        currency=currency,
        payment_method=payment_method,
    )
    return settlement, settings
