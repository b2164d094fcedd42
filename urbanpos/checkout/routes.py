# urbanpos/checkout/routes.py
from flask import request, jsonify

from . import bp
from ..pos.coupons import resolve_coupon
from ..pos.currency import symbol_for
from ..services import checkout_service
from ..services.coupon_service import find_by_code
from ..services.rate_service import get_rates
from ..services.settings_service import get_settings
from ..utils.api import api_ok
from ..utils.decorators import current_cashier, permission_required


def ok(message: str, data=None, status_code=200):
    resp = jsonify(api_ok(message, data))
    resp.status_code = status_code
    return resp


def _payload():
    data = request.get_json(silent=True) or {}
    coupon_code = (data.get("coupon_code") or "").strip() or None
    currency = (data.get("currency") or "").strip() or None
    return data, coupon_code, currency


def _quote_payload(cart, quote, currency):
    return {
        "currency": {
            "base": currency.base,
            "display": currency.display,
            "symbol": currency.symbol,
            "rate": str(currency.rate),
        },
        "item_count": cart.item_count,
        "lines": [line.as_api(currency) for line in quote.lines],
        "coupon_code": quote.coupon_code,
        "tax_rate": str(quote.tax_rate),
        "totals": quote.totals.as_api(),
        "display_totals": quote.totals.converted(currency.rate).as_api(),
    }


@bp.post("/quote")
@permission_required("pos")
def quote():
    """Price a cart without committing anything."""
    data, coupon_code, currency_code = _payload()
    cart, priced, currency = checkout_service.quote(
        data.get("items") or [], coupon_code=coupon_code, currency_code=currency_code,
    )
    return ok("Cart priced", _quote_payload(cart, priced, currency))


@bp.post("/coupons/validate")
@permission_required("pos")
def validate_coupon():
    data = request.get_json(silent=True) or {}
    # CouponRejected propagates to the error handler as a 422
    coupon = resolve_coupon(data.get("code") or data.get("coupon_code"), find_by_code)
    return ok(f"Coupon '{coupon.code}' applied!", {"coupon": coupon.as_api()})


@bp.post("/checkout")
@permission_required("pos")
def checkout():
    data, coupon_code, currency_code = _payload()
    payment_method = (data.get("payment_method") or "card").strip().lower()
    settlement, settings = checkout_service.checkout(
        data.get("items") or [],
        current_cashier(),
        coupon_code=coupon_code,
        currency_code=currency_code,
        payment_method=payment_method,
    )
    return ok("Payment successful", {
        "sale": settlement.sale.as_api(),
        "receipt": settlement.receipt(settings),
    }, 201)


@bp.get("/currencies")
@permission_required("pos")
def currencies():
    settings = get_settings()
    base = settings.base_currency
    rates = get_rates()
    items = [{"code": base, "symbol": symbol_for(base), "rate": "1"}]
    items += [
        {"code": code, "symbol": symbol_for(code), "rate": str(rate)}
        for code, rate in sorted(rates.items())
        if code != base
    ]
    return ok("Currencies fetched", {"base_currency": base, "currencies": items})
