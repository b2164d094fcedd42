# urbanpos/pos/currency.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping

from ..utils.money import D, round_money

logger = logging.getLogger(__name__)

ONE = Decimal("1")

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "BDT": "৳",
}


def normalize_code(code) -> str:
    return (code or "").strip().upper()


def rate_for(target_code, base_code, rates: Mapping[str, object]) -> Decimal:
    """Multiplier converting a base-currency amount into ``target_code``.

    A currency with no known rate falls back to 1 so checkout keeps working;
    sales always record base-currency amounts, so nothing is lost.
    """
    target = normalize_code(target_code)
    base = normalize_code(base_code)
    if not target or target == base:
        return ONE
    rate = rates.get(target)
    if rate is None:
        logger.warning("no exchange rate for %s against %s, displaying base amounts", target, base)
        return ONE
    return D(rate)


def symbol_for(code) -> str:
    code = normalize_code(code)
    return CURRENCY_SYMBOLS.get(code, code)


@dataclass(frozen=True)
class CurrencyContext:
    base: str
    display: str
    rate: Decimal = ONE

    @property
    def symbol(self) -> str:
        return symbol_for(self.display)

    @property
    def is_converted(self) -> bool:
        return self.display != self.base

    def convert(self, amount) -> Decimal:
        return D(amount) * self.rate

    def format(self, amount) -> str:
        return f"{self.symbol}{round_money(self.convert(amount))}"


def currency_context(display_code, base_code, rates: Mapping[str, object]) -> CurrencyContext:
    base = normalize_code(base_code)
    display = normalize_code(display_code) or base
    return CurrencyContext(base=base, display=display, rate=rate_for(display, base, rates))
