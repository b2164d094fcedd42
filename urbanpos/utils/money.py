# urbanpos/utils/money.py

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

Money = Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0")


def D(x) -> Money:
    """Coerce ``x`` to Decimal without going through binary float."""
    if isinstance(x, Decimal):
        return x
    if isinstance(x, bool):
        raise ValueError("boolean is not a money value")
    try:
        return Decimal(str(x if x not in (None, "") else "0"))
    except InvalidOperation:
        raise ValueError(f"invalid decimal value: {x!r}")


def round_money(x) -> Money:
    return D(x).quantize(CENT, rounding=ROUND_HALF_UP)


def to_string_money(x) -> str:
    return str(round_money(x))
