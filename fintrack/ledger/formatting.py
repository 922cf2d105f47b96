"""Amount display, including the privacy mask."""

from decimal import ROUND_HALF_UP, Decimal

MASK = "****"


def format_amount(amount: Decimal, symbol: str = "$", masked: bool = False) -> str:
    """
    Render an amount for display, e.g. "$1,234.50" or "-$20.00".

    With privacy mode on the digits are replaced by a fixed mask, so the
    length of the number doesn't leak either.
    """
    if masked:
        return f"{symbol}{MASK}"
    quantized = Decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if quantized < 0 else ""
    return f"{sign}{symbol}{abs(quantized):,.2f}"


def option_index(options, value, default: int = 0) -> int:
    """Position of value in a picker's options; default when it isn't offered."""
    try:
        return list(options).index(value)
    except ValueError:
        return default
