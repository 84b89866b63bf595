"""
allowguard/core/amounts.py

Token amount formatting and parsing.

Display rule:
    display = amount / 10**decimals, exactly DISPLAY_PRECISION fractional
    digits, rounded half-up from the float value. Any amount strictly
    greater than the token's total supply displays as UNLIMITED.

Parse rule (text -> base units):
    "12"        -> "12" followed by `decimals` zeros
    "1.5"       -> fraction right-padded to `decimals` digits
    "1.123456"  -> fraction truncated to `decimals` digits (never rounded)
    "1.2.3"     -> 0
"""

from decimal import Context, Decimal, ROUND_HALF_UP

from allowguard.core.exceptions import ValidationError


DISPLAY_PRECISION = 3
UNLIMITED         = "Unlimited"
ZERO_DISPLAY      = "0." + "0" * DISPLAY_PRECISION
UINT256_MAX       = 2 ** 256 - 1

_QUANTUM = Decimal(1).scaleb(-DISPLAY_PRECISION)
# Wide enough for any finite float rendered in full.
_CONTEXT = Context(prec=400, rounding=ROUND_HALF_UP)


def format_units(amount: int, decimals: int) -> str:
    """Render base units as a fixed-point string with DISPLAY_PRECISION digits."""
    value = float(amount) / 10 ** decimals
    return str(Decimal(value).quantize(_QUANTUM, context=_CONTEXT))


def to_display(amount: int, decimals: int, total_supply: int) -> str:
    """Human-readable amount; UNLIMITED when it exceeds the total supply."""
    if amount > total_supply:
        return UNLIMITED
    return format_units(amount, decimals)


def is_negligible(amount: int, decimals: int, total_supply: int) -> bool:
    """True when the amount has no visible value at display precision."""
    return to_display(amount, decimals, total_supply) == ZERO_DISPLAY


def from_text(text: str, decimals: int) -> int:
    """Parse user-entered decimal text into base units at full token precision."""
    text = text.strip()
    sides = text.split(".")

    if len(sides) > 2:
        return 0
    if len(sides) == 1:
        digits = text + "0" * decimals
    else:
        whole, fraction = sides
        digits = whole + fraction[:decimals].ljust(decimals, "0")

    if not digits.isdigit() or not digits.isascii():
        raise ValidationError("Amount must be a non-negative decimal number", {"text": text})

    amount = int(digits)
    if amount > UINT256_MAX:
        raise ValidationError("Amount exceeds uint256", {"text": text})
    return amount
