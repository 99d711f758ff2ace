"""Numeric coercion helpers for store rows and money arithmetic"""

import math
import re
from decimal import Decimal, InvalidOperation, ROUND_FLOOR

CENT = Decimal("0.01")
_NON_NUMERIC = re.compile(r"[^0-9.+-]")


def parse_numeric(value: object) -> float:
    """
    Coerce a loosely-typed field to a float.

    Strips everything except digits, sign and decimal point ("$1,234.50" -> 1234.5).
    None, empty strings, NaN/inf and unparseable leftovers all become 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
        return number if math.isfinite(number) else 0.0

    cleaned = _NON_NUMERIC.sub("", str(value).strip())
    if not cleaned:
        return 0.0
    try:
        number = float(cleaned)
    except ValueError:
        return 0.0
    return number if math.isfinite(number) else 0.0


def to_money(value: object) -> Decimal:
    """Coerce any numeric-ish value to a Decimal amount (0 when unparseable)"""
    if isinstance(value, Decimal):
        return value if value.is_finite() else Decimal("0")
    if isinstance(value, int) and not isinstance(value, bool):
        return Decimal(value)
    try:
        # str() keeps the shortest float repr, so 0.07346 stays 0.07346
        return Decimal(str(parse_numeric(value)))
    except InvalidOperation:
        return Decimal("0")


def truncate_cents(value: Decimal) -> Decimal:
    """Floor (not round) to two decimal places"""
    return value.quantize(CENT, rounding=ROUND_FLOOR)
