"""Utility functions for the EMI calculator.

This module provides helpers for turning user input into ``Decimal`` values,
for formatting amounts with Indian digit grouping (``₹1,50,000``) and for
deriving ledger identifiers from timestamps.
"""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, getcontext

getcontext().prec = 28  # increase decimal precision to avoid rounding errors

_SUFFIXES = (
    ("lakh", Decimal("100000")),
    ("cr", Decimal("10000000")),
    ("k", Decimal("1000")),
    ("m", Decimal("1000000")),
    ("l", Decimal("100000")),
)


def to_decimal(value) -> Decimal:
    """Convert an int, float, string or ``Decimal`` to ``Decimal``.

    Floats go through ``str`` so ``7.5`` becomes ``Decimal("7.5")`` rather
    than its binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def decimal_from_str(value: str) -> Decimal:
    """Convert a numeric string into a ``Decimal``.

    The function strips commas, whitespace and a leading rupee sign, and
    understands the ``k``, ``m``, ``l``/``lakh`` and ``cr`` suffixes (so
    ``"5l"`` is 500000). It raises ``ValueError`` if conversion fails.
    """
    cleaned = value.strip().lower().replace(",", "").lstrip("₹").strip()
    factor = Decimal("1")
    for suffix, multiplier in _SUFFIXES:
        if cleaned.endswith(suffix):
            cleaned = cleaned[: -len(suffix)].strip()
            factor = multiplier
            break
    try:
        result = Decimal(cleaned) * factor
    except InvalidOperation as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc
    if not result.is_finite():
        raise ValueError(f"Invalid numeric value: {value}")
    return result


def group_indian(whole: int) -> str:
    """Group digits the Indian way: last three, then pairs (1,50,000)."""
    digits = str(abs(whole))
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        pairs = []
        while len(head) > 2:
            pairs.insert(0, head[-2:])
            head = head[:-2]
        if head:
            pairs.insert(0, head)
        digits = ",".join(pairs + [tail])
    return f"-{digits}" if whole < 0 else digits


def format_inr(amount, decimals: int = 0) -> str:
    """Format an amount as rupees, e.g. ``format_inr(150000) == "₹1,50,000"``."""
    value = to_decimal(amount)
    quantum = Decimal(1).scaleb(-decimals)
    value = value.quantize(quantum, rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    value = abs(value)
    whole = int(value)
    text = f"₹{sign}{group_indian(whole)}"
    if decimals > 0:
        fraction = str(value - whole)[2:].ljust(decimals, "0")[:decimals]
        text = f"{text}.{fraction}"
    return text


def format_number(value) -> str:
    """Render a decimal without trailing zeros (``Decimal("10.0")`` -> ``"10"``)."""
    value = to_decimal(value)
    if value == value.to_integral_value():
        return str(int(value))
    return format(value.normalize(), "f")


def timestamp_id(moment: datetime) -> str:
    """Return a ledger identifier derived from a timestamp in milliseconds."""
    return str(int(moment.timestamp()) * 1000 + moment.microsecond // 1000)
