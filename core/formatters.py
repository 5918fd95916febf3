"""Display formatting for numeric-string market fields.

Pure functions; every formatter accepts ``None`` or garbage and returns a
placeholder instead of raising.
"""

from __future__ import annotations

import math
from typing import Optional

# (threshold, divisor, suffix), largest first
_COMPACT_UNITS = (
    (1e12, 1e12, "T"),
    (1e9, 1e9, "B"),
    (1e6, 1e6, "M"),
    (1e3, 1e3, "K"),
)


def parse_number(value: Optional[str]) -> Optional[float]:
    """Parse a numeric string, returning ``None`` for empty, invalid or non-finite input."""
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def format_currency(value: Optional[str], compact: bool = False) -> str:
    """Format a USD amount.

    Args:
        value: Numeric string (e.g. "0.5234")
        compact: Abbreviate amounts of 1K and above with K/M/B/T suffixes

    Returns:
        "$999.00", "$0.5234", "$0.005000", "$2.50B", or "-" for invalid input
    """
    number = parse_number(value)
    if number is None:
        return "-"

    if compact:
        for threshold, divisor, suffix in _COMPACT_UNITS:
            if number >= threshold:
                return f"${number / divisor:.2f}{suffix}"

    # sub-cent prices need more precision to be meaningful
    if number < 0.01:
        return f"${number:.6f}"
    if number < 1:
        return f"${number:.4f}"
    return f"${number:.2f}"


def format_percentage(value: Optional[str]) -> str:
    """Format a percent change with an explicit sign, e.g. "+1.20%" or "-3.46%"."""
    number = parse_number(value)
    if number is None:
        return "0.00%"
    sign = "+" if number >= 0 else ""
    return f"{sign}{number:.2f}%"


def format_supply(value: Optional[str], unit: str = "XRP") -> str:
    """Format a token supply, e.g. "45.00B XRP"."""
    number = parse_number(value)
    if number is None:
        return "-"

    for threshold, divisor, suffix in _COMPACT_UNITS[1:]:
        if number >= threshold:
            return f"{number / divisor:.2f}{suffix} {unit}"

    plain = f"{number:,.3f}".rstrip("0").rstrip(".")
    return f"{plain} {unit}"
