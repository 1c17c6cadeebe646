#!/usr/bin/env python3
"""
Yen Amount Parsing Utilities

Rakuten Pay notification emails decorate every amount differently depending
on the template: "¥1,500", "1,500円", "-1,000P", "1，000ポイント".
All amounts are whole yen, so everything here is plain integer arithmetic.

Key Principles:
- Strip decoration, never guess digits
- Amounts are always non-negative
- Unparseable input yields 0 rather than raising
"""

import re

# Characters used as thousands separators across both templates
THOUSANDS_SEPARATORS = (",", "，", "、", " ", " ")

# Currency and unit decoration that surrounds the digits
_DECORATION_PATTERN = re.compile(r"[¥￥円]|ポイント|[Pp]t?|[-−－+＋]")

_DIGITS_PATTERN = re.compile(r"\d+")

# Full-width digits occasionally appear in the older template
_FULLWIDTH_DIGITS = str.maketrans("０１２３４５６７８９", "0123456789")


def strip_thousands_separators(value: str) -> str:
    """Remove every thousands-separator character from a string."""
    for separator in THOUSANDS_SEPARATORS:
        value = value.replace(separator, "")
    return value


def parse_yen_amount(value: str | None) -> int:
    """
    Parse a decorated yen amount into a non-negative integer.

    Args:
        value: Raw cell text such as '¥1,500', '-1,000P' or '1,500円'

    Returns:
        Integer amount in yen, 0 for empty or unparseable input

    Examples:
        parse_yen_amount('¥1,500') -> 1500
        parse_yen_amount('-1,000P') -> 1000
        parse_yen_amount('') -> 0
    """
    if not value:
        return 0

    clean_str = strip_thousands_separators(value.translate(_FULLWIDTH_DIGITS).strip())
    clean_str = _DECORATION_PATTERN.sub("", clean_str)

    match = _DIGITS_PATTERN.search(clean_str)
    if not match:
        return 0
    return abs(int(match.group()))


def format_yen(amount: int) -> str:
    """Format an integer amount for log output."""
    return f"¥{amount:,}"


def validate_sum_equals_total(parts: list[int], total: int) -> bool:
    """Check that the funding parts add up exactly to the total."""
    return sum(parts) == total
