#!/usr/bin/env python3
"""
Transaction Date Normalisation

Both email templates print dates with trailing noise (weekday, time of day)
and with varying separators. Records always carry the `YYYY/MM/DD` form that
Money Forward ME's manual entry form accepts.
"""

import re
from datetime import datetime

DATE_FORMAT = "%Y/%m/%d"

_DATE_PATTERN = re.compile(r"(\d{4})\s*[/\-.年]\s*(\d{1,2})\s*[/\-.月]\s*(\d{1,2})")


def normalize_date(value: str | None) -> str:
    """
    Normalise a template date to `YYYY/MM/DD`.

    Args:
        value: Raw cell text such as '2024/01/15 12:34', '2024-1-5' or '2024年1月15日(月)'

    Returns:
        Normalised date string, or "" when no valid calendar date is present
    """
    if not value:
        return ""

    match = _DATE_PATTERN.search(value.translate(str.maketrans("０１２３４５６７８９", "0123456789")))
    if not match:
        return ""

    year, month, day = (int(part) for part in match.groups())
    try:
        return datetime(year, month, day).strftime(DATE_FORMAT)
    except ValueError:
        return ""
