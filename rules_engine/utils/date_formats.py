"""
Date helpers for DATE conditions.

The authoring tool writes formats as "yyyy-MM-dd" style patterns. Python
parses with strptime directives, so patterns are translated token by token.

Design principles:
- Pure functions, no clock access (callers pass "today")
- Never raise on bad input: unknown patterns/answers return None
"""

import logging
from datetime import date, datetime
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

DATE_PARTS = ("day", "month", "year")

# Longest tokens first so "yyyy" wins over "yy" and "MMMM" over "MM"
_TOKENS: Tuple[Tuple[str, str], ...] = (
    ("yyyy", "%Y"),
    ("MMMM", "%B"),
    ("dddd", "%A"),
    ("MMM", "%b"),
    ("ddd", "%a"),
    ("yy", "%y"),
    ("MM", "%m"),
    ("dd", "%d"),
    ("HH", "%H"),
    ("hh", "%I"),
    ("mm", "%M"),
    ("ss", "%S"),
    ("tt", "%p"),
    ("M", "%m"),
    ("d", "%d"),
    ("H", "%H"),
)


def to_strptime_format(pattern: str) -> str:
    """
    Translate an authoring date pattern into a strptime format.

    Args:
        pattern: e.g. "yyyy-MM-dd" or "dd/MM/yyyy"

    Returns:
        str: e.g. "%Y-%m-%d"

    Examples:
        >>> to_strptime_format("dd/MM/yyyy")
        '%d/%m/%Y'
    """
    out = []
    i = 0
    while i < len(pattern):
        for token, directive in _TOKENS:
            if pattern.startswith(token, i):
                out.append(directive)
                i += len(token)
                break
        else:
            char = pattern[i]
            out.append("%%" if char == "%" else char)
            i += 1
    return "".join(out)


def parse_date(answer: Optional[str], pattern: str) -> Optional[date]:
    """
    Parse an answer with an authoring pattern.

    Returns:
        date or None when the answer is blank or does not match
    """
    if answer is None or not answer.strip():
        return None
    try:
        return datetime.strptime(answer.strip(), to_strptime_format(pattern)).date()
    except ValueError:
        return None


def compose_iso_date(day: Optional[str], month: Optional[str], year: Optional[str]) -> Optional[str]:
    """
    Compose "yyyy-MM-dd" from separately captured parts.

    Returns None unless all three parts are present and numeric. No
    calendar check is made here; an impossible date fails later when the
    DATE condition parses it.
    """
    parts = [p.strip() if p else "" for p in (day, month, year)]
    if not all(parts) or not all(p.isdigit() for p in parts):
        return None
    d, m, y = parts
    return f"{int(y):04d}-{int(m):02d}-{int(d):02d}"


def missing_date_parts(day: Optional[str], month: Optional[str], year: Optional[str]) -> List[str]:
    """Names of blank parts, in day, month, year order."""
    values = dict(zip(DATE_PARTS, (day, month, year)))
    return [name for name in DATE_PARTS if values[name] is None or not values[name].strip()]


def date_from_parts(day: Optional[str], month: Optional[str], year: Optional[str]) -> Optional[date]:
    """
    Calendar date from separately captured parts.

    Returns:
        date, or None when a part is blank or non-numeric or the parts are
        not a real date (e.g. 30/02)

    Examples:
        >>> date_from_parts("1", "2", "2020")
        datetime.date(2020, 2, 1)
    """
    parts = [p.strip() if p else "" for p in (day, month, year)]
    if not all(p.isdigit() for p in parts):
        return None
    d, m, y = (int(p) for p in parts)
    try:
        return date(y, m, d)
    except ValueError:
        return None
