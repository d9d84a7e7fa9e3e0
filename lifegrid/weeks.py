"""
ISO week arithmetic.

A week key is the label "YYYY-WNN" of one ISO-8601 week (Monday based,
week 1 contains the year's first Thursday). All functions work on local
wall-clock dates: datetimes are normalized to their date first, so a time of
day can never shift a result by one week.

Parse helpers never raise: malformed input yields None.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple, Union

DateLike = Union[date, datetime]

WEEK_KEY_RE = re.compile(r"^(\d{4})-W(\d{2})$")


def to_date(value: DateLike) -> date:
    """
    Normalize a date or datetime to a plain date (local midnight).
    """
    if isinstance(value, datetime):
        return value.date()
    return value


def _thursday_of_week(d: date) -> date:
    # Sunday counts as ISO weekday 7
    return d + timedelta(days=4 - d.isoweekday())


def iso_week_number(value: DateLike) -> int:
    """
    Return the ISO-8601 week number (1..53) of a date.
    """
    shifted = _thursday_of_week(to_date(value))
    year_start = date(shifted.year, 1, 1)
    return 1 + (shifted - year_start).days // 7


def week_key(value: DateLike) -> str:
    """
    Return the "YYYY-WNN" key of the ISO week containing the date.

    The year is the ISO year, so 2021-01-01 maps to "2020-W53".
    """
    d = to_date(value)
    shifted = _thursday_of_week(d)
    return f"{shifted.year}-W{iso_week_number(d):02d}"


def parse_week_key(key: str) -> Optional[Tuple[int, int]]:
    """
    Split a week key into (year, week). Returns None for malformed keys.
    """
    m = WEEK_KEY_RE.match(str(key).strip())
    if not m:
        return None
    year, week = int(m.group(1)), int(m.group(2))
    if not 1 <= week <= 53 or year < 1:
        return None
    return year, week


def is_week_key(key: str) -> bool:
    return parse_week_key(key) is not None


def week_key_to_approx_date(key: str) -> Optional[date]:
    """
    Return the Monday of week N in year Y.

    Week keys are year-local labels: the result is derived from the weekday of
    January 1st of Y, not from a full inverse of week_key(). For keys produced
    by week_key() the result always lies in the same ISO week as the source date.
    """
    parsed = parse_week_key(key)
    if parsed is None:
        return None
    year, week = parsed

    jan1 = date(year, 1, 1)
    dow = jan1.isoweekday() % 7  # 0 = Sunday
    days = (week - 1) * 7
    if dow <= 4:
        days += 1 - dow
    else:
        days += 8 - dow
    try:
        return jan1 + timedelta(days=days)
    except OverflowError:
        return None


def weeks_between(birth: DateLike, as_of: DateLike) -> int:
    """
    Whole weeks elapsed between two dates (floored).
    """
    delta = to_date(as_of) - to_date(birth)
    return delta.days // 7


def week_keys_in_range(start: DateLike, end: DateLike) -> List[str]:
    """
    Enumerate the week keys from start to end inclusive, in order.

    Reversed bounds are swapped. Both endpoint weeks are always present even
    when the 7-day stride steps past the end date.
    """
    a, b = to_date(start), to_date(end)
    if a > b:
        a, b = b, a

    keys: List[str] = []
    seen: set[str] = set()
    current = a
    while current <= b:
        key = week_key(current)
        if key not in seen:
            seen.add(key)
            keys.append(key)
        current += timedelta(days=7)

    last = week_key(b)
    if last not in seen:
        keys.append(last)
    return keys


def parse_date(text: str) -> Optional[date]:
    """
    Parse a "YYYY-MM-DD" string. Returns None if the text is not a valid date.
    """
    try:
        return datetime.strptime(str(text).strip(), "%Y-%m-%d").date()
    except ValueError:
        return None


def format_date(value: DateLike) -> str:
    return to_date(value).isoformat()
