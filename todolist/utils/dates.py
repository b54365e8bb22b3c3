import re
from datetime import date
from typing import Optional

DATE_FORMAT = "DD.MM.YYYY"

_DATE_RE = re.compile(r"\d{2}\.\d{2}\.\d{4}")
_MONTH_LENGTHS = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)


def is_leap_year(year: int) -> bool:
    return year % 400 == 0 or (year % 4 == 0 and year % 100 != 0)


def is_valid_date(value) -> bool:
    """Return True if ``value`` is a real calendar date written as DD.MM.YYYY.

    Only ASCII digits are accepted, years must fall in [1000, 3000] and the day
    must exist in the given month (leap years included).
    """
    if not value or not isinstance(value, str):
        return False
    if not value.isascii() or not _DATE_RE.fullmatch(value):
        return False

    day, month, year = (int(part) for part in value.split("."))
    if year < 1000 or year > 3000 or month == 0 or month > 12:
        return False

    month_lengths = list(_MONTH_LENGTHS)
    if is_leap_year(year):
        month_lengths[1] = 29

    return 0 < day <= month_lengths[month - 1]


def parse_date(value) -> Optional[date]:
    """Parse a DD.MM.YYYY string into a date, or None if it is not a valid one."""
    if not is_valid_date(value):
        return None
    day, month, year = (int(part) for part in value.split("."))
    return date(year, month, day)
