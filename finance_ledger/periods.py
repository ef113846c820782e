"""Calendar period keys and date helpers.

A :class:`Period` is a ``(year, month)`` bucket.  Periods order
chronologically because they are plain tuples, which lets the ledger
keep its period keys in a sorted list and bisect into it.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime
from typing import Iterator, NamedTuple, Union

MONTH_FORMAT = "%Y-%m"
DATE_FORMAT = "%Y-%m-%d"


class Period(NamedTuple):
    year: int
    month: int

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    @classmethod
    def from_date(cls, value: date) -> "Period":
        return cls(value.year, value.month)

    @classmethod
    def parse(cls, text: str) -> "Period":
        """Parse a ``YYYY-MM`` string."""
        parsed = datetime.strptime(text.strip(), MONTH_FORMAT)
        return cls(parsed.year, parsed.month)

    def shift(self, months: int) -> "Period":
        """Return the period ``months`` later (or earlier when negative)."""
        index = self.year * 12 + (self.month - 1) + months
        return Period(index // 12, index % 12 + 1)

    def months_until(self, other: "Period") -> int:
        """Number of month transitions from this period to ``other``."""
        return (other.year - self.year) * 12 + (other.month - self.month)

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])


PeriodLike = Union[Period, date, str]


def to_period(value: PeriodLike) -> Period:
    """Coerce a period, date, ``YYYY-MM`` or ``YYYY-MM-DD`` string to a Period."""
    if isinstance(value, Period):
        return value
    if isinstance(value, date):
        return Period.from_date(value)
    if isinstance(value, tuple) and len(value) == 2:
        return Period(int(value[0]), int(value[1]))
    if isinstance(value, str):
        parsed = parse_date(value)
        if parsed is not None:
            return Period.from_date(parsed)
        return Period.parse(value)
    raise TypeError(f"Cannot interpret {value!r} as a period")


def parse_date(value) -> date | None:
    """Parse a date in YYYY-MM-DD format, returning None on failure."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        return None
    for fmt in (DATE_FORMAT, "%Y/%m/%d", "%Y.%m.%d"):
        try:
            return datetime.strptime(value.strip(), fmt).date()
        except ValueError:
            continue
    return None


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def iter_periods(start: Period, end: Period, step: int = 1) -> Iterator[Period]:
    """Yield ``start``, ``start + step``, ... up to and including ``end``."""
    current = start
    while current <= end:
        yield current
        current = current.shift(step)
