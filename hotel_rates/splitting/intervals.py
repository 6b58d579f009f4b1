"""
Whole-day date range arithmetic.

All ranges are inclusive on both ends: [Jan 1, Jan 1] is a one-night
period, and [Jan 1, Jan 10] touches [Jan 10, Jan 20] on Jan 10.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta

ONE_DAY = timedelta(days=1)


def as_date(value):
    """Drop any time-of-day component."""
    if isinstance(value, datetime):
        return value.date()
    return value


@dataclass(frozen=True, order=True)
class DateRange:
    """Inclusive calendar-day range."""

    start: date
    end: date

    def __post_init__(self):
        object.__setattr__(self, 'start', as_date(self.start))
        object.__setattr__(self, 'end', as_date(self.end))
        if not isinstance(self.start, date) or not isinstance(self.end, date):
            raise TypeError(f'Range bounds must be dates, got {self.start!r} and {self.end!r}')
        if self.start > self.end:
            raise ValueError(f'Range start {self.start} is after end {self.end}')

    def __str__(self):
        return f'{self.start.isoformat()} - {self.end.isoformat()}'

    @property
    def days(self):
        """Number of nights covered, counting both ends."""
        return (self.end - self.start).days + 1

    def contains_date(self, check_date):
        return self.start <= as_date(check_date) <= self.end

    def iter_dates(self):
        """Generator yielding every date in the range."""
        current = self.start
        while current <= self.end:
            yield current
            current += ONE_DAY


def overlaps(a, b):
    """
    True when the two ranges share at least one calendar day.

    Sharing a boundary day counts as overlap; adjacent ranges need a
    one-day gap (Jan 1-10 and Jan 11-20 do not overlap).
    """
    return a.start <= b.end and b.start <= a.end


def contains(outer, inner):
    """True when every day of ``inner`` is inside ``outer``."""
    return outer.start <= inner.start and inner.end <= outer.end


def fragments_outside(existing, candidate):
    """
    Parts of ``existing`` that lie strictly outside ``candidate``.

    Returns zero, one or two ranges in ascending order:
        existing  [Jan 1 ........................ Jan 31]
        candidate          [Jan 10 ..... Jan 20]
        result    [Jan 1 - Jan 9]                [Jan 21 - Jan 31]

    A side whose computed start falls after its end is omitted, so a fully
    covered ``existing`` yields an empty list.
    """
    fragments = []

    left_end = candidate.start - ONE_DAY
    if existing.start <= left_end:
        fragments.append(DateRange(existing.start, min(left_end, existing.end)))

    right_start = candidate.end + ONE_DAY
    if right_start <= existing.end:
        fragments.append(DateRange(max(right_start, existing.start), existing.end))

    return fragments
