"""Small builders shared by the test modules."""

from datetime import date
from decimal import Decimal

from hotel_rates.splitting import DateRange, GroupKey, PricingPeriod

KEY = GroupKey(1, 1, 1, None)


def d(day, month=1, year=2026):
    """Shorthand: d(10) is 10 Jan 2026."""
    return date(year, month, day)


def make_period(pk, start, end, price, key=KEY, is_active=True):
    """In-memory PricingPeriod for pure engine tests."""
    return PricingPeriod(
        id=pk,
        group_key=key,
        date_range=DateRange(start, end),
        price=Decimal(str(price)),
        is_active=is_active,
    )


def summarize(periods):
    """Sorted (start, end, price) triples, easy to compare with expectations."""
    return sorted((p.start_date, p.end_date, Decimal(str(p.price))) for p in periods)
