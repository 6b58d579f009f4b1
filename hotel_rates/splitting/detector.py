"""Find the persisted periods a candidate collides with."""

from .intervals import overlaps


def find_overlapping(periods, group_key, candidate_range, exclude_id=None):
    """
    Periods of ``group_key`` that share at least one day with the candidate.

    Args:
        periods: iterable of PricingPeriod, usually one group's snapshot
        group_key: GroupKey the candidate belongs to
        candidate_range: DateRange of the candidate
        exclude_id: id of the period being edited, never reported

    Returns:
        list of PricingPeriod ordered by start date
    """
    found = [
        period for period in periods
        if period.group_key == group_key
        and (exclude_id is None or period.id != exclude_id)
        and overlaps(period.date_range, candidate_range)
    ]
    return sorted(found, key=lambda p: (p.start_date, p.end_date, p.id or 0))
