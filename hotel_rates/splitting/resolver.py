"""
Split resolution: decide which periods a candidate replaces.

    existing   [Jan 1 ............... @100 ............... Jan 31]
    candidate              [Jan 10 .. @150 .. Jan 20]

    to_delete  [existing.id]
    to_create  [Jan 1 - Jan 9 @100]  [Jan 21 - Jan 31 @100]  [Jan 10 - Jan 20 @150, new]

The existing period is never resized: it is deleted and whatever part of
it lies outside the candidate comes back as fresh fragments at the old
price. Every night covered before the insert is covered exactly once after.
"""

from .intervals import fragments_outside, overlaps
from .periods import ResolutionPlan


def resolve(candidate, overlapping):
    """
    Build the ResolutionPlan for inserting ``candidate``.

    Pure and deterministic: same inputs, same plan.

    Args:
        candidate: Candidate to insert
        overlapping: PricingPeriods of the same group that overlap it

    Returns:
        ResolutionPlan
    """
    to_delete = []
    fragments = []

    for existing in overlapping:
        if existing.group_key != candidate.group_key:
            raise ValueError(
                f'Period {existing.id} belongs to group {existing.group_key}, '
                f'not {candidate.group_key}'
            )
        if not overlaps(existing.date_range, candidate.date_range):
            raise ValueError(f'Period {existing.id} does not overlap {candidate.date_range}')

        to_delete.append(existing.id)
        for fragment_range in fragments_outside(existing.date_range, candidate.date_range):
            fragments.append(existing.with_range(fragment_range, is_new=False))

    return ResolutionPlan(
        to_delete=to_delete,
        to_create=fragments + [candidate.as_period()],
        will_split=bool(overlapping),
    )
