"""
Value types shared by the splitting engine and its storage adapters.

These are plain in-memory records: the engine never sees ORM objects, so
resolution can be tested without a database.
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import List, NamedTuple, Optional

from .intervals import DateRange


class GroupKey(NamedTuple):
    """
    Scope of the non-overlap rule.

    Two periods may only collide when hotel, room type, occupancy type and
    meal plan are all equal. ``meal_plan_id`` is None for room-only prices.
    """

    hotel_id: int
    room_type_id: int
    occupancy_type_id: int
    meal_plan_id: Optional[int] = None

    def as_lock_key(self):
        """Stable string form, e.g. ``'12:3:1:-'``."""
        meal = '-' if self.meal_plan_id is None else self.meal_plan_id
        return f'{self.hotel_id}:{self.room_type_id}:{self.occupancy_type_id}:{meal}'


@dataclass(frozen=True)
class PricingPeriod:
    """
    A price for every night of ``date_range`` within one group.

    ``id`` is None until the period is persisted. ``is_new`` marks the
    candidate inside a resolution plan; fragments carry False.
    """

    group_key: GroupKey
    date_range: DateRange
    price: Decimal
    id: Optional[int] = None
    is_active: bool = True
    is_new: bool = False

    @property
    def start_date(self):
        return self.date_range.start

    @property
    def end_date(self):
        return self.date_range.end

    def with_range(self, date_range, **changes):
        """Copy of this period over another range, without its id."""
        return replace(self, date_range=date_range, id=None, **changes)


@dataclass(frozen=True)
class Candidate:
    """
    A period the caller wants to insert.

    When ``exclude_id`` is set the candidate replaces that period (edit):
    the period is left out of overlap detection and deleted on commit.
    """

    group_key: GroupKey
    date_range: DateRange
    price: Decimal
    exclude_id: Optional[int] = None
    is_active: bool = True

    def as_period(self):
        return PricingPeriod(
            group_key=self.group_key,
            date_range=self.date_range,
            price=self.price,
            is_active=self.is_active,
            is_new=True,
        )


@dataclass(frozen=True)
class ResolutionPlan:
    """
    What a commit must do to insert a candidate.

    Delete every id in ``to_delete``, then create every period in
    ``to_create`` (fragments first, the candidate last).
    """

    to_delete: List[int] = field(default_factory=list)
    to_create: List[PricingPeriod] = field(default_factory=list)
    will_split: bool = False

    @property
    def new_period(self):
        return next((p for p in self.to_create if p.is_new), None)

    @property
    def fragments(self):
        return [p for p in self.to_create if not p.is_new]
