"""
Pricing Period Services
=======================

Insert-with-splitting for hotel pricing periods.

Flow:
1. preview()  - read-only: validate, detect overlaps, resolve, render diff
2. user confirms the split shown by the preview
3. commit()   - under the group lock: re-read, re-resolve, compare with the
                preview fingerprint, delete overlapped rows, create fragments
                and the new period
4. Return the group's updated period list

Editing a period is the same insert with ``exclude_id`` set: the edited row
is left out of overlap detection and deleted together with the victims.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import List, Optional

from hotel_rates.conf import get_setting
from hotel_rates.models import PRICE_DECIMAL_PLACES, PRICE_MAX_DIGITS
from hotel_rates.splitting import (
    Candidate,
    DateRange,
    GroupKey,
    PricingPeriod,
    ResolutionPlan,
    build_preview,
    find_overlapping,
    resolve,
)
from hotel_rates.splitting.exceptions import (
    ConflictError,
    PeriodNotFound,
    StorageError,
    ValidationError,
)

from .storage import DjangoPeriodStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommitResult:
    plan: ResolutionPlan
    created: List[PricingPeriod] = field(default_factory=list)
    deleted_ids: List[int] = field(default_factory=list)
    periods: List[PricingPeriod] = field(default_factory=list)
    new_period: Optional[PricingPeriod] = None


PRICE_QUANTUM = Decimal(1).scaleb(-PRICE_DECIMAL_PLACES)
PRICE_LIMIT = Decimal(10) ** (PRICE_MAX_DIGITS - PRICE_DECIMAL_PLACES)


def _check_price(price):
    """Error message for a price the price column can't hold exactly, else None."""
    if not price.is_finite():
        return 'Price must be a valid number'
    if price < 0:
        return 'Price must be at least 0'
    if price >= PRICE_LIMIT:
        return f'Price must be less than {PRICE_LIMIT:,}'
    if price != price.quantize(PRICE_QUANTUM, rounding=ROUND_DOWN):
        return f'Price can have at most {PRICE_DECIMAL_PLACES} decimal places'
    return None


def make_candidate(group_key, date_range, price, exclude_id=None, is_active=True):
    """
    Build a Candidate from loosely typed input, collecting every problem.

    Args:
        group_key: GroupKey (or tuple) of hotel, room type, occupancy, meal plan ids
        date_range: DateRange or (start_date, end_date) tuple
        price: Decimal, int, float or numeric string
        exclude_id: id of the period being edited
        is_active: whether the new period is offered

    Returns:
        Candidate

    Raises:
        ValidationError: with a field -> message map
    """
    errors = {}

    if group_key is None:
        group_key = GroupKey(None, None, None)
    elif not isinstance(group_key, GroupKey):
        group_key = GroupKey(*group_key)
    if not group_key.hotel_id:
        errors['hotelId'] = 'Hotel is required'
    if not group_key.room_type_id:
        errors['roomTypeId'] = 'Room type is required'
    if not group_key.occupancy_type_id:
        errors['occupancyTypeId'] = 'Occupancy type is required'

    if not isinstance(date_range, DateRange):
        start, end = date_range if date_range else (None, None)
        for key, value, label in [('startDate', start, 'Start date'), ('endDate', end, 'End date')]:
            if value is None:
                errors[key] = f'{label} is required'
            elif not isinstance(value, date):
                errors[key] = f'{label} must be a calendar date'
        if 'startDate' not in errors and 'endDate' not in errors:
            try:
                date_range = DateRange(start, end)
            except ValueError:
                errors['endDate'] = 'End date must be on or after start date'

    if price is None or price == '':
        errors['price'] = 'Price is required'
    else:
        try:
            price = Decimal(str(price))
        except (InvalidOperation, ValueError):
            errors['price'] = 'Price must be a valid number'
        else:
            price_error = _check_price(price)
            if price_error:
                errors['price'] = price_error
            else:
                price = price.quantize(PRICE_QUANTUM)

    if errors:
        raise ValidationError(errors)

    return Candidate(
        group_key=group_key,
        date_range=date_range,
        price=price,
        exclude_id=exclude_id,
        is_active=bool(is_active),
    )


class PeriodSplitService:
    """
    Preview and commit pricing-period inserts.

    Usage:
        from hotel_rates.services import PeriodSplitService

        service = PeriodSplitService()
        candidate = make_candidate(key, (date(2026, 1, 10), date(2026, 1, 20)), '150')

        preview = service.preview(candidate)
        if preview.will_split:
            ...  # show preview.affected_periods / resulting_periods
        result = service.commit(candidate, expected_fingerprint=preview.fingerprint)
    """

    def __init__(self, store=None, reference_lookup=None):
        """
        Args:
            store: storage adapter (DjangoPeriodStore by default)
            reference_lookup: ReferenceLookup used for validation and labels;
                None uses the database-backed one, False disables both
        """
        self.store = store or DjangoPeriodStore()
        if reference_lookup is None:
            from .references import ReferenceLookup
            reference_lookup = ReferenceLookup()
        self.references = reference_lookup or None
        self.max_attempts = max(1, int(get_setting('COMMIT_MAX_ATTEMPTS')))
        self.retry_backoff = float(get_setting('COMMIT_RETRY_BACKOFF'))
        self.require_fingerprint = bool(get_setting('REQUIRE_PREVIEW_FINGERPRINT'))

    # =========================================================================
    # VALIDATION
    # =========================================================================

    def validate(self, candidate, stale_edit_conflicts=False):
        """
        Check references before any overlap computation.

        Args:
            candidate: Candidate to check
            stale_edit_conflicts: report a vanished edited period as a
                ConflictError (commit after preview) instead of a ValidationError

        Returns:
            the edited PricingPeriod when ``candidate.exclude_id`` is set, else None
        """
        if self.references is not None:
            errors = self.references.check_group_key(candidate.group_key)
            if errors:
                raise ValidationError(errors)

        if candidate.exclude_id is None:
            return None

        edited = self.store.get_period(candidate.exclude_id)
        if edited is None and stale_edit_conflicts:
            raise ConflictError(f'Pricing period {candidate.exclude_id} was removed since the preview')
        if edited is None or edited.group_key.hotel_id != candidate.group_key.hotel_id:
            raise ValidationError({'excludeId': f'Pricing period {candidate.exclude_id} not found'})
        return edited

    # =========================================================================
    # PREVIEW
    # =========================================================================

    def _resolve(self, candidate):
        snapshot = self.store.list_periods(candidate.group_key)
        overlapping = find_overlapping(
            snapshot, candidate.group_key, candidate.date_range, candidate.exclude_id
        )
        return overlapping, resolve(candidate, overlapping)

    def _render(self, candidate, overlapping, plan):
        labels = self.references.labels(candidate.group_key) if self.references else None
        return build_preview(
            candidate,
            overlapping,
            plan,
            labels=labels,
            date_format=get_setting('DATE_DISPLAY_FORMAT'),
            currency_symbol=get_setting('CURRENCY_SYMBOL'),
        )

    def preview(self, candidate):
        """
        Show what inserting ``candidate`` would do. Takes no locks and
        writes nothing; repeated calls on unchanged data return equal results.

        Returns:
            PreviewResult
        """
        self.validate(candidate)
        overlapping, plan = self._resolve(candidate)
        return self._render(candidate, overlapping, plan)

    def preview_insert(self, group_key, date_range, price, exclude_id=None, is_active=True):
        return self.preview(make_candidate(group_key, date_range, price, exclude_id, is_active))

    # =========================================================================
    # COMMIT
    # =========================================================================

    def commit(self, candidate, expected_fingerprint=None):
        """
        Insert ``candidate`` and split whatever it overlaps, atomically.

        The plan is always re-derived inside the transaction. When
        ``expected_fingerprint`` is given it must match the overlap set seen
        now, otherwise ConflictError is raised and nothing is written.

        Returns:
            CommitResult

        Raises:
            ValidationError: bad candidate, storage untouched
            ConflictError: group changed since the preview
            StorageError: transaction failed after all retries
        """
        edited = self.validate(candidate, stale_edit_conflicts=True)
        if self.require_fingerprint and expected_fingerprint is None:
            raise ValidationError({'previewFingerprint': 'Preview the change before saving it'})

        # A lock error inside a caller's open transaction persists until that
        # transaction ends; the caller owns the retry.
        max_attempts = 1 if self.store.in_transaction() else self.max_attempts

        attempt = 1
        while True:
            try:
                return self._commit_once(candidate, edited, expected_fingerprint)
            except StorageError as e:
                if not e.transient or attempt >= max_attempts:
                    logger.error(
                        "Giving up on pricing commit for %s after %s attempts",
                        candidate.group_key.as_lock_key(), attempt
                    )
                    raise
                delay = self.retry_backoff * (2 ** (attempt - 1))
                logger.warning(
                    "Pricing commit for %s failed (attempt %s/%s), retrying in %.2fs",
                    candidate.group_key.as_lock_key(), attempt, max_attempts, delay
                )
                time.sleep(delay)
                attempt += 1

    def _commit_once(self, candidate, edited, expected_fingerprint):
        group_keys = [candidate.group_key]
        if edited is not None:
            group_keys.append(edited.group_key)

        with self.store.atomic(group_keys):
            if edited is not None and self.store.get_period(edited.id) is None:
                raise ConflictError(f'Pricing period {edited.id} was removed since the preview')

            overlapping, plan = self._resolve(candidate)
            if expected_fingerprint is not None:
                fresh = self._render(candidate, overlapping, plan)
                if fresh.fingerprint != expected_fingerprint:
                    logger.info(
                        "Pricing commit for %s rejected: overlap set changed since preview",
                        candidate.group_key.as_lock_key()
                    )
                    raise ConflictError(preview=fresh)

            to_delete = list(plan.to_delete)
            if edited is not None:
                to_delete.append(edited.id)

            self.store.delete_many(to_delete)
            created = self.store.create_many(plan.to_create)
            periods = self.store.list_periods(candidate.group_key)

        logger.info(
            "Committed pricing for %s: deleted %s, created %s (split=%s)",
            candidate.group_key.as_lock_key(), len(to_delete), len(created), plan.will_split
        )
        new_period = next((p for p, planned in zip(created, plan.to_create) if planned.is_new), None)
        return CommitResult(
            plan=plan,
            created=created,
            deleted_ids=to_delete,
            periods=periods,
            new_period=new_period,
        )

    def commit_insert(self, group_key, date_range, price, exclude_id=None,
                      expected_fingerprint=None, is_active=True):
        candidate = make_candidate(group_key, date_range, price, exclude_id, is_active)
        return self.commit(candidate, expected_fingerprint=expected_fingerprint)

    # =========================================================================
    # READ / DELETE
    # =========================================================================

    def list_periods(self, group_key):
        return self.store.list_periods(group_key)

    def periods_for_hotel(self, hotel, room_type_id=None, occupancy_type_id=None,
                          meal_plan_id=None, room_only=False):
        """
        All of a hotel's pricing rows, optionally narrowed to one room type,
        occupancy type or meal plan (``room_only`` keeps rows without one).

        Returns:
            HotelPricing QuerySet ordered for display
        """
        from hotel_rates.models import HotelPricing

        rows = HotelPricing.objects.filter(hotel=hotel).select_related(
            'room_type', 'occupancy_type', 'meal_plan'
        )
        if room_type_id is not None:
            rows = rows.filter(room_type_id=room_type_id)
        if occupancy_type_id is not None:
            rows = rows.filter(occupancy_type_id=occupancy_type_id)
        if room_only:
            rows = rows.filter(meal_plan__isnull=True)
        elif meal_plan_id is not None:
            rows = rows.filter(meal_plan_id=meal_plan_id)

        return rows.order_by(
            'room_type__sort_order', 'occupancy_type__sort_order',
            'meal_plan__sort_order', 'start_date'
        )

    def delete_period(self, period_id):
        """Delete one period. No splitting; the nights simply lose their price."""
        period = self.store.get_period(period_id)
        if period is None:
            raise PeriodNotFound(period_id)
        with self.store.atomic([period.group_key]):
            self.store.delete_many([period_id])
        logger.info("Deleted pricing period %s", period_id)
