from datetime import date
from decimal import Decimal
from unittest import mock

import pytest
from django.db import IntegrityError, OperationalError, transaction

from hotel_rates.models import HotelPricing
from hotel_rates.services import DjangoPeriodStore, PeriodSplitService, make_candidate
from hotel_rates.splitting import DateRange, GroupKey
from hotel_rates.splitting.exceptions import (
    ConflictError,
    PeriodNotFound,
    StorageError,
    ValidationError,
)

from .helpers import d, summarize

pytestmark = pytest.mark.django_db


def stored(group_key):
    return summarize(HotelPricing.for_group(group_key))


@pytest.fixture
def service():
    return PeriodSplitService()


# =============================================================================
# MAKE CANDIDATE
# =============================================================================

class TestMakeCandidate:
    def test_builds_candidate(self):
        cand = make_candidate((1, 2, 3), (d(1), d(5)), '120.50')
        assert cand.group_key == GroupKey(1, 2, 3, None)
        assert cand.date_range == DateRange(d(1), d(5))
        assert cand.price == Decimal('120.50')

    def test_collects_every_error(self):
        with pytest.raises(ValidationError) as exc:
            make_candidate(GroupKey(1, None, None), (None, None), '')
        assert set(exc.value.errors) == {
            'roomTypeId', 'occupancyTypeId', 'startDate', 'endDate', 'price'
        }

    def test_end_before_start(self):
        with pytest.raises(ValidationError) as exc:
            make_candidate((1, 1, 1), (d(10), d(9)), 100)
        assert 'endDate' in exc.value.errors

    @pytest.mark.parametrize('price', ['-1', 'abc', 'NaN', 'Infinity'])
    def test_bad_price(self, price):
        with pytest.raises(ValidationError) as exc:
            make_candidate((1, 1, 1), (d(1), d(2)), price)
        assert list(exc.value.errors) == ['price']

    def test_zero_price_is_allowed(self):
        assert make_candidate((1, 1, 1), (d(1), d(2)), 0).price == Decimal('0')

    @pytest.mark.parametrize('price, message', [
        ('100.005', 'Price can have at most 2 decimal places'),
        ('123456789012', 'Price must be less than 100,000,000'),
        ('100000000', 'Price must be less than 100,000,000'),
    ])
    def test_price_must_fit_the_price_column(self, price, message):
        with pytest.raises(ValidationError) as exc:
            make_candidate((1, 1, 1), (d(1), d(2)), price)
        assert exc.value.errors == {'price': message}

    @pytest.mark.parametrize('price, expected', [
        ('99999999.99', '99999999.99'),
        ('100.5', '100.50'),
        ('100.500', '100.50'),
        (150, '150.00'),
    ])
    def test_price_is_held_at_stored_precision(self, price, expected):
        assert str(make_candidate((1, 1, 1), (d(1), d(2)), price).price) == expected

    def test_dates_must_be_calendar_dates(self):
        with pytest.raises(ValidationError) as exc:
            make_candidate((1, 1, 1), ('2026-01-01', '2026-01-05'), 100)
        assert exc.value.errors == {
            'startDate': 'Start date must be a calendar date',
            'endDate': 'End date must be a calendar date',
        }


# =============================================================================
# PREVIEW
# =============================================================================

class TestPreview:
    def test_preview_writes_nothing(self, service, group_key, add_pricing):
        add_pricing(d(1), d(31), 100)
        preview = service.preview_insert(group_key, (d(10), d(20)), 150)

        assert preview.will_split
        assert len(preview.resulting_periods) == 3
        assert stored(group_key) == [(d(1), d(31), Decimal('100'))]

    def test_preview_is_repeatable(self, service, group_key, add_pricing):
        add_pricing(d(1), d(31), 100)
        first = service.preview_insert(group_key, (d(10), d(20)), 150)
        second = service.preview_insert(group_key, (d(10), d(20)), 150)
        assert first == second

    def test_preview_uses_reference_labels(self, service, group_key, add_pricing):
        add_pricing(d(1), d(31), 100)
        preview = service.preview_insert(group_key, (d(10), d(20)), 150)
        affected = preview.affected_periods[0]
        assert (affected['roomType'], affected['occupancy'], affected['mealPlan']) == ('Deluxe', 'Double', 'MAP')

    def test_other_groups_are_ignored(self, service, group_key, add_pricing, meal_plan):
        add_pricing(d(1), d(31), 100, meal_plan=None)
        preview = service.preview_insert(group_key, (d(10), d(20)), 150)
        assert not preview.will_split

    def test_unknown_references_fail_validation(self, service, hotel):
        with pytest.raises(ValidationError) as exc:
            service.preview_insert(GroupKey(hotel.id, 999, 998, 997), (d(1), d(2)), 100)
        assert set(exc.value.errors) == {'roomTypeId', 'occupancyTypeId', 'mealPlanId'}

    def test_inactive_room_type_fails_validation(self, service, group_key, room_type):
        room_type.is_active = False
        room_type.save()
        with pytest.raises(ValidationError) as exc:
            service.preview_insert(group_key, (d(1), d(2)), 100)
        assert 'roomTypeId' in exc.value.errors


# =============================================================================
# COMMIT
# =============================================================================

class TestCommit:
    def test_inner_insert_splits_in_three(self, service, group_key, add_pricing):
        original = add_pricing(d(1), d(31), 100)
        result = service.commit_insert(group_key, (d(10), d(20)), 150)

        assert result.plan.will_split
        assert result.deleted_ids == [original.pk]
        assert not HotelPricing.objects.filter(pk=original.pk).exists()
        assert stored(group_key) == [
            (d(1), d(9), Decimal('100')),
            (d(10), d(20), Decimal('150')),
            (d(21), d(31), Decimal('100')),
        ]
        assert result.new_period.date_range == DateRange(d(10), d(20))
        assert summarize(result.periods) == stored(group_key)

    def test_insert_over_the_tail(self, service, group_key, add_pricing):
        add_pricing(d(1), d(10), 100)
        service.commit_insert(group_key, (d(5), d(20)), 150)
        assert stored(group_key) == [
            (d(1), d(4), Decimal('100')),
            (d(5), d(20), Decimal('150')),
        ]

    def test_insert_across_two_periods(self, service, group_key, add_pricing):
        add_pricing(d(1), d(10), 100)
        add_pricing(d(11), d(20), 120)
        service.commit_insert(group_key, (d(8), d(15)), 150)
        assert stored(group_key) == [
            (d(1), d(7), Decimal('100')),
            (d(8), d(15), Decimal('150')),
            (d(16), d(20), Decimal('120')),
        ]

    def test_insert_swallowing_a_period(self, service, group_key, add_pricing):
        add_pricing(d(5), d(10), 100)
        service.commit_insert(group_key, (d(1), d(31)), 150)
        assert stored(group_key) == [(d(1), d(31), Decimal('150'))]

    def test_full_replace_of_two_periods(self, service, group_key, add_pricing):
        add_pricing(d(1), d(10), 100)
        add_pricing(d(20), d(31), 120)
        result = service.commit_insert(group_key, (d(1), d(31)), 200)

        assert len(result.deleted_ids) == 2
        assert stored(group_key) == [(d(1), d(31), Decimal('200'))]

    def test_next_month_is_added_alongside(self, service, group_key, add_pricing):
        add_pricing(d(1), d(31), 100)
        result = service.commit_insert(group_key, (d(1, 2), d(10, 2)), 90)

        assert not result.plan.will_split
        assert stored(group_key) == [
            (d(1), d(31), Decimal('100')),
            (d(1, 2), d(10, 2), Decimal('90')),
        ]

    def test_plain_insert(self, service, group_key):
        result = service.commit_insert(group_key, (d(1), d(5)), 90)
        assert not result.plan.will_split
        assert result.deleted_ids == []
        assert stored(group_key) == [(d(1), d(5), Decimal('90'))]

    def test_fragments_keep_inactive_status(self, service, group_key, add_pricing):
        add_pricing(d(1), d(31), 100, is_active=False)
        service.commit_insert(group_key, (d(10), d(20)), 150)
        statuses = list(HotelPricing.for_group(group_key).values_list('start_date', 'is_active'))
        assert statuses == [(d(1), False), (d(10), True), (d(21), False)]

    def test_commit_with_matching_fingerprint(self, service, group_key, add_pricing):
        add_pricing(d(1), d(31), 100)
        preview = service.preview_insert(group_key, (d(10), d(20)), 150)
        candidate = make_candidate(group_key, (d(10), d(20)), 150)
        service.commit(candidate, expected_fingerprint=preview.fingerprint)
        assert len(stored(group_key)) == 3

    def test_new_overlapping_row_after_preview_conflicts(self, service, group_key, add_pricing):
        add_pricing(d(1), d(15), 100)
        preview = service.preview_insert(group_key, (d(10), d(20)), 150)
        add_pricing(d(16), d(25), 110)
        before = stored(group_key)

        candidate = make_candidate(group_key, (d(10), d(20)), 150)
        with pytest.raises(ConflictError) as exc:
            service.commit(candidate, expected_fingerprint=preview.fingerprint)

        assert stored(group_key) == before
        assert len(exc.value.preview.affected_periods) == 2
        assert exc.value.preview.fingerprint != preview.fingerprint

    def test_changed_price_after_preview_conflicts(self, service, group_key, add_pricing):
        row = add_pricing(d(1), d(31), 100)
        preview = service.preview_insert(group_key, (d(10), d(20)), 150)
        HotelPricing.objects.filter(pk=row.pk).update(price=Decimal('105'))

        with pytest.raises(ConflictError):
            service.commit_insert(group_key, (d(10), d(20)), 150, expected_fingerprint=preview.fingerprint)
        assert stored(group_key) == [(d(1), d(31), Decimal('105'))]

    def test_fingerprint_of_another_candidate_is_rejected(self, service, group_key):
        preview = service.preview_insert(group_key, (d(1, 3), d(5, 3)), 100)

        with pytest.raises(ConflictError):
            service.commit_insert(
                group_key, (d(1, 6), d(5, 6)), 999, expected_fingerprint=preview.fingerprint
            )
        assert stored(group_key) == []

    def test_fingerprint_of_another_price_is_rejected(self, service, group_key, add_pricing):
        add_pricing(d(1), d(31), 100)
        preview = service.preview_insert(group_key, (d(10), d(20)), 150)

        with pytest.raises(ConflictError):
            service.commit_insert(group_key, (d(10), d(20)), 160, expected_fingerprint=preview.fingerprint)
        assert stored(group_key) == [(d(1), d(31), Decimal('100'))]

    def test_preview_commit_and_storage_agree_on_price(self, service, group_key):
        preview = service.preview_insert(group_key, (d(1), d(5)), '100.5')
        result = service.commit_insert(
            group_key, (d(1), d(5)), '100.5', expected_fingerprint=preview.fingerprint
        )

        assert preview.resulting_periods[0]['price'] == '100.50'
        assert str(result.new_period.price) == '100.50'
        assert str(HotelPricing.objects.get().price) == '100.50'

    def test_price_too_large_for_storage_is_a_validation_error(self, service, group_key):
        with pytest.raises(ValidationError) as exc:
            service.commit_insert(group_key, (d(1), d(5)), '123456789012')
        assert 'price' in exc.value.errors
        assert stored(group_key) == []

    def test_without_fingerprint_commit_uses_fresh_state(self, service, group_key, add_pricing):
        add_pricing(d(1), d(15), 100)
        service.preview_insert(group_key, (d(10), d(20)), 150)
        add_pricing(d(16), d(25), 110)

        service.commit_insert(group_key, (d(10), d(20)), 150)
        assert stored(group_key) == [
            (d(1), d(9), Decimal('100')),
            (d(10), d(20), Decimal('150')),
            (d(21), d(25), Decimal('110')),
        ]

    def test_fingerprint_can_be_required(self, settings, group_key):
        settings.HOTEL_RATES = {'REQUIRE_PREVIEW_FINGERPRINT': True}
        with pytest.raises(ValidationError) as exc:
            PeriodSplitService().commit_insert(group_key, (d(1), d(5)), 90)
        assert 'previewFingerprint' in exc.value.errors
        assert stored(group_key) == []

    def test_validation_error_leaves_storage_untouched(self, service, hotel, add_pricing, group_key):
        add_pricing(d(1), d(31), 100)
        with pytest.raises(ValidationError):
            service.commit_insert(GroupKey(hotel.id, 999, 999), (d(10), d(20)), 150)
        assert stored(group_key) == [(d(1), d(31), Decimal('100'))]

    def test_lock_row_is_created_for_the_group(self, service, group_key):
        from hotel_rates.models import PricingGroupLock

        service.commit_insert(group_key, (d(1), d(5)), 90)
        assert PricingGroupLock.objects.filter(key=group_key.as_lock_key()).exists()


# =============================================================================
# EDIT
# =============================================================================

class TestEdit:
    def test_edit_price_in_place(self, service, group_key, add_pricing):
        row = add_pricing(d(1), d(10), 100)
        result = service.commit_insert(group_key, (d(1), d(10)), 130, exclude_id=row.pk)

        assert row.pk in result.deleted_ids
        assert not result.plan.will_split
        assert stored(group_key) == [(d(1), d(10), Decimal('130'))]

    def test_edit_does_not_split_itself(self, service, group_key, add_pricing):
        row = add_pricing(d(1), d(31), 100)
        service.commit_insert(group_key, (d(10), d(20)), 150, exclude_id=row.pk)
        assert stored(group_key) == [(d(10), d(20), Decimal('150'))]

    def test_edit_growing_into_a_neighbour_splits_it(self, service, group_key, add_pricing):
        row = add_pricing(d(1), d(10), 100)
        add_pricing(d(11), d(20), 120)

        result = service.commit_insert(group_key, (d(1), d(15)), 100, exclude_id=row.pk)
        assert result.plan.will_split
        assert stored(group_key) == [
            (d(1), d(15), Decimal('100')),
            (d(16), d(20), Decimal('120')),
        ]

    def test_edit_moving_to_another_group(self, service, group_key, add_pricing, hotel, room_type, occupancy_type):
        row = add_pricing(d(1), d(10), 100)
        room_only = GroupKey(hotel.id, room_type.id, occupancy_type.id, None)

        service.commit_insert(room_only, (d(1), d(10)), 80, exclude_id=row.pk)
        assert stored(group_key) == []
        assert stored(room_only) == [(d(1), d(10), Decimal('80'))]

    def test_edit_of_unknown_period_is_invalid(self, service, group_key):
        with pytest.raises(ValidationError) as exc:
            service.preview_insert(group_key, (d(1), d(10)), 100, exclude_id=12345)
        assert 'excludeId' in exc.value.errors

    def test_edit_of_period_removed_after_preview_conflicts(self, service, group_key, add_pricing):
        pk = add_pricing(d(1), d(10), 100).pk
        service.preview_insert(group_key, (d(1), d(10)), 130, exclude_id=pk)
        HotelPricing.objects.filter(pk=pk).delete()

        with pytest.raises(ConflictError):
            service.commit_insert(group_key, (d(1), d(10)), 130, exclude_id=pk)
        assert stored(group_key) == []


# =============================================================================
# DELETE / LIST
# =============================================================================

class TestDeleteAndList:
    def test_delete_leaves_a_gap(self, service, group_key, add_pricing):
        add_pricing(d(1), d(9), 100)
        middle = add_pricing(d(10), d(20), 150)
        add_pricing(d(21), d(31), 100)

        service.delete_period(middle.pk)
        assert stored(group_key) == [
            (d(1), d(9), Decimal('100')),
            (d(21), d(31), Decimal('100')),
        ]

    def test_delete_unknown(self, service):
        with pytest.raises(PeriodNotFound) as exc:
            service.delete_period(4242)
        assert exc.value.period_id == 4242

    def test_list_periods_is_ordered(self, service, group_key, add_pricing):
        add_pricing(d(21), d(31), 100)
        add_pricing(d(1), d(9), 100)
        periods = service.list_periods(group_key)
        assert [p.start_date for p in periods] == [d(1), d(21)]

    def test_periods_for_hotel_filters(self, service, hotel, add_pricing, meal_plan, room_type):
        with_meals = add_pricing(d(1), d(9), 100)
        room_only = add_pricing(d(1), d(9), 80, meal_plan=None)

        assert list(service.periods_for_hotel(hotel, room_only=True)) == [room_only]
        assert list(service.periods_for_hotel(hotel, meal_plan_id=meal_plan.id)) == [with_meals]
        assert service.periods_for_hotel(hotel, room_type_id=room_type.id).count() == 2
        assert service.periods_for_hotel(hotel, room_type_id=room_type.id + 100).count() == 0


# =============================================================================
# STORAGE FAILURES
# =============================================================================

@pytest.mark.django_db(transaction=True)
class TestStorageFailures:
    def test_transient_failure_is_retried_then_rolled_back(self, fast_retries, group_key, add_pricing):
        original = add_pricing(d(1), d(31), 100)
        with mock.patch.object(
            DjangoPeriodStore, 'create_many', side_effect=OperationalError('database is locked')
        ) as create_many:
            with pytest.raises(StorageError) as exc:
                PeriodSplitService().commit_insert(group_key, (d(10), d(20)), 150)

        assert create_many.call_count == 3
        assert exc.value.transient
        assert exc.value.retryable
        assert HotelPricing.objects.filter(pk=original.pk).exists()
        assert stored(group_key) == [(d(1), d(31), Decimal('100'))]

    def test_transient_failure_recovers_on_retry(self, fast_retries, group_key, add_pricing):
        add_pricing(d(1), d(31), 100)
        real_create_many = DjangoPeriodStore.create_many
        calls = []

        def flaky(store, periods):
            calls.append(1)
            if len(calls) == 1:
                raise OperationalError('database is locked')
            return real_create_many(store, periods)

        with mock.patch.object(DjangoPeriodStore, 'create_many', autospec=True, side_effect=flaky):
            PeriodSplitService().commit_insert(group_key, (d(10), d(20)), 150)

        assert len(calls) == 2
        assert len(stored(group_key)) == 3

    def test_non_transient_failure_is_not_retried(self, fast_retries, group_key, add_pricing):
        add_pricing(d(1), d(31), 100)
        with mock.patch.object(
            DjangoPeriodStore, 'create_many', side_effect=IntegrityError('boom')
        ) as create_many:
            with pytest.raises(StorageError) as exc:
                PeriodSplitService().commit_insert(group_key, (d(10), d(20)), 150)

        assert create_many.call_count == 1
        assert not exc.value.transient
        assert stored(group_key) == [(d(1), d(31), Decimal('100'))]


def test_no_retry_inside_a_caller_transaction(fast_retries, group_key, add_pricing):
    add_pricing(d(1), d(31), 100)
    with mock.patch.object(
        DjangoPeriodStore, 'create_many', side_effect=OperationalError('database is locked')
    ) as create_many, mock.patch('hotel_rates.services.period_service.time.sleep') as sleep:
        with transaction.atomic():
            with pytest.raises(StorageError):
                PeriodSplitService().commit_insert(group_key, (d(10), d(20)), 150)

    assert create_many.call_count == 1
    sleep.assert_not_called()
    assert stored(group_key) == [(d(1), d(31), Decimal('100'))]


def test_date_range_is_whole_days():
    cand = make_candidate((1, 1, 1), (date(2026, 3, 1), date(2026, 3, 1)), 10)
    assert cand.date_range.days == 1
