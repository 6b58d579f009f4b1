"""Shared fixtures for hotel rates tests."""

from decimal import Decimal

import pytest

from hotel_rates.splitting import GroupKey


@pytest.fixture
def hotel(db):
    from hotel_rates.models import Hotel
    return Hotel.objects.create(name='Snow Valley Resort', code='snow-valley', location='Gulmarg')


@pytest.fixture
def room_type(db):
    from hotel_rates.models import RoomType
    return RoomType.objects.create(name='Deluxe', sort_order=1)


@pytest.fixture
def occupancy_type(db):
    from hotel_rates.models import OccupancyType
    return OccupancyType.objects.create(name='Double', max_persons=2)


@pytest.fixture
def meal_plan(db):
    from hotel_rates.models import MealPlan
    return MealPlan.objects.create(code='MAP', name='Breakfast and Dinner')


@pytest.fixture
def group_key(hotel, room_type, occupancy_type, meal_plan):
    return GroupKey(hotel.id, room_type.id, occupancy_type.id, meal_plan.id)


@pytest.fixture
def add_pricing(hotel, room_type, occupancy_type, meal_plan):
    """Insert a HotelPricing row directly, bypassing the splitting service."""
    from hotel_rates.models import HotelPricing

    def _add(start, end, price, **overrides):
        fields = {
            'hotel': hotel,
            'room_type': room_type,
            'occupancy_type': occupancy_type,
            'meal_plan': meal_plan,
            'start_date': start,
            'end_date': end,
            'price': Decimal(str(price)),
        }
        fields.update(overrides)
        return HotelPricing.objects.create(**fields)

    return _add


@pytest.fixture
def fast_retries(settings):
    settings.HOTEL_RATES = {
        'COMMIT_MAX_ATTEMPTS': 3,
        'COMMIT_RETRY_BACKOFF': 0,
    }
    return settings
