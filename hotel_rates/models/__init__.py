"""
Hotel rates models package.

Re-exports all models so Django migrations and existing imports
continue to work unchanged:
    from hotel_rates.models import Hotel, HotelPricing, etc.
"""

# Core: Hotel and shared reference data
from .core import (
    Hotel,
    RoomType,
    OccupancyType,
    MealPlan,
)

# Pricing: Periods and commit locks
from .pricing import (
    HotelPricing,
    PricingGroupLock,
    PRICE_MAX_DIGITS,
    PRICE_DECIMAL_PLACES,
)

__all__ = [
    # Core
    'Hotel', 'RoomType', 'OccupancyType', 'MealPlan',
    # Pricing
    'HotelPricing', 'PricingGroupLock', 'PRICE_MAX_DIGITS', 'PRICE_DECIMAL_PLACES',
]
