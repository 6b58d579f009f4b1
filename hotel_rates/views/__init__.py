"""
Views package.

Re-exports all views so existing URL imports work unchanged:
    from hotel_rates.views import HotelPricingListView, etc.
"""

# Mixins
from .mixins import PricingApiMixin

# Pricing views
from .pricing import (
    HotelPricingListView,
    HotelPricingCheckOverlapView,
    HotelPricingUpdateView,
    HotelPricingDeleteView,
    HotelPricingExportJsonView,
    HotelPricingImportJsonView,
)

__all__ = [
    'PricingApiMixin',
    'HotelPricingListView',
    'HotelPricingCheckOverlapView',
    'HotelPricingUpdateView',
    'HotelPricingDeleteView',
    'HotelPricingExportJsonView',
    'HotelPricingImportJsonView',
]
