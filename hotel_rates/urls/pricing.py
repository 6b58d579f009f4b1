"""Pricing URL patterns: hotel pricing periods API."""

from django.urls import path
from hotel_rates.views import (
    HotelPricingListView,
    HotelPricingCheckOverlapView,
    HotelPricingUpdateView,
    HotelPricingDeleteView,
    HotelPricingExportJsonView,
    HotelPricingImportJsonView,
)

urlpatterns = [
    path('hotels/<int:hotel_id>/pricing/',
         HotelPricingListView.as_view(), name='hotel_pricing'),
    path('hotels/<int:hotel_id>/pricing/check-overlap/',
         HotelPricingCheckOverlapView.as_view(), name='hotel_pricing_check_overlap'),
    path('hotels/<int:hotel_id>/pricing/<int:pk>/update/',
         HotelPricingUpdateView.as_view(), name='hotel_pricing_update'),
    path('hotels/<int:hotel_id>/pricing/<int:pk>/delete/',
         HotelPricingDeleteView.as_view(), name='hotel_pricing_delete'),
    path('hotels/<int:hotel_id>/pricing/export-json/',
         HotelPricingExportJsonView.as_view(), name='hotel_pricing_export_json'),
    path('hotels/<int:hotel_id>/pricing/import-json/',
         HotelPricingImportJsonView.as_view(), name='hotel_pricing_import_json'),
]
