"""
Hotel rates admin configuration.

Supports:
- Hotel management with pricing period counts
- Shared reference data (RoomType, OccupancyType, MealPlan)
- Read-only browsing of pricing periods (edits go through the splitting API
  so overlapping periods are split instead of duplicated)
"""

from django.contrib import admin
from django.urls import reverse
from django.utils.html import format_html

from .models import (
    Hotel, RoomType, OccupancyType, MealPlan,
    HotelPricing, PricingGroupLock,
)


# =============================================================================
# HOTEL ADMIN
# =============================================================================

@admin.register(Hotel)
class HotelAdmin(admin.ModelAdmin):
    """Admin for hotels."""
    list_display = ['name', 'code', 'location', 'pricing_count_display', 'is_active', 'created_at']
    list_filter = ['is_active']
    search_fields = ['name', 'code', 'location']
    prepopulated_fields = {'code': ('name',)}
    ordering = ['name']

    fieldsets = (
        (None, {
            'fields': ('name', 'code', 'is_active')
        }),
        ('Location', {
            'fields': ('location',),
        }),
    )

    def pricing_count_display(self, obj):
        """Display count of pricing periods with a link to them."""
        count = obj.pricing_count
        if count > 0:
            url = reverse('admin:hotel_rates_hotelpricing_changelist') + f'?hotel__id__exact={obj.id}'
            return format_html('<a href="{}">{} periods</a>', url, count)
        return '0'
    pricing_count_display.short_description = 'Pricing Periods'


# =============================================================================
# SHARED REFERENCE DATA
# =============================================================================

@admin.register(RoomType)
class RoomTypeAdmin(admin.ModelAdmin):
    list_display = ['name', 'sort_order', 'is_active']
    list_editable = ['sort_order', 'is_active']
    search_fields = ['name']


@admin.register(OccupancyType)
class OccupancyTypeAdmin(admin.ModelAdmin):
    list_display = ['name', 'max_persons', 'sort_order', 'is_active']
    list_editable = ['sort_order', 'is_active']
    search_fields = ['name']


@admin.register(MealPlan)
class MealPlanAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'sort_order', 'is_active']
    list_editable = ['sort_order', 'is_active']
    search_fields = ['code', 'name']


# =============================================================================
# PRICING PERIODS
# =============================================================================

@admin.register(HotelPricing)
class HotelPricingAdmin(admin.ModelAdmin):
    """
    Pricing periods are view/delete only here. Adding or changing one in a
    plain form would bypass overlap splitting.
    """
    list_display = [
        'hotel', 'room_type', 'occupancy_type', 'meal_plan',
        'start_date', 'end_date', 'nights_display', 'price', 'is_active',
    ]
    list_filter = ['hotel', 'room_type', 'occupancy_type', 'meal_plan', 'is_active']
    search_fields = ['hotel__name', 'room_type__name', 'occupancy_type__name']
    date_hierarchy = 'start_date'
    ordering = ['hotel', 'room_type', 'occupancy_type', 'meal_plan', 'start_date']
    list_select_related = ['hotel', 'room_type', 'occupancy_type', 'meal_plan']

    def nights_display(self, obj):
        return obj.get_night_count()
    nights_display.short_description = 'Nights'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(PricingGroupLock)
class PricingGroupLockAdmin(admin.ModelAdmin):
    list_display = ['key', 'created_at']
    search_fields = ['key']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
