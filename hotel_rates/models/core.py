"""
Core models: Hotel and the reference data that keys its prices
(RoomType, OccupancyType, MealPlan).
"""

from django.db import models

# =============================================================================
# HOTEL
# =============================================================================

class Hotel(models.Model):
    """
    Hotel whose room prices are managed here.

    Owner of every HotelPricing row; the first element of a pricing group key.
    """
    name = models.CharField(
        max_length=200,
        help_text="Hotel name"
    )
    code = models.SlugField(
        max_length=50,
        unique=True,
        help_text="URL-friendly code (e.g., 'snow-valley-resort')"
    )
    location = models.CharField(
        max_length=255,
        blank=True,
        help_text="e.g., Gulmarg, Kashmir"
    )

    # Status
    is_active = models.BooleanField(
        default=True,
        help_text="Whether this hotel is active"
    )

    # Metadata
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']
        verbose_name = "Hotel"
        verbose_name_plural = "Hotels"

    def __str__(self):
        if self.location:
            return f"{self.name} ({self.location})"
        return self.name

    @property
    def pricing_count(self):
        """Return count of pricing periods."""
        return self.pricing_periods.count()


# =============================================================================
# SHARED REFERENCE DATA
# =============================================================================

class RoomType(models.Model):
    """
    Room category shared by all hotels (e.g., Deluxe, Super Deluxe, Suite).
    """
    name = models.CharField(max_length=100, unique=True)
    is_active = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0, help_text="Display order")

    class Meta:
        ordering = ['sort_order', 'name']
        verbose_name = "Room Type"
        verbose_name_plural = "Room Types"

    def __str__(self):
        return self.name


class OccupancyType(models.Model):
    """
    How many guests share the room (e.g., Single, Double, Extra Bed, Child with Bed).
    """
    name = models.CharField(max_length=100, unique=True)
    max_persons = models.PositiveIntegerField(
        default=2,
        help_text="Guests covered by one price"
    )
    is_active = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0, help_text="Display order")

    class Meta:
        ordering = ['sort_order', 'name']
        verbose_name = "Occupancy Type"
        verbose_name_plural = "Occupancy Types"

    def __str__(self):
        return self.name


class MealPlan(models.Model):
    """
    Board basis included in the price.

    Example:
        EP: Room only
        CP: Breakfast
        MAP: Breakfast and dinner
        AP: All meals
    """
    code = models.CharField(max_length=10, unique=True, help_text="e.g., CP, MAP")
    name = models.CharField(max_length=100)
    is_active = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0, help_text="Display order")

    class Meta:
        ordering = ['sort_order', 'code']
        verbose_name = "Meal Plan"
        verbose_name_plural = "Meal Plans"

    def __str__(self):
        return f"{self.code} ({self.name})"
