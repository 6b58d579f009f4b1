"""
Pricing models: HotelPricing periods and the per-group commit lock.
"""

from datetime import timedelta

from django.core.validators import MinValueValidator
from django.db import models

from hotel_rates.splitting import DateRange, GroupKey, PricingPeriod

from .core import Hotel, RoomType, OccupancyType, MealPlan

# Shape of the price column; candidates are checked against it before commit
PRICE_MAX_DIGITS = 10
PRICE_DECIMAL_PLACES = 2


class HotelPricing(models.Model):
    """
    Nightly price for one (hotel, room type, occupancy, meal plan) group
    over an inclusive date range.

    Periods of one group never overlap. Rows are never resized: inserting
    an overlapping period deletes the old row and recreates the uncovered
    parts as new rows (see PeriodSplitService).

    Example:
        Deluxe / Double / MAP:
        - Apr 01 - Jun 30 @ 6500
        - Jul 01 - Sep 30 @ 4800
    """
    hotel = models.ForeignKey(
        Hotel,
        on_delete=models.CASCADE,
        related_name='pricing_periods',
        help_text="Hotel this price belongs to"
    )
    room_type = models.ForeignKey(
        RoomType,
        on_delete=models.PROTECT,
        related_name='pricing_periods'
    )
    occupancy_type = models.ForeignKey(
        OccupancyType,
        on_delete=models.PROTECT,
        related_name='pricing_periods'
    )
    meal_plan = models.ForeignKey(
        MealPlan,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='pricing_periods',
        help_text="Leave empty for room-only prices"
    )

    start_date = models.DateField(help_text="First night (inclusive)")
    end_date = models.DateField(help_text="Last night (inclusive). Same as start for a single night.")

    price = models.DecimalField(
        max_digits=PRICE_MAX_DIGITS,
        decimal_places=PRICE_DECIMAL_PLACES,
        validators=[MinValueValidator(0)],
        help_text="Price per night"
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Whether this price is offered"
    )

    # Metadata
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['hotel', 'room_type', 'occupancy_type', 'meal_plan', 'start_date']
        verbose_name = "Hotel Pricing Period"
        verbose_name_plural = "Hotel Pricing Periods"
        indexes = [
            models.Index(
                fields=['hotel', 'room_type', 'occupancy_type', 'meal_plan', 'start_date'],
                name='hotel_pricing_group_idx',
            ),
        ]

    def __str__(self):
        return f"{self.room_type_id}/{self.occupancy_type_id} {self.get_period_display()} @ {self.price}"

    def clean(self):
        """Validate that end_date is not before start_date."""
        from django.core.exceptions import ValidationError

        if self.end_date and self.start_date and self.end_date < self.start_date:
            raise ValidationError({
                'end_date': 'End date cannot be before start date.'
            })

    @property
    def group_key(self):
        return GroupKey(self.hotel_id, self.room_type_id, self.occupancy_type_id, self.meal_plan_id)

    def get_period_display(self):
        """Display formatted date range."""
        if self.start_date == self.end_date:
            return self.start_date.strftime('%b %d, %Y')
        return f"{self.start_date.strftime('%b %d')} - {self.end_date.strftime('%b %d, %Y')}"

    def get_night_count(self):
        """Return number of nights in this period."""
        return (self.end_date - self.start_date).days + 1

    def get_all_dates(self):
        """Generator yielding all dates in this period."""
        current = self.start_date
        while current <= self.end_date:
            yield current
            current += timedelta(days=1)

    def to_period(self):
        """Engine value for this row."""
        return PricingPeriod(
            id=self.pk,
            group_key=self.group_key,
            date_range=DateRange(self.start_date, self.end_date),
            price=self.price,
            is_active=self.is_active,
        )

    @classmethod
    def from_period(cls, period):
        """Unsaved row for an engine period."""
        key = period.group_key
        return cls(
            hotel_id=key.hotel_id,
            room_type_id=key.room_type_id,
            occupancy_type_id=key.occupancy_type_id,
            meal_plan_id=key.meal_plan_id,
            start_date=period.start_date,
            end_date=period.end_date,
            price=period.price,
            is_active=period.is_active,
        )

    @classmethod
    def for_group(cls, group_key):
        """QuerySet of one group's periods, oldest first."""
        return cls.objects.filter(
            hotel_id=group_key.hotel_id,
            room_type_id=group_key.room_type_id,
            occupancy_type_id=group_key.occupancy_type_id,
            meal_plan_id=group_key.meal_plan_id,
        ).order_by('start_date', 'id')


class PricingGroupLock(models.Model):
    """
    One row per pricing group, locked with SELECT ... FOR UPDATE while a
    commit rewrites that group's periods.

    Row locks on HotelPricing alone cannot stop a concurrent insert into
    an empty range, so commits serialize on this row instead.
    """
    key = models.CharField(max_length=100, unique=True, help_text="hotel:room:occupancy:meal")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Pricing Group Lock"
        verbose_name_plural = "Pricing Group Locks"

    def __str__(self):
        return self.key
