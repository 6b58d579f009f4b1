"""
Reference data checks and display labels for pricing groups.
"""

from hotel_rates.models import Hotel, RoomType, OccupancyType, MealPlan


class ReferenceLookup:
    """Validate the ids of a GroupKey and name them for previews."""

    def check_group_key(self, group_key):
        """
        Returns:
            dict of field -> message for every id that doesn't resolve
        """
        errors = {}
        if not Hotel.objects.filter(pk=group_key.hotel_id).exists():
            errors['hotelId'] = f'Hotel "{group_key.hotel_id}" not found'
        if not RoomType.objects.filter(pk=group_key.room_type_id, is_active=True).exists():
            errors['roomTypeId'] = f'Room type "{group_key.room_type_id}" not found or inactive'
        if not OccupancyType.objects.filter(pk=group_key.occupancy_type_id, is_active=True).exists():
            errors['occupancyTypeId'] = (
                f'Occupancy type "{group_key.occupancy_type_id}" not found or inactive'
            )
        if group_key.meal_plan_id is not None and not MealPlan.objects.filter(
            pk=group_key.meal_plan_id, is_active=True
        ).exists():
            errors['mealPlanId'] = f'Meal plan "{group_key.meal_plan_id}" not found or inactive'
        return errors

    def labels(self, group_key):
        room_type = RoomType.objects.filter(pk=group_key.room_type_id).first()
        occupancy = OccupancyType.objects.filter(pk=group_key.occupancy_type_id).first()
        meal_plan = None
        if group_key.meal_plan_id is not None:
            meal_plan = MealPlan.objects.filter(pk=group_key.meal_plan_id).first()
        return {
            'roomType': room_type.name if room_type else '',
            'occupancy': occupancy.name if occupancy else '',
            'mealPlan': meal_plan.code if meal_plan else None,
        }
