"""
View mixins: PricingApiMixin for the hotel pricing JSON endpoints.
"""

import json
import logging

from dateutil import parser as date_parser
from django.http import JsonResponse

from hotel_rates.models import Hotel
from hotel_rates.splitting import GroupKey
from hotel_rates.splitting.exceptions import (
    ConflictError,
    PeriodNotFound,
    StorageError,
    ValidationError,
)
from hotel_rates.services import PricingImportService, make_candidate

logger = logging.getLogger(__name__)


class PricingApiMixin:
    """Base mixin for hotel pricing API views."""

    def get_hotel(self):
        """Get current hotel from URL kwargs."""
        return Hotel.objects.filter(pk=self.kwargs.get('hotel_id'), is_active=True).first()

    def json_response(self, data, status=200):
        """Return JSON response."""
        return JsonResponse(data, status=status)

    def error_response(self, message, status=400, **extra):
        """Return error JSON response."""
        response = {'success': False, 'error': message}
        response.update(extra)
        return JsonResponse(response, status=status)

    def success_response(self, data=None, message=None):
        """Return success JSON response."""
        response = {'success': True}
        if message:
            response['message'] = message
        if data:
            response['data'] = data
        return JsonResponse(response)

    def pricing_error_response(self, error):
        """Map a PricingError to its HTTP status and body."""
        if isinstance(error, ValidationError):
            return self.error_response(error.message, 422, code='VALIDATION', errors=error.errors)
        if isinstance(error, ConflictError):
            preview = error.preview.to_dict() if error.preview else None
            return self.error_response(error.message, 409, code='CONFLICT', preview=preview)
        if isinstance(error, StorageError):
            return self.error_response(error.message, 503, code='STORAGE', retryable=error.retryable)
        if isinstance(error, PeriodNotFound):
            return self.error_response(error.message, 404, code='NOT_FOUND')
        return self.error_response(error.message, 400)

    def parse_json(self, request):
        """Request body as a dict, or None if it isn't a JSON object."""
        try:
            data = json.loads(request.body or b'{}')
        except (json.JSONDecodeError, UnicodeDecodeError):
            return None
        return data if isinstance(data, dict) else None

    def parse_date(self, value):
        """
        Parse a calendar date from 'YYYY-MM-DD' or a full ISO timestamp.

        Time-of-day is dropped; ranges are whole days.
        """
        if not value:
            return None
        try:
            return date_parser.isoparse(str(value)).date()
        except (ValueError, OverflowError):
            return None

    def parse_id(self, value):
        if value is None or value == '':
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    def parse_bool(self, value):
        """
        Booleans, plus the strings and 0/1 spreadsheets and forms send.

        Returns None for anything else.
        """
        if isinstance(value, bool):
            return value
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized in PricingImportService.TRUE_VALUES:
                return True
            if normalized in PricingImportService.FALSE_VALUES:
                return False
        return None

    def candidate_from_data(self, hotel, data, exclude_id=None, defaults=None):
        """
        Build a Candidate from a request payload.

        Args:
            hotel: Hotel the period belongs to
            data: decoded JSON body (camelCase keys)
            exclude_id: id of the period being edited
            defaults: PricingPeriod whose values fill keys missing from ``data``

        Raises:
            ValidationError
        """
        errors = {}

        def pick(key, fallback=None):
            if key in data:
                return data[key]
            return fallback

        fallback_key = defaults.group_key if defaults else GroupKey(hotel.id, None, None)
        ids = {}
        for key, fallback in [
            ('roomTypeId', fallback_key.room_type_id),
            ('occupancyTypeId', fallback_key.occupancy_type_id),
            ('mealPlanId', fallback_key.meal_plan_id),
        ]:
            raw = pick(key, fallback)
            ids[key] = self.parse_id(raw)
            if raw not in (None, '') and ids[key] is None:
                errors[key] = 'Must be a numeric id'

        dates = {}
        for key, fallback in [
            ('startDate', defaults.start_date if defaults else None),
            ('endDate', defaults.end_date if defaults else None),
        ]:
            raw = pick(key, fallback)
            dates[key] = raw if hasattr(raw, 'isoformat') else self.parse_date(raw)
            if raw and dates[key] is None:
                errors[key] = 'Invalid date'

        price = pick('price', defaults.price if defaults else None)
        is_active = self.parse_bool(pick('isActive', defaults.is_active if defaults else True))
        if is_active is None:
            errors['isActive'] = 'Must be true or false'
            is_active = True

        try:
            candidate = make_candidate(
                GroupKey(hotel.id, ids['roomTypeId'], ids['occupancyTypeId'], ids['mealPlanId']),
                (dates['startDate'], dates['endDate']),
                price,
                exclude_id=exclude_id,
                is_active=is_active,
            )
        except ValidationError as e:
            for key, message in e.errors.items():
                errors.setdefault(key, message)
            raise ValidationError(errors) from e

        if errors:
            raise ValidationError(errors)
        return candidate
