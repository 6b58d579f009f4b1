"""
Pricing views: hotel pricing period list, overlap preview, create/update
with automatic splitting, delete, and JSON export/import.
"""

import logging

from django.views.generic import View

from hotel_rates.models import HotelPricing
from hotel_rates.services import PeriodSplitService, PricingJsonService
from hotel_rates.splitting.exceptions import PricingError

from .mixins import PricingApiMixin

logger = logging.getLogger(__name__)


def serialize_period(period):
    """JSON shape of an engine PricingPeriod."""
    key = period.group_key
    return {
        'id': period.id,
        'hotelId': key.hotel_id,
        'roomTypeId': key.room_type_id,
        'occupancyTypeId': key.occupancy_type_id,
        'mealPlanId': key.meal_plan_id,
        'startDate': period.start_date.isoformat(),
        'endDate': period.end_date.isoformat(),
        'price': str(period.price),
        'isActive': period.is_active,
    }


def serialize_pricing_row(row):
    """JSON shape of a HotelPricing row, with reference names for tables."""
    data = serialize_period(row.to_period())
    data.update({
        'roomType': row.room_type.name,
        'occupancyType': row.occupancy_type.name,
        'mealPlan': row.meal_plan.code if row.meal_plan_id else None,
        'nights': row.get_night_count(),
    })
    return data


def serialize_commit(result):
    return {
        'period': serialize_period(result.new_period) if result.new_period else None,
        'split': result.plan.will_split,
        'deletedIds': result.deleted_ids,
        'createdIds': [p.id for p in result.created],
        'periods': [serialize_period(p) for p in result.periods],
    }


class HotelPricingListView(PricingApiMixin, View):
    """
    API: List a hotel's pricing periods (GET) or add one (POST).

    POST body:
        {startDate, endDate, roomTypeId, occupancyTypeId, mealPlanId?,
         price, isActive?, previewFingerprint?}

    Overlapping periods of the same room/occupancy/meal group are split.
    Send the fingerprint returned by check-overlap to get a 409 instead of a
    different split when someone changed the group in between.
    """

    def get(self, request, *args, **kwargs):
        hotel = self.get_hotel()
        if not hotel:
            return self.error_response('Hotel not found', 404)

        filters = {}
        for param, field in [
            ('room_type', 'room_type_id'),
            ('occupancy_type', 'occupancy_type_id'),
            ('meal_plan', 'meal_plan_id'),
        ]:
            value = request.GET.get(param)
            if value in (None, ''):
                continue
            if param == 'meal_plan' and value == 'none':
                filters['room_only'] = True
                continue
            parsed = self.parse_id(value)
            if parsed is None:
                return self.error_response(f'Invalid {param} filter')
            filters[field] = parsed

        rows = PeriodSplitService().periods_for_hotel(hotel, **filters)
        return self.json_response({
            'success': True,
            'hotel': {'id': hotel.id, 'name': hotel.name, 'code': hotel.code},
            'periods': [serialize_pricing_row(row) for row in rows],
        })

    def post(self, request, *args, **kwargs):
        hotel = self.get_hotel()
        if not hotel:
            return self.error_response('Hotel not found', 404)

        data = self.parse_json(request)
        if data is None:
            return self.error_response('Invalid JSON')

        try:
            candidate = self.candidate_from_data(hotel, data)
            result = PeriodSplitService().commit(
                candidate, expected_fingerprint=data.get('previewFingerprint')
            )
        except PricingError as e:
            return self.pricing_error_response(e)
        except Exception as e:
            logger.exception("Create pricing period error")
            return self.error_response(str(e), 500)

        message = 'Pricing period created'
        if result.plan.will_split:
            message = f'Pricing period created; {len(result.plan.to_delete)} overlapping period(s) split'
        return self.success_response(data=serialize_commit(result), message=message)


class HotelPricingCheckOverlapView(PricingApiMixin, View):
    """
    API: Preview what saving a period would do. Read-only.

    Same body as create, plus ``excludeId`` when editing an existing period;
    keys missing from the body then take the edited period's values, as in
    the update view, so the returned fingerprint matches that commit.
    """

    def post(self, request, *args, **kwargs):
        hotel = self.get_hotel()
        if not hotel:
            return self.error_response('Hotel not found', 404)

        data = self.parse_json(request)
        if data is None:
            return self.error_response('Invalid JSON')

        exclude_id = self.parse_id(data.get('excludeId'))
        edited = None
        if exclude_id is not None:
            edited = HotelPricing.objects.filter(pk=exclude_id, hotel=hotel).first()

        try:
            candidate = self.candidate_from_data(
                hotel, data, exclude_id=exclude_id,
                defaults=edited.to_period() if edited else None,
            )
            preview = PeriodSplitService().preview(candidate)
        except PricingError as e:
            return self.pricing_error_response(e)
        except Exception as e:
            logger.exception("Pricing overlap check error")
            return self.error_response(str(e), 500)

        return self.json_response(preview.to_dict())


class HotelPricingUpdateView(PricingApiMixin, View):
    """
    API: Edit a pricing period.

    The period is replaced, not modified: it is removed from overlap
    detection, deleted, and the edited values are inserted with splitting.
    Keys missing from the body keep the period's current values.
    """

    def post(self, request, *args, **kwargs):
        hotel = self.get_hotel()
        if not hotel:
            return self.error_response('Hotel not found', 404)

        row = HotelPricing.objects.filter(pk=kwargs.get('pk'), hotel=hotel).first()
        if row is None:
            return self.error_response('Pricing period not found', 404)

        data = self.parse_json(request)
        if data is None:
            return self.error_response('Invalid JSON')

        try:
            candidate = self.candidate_from_data(
                hotel, data, exclude_id=row.pk, defaults=row.to_period()
            )
            result = PeriodSplitService().commit(
                candidate, expected_fingerprint=data.get('previewFingerprint')
            )
        except PricingError as e:
            return self.pricing_error_response(e)
        except Exception as e:
            logger.exception("Update pricing period error")
            return self.error_response(str(e), 500)

        return self.success_response(data=serialize_commit(result), message='Pricing period updated')


class HotelPricingDeleteView(PricingApiMixin, View):
    """API: Delete a pricing period. Nothing is split or merged."""

    def post(self, request, *args, **kwargs):
        hotel = self.get_hotel()
        if not hotel:
            return self.error_response('Hotel not found', 404)

        row = HotelPricing.objects.filter(pk=kwargs.get('pk'), hotel=hotel).first()
        if row is None:
            return self.error_response('Pricing period not found', 404)

        try:
            PeriodSplitService().delete_period(row.pk)
        except PricingError as e:
            return self.pricing_error_response(e)

        return self.success_response(message='Pricing period deleted')


# =============================================================================
# JSON EXPORT / IMPORT
# =============================================================================

class HotelPricingExportJsonView(PricingApiMixin, View):
    """
    API: Download a hotel's pricing as a JSON document.

    ``?includeExistingPricing=false`` returns the reference data and an
    empty ``pricingEntries`` list, as a template to fill in.
    """

    def get(self, request, *args, **kwargs):
        hotel = self.get_hotel()
        if not hotel:
            return self.error_response('Hotel not found', 404)

        include = self.parse_bool(request.GET.get('includeExistingPricing', True))
        if include is None:
            return self.error_response('Invalid includeExistingPricing flag')

        payload = PricingJsonService(hotel).export_payload(include_existing_pricing=include)
        response = self.json_response(payload)
        response['Content-Disposition'] = f'attachment; filename="{hotel.code}-pricing.json"'
        return response


class HotelPricingImportJsonView(PricingApiMixin, View):
    """
    API: Validate or import a JSON pricing document.

    POST body: the export document (only ``pricingEntries`` is required)
    plus ``confirm``. Without ``confirm`` nothing is saved and the preview
    is returned. With it, every entry is committed with splitting, or none
    is when any entry is invalid.
    """

    def post(self, request, *args, **kwargs):
        hotel = self.get_hotel()
        if not hotel:
            return self.error_response('Hotel not found', 404)

        data = self.parse_json(request)
        if data is None:
            return self.error_response('Invalid JSON')

        confirm = self.parse_bool(data.get('confirm', False))
        if confirm is None:
            return self.error_response('Invalid confirm flag')

        try:
            result = PricingJsonService(hotel).import_payload(data, validate_only=not confirm)
        except PricingError as e:
            return self.pricing_error_response(e)
        except Exception as e:
            logger.exception("JSON pricing import error")
            return self.error_response(str(e), 500)

        if not result['success']:
            message = 'Cannot import with validation errors' if confirm else 'Validation failed'
            return self.error_response(message, 422, code='VALIDATION', **result)

        if confirm:
            message = f"Imported {result['stats']['rows_committed']} pricing entries"
        else:
            message = 'Validation passed'
        return self.success_response(data=result, message=message)
