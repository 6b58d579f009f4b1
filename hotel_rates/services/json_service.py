"""
JSON transfer of a hotel's pricing: export the periods with the reference
data needed to read them, and import entries through the splitting commit.
"""

import logging
from typing import Dict, List, Optional

from django.utils import timezone

from hotel_rates.splitting import GroupKey
from hotel_rates.splitting.exceptions import ValidationError

from .import_service import PricingImportService
from .period_service import make_candidate


logger = logging.getLogger(__name__)

EXPORT_VERSION = '1.0'


class PricingJsonService(PricingImportService):
    """
    Export and import pricing entries as JSON documents.

    Document shape:
        {
            "metadata": {"hotelId", "hotelName", "hotelCode", "exportedAt", "version"},
            "referenceData": {"roomTypes", "occupancyTypes", "mealPlans"},
            "pricingEntries": [
                {"roomTypeId", "occupancyTypeId", "mealPlanId", "startDate",
                 "endDate", "price", "isActive"}
            ]
        }

    Imports only need ``pricingEntries``. Entries are numbered from 1 in
    errors and warnings, and are committed in order in one transaction, so
    a later entry splits what an earlier one created.
    """

    ROW_LABEL = 'Entry'
    ROWS_LABEL = 'Entries'

    # =========================================================================
    # EXPORT
    # =========================================================================

    def export_payload(self, include_existing_pricing: bool = True) -> Dict:
        """
        Args:
            include_existing_pricing: False gives an empty template with the
                reference data only

        Returns:
            JSON-serializable document
        """
        from hotel_rates.models import RoomType, OccupancyType, MealPlan

        entries = []
        if include_existing_pricing:
            for row in self.period_service.periods_for_hotel(self.hotel):
                entries.append({
                    'roomTypeId': row.room_type_id,
                    'occupancyTypeId': row.occupancy_type_id,
                    'mealPlanId': row.meal_plan_id,
                    'startDate': row.start_date.isoformat(),
                    'endDate': row.end_date.isoformat(),
                    'price': str(row.price),
                    'isActive': row.is_active,
                })

        return {
            'metadata': {
                'hotelId': self.hotel.id,
                'hotelName': self.hotel.name,
                'hotelCode': self.hotel.code,
                'exportedAt': timezone.now().isoformat(),
                'version': EXPORT_VERSION,
            },
            'referenceData': {
                'roomTypes': [
                    {'id': rt.id, 'name': rt.name}
                    for rt in RoomType.objects.filter(is_active=True)
                ],
                'occupancyTypes': [
                    {'id': ot.id, 'name': ot.name, 'maxPersons': ot.max_persons}
                    for ot in OccupancyType.objects.filter(is_active=True)
                ],
                'mealPlans': [
                    {'id': mp.id, 'code': mp.code, 'name': mp.name}
                    for mp in MealPlan.objects.filter(is_active=True)
                ],
            },
            'pricingEntries': entries,
        }

    # =========================================================================
    # IMPORT
    # =========================================================================

    def import_payload(self, payload, validate_only: bool = False) -> Dict:
        """
        Validate and (unless ``validate_only``) commit a JSON document.

        Returns:
            Dict with stats, errors, warnings and per-entry previews
        """
        entries = payload.get('pricingEntries') if isinstance(payload, dict) else None
        if not isinstance(entries, list):
            self.errors.append({
                'row': None, 'field': 'pricingEntries',
                'message': 'pricingEntries must be a list',
            })
            return self._build_payload_result(validate_only, [])

        hotel_id = (payload.get('metadata') or {}).get('hotelId')
        if hotel_id not in (None, self.hotel.id):
            self.errors.append({
                'row': None, 'field': 'metadata.hotelId',
                'message': f'Document is for hotel "{hotel_id}", not "{self.hotel.id}"',
            })
            return self._build_payload_result(validate_only, [])

        rows = self.parse_entries(entries)
        self._warn_batch_overlaps(rows)
        previews = self._warn_existing_overlaps(rows)

        if not validate_only and rows and not self.errors:
            self._apply(rows)
        elif not validate_only and self.errors:
            logger.info("JSON import for %s aborted: %s errors", self.hotel.code, len(self.errors))

        return self._build_payload_result(validate_only, previews)

    def _build_payload_result(self, validate_only: bool, previews: List[Dict]) -> Dict:
        return {
            'success': not self.errors,
            'validate_only': validate_only,
            'stats': dict(self.stats),
            'errors': list(self.errors),
            'warnings': list(self.warnings),
            'previews': previews,
        }

    def _id_sets(self) -> Dict[str, set]:
        maps = self._reference_maps()
        return {field: set(ids.values()) for field, ids in maps.items()}

    def parse_entries(self, entries: List) -> List[Dict]:
        known = self._id_sets()
        rows = []
        for index, entry in enumerate(entries):
            number = index + 1
            self.stats['rows_total'] += 1
            parsed = self._parse_entry(entry, number, known)
            if parsed is None:
                self.stats['rows_skipped'] += 1
                continue
            rows.append(parsed)
            self.stats['rows_valid'] += 1
        return rows

    @staticmethod
    def _entry_id(value) -> Optional[int]:
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, str) and value.strip().isdigit():
            return int(value.strip())
        return None

    def _entry_date(self, value):
        # Dates travel as strings; ISO timestamps keep their calendar day
        if not isinstance(value, str):
            return None
        return self._parse_date(value.strip().split('T')[0])

    def _parse_entry(self, entry, number: int, known: Dict[str, set]) -> Optional[Dict]:
        if not isinstance(entry, dict):
            self.errors.append({'row': number, 'field': None, 'message': 'Entry must be an object'})
            return None

        entry_errors = []

        room_type_id = self._entry_id(entry.get('roomTypeId'))
        if room_type_id not in known['room_type']:
            entry_errors.append(
                ('roomTypeId', f'Room type ID "{entry.get("roomTypeId")}" not found or inactive')
            )

        occupancy_type_id = self._entry_id(entry.get('occupancyTypeId'))
        if occupancy_type_id not in known['occupancy_type']:
            entry_errors.append(
                ('occupancyTypeId',
                 f'Occupancy type ID "{entry.get("occupancyTypeId")}" not found or inactive')
            )

        meal_plan_id = None
        if entry.get('mealPlanId') not in (None, ''):
            meal_plan_id = self._entry_id(entry.get('mealPlanId'))
            if meal_plan_id not in known['meal_plan']:
                entry_errors.append(
                    ('mealPlanId', f'Meal plan ID "{entry.get("mealPlanId")}" not found or inactive')
                )

        start_date = self._entry_date(entry.get('startDate'))
        end_date = self._entry_date(entry.get('endDate'))
        if start_date is None:
            entry_errors.append(('startDate', 'Invalid start date'))
        if end_date is None:
            entry_errors.append(('endDate', 'Invalid end date'))

        price = self._parse_decimal(entry.get('price'))
        if price is None:
            entry_errors.append(('price', 'Price must be a valid number'))

        raw_active = entry.get('isActive', True)
        is_active = self._parse_bool(raw_active, default=None)
        if is_active is None:
            entry_errors.append(('isActive', 'Must be true or false'))

        if not entry_errors:
            try:
                candidate = make_candidate(
                    GroupKey(self.hotel.id, room_type_id, occupancy_type_id, meal_plan_id),
                    (start_date, end_date),
                    price,
                    is_active=is_active,
                )
            except ValidationError as e:
                entry_errors.extend(e.errors.items())

        if entry_errors:
            for field, message in entry_errors:
                self.errors.append({'row': number, 'field': field, 'message': message})
            return None

        return {'row': number, 'candidate': candidate}
