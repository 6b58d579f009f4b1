import json
from decimal import Decimal

import pytest
from django.core.management import CommandError, call_command

from hotel_rates.models import HotelPricing
from hotel_rates.services import PricingJsonService

from .helpers import d, summarize

pytestmark = pytest.mark.django_db


@pytest.fixture
def entry(room_type, occupancy_type, meal_plan):
    def _entry(start, end, price, **extra):
        data = {
            'roomTypeId': room_type.id,
            'occupancyTypeId': occupancy_type.id,
            'mealPlanId': meal_plan.id,
            'startDate': start,
            'endDate': end,
            'price': price,
            'isActive': True,
        }
        data.update(extra)
        return data
    return _entry


class TestExport:
    def test_entries_and_reference_data(self, hotel, room_type, occupancy_type, meal_plan, add_pricing):
        add_pricing(d(1), d(10), 100)
        add_pricing(d(5), d(8), 80, meal_plan=None)

        document = PricingJsonService(hotel).export_payload()

        assert document['metadata']['hotelId'] == hotel.id
        assert document['metadata']['version'] == '1.0'
        assert document['referenceData']['occupancyTypes'] == [
            {'id': occupancy_type.id, 'name': 'Double', 'maxPersons': 2}
        ]
        assert document['referenceData']['mealPlans'] == [
            {'id': meal_plan.id, 'code': 'MAP', 'name': 'Breakfast and Dinner'}
        ]
        assert sorted((e['startDate'], e['mealPlanId'], e['price']) for e in document['pricingEntries']) == [
            ('2026-01-01', meal_plan.id, '100.00'),
            ('2026-01-05', None, '80.00'),
        ]

    def test_document_is_json_serializable(self, hotel, add_pricing):
        add_pricing(d(1), d(10), 100)
        json.dumps(PricingJsonService(hotel).export_payload())


class TestImport:
    def test_entries_are_committed_in_order(self, hotel, group_key, add_pricing, entry):
        add_pricing(d(1), d(31), 100)

        result = PricingJsonService(hotel).import_payload({'pricingEntries': [
            entry('2026-01-10', '2026-01-20', '150'),
            entry('2026-01-15', '2026-01-16', 175.5),
        ]})

        assert result['success']
        assert result['stats']['rows_committed'] == 2
        assert any('Entries 1 and 2 have overlapping dates' in w and 'entry 2 wins' in w
                   for w in result['warnings'])
        assert any(w.startswith('Entry 1 overlaps existing pricing') for w in result['warnings'])
        assert summarize(HotelPricing.for_group(group_key)) == [
            (d(1), d(9), Decimal('100')),
            (d(10), d(14), Decimal('150')),
            (d(15), d(16), Decimal('175.5')),
            (d(17), d(20), Decimal('150')),
            (d(21), d(31), Decimal('100')),
        ]

    def test_validate_only_writes_nothing(self, hotel, entry):
        result = PricingJsonService(hotel).import_payload(
            {'pricingEntries': [entry('2026-01-01', '2026-01-05', '100')]}, validate_only=True
        )

        assert result['success']
        assert result['stats']['rows_valid'] == 1
        assert result['previews'][0]['willSplit'] is False
        assert not HotelPricing.objects.exists()

    def test_one_bad_entry_imports_nothing(self, hotel, entry):
        result = PricingJsonService(hotel).import_payload({'pricingEntries': [
            entry('2026-01-01', '2026-01-05', '100'),
            entry('2026-01-10', '2026-01-05', '100'),
            entry('2026-02-30', '2026-03-01', 'abc', isActive='maybe'),
        ]})

        assert not result['success']
        assert result['stats']['rows_skipped'] == 2
        assert [(e['row'], e['field']) for e in result['errors']] == [
            (2, 'endDate'),
            (3, 'startDate'),
            (3, 'price'),
            (3, 'isActive'),
        ]
        assert not HotelPricing.objects.exists()

    def test_timestamps_keep_their_day(self, hotel, group_key, entry):
        PricingJsonService(hotel).import_payload({'pricingEntries': [
            entry('2026-01-10T00:00:00.000Z', '2026-01-12T00:00:00.000Z', '90'),
        ]})
        assert summarize(HotelPricing.for_group(group_key)) == [(d(10), d(12), Decimal('90'))]

    def test_non_string_dates_are_rejected(self, hotel, entry):
        result = PricingJsonService(hotel).import_payload(
            {'pricingEntries': [entry(20260101, None, '90')]}
        )
        assert {e['field'] for e in result['errors']} == {'startDate', 'endDate'}

    def test_entry_without_meal_plan_is_room_only(self, hotel, room_type, occupancy_type, entry):
        PricingJsonService(hotel).import_payload(
            {'pricingEntries': [entry('2026-01-01', '2026-01-02', '50', mealPlanId=None)]}
        )
        assert HotelPricing.objects.get().meal_plan_id is None

    def test_document_for_another_hotel(self, hotel, entry):
        result = PricingJsonService(hotel).import_payload({
            'metadata': {'hotelId': hotel.id + 1},
            'pricingEntries': [entry('2026-01-01', '2026-01-02', '50')],
        })
        assert result['errors'][0]['field'] == 'metadata.hotelId'
        assert not HotelPricing.objects.exists()

    @pytest.mark.parametrize('document', [{}, {'pricingEntries': 'none'}, []])
    def test_entries_must_be_a_list(self, hotel, document):
        result = PricingJsonService(hotel).import_payload(document)
        assert result['errors'] == [
            {'row': None, 'field': 'pricingEntries', 'message': 'pricingEntries must be a list'}
        ]


class TestCommand:
    def test_imports_a_json_file(self, hotel, group_key, entry, tmp_path, capsys):
        path = tmp_path / 'export.json'
        path.write_text(json.dumps({'pricingEntries': [entry('2026-01-01', '2026-01-05', '100')]}))

        call_command('import_hotel_pricing', 'snow-valley', str(path), '--verbose')

        assert 'Import completed' in capsys.readouterr().out
        assert summarize(HotelPricing.for_group(group_key)) == [(d(1), d(5), Decimal('100'))]

    def test_reports_entries_by_number(self, hotel, entry, tmp_path, capsys):
        path = tmp_path / 'export.json'
        path.write_text(json.dumps({'pricingEntries': [entry('2026-01-01', '2026-01-05', 'abc')]}))

        with pytest.raises(CommandError, match='1 invalid rows'):
            call_command('import_hotel_pricing', 'snow-valley', str(path))
        assert 'Entry 1 [price]: Price must be a valid number' in capsys.readouterr().out

    def test_invalid_json_file(self, hotel, tmp_path):
        path = tmp_path / 'broken.json'
        path.write_text('{"pricingEntries": [')
        with pytest.raises(CommandError, match='Invalid JSON'):
            call_command('import_hotel_pricing', 'snow-valley', str(path))
