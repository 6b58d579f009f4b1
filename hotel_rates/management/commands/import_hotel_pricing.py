"""
Management command to import hotel pricing periods from Excel, CSV or JSON files.

Usage:
    python manage.py import_hotel_pricing snow-valley-resort path/to/rates.xlsx
    python manage.py import_hotel_pricing snow-valley-resort path/to/rates.csv --validate-only
    python manage.py import_hotel_pricing snow-valley-resort path/to/rates.csv --verbose
    python manage.py import_hotel_pricing snow-valley-resort path/to/export.json
"""

import json

from django.core.management.base import BaseCommand, CommandError
from pathlib import Path


class Command(BaseCommand):
    help = 'Import hotel pricing periods from Excel, CSV or JSON file, splitting overlapping periods'

    def add_arguments(self, parser):
        parser.add_argument(
            'hotel_code',
            type=str,
            help='Code of the hotel the prices belong to'
        )
        parser.add_argument(
            'file_path',
            type=str,
            help='Path to the Excel, CSV or JSON file to import'
        )
        parser.add_argument(
            '--validate-only',
            action='store_true',
            help='Only validate and preview the file without importing'
        )
        parser.add_argument(
            '--verbose',
            action='store_true',
            help='Show detailed output'
        )

    def handle(self, *args, **options):
        from hotel_rates.models import Hotel
        from hotel_rates.services import PricingImportService, PricingJsonService
        from hotel_rates.splitting.exceptions import PricingError

        file_path = Path(options['file_path'])

        # Check file exists
        if not file_path.exists():
            raise CommandError(f'File not found: {file_path}')

        # Check file extension
        if file_path.suffix.lower() not in ['.xlsx', '.xls', '.csv', '.json']:
            raise CommandError(f'Unsupported file format: {file_path.suffix}')

        try:
            hotel = Hotel.objects.get(code=options['hotel_code'])
        except Hotel.DoesNotExist:
            raise CommandError(f"Hotel '{options['hotel_code']}' not found")

        validate_only = options['validate_only']
        is_json = file_path.suffix.lower() == '.json'
        service = PricingJsonService(hotel) if is_json else PricingImportService(hotel)
        label = service.ROW_LABEL

        self.stdout.write(f'Processing: {file_path.name} for {hotel.name}')
        self.stdout.write('')

        try:
            if is_json:
                result = service.import_payload(self._load_json(file_path), validate_only=validate_only)
            else:
                result = service.import_file(str(file_path), validate_only=validate_only)
        except PricingError as e:
            raise CommandError(f'Import failed, nothing was saved: {e.message}')

        stats = result['stats']

        if not result['success']:
            self.stdout.write(self.style.ERROR('✗ File has issues, nothing was imported'))
        elif validate_only:
            self.stdout.write(self.style.SUCCESS('✓ File is valid'))
        else:
            self.stdout.write(self.style.SUCCESS('✓ Import completed'))

        self.stdout.write('')
        self.stdout.write('Results:')
        self.stdout.write(f"  Total rows:    {stats['rows_total']}")
        self.stdout.write(f"  Valid:         {stats['rows_valid']}")
        self.stdout.write(f"  Skipped:       {stats['rows_skipped']}")
        if not validate_only:
            self.stdout.write(self.style.SUCCESS(f"  Committed:     {stats['rows_committed']}"))
            self.stdout.write(f"  Split others:  {stats['rows_split']}")

        errors = result['errors']
        if errors and (options['verbose'] or len(errors) <= 10):
            self.stdout.write('')
            self.stdout.write(self.style.ERROR(f"Errors ({len(errors)}):"))
            for error in errors[:20]:
                self.stdout.write(f"  {label} {error.get('row') or '-'} [{error.get('field', '-')}]: {error['message']}")
            if len(errors) > 20:
                self.stdout.write(f"  ... and {len(errors) - 20} more errors")
        elif errors:
            self.stdout.write('')
            self.stdout.write(self.style.ERROR(f"{len(errors)} errors (use --verbose to see details)"))

        if result['warnings']:
            self.stdout.write('')
            self.stdout.write(self.style.WARNING('Warnings:'))
            for warning in result['warnings']:
                self.stdout.write(f"  - {warning}")

        if options['verbose'] and result['previews']:
            self.stdout.write('')
            self.stdout.write('Previews:')
            for preview in result['previews']:
                self.stdout.write(f"  {label} {preview['row']}: {preview['message']}")

        if not result['success']:
            raise CommandError(f"{len(errors)} invalid rows")

    def _load_json(self, file_path):
        try:
            with open(file_path, encoding='utf-8-sig') as handle:
                return json.load(handle)
        except json.JSONDecodeError as e:
            raise CommandError(f'Invalid JSON in {file_path.name}: {e}')
