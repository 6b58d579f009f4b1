"""
Import service: bulk-load hotel pricing periods from Excel/CSV sheets.
"""

import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, List, Optional, Any

import pandas as pd
from dateutil import parser as date_parser
from django.db import transaction

from hotel_rates.splitting import GroupKey, overlaps
from hotel_rates.splitting.exceptions import ValidationError

from .period_service import PeriodSplitService, make_candidate


logger = logging.getLogger(__name__)


class PricingImportService:
    """
    Import pricing periods for one hotel from a spreadsheet.

    Expected columns (any alias, case and punctuation insensitive):
        room_type | occupancy_type | meal_plan | start_date | end_date | price | is_active

    Every valid row goes through PeriodSplitService.commit in file order, so
    a later row splits whatever earlier rows (or existing prices) it overlaps.
    All rows are committed in one transaction: one failure imports nothing.

    Usage:
        service = PricingImportService(hotel)
        result = service.import_file('rates_2026.xlsx', validate_only=True)
    """

    COLUMN_ALIASES = {
        'room_type': ['room_type', 'room_type_name', 'roomtype', 'room'],
        'occupancy_type': ['occupancy_type', 'occupancy_type_name', 'occupancy', 'pax'],
        'meal_plan': ['meal_plan', 'meal_plan_code', 'mealplan', 'plan'],
        'start_date': ['start_date', 'from', 'from_date', 'start'],
        'end_date': ['end_date', 'to', 'to_date', 'end'],
        'price': ['price', 'price_per_night', 'rate', 'amount'],
        'is_active': ['is_active', 'active', 'status'],
    }

    REQUIRED_COLUMNS = ['room_type', 'occupancy_type', 'start_date', 'end_date', 'price']

    DATE_FORMATS = [
        '%Y-%m-%d',    # 2026-01-02
        '%d/%m/%Y',    # 02/01/2026
        '%d-%m-%Y',    # 02-01-2026
        '%d.%m.%Y',    # 02.01.2026
        '%Y/%m/%d',    # 2026/01/02
        '%d %b %Y',    # 02 Jan 2026
        '%d %B %Y',    # 02 January 2026
    ]

    # Labels used in warnings; the JSON importer numbers entries instead of rows
    ROW_LABEL = 'Row'
    ROWS_LABEL = 'Rows'

    TRUE_VALUES = {'true', 't', 'yes', 'y', '1', 'active', 'enabled'}
    FALSE_VALUES = {'false', 'f', 'no', 'n', '0', 'inactive', 'disabled'}

    def __init__(self, hotel, period_service=None):
        """
        Args:
            hotel: Hotel instance the rows belong to
            period_service: PeriodSplitService (created if not given)
        """
        self.hotel = hotel
        self.period_service = period_service or PeriodSplitService()
        self.errors = []
        self.warnings = []
        self.stats = {
            'rows_total': 0,
            'rows_valid': 0,
            'rows_skipped': 0,
            'rows_committed': 0,
            'rows_split': 0,
        }

    # =========================================================================
    # ENTRY POINT
    # =========================================================================

    def import_file(self, file_path: str, validate_only: bool = False) -> Dict:
        """
        Parse, validate and (unless ``validate_only``) commit a pricing sheet.

        Returns:
            Dict with stats, errors, warnings and per-row previews
        """
        file_path = Path(file_path)
        df = self._read_file(file_path)
        df = self._map_columns(df)

        missing = [col for col in self.REQUIRED_COLUMNS if col not in df.columns]
        if missing:
            for column in missing:
                self.errors.append({
                    'row': 1, 'field': column,
                    'message': f'Missing required column "{column}"',
                })
            return self._build_result(file_path, validate_only, [])

        rows = self.parse_rows(df)
        self._warn_batch_overlaps(rows)
        previews = self._warn_existing_overlaps(rows)

        if not validate_only and rows and not self.errors:
            self._apply(rows)
        elif not validate_only and self.errors:
            logger.info("Import of %s aborted: %s invalid rows", file_path.name, len(self.errors))

        return self._build_result(file_path, validate_only, previews)

    # =========================================================================
    # READING
    # =========================================================================

    def _read_file(self, file_path: Path):
        suffix = file_path.suffix.lower()
        if suffix in ['.xlsx', '.xls']:
            df = pd.read_excel(file_path, dtype=object)
        elif suffix == '.csv':
            df = pd.read_csv(file_path, dtype=str, keep_default_na=False, encoding='utf-8-sig')
        else:
            raise ValueError(f'Unsupported file format: {suffix}')
        return df.dropna(how='all')

    @staticmethod
    def _normalize_header(label) -> str:
        text = str(label).strip().lower()
        normalized = ''.join(ch if ch.isalnum() else '_' for ch in text)
        while '__' in normalized:
            normalized = normalized.replace('__', '_')
        return normalized.strip('_')

    def _map_columns(self, df):
        """Rename known aliases to canonical column names."""
        rename = {}
        taken = set()
        for column in df.columns:
            normalized = self._normalize_header(column)
            for canonical, aliases in self.COLUMN_ALIASES.items():
                if canonical not in taken and normalized in aliases:
                    rename[column] = canonical
                    taken.add(canonical)
                    break
        return df.rename(columns=rename)

    # =========================================================================
    # PARSING
    # =========================================================================

    def _reference_maps(self) -> Dict[str, Dict[str, int]]:
        from hotel_rates.models import RoomType, OccupancyType, MealPlan

        meal_plans = {}
        for plan in MealPlan.objects.filter(is_active=True):
            meal_plans[plan.code.lower()] = plan.id
            meal_plans.setdefault(plan.name.lower(), plan.id)

        return {
            'room_type': {
                rt.name.lower(): rt.id for rt in RoomType.objects.filter(is_active=True)
            },
            'occupancy_type': {
                ot.name.lower(): ot.id for ot in OccupancyType.objects.filter(is_active=True)
            },
            'meal_plan': meal_plans,
        }

    def parse_rows(self, df) -> List[Dict]:
        """
        Turn DataFrame rows into candidates, collecting row errors.

        Spreadsheet row numbers count the header as row 1.
        """
        maps = self._reference_maps()
        rows = []

        for position, (_, row) in enumerate(df.iterrows()):
            row_number = position + 2
            self.stats['rows_total'] += 1
            parsed = self._parse_row(row, row_number, maps)
            if parsed is None:
                self.stats['rows_skipped'] += 1
                continue
            rows.append(parsed)
            self.stats['rows_valid'] += 1

        return rows

    def _parse_row(self, row, row_number: int, maps: Dict) -> Optional[Dict]:
        row_errors = []

        def lookup(field):
            raw = self._clean(row.get(field))
            if raw is None:
                return raw, None
            return raw, maps[field].get(raw.lower())

        room_raw, room_type_id = lookup('room_type')
        if room_raw is None:
            row_errors.append(('room_type', 'Room type is required'))
        elif room_type_id is None:
            row_errors.append(('room_type', f'Room type "{room_raw}" not found or inactive'))

        occ_raw, occupancy_type_id = lookup('occupancy_type')
        if occ_raw is None:
            row_errors.append(('occupancy_type', 'Occupancy type is required'))
        elif occupancy_type_id is None:
            row_errors.append(('occupancy_type', f'Occupancy type "{occ_raw}" not found or inactive'))

        meal_raw, meal_plan_id = lookup('meal_plan')
        if meal_raw is not None and meal_plan_id is None:
            row_errors.append(('meal_plan', f'Meal plan "{meal_raw}" not found or inactive'))

        start_date = self._parse_date(row.get('start_date'))
        end_date = self._parse_date(row.get('end_date'))
        if start_date is None:
            row_errors.append(('start_date', 'Start date is invalid or missing'))
        if end_date is None:
            row_errors.append(('end_date', 'End date is invalid or missing'))

        price = self._parse_decimal(row.get('price'))
        if price is None:
            row_errors.append(('price', 'Price must be a valid number'))

        is_active = self._parse_bool(row.get('is_active'), default=True)

        if not row_errors:
            try:
                candidate = make_candidate(
                    GroupKey(self.hotel.id, room_type_id, occupancy_type_id, meal_plan_id),
                    (start_date, end_date),
                    price,
                    is_active=is_active,
                )
            except ValidationError as e:
                row_errors.extend(e.errors.items())

        if row_errors:
            for field, message in row_errors:
                self.errors.append({'row': row_number, 'field': field, 'message': message})
            return None

        return {'row': row_number, 'candidate': candidate}

    @staticmethod
    def _clean(value) -> Optional[str]:
        if value is None or (not isinstance(value, str) and pd.isna(value)):
            return None
        text = str(value).strip()
        if not text or text.lower() == 'nan':
            return None
        return text

    def _parse_date(self, value) -> Optional[date]:
        """Parse date from spreadsheet cells or common text formats."""
        if value is None or (not isinstance(value, str) and pd.isna(value)):
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value

        text = self._clean(value)
        if text is None:
            return None

        for fmt in self.DATE_FORMATS:
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue

        try:
            return date_parser.parse(text, dayfirst=True).date()
        except (ValueError, OverflowError):
            return None

    def _parse_decimal(self, value) -> Optional[Decimal]:
        text = self._clean(value)
        if text is None:
            return None
        text = text.replace(',', '').replace('₹', '').replace('$', '').strip()
        try:
            parsed = Decimal(text)
        except (InvalidOperation, ValueError):
            return None
        return parsed if parsed.is_finite() else None

    def _parse_bool(self, value, default: bool = True) -> bool:
        if isinstance(value, bool):
            return value
        text = self._clean(value)
        if text is None:
            return default
        normalized = text.lower()
        if normalized in self.TRUE_VALUES:
            return True
        if normalized in self.FALSE_VALUES:
            return False
        return default

    # =========================================================================
    # OVERLAP WARNINGS
    # =========================================================================

    def _warn_batch_overlaps(self, rows: List[Dict]) -> None:
        """Warn about rows of this sheet that overlap each other."""
        for i, first in enumerate(rows):
            for second in rows[i + 1:]:
                a, b = first['candidate'], second['candidate']
                if a.group_key == b.group_key and overlaps(a.date_range, b.date_range):
                    self.warnings.append(
                        f"{self.ROWS_LABEL} {first['row']} and {second['row']} have overlapping dates for the "
                        f"same room/occupancy/meal combination; {self.ROW_LABEL.lower()} {second['row']} wins"
                    )

    def _warn_existing_overlaps(self, rows: List[Dict]) -> List[Dict[str, Any]]:
        """Preview every row against current pricing and warn about splits."""
        previews = []
        for parsed in rows:
            preview = self.period_service.preview(parsed['candidate'])
            if preview.will_split:
                ranges = ', '.join(p['label'] for p in preview.affected_periods)
                self.warnings.append(
                    f"{self.ROW_LABEL} {parsed['row']} overlaps existing pricing ({ranges}) which will be split"
                )
            previews.append({'row': parsed['row'], **preview.to_dict()})
        return previews

    # =========================================================================
    # APPLY
    # =========================================================================

    def _apply(self, rows: List[Dict]) -> None:
        with transaction.atomic():
            for parsed in rows:
                result = self.period_service.commit(parsed['candidate'])
                self.stats['rows_committed'] += 1
                if result.plan.will_split:
                    self.stats['rows_split'] += 1
        logger.info(
            "Imported %s pricing rows for %s (%s split existing periods)",
            self.stats['rows_committed'], self.hotel.code, self.stats['rows_split']
        )

    def _build_result(self, file_path: Path, validate_only: bool, previews: List[Dict]) -> Dict:
        return {
            'success': not self.errors,
            'file_name': file_path.name,
            'validate_only': validate_only,
            'stats': dict(self.stats),
            'errors': list(self.errors),
            'warnings': list(self.warnings),
            'previews': previews,
        }
