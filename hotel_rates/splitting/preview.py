"""
Preview rendering: turn a resolution plan into something a user can confirm.
"""

import hashlib
from dataclasses import dataclass, field
from typing import Dict, List, Optional

DEFAULT_DATE_FORMAT = '%d %b %Y'


def overlap_fingerprint(overlapping, candidate=None):
    """
    Digest of a candidate and the overlap set its plan was derived from.

    Commit recomputes it from a fresh read; any difference in the
    candidate (group, range, price, status, edited id) or in the overlapped
    periods' ids, ranges, prices or status means the user confirmed a split
    that no longer applies.
    """
    digest = hashlib.sha256()
    if candidate is not None:
        head = (
            candidate.group_key.as_lock_key(),
            candidate.date_range.start.isoformat(),
            candidate.date_range.end.isoformat(),
            str(candidate.price),
            candidate.is_active,
            candidate.exclude_id or '-',
        )
        digest.update(b'candidate|')
        digest.update('|'.join(str(part) for part in head).encode('utf-8'))
        digest.update(b'\n')
    rows = sorted(
        (p.id or 0, p.start_date.isoformat(), p.end_date.isoformat(), str(p.price), p.is_active)
        for p in overlapping
    )
    for row in rows:
        digest.update('|'.join(str(part) for part in row).encode('utf-8'))
        digest.update(b'\n')
    return digest.hexdigest()


@dataclass(frozen=True)
class PreviewResult:
    will_split: bool
    affected_periods: List[Dict] = field(default_factory=list)
    resulting_periods: List[Dict] = field(default_factory=list)
    message: str = ''
    fingerprint: Optional[str] = None

    def to_dict(self):
        return {
            'willSplit': self.will_split,
            'affectedPeriods': self.affected_periods,
            'resultingPeriods': self.resulting_periods,
            'message': self.message,
            'fingerprint': self.fingerprint,
        }


def _format_range(period, date_format):
    start = period.start_date.strftime(date_format)
    end = period.end_date.strftime(date_format)
    return start if start == end else f'{start} - {end}'


def build_preview(candidate, overlapping, plan, labels=None,
                  date_format=DEFAULT_DATE_FORMAT, currency_symbol=''):
    """
    Render a PreviewResult.

    Args:
        candidate: Candidate being inserted
        overlapping: periods the plan deletes
        plan: ResolutionPlan from ``resolve``
        labels: dict with 'roomType', 'occupancy', 'mealPlan' display names
        date_format: strftime pattern for the human-readable range
        currency_symbol: prefix for prices in the message

    Returns:
        PreviewResult
    """
    labels = labels or {}
    affected = []
    for period in overlapping:
        affected.append({
            'id': period.id,
            'startDate': period.start_date.isoformat(),
            'endDate': period.end_date.isoformat(),
            'price': str(period.price),
            'isActive': period.is_active,
            'label': _format_range(period, date_format),
            'roomType': labels.get('roomType', ''),
            'occupancy': labels.get('occupancy', ''),
            'mealPlan': labels.get('mealPlan'),
        })

    resulting = []
    for period in sorted(plan.to_create, key=lambda p: (p.start_date, p.end_date)):
        resulting.append({
            'startDate': period.start_date.isoformat(),
            'endDate': period.end_date.isoformat(),
            'price': str(period.price),
            'isActive': period.is_active,
            'label': _format_range(period, date_format),
            'isNew': period.is_new,
            'isExisting': not period.is_new,
        })

    new_label = _format_range(candidate.as_period(), date_format)
    price_label = f'{currency_symbol}{candidate.price}'
    if plan.will_split:
        count = len(overlapping)
        noun = 'period' if count == 1 else 'periods'
        message = (
            f'{count} existing pricing {noun} overlap {new_label}. '
            f'They will be split so that {new_label} is priced at {price_label} '
            f'and the remaining nights keep their current prices.'
        )
    else:
        message = f'No overlapping pricing periods. {new_label} will be added at {price_label}.'

    return PreviewResult(
        will_split=plan.will_split,
        affected_periods=affected,
        resulting_periods=resulting,
        message=message,
        fingerprint=overlap_fingerprint(overlapping, candidate),
    )
