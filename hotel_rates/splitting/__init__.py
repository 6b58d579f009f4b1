"""
Pricing-period splitting engine.

Pure, database-free building blocks used by PeriodSplitService:
    from hotel_rates.splitting import DateRange, GroupKey, Candidate, resolve
"""

from .intervals import DateRange, overlaps, contains, fragments_outside
from .periods import GroupKey, PricingPeriod, Candidate, ResolutionPlan
from .detector import find_overlapping
from .resolver import resolve
from .preview import PreviewResult, build_preview, overlap_fingerprint
from .exceptions import (
    PricingError,
    ValidationError,
    ConflictError,
    StorageError,
    PeriodNotFound,
)

__all__ = [
    # Interval math
    'DateRange', 'overlaps', 'contains', 'fragments_outside',
    # Value types
    'GroupKey', 'PricingPeriod', 'Candidate', 'ResolutionPlan',
    # Resolution
    'find_overlapping', 'resolve',
    # Preview
    'PreviewResult', 'build_preview', 'overlap_fingerprint',
    # Errors
    'PricingError', 'ValidationError', 'ConflictError', 'StorageError', 'PeriodNotFound',
]
