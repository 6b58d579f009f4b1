"""
Services package.

Re-exports all service classes so existing imports work:
    from hotel_rates.services import PeriodSplitService
"""

from .period_service import PeriodSplitService, CommitResult, make_candidate
from .storage import DjangoPeriodStore
from .references import ReferenceLookup
from .import_service import PricingImportService
from .json_service import PricingJsonService

__all__ = [
    'PeriodSplitService',
    'CommitResult',
    'make_candidate',
    'DjangoPeriodStore',
    'ReferenceLookup',
    'PricingImportService',
    'PricingJsonService',
]
