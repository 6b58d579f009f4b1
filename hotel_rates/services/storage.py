"""
Persistence adapter for pricing periods.

The splitting engine only needs list / get / delete-many / create-many and
a transaction scope that holds the per-group locks. DjangoPeriodStore
provides those over HotelPricing.
"""

import logging
from contextlib import contextmanager

from django.db import DatabaseError, OperationalError, transaction

from hotel_rates.models import HotelPricing, PricingGroupLock
from hotel_rates.splitting.exceptions import StorageError

logger = logging.getLogger(__name__)


class DjangoPeriodStore:
    """
    Storage contract used by PeriodSplitService.

    Usage:
        store = DjangoPeriodStore()
        with store.atomic([group_key]):
            periods = store.list_periods(group_key)
            store.delete_many([p.id for p in periods])
            store.create_many(new_periods)
    """

    def list_periods(self, group_key):
        return [row.to_period() for row in HotelPricing.for_group(group_key)]

    def get_period(self, period_id):
        row = HotelPricing.objects.filter(pk=period_id).first()
        return row.to_period() if row else None

    def delete_many(self, ids):
        ids = [pk for pk in ids if pk is not None]
        if not ids:
            return
        HotelPricing.objects.filter(pk__in=ids).delete()

    def create_many(self, periods):
        """
        Persist periods in order and return them with their new ids.

        Rows are saved one by one so every backend hands back primary keys.
        """
        created = []
        for period in periods:
            row = HotelPricing.from_period(period)
            row.save()
            created.append(row.to_period())
        return created

    def in_transaction(self):
        """True when a caller already holds an open transaction on this connection."""
        return transaction.get_connection().in_atomic_block

    @contextmanager
    def atomic(self, group_keys):
        """
        One transaction holding the lock row of every group in ``group_keys``.

        Locks are taken in sorted key order so two edits moving periods
        between the same pair of groups cannot deadlock. Database failures
        roll everything back and surface as StorageError; other exceptions
        raised inside the block roll back and propagate unchanged.
        """
        lock_keys = sorted({key.as_lock_key() for key in group_keys})
        try:
            with transaction.atomic():
                for lock_key in lock_keys:
                    self._lock_group(lock_key)
                yield self
        except DatabaseError as e:
            logger.warning("Pricing transaction rolled back for %s: %s", lock_keys, e)
            raise StorageError(transient=isinstance(e, OperationalError)) from e

    def _lock_group(self, lock_key):
        PricingGroupLock.objects.get_or_create(key=lock_key)
        PricingGroupLock.objects.select_for_update().get(key=lock_key)
