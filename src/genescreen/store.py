"""RecordStore — in-memory cache of screening records read from the ledger.

The store is the single source of truth for callers that list, search or
analyse records.  ``refresh()`` builds a completely new mapping and swaps it
in with one assignment, so readers see either the old set or the new one,
never a mix.  A failed refresh keeps the previous contents.
"""

from __future__ import annotations

import asyncio
import logging
from types import MappingProxyType
from typing import Mapping

from genescreen.constants import RISK_LEVEL_MAX, RISK_LEVEL_MIN
from genescreen.errors import RecordNotFound
from genescreen.interfaces import LedgerReader
from genescreen.models.analysis import ScreeningStatistics
from genescreen.models.record import ScreeningRecord
from genescreen.notifications import Notifier
from genescreen.risk import summarize

logger = logging.getLogger(__name__)


class RecordStore:
    """Cache of ``ScreeningRecord`` keyed by business id.

    Args:
        reader: ledger read client
        notifier: optional sink for the transient "Failed to load data" error
    """

    def __init__(self, reader: LedgerReader, notifier: Notifier | None = None) -> None:
        self._reader = reader
        self._notifier = notifier
        self._records: Mapping[str, ScreeningRecord] = MappingProxyType({})
        self._lock = asyncio.Lock()
        self._refreshing = False
        self._loaded = False
        self._last_error: str | None = None

    # ------------------------------------------------------------------
    # Read API
    # ------------------------------------------------------------------

    @property
    def records(self) -> tuple[ScreeningRecord, ...]:
        return tuple(self._records.values())

    @property
    def is_refreshing(self) -> bool:
        return self._refreshing

    @property
    def loaded(self) -> bool:
        """True once at least one refresh has succeeded."""
        return self._loaded

    @property
    def last_error(self) -> str | None:
        return self._last_error

    def find(self, key: str | int) -> ScreeningRecord | None:
        """Look a record up by business id or numeric id."""
        if isinstance(key, str):
            return self._records.get(key)
        for record in self._records.values():
            if record.id == key:
                return record
        return None

    def get(self, business_id: str) -> ScreeningRecord:
        """Like :meth:`find` but raise ``RecordNotFound`` when absent."""
        record = self._records.get(business_id)
        if record is None:
            raise RecordNotFound(f"Screening not found: {business_id}")
        return record

    def search(self, term: str | None) -> list[ScreeningRecord]:
        """Case-insensitive substring match on name or business id."""
        if not term:
            return list(self._records.values())
        needle = term.lower()
        return [
            r for r in self._records.values()
            if needle in r.name.lower() or needle in r.business_id.lower()
        ]

    def statistics(self) -> ScreeningStatistics:
        return summarize(self._records.values())

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    async def refresh(self) -> bool:
        """Re-read every record from the ledger and replace the cache.

        Returns ``True`` on success.  On failure the previous contents are
        kept, ``last_error`` is set and ``False`` is returned; the error is
        never raised to the caller.  An entry whose data cannot be read keeps
        its cached record, or is skipped if it has none, and ``last_error``
        names the shortfall.  If no listed entry can be read the refresh
        counts as failed.
        """
        async with self._lock:
            self._refreshing = True
            try:
                try:
                    business_ids = await self._reader.get_all_business_ids()
                except Exception as exc:
                    self._last_error = str(exc) or type(exc).__name__
                    logger.warning("Failed to load business ids: %s", exc)
                    if self._notifier is not None:
                        self._notifier.error("Failed to load data")
                    return False

                fresh: dict[str, ScreeningRecord] = {}
                failed: list[str] = []
                for business_id in business_ids:
                    previous = self._records.get(business_id)
                    try:
                        data = await self._reader.get_business_data(business_id)
                    except Exception as exc:
                        logger.error("Error loading business data %s: %s", business_id, exc)
                        failed.append(business_id)
                        if previous is not None:
                            fresh[business_id] = previous
                        continue
                    record = ScreeningRecord.from_business_data(business_id, data)
                    self._check_revealed_value(record)
                    # Keep a handle fetched earlier; the ciphertext never changes.
                    if previous is not None and previous.encrypted_value_handle:
                        record = record.model_copy(
                            update={"encrypted_value_handle": previous.encrypted_value_handle}
                        )
                    fresh[business_id] = record

                if business_ids and len(failed) == len(business_ids):
                    self._last_error = f"Failed to load all {len(failed)} records"
                    logger.warning("Refresh aborted: %s", self._last_error)
                    if self._notifier is not None:
                        self._notifier.error("Failed to load data")
                    return False

                self._records = MappingProxyType(fresh)
                self._loaded = True
                self._last_error = (
                    f"Failed to load {len(failed)} of {len(business_ids)} records"
                    if failed else None
                )
                logger.info("Record store refreshed: %d records", len(fresh))
                return True
            finally:
                self._refreshing = False

    def attach_handle(self, business_id: str, handle: str) -> None:
        """Remember the ciphertext handle fetched for ``business_id``."""
        record = self._records.get(business_id)
        if record is None or record.encrypted_value_handle == handle:
            return
        updated = dict(self._records)
        updated[business_id] = record.model_copy(update={"encrypted_value_handle": handle})
        self._records = MappingProxyType(updated)

    @staticmethod
    def _check_revealed_value(record: ScreeningRecord) -> None:
        if record.decrypted_value is None:
            return
        if not RISK_LEVEL_MIN <= record.decrypted_value <= RISK_LEVEL_MAX:
            logger.error(
                "Verified value %d for %s is outside [%d, %d]",
                record.decrypted_value, record.business_id,
                RISK_LEVEL_MIN, RISK_LEVEL_MAX,
            )
