"""Tests for RecordStore refresh, lookup and search.

Verifies that:
  - A refresh replaces the whole record set with the ledger's contents
  - A failed refresh keeps the previous contents and reports the error
  - Entries whose data cannot be decoded keep their cached record or are
    skipped; a refresh that can read no entry at all counts as failed
  - Record ids derive from the business key and are stable across refreshes
  - A fetched ciphertext handle survives later refreshes
"""

import logging

import pytest

from genescreen.errors import RecordNotFound
from genescreen.models.record import derive_record_id

from fakes import ACCOUNT


# =====================================================================
# Refresh
# =====================================================================

class TestRefresh:

    @pytest.mark.asyncio
    async def test_loads_every_entry(self, ledger, store):
        ledger.add_entry("screening-1001", name="Panel A", disease_code=42)
        ledger.add_entry("screening-1002", name="Panel B", disease_code=7, verified_value=3)

        assert await store.refresh() is True
        assert store.loaded
        assert store.last_error is None

        records = {r.business_id: r for r in store.records}
        assert set(records) == {"screening-1001", "screening-1002"}
        assert records["screening-1001"].disease_code == 42
        assert records["screening-1001"].is_verified is False
        assert records["screening-1001"].decrypted_value is None
        assert records["screening-1002"].is_verified is True
        assert records["screening-1002"].decrypted_value == 3
        assert records["screening-1002"].creator == ACCOUNT

    @pytest.mark.asyncio
    async def test_refresh_replaces_rather_than_merges(self, ledger, store):
        ledger.add_entry("screening-1")
        ledger.add_entry("screening-2")
        await store.refresh()

        del ledger.entries["screening-1"]
        await store.refresh()

        assert [r.business_id for r in store.records] == ["screening-2"]

    @pytest.mark.asyncio
    async def test_failed_listing_keeps_previous_contents(self, ledger, store, notifier):
        ledger.add_entry("screening-1")
        await store.refresh()
        before = store.records

        ledger.listing_error = ConnectionError("rpc unavailable")
        assert await store.refresh() is False

        assert store.records == before, "previous records must survive a failed refresh"
        assert store.last_error == "rpc unavailable"
        assert notifier.current.status == "error"
        assert notifier.current.message == "Failed to load data"
        assert store.is_refreshing is False

    @pytest.mark.asyncio
    async def test_failed_first_load_leaves_store_empty(self, ledger, store):
        ledger.listing_error = ConnectionError("rpc unavailable")
        assert await store.refresh() is False
        assert store.records == ()
        assert store.loaded is False

    @pytest.mark.asyncio
    async def test_recovery_clears_last_error(self, ledger, store):
        ledger.listing_error = ConnectionError("rpc unavailable")
        await store.refresh()
        ledger.listing_error = None
        assert await store.refresh() is True
        assert store.last_error is None

    @pytest.mark.asyncio
    async def test_unreadable_entry_is_skipped(self, ledger, store):
        ledger.add_entry("screening-1")
        ledger.add_entry("screening-2")
        ledger.broken_ids.add("screening-1")

        assert await store.refresh() is True
        assert [r.business_id for r in store.records] == ["screening-2"]
        assert store.last_error == "Failed to load 1 of 2 records"

    @pytest.mark.asyncio
    async def test_unreadable_entry_keeps_cached_record(self, ledger, store):
        ledger.add_entry("screening-1", name="Panel A")
        ledger.add_entry("screening-2", name="Panel B")
        await store.refresh()
        cached = store.find("screening-1")

        ledger.broken_ids.add("screening-1")
        assert await store.refresh() is True

        assert store.find("screening-1") == cached
        assert len(store.records) == 2
        assert store.last_error is not None

    @pytest.mark.asyncio
    async def test_all_reads_failing_keeps_previous_contents(self, ledger, store, notifier):
        ledger.add_entry("screening-1")
        ledger.add_entry("screening-2")
        await store.refresh()
        before = store.records

        ledger.broken_ids.update({"screening-1", "screening-2"})
        assert await store.refresh() is False

        assert store.records == before, "an unreadable ledger must not empty the cache"
        assert store.last_error == "Failed to load all 2 records"
        assert notifier.current.message == "Failed to load data"

    @pytest.mark.asyncio
    async def test_all_reads_failing_on_first_load(self, ledger, store):
        ledger.add_entry("screening-1")
        ledger.broken_ids.add("screening-1")

        assert await store.refresh() is False
        assert store.loaded is False
        assert store.records == ()

    @pytest.mark.asyncio
    async def test_empty_ledger_is_a_successful_refresh(self, store):
        assert await store.refresh() is True
        assert store.loaded
        assert store.last_error is None

    @pytest.mark.asyncio
    async def test_out_of_domain_revealed_value_is_logged(self, ledger, store, caplog):
        ledger.add_entry("screening-1", verified_value=42)
        with caplog.at_level(logging.ERROR, logger="genescreen.store"):
            await store.refresh()
        assert "outside" in caplog.text
        assert store.find("screening-1").decrypted_value == 42

    @pytest.mark.asyncio
    async def test_zero_hint_maps_to_none(self, ledger, store):
        ledger.add_entry("screening-1", hint=0)
        ledger.add_entry("screening-2", hint=6)
        await store.refresh()
        assert store.find("screening-1").risk_level_public_hint is None
        assert store.find("screening-2").risk_level_public_hint == 6


# =====================================================================
# Identity and handles
# =====================================================================

class TestIdentity:

    def test_id_from_business_key_digits(self):
        assert derive_record_id("screening-1718000000000", 1) == 1718000000000

    def test_id_falls_back_to_creation_time(self):
        assert derive_record_id("imported-batch", 1_700_000_000) == 1_700_000_000_000

    @pytest.mark.asyncio
    async def test_ids_are_stable_across_refreshes(self, ledger, store):
        ledger.add_entry("screening-55")
        ledger.add_entry("legacy-key", timestamp=1_600_000_000)
        await store.refresh()
        first = {r.business_id: r.id for r in store.records}
        await store.refresh()
        second = {r.business_id: r.id for r in store.records}

        assert first == second
        assert first == {"screening-55": 55, "legacy-key": 1_600_000_000_000}

    @pytest.mark.asyncio
    async def test_attached_handle_survives_refresh(self, ledger, store):
        ledger.add_entry("screening-1")
        await store.refresh()

        store.attach_handle("screening-1", "0xabc")
        assert store.find("screening-1").encrypted_value_handle == "0xabc"

        await store.refresh()
        assert store.find("screening-1").encrypted_value_handle == "0xabc"

    def test_attach_handle_ignores_unknown_records(self, store):
        store.attach_handle("screening-404", "0xabc")
        assert store.records == ()


# =====================================================================
# Lookup, search and statistics
# =====================================================================

class TestLookup:

    @pytest.fixture(autouse=True)
    def _entries(self, ledger):
        ledger.add_entry("screening-1", name="BRCA Panel", hint=9)
        ledger.add_entry("screening-2", name="Cardio Panel", verified_value=4)
        ledger.add_entry("screening-3", name="Metabolic")

    @pytest.mark.asyncio
    async def test_find_by_business_id_and_numeric_id(self, store):
        await store.refresh()
        assert store.find("screening-2").name == "Cardio Panel"
        assert store.find(3).name == "Metabolic"
        assert store.find(99) is None
        assert store.find("screening-99") is None

    @pytest.mark.asyncio
    async def test_get_raises_for_missing(self, store):
        await store.refresh()
        with pytest.raises(RecordNotFound):
            store.get("screening-99")

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive(self, store):
        await store.refresh()
        names = sorted(r.name for r in store.search("PANEL"))
        assert names == ["BRCA Panel", "Cardio Panel"]
        assert [r.name for r in store.search("screening-3")] == ["Metabolic"]
        assert len(store.search("")) == 3
        assert len(store.search(None)) == 3

    @pytest.mark.asyncio
    async def test_statistics(self, store):
        await store.refresh()
        stats = store.statistics()
        assert stats.total == 3
        assert stats.verified == 1
        # 9 (hint) + 4 (verified) + 5 (default)
        assert stats.average_risk == pytest.approx(6.0)
        assert stats.high_risk == 1
