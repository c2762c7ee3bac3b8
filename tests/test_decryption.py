"""Tests for DecryptionCoordinator.

Verifies that:
  - An unverified record is revealed once, through the proof protocol
  - A verified record returns its stored value without a proof request
  - Concurrent requests for the same record never both reach the proof step,
    while different records proceed in parallel
  - Losing a reveal race resolves to ``already_verified``
  - Wallet, proof and protocol failures surface as typed failed results
  - A stale result is discarded without touching the store
"""

import asyncio
import logging

import pytest

from genescreen.decryption import DecryptionCoordinator
from genescreen.errors import AlreadyVerified
from genescreen.fhe import FheRuntime
from genescreen.models.session import DecryptionState, SessionStatus

from fakes import ACCOUNT, CONTRACT

BID = "screening-1001"


async def wait_until(predicate, *, attempts: int = 100) -> None:
    """Yield to the event loop until ``predicate()`` holds."""
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


def seed(ledger, sdk, business_id: str = BID, value: int = 6, **kwargs) -> str:
    """Add an unverified entry whose ciphertext decrypts to ``value``."""
    handle = ledger.add_entry(business_id, **kwargs)
    sdk.register(handle, value)
    return handle


# =====================================================================
# Reveal paths
# =====================================================================

class TestReveal:

    @pytest.mark.asyncio
    async def test_reveals_unverified_record(self, decryption, ledger, sdk, store, notifier):
        handle = seed(ledger, sdk, value=6)
        await store.refresh()

        result = await decryption.decrypt(BID, ACCOUNT)

        assert result.status == "verified", result.message
        assert result.value == 6
        assert result.final_state is DecryptionState.VERIFIED
        assert result.stale is False
        assert sdk.proof_calls == [[handle]]
        assert ledger.verify_calls == [BID]

        record = store.find(BID)
        assert record.is_verified is True
        assert record.decrypted_value == 6
        assert record.encrypted_value_handle == handle
        assert decryption.state(BID) is DecryptionState.VERIFIED
        assert notifier.current.message == "Data decrypted and verified successfully!"

    @pytest.mark.asyncio
    async def test_already_verified_skips_proof(self, decryption, ledger, sdk, notifier):
        seed(ledger, sdk, verified_value=8)

        result = await decryption.decrypt(BID, ACCOUNT)

        assert result.status == "already_verified"
        assert result.value == 8
        assert result.final_state is DecryptionState.ALREADY_VERIFIED
        assert sdk.proof_calls == [], "a verified record must not start the proof protocol"
        assert ledger.verify_calls == []
        assert notifier.current.message == "Data already verified on-chain"

    @pytest.mark.asyncio
    async def test_out_of_domain_stored_value_is_logged(self, decryption, ledger, sdk, caplog):
        seed(ledger, sdk, verified_value=42)

        with caplog.at_level(logging.ERROR, logger="genescreen.decryption"):
            result = await decryption.decrypt(BID, ACCOUNT)

        assert result.status == "already_verified"
        assert result.value == 42, "the ledger's value is returned as stored"
        assert "outside" in caplog.text
        assert sdk.proof_calls == []

    @pytest.mark.asyncio
    async def test_second_request_returns_stored_value(self, decryption, ledger, sdk):
        seed(ledger, sdk, value=4)

        first = await decryption.decrypt(BID, ACCOUNT)
        second = await decryption.decrypt(BID, ACCOUNT)

        assert first.status == "verified"
        assert second.status == "already_verified"
        assert second.value == first.value == 4
        assert len(sdk.proof_calls) == 1

    @pytest.mark.asyncio
    async def test_round_trip_from_submission(self, submission, decryption, store):
        created = await submission.submit("Panel A", 42, 7, ACCOUNT)
        assert created.ok

        result = await decryption.decrypt(created.business_id, ACCOUNT)

        assert result.value == 7
        assert store.find(created.business_id).decrypted_value == 7


# =====================================================================
# Concurrency
# =====================================================================

class TestConcurrency:

    @pytest.mark.asyncio
    async def test_same_record_is_single_flight(self, decryption, ledger, sdk):
        seed(ledger, sdk)
        sdk.proof_gate = asyncio.Event()

        first = asyncio.create_task(decryption.decrypt(BID, ACCOUNT))
        await sdk.proof_started.wait()

        assert decryption.is_decrypting(BID)
        second = await decryption.decrypt(BID, ACCOUNT)
        assert second.status == "failed"
        assert second.error == "decryption_in_progress"
        assert second.message == "Decryption already in progress"

        sdk.proof_gate.set()
        outcome = await first
        assert outcome.status == "verified"
        assert len(sdk.proof_calls) == 1, "only one request may reach the proof step"
        assert not decryption.is_decrypting(BID)

    @pytest.mark.asyncio
    async def test_different_records_run_in_parallel(self, decryption, ledger, sdk):
        seed(ledger, sdk, "screening-1", value=2)
        seed(ledger, sdk, "screening-2", value=9)
        sdk.proof_gate = asyncio.Event()

        tasks = [
            asyncio.create_task(decryption.decrypt("screening-1", ACCOUNT)),
            asyncio.create_task(decryption.decrypt("screening-2", ACCOUNT)),
        ]
        await wait_until(lambda: len(sdk.proof_calls) == 2)
        assert decryption.is_decrypting("screening-1")
        assert decryption.is_decrypting("screening-2")

        sdk.proof_gate.set()
        results = await asyncio.gather(*tasks)
        assert [r.value for r in results] == [2, 9]

    @pytest.mark.asyncio
    async def test_session_tracks_protocol_progress(self, decryption, ledger, sdk, notifier, store):
        seed(ledger, sdk)
        await store.refresh()
        sdk.proof_gate = asyncio.Event()
        ledger.confirmation_gate = asyncio.Event()

        task = asyncio.create_task(decryption.decrypt(BID, ACCOUNT))
        await sdk.proof_started.wait()
        session = decryption.active_session(BID)
        assert session.status is SessionStatus.PROVING
        assert session.record_id == 1001
        assert decryption.state(BID) is DecryptionState.REQUESTING_PROOF

        sdk.proof_gate.set()
        await wait_until(lambda: ledger.verify_calls == [BID])
        await asyncio.sleep(0)
        assert session.status is SessionStatus.SUBMITTED
        assert decryption.state(BID) is DecryptionState.AWAITING_CONFIRMATION
        assert notifier.current.message == "Verifying decryption on-chain..."

        ledger.confirmation_gate.set()
        await task
        assert session.status is SessionStatus.CONFIRMED
        assert decryption.active_session(BID) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("race_error", [
        None,
        RuntimeError("execution reverted: Data already verified"),
    ])
    async def test_lost_race_returns_stored_value(self, decryption, ledger, sdk, race_error):
        seed(ledger, sdk, value=6)
        sdk.proof_gate = asyncio.Event()

        task = asyncio.create_task(decryption.decrypt(BID, ACCOUNT))
        await sdk.proof_started.wait()

        # Another client reveals the value while our proof is in flight
        ledger.entries[BID] = ledger.entries[BID].model_copy(
            update={"is_verified": True, "decrypted_value": 6}
        )
        ledger.verify_error = race_error
        sdk.proof_gate.set()
        result = await task

        assert result.status == "already_verified"
        assert result.value == 6
        assert result.error is None
        assert decryption.state(BID) is DecryptionState.ALREADY_VERIFIED


# =====================================================================
# Failures
# =====================================================================

class TestFailures:

    @pytest.mark.asyncio
    async def test_requires_connected_wallet(self, decryption, ledger, sdk):
        seed(ledger, sdk)
        result = await decryption.decrypt(BID, None)
        assert result.error == "not_connected"
        assert decryption.state(BID) is DecryptionState.NOT_REQUESTED

    @pytest.mark.asyncio
    async def test_unknown_record(self, decryption):
        result = await decryption.decrypt("screening-404", ACCOUNT)
        assert result.error == "not_found"
        assert result.final_state is DecryptionState.FAILED

    @pytest.mark.asyncio
    async def test_user_rejection(self, decryption, ledger, sdk, notifier):
        seed(ledger, sdk)
        ledger.reject_signing = True

        result = await decryption.decrypt(BID, ACCOUNT)

        assert result.error == "user_rejected"
        assert result.message == "Transaction rejected by user"
        assert notifier.current.status == "error"
        assert ledger.entries[BID].is_verified is False

    @pytest.mark.asyncio
    async def test_proof_failure(self, decryption, ledger, sdk):
        seed(ledger, sdk)
        sdk.proof_error = RuntimeError("kms threshold not reached")

        result = await decryption.decrypt(BID, ACCOUNT)

        assert result.error == "proof_failed"
        assert result.message == "Decryption failed: kms threshold not reached"
        assert decryption.state(BID) is DecryptionState.FAILED
        assert ledger.verify_calls == []

    @pytest.mark.asyncio
    async def test_proof_without_confirmation(self, decryption, ledger, sdk):
        seed(ledger, sdk)
        sdk.skip_submit = True

        result = await decryption.decrypt(BID, ACCOUNT)

        assert result.error == "proof_failed"
        assert "not confirmed" in result.message

    @pytest.mark.asyncio
    async def test_confirmation_failure(self, decryption, ledger, sdk):
        seed(ledger, sdk)
        ledger.verify_error = RuntimeError("out of gas")

        result = await decryption.decrypt(BID, ACCOUNT)

        assert result.error == "transaction_failed"
        assert result.message == "Decryption failed: out of gas"

    @pytest.mark.asyncio
    async def test_not_initialized(self, sdk, ledger, store, notifier):
        seed(ledger, sdk)
        coordinator = DecryptionCoordinator(
            sdk, FheRuntime(sdk, notifier), ledger, ledger, store, CONTRACT,
            notifier=notifier,
        )

        result = await coordinator.decrypt(BID, ACCOUNT)

        assert result.error == "not_initialized"
        assert sdk.proof_calls == []

    @pytest.mark.asyncio
    async def test_out_of_domain_value_is_protocol_violation(self, decryption, ledger, sdk):
        handle = seed(ledger, sdk)
        sdk.value_overrides[handle] = 42

        result = await decryption.decrypt(BID, ACCOUNT)

        assert result.status == "failed"
        assert result.error == "protocol_violation"

    @pytest.mark.asyncio
    async def test_retry_after_failure_succeeds(self, decryption, ledger, sdk):
        seed(ledger, sdk, value=3)
        sdk.proof_error = RuntimeError("relayer busy")
        assert (await decryption.decrypt(BID, ACCOUNT)).status == "failed"

        sdk.proof_error = None
        result = await decryption.decrypt(BID, ACCOUNT)
        assert result.status == "verified"
        assert result.value == 3


# =====================================================================
# Stale results
# =====================================================================

class TestStaleResults:

    @pytest.mark.asyncio
    async def test_stale_result_leaves_store_untouched(self, decryption, ledger, sdk, store):
        seed(ledger, sdk, value=5)
        await store.refresh()

        result = await decryption.decrypt(BID, ACCOUNT, should_apply=lambda: False)

        assert result.stale is True
        assert result.value == 5
        assert store.find(BID).is_verified is False, "stale results must not refresh the store"
        assert ledger.entries[BID].is_verified is True

    @pytest.mark.asyncio
    async def test_applicable_result_refreshes_store(self, decryption, ledger, sdk, store):
        seed(ledger, sdk, value=5)
        await store.refresh()

        result = await decryption.decrypt(BID, ACCOUNT, should_apply=lambda: True)

        assert result.stale is False
        assert store.find(BID).is_verified is True


def test_already_verified_carries_value():
    exc = AlreadyVerified(value=7)
    assert exc.value == 7
    assert exc.kind == "already_verified"
