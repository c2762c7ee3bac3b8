"""DecryptionCoordinator — one-time, verifiable reveal of a record's value.

State machine per record::

    not_requested ──► checking_on_chain ──► already_verified
                              │
                              ▼
                      requesting_proof ──► awaiting_confirmation ──► verified
                              │                     │
                              └────────► failed ◄───┘

* ``checking_on_chain`` reads the record first; a verified record returns
  its stored value and the proof protocol is never started.
* ``requesting_proof`` asks the FHE SDK for a decryption proof of the
  record's ciphertext handle.  The SDK calls back into the coordinator to
  publish the proof.
* ``awaiting_confirmation`` waits for the verification transaction to be
  final.  Only then is the clear value authoritative.
* Losing a reveal race (the ledger reports the value was verified meanwhile)
  is the ``already_verified`` transition, not a failure: the stored value is
  re-read and returned.

At most one session per business id runs at a time; a second concurrent
request for the same record is rejected with ``DecryptionInProgress``.
Sessions for different records never block each other.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from genescreen.config import CoordinatorTimeouts
from genescreen.constants import RISK_LEVEL_MAX, RISK_LEVEL_MIN
from genescreen.errors import (
    AlreadyVerified,
    DecryptionInProgress,
    NotConnected,
    ProofFailed,
    ProtocolViolation,
    RecordNotFound,
    ScreeningError,
    TransactionFailed,
    UserRejected,
    is_already_verified,
    is_user_rejection,
)
from genescreen.fhe import FheRuntime
from genescreen.interfaces import FheSdk, LedgerReader, LedgerWriter
from genescreen.locks import KeyedLock
from genescreen.models.results import DecryptionResult
from genescreen.models.session import DecryptionSession, DecryptionState, SessionStatus
from genescreen.notifications import Notifier
from genescreen.store import RecordStore

logger = logging.getLogger(__name__)


class DecryptionCoordinator:
    """Drives the request -> prove -> confirm protocol for single records.

    Args:
        sdk: FHE SDK providing ``request_decryption_proof`` (``None`` when
            unconfigured; the runtime guard then stops every reveal)
        runtime: lifecycle state of the same SDK
        reader / writer: ledger clients
        store: record store refreshed after a reveal
        contract_address: contract the ciphertext handles belong to
        notifier: optional sink for transient progress/outcome messages
        timeouts: optional per-step timeouts (``proof``, ``confirmation``)
    """

    def __init__(
        self,
        sdk: FheSdk | None,
        runtime: FheRuntime,
        reader: LedgerReader,
        writer: LedgerWriter,
        store: RecordStore,
        contract_address: str,
        *,
        notifier: Notifier | None = None,
        timeouts: CoordinatorTimeouts | None = None,
    ) -> None:
        self._sdk = sdk
        self._runtime = runtime
        self._reader = reader
        self._writer = writer
        self._store = store
        self._contract_address = contract_address
        self._notifier = notifier or Notifier()
        self._timeouts = timeouts or CoordinatorTimeouts()
        self._locks = KeyedLock()
        self._states: dict[str, DecryptionState] = {}
        self._sessions: dict[str, DecryptionSession] = {}

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def state(self, business_id: str) -> DecryptionState:
        """Last known state of ``business_id`` (``not_requested`` if never seen)."""
        return self._states.get(business_id, DecryptionState.NOT_REQUESTED)

    def is_decrypting(self, business_id: str) -> bool:
        return self._locks.is_held(business_id)

    def active_session(self, business_id: str) -> DecryptionSession | None:
        return self._sessions.get(business_id)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def decrypt(
        self,
        business_id: str,
        account: str | None,
        *,
        should_apply: Callable[[], bool] | None = None,
    ) -> DecryptionResult:
        """Reveal the value of ``business_id``; never raises.

        Args:
            business_id: ledger key of the record
            account: connected account that signs the verification tx
            should_apply: optional predicate checked once the proof
                resolves; when it returns ``False`` the store is left
                untouched and the result is marked ``stale``
        """
        if not account:
            return self._fail(business_id, NotConnected(), DecryptionState.NOT_REQUESTED)

        with self._locks.hold(business_id) as acquired:
            if not acquired:
                logger.info("Decryption already in progress for %s", business_id)
                return DecryptionResult(
                    status="failed",
                    business_id=business_id,
                    final_state=self.state(business_id),
                    error=DecryptionInProgress.kind,
                    message="Decryption already in progress",
                )
            try:
                return await self._run(business_id, account, should_apply)
            finally:
                self._sessions.pop(business_id, None)

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    async def _run(
        self,
        business_id: str,
        account: str,
        should_apply: Callable[[], bool] | None,
    ) -> DecryptionResult:
        self._set_state(business_id, DecryptionState.CHECKING_ON_CHAIN)
        try:
            data = await self._reader.get_business_data(business_id)
        except KeyError:
            return self._fail(
                business_id,
                RecordNotFound(f"Screening not found: {business_id}"),
                DecryptionState.CHECKING_ON_CHAIN,
            )
        except Exception as exc:
            return self._fail(
                business_id,
                TransactionFailed(str(exc) or type(exc).__name__),
                DecryptionState.CHECKING_ON_CHAIN,
            )

        if data.is_verified:
            self._notifier.success("Data already verified on-chain")
            return self._already_verified(business_id, data.decrypted_value)

        self._set_state(business_id, DecryptionState.REQUESTING_PROOF)
        try:
            value = await self._prove(business_id, account)
        except ScreeningError as exc:
            if isinstance(exc, AlreadyVerified):
                return await self._recover_race(business_id)
            return self._fail(business_id, exc, self.state(business_id))

        self._set_state(business_id, DecryptionState.VERIFIED)
        logger.info("Decryption of %s verified on-chain", business_id)

        if should_apply is not None and not should_apply():
            logger.info("Discarding stale decryption result for %s", business_id)
            return DecryptionResult(
                status="verified",
                business_id=business_id,
                value=value,
                final_state=DecryptionState.VERIFIED,
                stale=True,
            )

        await self._store.refresh()
        self._notifier.success("Data decrypted and verified successfully!")
        return DecryptionResult(
            status="verified",
            business_id=business_id,
            value=value,
            final_state=DecryptionState.VERIFIED,
            message="Data decrypted and verified successfully!",
        )

    async def _prove(self, business_id: str, account: str) -> int:
        """Run requesting_proof -> awaiting_confirmation; return the clear value.

        Raises a typed ``ScreeningError`` on every failure path.
        """
        self._runtime.require_ready()

        try:
            handle = await self._reader.get_encrypted_value(business_id)
        except Exception as exc:
            raise TransactionFailed(str(exc) or type(exc).__name__) from exc
        self._store.attach_handle(business_id, handle)

        cached = self._store.find(business_id)
        session = DecryptionSession(
            record_id=cached.id if cached is not None else None,
            business_id=business_id,
            handle=handle,
            status=SessionStatus.PROVING,
        )
        self._sessions[business_id] = session

        async def submit_proof(clear_values_encoded: str, decryption_proof: bytes) -> object:
            session.status = SessionStatus.SUBMITTED
            self._set_state(business_id, DecryptionState.AWAITING_CONFIRMATION)
            try:
                tx = await self._writer.verify_decryption(
                    business_id, clear_values_encoded, decryption_proof, sender=account,
                )
                self._notifier.pending("Verifying decryption on-chain...")
                receipt = await asyncio.wait_for(
                    tx.wait(), timeout=self._timeouts.confirmation,
                )
            except Exception as exc:
                session.status = SessionStatus.FAILED
                mapped = self._classify(exc, transaction=True)
                if mapped is exc:
                    raise
                raise mapped from exc
            session.status = SessionStatus.CONFIRMED
            return receipt

        try:
            result = await asyncio.wait_for(
                self._sdk.request_decryption_proof(
                    [handle], self._contract_address, submit_proof,
                ),
                timeout=self._timeouts.proof,
            )
        except Exception as exc:
            session.status = SessionStatus.FAILED
            mapped = self._classify(exc, transaction=False)
            if mapped is exc:
                raise
            raise mapped from exc

        if session.status is not SessionStatus.CONFIRMED:
            session.status = SessionStatus.FAILED
            raise ProofFailed("Decryption proof was not confirmed on-chain")

        clear_value = result.decryption_result.clear_values.get(handle)
        if clear_value is None:
            raise ProofFailed(f"No clear value returned for handle {handle}")
        value = int(clear_value)
        if not RISK_LEVEL_MIN <= value <= RISK_LEVEL_MAX:
            logger.error(
                "Revealed value %d for %s is outside [%d, %d]",
                value, business_id, RISK_LEVEL_MIN, RISK_LEVEL_MAX,
            )
            raise ProtocolViolation(
                f"Revealed value {value} is outside the declared domain"
            )
        return value

    async def _recover_race(self, business_id: str) -> DecryptionResult:
        """Another caller revealed the value first; return what it stored."""
        logger.info("Record %s was verified concurrently; re-reading", business_id)
        await self._store.refresh()
        try:
            data = await self._reader.get_business_data(business_id)
        except Exception as exc:
            return self._fail(
                business_id,
                TransactionFailed(str(exc) or type(exc).__name__),
                self.state(business_id),
            )
        if not data.is_verified:
            return self._fail(
                business_id,
                TransactionFailed("Ledger reported a reveal that is not visible yet"),
                self.state(business_id),
            )
        self._notifier.success("Data is already verified on-chain")
        return self._already_verified(business_id, data.decrypted_value)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _classify(exc: BaseException, *, transaction: bool) -> ScreeningError:
        """Map an SDK/ledger exception onto the error taxonomy."""
        if is_already_verified(exc):
            return exc if isinstance(exc, AlreadyVerified) else AlreadyVerified(str(exc))
        if isinstance(exc, ScreeningError):
            return exc
        if is_user_rejection(exc):
            return UserRejected()
        if isinstance(exc, asyncio.TimeoutError):
            step = "Confirmation" if transaction else "Decryption proof"
            return (TransactionFailed if transaction else ProofFailed)(f"{step} timed out")
        message = str(exc) or type(exc).__name__
        return TransactionFailed(message) if transaction else ProofFailed(message)

    def _already_verified(self, business_id: str, value: int) -> DecryptionResult:
        if not RISK_LEVEL_MIN <= value <= RISK_LEVEL_MAX:
            logger.error(
                "Stored value %d for %s is outside [%d, %d]",
                value, business_id, RISK_LEVEL_MIN, RISK_LEVEL_MAX,
            )
        self._set_state(business_id, DecryptionState.ALREADY_VERIFIED)
        return DecryptionResult(
            status="already_verified",
            business_id=business_id,
            value=value,
            final_state=DecryptionState.ALREADY_VERIFIED,
            message="Data already verified on-chain",
        )

    def _fail(
        self,
        business_id: str,
        exc: ScreeningError,
        reached: DecryptionState,
    ) -> DecryptionResult:
        if isinstance(exc, (NotConnected, UserRejected)):
            message = exc.message
        else:
            message = f"Decryption failed: {exc.message or 'Unknown error'}"
        logger.warning(
            "Decryption of %s failed at %s (%s): %s",
            business_id, reached.value, exc.kind, exc.message,
        )
        if reached is not DecryptionState.NOT_REQUESTED:
            self._set_state(business_id, DecryptionState.FAILED)
        self._notifier.error(message)
        return DecryptionResult(
            status="failed",
            business_id=business_id,
            final_state=DecryptionState.FAILED,
            error=exc.kind,
            message=message,
        )

    def _set_state(self, business_id: str, state: DecryptionState) -> None:
        self._states[business_id] = state
        logger.debug("Decryption %s -> %s", business_id, state.value)
