"""SubmissionCoordinator — encrypt a risk level and register a screening.

Flow (each arrow a possible suspension/failure point)::

    validate ──► encrypt ──► send create tx ──► await finality ──► refresh
                 (pending:    (pending: awaiting-confirmation)
                  encrypting)

Validation happens before any network call.  Every attempt mints a fresh
``screening-<unix-ms>`` business id, so retrying a failed submission creates
a new record rather than colliding with the previous attempt.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable

from genescreen.constants import (
    BUSINESS_ID_PREFIX,
    DISEASE_CODE_MAX,
    DISEASE_CODE_MIN,
    RESERVED_PUBLIC_VALUE,
    RISK_LEVEL_MAX,
    RISK_LEVEL_MIN,
    SCREENING_CATEGORY,
)
from genescreen.config import CoordinatorTimeouts
from genescreen.errors import (
    NotConnected,
    ScreeningError,
    TransactionFailed,
    UserRejected,
    ValidationError,
    is_user_rejection,
)
from genescreen.gateway import EncryptionGateway
from genescreen.interfaces import LedgerWriter
from genescreen.models.results import SubmissionPhase, SubmissionResult
from genescreen.notifications import Notifier
from genescreen.store import RecordStore

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[SubmissionPhase], None]


def parse_bounded_int(value: Any, *, field: str, low: int, high: int) -> int:
    """Parse a form value into an int within ``[low, high]``.

    Accepts ints and digit strings (surrounding whitespace ignored).

    Raises:
        ValidationError: if the value is missing, not an integer, or out of range
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field} is required", field=field)
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer", field=field)
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
    else:
        raise ValidationError(f"{field} must be an integer", field=field)
    if not low <= parsed <= high:
        raise ValidationError(f"{field} must be between {low} and {high}", field=field)
    return parsed


def new_business_id(now: float | None = None, *, after: int = 0) -> str:
    """Mint ``screening-<unix-ms>``.

    The millisecond part is never lower than ``after``.
    """
    millis = max(int((time.time() if now is None else now) * 1000), after)
    return f"{BUSINESS_ID_PREFIX}{millis}"


class SubmissionCoordinator:
    """Owns the pending -> confirmed transition of new screenings.

    Args:
        gateway: encryption gateway bound to the FHE runtime
        writer: ledger write client
        store: record store refreshed after a confirmed submission
        contract_address: address ciphertexts are bound to
        notifier: optional sink for transient progress/outcome messages
        timeouts: optional per-step timeouts
        clock: returns Unix seconds; used to mint business ids
    """

    def __init__(
        self,
        gateway: EncryptionGateway,
        writer: LedgerWriter,
        store: RecordStore,
        contract_address: str,
        *,
        notifier: Notifier | None = None,
        timeouts: CoordinatorTimeouts | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._gateway = gateway
        self._writer = writer
        self._store = store
        self._contract_address = contract_address
        self._notifier = notifier or Notifier()
        self._timeouts = timeouts or CoordinatorTimeouts()
        self._clock = clock
        self._last_millis = 0

    async def submit(
        self,
        name: str,
        disease_code: Any,
        risk_level: Any,
        account: str | None,
        *,
        on_progress: ProgressCallback | None = None,
    ) -> SubmissionResult:
        """Register a new screening; never raises.

        Returns a ``SubmissionResult`` whose ``status`` is ``success`` (with
        the new ``business_id`` and, when the refresh found it, the
        ``record``) or ``error`` (with the error ``kind`` and message).
        """
        business_id: str | None = None
        try:
            if not account:
                raise NotConnected()
            clean_name = (name or "").strip()
            if not clean_name:
                raise ValidationError("name is required", field="name")
            code = parse_bounded_int(
                disease_code, field="disease_code",
                low=DISEASE_CODE_MIN, high=DISEASE_CODE_MAX,
            )
            risk = parse_bounded_int(
                risk_level, field="risk_level",
                low=RISK_LEVEL_MIN, high=RISK_LEVEL_MAX,
            )

            business_id = self._next_business_id()
            self._report(on_progress, SubmissionPhase.ENCRYPTING)
            self._notifier.pending("Creating genetic screening with Zama FHE...")
            payload = await self._gateway.encrypt(self._contract_address, account, risk)

            tx = await self._send(
                self._writer.create_business_data(
                    business_id,
                    clean_name,
                    payload.ciphertext,
                    payload.proof,
                    code,
                    RESERVED_PUBLIC_VALUE,
                    SCREENING_CATEGORY,
                    sender=account,
                ),
                timeout=self._timeouts.submit,
                step="Submission",
            )

            self._report(on_progress, SubmissionPhase.AWAITING_CONFIRMATION)
            self._notifier.pending("Waiting for transaction confirmation...")
            await self._send(
                tx.wait(), timeout=self._timeouts.confirmation, step="Confirmation",
            )
        except ScreeningError as exc:
            return self._fail(business_id, exc)

        logger.info("Screening %s confirmed", business_id)
        self._notifier.success("Screening created successfully!")
        await self._store.refresh()
        return SubmissionResult(
            status="success",
            business_id=business_id,
            record=self._store.find(business_id),
            message="Screening created successfully!",
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _next_business_id(self) -> str:
        """Mint a business id strictly later than the last one issued here."""
        business_id = new_business_id(self._clock(), after=self._last_millis + 1)
        self._last_millis = int(business_id[len(BUSINESS_ID_PREFIX):])
        return business_id

    @staticmethod
    async def _send(awaitable, *, timeout: float | None, step: str):
        """Await a ledger call, translating wallet/ledger errors."""
        try:
            return await asyncio.wait_for(awaitable, timeout=timeout)
        except ScreeningError:
            raise
        except asyncio.TimeoutError as exc:
            raise TransactionFailed(f"{step} timed out") from exc
        except Exception as exc:
            if is_user_rejection(exc):
                raise UserRejected() from exc
            raise TransactionFailed(str(exc) or type(exc).__name__) from exc

    def _fail(self, business_id: str | None, exc: ScreeningError) -> SubmissionResult:
        if isinstance(exc, (UserRejected, NotConnected, ValidationError)):
            message = exc.message
            logger.info("Submission not sent (%s): %s", exc.kind, message)
        else:
            message = f"Submission failed: {exc.message or 'Unknown error'}"
            logger.warning("Submission %s failed (%s): %s", business_id, exc.kind, exc.message)
        self._notifier.error(message)
        return SubmissionResult(
            status="error",
            business_id=business_id,
            error=exc.kind,
            message=message,
        )

    @staticmethod
    def _report(callback: ProgressCallback | None, phase: SubmissionPhase) -> None:
        if callback is not None:
            callback(phase)
