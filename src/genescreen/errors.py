"""Typed error taxonomy for the screening lifecycle.

Every error carries a stable ``kind`` string.  Coordinators catch these at
their boundary and turn them into typed results; the HTTP layer maps
``kind`` to a status code.

``AlreadyVerified`` is not a failure: it signals that a record has been
revealed already and carries the stored value so callers can short-circuit
to success.
"""

from __future__ import annotations

from genescreen.constants import ALREADY_VERIFIED_MARKER, USER_REJECTED_MARKERS


class ScreeningError(Exception):
    """Base class for all SDK errors."""

    kind: str = "screening_error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ScreeningError):
    """Bad user input; never reaches the network."""

    kind = "validation"

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class NotConnected(ScreeningError):
    """No active account."""

    kind = "not_connected"

    def __init__(self, message: str = "Please connect wallet first") -> None:
        super().__init__(message)


class NotInitialized(ScreeningError):
    """FHE subsystem is not ready yet."""

    kind = "not_initialized"

    def __init__(self, message: str = "FHE subsystem is not initialized") -> None:
        super().__init__(message)


class UserRejected(ScreeningError):
    """The account holder declined to sign."""

    kind = "user_rejected"

    def __init__(self, message: str = "Transaction rejected by user") -> None:
        super().__init__(message)


class EncryptionFailed(ScreeningError):
    kind = "encryption_failed"


class ProofFailed(ScreeningError):
    kind = "proof_failed"


class TransactionFailed(ScreeningError):
    kind = "transaction_failed"


class AlreadyVerified(ScreeningError):
    """The record was revealed already (possibly by a concurrent caller)."""

    kind = "already_verified"

    def __init__(
        self, message: str = "Data already verified", *, value: int | None = None,
    ) -> None:
        super().__init__(message)
        self.value = value


class DecryptionInProgress(ScreeningError):
    """Another decryption session holds the record."""

    kind = "decryption_in_progress"


class ProtocolViolation(ScreeningError):
    """A revealed value fell outside the declared input domain."""

    kind = "protocol_violation"


class RecordNotFound(ScreeningError):
    kind = "not_found"


def is_user_rejection(exc: BaseException) -> bool:
    """True for typed rejections and for wallet errors that only say so in text."""
    if isinstance(exc, UserRejected):
        return True
    text = str(exc).lower()
    return any(marker in text for marker in USER_REJECTED_MARKERS)


def is_already_verified(exc: BaseException) -> bool:
    """True when the ledger reports the one-time reveal already happened."""
    if isinstance(exc, AlreadyVerified):
        return True
    return ALREADY_VERIFIED_MARKER in str(exc).lower()
