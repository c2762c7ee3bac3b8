"""Decryption session and state-machine enumerations.

A ``DecryptionSession`` lives only for the duration of one
``DecryptionCoordinator.decrypt`` call and is never persisted.
"""

import enum

from pydantic import BaseModel


class DecryptionState(str, enum.Enum):
    """Coordinator-level states for one record.

    Transitions:
        not_requested -> checking_on_chain
        checking_on_chain -> already_verified     (record revealed before)
        checking_on_chain -> requesting_proof
        requesting_proof -> awaiting_confirmation (proof tx sent)
        awaiting_confirmation -> verified
        any -> failed
        requesting_proof | awaiting_confirmation -> already_verified
                                                  (lost a reveal race)
    """

    NOT_REQUESTED = "not_requested"
    CHECKING_ON_CHAIN = "checking_on_chain"
    ALREADY_VERIFIED = "already_verified"
    REQUESTING_PROOF = "requesting_proof"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    VERIFIED = "verified"
    FAILED = "failed"


class SessionStatus(str, enum.Enum):
    """Lifecycle of a single in-flight proof attempt."""

    REQUESTED = "requested"
    PROVING = "proving"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class DecryptionSession(BaseModel):
    record_id: int | None = None
    business_id: str
    handle: str | None = None
    status: SessionStatus = SessionStatus.REQUESTED
