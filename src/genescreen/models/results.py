"""Typed coordinator results.

Coordinators never raise; they return one of these models.  ``error`` holds
the ``kind`` of the :mod:`genescreen.errors` class that ended the flow, and
``message`` the user-facing text.
"""

import enum
from typing import Literal

from pydantic import BaseModel

from genescreen.models.record import ScreeningRecord
from genescreen.models.session import DecryptionState


class SubmissionPhase(str, enum.Enum):
    """Progress reported to the caller while a submission is in flight."""

    ENCRYPTING = "encrypting"
    AWAITING_CONFIRMATION = "awaiting_confirmation"


class SubmissionResult(BaseModel):
    status: Literal["success", "error"]
    business_id: str | None = None
    record: ScreeningRecord | None = None
    error: str | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status == "success"


class DecryptionResult(BaseModel):
    """Outcome of one decryption request.

    ``status`` is ``verified`` when this call revealed the value,
    ``already_verified`` when the stored value was returned without proving,
    and ``failed`` otherwise.  ``stale`` marks a result the caller asked to
    ignore because it no longer applied when the proof resolved.
    """

    status: Literal["verified", "already_verified", "failed"]
    business_id: str
    value: int | None = None
    final_state: DecryptionState
    error: str | None = None
    message: str = ""
    stale: bool = False

    @property
    def ok(self) -> bool:
        return self.status != "failed"
