"""Public model re-exports for genescreen.

Consumers should import from ``genescreen.models`` rather than reaching
into sub-modules directly.
"""

# --- Ledger / SDK payloads ---
from genescreen.models.ledger import (
    BusinessData,
    ClearValueSet,
    DecryptionProofResult,
    EncryptedPayload,
)

# --- Records ---
from genescreen.models.record import ScreeningRecord, derive_record_id

# --- Decryption sessions ---
from genescreen.models.session import (
    DecryptionSession,
    DecryptionState,
    SessionStatus,
)

# --- Coordinator results ---
from genescreen.models.results import (
    DecryptionResult,
    SubmissionPhase,
    SubmissionResult,
)

# --- Derived views ---
from genescreen.models.analysis import RiskAnalysis, ScreeningStatistics
from genescreen.models.notification import Notification

__all__ = [
    # Ledger / SDK
    "BusinessData",
    "ClearValueSet",
    "DecryptionProofResult",
    "EncryptedPayload",
    # Records
    "ScreeningRecord",
    "derive_record_id",
    # Sessions
    "DecryptionSession",
    "DecryptionState",
    "SessionStatus",
    # Results
    "DecryptionResult",
    "SubmissionPhase",
    "SubmissionResult",
    # Derived
    "RiskAnalysis",
    "ScreeningStatistics",
    "Notification",
]
