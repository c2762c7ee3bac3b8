"""genescreen — encrypted screening lifecycle SDK.

Public API:
    RecordStore            — cache of screening records read from the ledger
    EncryptionGateway      — plaintext -> (ciphertext, proof) via the FHE SDK
    SubmissionCoordinator  — validate, encrypt, submit and confirm a screening
    DecryptionCoordinator  — one-time request -> prove -> confirm reveal
    FheRuntime             — process-wide FHE initialisation lifecycle
    Notifier               — transient user-visible notifications
    analyze_risk           — pure risk report for a record
    summarize              — dashboard statistics over records

External interfaces (implemented by adapters):
    LedgerReader, LedgerWriter, TransactionHandle, FheSdk
"""

from genescreen.decryption import DecryptionCoordinator
from genescreen.fhe import FhePhase, FheRuntime
from genescreen.gateway import EncryptionGateway
from genescreen.interfaces import FheSdk, LedgerReader, LedgerWriter, TransactionHandle
from genescreen.models import (
    BusinessData,
    DecryptionProofResult,
    DecryptionResult,
    DecryptionSession,
    DecryptionState,
    EncryptedPayload,
    Notification,
    RiskAnalysis,
    ScreeningRecord,
    ScreeningStatistics,
    SubmissionPhase,
    SubmissionResult,
)
from genescreen.notifications import Notifier
from genescreen.risk import analyze_risk, summarize
from genescreen.store import RecordStore
from genescreen.submission import SubmissionCoordinator

__all__ = [
    # Components
    "DecryptionCoordinator",
    "EncryptionGateway",
    "FhePhase",
    "FheRuntime",
    "Notifier",
    "RecordStore",
    "SubmissionCoordinator",
    "analyze_risk",
    "summarize",
    # Interfaces
    "FheSdk",
    "LedgerReader",
    "LedgerWriter",
    "TransactionHandle",
    # Models
    "BusinessData",
    "DecryptionProofResult",
    "DecryptionResult",
    "DecryptionSession",
    "DecryptionState",
    "EncryptedPayload",
    "Notification",
    "RiskAnalysis",
    "ScreeningRecord",
    "ScreeningStatistics",
    "SubmissionPhase",
    "SubmissionResult",
]
