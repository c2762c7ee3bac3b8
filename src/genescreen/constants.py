"""Screening constants shared across the SDK.

Bounds mirror the input constraints of the create-screening form and the
ledger contract.  Several values can be overridden via environment
variables so deployments can adjust them without code changes.
"""

import os

# Declared input domain of the encrypted risk level.
RISK_LEVEL_MIN = int(os.getenv("RISK_LEVEL_MIN", "1"))
RISK_LEVEL_MAX = int(os.getenv("RISK_LEVEL_MAX", "10"))

# Public disease code range (stored in clear as publicValue1).
DISEASE_CODE_MIN = int(os.getenv("DISEASE_CODE_MIN", "1"))
DISEASE_CODE_MAX = int(os.getenv("DISEASE_CODE_MAX", "100"))

# Fallback used by the risk analyzer when no risk value can be resolved,
# and for records whose disease code reads as zero.
DEFAULT_RISK_LEVEL = int(os.getenv("DEFAULT_RISK_LEVEL", "5"))
DEFAULT_DISEASE_CODE = int(os.getenv("DEFAULT_DISEASE_CODE", "5"))

# Resolved risk strictly above this counts as "high risk" in statistics.
HIGH_RISK_THRESHOLD = int(os.getenv("HIGH_RISK_THRESHOLD", "7"))

# Business keys are "screening-<unix-ms>".
BUSINESS_ID_PREFIX = "screening-"

# Category string written with every record.
SCREENING_CATEGORY = os.getenv("SCREENING_CATEGORY", "Genetic Disease Screening")

# Reserved public slot (publicValue2) sent on creation.
RESERVED_PUBLIC_VALUE = 0

# Auto-dismiss delays for transient notifications (seconds).
NOTIFY_SUCCESS_SECONDS = float(os.getenv("NOTIFY_SUCCESS_SECONDS", "2"))
NOTIFY_ERROR_SECONDS = float(os.getenv("NOTIFY_ERROR_SECONDS", "3"))

# Window used by the risk analyzer's time factor.
RISK_DECAY_WINDOW_SECONDS = 60 * 60 * 24 * 30

# Substrings recognised in untyped errors raised by wallet/ledger adapters.
USER_REJECTED_MARKERS: tuple[str, ...] = ("user rejected", "user denied")
ALREADY_VERIFIED_MARKER = "data already verified"
