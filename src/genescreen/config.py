"""Coordinator configuration — optional timeouts for network-bound steps.

Every timeout defaults to ``None`` (wait indefinitely).  Deployments can cap
each step via ``TIMEOUT_*`` environment variables, expressed in seconds.
"""

import os
from dataclasses import dataclass


def _optional_seconds(name: str) -> float | None:
    raw = os.getenv(name)
    if not raw:
        return None
    value = float(raw)
    return value if value > 0 else None


@dataclass(frozen=True)
class CoordinatorTimeouts:
    """Per-step timeouts in seconds; ``None`` disables the limit."""

    encrypt: float | None = None
    submit: float | None = None
    confirmation: float | None = None
    proof: float | None = None


def load_timeouts() -> CoordinatorTimeouts:
    """Build timeouts from ``TIMEOUT_*`` environment variables."""
    return CoordinatorTimeouts(
        encrypt=_optional_seconds("TIMEOUT_ENCRYPT"),
        submit=_optional_seconds("TIMEOUT_SUBMIT"),
        confirmation=_optional_seconds("TIMEOUT_CONFIRMATION"),
        proof=_optional_seconds("TIMEOUT_PROOF"),
    )
