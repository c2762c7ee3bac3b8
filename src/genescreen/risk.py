"""Risk analyzer — pure functions over already-resolved values.

Nothing here touches the ledger or the FHE SDK.  Inputs are a record plus an
optional locally-decrypted value; the same inputs (including ``now``)
always produce the same outputs.

Rounding follows the dashboard's original semantics (round half up, as
JavaScript's ``Math.round``), not Python's banker's rounding, so scores
match the values users have already seen.
"""

from __future__ import annotations

import math
import time
from typing import Iterable

from genescreen.constants import (
    DEFAULT_DISEASE_CODE,
    DEFAULT_RISK_LEVEL,
    HIGH_RISK_THRESHOLD,
    RISK_DECAY_WINDOW_SECONDS,
)
from genescreen.models.analysis import RiskAnalysis, ScreeningStatistics
from genescreen.models.record import ScreeningRecord


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def resolve_risk(record: ScreeningRecord, decrypted: int | None = None) -> int:
    """Pick the risk value to analyse.

    Verified on-ledger value > locally decrypted value > public hint >
    ``DEFAULT_RISK_LEVEL``.
    """
    if record.is_verified and record.decrypted_value is not None:
        return record.decrypted_value
    if decrypted:
        return decrypted
    if record.risk_level_public_hint:
        return record.risk_level_public_hint
    return DEFAULT_RISK_LEVEL


def analyze_risk(
    record: ScreeningRecord,
    decrypted: int | None = None,
    *,
    now: float | None = None,
) -> RiskAnalysis:
    """Derive the risk report for ``record``.

    Args:
        record: the cached record
        decrypted: a value decrypted locally but not (yet) verified
        now: Unix seconds used for the time factor; defaults to wall clock
    """
    if now is None:
        now = time.time()

    risk = resolve_risk(record, decrypted)
    disease_code = record.disease_code or DEFAULT_DISEASE_CODE

    base_risk = min(100, round_half_up((risk * 0.7 + disease_code * 0.3) * 10))
    time_factor = clamp(
        1 - (now - record.created_at) / RISK_DECAY_WINDOW_SECONDS, 0.7, 1.3,
    )
    risk_score = round_half_up(base_risk * time_factor)

    probability = round_half_up(risk * 8 + math.log(disease_code + 1) * 2)
    severity = round_half_up(disease_code * 6 + risk * 4)

    confidence = clamp(100 - (risk * 0.1 + disease_code * 2), 60, 95)
    prevention_score = min(95, round_half_up((100 - risk) * 0.8 + disease_code * 0.2))

    return RiskAnalysis(
        risk_score=risk_score,
        probability=probability,
        severity=severity,
        confidence=confidence,
        prevention_score=prevention_score,
    )


def summarize(records: Iterable[ScreeningRecord]) -> ScreeningStatistics:
    """Dashboard totals: count, verified count, mean and high-risk count."""
    records = list(records)
    if not records:
        return ScreeningStatistics(total=0, verified=0, average_risk=0.0, high_risk=0)

    risks = [resolve_risk(r) for r in records]
    return ScreeningStatistics(
        total=len(records),
        verified=sum(1 for r in records if r.is_verified),
        average_risk=sum(risks) / len(risks),
        high_risk=sum(1 for risk in risks if risk > HIGH_RISK_THRESHOLD),
    )
