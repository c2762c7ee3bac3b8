"""Analysis endpoints — per-record risk report and dashboard statistics.

Both are pure computations over the cached store; nothing here reaches the
ledger or the FHE SDK.
"""

from fastapi import APIRouter, Depends, Query

from genescreen.constants import RISK_LEVEL_MAX, RISK_LEVEL_MIN
from genescreen.models.analysis import RiskAnalysis, ScreeningStatistics
from genescreen.risk import analyze_risk
from genescreen.store import RecordStore

from genescreen_server.dependencies import get_store

router = APIRouter(tags=["analysis"])


@router.get("/screenings/{business_id}/analysis")
async def get_analysis(
    business_id: str,
    decrypted: int | None = Query(None, ge=RISK_LEVEL_MIN, le=RISK_LEVEL_MAX),
    store: RecordStore = Depends(get_store),
) -> RiskAnalysis:
    """Risk report for one screening.

    ``decrypted`` supplies a locally decrypted risk level; a verified
    on-ledger value always takes precedence over it.
    """
    return analyze_risk(store.get(business_id), decrypted)


@router.get("/statistics")
async def get_statistics(
    store: RecordStore = Depends(get_store),
) -> ScreeningStatistics:
    """Totals over the cached screenings."""
    return store.statistics()
