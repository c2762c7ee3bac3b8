"""Screening endpoints — list, look up, refresh and create screenings.

Reads come from the cached ``RecordStore``; creation goes through the
``SubmissionCoordinator`` and requires the ``X-Account-Address`` header.
"""

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel

from genescreen.models.record import ScreeningRecord
from genescreen.models.results import SubmissionResult
from genescreen.store import RecordStore
from genescreen.submission import SubmissionCoordinator

from genescreen_server.dependencies import get_account, get_store, get_submission
from genescreen_server.errors import http_status

router = APIRouter(tags=["screenings"])


# ------------------------------------------------------------------
# Request / response models
# ------------------------------------------------------------------

class CreateScreeningRequest(BaseModel):
    """Body for POST /screenings.

    Numeric fields accept ints or digit strings, as typed into the form;
    range checks happen in the coordinator.
    """
    name: str
    disease_code: int | str
    risk_level: int | str


class RefreshResult(BaseModel):
    refreshed: bool
    count: int
    error: str | None = None


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.get("/screenings")
async def list_screenings(
    search: str | None = Query(None),
    store: RecordStore = Depends(get_store),
) -> list[ScreeningRecord]:
    """List cached screenings, optionally filtered by name or business id."""
    return store.search(search)


@router.post("/screenings/refresh")
async def refresh_screenings(
    response: Response,
    store: RecordStore = Depends(get_store),
) -> RefreshResult:
    """Re-read all screenings from the ledger.

    Returns 502 if the ledger could not be read; the cached set is kept.
    """
    refreshed = await store.refresh()
    if not refreshed:
        response.status_code = 502
    return RefreshResult(
        refreshed=refreshed,
        count=len(store.records),
        error=store.last_error,
    )


@router.get("/screenings/{business_id}")
async def get_screening(
    business_id: str,
    store: RecordStore = Depends(get_store),
) -> ScreeningRecord:
    """Return one cached screening; 404 if unknown."""
    return store.get(business_id)


@router.post("/screenings", status_code=201)
async def create_screening(
    body: CreateScreeningRequest,
    response: Response,
    account: str = Depends(get_account),
    submission: SubmissionCoordinator = Depends(get_submission),
) -> SubmissionResult:
    """Encrypt the risk level and register a new screening.

    Returns 201 on success.  Failures keep the result body and use the
    status code of the error kind (422 validation, 409 rejected signature,
    503 FHE not ready, 502 encryption/transaction failure).
    """
    result = await submission.submit(
        body.name, body.disease_code, body.risk_level, account,
    )
    if not result.ok:
        response.status_code = http_status(result.error)
    return result
