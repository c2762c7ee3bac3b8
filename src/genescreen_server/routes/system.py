"""FHE runtime and notification endpoints."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from genescreen.fhe import FhePhase, FheRuntime
from genescreen.models.notification import Notification
from genescreen.notifications import Notifier

from genescreen_server.dependencies import get_account, get_notifier, get_runtime

router = APIRouter(tags=["system"])


class FheStatus(BaseModel):
    phase: FhePhase
    status: str
    last_error: str | None = None


def _status(runtime: FheRuntime) -> FheStatus:
    return FheStatus(
        phase=runtime.phase, status=runtime.status, last_error=runtime.last_error,
    )


@router.get("/fhe")
async def get_fhe_status(runtime: FheRuntime = Depends(get_runtime)) -> FheStatus:
    return _status(runtime)


@router.post("/fhe/initialize")
async def initialize_fhe(
    account: str = Depends(get_account),
    runtime: FheRuntime = Depends(get_runtime),
) -> FheStatus:
    """Initialise FHE for the connected account (retries after a failure).

    The account dependency already ran ``ensure_ready``; this endpoint
    just reports the outcome.
    """
    return _status(runtime)


@router.get("/notification")
async def get_notification(notifier: Notifier = Depends(get_notifier)) -> Notification:
    """Current transient notification (hidden ones have ``visible=false``)."""
    return notifier.current
