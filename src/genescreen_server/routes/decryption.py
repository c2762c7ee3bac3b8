"""Decryption endpoints — trigger and inspect the one-time reveal."""

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from genescreen.decryption import DecryptionCoordinator
from genescreen.models.results import DecryptionResult
from genescreen.models.session import DecryptionState

from genescreen_server.dependencies import get_account, get_decryption
from genescreen_server.errors import http_status

router = APIRouter(tags=["decryption"])


class DecryptionStatus(BaseModel):
    business_id: str
    state: DecryptionState
    in_progress: bool


@router.post("/screenings/{business_id}/decrypt")
async def decrypt_screening(
    business_id: str,
    response: Response,
    account: str = Depends(get_account),
    decryption: DecryptionCoordinator = Depends(get_decryption),
) -> DecryptionResult:
    """Reveal a screening's risk level on-ledger.

    Already-verified screenings return their stored value with status
    ``already_verified`` and no proof is requested.  A request for a record
    whose reveal is still running gets 409.
    """
    result = await decryption.decrypt(business_id, account)
    if not result.ok:
        response.status_code = http_status(result.error)
    return result


@router.get("/screenings/{business_id}/decryption")
async def get_decryption_status(
    business_id: str,
    decryption: DecryptionCoordinator = Depends(get_decryption),
) -> DecryptionStatus:
    return DecryptionStatus(
        business_id=business_id,
        state=decryption.state(business_id),
        in_progress=decryption.is_decrypting(business_id),
    )
