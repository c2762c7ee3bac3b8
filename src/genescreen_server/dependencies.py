"""FastAPI dependencies.

Components are built once by the lifespan handler and live on
``app.state``.  The caller's account comes from the ``X-Account-Address``
header set by the wallet gateway.
"""

import hmac

from fastapi import Header, HTTPException, Request

from genescreen.decryption import DecryptionCoordinator
from genescreen.errors import NotConnected
from genescreen.fhe import FheRuntime
from genescreen.notifications import Notifier
from genescreen.store import RecordStore
from genescreen.submission import SubmissionCoordinator


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_runtime(request: Request) -> FheRuntime:
    return request.app.state.runtime


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


def get_submission(request: Request) -> SubmissionCoordinator:
    return request.app.state.submission


def get_decryption(request: Request) -> DecryptionCoordinator:
    return request.app.state.decryption


def _check_proxy_secret(expected: str | None, supplied: str | None) -> None:
    if not expected:
        return
    if supplied is None:
        raise HTTPException(status_code=403, detail="X-Proxy-Secret header is required")
    if not hmac.compare_digest(supplied.encode(), expected.encode()):
        raise HTTPException(status_code=403, detail="Invalid proxy secret")


async def get_account(
    request: Request,
    x_account_address: str | None = Header(None, alias="X-Account-Address"),
    x_proxy_secret: str | None = Header(None, alias="X-Proxy-Secret"),
) -> str:
    """Return the connected account, starting FHE initialisation if needed.

    A connected wallet is what gates FHE initialisation, so the first
    request carrying an account triggers ``FheRuntime.ensure_ready``;
    concurrent requests share the same attempt.  A failed attempt is
    recorded on the runtime and shows up later as ``NotInitialized``.
    """
    if not x_account_address:
        raise NotConnected()
    _check_proxy_secret(request.app.state.settings.trusted_proxy_secret, x_proxy_secret)

    runtime: FheRuntime = request.app.state.runtime
    await runtime.ensure_ready(connected=True)
    return x_account_address
