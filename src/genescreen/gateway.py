"""EncryptionGateway — wraps the FHE SDK's ``encrypt`` capability.

The gateway is the only path from a plaintext integer to an
``EncryptedPayload``.  It refuses to run before the FHE runtime is ready,
checks the plaintext against the declared input domain, and never hands
back a partial payload.
"""

from __future__ import annotations

import asyncio
import logging

from pydantic import ValidationError as PayloadValidationError

from genescreen.constants import RISK_LEVEL_MAX, RISK_LEVEL_MIN
from genescreen.errors import EncryptionFailed, ValidationError
from genescreen.fhe import FheRuntime
from genescreen.interfaces import FheSdk
from genescreen.models.ledger import EncryptedPayload

logger = logging.getLogger(__name__)


class EncryptionGateway:
    """Encrypts plaintext values bound to (contract, submitter).

    Args:
        sdk: the FHE SDK adapter; ``None`` when none is configured, in which
            case the runtime never becomes ready and every call reports
            ``NotInitialized``
        runtime: lifecycle state of the same SDK
        min_value / max_value: inclusive plaintext bounds
        timeout: optional cap in seconds on the SDK call
    """

    def __init__(
        self,
        sdk: FheSdk | None,
        runtime: FheRuntime,
        *,
        min_value: int = RISK_LEVEL_MIN,
        max_value: int = RISK_LEVEL_MAX,
        timeout: float | None = None,
    ) -> None:
        self._sdk = sdk
        self._runtime = runtime
        self._min = min_value
        self._max = max_value
        self._timeout = timeout

    async def encrypt(
        self, target_contract: str, submitter: str, plaintext: int,
    ) -> EncryptedPayload:
        """Encrypt ``plaintext`` for ``target_contract`` on behalf of ``submitter``.

        Raises:
            NotInitialized: the FHE subsystem is not ready
            ValidationError: plaintext is not an int within bounds
            EncryptionFailed: the SDK failed, timed out, or returned an
                incomplete payload
        """
        self._runtime.require_ready()

        if isinstance(plaintext, bool) or not isinstance(plaintext, int):
            raise ValidationError("Plaintext must be an integer", field="plaintext")
        if not self._min <= plaintext <= self._max:
            raise ValidationError(
                f"Plaintext must be between {self._min} and {self._max}",
                field="plaintext",
            )

        try:
            result = await asyncio.wait_for(
                self._sdk.encrypt(target_contract, submitter, plaintext),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            raise EncryptionFailed("Encryption timed out") from exc
        except PayloadValidationError as exc:
            raise EncryptionFailed("Encryption returned an incomplete payload") from exc
        except Exception as exc:
            logger.warning("FHE encrypt failed: %s", exc)
            raise EncryptionFailed(str(exc) or type(exc).__name__) from exc

        if not isinstance(result, EncryptedPayload):
            try:
                result = EncryptedPayload.model_validate(result)
            except PayloadValidationError as exc:
                raise EncryptionFailed(
                    "Encryption returned an incomplete payload"
                ) from exc

        logger.debug(
            "Encrypted value for contract=%s submitter=%s (%d byte ciphertext)",
            target_contract, submitter, len(result.ciphertext),
        )
        return result
