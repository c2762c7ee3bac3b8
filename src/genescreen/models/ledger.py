"""Ledger and FHE SDK payload models.

These mirror the shapes exchanged with the external collaborators: the
ledger read client (``BusinessData``), the encryption capability
(``EncryptedPayload``) and the decryption-proof capability
(``DecryptionProofResult``).  Adapters convert their native return values
into these models so the coordinators never touch transport types.
"""

from pydantic import BaseModel, ConfigDict, Field


class BusinessData(BaseModel):
    """One ledger entry as returned by ``getBusinessData``."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    timestamp: int
    creator: str
    public_value1: int = Field(0, alias="publicValue1")
    public_value2: int = Field(0, alias="publicValue2")
    is_verified: bool = Field(False, alias="isVerified")
    decrypted_value: int = Field(0, alias="decryptedValue")


class EncryptedPayload(BaseModel):
    """Ciphertext plus the proof binding it to (contract, submitter).

    Both parts are mandatory; an SDK result missing either is rejected
    before it can reach a transaction.
    """

    model_config = ConfigDict(frozen=True)

    ciphertext: bytes = Field(min_length=1)
    proof: bytes = Field(min_length=1)


class ClearValueSet(BaseModel):
    # handle -> clear value
    clear_values: dict[str, int] = Field(default_factory=dict, alias="clearValues")

    model_config = ConfigDict(populate_by_name=True)


class DecryptionProofResult(BaseModel):
    """Outcome of ``requestDecryptionProof`` once the proof tx is final."""

    model_config = ConfigDict(populate_by_name=True)

    decryption_result: ClearValueSet = Field(alias="decryptionResult")
