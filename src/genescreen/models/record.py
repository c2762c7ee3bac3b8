"""ScreeningRecord — the cached view of one ledger entry.

Records are immutable snapshots.  The store replaces them wholesale on
refresh; the only on-ledger transition (``is_verified`` / ``decrypted_value``)
shows up as a new snapshot after the next refresh.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from genescreen.constants import BUSINESS_ID_PREFIX
from genescreen.models.ledger import BusinessData


def derive_record_id(business_id: str, created_at: int) -> int:
    """Numeric identity for a business key.

    ``screening-<digits>`` yields the digits.  Unparseable keys fall back to
    the entry's creation time in milliseconds, which is stable across
    refreshes for the same ledger entry.
    """
    suffix = business_id.replace(BUSINESS_ID_PREFIX, "", 1)
    if suffix.isdigit() and int(suffix) > 0:
        return int(suffix)
    return created_at * 1000


class ScreeningRecord(BaseModel):
    """A registered screening: public metadata plus an encrypted risk level."""

    model_config = ConfigDict(frozen=True)

    id: int
    business_id: str
    name: str
    disease_code: int
    # Denormalised public hint for the encrypted value, when the ledger has one
    risk_level_public_hint: int | None = None
    created_at: int
    creator: str
    is_verified: bool = False
    # Only populated once the value has been revealed on-ledger
    decrypted_value: int | None = None
    # Ciphertext handle, fetched lazily by the decryption flow
    encrypted_value_handle: str | None = None

    @classmethod
    def from_business_data(cls, business_id: str, data: BusinessData) -> ScreeningRecord:
        return cls(
            id=derive_record_id(business_id, data.timestamp),
            business_id=business_id,
            name=data.name,
            disease_code=data.public_value1,
            risk_level_public_hint=data.public_value2 or None,
            created_at=data.timestamp,
            creator=data.creator,
            is_verified=data.is_verified,
            decrypted_value=data.decrypted_value if data.is_verified else None,
        )
