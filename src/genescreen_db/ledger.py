"""SqlLedger — development ledger backed by PostgreSQL.

Implements :class:`genescreen.interfaces.LedgerReader` and
:class:`genescreen.interfaces.LedgerWriter` so the API server can run
without a chain.  It enforces the same contract rules as the on-chain
screening contract:

  - business ids are unique (``Business ID already exists``)
  - a record can be revealed exactly once (``Data already verified``);
    the check reads the row with ``SELECT ... FOR UPDATE``
  - a reveal carries exactly one clear value

Every write runs in its own DB transaction and is committed before the
transaction handle is returned, so ``wait()`` resolves immediately.

Clear values travel ABI-encoded: a ``0x`` string of 32-byte big-endian
``uint256`` words.  Decryption proofs are stored as received; checking
them against the KMS signers is the chain's job and is not reproduced here.
"""

from __future__ import annotations

import hashlib
import logging
import time
import uuid
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from genescreen.errors import AlreadyVerified, TransactionFailed
from genescreen.interfaces import LedgerReader, LedgerWriter, TransactionHandle
from genescreen.models.ledger import BusinessData

from genescreen_db.engine import get_session_factory
from genescreen_db.repository import EntryRepository

logger = logging.getLogger(__name__)

_WORD_HEX = 64


def encode_clear_values(values: list[int]) -> str:
    """ABI-encode ``values`` as consecutive ``uint256`` words."""
    words = []
    for value in values:
        if value < 0 or value >= 2 ** 256:
            raise ValueError(f"Value out of uint256 range: {value}")
        words.append(f"{value:064x}")
    return "0x" + "".join(words)


def decode_clear_values(encoded: str) -> list[int]:
    """Inverse of :func:`encode_clear_values`.

    Raises:
        ValueError: if ``encoded`` is not whole 32-byte hex words
    """
    body = encoded[2:] if encoded.startswith("0x") else encoded
    if not body or len(body) % _WORD_HEX:
        raise ValueError("Clear values must be whole 32-byte words")
    return [int(body[i:i + _WORD_HEX], 16) for i in range(0, len(body), _WORD_HEX)]


def ciphertext_handle(ciphertext: bytes) -> str:
    return "0x" + hashlib.sha256(ciphertext).hexdigest()


class LedgerTransaction(TransactionHandle):
    """An already-committed write."""

    def __init__(self, tx_hash: str, business_id: str) -> None:
        self._hash = tx_hash
        self._business_id = business_id

    @property
    def hash(self) -> str:
        return self._hash

    async def wait(self) -> dict:
        return {"hash": self._hash, "business_id": self._business_id, "status": 1}


class SqlLedger(LedgerReader, LedgerWriter):
    """Screening-contract semantics over the ``ledger_entries`` table.

    Args:
        contract_address: address reported by :meth:`get_address`
        session_factory: async session factory; defaults to the shared one
            from :mod:`genescreen_db.engine`
        clock: returns Unix seconds for new entries
    """

    def __init__(
        self,
        contract_address: str,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._contract_address = contract_address
        self._factory = session_factory
        self._clock = clock
        self._repo = EntryRepository()

    def _sessions(self) -> async_sessionmaker[AsyncSession]:
        if self._factory is None:
            self._factory = get_session_factory()
        return self._factory

    # ==================================================================
    # Reads
    # ==================================================================

    async def get_address(self) -> str:
        return self._contract_address

    async def get_all_business_ids(self) -> list[str]:
        async with self._sessions()() as db:
            return await self._repo.list_business_ids(db)

    async def get_business_data(self, business_id: str) -> BusinessData:
        async with self._sessions()() as db:
            entry = await self._repo.get_by_business_id(db, business_id)
        if entry is None:
            raise KeyError(business_id)
        return BusinessData(
            name=entry.name,
            timestamp=entry.timestamp,
            creator=entry.creator,
            public_value1=entry.public_value1,
            public_value2=entry.public_value2,
            is_verified=entry.is_verified,
            decrypted_value=entry.decrypted_value or 0,
        )

    async def get_encrypted_value(self, business_id: str) -> str:
        async with self._sessions()() as db:
            entry = await self._repo.get_by_business_id(db, business_id)
        if entry is None:
            raise KeyError(business_id)
        return entry.handle

    # ==================================================================
    # Writes
    # ==================================================================

    async def create_business_data(
        self,
        business_id: str,
        name: str,
        ciphertext: bytes,
        proof: bytes,
        public_value1: int,
        public_value2: int,
        category: str,
        *,
        sender: str,
    ) -> LedgerTransaction:
        if not ciphertext or not proof:
            raise TransactionFailed("Encrypted value and input proof are required")

        async with self._sessions()() as db:
            if await self._repo.get_by_business_id(db, business_id) is not None:
                raise TransactionFailed("Business ID already exists")
            await self._repo.create_entry(
                db,
                business_id=business_id,
                name=name,
                category=category,
                creator=sender,
                ciphertext=ciphertext,
                input_proof=proof,
                handle=ciphertext_handle(ciphertext),
                public_value1=public_value1,
                public_value2=public_value2,
                timestamp=int(self._clock()),
            )
            await db.commit()

        logger.info("Ledger entry created: %s by %s", business_id, sender)
        return LedgerTransaction(uuid.uuid4().hex, business_id)

    async def verify_decryption(
        self,
        business_id: str,
        clear_values_encoded: str,
        decryption_proof: bytes,
        *,
        sender: str,
    ) -> LedgerTransaction:
        try:
            values = decode_clear_values(clear_values_encoded)
        except ValueError as exc:
            raise TransactionFailed(f"Invalid clear values: {exc}") from exc
        if len(values) != 1:
            raise TransactionFailed(f"Expected one clear value, got {len(values)}")
        if not decryption_proof:
            raise TransactionFailed("Decryption proof is required")

        async with self._sessions()() as db:
            # The row lock serialises reveals across server processes.
            entry = await self._repo.get_by_business_id(db, business_id, for_update=True)
            if entry is None:
                raise TransactionFailed("Business data does not exist")
            if entry.is_verified:
                raise AlreadyVerified(value=entry.decrypted_value)
            await self._repo.mark_verified(
                db, entry, value=values[0], proof=decryption_proof, verified_by=sender,
            )
            await db.commit()

        logger.info("Ledger entry verified: %s", business_id)
        return LedgerTransaction(uuid.uuid4().hex, business_id)


def build_ledger(settings) -> SqlLedger:
    """Server factory: a ``SqlLedger`` bound to the configured contract."""
    return SqlLedger(settings.contract_address)
