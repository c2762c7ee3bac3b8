"""Async CRUD repository for LedgerEntry.

All public methods accept an ``AsyncSession`` so the caller controls
transaction boundaries.  Methods call ``flush()`` but never ``commit()``.

The repository avoids contract rules (duplicate ids, one-time reveal);
those live in :class:`genescreen_db.ledger.SqlLedger`.  Structural
invariants are enforced by DB constraints.
"""

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from genescreen_db.models.entry import LedgerEntry


class EntryRepository:
    """Async read/write operations on the ``ledger_entries`` table."""

    async def create_entry(
        self,
        db: AsyncSession,
        *,
        business_id: str,
        name: str,
        category: str,
        creator: str,
        ciphertext: bytes,
        input_proof: bytes,
        handle: str,
        public_value1: int,
        public_value2: int,
        timestamp: int,
    ) -> LedgerEntry:
        entry = LedgerEntry(
            business_id=business_id,
            name=name,
            category=category,
            creator=creator,
            ciphertext=ciphertext,
            input_proof=input_proof,
            handle=handle,
            public_value1=public_value1,
            public_value2=public_value2,
            timestamp=timestamp,
            is_verified=False,
        )
        db.add(entry)
        await db.flush()
        return entry

    async def get_by_business_id(
        self, db: AsyncSession, business_id: str, *, for_update: bool = False
    ) -> LedgerEntry | None:
        """Load one entry; ``for_update`` row-locks it until the caller commits."""
        stmt = select(LedgerEntry).where(LedgerEntry.business_id == business_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_business_ids(self, db: AsyncSession) -> list[str]:
        """All business ids in insertion order."""
        stmt = select(LedgerEntry.business_id).order_by(LedgerEntry.id)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def mark_verified(
        self,
        db: AsyncSession,
        entry: LedgerEntry,
        *,
        value: int,
        proof: bytes,
        verified_by: str,
    ) -> LedgerEntry:
        """Record the one-time reveal of ``entry``."""
        entry.is_verified = True
        entry.decrypted_value = value
        entry.decryption_proof = proof
        entry.verified_by = verified_by
        entry.verified_at = datetime.now(timezone.utc)
        await db.flush()
        return entry
