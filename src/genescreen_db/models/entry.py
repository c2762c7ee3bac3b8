"""LedgerEntry ORM model — one row per registered screening.

Rows are append-only.  The only update ever applied is the one-time reveal
(``is_verified`` / ``decrypted_value``), which the CHECK constraint ties
together.
"""

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Integer,
    LargeBinary,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import TIMESTAMP
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class LedgerEntry(Base):
    __tablename__ = "ledger_entries"

    # --- Primary key (insertion order) ---
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # --- Identity ---
    # Caller-minted key, e.g. "screening-1718000000000"
    business_id: Mapped[str] = mapped_column(Text, nullable=False)

    # --- Public fields ---
    name: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(Text, nullable=False)
    creator: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    # Disease code
    public_value1: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Reserved / public hint
    public_value2: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Unix seconds at creation
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)

    # --- Encrypted value ---
    ciphertext: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    input_proof: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    # 0x-prefixed SHA-256 of the ciphertext
    handle: Mapped[str] = mapped_column(String(66), nullable=False, index=True)

    # --- One-time reveal ---
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    decrypted_value: Mapped[int | None] = mapped_column(Integer, nullable=True)
    decryption_proof: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)
    verified_by: Mapped[str | None] = mapped_column(Text, nullable=True)
    verified_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )

    __table_args__ = (
        UniqueConstraint("business_id", name="uq_business_id"),
        # A revealed entry must carry its clear value
        CheckConstraint(
            "NOT is_verified OR decrypted_value IS NOT NULL",
            name="ck_verified_has_value",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<LedgerEntry(business_id={self.business_id!r}, "
            f"verified={self.is_verified})>"
        )
