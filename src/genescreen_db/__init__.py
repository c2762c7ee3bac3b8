"""genescreen_db — PostgreSQL-backed development ledger.

This package provides the ORM model, async engine factory, repository and
the ``SqlLedger`` adapter that implements the SDK's ledger interfaces.  It
is consumed by the API server when no chain adapter is configured.
"""

from genescreen_db.engine import create_schema, get_engine, get_session_factory
from genescreen_db.ledger import SqlLedger, build_ledger
from genescreen_db.models.entry import LedgerEntry
from genescreen_db.repository import EntryRepository

__all__ = [
    "EntryRepository",
    "LedgerEntry",
    "SqlLedger",
    "build_ledger",
    "create_schema",
    "get_engine",
    "get_session_factory",
]
