from genescreen_db.models.entry import Base, LedgerEntry

__all__ = ["Base", "LedgerEntry"]
