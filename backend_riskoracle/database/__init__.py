"""
Database abstraction layer — wallets with cached tiers and transaction history.

SQLite via Database and get_database(); backend is swappable for PostgreSQL.
"""

from backend_riskoracle.database.database import (
    Database,
    DatabaseBackend,
    SQLiteBackend,
    get_database,
)
from backend_riskoracle.database.models import TransactionRecord, WalletRecord

__all__ = [
    "Database",
    "DatabaseBackend",
    "SQLiteBackend",
    "get_database",
    "TransactionRecord",
    "WalletRecord",
]
