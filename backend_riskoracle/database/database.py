"""
Database abstraction layer for wallets and their transaction history.

SQLite by default; the backend is swappable (e.g. PostgreSQL) via a different
DatabaseBackend implementation. All access goes through the abstract interface.
The Database handle is built by the process entry point and passed in; there is
no module-level connection.
"""

from __future__ import annotations

import sqlite3
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterable, Iterator

from backend_riskoracle.core.addresses import normalize_address
from backend_riskoracle.core.exceptions import InvalidTierError, WalletNotFoundError
from backend_riskoracle.database.models import TransactionRecord, WalletRecord
from backend_riskoracle.riskoracle_logging import get_logger

logger = get_logger(__name__)

MIN_TIER = 0
MAX_TIER = 4

# -----------------------------------------------------------------------------
# Schema (SQLite). For PostgreSQL: SERIAL ids, TIMESTAMPTZ, BOOLEAN and %s.
# -----------------------------------------------------------------------------

SCHEMA_WALLETS = """
CREATE TABLE IF NOT EXISTS wallets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    address TEXT NOT NULL UNIQUE,
    tier INTEGER NOT NULL DEFAULT 0,
    first_seen INTEGER NOT NULL,
    last_seen INTEGER NOT NULL,
    tx_count INTEGER NOT NULL DEFAULT 0,
    created_at INTEGER,
    updated_at INTEGER
);
CREATE INDEX IF NOT EXISTS ix_wallets_address ON wallets(address);
CREATE INDEX IF NOT EXISTS ix_wallets_tier ON wallets(tier);
"""

SCHEMA_TRANSACTIONS = """
CREATE TABLE IF NOT EXISTS transactions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    wallet_id INTEGER NOT NULL REFERENCES wallets(id) ON DELETE CASCADE ON UPDATE CASCADE,
    tx_hash TEXT NOT NULL UNIQUE,
    block_number INTEGER NOT NULL DEFAULT 0,
    timestamp INTEGER NOT NULL,
    action TEXT NOT NULL DEFAULT '',
    value_usd REAL NOT NULL DEFAULT 0,
    gas_used INTEGER NOT NULL DEFAULT 0,
    is_flip INTEGER NOT NULL DEFAULT 0,
    is_suspicious INTEGER NOT NULL DEFAULT 0,
    created_at INTEGER
);
CREATE INDEX IF NOT EXISTS ix_transactions_wallet_id ON transactions(wallet_id);
CREATE INDEX IF NOT EXISTS ix_transactions_timestamp ON transactions(timestamp);
CREATE INDEX IF NOT EXISTS ix_transactions_block_number ON transactions(block_number);
"""


def _check_tier(tier: int) -> int:
    if isinstance(tier, bool) or not isinstance(tier, int) or not MIN_TIER <= tier <= MAX_TIER:
        raise InvalidTierError(tier)
    return tier


def _wallet_from_row(row: sqlite3.Row) -> WalletRecord:
    return WalletRecord(
        id=row["id"],
        address=row["address"],
        tier=row["tier"],
        first_seen=row["first_seen"],
        last_seen=row["last_seen"],
        tx_count=row["tx_count"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _tx_from_row(row: sqlite3.Row) -> TransactionRecord:
    return TransactionRecord(
        id=row["id"],
        wallet_id=row["wallet_id"],
        tx_hash=row["tx_hash"],
        block_number=row["block_number"],
        timestamp=row["timestamp"],
        action=row["action"],
        value_usd=row["value_usd"],
        gas_used=row["gas_used"],
        is_flip=bool(row["is_flip"]),
        is_suspicious=bool(row["is_suspicious"]),
        created_at=row["created_at"],
    )


# -----------------------------------------------------------------------------
# Abstract backend
# -----------------------------------------------------------------------------


class DatabaseBackend(ABC):
    """Abstract persistence interface; addresses arrive already normalized."""

    @abstractmethod
    def ensure_schema(self) -> None:
        """Create tables and indexes if they do not exist."""
        ...

    @abstractmethod
    def register_wallet(self, address: str, first_seen: int, now: int) -> bool:
        """Insert the wallet if absent. Returns True if newly created."""
        ...

    @abstractmethod
    def get_wallet(self, address: str) -> WalletRecord | None:
        ...

    @abstractmethod
    def list_wallets(self, *, limit: int | None = None) -> list[WalletRecord]:
        """All wallets in insertion order."""
        ...

    @abstractmethod
    def insert_transactions(self, address: str, records: list[TransactionRecord], now: int) -> int:
        """
        Insert transactions for a wallet, creating the wallet on first observation.
        Duplicate hashes are ignored. Maintains first_seen/last_seen/tx_count.
        Returns number inserted.
        """
        ...

    @abstractmethod
    def get_transaction_history(
        self,
        address: str,
        *,
        since_timestamp: int | None = None,
        limit: int | None = None,
    ) -> list[TransactionRecord]:
        """Transaction history for a wallet, ascending by timestamp."""
        ...

    @abstractmethod
    def set_wallet_tier(self, address: str, tier: int, now: int) -> int:
        """Atomically replace the cached tier. Returns the previous tier."""
        ...

    @abstractmethod
    def delete_wallet(self, address: str) -> bool:
        """Remove a wallet and (by cascade) its transactions. Returns True if removed."""
        ...

    @abstractmethod
    def count_wallets_by_tier(self) -> dict[int, int]:
        ...


# -----------------------------------------------------------------------------
# SQLite backend
# -----------------------------------------------------------------------------


class SQLiteBackend(DatabaseBackend):
    """SQLite implementation; single file, one connection per operation."""

    def __init__(self, path: str | Path, *, timeout_sec: float = 5.0) -> None:
        self._path = Path(path)
        self._timeout_sec = timeout_sec

    @property
    def path(self) -> Path:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        # Autocommit mode; transactions are opened explicitly in _cursor()
        conn = sqlite3.connect(str(self._path), timeout=self._timeout_sec, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute("PRAGMA journal_mode = WAL")
        return conn

    @contextmanager
    def _cursor(self, *, immediate: bool = False) -> Iterator[sqlite3.Cursor]:
        """
        Cursor inside one transaction. immediate=True takes the write lock up front
        so a read-modify-write cannot interleave with another writer.
        """
        conn = self._connect()
        try:
            cur = conn.cursor()
            cur.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
            yield cur
            conn.execute("COMMIT")
        except Exception:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
        finally:
            conn.close()

    def ensure_schema(self) -> None:
        conn = self._connect()
        try:
            for stmt in (SCHEMA_WALLETS, SCHEMA_TRANSACTIONS):
                conn.executescript(stmt)
        finally:
            conn.close()

    def register_wallet(self, address: str, first_seen: int, now: int) -> bool:
        with self._cursor() as cur:
            cur.execute(
                """
                INSERT OR IGNORE INTO wallets (address, tier, first_seen, last_seen, tx_count, created_at, updated_at)
                VALUES (?, 0, ?, ?, 0, ?, ?)
                """,
                (address, first_seen, first_seen, now, now),
            )
            return cur.rowcount > 0

    def get_wallet(self, address: str) -> WalletRecord | None:
        with self._cursor() as cur:
            cur.execute("SELECT * FROM wallets WHERE address = ?", (address,))
            row = cur.fetchone()
        return _wallet_from_row(row) if row is not None else None

    def list_wallets(self, *, limit: int | None = None) -> list[WalletRecord]:
        sql = "SELECT * FROM wallets ORDER BY id ASC"
        params: list[Any] = []
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        with self._cursor() as cur:
            cur.execute(sql, params)
            rows = cur.fetchall()
        return [_wallet_from_row(r) for r in rows]

    def insert_transactions(self, address: str, records: list[TransactionRecord], now: int) -> int:
        if not records:
            return 0
        earliest = min(r.timestamp for r in records)
        inserted = 0
        with self._cursor(immediate=True) as cur:
            cur.execute(
                """
                INSERT OR IGNORE INTO wallets (address, tier, first_seen, last_seen, tx_count, created_at, updated_at)
                VALUES (?, 0, ?, ?, 0, ?, ?)
                """,
                (address, earliest, earliest, now, now),
            )
            cur.execute("SELECT id FROM wallets WHERE address = ?", (address,))
            wallet_id = cur.fetchone()["id"]
            for rec in records:
                cur.execute(
                    """
                    INSERT OR IGNORE INTO transactions (
                        wallet_id, tx_hash, block_number, timestamp, action, value_usd,
                        gas_used, is_flip, is_suspicious, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        wallet_id,
                        rec.tx_hash,
                        rec.block_number,
                        rec.timestamp,
                        rec.action,
                        rec.value_usd,
                        rec.gas_used,
                        int(rec.is_flip),
                        int(rec.is_suspicious),
                        now,
                    ),
                )
                inserted += cur.rowcount
            cur.execute(
                """
                UPDATE wallets SET
                    tx_count = (SELECT COUNT(*) FROM transactions WHERE wallet_id = :id),
                    first_seen = MIN(first_seen, COALESCE((SELECT MIN(timestamp) FROM transactions WHERE wallet_id = :id), first_seen)),
                    last_seen = MAX(last_seen, COALESCE((SELECT MAX(timestamp) FROM transactions WHERE wallet_id = :id), last_seen)),
                    updated_at = :now
                WHERE id = :id
                """,
                {"id": wallet_id, "now": now},
            )
        return inserted

    def get_transaction_history(
        self,
        address: str,
        *,
        since_timestamp: int | None = None,
        limit: int | None = None,
    ) -> list[TransactionRecord]:
        sql = """
            SELECT t.* FROM transactions t
            JOIN wallets w ON w.id = t.wallet_id
            WHERE w.address = ?
        """
        params: list[Any] = [address]
        if since_timestamp is not None:
            sql += " AND t.timestamp >= ?"
            params.append(since_timestamp)
        sql += " ORDER BY t.timestamp ASC, t.id ASC"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        with self._cursor() as cur:
            cur.execute(sql, params)
            rows = cur.fetchall()
        return [_tx_from_row(r) for r in rows]

    def set_wallet_tier(self, address: str, tier: int, now: int) -> int:
        with self._cursor(immediate=True) as cur:
            cur.execute("SELECT tier FROM wallets WHERE address = ?", (address,))
            row = cur.fetchone()
            if row is None:
                raise WalletNotFoundError(address)
            previous = row["tier"]
            if previous != tier:
                cur.execute(
                    "UPDATE wallets SET tier = ?, updated_at = ? WHERE address = ?",
                    (tier, now, address),
                )
        return previous

    def delete_wallet(self, address: str) -> bool:
        with self._cursor() as cur:
            cur.execute("DELETE FROM wallets WHERE address = ?", (address,))
            return cur.rowcount > 0

    def count_wallets_by_tier(self) -> dict[int, int]:
        counts = {t: 0 for t in range(MIN_TIER, MAX_TIER + 1)}
        with self._cursor() as cur:
            cur.execute("SELECT tier, COUNT(*) AS n FROM wallets GROUP BY tier")
            for row in cur.fetchall():
                counts[row["tier"]] = row["n"]
        return counts


# -----------------------------------------------------------------------------
# Database facade: single entrypoint; backend is swappable.
# -----------------------------------------------------------------------------


class Database:
    """
    Transaction store facade: wallets, transaction history, cached tiers.

    Normalizes addresses and validates tiers before delegating to the backend.
    """

    def __init__(self, backend: DatabaseBackend) -> None:
        self._backend = backend

    def ensure_schema(self) -> None:
        self._backend.ensure_schema()

    # --- Wallets ---

    def register_wallet(self, address: str, first_seen: int | None = None) -> bool:
        """Explicitly register a wallet (tier 0). Returns True if newly created."""
        now = int(time.time())
        return self._backend.register_wallet(
            normalize_address(address),
            first_seen if first_seen is not None else now,
            now,
        )

    def get_wallet(self, address: str) -> WalletRecord | None:
        return self._backend.get_wallet(normalize_address(address))

    def list_wallets(self, *, limit: int | None = None) -> list[WalletRecord]:
        return self._backend.list_wallets(limit=limit)

    def delete_wallet(self, address: str) -> bool:
        removed = self._backend.delete_wallet(normalize_address(address))
        if removed:
            logger.info("wallet_deleted", wallet_id=address)
        return removed

    def count_wallets_by_tier(self) -> dict[int, int]:
        return self._backend.count_wallets_by_tier()

    # --- Transactions ---

    def insert_transactions(self, address: str, records: Iterable[TransactionRecord]) -> int:
        """Insert transactions; wallet is created on first observed transaction. Returns count inserted."""
        rows = list(records)
        inserted = self._backend.insert_transactions(normalize_address(address), rows, int(time.time()))
        logger.debug("transactions_inserted", wallet_id=address, inserted=inserted, received=len(rows))
        return inserted

    def get_transaction_history(
        self,
        address: str,
        *,
        since_timestamp: int | None = None,
        limit: int | None = None,
    ) -> list[TransactionRecord]:
        """Ascending by timestamp (the order the classifier expects)."""
        return self._backend.get_transaction_history(
            normalize_address(address), since_timestamp=since_timestamp, limit=limit
        )

    # --- Tiers ---

    def set_wallet_tier(self, address: str, tier: int) -> int:
        """Persist a classifier result. Returns the previous cached tier."""
        return self._backend.set_wallet_tier(normalize_address(address), _check_tier(tier), int(time.time()))


def get_database(path: str | Path | None = None) -> Database:
    """
    Build a Database over SQLite and ensure the schema exists.

    path: SQLite file (default "riskoracle.db" in cwd). Callers own the handle and
    pass it to the classifier, synchronizer and verifier.
    """
    if path is None:
        path = Path("riskoracle.db")
    db = Database(SQLiteBackend(path))
    db.ensure_schema()
    return db
