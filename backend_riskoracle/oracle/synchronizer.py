"""
Chain synchronizer: push the latest wallet tiers to the oracle contract.

Write-through ordering: tiers are persisted to the store before any chain
write, so a crash mid-sync never leaves the chain ahead of the database.
Batches go out strictly one at a time; each must be confirmed before the
next is submitted. The first failed batch halts the run with
SynchronizationError; earlier confirmed batches stay applied, and re-running
is always safe because the contract skips entries that are already current.

Config: SYNC_BATCH_SIZE (default 50, 1..200), CONFIRM_TIMEOUT_SEC,
CONFIRM_POLL_INTERVAL_SEC, RETRY_ATTEMPTS, RETRY_BACKOFF_SEC, DRY_RUN.
"""

from __future__ import annotations

import os
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from backend_riskoracle.analytics.reclassifier import TierTransition, reclassify_all
from backend_riskoracle.analytics.tiers import is_valid_tier
from backend_riskoracle.config.env import load_riskoracle_env, parse_bool_env
from backend_riskoracle.core.addresses import normalize_address
from backend_riskoracle.core.exceptions import (
    ConfigError,
    InvalidTierError,
    SynchronizationError,
    WalletNotFoundError,
)
from backend_riskoracle.database import Database
from backend_riskoracle.oracle.chain import (
    DEFAULT_CONFIRM_POLL_INTERVAL_SEC,
    DEFAULT_CONFIRM_TIMEOUT_SEC,
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_RETRY_BACKOFF_SEC,
    BatchReceipt,
)
from backend_riskoracle.oracle.tier_oracle import MAX_BATCH_SIZE
from backend_riskoracle.riskoracle_logging import get_logger

logger = get_logger(__name__)

DEFAULT_SYNC_BATCH_SIZE = 50


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e


@dataclass
class SyncConfig:
    """Batching and confirmation policy for chain sync (env or explicit)."""

    batch_size: int = field(default_factory=lambda: _env_int("SYNC_BATCH_SIZE", DEFAULT_SYNC_BATCH_SIZE))
    confirm_timeout_sec: float = field(
        default_factory=lambda: _env_float("CONFIRM_TIMEOUT_SEC", DEFAULT_CONFIRM_TIMEOUT_SEC)
    )
    confirm_poll_interval_sec: float = field(
        default_factory=lambda: _env_float("CONFIRM_POLL_INTERVAL_SEC", DEFAULT_CONFIRM_POLL_INTERVAL_SEC)
    )
    retry_attempts: int = field(default_factory=lambda: _env_int("RETRY_ATTEMPTS", DEFAULT_RETRY_ATTEMPTS))
    retry_backoff_sec: float = field(
        default_factory=lambda: _env_float("RETRY_BACKOFF_SEC", DEFAULT_RETRY_BACKOFF_SEC)
    )
    dry_run: bool = field(default_factory=lambda: parse_bool_env("DRY_RUN", False))

    def __post_init__(self) -> None:
        if not 1 <= self.batch_size <= MAX_BATCH_SIZE:
            raise ConfigError(f"SYNC_BATCH_SIZE must be between 1 and {MAX_BATCH_SIZE}, got {self.batch_size}")
        if self.confirm_timeout_sec <= 0:
            raise ConfigError("CONFIRM_TIMEOUT_SEC must be positive")
        if self.confirm_poll_interval_sec < 0:
            self.confirm_poll_interval_sec = 0.0
        if self.retry_attempts < 1:
            self.retry_attempts = 1
        if self.retry_backoff_sec < 0:
            self.retry_backoff_sec = 0.0

    def writer_kwargs(self) -> dict[str, Any]:
        """Timeout/retry policy in the form get_oracle_writer accepts."""
        return {
            "confirm_timeout_sec": self.confirm_timeout_sec,
            "confirm_poll_interval_sec": self.confirm_poll_interval_sec,
            "retry_attempts": self.retry_attempts,
            "retry_backoff_sec": self.retry_backoff_sec,
        }


def load_sync_config() -> SyncConfig:
    load_riskoracle_env()
    return SyncConfig()


@dataclass
class SyncResult:
    """Outcome of one sync run (complete or cancelled between batches)."""

    pairs: int = 0
    batches_total: int = 0
    batches_confirmed: int = 0
    receipts: list[BatchReceipt] = field(default_factory=list)
    cancelled: bool = False
    transitions: list[TierTransition] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.cancelled and self.batches_confirmed == self.batches_total

    def to_dict(self) -> dict[str, Any]:
        return {
            "pairs": self.pairs,
            "batches_total": self.batches_total,
            "batches_confirmed": self.batches_confirmed,
            "cancelled": self.cancelled,
            "transitions": [t.to_dict() for t in self.transitions],
            "receipts": [r.to_dict() for r in self.receipts],
        }


def chunk_pairs(pairs: Sequence[tuple[str, int]], size: int) -> list[list[tuple[str, int]]]:
    return [list(pairs[i : i + size]) for i in range(0, len(pairs), size)]


class ChainSynchronizer:
    """
    Persists tiers then pushes them to the oracle in sequential, confirmed batches.

    client: anything with set_tier_batch(wallets, tiers) -> BatchReceipt
    (OracleWriter on chain, LocalOracleClient for dry runs and tests).
    """

    def __init__(self, db: Database, client: Any, config: SyncConfig | None = None) -> None:
        self._db = db
        self._client = client
        self._config = config or SyncConfig()

    @property
    def config(self) -> SyncConfig:
        return self._config

    @staticmethod
    def _normalize(pairs: Iterable[tuple[str, int]]) -> list[tuple[str, int]]:
        out: list[tuple[str, int]] = []
        for wallet, tier in pairs:
            if not is_valid_tier(tier):
                raise InvalidTierError(tier)
            out.append((normalize_address(wallet), int(tier)))
        return out

    def push(
        self,
        pairs: Iterable[tuple[str, int]],
        stop_event: threading.Event | None = None,
        *,
        persist: bool = True,
    ) -> SyncResult:
        """
        Push (wallet, tier) pairs. With persist=True each tier is written to the
        store first; every wallet must already be registered (WalletNotFoundError
        before any write otherwise). Raises SynchronizationError on the first
        failed batch.
        """
        normalized = self._normalize(pairs)
        if persist:
            for wallet, _ in normalized:
                if self._db.get_wallet(wallet) is None:
                    raise WalletNotFoundError(wallet)
            for wallet, tier in normalized:
                self._db.set_wallet_tier(wallet, tier)

        batches = chunk_pairs(normalized, self._config.batch_size)
        result = SyncResult(pairs=len(normalized), batches_total=len(batches))
        logger.info(
            "sync_started",
            pairs=len(normalized),
            batches=len(batches),
            batch_size=self._config.batch_size,
        )

        for index, batch in enumerate(batches):
            if stop_event is not None and stop_event.is_set():
                result.cancelled = True
                logger.info(
                    "sync_cancelled",
                    batches_confirmed=result.batches_confirmed,
                    batches_total=result.batches_total,
                )
                return result
            wallets = [w for w, _ in batch]
            tiers = [t for _, t in batch]
            logger.info("sync_batch_sent", batch=index + 1, batches=len(batches), wallet_count=len(batch))
            t0 = time.monotonic()
            try:
                receipt = self._client.set_tier_batch(wallets, tiers)
            except Exception as e:
                logger.error(
                    "sync_batch_failed",
                    batch=index + 1,
                    batches=len(batches),
                    batches_confirmed=result.batches_confirmed,
                    error=str(e),
                )
                logger.error("sync_halted", failed_batch=index + 1, batches_confirmed=result.batches_confirmed)
                raise SynchronizationError(index, result.batches_confirmed, len(batches), e) from e
            result.receipts.append(receipt)
            result.batches_confirmed += 1
            logger.info(
                "sync_batch_confirmed",
                batch=index + 1,
                batches=len(batches),
                tx_hash=receipt.tx_hash,
                block_number=receipt.block_number,
                gas_used=receipt.gas_used,
                duration_ms=round((time.monotonic() - t0) * 1000, 2),
            )

        logger.info("sync_complete", pairs=result.pairs, batches_confirmed=result.batches_confirmed)
        return result

    def run(
        self,
        now: int | None = None,
        stop_event: threading.Event | None = None,
        *,
        max_workers: int = 1,
    ) -> SyncResult:
        """Reclassify every wallet (persisting deltas), then push every current tier."""
        reclassified = reclassify_all(self._db, now, max_workers=max_workers)
        pairs = sorted(reclassified.tiers.items())
        result = self.push(pairs, stop_event, persist=False)
        result.transitions = list(reclassified.transitions)
        return result
