#!/usr/bin/env python3
"""
Sync tiers: Database -> Chain.

Reclassifies every wallet (persisting tiers first), then pushes all tiers to
the oracle contract in confirmed batches of SYNC_BATCH_SIZE. A failed batch
halts the run with exit code 1; re-running is always safe.

Ctrl+C stops between batches (the in-flight batch is still awaited).

Usage:
  py -m backend_riskoracle.tools.push_tiers
  py -m backend_riskoracle.tools.push_tiers --dry-run      # in-process oracle, no RPC or key
  py -m backend_riskoracle.tools.push_tiers --batch-size 100
"""

from __future__ import annotations

import argparse
import signal
import sys
import threading
from dataclasses import replace
from typing import Any

from backend_riskoracle.config import Settings, get_settings
from backend_riskoracle.config.env import describe_startup, validate_blockchain_env
from backend_riskoracle.core.exceptions import ConfigError, SynchronizationError
from backend_riskoracle.database import get_database
from backend_riskoracle.oracle import (
    ChainSynchronizer,
    LocalOracleClient,
    SyncConfig,
    SyncResult,
    TierOracle,
    get_oracle_writer,
    load_sync_config,
)
from backend_riskoracle.riskoracle_logging import get_logger

logger = get_logger(__name__)

DRY_RUN_DEPLOYER = "0x" + "d" * 40


def build_client(settings: Settings, config: SyncConfig) -> Any:
    """Oracle client for the run: in-process oracle for dry runs, web3 writer otherwise."""
    if config.dry_run:
        return LocalOracleClient(TierOracle(DRY_RUN_DEPLOYER))
    validate_blockchain_env()
    return get_oracle_writer(settings, **config.writer_kwargs())


def run_sync(
    *,
    db_path: str | None = None,
    dry_run: bool | None = None,
    batch_size: int | None = None,
    stop_event: threading.Event | None = None,
) -> SyncResult:
    """Reclassify and push once. Raises ConfigError or SynchronizationError."""
    settings = get_settings()
    config = load_sync_config()
    if dry_run is not None:
        config.dry_run = dry_run
    if batch_size is not None:
        config = replace(config, batch_size=batch_size)
    client = build_client(settings, config)
    db = get_database(db_path or settings.db_path)
    startup = settings.redacted()
    startup["dry_run"] = config.dry_run
    logger.info("push_tiers_start", signer=client.signer, **startup)
    return ChainSynchronizer(db, client, config).run(stop_event=stop_event)


def main() -> int:
    parser = argparse.ArgumentParser(description="Push wallet tiers to the oracle contract.")
    parser.add_argument("--db", default=None, help="SQLite path (default: DB_PATH or riskoracle.db)")
    parser.add_argument("--dry-run", action="store_true", default=None, help="Push to an in-process oracle")
    parser.add_argument("--batch-size", type=int, default=None, help="Wallets per setTierBatch (1-200)")
    args = parser.parse_args()

    for k, v in describe_startup("push_tiers").items():
        print(f"  {k}: {v}")

    stop_event = threading.Event()
    previous_handler = signal.signal(signal.SIGINT, lambda *_: stop_event.set())

    try:
        result = run_sync(db_path=args.db, dry_run=args.dry_run, batch_size=args.batch_size, stop_event=stop_event)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    except SynchronizationError as e:
        print(f"Sync halted: {e}", file=sys.stderr)
        print("Earlier batches stay applied; re-run to resume.", file=sys.stderr)
        return 1
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    for t in result.transitions:
        print(f"  {t.wallet}  {t.old_tier} -> {t.new_tier}")
    for i, r in enumerate(result.receipts, start=1):
        print(f"  Batch {i}/{result.batches_total}: {r.tx_hash} block={r.block_number} gas={r.gas_used}")
    if result.cancelled:
        print(f"Cancelled after {result.batches_confirmed}/{result.batches_total} batches.")
        return 1
    print(f"Synced {result.pairs} wallets in {result.batches_confirmed} batch(es).")
    return 0


if __name__ == "__main__":
    sys.exit(main())
