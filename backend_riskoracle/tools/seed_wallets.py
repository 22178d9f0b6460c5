#!/usr/bin/env python3
"""
Seed the store with five demo wallets, one per tier.

  0x1111...  no transactions                                   -> Tier 0
  0x2222...  10 flip trades, 5 minutes apart, in the last hour -> Tier 1
  0x3333...  5 swaps every 2 days over the last 10 days        -> Tier 2
  0x4444...  20 swaps every 16 hours over the last 14 days     -> Tier 3
  0x5555...  50 swaps every 43 hours over the last 90 days     -> Tier 4

Existing demo wallets are deleted first (their transactions cascade).

Usage:
  py -m backend_riskoracle.tools.seed_wallets [--db riskoracle.db]
"""

from __future__ import annotations

import argparse
import sys
import time
from dataclasses import dataclass, field

from backend_riskoracle.config.env import get_db_path, load_riskoracle_env
from backend_riskoracle.database import Database, TransactionRecord, get_database
from backend_riskoracle.riskoracle_logging import get_logger

logger = get_logger(__name__)

HOUR = 3600
DAY = 24 * HOUR


@dataclass
class DemoWallet:
    address: str
    description: str
    expected_tier: int
    first_seen_offset: int
    """Seconds before `now` the wallet was first seen."""
    transactions: list[TransactionRecord] = field(default_factory=list)


def _hash(tag: str, i: int) -> str:
    return f"0x{tag}{i:0{64 - len(tag)}d}"


def build_demo_wallets(now: int) -> list[DemoWallet]:
    """Demo wallets with transaction timelines relative to `now`."""
    wallets: list[DemoWallet] = []

    wallets.append(DemoWallet("0x" + "1" * 40, "Brand new wallet", 0, 0))

    flipper = DemoWallet("0x" + "2" * 40, "Suspicious flipper", 1, HOUR)
    start = now - HOUR
    for i in range(10):
        flipper.transactions.append(
            TransactionRecord(
                tx_hash=_hash("flip", i),
                timestamp=start + i * 5 * 60,
                is_flip=True,
                is_suspicious=True,
                action="buy" if i % 2 == 0 else "sell",
                value_usd=1000.0,
                block_number=1_000_000 + i,
                gas_used=150_000,
            )
        )
    wallets.append(flipper)

    normal = DemoWallet("0x" + "3" * 40, "Normal user", 2, 10 * DAY)
    start = now - 10 * DAY
    for i in range(5):
        normal.transactions.append(
            TransactionRecord(
                tx_hash=_hash("normal", i),
                timestamp=start + i * 2 * DAY,
                action="swap",
                value_usd=500.0 + 100.0 * i,
                block_number=1_000_100 + i,
                gas_used=120_000,
            )
        )
    wallets.append(normal)

    stable = DemoWallet("0x" + "4" * 40, "Stable trader", 3, 14 * DAY)
    start = now - 14 * DAY
    for i in range(20):
        stable.transactions.append(
            TransactionRecord(
                tx_hash=_hash("stable", i),
                timestamp=start + i * 16 * HOUR,
                action="provide_liquidity" if i % 3 == 0 else "swap",
                value_usd=2000.0 + 50.0 * i,
                block_number=1_000_200 + i,
                gas_used=180_000,
            )
        )
    wallets.append(stable)

    longterm = DemoWallet("0x" + "5" * 40, "Long-term trusted", 4, 90 * DAY)
    start = now - 90 * DAY
    for i in range(50):
        longterm.transactions.append(
            TransactionRecord(
                tx_hash=_hash("longterm", i),
                timestamp=start + i * 43 * HOUR,
                action=("swap", "provide_liquidity", "stake")[i % 3],
                value_usd=5000.0 + 25.0 * i,
                block_number=1_000_300 + i,
                gas_used=200_000,
            )
        )
    wallets.append(longterm)
    return wallets


def seed(db: Database, now: int | None = None) -> list[DemoWallet]:
    """Replace the demo wallets in `db`. Returns what was written."""
    now = int(time.time()) if now is None else int(now)
    demo = build_demo_wallets(now)
    for w in demo:
        db.delete_wallet(w.address)
        db.register_wallet(w.address, first_seen=now - w.first_seen_offset)
        if w.transactions:
            db.insert_transactions(w.address, w.transactions)
        logger.info(
            "demo_wallet_seeded",
            wallet_id=w.address,
            expected_tier=w.expected_tier,
            tx_count=len(w.transactions),
        )
    return demo


def main() -> int:
    load_riskoracle_env()
    parser = argparse.ArgumentParser(description="Seed demo wallets covering tiers 0-4.")
    parser.add_argument("--db", default=None, help="SQLite path (default: DB_PATH or riskoracle.db)")
    args = parser.parse_args()

    db = get_database(args.db or get_db_path())
    demo = seed(db)
    for w in demo:
        print(f"  {w.address}  {w.description:<20} {len(w.transactions):>3} txs  (expected tier {w.expected_tier})")
    print(f"\nSeeded {len(demo)} wallets, {sum(len(w.transactions) for w in demo)} transactions.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
