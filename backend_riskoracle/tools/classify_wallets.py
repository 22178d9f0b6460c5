#!/usr/bin/env python3
"""
Reclassify every stored wallet and print the tier distribution.

Usage:
  py -m backend_riskoracle.tools.classify_wallets
  py -m backend_riskoracle.tools.classify_wallets --workers 4
  py -m backend_riskoracle.tools.classify_wallets --wallet 0xabc...   # explain one wallet, no writes
"""

from __future__ import annotations

import argparse
import json
import sys

from backend_riskoracle.analytics import TIER_NAMES, assess_wallet, explain_tier, reclassify_all
from backend_riskoracle.config.env import get_db_path, load_riskoracle_env
from backend_riskoracle.core.exceptions import ValidationError
from backend_riskoracle.database import get_database
from backend_riskoracle.riskoracle_logging import get_logger

logger = get_logger(__name__)

SEP = "-" * 60


def main() -> int:
    load_riskoracle_env()
    parser = argparse.ArgumentParser(description="Recompute wallet tiers from transaction history.")
    parser.add_argument("--db", default=None, help="SQLite path (default: DB_PATH or riskoracle.db)")
    parser.add_argument("--wallet", default=None, help="Explain a single wallet without persisting")
    parser.add_argument("--workers", type=int, default=1, help="Parallel classification threads")
    parser.add_argument("--json", action="store_true", help="Print machine-readable output")
    args = parser.parse_args()

    db = get_database(args.db or get_db_path())

    if args.wallet:
        try:
            assessment = assess_wallet(db, args.wallet)
        except ValidationError as e:
            print(f"Invalid wallet: {e}", file=sys.stderr)
            return 2
        if args.json:
            print(json.dumps({"wallet": args.wallet.lower(), **assessment.to_dict()}, indent=2))
        else:
            print(f"{args.wallet.lower()}  {explain_tier(assessment)}")
        return 0

    result = reclassify_all(db, max_workers=max(1, args.workers))
    counts = db.count_wallets_by_tier()

    if args.json:
        print(
            json.dumps(
                {
                    "processed": result.processed,
                    "transitions": [t.to_dict() for t in result.transitions],
                    "failed": result.failed,
                    "distribution": {str(k): v for k, v in sorted(counts.items())},
                },
                indent=2,
            )
        )
    else:
        for t in result.transitions:
            print(f"  {t.wallet}  {t.old_tier} -> {t.new_tier} ({TIER_NAMES[t.new_tier]})")
        print(SEP)
        print(f"Processed {result.processed} wallets: {len(result.transitions)} changed, "
              f"{result.unchanged} unchanged, {len(result.failed)} failed")
        for tier in sorted(TIER_NAMES):
            print(f"  Tier {int(tier)} ({TIER_NAMES[tier]:<10}) {counts.get(int(tier), 0)}")
    return 1 if result.failed else 0


if __name__ == "__main__":
    sys.exit(main())
