#!/usr/bin/env python3
"""
Compare stored tiers with the oracle contract and probe can().

Prints DB tier vs chain tier per wallet, then the permission probes.
Exit code 1 if any wallet mismatches or a probe disagrees with the local
threshold table.

Usage:
  py -m backend_riskoracle.tools.query_tiers
  py -m backend_riskoracle.tools.query_tiers --no-probe
"""

from __future__ import annotations

import argparse
import sys

from backend_riskoracle.analytics.tiers import ActionType, tier_name
from backend_riskoracle.config import get_settings
from backend_riskoracle.config.env import validate_reader_env
from backend_riskoracle.core.exceptions import ConfigError
from backend_riskoracle.database import get_database
from backend_riskoracle.oracle import VerificationReport, get_oracle_reader, verify
from backend_riskoracle.riskoracle_logging import get_logger

logger = get_logger(__name__)

SEP = "-" * 75


def _action_label(action: int) -> str:
    try:
        return ActionType(action).name
    except ValueError:
        return f"UNKNOWN({action})"


def print_report(report: VerificationReport) -> None:
    print(f"{'Address':<44} {'DB Tier':<16} {'Chain Tier':<16} Match")
    print(SEP)
    for e in report.entries:
        db_col = f"{e.db_tier} ({tier_name(e.db_tier)})"
        chain_col = f"{e.chain_tier} ({tier_name(e.chain_tier)})"
        print(f"{e.wallet:<44} {db_col:<16} {chain_col:<16} {'yes' if e.match else 'NO'}")
    print(SEP)
    if report.all_match:
        print("All tiers match between database and chain.")
    else:
        print(f"{len(report.mismatches)} tier(s) do not match. Run push_tiers to sync.")

    if report.probes:
        print("\nPermission probes:")
        current = None
        for p in report.probes:
            if p.wallet != current:
                current = p.wallet
                print(f"  Wallet ...{p.wallet[-6:]} (Tier {p.tier} - {tier_name(p.tier)}):")
            flag = "" if p.agrees else "  <-- expected " + ("allow" if p.expected else "deny")
            print(f"    {'allow' if p.allowed else 'deny '} {_action_label(p.action_type)}{flag}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Verify on-chain tiers against the database.")
    parser.add_argument("--db", default=None, help="SQLite path (default: DB_PATH or riskoracle.db)")
    parser.add_argument("--no-probe", action="store_true", help="Skip can() permission probes")
    args = parser.parse_args()

    try:
        validate_reader_env()
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    settings = get_settings()
    db = get_database(args.db or settings.db_path)
    reader = get_oracle_reader(settings)
    report = verify(db, reader, probe=not args.no_probe)
    print_report(report)
    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
