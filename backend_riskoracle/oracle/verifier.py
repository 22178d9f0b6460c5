"""
Read-back verification: compare stored tiers against the oracle contract.

Reads every wallet's on-chain tier (getTierBatch, chunked) and reports
match/mismatch per wallet. Then probes can() once per populated on-chain tier
level, lowest first, for every action type plus one unrecognized action, and
flags any answer that disagrees with the local threshold table. Never mutates
either side.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from backend_riskoracle.analytics.tiers import ActionType, is_permitted
from backend_riskoracle.database import Database
from backend_riskoracle.oracle.tier_oracle import MAX_BATCH_SIZE
from backend_riskoracle.riskoracle_logging import get_logger

logger = get_logger(__name__)

UNRECOGNIZED_ACTION = 255


@dataclass(frozen=True)
class WalletComparison:
    wallet: str
    db_tier: int
    chain_tier: int

    @property
    def match(self) -> bool:
        return self.db_tier == self.chain_tier

    def to_dict(self) -> dict[str, Any]:
        return {"wallet": self.wallet, "db_tier": self.db_tier, "chain_tier": self.chain_tier, "match": self.match}


@dataclass(frozen=True)
class PermissionProbe:
    wallet: str
    tier: int
    action_type: int
    allowed: bool
    expected: bool

    @property
    def agrees(self) -> bool:
        return self.allowed == self.expected

    def to_dict(self) -> dict[str, Any]:
        return {
            "wallet": self.wallet,
            "tier": self.tier,
            "action_type": self.action_type,
            "allowed": self.allowed,
            "expected": self.expected,
        }


@dataclass
class VerificationReport:
    entries: list[WalletComparison] = field(default_factory=list)
    probes: list[PermissionProbe] = field(default_factory=list)

    @property
    def mismatches(self) -> list[WalletComparison]:
        return [e for e in self.entries if not e.match]

    @property
    def probe_failures(self) -> list[PermissionProbe]:
        return [p for p in self.probes if not p.agrees]

    @property
    def all_match(self) -> bool:
        return not self.mismatches

    @property
    def ok(self) -> bool:
        return self.all_match and not self.probe_failures

    def to_dict(self) -> dict[str, Any]:
        return {
            "all_match": self.all_match,
            "mismatch_count": len(self.mismatches),
            "probe_failure_count": len(self.probe_failures),
            "entries": [e.to_dict() for e in self.entries],
            "probes": [p.to_dict() for p in self.probes],
        }


def probe_permissions(reader: Any, entries: list[WalletComparison]) -> list[PermissionProbe]:
    """One representative wallet per populated on-chain tier, lowest tier first."""
    representatives: dict[int, str] = {}
    for entry in entries:
        representatives.setdefault(entry.chain_tier, entry.wallet)

    probes: list[PermissionProbe] = []
    actions = [int(a) for a in ActionType] + [UNRECOGNIZED_ACTION]
    for tier in sorted(representatives):
        wallet = representatives[tier]
        for action in actions:
            allowed = bool(reader.can(wallet, action))
            probe = PermissionProbe(wallet, tier, action, allowed, is_permitted(tier, action))
            if not probe.agrees:
                logger.warning(
                    "verify_permission_disagreement",
                    wallet_id=wallet,
                    tier=tier,
                    action_type=action,
                    allowed=allowed,
                )
            probes.append(probe)
    return probes


def verify(db: Database, reader: Any, *, probe: bool = True) -> VerificationReport:
    """Compare DB and chain tiers for every stored wallet."""
    wallets = db.list_wallets()
    report = VerificationReport()
    for i in range(0, len(wallets), MAX_BATCH_SIZE):
        chunk = wallets[i : i + MAX_BATCH_SIZE]
        chain_tiers = reader.get_tier_batch([w.address for w in chunk])
        for wallet, chain_tier in zip(chunk, chain_tiers):
            entry = WalletComparison(wallet.address, int(wallet.tier), int(chain_tier))
            if not entry.match:
                logger.warning(
                    "verify_tier_mismatch",
                    wallet_id=wallet.address,
                    db_tier=entry.db_tier,
                    chain_tier=entry.chain_tier,
                )
            report.entries.append(entry)

    if probe:
        report.probes = probe_permissions(reader, report.entries)

    logger.info(
        "verify_complete",
        wallets=len(report.entries),
        mismatches=len(report.mismatches),
        probes=len(report.probes),
        probe_failures=len(report.probe_failures),
    )
    return report
