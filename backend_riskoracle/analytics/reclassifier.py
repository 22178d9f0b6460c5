"""
Batch reclassifier: recompute every wallet's tier and persist the deltas.

For each wallet: load history -> classify -> persist. Only changed tiers are
written and reported as transitions. Wallets are independent; one failing
wallet is logged and skipped, never aborting the batch.
"""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from backend_riskoracle.analytics.tier_classifier import TierAssessment, assess
from backend_riskoracle.analytics.tiers import Tier
from backend_riskoracle.database import Database, WalletRecord
from backend_riskoracle.riskoracle_logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TierTransition:
    wallet: str
    old_tier: int
    new_tier: int

    def to_dict(self) -> dict[str, Any]:
        return {"wallet": self.wallet, "old_tier": self.old_tier, "new_tier": self.new_tier}


@dataclass
class ReclassifyResult:
    """Outcome of one reclassification pass."""

    transitions: list[TierTransition] = field(default_factory=list)
    unchanged: int = 0
    failed: list[str] = field(default_factory=list)
    tiers: dict[str, int] = field(default_factory=dict)
    """Latest tier per successfully classified wallet (address -> tier)."""

    @property
    def processed(self) -> int:
        return len(self.transitions) + self.unchanged


def assess_wallet(db: Database, address: str, now: int | None = None) -> TierAssessment:
    """Classify one wallet from the store without persisting. Unknown wallets are tier 0."""
    now = int(time.time()) if now is None else int(now)
    wallet = db.get_wallet(address)
    if wallet is None:
        return assess([], None, now)
    history = db.get_transaction_history(wallet.address)
    return assess(history, wallet.first_seen, now)


def classify_wallet(db: Database, address: str, now: int | None = None) -> Tier:
    """On-demand classification of a stored wallet (no persistence)."""
    return assess_wallet(db, address, now).tier


def reclassify_wallet(db: Database, wallet: WalletRecord, now: int) -> tuple[int, TierTransition | None]:
    """
    Recompute and persist one wallet's tier.

    Returns (new_tier, transition); transition is None when the tier did not change.
    The previous tier comes from the store's atomic update, not the earlier
    snapshot, so concurrent re-runs cannot report a stale transition.
    """
    history = db.get_transaction_history(wallet.address)
    new_tier = int(assess(history, wallet.first_seen, now).tier)
    previous = db.set_wallet_tier(wallet.address, new_tier)
    if previous == new_tier:
        return new_tier, None
    return new_tier, TierTransition(wallet.address, previous, new_tier)


def reclassify_all(
    db: Database,
    now: int | None = None,
    *,
    max_workers: int = 1,
) -> ReclassifyResult:
    """
    Reclassify every wallet in the store.

    max_workers > 1 classifies wallets on a thread pool; the classifier is pure
    and each wallet's update is atomic in the store, so ordering does not matter.
    """
    now = int(time.time()) if now is None else int(now)
    wallets = db.list_wallets()
    result = ReclassifyResult()
    logger.info("reclassify_started", wallet_count=len(wallets), now=now, max_workers=max_workers)

    def run_one(wallet: WalletRecord) -> tuple[WalletRecord, int | None, TierTransition | None]:
        try:
            tier, transition = reclassify_wallet(db, wallet, now)
            return wallet, tier, transition
        except Exception as e:
            logger.exception("reclassify_wallet_failed", wallet_id=wallet.address, error=str(e))
            return wallet, None, None

    if max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            outcomes = list(pool.map(run_one, wallets))
    else:
        outcomes = [run_one(w) for w in wallets]

    for wallet, tier, transition in outcomes:
        if tier is None:
            result.failed.append(wallet.address)
            continue
        result.tiers[wallet.address] = tier
        if transition is None:
            result.unchanged += 1
            logger.debug("tier_unchanged", wallet_id=wallet.address, tier=tier)
        else:
            result.transitions.append(transition)
            logger.info(
                "tier_transition",
                wallet_id=transition.wallet,
                old_tier=transition.old_tier,
                new_tier=transition.new_tier,
            )

    logger.info(
        "reclassify_complete",
        processed=result.processed,
        changed=len(result.transitions),
        unchanged=result.unchanged,
        failed=len(result.failed),
    )
    return result
