"""
Deterministic tier classifier: transaction history -> tier 0-4.

Pure and side-effect free: no I/O, no logging, no clock reads. Callers pass
`now` explicitly so the same history and the same `now` always give the same
tier. Rules are explicit and evaluated in fixed precedence; there are no
weights or scores.

Precedence:
  1. no transactions                               -> Unknown (0)
  2. flips >= 5, suspicious ratio > 0.3, or any
     5 consecutive transactions within < 60 min    -> Restricted (1)
  3. progressive unlock (Standard -> Trusted -> Advanced); a wallet keeps the
     highest tier whose prerequisites all hold, or Unknown (0) if none do.

Trailing-window checks (consistency, burstiness) are measured against `now`,
so a dormant wallet's higher tiers lapse once its activity ages out of the
window.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Sequence

from backend_riskoracle.analytics.tiers import Tier

ONE_MINUTE = 60
ONE_HOUR = 60 * ONE_MINUTE
ONE_DAY = 24 * ONE_HOUR
ONE_WEEK = 7 * ONE_DAY
TWO_WEEKS = 14 * ONE_DAY
THREE_MONTHS = 90 * ONE_DAY

FLIP_THRESHOLD = 5
# Suspicious ratio 0.3 as an exact fraction: excluded when suspicious/total > 3/10
SUSPICIOUS_RATIO_NUM = 3
SUSPICIOUS_RATIO_DEN = 10
IMPULSIVE_WINDOW_TXS = 5
IMPULSIVE_WINDOW_SEC = ONE_HOUR

MIN_TX_FOR_TIER_2 = 3
MIN_TX_FOR_TIER_3 = 10
MIN_TX_FOR_TIER_4 = 30
MIN_AGE_FOR_TIER_2 = ONE_WEEK
MIN_AGE_FOR_TIER_3 = TWO_WEEKS
MIN_AGE_FOR_TIER_4 = THREE_MONTHS

MIN_TXS_IN_WINDOW = 3
MIN_DISTINCT_WEEKS = 4

RULE_NO_TRANSACTIONS = "no_transactions"
RULE_FLIP_TRADING = "flip_trading"
RULE_SUSPICIOUS_RATIO = "suspicious_ratio"
RULE_IMPULSIVE_TRADING = "impulsive_trading"
RULE_INSUFFICIENT_ACTIVITY = "insufficient_activity"
RULE_STANDARD = "standard"
RULE_TRUSTED = "trusted"
RULE_ADVANCED = "advanced"

EXCLUSION_RULES = frozenset({RULE_FLIP_TRADING, RULE_SUSPICIOUS_RATIO, RULE_IMPULSIVE_TRADING})


@dataclass(frozen=True)
class TierAssessment:
    """
    Classification outcome with the facts that produced it.

    rule names the deciding rule; unmet lists the first failing prerequisite
    of each tier above the one granted (empty when Advanced or excluded).
    """

    tier: Tier
    rule: str
    tx_count: int
    flip_count: int
    suspicious_count: int
    account_age_sec: int
    unmet: tuple[str, ...] = field(default_factory=tuple)

    @property
    def account_age_days(self) -> int:
        return max(0, self.account_age_sec) // ONE_DAY

    @property
    def is_excluded(self) -> bool:
        return self.rule in EXCLUSION_RULES

    def to_dict(self) -> dict[str, Any]:
        return {
            "tier": int(self.tier),
            "rule": self.rule,
            "tx_count": self.tx_count,
            "flip_count": self.flip_count,
            "suspicious_count": self.suspicious_count,
            "account_age_days": self.account_age_days,
            "unmet": list(self.unmet),
        }


def _ts(tx: Any) -> int:
    return int(tx.timestamp)


def detect_impulsive_trading(timestamps: Sequence[int]) -> bool:
    """
    True if any 5 consecutive transactions (ascending) span less than 60 minutes
    from the first to the fifth.
    """
    span = IMPULSIVE_WINDOW_TXS - 1
    for i in range(len(timestamps) - span):
        if timestamps[i + span] - timestamps[i] < IMPULSIVE_WINDOW_SEC:
            return True
    return False


def _in_window(timestamps: Sequence[int], period_sec: int, now: int) -> list[int]:
    period_start = now - period_sec
    return [t for t in timestamps if t >= period_start]


def check_consistent_activity(timestamps: Sequence[int], period_sec: int, now: int) -> bool:
    """
    At least 3 transactions in the trailing window, and the earliest and latest
    of them at least half the window apart (activity not clustered at one end).
    """
    recent = _in_window(timestamps, period_sec, now)
    if len(recent) < MIN_TXS_IN_WINDOW:
        return False
    spread = recent[-1] - recent[0]
    # spread >= period * 0.5, in integers
    return 2 * spread >= period_sec


def iso_week_key(timestamp: int) -> tuple[int, int]:
    """(ISO year, ISO week) of a Unix timestamp, in UTC."""
    iso = datetime.fromtimestamp(timestamp, tz=timezone.utc).isocalendar()
    return (iso[0], iso[1])


def check_not_bursty(timestamps: Sequence[int], period_sec: int, now: int) -> bool:
    """Transactions in the trailing window fall into at least 4 distinct ISO weeks."""
    weeks = {iso_week_key(t) for t in _in_window(timestamps, period_sec, now)}
    return len(weeks) >= MIN_DISTINCT_WEEKS


def _exceeds_suspicious_ratio(suspicious_count: int, tx_count: int) -> bool:
    return suspicious_count * SUSPICIOUS_RATIO_DEN > tx_count * SUSPICIOUS_RATIO_NUM


def assess(
    transactions: Iterable[Any],
    first_seen: int | None,
    now: int,
) -> TierAssessment:
    """
    Classify a transaction history and return the tier with its evidence.

    transactions: objects with timestamp (Unix seconds), is_flip, is_suspicious.
    Expected ascending by timestamp; unsorted input is sorted (stable) first.
    first_seen: wallet first-seen time; None falls back to the earliest transaction.
    now: evaluation time (Unix seconds); all trailing windows end here.
    """
    txs = sorted(transactions, key=_ts)
    tx_count = len(txs)
    if tx_count == 0:
        return TierAssessment(Tier.UNKNOWN, RULE_NO_TRANSACTIONS, 0, 0, 0, 0)

    timestamps = [_ts(tx) for tx in txs]
    if first_seen is None:
        first_seen = timestamps[0]
    account_age = int(now) - int(first_seen)
    flip_count = sum(1 for tx in txs if tx.is_flip)
    suspicious_count = sum(1 for tx in txs if tx.is_suspicious)

    def result(tier: Tier, rule: str, unmet: tuple[str, ...] = ()) -> TierAssessment:
        return TierAssessment(tier, rule, tx_count, flip_count, suspicious_count, account_age, unmet)

    # Exclusions: short-circuit to Restricted
    if flip_count >= FLIP_THRESHOLD:
        return result(Tier.RESTRICTED, RULE_FLIP_TRADING)
    if _exceeds_suspicious_ratio(suspicious_count, tx_count):
        return result(Tier.RESTRICTED, RULE_SUSPICIOUS_RATIO)
    if detect_impulsive_trading(timestamps):
        return result(Tier.RESTRICTED, RULE_IMPULSIVE_TRADING)

    # Progressive unlock
    if tx_count < MIN_TX_FOR_TIER_2:
        return result(Tier.UNKNOWN, RULE_INSUFFICIENT_ACTIVITY, ("tier2_tx_count",))
    if account_age < MIN_AGE_FOR_TIER_2:
        return result(Tier.UNKNOWN, RULE_INSUFFICIENT_ACTIVITY, ("tier2_account_age",))

    if tx_count < MIN_TX_FOR_TIER_3:
        return result(Tier.STANDARD, RULE_STANDARD, ("tier3_tx_count",))
    if account_age < MIN_AGE_FOR_TIER_3:
        return result(Tier.STANDARD, RULE_STANDARD, ("tier3_account_age",))
    if not check_consistent_activity(timestamps, TWO_WEEKS, now):
        return result(Tier.STANDARD, RULE_STANDARD, ("tier3_consistency",))

    if tx_count < MIN_TX_FOR_TIER_4:
        return result(Tier.TRUSTED, RULE_TRUSTED, ("tier4_tx_count",))
    if account_age < MIN_AGE_FOR_TIER_4:
        return result(Tier.TRUSTED, RULE_TRUSTED, ("tier4_account_age",))
    if not check_consistent_activity(timestamps, THREE_MONTHS, now):
        return result(Tier.TRUSTED, RULE_TRUSTED, ("tier4_consistency",))
    if not check_not_bursty(timestamps, THREE_MONTHS, now):
        return result(Tier.TRUSTED, RULE_TRUSTED, ("tier4_distinct_weeks",))

    return result(Tier.ADVANCED, RULE_ADVANCED)


def classify(
    wallet: str,
    transactions: Iterable[Any],
    first_seen: int | None,
    now: int,
) -> Tier:
    """
    Return the tier (0-4) for a wallet's history at time `now`.

    wallet is carried for call-site symmetry with the store; it does not affect
    the result. Never raises for well-formed input.
    """
    return assess(transactions, first_seen, now).tier
