"""
Human-readable tier explanations.

Renders a TierAssessment as one line, e.g. for the CLI or an API layer.
"""

from __future__ import annotations

from backend_riskoracle.analytics.tier_classifier import (
    RULE_FLIP_TRADING,
    RULE_IMPULSIVE_TRADING,
    RULE_NO_TRANSACTIONS,
    RULE_SUSPICIOUS_RATIO,
    TierAssessment,
)
from backend_riskoracle.analytics.tiers import Tier, tier_name

_EXCLUSION_REASONS = {
    RULE_FLIP_TRADING: "{flips} flip trade(s) detected",
    RULE_SUSPICIOUS_RATIO: "{suspicious} of {txs} transactions flagged suspicious",
    RULE_IMPULSIVE_TRADING: "5 transactions within 60 minutes (impulsive trading)",
}

_UNMET_REASONS = {
    "tier2_tx_count": "fewer than 3 transactions",
    "tier2_account_age": "account younger than 7 days",
    "tier3_tx_count": "fewer than 10 transactions",
    "tier3_account_age": "account younger than 14 days",
    "tier3_consistency": "activity not spread over the last 14 days",
    "tier4_tx_count": "fewer than 30 transactions",
    "tier4_account_age": "account younger than 90 days",
    "tier4_consistency": "activity not spread over the last 90 days",
    "tier4_distinct_weeks": "activity in fewer than 4 distinct weeks",
}


def explain_tier(assessment: TierAssessment) -> str:
    tier = assessment.tier
    header = f"Tier {int(tier)} ({tier_name(tier)})"
    txs = assessment.tx_count
    days = assessment.account_age_days

    if assessment.rule == RULE_NO_TRANSACTIONS:
        return f"{header}: No transaction history"
    if assessment.is_excluded:
        reason = _EXCLUSION_REASONS[assessment.rule].format(
            flips=assessment.flip_count,
            suspicious=assessment.suspicious_count,
            txs=txs,
        )
        return f"{header}: Restricted, {reason}"

    summary = f"{txs} transactions over {days} days"
    next_step = ""
    if assessment.unmet:
        next_step = "; next tier blocked by " + _UNMET_REASONS.get(assessment.unmet[0], assessment.unmet[0])

    if tier == Tier.UNKNOWN:
        return f"{header}: Insufficient activity or account too new ({summary}){next_step}"
    if tier == Tier.STANDARD:
        return f"{header}: {summary}, standard behavior{next_step}"
    if tier == Tier.TRUSTED:
        return f"{header}: {summary}, trusted consistent behavior{next_step}"
    return f"{header}: {summary}, long-term stable history"
