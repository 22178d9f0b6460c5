"""
Tier analytics: the deterministic classifier, tier/action enums, explanations
and the batch reclassifier that persists tier changes to the store.
"""

from backend_riskoracle.analytics.explain import explain_tier
from backend_riskoracle.analytics.reclassifier import (
    ReclassifyResult,
    TierTransition,
    assess_wallet,
    classify_wallet,
    reclassify_all,
)
from backend_riskoracle.analytics.tier_classifier import TierAssessment, assess, classify
from backend_riskoracle.analytics.tiers import (
    MIN_TIER_FOR_ACTION,
    TIER_NAMES,
    ActionType,
    Tier,
    is_permitted,
)

__all__ = [
    "ActionType",
    "MIN_TIER_FOR_ACTION",
    "ReclassifyResult",
    "TIER_NAMES",
    "Tier",
    "TierAssessment",
    "TierTransition",
    "assess",
    "assess_wallet",
    "classify",
    "classify_wallet",
    "explain_tier",
    "is_permitted",
    "reclassify_all",
]
