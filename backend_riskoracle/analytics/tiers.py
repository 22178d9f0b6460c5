"""
Tier and action-type enums plus the permission threshold table.

Shared by the classifier (tier values), the oracle state machine (can()) and
the verifier (expected permissions). Values match the contract ABI constants.
"""

from __future__ import annotations

from enum import IntEnum


class Tier(IntEnum):
    """Discrete trust level. Strictly ordered; higher implies more permissions."""

    UNKNOWN = 0
    RESTRICTED = 1
    STANDARD = 2
    TRUSTED = 3
    ADVANCED = 4


class ActionType(IntEnum):
    """Action-type constants as passed to can(address, uint8)."""

    BASIC = 0
    TRADE = 1
    LEVERAGE = 2
    GOVERN = 3
    WITHDRAW = 4


TIER_NAMES: dict[Tier, str] = {
    Tier.UNKNOWN: "Unknown",
    Tier.RESTRICTED: "Restricted",
    Tier.STANDARD: "Standard",
    Tier.TRUSTED: "Trusted",
    Tier.ADVANCED: "Advanced",
}

# Minimum tier per action. Unknown (0) and Restricted (1) are below every entry.
MIN_TIER_FOR_ACTION: dict[ActionType, Tier] = {
    ActionType.BASIC: Tier.STANDARD,
    ActionType.TRADE: Tier.STANDARD,
    ActionType.LEVERAGE: Tier.TRUSTED,
    ActionType.GOVERN: Tier.TRUSTED,
    ActionType.WITHDRAW: Tier.STANDARD,
}

MAX_TIER = int(max(Tier))


def tier_name(tier: int) -> str:
    try:
        return TIER_NAMES[Tier(tier)]
    except ValueError:
        return "Unknown"


def is_valid_tier(tier: object) -> bool:
    return isinstance(tier, int) and not isinstance(tier, bool) and 0 <= tier <= MAX_TIER


def min_tier_for(action_type: int) -> Tier | None:
    """Threshold for a raw action value; None for unrecognized values (deny)."""
    try:
        return MIN_TIER_FOR_ACTION[ActionType(action_type)]
    except ValueError:
        return None


def is_permitted(tier: int, action_type: int) -> bool:
    """Fail-closed permission check: unknown action types are always denied."""
    required = min_tier_for(action_type)
    if required is None:
        return False
    return tier >= required
