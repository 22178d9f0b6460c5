"""
Domain models for database entities.

Wallets (with cached tier) and their transaction history.
Used by the backend layer; no ORM coupling so backends stay swappable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class WalletRecord:
    """Stored wallet: normalized address plus cached classification."""

    id: int | None
    address: str
    tier: int
    """Cached classifier output (0-4); only ever written from classifier results."""
    first_seen: int
    """Unix timestamp (seconds) of first observed transaction or registration."""
    last_seen: int
    tx_count: int = 0
    created_at: int | None = None
    updated_at: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "tier": self.tier,
            "first_seen": self.first_seen,
            "last_seen": self.last_seen,
            "tx_count": self.tx_count,
        }


@dataclass
class TransactionRecord:
    """Single immutable transaction row. isFlip/isSuspicious come from upstream detection."""

    tx_hash: str
    timestamp: int
    is_flip: bool = False
    is_suspicious: bool = False
    action: str = ""
    value_usd: float = 0.0
    block_number: int = 0
    gas_used: int = 0
    id: int | None = None
    wallet_id: int | None = None
    created_at: int | None = None
