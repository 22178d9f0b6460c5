"""
Tier oracle state machine: the authoritative wallet -> tier mapping.

Mirrors the deployed oracle contract call for call so the synchronizer, the
verifier and the tests run against the same semantics as the chain:

- owner: rotates the updater (zero address = pause all writes) and hands
  ownership over in two steps (propose -> accept, or cancel).
- updater: the only caller allowed to write tiers.
- reads: getTier / getTierBatch / can, unmapped wallets read as tier 0.

Every call validates fully before mutating, so a rejected call leaves no
partial effect. Calls are serialized by a lock, matching per-transaction
atomicity on chain. Each state change appends an OracleEvent.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Sequence

from backend_riskoracle.analytics.tiers import is_permitted, is_valid_tier
from backend_riskoracle.core.addresses import ZERO_ADDRESS, normalize_address
from backend_riskoracle.core.exceptions import (
    BatchLengthMismatchError,
    BatchTooLargeError,
    InvalidAddressError,
    InvalidTierError,
    NoPendingTransferError,
    NotOwnerError,
    NotPendingOwnerError,
    NotUpdaterError,
    TierAlreadyZeroError,
    TierUnchangedError,
)

MAX_BATCH_SIZE = 200

EVENT_TIER_SET = "TierSet"
EVENT_TIER_DELETED = "TierDeleted"
EVENT_UPDATER_CHANGED = "UpdaterChanged"
EVENT_OWNERSHIP_PROPOSED = "OwnershipProposed"
EVENT_OWNERSHIP_PROPOSAL_OVERWRITTEN = "OwnershipProposalOverwritten"
EVENT_OWNERSHIP_TRANSFERRED = "OwnershipTransferred"
EVENT_OWNERSHIP_TRANSFER_CANCELLED = "OwnershipTransferCancelled"


@dataclass(frozen=True)
class OracleEvent:
    """Emitted log entry: event name plus its arguments."""

    name: str
    args: dict[str, Any] = field(default_factory=dict)


class TierOracle:
    """In-process model of the oracle contract. All addresses are stored lower-case."""

    def __init__(self, deployer: str, updater: str | None = None) -> None:
        self._owner = normalize_address(deployer)
        self._updater = normalize_address(updater) if updater is not None else self._owner
        self._pending_owner: str | None = None
        self._tiers: dict[str, int] = {}
        self._events: list[OracleEvent] = []
        self._lock = threading.Lock()

    # --- roles ---

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def updater(self) -> str:
        return self._updater

    @property
    def pending_owner(self) -> str | None:
        return self._pending_owner

    @property
    def events(self) -> list[OracleEvent]:
        return list(self._events)

    def _emit(self, name: str, **args: Any) -> None:
        self._events.append(OracleEvent(name, args))

    def _only_owner(self, sender: str) -> str:
        caller = normalize_address(sender)
        if caller != self._owner:
            raise NotOwnerError(caller)
        return caller

    def _only_updater(self, sender: str) -> str:
        caller = normalize_address(sender)
        if self._updater == ZERO_ADDRESS or caller != self._updater:
            raise NotUpdaterError(caller)
        return caller

    @staticmethod
    def _wallet_arg(wallet: str) -> str:
        addr = normalize_address(wallet)
        if addr == ZERO_ADDRESS:
            raise InvalidAddressError(wallet, "zero address")
        return addr

    @staticmethod
    def _tier_arg(tier: int) -> int:
        if not is_valid_tier(tier):
            raise InvalidTierError(tier)
        return int(tier)

    # --- reads ---

    def get_tier(self, wallet: str) -> int:
        return self._tiers.get(normalize_address(wallet), 0)

    def get_tier_batch(self, wallets: Sequence[str]) -> list[int]:
        """Positional lookup; no validation, unknown or malformed entries read 0."""
        out: list[int] = []
        for w in wallets:
            key = w.lower() if isinstance(w, str) else w
            out.append(self._tiers.get(key, 0))
        return out

    def can(self, wallet: str, action_type: int) -> bool:
        return is_permitted(self.get_tier(wallet), action_type)

    # --- updater writes ---

    def set_tier(self, sender: str, wallet: str, tier: int) -> None:
        with self._lock:
            self._only_updater(sender)
            addr = self._wallet_arg(wallet)
            new = self._tier_arg(tier)
            old = self._tiers.get(addr, 0)
            if new == old:
                raise TierUnchangedError(addr, old)
            self._store(addr, old, new)

    def set_tier_batch(self, sender: str, wallets: Sequence[str], tiers: Sequence[int]) -> int:
        """
        Write many tiers at once. Every entry is validated before any write;
        entries equal to the stored tier are skipped. Returns the number written.
        """
        with self._lock:
            self._only_updater(sender)
            if len(wallets) != len(tiers):
                raise BatchLengthMismatchError(len(wallets), len(tiers))
            if len(wallets) > MAX_BATCH_SIZE:
                raise BatchTooLargeError(len(wallets), MAX_BATCH_SIZE)
            entries = [(self._wallet_arg(w), self._tier_arg(t)) for w, t in zip(wallets, tiers)]
            written = 0
            for addr, new in entries:
                old = self._tiers.get(addr, 0)
                if new == old:
                    continue
                self._store(addr, old, new)
                written += 1
            return written

    def delete_tier(self, sender: str, wallet: str) -> None:
        with self._lock:
            self._only_updater(sender)
            addr = self._wallet_arg(wallet)
            old = self._tiers.get(addr, 0)
            if old == 0:
                raise TierAlreadyZeroError(addr)
            del self._tiers[addr]
            self._emit(EVENT_TIER_DELETED, wallet=addr, old_tier=old)

    def _store(self, addr: str, old: int, new: int) -> None:
        if new == 0:
            self._tiers.pop(addr, None)
        else:
            self._tiers[addr] = new
        self._emit(EVENT_TIER_SET, wallet=addr, old_tier=old, new_tier=new)

    # --- owner administration ---

    def set_updater(self, sender: str, new_updater: str) -> None:
        """Rotate the updater; the zero address revokes all write access."""
        with self._lock:
            self._only_owner(sender)
            new = normalize_address(new_updater)
            old = self._updater
            self._updater = new
            self._emit(EVENT_UPDATER_CHANGED, old_updater=old, new_updater=new)

    def propose_owner(self, sender: str, candidate: str) -> None:
        with self._lock:
            owner = self._only_owner(sender)
            new = normalize_address(candidate)
            if new == ZERO_ADDRESS:
                raise InvalidAddressError(candidate, "zero address")
            if self._pending_owner is not None:
                self._emit(
                    EVENT_OWNERSHIP_PROPOSAL_OVERWRITTEN,
                    previous_candidate=self._pending_owner,
                    new_candidate=new,
                )
            self._pending_owner = new
            self._emit(EVENT_OWNERSHIP_PROPOSED, owner=owner, candidate=new)

    def accept_ownership(self, sender: str) -> None:
        with self._lock:
            caller = normalize_address(sender)
            if self._pending_owner is None or caller != self._pending_owner:
                raise NotPendingOwnerError(caller)
            previous = self._owner
            self._owner = caller
            self._pending_owner = None
            self._emit(EVENT_OWNERSHIP_TRANSFERRED, previous_owner=previous, new_owner=caller)

    def cancel_ownership_transfer(self, sender: str) -> None:
        with self._lock:
            self._only_owner(sender)
            if self._pending_owner is None:
                raise NoPendingTransferError()
            candidate = self._pending_owner
            self._pending_owner = None
            self._emit(EVENT_OWNERSHIP_TRANSFER_CANCELLED, candidate=candidate)

    def snapshot(self) -> dict[str, int]:
        """Copy of all non-zero tiers."""
        return dict(self._tiers)
