"""
Embedded ABI of the tier oracle contract.

Covers every external function and event of the deployed contract so the web3
client can build calls and decode logs by name without a build artifact on disk.
"""

from __future__ import annotations

from typing import Any


def _fn(
    name: str,
    inputs: list[tuple[str, str]],
    outputs: list[tuple[str, str]] | None = None,
    *,
    view: bool = False,
) -> dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "inputs": [{"name": n, "type": t} for n, t in inputs],
        "outputs": [{"name": n, "type": t} for n, t in (outputs or [])],
        "stateMutability": "view" if view else "nonpayable",
    }


def _event(name: str, inputs: list[tuple[str, str, bool]]) -> dict[str, Any]:
    return {
        "type": "event",
        "name": name,
        "anonymous": False,
        "inputs": [{"name": n, "type": t, "indexed": idx} for n, t, idx in inputs],
    }


ORACLE_ABI: list[dict[str, Any]] = [
    # reads
    _fn("owner", [], [("", "address")], view=True),
    _fn("updater", [], [("", "address")], view=True),
    _fn("pendingOwner", [], [("", "address")], view=True),
    _fn("MAX_BATCH_SIZE", [], [("", "uint256")], view=True),
    _fn("getTier", [("wallet", "address")], [("", "uint8")], view=True),
    _fn("getTierBatch", [("wallets", "address[]")], [("", "uint8[]")], view=True),
    _fn("can", [("wallet", "address"), ("actionType", "uint8")], [("", "bool")], view=True),
    # updater writes
    _fn("setTier", [("wallet", "address"), ("tier", "uint8")]),
    _fn("setTierBatch", [("wallets", "address[]"), ("tiers", "uint8[]")]),
    _fn("deleteTier", [("wallet", "address")]),
    # owner administration
    _fn("setUpdater", [("newUpdater", "address")]),
    _fn("proposeOwner", [("candidate", "address")]),
    _fn("acceptOwnership", []),
    _fn("cancelOwnershipTransfer", []),
    # events
    _event("TierSet", [("wallet", "address", True), ("oldTier", "uint8", False), ("newTier", "uint8", False)]),
    _event("TierDeleted", [("wallet", "address", True), ("oldTier", "uint8", False)]),
    _event("UpdaterChanged", [("oldUpdater", "address", True), ("newUpdater", "address", True)]),
    _event("OwnershipProposed", [("owner", "address", True), ("candidate", "address", True)]),
    _event(
        "OwnershipProposalOverwritten",
        [("previousCandidate", "address", True), ("newCandidate", "address", True)],
    ),
    _event("OwnershipTransferred", [("previousOwner", "address", True), ("newOwner", "address", True)]),
    _event("OwnershipTransferCancelled", [("candidate", "address", True)]),
]


def abi_entry(name: str) -> dict[str, Any]:
    """Look up a function or event by name."""
    for entry in ORACLE_ABI:
        if entry["name"] == name:
            return entry
    raise KeyError(f"ABI missing entry {name!r}")
