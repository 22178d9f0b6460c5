"""
Tests for the tier oracle state machine: updater writes, batch semantics,
permission table, role administration and two-step ownership handover.
"""

from __future__ import annotations

import pytest

from backend_riskoracle.analytics.tiers import MAX_TIER, MIN_TIER_FOR_ACTION, ActionType
from backend_riskoracle.core.addresses import ZERO_ADDRESS
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
from backend_riskoracle.oracle import MAX_BATCH_SIZE, TierOracle
from backend_riskoracle.oracle.tier_oracle import (
    EVENT_OWNERSHIP_PROPOSAL_OVERWRITTEN,
    EVENT_OWNERSHIP_PROPOSED,
    EVENT_OWNERSHIP_TRANSFER_CANCELLED,
    EVENT_OWNERSHIP_TRANSFERRED,
    EVENT_TIER_DELETED,
    EVENT_TIER_SET,
    EVENT_UPDATER_CHANGED,
)

from conftest import DEPLOYER, STRANGER, UPDATER

W1 = "0x" + "1" * 40
W2 = "0x" + "2" * 40
W3 = "0x" + "3" * 40


def _names(oracle: TierOracle) -> list[str]:
    return [e.name for e in oracle.events]


# --- Initial state and reads ---


def test_deployer_is_owner():
    o = TierOracle(DEPLOYER)
    assert o.owner == DEPLOYER
    assert o.updater == DEPLOYER
    assert o.pending_owner is None


def test_unmapped_wallet_reads_zero(oracle):
    assert oracle.get_tier(W1) == 0
    assert oracle.get_tier_batch([W1, "garbage", W2]) == [0, 0, 0]


def test_get_tier_is_case_insensitive(oracle):
    oracle.set_tier(UPDATER, W1.upper().replace("0X", "0x"), 3)
    assert oracle.get_tier(W1) == 3
    assert oracle.get_tier_batch([W1.upper().replace("0X", "0x")]) == [3]


# --- setTier ---


def test_set_tier_emits_old_and_new(oracle):
    oracle.set_tier(UPDATER, W1, 2)
    oracle.set_tier(UPDATER, W1, 4)
    assert oracle.get_tier(W1) == 4
    sets = [e.args for e in oracle.events if e.name == EVENT_TIER_SET]
    assert sets == [
        {"wallet": W1, "old_tier": 0, "new_tier": 2},
        {"wallet": W1, "old_tier": 2, "new_tier": 4},
    ]


def test_set_tier_rejects_no_op(oracle):
    oracle.set_tier(UPDATER, W1, 2)
    with pytest.raises(TierUnchangedError):
        oracle.set_tier(UPDATER, W1, 2)
    with pytest.raises(TierUnchangedError):
        oracle.set_tier(UPDATER, W2, 0)


def test_set_tier_validation(oracle):
    with pytest.raises(InvalidAddressError):
        oracle.set_tier(UPDATER, ZERO_ADDRESS, 2)
    with pytest.raises(InvalidTierError):
        oracle.set_tier(UPDATER, W1, 5)
    with pytest.raises(InvalidAddressError):
        oracle.set_tier(UPDATER, "0x12", 2)
    assert oracle.events == []


def test_only_updater_may_write(oracle):
    with pytest.raises(NotUpdaterError):
        oracle.set_tier(DEPLOYER, W1, 2)
    with pytest.raises(NotUpdaterError):
        oracle.set_tier_batch(STRANGER, [W1], [2])
    oracle.set_tier(UPDATER, W1, 2)
    with pytest.raises(NotUpdaterError):
        oracle.delete_tier(STRANGER, W1)
    assert oracle.get_tier(W1) == 2


# --- setTierBatch ---


def test_batch_writes_and_skips_unchanged(oracle):
    oracle.set_tier(UPDATER, W2, 3)
    written = oracle.set_tier_batch(UPDATER, [W1, W2, W3], [2, 3, 4])
    assert written == 2
    assert oracle.get_tier_batch([W1, W2, W3]) == [2, 3, 4]


def test_batch_resubmission_is_a_silent_no_op(oracle):
    oracle.set_tier_batch(UPDATER, [W1, W2, W3], [2, 3, 4])
    before = len(oracle.events)
    assert oracle.set_tier_batch(UPDATER, [W1, W2, W3], [2, 3, 4]) == 0
    assert len(oracle.events) == before


def test_batch_validates_every_entry_before_writing(oracle):
    with pytest.raises(InvalidTierError):
        oracle.set_tier_batch(UPDATER, [W1, W2], [2, 9])
    with pytest.raises(InvalidAddressError):
        oracle.set_tier_batch(UPDATER, [W1, ZERO_ADDRESS], [2, 2])
    assert oracle.get_tier(W1) == 0
    assert oracle.events == []


def test_batch_length_and_size_limits(oracle):
    with pytest.raises(BatchLengthMismatchError):
        oracle.set_tier_batch(UPDATER, [W1, W2], [2])
    wallets = [f"0x{i + 1:040x}" for i in range(MAX_BATCH_SIZE + 1)]
    with pytest.raises(BatchTooLargeError):
        oracle.set_tier_batch(UPDATER, wallets, [2] * len(wallets))
    assert oracle.set_tier_batch(UPDATER, wallets[:MAX_BATCH_SIZE], [2] * MAX_BATCH_SIZE) == MAX_BATCH_SIZE


def test_batch_can_lower_tier_to_zero(oracle):
    oracle.set_tier(UPDATER, W1, 3)
    oracle.set_tier_batch(UPDATER, [W1], [0])
    assert oracle.get_tier(W1) == 0
    assert oracle.snapshot() == {}


# --- deleteTier ---


def test_delete_tier(oracle):
    oracle.set_tier(UPDATER, W1, 3)
    oracle.delete_tier(UPDATER, W1)
    assert oracle.get_tier(W1) == 0
    assert oracle.events[-1].name == EVENT_TIER_DELETED
    assert oracle.events[-1].args == {"wallet": W1, "old_tier": 3}


def test_delete_tier_on_zero_fails(oracle):
    with pytest.raises(TierAlreadyZeroError):
        oracle.delete_tier(UPDATER, W1)


# --- can() ---


def test_every_action_type_has_a_threshold():
    assert set(MIN_TIER_FOR_ACTION) == set(ActionType)


def test_max_tier_is_four(oracle):
    assert MAX_TIER == 4
    oracle.set_tier(UPDATER, W1, MAX_TIER)
    with pytest.raises(InvalidTierError):
        oracle.set_tier(UPDATER, W2, MAX_TIER + 1)


@pytest.mark.parametrize(
    "tier,allowed",
    [
        (0, set()),
        (1, set()),
        (2, {ActionType.BASIC, ActionType.TRADE, ActionType.WITHDRAW}),
        (3, set(ActionType)),
        (4, set(ActionType)),
    ],
)
def test_permission_table(oracle, tier, allowed):
    if tier:
        oracle.set_tier(UPDATER, W1, tier)
    for action in ActionType:
        assert oracle.can(W1, action) is (action in allowed)


def test_unrecognized_action_is_denied_for_every_tier(oracle):
    for tier in range(5):
        if tier:
            oracle.set_tier_batch(UPDATER, [W1], [tier])
        assert oracle.can(W1, 255) is False
        assert oracle.can(W1, 5) is False
        assert oracle.can(W1, -1) is False


def test_restricted_has_no_more_capability_than_unknown(oracle):
    oracle.set_tier(UPDATER, W2, 1)
    for action in list(ActionType) + [255]:
        assert oracle.can(W2, action) == oracle.can(W1, action)


# --- Roles ---


def test_set_updater_rotates_write_access(oracle):
    oracle.set_updater(DEPLOYER, STRANGER)
    assert oracle.updater == STRANGER
    with pytest.raises(NotUpdaterError):
        oracle.set_tier(UPDATER, W1, 2)
    oracle.set_tier(STRANGER, W1, 2)
    assert EVENT_UPDATER_CHANGED in _names(oracle)


def test_zero_updater_pauses_all_writes(oracle):
    oracle.set_updater(DEPLOYER, ZERO_ADDRESS)
    for sender in (UPDATER, DEPLOYER, ZERO_ADDRESS):
        with pytest.raises(NotUpdaterError):
            oracle.set_tier(sender, W1, 2)


def test_only_owner_sets_updater(oracle):
    with pytest.raises(NotOwnerError):
        oracle.set_updater(UPDATER, STRANGER)
    assert oracle.updater == UPDATER


# --- Ownership handover ---


def test_ownership_handover(oracle):
    oracle.propose_owner(DEPLOYER, STRANGER)
    assert oracle.pending_owner == STRANGER
    oracle.accept_ownership(STRANGER)
    assert oracle.owner == STRANGER
    assert oracle.pending_owner is None
    with pytest.raises(NotOwnerError):
        oracle.set_updater(DEPLOYER, DEPLOYER)
    oracle.set_updater(STRANGER, DEPLOYER)
    assert _names(oracle)[:2] == [EVENT_OWNERSHIP_PROPOSED, EVENT_OWNERSHIP_TRANSFERRED]


def test_accept_from_non_candidate_fails(oracle):
    oracle.propose_owner(DEPLOYER, STRANGER)
    with pytest.raises(NotPendingOwnerError):
        oracle.accept_ownership(UPDATER)
    with pytest.raises(NotPendingOwnerError):
        oracle.accept_ownership(DEPLOYER)
    assert oracle.owner == DEPLOYER


def test_accept_without_proposal_fails(oracle):
    with pytest.raises(NotPendingOwnerError):
        oracle.accept_ownership(STRANGER)


def test_proposal_overwrite_is_observable(oracle):
    oracle.propose_owner(DEPLOYER, STRANGER)
    oracle.propose_owner(DEPLOYER, UPDATER)
    assert oracle.pending_owner == UPDATER
    overwritten = [e for e in oracle.events if e.name == EVENT_OWNERSHIP_PROPOSAL_OVERWRITTEN]
    assert overwritten[0].args == {"previous_candidate": STRANGER, "new_candidate": UPDATER}
    with pytest.raises(NotPendingOwnerError):
        oracle.accept_ownership(STRANGER)


def test_propose_requires_owner_and_nonzero_candidate(oracle):
    with pytest.raises(NotOwnerError):
        oracle.propose_owner(STRANGER, STRANGER)
    with pytest.raises(InvalidAddressError):
        oracle.propose_owner(DEPLOYER, ZERO_ADDRESS)
    assert oracle.pending_owner is None


def test_cancel_ownership_transfer(oracle):
    with pytest.raises(NoPendingTransferError):
        oracle.cancel_ownership_transfer(DEPLOYER)
    oracle.propose_owner(DEPLOYER, STRANGER)
    with pytest.raises(NotOwnerError):
        oracle.cancel_ownership_transfer(STRANGER)
    oracle.cancel_ownership_transfer(DEPLOYER)
    assert oracle.pending_owner is None
    assert oracle.events[-1].name == EVENT_OWNERSHIP_TRANSFER_CANCELLED
    with pytest.raises(NotPendingOwnerError):
        oracle.accept_ownership(STRANGER)
