"""
Tests for the SQLite transaction store: normalization, history ordering,
wallet stats, atomic tier updates and cascade delete.
"""

from __future__ import annotations

import pytest

from backend_riskoracle.core.exceptions import InvalidAddressError, InvalidTierError, WalletNotFoundError
from backend_riskoracle.database import TransactionRecord

MIXED_CASE = "0xAbCdEf0123456789aBcDeF0123456789AbCdEf01"


def _tx(tag: str, ts: int, **kw) -> TransactionRecord:
    return TransactionRecord(tx_hash=f"0x{tag}", timestamp=ts, **kw)


def test_register_wallet_normalizes_address(db):
    assert db.register_wallet(MIXED_CASE, first_seen=100) is True
    assert db.register_wallet(MIXED_CASE.lower(), first_seen=50) is False
    w = db.get_wallet(MIXED_CASE.upper().replace("0X", "0x"))
    assert w is not None
    assert w.address == MIXED_CASE.lower()
    assert w.tier == 0
    assert w.first_seen == 100


def test_malformed_address_rejected(db):
    with pytest.raises(InvalidAddressError):
        db.register_wallet("0x1234")
    with pytest.raises(InvalidAddressError):
        db.get_wallet("not-an-address")


def test_insert_transactions_creates_wallet_and_updates_stats(db):
    addr = "0x" + "1" * 40
    inserted = db.insert_transactions(addr, [_tx("b", 300), _tx("a", 100, is_flip=True), _tx("c", 200)])
    assert inserted == 3
    w = db.get_wallet(addr)
    assert w.tx_count == 3
    assert w.first_seen == 100
    assert w.last_seen == 300

    # duplicate hash ignored
    assert db.insert_transactions(addr, [_tx("a", 100)]) == 0
    assert db.get_wallet(addr).tx_count == 3


def test_history_is_ascending(db):
    addr = "0x" + "2" * 40
    db.insert_transactions(addr, [_tx("x3", 30), _tx("x1", 10), _tx("x2", 20, is_suspicious=True)])
    history = db.get_transaction_history(addr)
    assert [t.timestamp for t in history] == [10, 20, 30]
    assert history[1].is_suspicious is True
    assert [t.timestamp for t in db.get_transaction_history(addr, since_timestamp=20)] == [20, 30]


def test_first_seen_moves_back_for_older_transactions(db):
    addr = "0x" + "3" * 40
    db.register_wallet(addr, first_seen=500)
    db.insert_transactions(addr, [_tx("old", 100)])
    assert db.get_wallet(addr).first_seen == 100


def test_set_wallet_tier_returns_previous(db):
    addr = "0x" + "4" * 40
    db.register_wallet(addr, first_seen=1)
    assert db.set_wallet_tier(addr, 3) == 0
    assert db.set_wallet_tier(addr, 3) == 3
    assert db.set_wallet_tier(addr, 1) == 3
    assert db.get_wallet(addr).tier == 1


def test_set_wallet_tier_validates(db):
    addr = "0x" + "5" * 40
    db.register_wallet(addr, first_seen=1)
    with pytest.raises(InvalidTierError):
        db.set_wallet_tier(addr, 5)
    with pytest.raises(WalletNotFoundError):
        db.set_wallet_tier("0x" + "6" * 40, 2)


def test_delete_wallet_cascades_transactions(db):
    addr = "0x" + "7" * 40
    db.insert_transactions(addr, [_tx("d1", 1), _tx("d2", 2)])
    assert db.delete_wallet(addr) is True
    assert db.get_wallet(addr) is None
    assert db.get_transaction_history(addr) == []
    # hashes are free again after cascade
    assert db.insert_transactions(addr, [_tx("d1", 1)]) == 1


def test_count_wallets_by_tier(db):
    for i, tier in enumerate([0, 2, 2, 4]):
        addr = f"0x{i:040x}"
        db.register_wallet(addr, first_seen=1)
        db.set_wallet_tier(addr, tier)
    assert db.count_wallets_by_tier() == {0: 1, 1: 0, 2: 2, 3: 0, 4: 1}
