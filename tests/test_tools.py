"""
Tests for the command-line tools: seed, classify, dry-run push, query and the
scheduler wiring. The chain is replaced by the in-process oracle.
"""

from __future__ import annotations

import sys

import pytest

from backend_riskoracle.tools import classify_wallets, push_tiers, query_tiers, seed_wallets, sync_scheduler

ADDR = {tier: "0x" + str(tier + 1) * 40 for tier in range(5)}


@pytest.fixture
def argv(monkeypatch):
    def set_args(*args: str) -> None:
        monkeypatch.setattr(sys, "argv", ["prog", *args])

    return set_args


@pytest.fixture
def seeded(db, argv):
    """Demo wallets seeded at the real current time (tools classify at wall-clock now)."""
    argv()
    assert seed_wallets.main() == 0
    return db


def test_seed_is_repeatable(seeded, argv):
    argv()
    assert seed_wallets.main() == 0
    wallets = seeded.list_wallets()
    assert sorted(w.address for w in wallets) == sorted(ADDR.values())
    assert sum(w.tx_count for w in wallets) == 85


def test_demo_timelines_match_expected_tiers(now):
    from backend_riskoracle.analytics import classify

    for w in seed_wallets.build_demo_wallets(now):
        assert classify(w.address, w.transactions, now - w.first_seen_offset, now) == w.expected_tier


def test_classify_wallets_persists_tiers(seeded, argv, capsys):
    argv()
    assert classify_wallets.main() == 0
    out = capsys.readouterr().out
    assert "Processed 5 wallets: 4 changed" in out
    assert {w.address: w.tier for w in seeded.list_wallets()} == {a: t for t, a in ADDR.items()}


def test_classify_wallets_explains_single_wallet(seeded, argv, capsys):
    argv("--wallet", ADDR[2].upper().replace("0X", "0x"))
    assert classify_wallets.main() == 0
    assert "Tier 2 (Standard)" in capsys.readouterr().out
    # explain does not persist
    assert seeded.get_wallet(ADDR[2]).tier == 0


def test_classify_wallets_rejects_bad_address(seeded, argv):
    argv("--wallet", "0xnothex")
    assert classify_wallets.main() == 2


def test_push_tiers_dry_run(seeded, argv, capsys, monkeypatch):
    monkeypatch.delenv("PRIVATE_KEY", raising=False)
    argv("--dry-run", "--batch-size", "2")
    assert push_tiers.main() == 0
    out = capsys.readouterr().out
    assert "Synced 5 wallets in 3 batch(es)." in out
    assert seeded.get_wallet(ADDR[4]).tier == 4


def test_push_tiers_requires_chain_env_without_dry_run(seeded, argv, monkeypatch):
    for name in ("RPC_URL", "CONTRACT_ADDRESS", "PRIVATE_KEY", "DRY_RUN"):
        monkeypatch.delenv(name, raising=False)
    argv()
    assert push_tiers.main() == 1


def test_push_tiers_rejects_oversized_batch(seeded, argv):
    argv("--dry-run", "--batch-size", "500")
    assert push_tiers.main() == 1


def test_query_tiers_exit_code_tracks_mismatches(seeded, argv, monkeypatch, local_client):
    monkeypatch.setenv("RPC_URL", "http://localhost:8545")
    monkeypatch.setenv("CONTRACT_ADDRESS", "0x" + "ab" * 20)
    monkeypatch.setattr(query_tiers, "get_oracle_reader", lambda settings: local_client)

    argv()
    assert classify_wallets.main() == 0
    argv()
    assert query_tiers.main() == 1

    from backend_riskoracle.oracle import ChainSynchronizer, SyncConfig

    pairs = [(w.address, w.tier) for w in seeded.list_wallets()]
    ChainSynchronizer(seeded, local_client, SyncConfig(batch_size=50, dry_run=True)).push(pairs)
    argv()
    assert query_tiers.main() == 0


def test_query_tiers_requires_reader_env(seeded, argv, monkeypatch):
    monkeypatch.delenv("RPC_URL", raising=False)
    monkeypatch.delenv("CONTRACT_ADDRESS", raising=False)
    argv()
    assert query_tiers.main() == 1


def test_scheduler_registers_daily_job(monkeypatch):
    monkeypatch.setenv("SYNC_HOUR", "3")
    monkeypatch.setenv("SYNC_MINUTE", "30")
    monkeypatch.setenv("SYNC_TIMEZONE", "Asia/Jakarta")
    scheduler = sync_scheduler.build_scheduler()
    job = scheduler.get_job(sync_scheduler.JOB_ID)
    assert job is not None
    fields = {f.name: str(f) for f in job.trigger.fields}
    assert fields["hour"] == "3"
    assert fields["minute"] == "30"


def test_scheduler_run_now_dry_run(seeded, argv, monkeypatch):
    monkeypatch.setenv("DRY_RUN", "1")
    argv("--run-now")
    assert sync_scheduler.main() == 0
    assert seeded.get_wallet(ADDR[3]).tier == 3
