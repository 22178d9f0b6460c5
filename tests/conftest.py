"""
Pytest fixtures for risk oracle tests. Uses a temporary SQLite DB per test and
an in-process oracle in place of the chain.
"""

from __future__ import annotations

import pytest

# 2023-11-14T22:13:20Z, a Tuesday
NOW = 1_700_000_000

DEPLOYER = "0x" + "a" * 40
UPDATER = "0x" + "b" * 40
STRANGER = "0x" + "c" * 40


@pytest.fixture
def now() -> int:
    return NOW


@pytest.fixture
def db(tmp_path, monkeypatch):
    """Fresh SQLite store under tmp_path. DB_PATH points at it for tools that read env."""
    db_path = tmp_path / "riskoracle_test.db"
    monkeypatch.setenv("DB_PATH", str(db_path))

    from backend_riskoracle.database import get_database

    return get_database(db_path)


@pytest.fixture
def oracle():
    """Oracle deployed by DEPLOYER with UPDATER as the tier writer."""
    from backend_riskoracle.oracle import TierOracle

    return TierOracle(DEPLOYER, updater=UPDATER)


@pytest.fixture
def local_client(oracle):
    from backend_riskoracle.oracle import LocalOracleClient

    return LocalOracleClient(oracle, UPDATER)


@pytest.fixture
def seeded_db(db, now):
    """Store holding the five demo wallets (tiers 0-4 once classified at `now`)."""
    from backend_riskoracle.tools.seed_wallets import seed

    seed(db, now)
    return db
