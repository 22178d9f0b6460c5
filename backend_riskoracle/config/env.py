"""
Environment variable loading and validation for the risk oracle.

- DB_PATH: SQLite file backing the wallet/transaction store (default: riskoracle.db)
- RPC_URL: JSON-RPC endpoint of the chain hosting the oracle contract
- CONTRACT_ADDRESS: deployed oracle contract (0x + 40 hex)
- PRIVATE_KEY: updater key used to sign setTierBatch (0x + 64 hex)
- CHAIN_ID: optional; read from the node when unset
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
import re
from pathlib import Path

from backend_riskoracle.core.exceptions import ConfigError

# Project root: config is backend_riskoracle/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_DB_PATH = "riskoracle.db"

_CONTRACT_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
_PRIVATE_KEY_RE = re.compile(r"^0x[a-fA-F0-9]{64}$")


def load_riskoracle_env() -> None:
    """Load .env from project root. Safe to call multiple times; existing env wins."""
    from dotenv import load_dotenv

    load_dotenv(_ENV_PATH, override=False)


def _env(name: str) -> str:
    return (os.getenv(name) or "").strip()


def parse_bool_env(name: str, default: bool = False) -> bool:
    raw = _env(name).lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    return default


def get_db_path() -> Path:
    load_riskoracle_env()
    return Path(_env("DB_PATH") or DEFAULT_DB_PATH)


def get_rpc_url() -> str:
    load_riskoracle_env()
    return _env("RPC_URL")


def get_contract_address() -> str:
    load_riskoracle_env()
    return _env("CONTRACT_ADDRESS")


def get_private_key() -> str:
    load_riskoracle_env()
    return _env("PRIVATE_KEY")


def get_chain_id() -> int | None:
    load_riskoracle_env()
    raw = _env("CHAIN_ID")
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"CHAIN_ID must be an integer, got {raw!r}") from e


def _missing(names: list[str]) -> list[str]:
    return [n for n in names if not _env(n)]


def validate_reader_env() -> None:
    """Read-only chain access (verifier): RPC_URL and CONTRACT_ADDRESS."""
    load_riskoracle_env()
    missing = _missing(["RPC_URL", "CONTRACT_ADDRESS"])
    if missing:
        raise ConfigError(
            f"Missing blockchain environment variables: {', '.join(missing)}. "
            "Please check your .env file."
        )
    if not _CONTRACT_ADDRESS_RE.match(_env("CONTRACT_ADDRESS")):
        raise ConfigError("CONTRACT_ADDRESS must be a valid address (0x + 40 hex chars)")


def validate_blockchain_env() -> None:
    """
    Signer-backed chain access (push): RPC_URL, CONTRACT_ADDRESS, PRIVATE_KEY.
    Raises ConfigError on startup so failures are loud and immediate.
    """
    load_riskoracle_env()
    missing = _missing(["CONTRACT_ADDRESS", "PRIVATE_KEY", "RPC_URL"])
    if missing:
        raise ConfigError(
            f"Missing blockchain environment variables: {', '.join(missing)}. "
            "Required for contract interaction. Please check your .env file."
        )
    validate_reader_env()
    if not _PRIVATE_KEY_RE.match(_env("PRIVATE_KEY")):
        raise ConfigError("PRIVATE_KEY must be 0x followed by 64 hex characters")


def describe_startup(script_name: str) -> dict[str, str]:
    """Return printable startup context for a tool; RPC API keys are masked."""
    rpc = get_rpc_url()
    if "api-key=" in rpc:
        rpc = rpc.split("api-key=")[0] + "api-key=***"
    elif len(rpc) > 50:
        rpc = rpc[:50] + "..."
    return {
        "script": script_name,
        "db_path": str(get_db_path()),
        "contract": get_contract_address() or "(unset)",
        "rpc": rpc or "(unset)",
    }
