"""
Application settings: one typed snapshot of the environment.

Built by get_settings() at the process entry point and passed down; modules
never read os.environ directly for chain or database configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from backend_riskoracle.config.env import (
    get_chain_id,
    get_contract_address,
    get_db_path,
    get_private_key,
    get_rpc_url,
    load_riskoracle_env,
    parse_bool_env,
)


@dataclass(frozen=True)
class Settings:
    """Resolved configuration for tools and workers."""

    db_path: Path
    rpc_url: str
    contract_address: str
    private_key: str
    chain_id: int | None
    dry_run: bool

    @property
    def has_signer(self) -> bool:
        return bool(self.private_key)

    def redacted(self) -> dict[str, object]:
        """Settings safe to log (no key material)."""
        return {
            "db_path": str(self.db_path),
            "rpc_url": self.rpc_url[:32] + "..." if len(self.rpc_url) > 32 else self.rpc_url,
            "contract_address": self.contract_address,
            "chain_id": self.chain_id,
            "dry_run": self.dry_run,
            "has_signer": self.has_signer,
        }


def get_settings() -> Settings:
    """Return the current application settings from env (.env loaded first)."""
    load_riskoracle_env()
    return Settings(
        db_path=get_db_path(),
        rpc_url=get_rpc_url(),
        contract_address=get_contract_address(),
        private_key=get_private_key(),
        chain_id=get_chain_id(),
        dry_run=parse_bool_env("DRY_RUN", False),
    )
