"""
In-process oracle client: the reader/writer surface of the web3 clients backed
by a TierOracle state machine. Used for dry runs and tests; receipts are
synthetic (sequential block numbers, hash derived from the batch contents).
"""

from __future__ import annotations

import hashlib
from typing import Sequence

from backend_riskoracle.core.addresses import normalize_address
from backend_riskoracle.core.exceptions import BatchRevertedError, RiskOracleError
from backend_riskoracle.oracle.chain import BatchReceipt
from backend_riskoracle.oracle.tier_oracle import TierOracle

BASE_GAS = 21_000
GAS_PER_WRITE = 5_000


class LocalOracleClient:
    def __init__(self, oracle: TierOracle, sender: str | None = None) -> None:
        self.oracle = oracle
        self._sender = normalize_address(sender) if sender is not None else oracle.updater
        self._block_number = 0

    @property
    def signer(self) -> str:
        return self._sender

    def get_tier(self, wallet: str) -> int:
        return self.oracle.get_tier(wallet)

    def get_tier_batch(self, wallets: Sequence[str]) -> list[int]:
        return self.oracle.get_tier_batch(list(wallets))

    def can(self, wallet: str, action_type: int) -> bool:
        return self.oracle.can(wallet, action_type)

    def set_tier_batch(self, wallets: Sequence[str], tiers: Sequence[int]) -> BatchReceipt:
        self._block_number += 1
        payload = f"{self._block_number}:{self._sender}:{list(wallets)}:{list(tiers)}".encode()
        tx_hash = "0x" + hashlib.sha256(payload).hexdigest()
        try:
            written = self.oracle.set_tier_batch(self._sender, list(wallets), list(tiers))
        except RiskOracleError as e:
            raise BatchRevertedError(tx_hash, str(e)) from e
        return BatchReceipt(
            tx_hash=tx_hash,
            block_number=self._block_number,
            gas_used=BASE_GAS + GAS_PER_WRITE * written,
            wallets=tuple(w.lower() for w in wallets),
        )
