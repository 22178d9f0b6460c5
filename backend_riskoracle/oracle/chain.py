"""
web3 clients for the deployed tier oracle contract.

- OracleReader: getTier / getTierBatch / can over JSON-RPC, no key required.
- OracleWriter: setTierBatch signed with the updater key (PRIVATE_KEY). Builds,
  signs and broadcasts one transaction, then polls for its receipt until
  CONFIRM_TIMEOUT_SEC. The transaction is signed once with a fixed nonce and
  only its broadcast is retried (exponential backoff, same signed bytes);
  a mined transaction is never resubmitted.
- Config: RPC_URL, CONTRACT_ADDRESS, PRIVATE_KEY, CHAIN_ID (optional).
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Sequence

from backend_riskoracle.config.settings import Settings
from backend_riskoracle.core.addresses import normalize_address
from backend_riskoracle.core.exceptions import (
    BatchRevertedError,
    ConfigError,
    ConfirmationTimeoutError,
    SubmissionError,
)
from backend_riskoracle.oracle.abi import ORACLE_ABI
from backend_riskoracle.riskoracle_logging import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIRM_TIMEOUT_SEC = 120.0
DEFAULT_CONFIRM_POLL_INTERVAL_SEC = 2.0
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_BACKOFF_SEC = 2.0
DEFAULT_RPC_TIMEOUT_SEC = 30


@dataclass(frozen=True)
class BatchReceipt:
    """Confirmed setTierBatch transaction."""

    tx_hash: str
    block_number: int
    gas_used: int
    wallets: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tx_hash": self.tx_hash,
            "block_number": self.block_number,
            "gas_used": self.gas_used,
            "wallet_count": len(self.wallets),
        }


def _make_web3(rpc_url: str) -> Any:
    from web3 import Web3

    if not rpc_url:
        raise ConfigError("RPC_URL must be set for chain access")
    return Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": DEFAULT_RPC_TIMEOUT_SEC}))


def _checksum(address: str) -> str:
    from web3 import Web3

    return Web3.to_checksum_address(normalize_address(address))


# Node replies meaning these exact signed bytes are already in the pool or mined
_KNOWN_TX_MARKERS = ("already known", "known transaction", "already imported")
# Only conclusive after an earlier send of the same bytes may have landed
_NONCE_USED_MARKERS = ("nonce too low",)


def _already_broadcast(error: Exception, *, resent: bool) -> bool:
    message = str(error).lower()
    if any(m in message for m in _KNOWN_TX_MARKERS):
        return True
    return resent and any(m in message for m in _NONCE_USED_MARKERS)


class OracleReader:
    """Read-only view of the oracle contract."""

    def __init__(self, w3: Any, contract_address: str) -> None:
        self._w3 = w3
        self._address = normalize_address(contract_address)
        self._contract = w3.eth.contract(address=_checksum(self._address), abi=ORACLE_ABI)

    @property
    def contract_address(self) -> str:
        return self._address

    def get_tier(self, wallet: str) -> int:
        return int(self._contract.functions.getTier(_checksum(wallet)).call())

    def get_tier_batch(self, wallets: Sequence[str]) -> list[int]:
        if not wallets:
            return []
        raw = self._contract.functions.getTierBatch([_checksum(w) for w in wallets]).call()
        return [int(t) for t in raw]

    def can(self, wallet: str, action_type: int) -> bool:
        return bool(self._contract.functions.can(_checksum(wallet), int(action_type)).call())


class OracleWriter(OracleReader):
    """
    Signer-backed client for the updater. set_tier_batch returns only after the
    transaction is mined successfully; otherwise it raises a ChainError.
    """

    def __init__(
        self,
        w3: Any,
        contract_address: str,
        private_key: str,
        *,
        chain_id: int | None = None,
        confirm_timeout_sec: float = DEFAULT_CONFIRM_TIMEOUT_SEC,
        confirm_poll_interval_sec: float = DEFAULT_CONFIRM_POLL_INTERVAL_SEC,
        retry_attempts: int = DEFAULT_RETRY_ATTEMPTS,
        retry_backoff_sec: float = DEFAULT_RETRY_BACKOFF_SEC,
    ) -> None:
        super().__init__(w3, contract_address)
        from eth_account import Account

        if not private_key:
            raise ConfigError("PRIVATE_KEY must be set to submit tier updates")
        self._account = Account.from_key(private_key)
        self._chain_id = chain_id
        self._confirm_timeout_sec = confirm_timeout_sec
        self._confirm_poll_interval_sec = max(0.0, confirm_poll_interval_sec)
        self._retry_attempts = max(1, retry_attempts)
        self._retry_backoff_sec = max(0.0, retry_backoff_sec)

    @property
    def signer(self) -> str:
        return self._account.address.lower()

    def _resolve_chain_id(self) -> int:
        if self._chain_id is None:
            self._chain_id = int(self._w3.eth.chain_id)
        return self._chain_id

    def _sign(self, fn_call: Any) -> Any:
        tx = fn_call.build_transaction(
            {
                "from": self._account.address,
                "nonce": self._w3.eth.get_transaction_count(self._account.address, "pending"),
                "chainId": self._resolve_chain_id(),
            }
        )
        return self._account.sign_transaction(tx)

    def _submit(self, fn_call: Any) -> str:
        """
        Build and sign once, then broadcast the same signed bytes until the node
        takes them. Returns the signed tx hash (hex).

        The nonce is fixed at signing time, so a broadcast whose response was
        lost is re-sent as the identical transaction, never a second one.
        """
        from web3.exceptions import ContractLogicError

        signed: Any = None
        sends = 0
        last_error: Exception | None = None
        for attempt in range(self._retry_attempts):
            try:
                if signed is None:
                    signed = self._sign(fn_call)
                sends += 1
                self._w3.eth.send_raw_transaction(signed.raw_transaction)
                return self._w3.to_hex(signed.hash)
            except ContractLogicError as e:
                # Gas estimation hit a revert: resubmitting cannot succeed
                logger.warning("oracle_tx_rejected", signer=self.signer, error=str(e))
                raise BatchRevertedError("(not sent)", str(e)) from e
            except Exception as e:
                if signed is not None and _already_broadcast(e, resent=sends > 1):
                    tx_hash = self._w3.to_hex(signed.hash)
                    logger.info("oracle_tx_already_known", signer=self.signer, tx_hash=tx_hash, error=str(e))
                    return tx_hash
                last_error = e
                logger.warning(
                    "oracle_tx_submit_retry",
                    signer=self.signer,
                    attempt=attempt + 1,
                    max_attempts=self._retry_attempts,
                    signed=signed is not None,
                    error=str(e),
                )
                if attempt + 1 < self._retry_attempts:
                    time.sleep(self._retry_backoff_sec * (2**attempt))
        raise SubmissionError(f"Submission failed after {self._retry_attempts} attempts: {last_error}") from last_error

    def wait_for_receipt(self, tx_hash: str) -> Any:
        """Poll for the receipt until the confirm timeout. Raises on timeout or revert."""
        from web3.exceptions import TransactionNotFound

        deadline = time.monotonic() + self._confirm_timeout_sec
        while True:
            try:
                receipt = self._w3.eth.get_transaction_receipt(tx_hash)
            except TransactionNotFound:
                receipt = None
            if receipt is not None:
                if int(receipt["status"]) != 1:
                    logger.warning("oracle_tx_reverted", tx_hash=tx_hash, block_number=receipt["blockNumber"])
                    raise BatchRevertedError(tx_hash)
                return receipt
            if time.monotonic() >= deadline:
                logger.warning(
                    "oracle_tx_confirm_failed",
                    tx_hash=tx_hash,
                    reason="timeout",
                    timeout_sec=self._confirm_timeout_sec,
                )
                raise ConfirmationTimeoutError(tx_hash, self._confirm_timeout_sec)
            time.sleep(self._confirm_poll_interval_sec)

    def set_tier_batch(self, wallets: Sequence[str], tiers: Sequence[int]) -> BatchReceipt:
        addrs = [_checksum(w) for w in wallets]
        fn_call = self._contract.functions.setTierBatch(addrs, [int(t) for t in tiers])
        tx_hash = self._submit(fn_call)
        logger.info("oracle_tx_sent", tx_hash=tx_hash, wallet_count=len(addrs))
        receipt = self.wait_for_receipt(tx_hash)
        logger.info(
            "oracle_tx_confirmed",
            tx_hash=tx_hash,
            block_number=int(receipt["blockNumber"]),
            gas_used=int(receipt["gasUsed"]),
        )
        return BatchReceipt(
            tx_hash=tx_hash,
            block_number=int(receipt["blockNumber"]),
            gas_used=int(receipt["gasUsed"]),
            wallets=tuple(a.lower() for a in addrs),
        )


def get_oracle_reader(settings: Settings) -> OracleReader:
    if not settings.contract_address:
        raise ConfigError("CONTRACT_ADDRESS must be set for chain access")
    return OracleReader(_make_web3(settings.rpc_url), settings.contract_address)


def get_oracle_writer(settings: Settings, **kwargs: Any) -> OracleWriter:
    """Writer from settings; kwargs override timeout/retry policy (see SyncConfig)."""
    if not settings.contract_address:
        raise ConfigError("CONTRACT_ADDRESS must be set for chain access")
    return OracleWriter(
        _make_web3(settings.rpc_url),
        settings.contract_address,
        settings.private_key,
        chain_id=settings.chain_id,
        **kwargs,
    )
