"""
Application-level exceptions.

Validation, no-op and authorization errors mirror the oracle contract's revert
reasons so the in-process state machine and the web3 client surface the same
types. Chain and synchronization errors describe submission failures.
"""

from __future__ import annotations


class RiskOracleError(Exception):
    """Base class for every error raised by backend_riskoracle."""


class ConfigError(RiskOracleError):
    """Missing or malformed environment configuration."""


class WalletNotFoundError(RiskOracleError):
    def __init__(self, address: str) -> None:
        super().__init__(f"Wallet not found: {address}")
        self.address = address


# --- validation (rejected before any state mutation) ---


class ValidationError(RiskOracleError):
    """Malformed input rejected before any state mutation."""


class InvalidAddressError(ValidationError):
    def __init__(self, address: object, reason: str = "invalid address") -> None:
        super().__init__(f"{reason}: {address!r}")
        self.address = address


class InvalidTierError(ValidationError):
    def __init__(self, tier: object) -> None:
        super().__init__(f"Tier must be an integer between 0 and 4, got {tier!r}")
        self.tier = tier


class BatchLengthMismatchError(ValidationError):
    def __init__(self, wallets: int, tiers: int) -> None:
        super().__init__(f"Wallets and tiers arrays must have same length ({wallets} != {tiers})")
        self.wallets = wallets
        self.tiers = tiers


class BatchTooLargeError(ValidationError):
    def __init__(self, size: int, maximum: int) -> None:
        super().__init__(f"Batch size {size} exceeds maximum {maximum}")
        self.size = size
        self.maximum = maximum


# --- no-op (explicit rejection of writes that would change nothing) ---


class NoOpError(RiskOracleError):
    """Write that would not change state; surfaced so callers catch logic bugs."""


class TierUnchangedError(NoOpError):
    def __init__(self, wallet: str, tier: int) -> None:
        super().__init__(f"Tier for {wallet} is already {tier}")
        self.wallet = wallet
        self.tier = tier


class TierAlreadyZeroError(NoOpError):
    def __init__(self, wallet: str) -> None:
        super().__init__(f"Tier for {wallet} is already 0")
        self.wallet = wallet


class NoPendingTransferError(NoOpError):
    def __init__(self) -> None:
        super().__init__("No ownership transfer pending")


# --- authorization ---


class AuthorizationError(RiskOracleError):
    """Caller does not hold the role required for the call."""

    def __init__(self, caller: str, role: str) -> None:
        super().__init__(f"{caller} is not the {role}")
        self.caller = caller
        self.role = role


class NotOwnerError(AuthorizationError):
    def __init__(self, caller: str) -> None:
        super().__init__(caller, "owner")


class NotUpdaterError(AuthorizationError):
    def __init__(self, caller: str) -> None:
        super().__init__(caller, "updater")


class NotPendingOwnerError(AuthorizationError):
    def __init__(self, caller: str) -> None:
        super().__init__(caller, "pending owner")


# --- chain submission ---


class ChainError(RiskOracleError):
    """On-chain submission or confirmation failed."""


class SubmissionError(ChainError):
    """Transaction could not be built, signed or broadcast."""


class BatchRevertedError(ChainError):
    def __init__(self, tx_hash: str, reason: str | None = None) -> None:
        msg = f"Transaction {tx_hash} reverted"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
        self.tx_hash = tx_hash
        self.reason = reason


class ConfirmationTimeoutError(ChainError):
    def __init__(self, tx_hash: str, timeout_sec: float) -> None:
        super().__init__(f"Transaction {tx_hash} not confirmed within {timeout_sec}s")
        self.tx_hash = tx_hash
        self.timeout_sec = timeout_sec


class SynchronizationError(RiskOracleError):
    """
    Chain sync halted on a failed batch.

    Batches before failed_batch were confirmed and stay applied; re-running the
    sync is always safe.
    """

    def __init__(self, failed_batch: int, confirmed_batches: int, total_batches: int, cause: Exception) -> None:
        super().__init__(
            f"Batch {failed_batch + 1}/{total_batches} failed after {confirmed_batches} confirmed: {cause}"
        )
        self.failed_batch = failed_batch
        self.confirmed_batches = confirmed_batches
        self.total_batches = total_batches
        self.cause = cause
