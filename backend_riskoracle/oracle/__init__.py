"""
Tier oracle: contract state machine, web3 clients, chain synchronizer and
read-back verifier.
"""

from backend_riskoracle.oracle.chain import (
    BatchReceipt,
    OracleReader,
    OracleWriter,
    get_oracle_reader,
    get_oracle_writer,
)
from backend_riskoracle.oracle.local_client import LocalOracleClient
from backend_riskoracle.oracle.synchronizer import (
    ChainSynchronizer,
    SyncConfig,
    SyncResult,
    load_sync_config,
)
from backend_riskoracle.oracle.tier_oracle import MAX_BATCH_SIZE, OracleEvent, TierOracle
from backend_riskoracle.oracle.verifier import VerificationReport, verify

__all__ = [
    "BatchReceipt",
    "ChainSynchronizer",
    "LocalOracleClient",
    "MAX_BATCH_SIZE",
    "OracleEvent",
    "OracleReader",
    "OracleWriter",
    "SyncConfig",
    "SyncResult",
    "TierOracle",
    "VerificationReport",
    "get_oracle_reader",
    "get_oracle_writer",
    "load_sync_config",
    "verify",
]
