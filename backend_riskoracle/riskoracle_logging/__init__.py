"""
Structured logging for Backend Risk Oracle.

JSON logs with timestamp, wallet_id, event_type and tier context.
Use get_logger() in all modules for aggregation-friendly output.
"""

from backend_riskoracle.riskoracle_logging.logger import (
    bind_wallet,
    configure_structlog,
    get_logger,
)

__all__ = ["get_logger", "bind_wallet", "configure_structlog"]
