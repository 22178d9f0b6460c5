"""
Wallet address helpers: format check and lower-case normalization.
"""

from __future__ import annotations

import re

from backend_riskoracle.core.exceptions import InvalidAddressError

ZERO_ADDRESS = "0x" + "0" * 40
_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")


def is_valid_address(address: object) -> bool:
    """True for 0x followed by exactly 40 hex characters (any case)."""
    return isinstance(address, str) and bool(_ADDRESS_RE.match(address))


def normalize_address(address: object) -> str:
    """Return the lower-case address; raise InvalidAddressError if malformed."""
    if not isinstance(address, str) or not address.strip():
        raise InvalidAddressError(address, "address must be a non-empty string")
    raw = address.strip()
    if not is_valid_address(raw):
        raise InvalidAddressError(address, "expected 0x followed by 40 hex characters")
    return raw.lower()


def is_zero_address(address: str) -> bool:
    return address.lower() == ZERO_ADDRESS
