"""
Backend Risk Oracle — deterministic wallet trust tiers for on-chain gating.

Classifies every wallet into a tier (0-4) from its transaction history, keeps
the off-chain store and the on-chain oracle mapping in sync through batched
idempotent writes, and verifies both sides agree.
"""

__version__ = "0.1.0"
