"""
Domain models and value objects.

Contains fundamental domain entities: Round, RoundParams, UserPosition.
"""

from src.core.domain.position import UserPosition
from src.core.domain.round import (
    ADDRESS_PATTERN,
    SETTLED_STATUSES,
    ZERO_ADDRESS,
    MarketParams,
    Round,
    RoundParams,
    RoundStatus,
    SlotAmounts,
    address_key,
    is_zero_address,
    normalize_address,
)

__all__ = [
    # Addresses
    "ADDRESS_PATTERN",
    "ZERO_ADDRESS",
    "address_key",
    "is_zero_address",
    "normalize_address",
    # Round model
    "MarketParams",
    "Round",
    "RoundParams",
    "RoundStatus",
    "SETTLED_STATUSES",
    "SlotAmounts",
    # Position model
    "UserPosition",
]
