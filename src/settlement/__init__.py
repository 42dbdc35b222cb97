"""Settlement — state machine раунда, административная и публичная поверхность."""

from .facade import ClaimResult, SettlementFacade, WithdrawResult

__all__ = [
    "ClaimResult",
    "SettlementFacade",
    "WithdrawResult",
]
