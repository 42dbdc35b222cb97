"""Distribution — расчёт долей капитала, комиссий и reward-токенов."""

from .engine import (
    ZERO_QUOTE,
    DistributionEngine,
    FeeShares,
    WithdrawQuote,
    pro_rata_reward,
    split_capital,
    value_proportion,
)

__all__ = [
    "ZERO_QUOTE",
    "DistributionEngine",
    "FeeShares",
    "WithdrawQuote",
    "pro_rata_reward",
    "split_capital",
    "value_proportion",
]
