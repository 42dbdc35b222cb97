"""Rounds — реестр раундов, учёт депозитов и триггер исполнения.

- RoundRegistry: создание и хранение раундов, глобальные параметры
- DepositLedger: позиции пользователей, допуск и клампинг депозитов
- ExecutionTrigger: авто-исполнение после депозита
"""

from .errors import (
    InvalidAssetOrder,
    InvalidStatus,
    InvalidWindow,
    NoDeposit,
    OutsideDepositWindow,
    ReentrantCall,
    RoundError,
    RoundNotFound,
    StillLocked,
    StrategyCallError,
    StrategyNotSet,
    TargetFilled,
    TargetNotReached,
    Unauthorized,
    UnitNotOwned,
    UnsupportedAsset,
    VaultNotSet,
    ZeroAddress,
    ZeroAmount,
)
from .ledger import DepositLedger, DepositResult, RedeemResult, UnitDepositResult
from .registry import Clock, RoundRegistry, system_clock
from .trigger import ExecutionTrigger, TriggerDecision

__all__ = [
    # Registry
    "Clock",
    "RoundRegistry",
    "system_clock",
    # Ledger
    "DepositLedger",
    "DepositResult",
    "RedeemResult",
    "UnitDepositResult",
    # Trigger
    "ExecutionTrigger",
    "TriggerDecision",
    # Errors
    "RoundError",
    "InvalidAssetOrder",
    "InvalidStatus",
    "InvalidWindow",
    "NoDeposit",
    "OutsideDepositWindow",
    "ReentrantCall",
    "RoundNotFound",
    "StillLocked",
    "StrategyCallError",
    "StrategyNotSet",
    "TargetFilled",
    "TargetNotReached",
    "Unauthorized",
    "UnitNotOwned",
    "UnsupportedAsset",
    "VaultNotSet",
    "ZeroAddress",
    "ZeroAmount",
]
