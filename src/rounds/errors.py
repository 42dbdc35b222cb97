"""
Round errors — отказы операций раунда

Каждый отказ имеет стабильный reason code (атрибут класса `reason`).

Категории:
- Validation: некорректные параметры (окно, порядок активов, нулевой адрес/сумма)
- Policy: неверный статус, вне окна, target не достигнут, нет депозита, юнит не принадлежит
- Collaborator: не настроен strategy / vault, отказ strategy / custody / vault (StrategyCallError)

Все отказы, кроме StrategyCallError, возникают до любой мутации состояния.
"""


class RoundError(Exception):
    """Базовый класс отказов операций раунда."""

    reason: str = "round_error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.reason)


# =============================================================================
# VALIDATION
# =============================================================================


class InvalidWindow(RoundError):
    """Нарушено start >= now, start < end < unlock."""

    reason = "invalid_window"


class InvalidAssetOrder(RoundError):
    """Нарушено asset0 < asset1."""

    reason = "invalid_asset_order"


class ZeroAddress(RoundError):
    reason = "zero_address"


class ZeroAmount(RoundError):
    reason = "zero_amount"


# =============================================================================
# POLICY
# =============================================================================


class Unauthorized(RoundError):
    """Вызов административной операции без capability."""

    reason = "unauthorized"


class RoundNotFound(RoundError):
    reason = "round_not_found"


class InvalidStatus(RoundError):
    """Статус раунда не допускает запрошенный переход."""

    reason = "invalid_status"


class OutsideDepositWindow(RoundError):
    reason = "outside_deposit_window"


class StillLocked(RoundError):
    """Операция требует now > end (refund) или now > unlock (exit / withdraw)."""

    reason = "still_locked"


class UnsupportedAsset(RoundError):
    reason = "unsupported_asset"


class TargetFilled(RoundError):
    """Headroom актива исчерпан."""

    reason = "target_filled"


class TargetNotReached(RoundError):
    reason = "target_not_reached"


class NoDeposit(RoundError):
    reason = "no_deposit"


class UnitNotOwned(RoundError):
    reason = "unit_not_owned"


class ReentrantCall(RoundError):
    """Коллаборатор повторно вошёл в мутирующую операцию того же раунда."""

    reason = "reentrant_call"


# =============================================================================
# COLLABORATOR
# =============================================================================


class StrategyNotSet(RoundError):
    reason = "strategy_not_set"


class VaultNotSet(RoundError):
    """Операция с юнитами без настроенного unit vault."""

    reason = "vault_not_set"


class StrategyCallError(RoundError):
    """
    Отказ внешнего коллаборатора.

    Исходное исключение доступно через __cause__.
    Состояние раунда и позиции откатывается.
    """

    reason = "strategy_call_failed"
