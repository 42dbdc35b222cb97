"""
Round — Модель раунда сбора средств

Раунд — кампания с временным окном, двумя активами (asset0 < asset1),
целевыми суммами по каждому активу и reward-пулом.

Таблицы сумм (target / raised / reward_pool) имеют ровно два слота на раунд,
поэтому хранятся как SlotAmounts (slot 0 / slot 1), а не как dict.

Round — изменяемая запись (мутирует только registry/facade под lock раунда),
наружу отдаётся через snapshot() — глубокая копия.
"""

from enum import Enum
from typing import Final, Optional

from pydantic import BaseModel, Field, field_validator

from src.core.math.fixed_point import validate_amount


# =============================================================================
# АДРЕСА
# =============================================================================

ZERO_ADDRESS: Final[str] = "0x" + "0" * 40

ADDRESS_PATTERN: Final[str] = "^0x[0-9a-fA-F]{40}$"


def normalize_address(value: str) -> str:
    """Адрес в нижнем регистре (для сравнения и ключей словарей)."""
    return value.lower()


def address_key(value: str) -> int:
    """Числовое значение адреса — порядок asset0 < asset1 определяется по нему."""
    return int(value, 16)


def is_zero_address(value: str) -> bool:
    return address_key(value) == 0


# =============================================================================
# ENUMS
# =============================================================================


class RoundStatus(str, Enum):
    """
    Статус раунда.

    Переходы:
    - PROCESSING → FINISHED (execute) → RECEIVED (exit / withdraw)
    - PROCESSING → CANCELED (cancel / refund)

    RECEIVED и CANCELED — терминальные.
    """

    PROCESSING = "Processing"
    FINISHED = "Finished"
    RECEIVED = "Received"
    CANCELED = "Canceled"


SETTLED_STATUSES: Final[frozenset[RoundStatus]] = frozenset(
    {RoundStatus.FINISHED, RoundStatus.RECEIVED}
)


# =============================================================================
# NESTED MODELS
# =============================================================================


class MarketParams(BaseModel):
    """
    Параметры ценового диапазона для strategy.

    Для core непрозрачны: передаются в strategy без интерпретации.
    """

    fee: int = Field(..., ge=0, description="Fee tier пула")
    target_price: int = Field(..., gt=0, description="Целевая цена исполнения (encoded)")
    tick_lower: int = Field(..., description="Нижний tick диапазона")
    tick_upper: int = Field(..., description="Верхний tick диапазона")

    model_config = {"frozen": True}


class SlotAmounts(BaseModel):
    """Пара сумм для двух активов раунда (slot 0 = asset0, slot 1 = asset1)."""

    amount0: int = Field(default=0, ge=0)
    amount1: int = Field(default=0, ge=0)

    model_config = {"validate_assignment": True}

    def get(self, slot: int) -> int:
        if slot == 0:
            return self.amount0
        if slot == 1:
            return self.amount1
        raise IndexError(f"slot must be 0 or 1, got {slot}")

    def set(self, slot: int, value: int) -> None:
        validate_amount(value)
        if slot == 0:
            self.amount0 = value
        elif slot == 1:
            self.amount1 = value
        else:
            raise IndexError(f"slot must be 0 or 1, got {slot}")

    def add(self, slot: int, value: int) -> None:
        self.set(slot, self.get(slot) + value)

    def clear(self) -> None:
        self.amount0 = 0
        self.amount1 = 0

    def as_tuple(self) -> tuple[int, int]:
        return self.amount0, self.amount1


# =============================================================================
# ROUND PARAMS
# =============================================================================


class RoundParams(BaseModel):
    """
    Параметры создания раунда.

    Проверки формата (адреса, положительные target) выполняет pydantic.
    Проверки порядка (окно, asset0 < asset1, asset0 != 0) выполняет
    RoundRegistry.create, чтобы каждый отказ имел свой reason code.
    """

    start_ts: int = Field(..., ge=0, description="Начало окна депозитов (UNIX, сек)")
    end_ts: int = Field(..., ge=0, description="Конец окна депозитов (UNIX, сек)")
    unlock_ts: int = Field(..., ge=0, description="Момент разблокировки (UNIX, сек)")

    asset0: str = Field(..., pattern=ADDRESS_PATTERN)
    asset1: str = Field(..., pattern=ADDRESS_PATTERN)
    target0: int = Field(..., gt=0, description="Целевая сумма asset0")
    target1: int = Field(..., gt=0, description="Целевая сумма asset1")

    market: MarketParams

    reward_asset: str = Field(..., pattern=ADDRESS_PATTERN)
    reward0: int = Field(default=0, ge=0, description="Reward-пул для вкладчиков asset0")
    reward1: int = Field(default=0, ge=0, description="Reward-пул для вкладчиков asset1")

    model_config = {"frozen": True}

    @field_validator("asset0", "asset1", "reward_asset")
    @classmethod
    def lower_address(cls, v: str) -> str:
        return normalize_address(v)


# =============================================================================
# ROUND MODEL
# =============================================================================


class Round(BaseModel):
    """
    Запись раунда.

    Создаётся один раз в RoundRegistry, никогда не удаляется.
    Инвариант: raised[slot] <= target[slot] для обоих слотов.
    """

    round_id: int = Field(..., ge=1)

    start_ts: int = Field(..., ge=0)
    end_ts: int = Field(..., ge=0)
    unlock_ts: int = Field(..., ge=0)
    status: RoundStatus = RoundStatus.PROCESSING

    asset0: str = Field(..., pattern=ADDRESS_PATTERN)
    asset1: str = Field(..., pattern=ADDRESS_PATTERN)
    market: MarketParams

    target: SlotAmounts
    raised: SlotAmounts = Field(default_factory=SlotAmounts)

    reward_asset: str = Field(..., pattern=ADDRESS_PATTERN)
    reward_pool: SlotAmounts = Field(default_factory=SlotAmounts)

    model_config = {"validate_assignment": True}

    @classmethod
    def from_params(cls, round_id: int, params: RoundParams) -> "Round":
        return cls(
            round_id=round_id,
            start_ts=params.start_ts,
            end_ts=params.end_ts,
            unlock_ts=params.unlock_ts,
            asset0=params.asset0,
            asset1=params.asset1,
            market=params.market,
            target=SlotAmounts(amount0=params.target0, amount1=params.target1),
            reward_asset=params.reward_asset,
            reward_pool=SlotAmounts(amount0=params.reward0, amount1=params.reward1),
        )

    @property
    def assets(self) -> tuple[str, str]:
        return self.asset0, self.asset1

    def slot_of(self, asset: str) -> Optional[int]:
        """Слот актива в раунде или None, если актив не сконфигурирован."""
        asset = normalize_address(asset)
        if asset == self.asset0:
            return 0
        if asset == self.asset1:
            return 1
        return None

    def headroom(self, slot: int) -> int:
        """Остаток до target: target - raised."""
        return self.target.get(slot) - self.raised.get(slot)

    def target_reached(self) -> bool:
        return (
            self.raised.amount0 >= self.target.amount0
            and self.raised.amount1 >= self.target.amount1
        )

    def snapshot(self) -> "Round":
        return self.model_copy(deep=True)

    def to_payload(self) -> dict:
        """Сериализация для read view (контракт round_info)."""
        return {
            "round_id": self.round_id,
            "start_ts": self.start_ts,
            "end_ts": self.end_ts,
            "unlock_ts": self.unlock_ts,
            "status": self.status.value,
            "asset0": self.asset0,
            "asset1": self.asset1,
            "market": self.market.model_dump(),
            "target": list(self.target.as_tuple()),
            "raised": list(self.raised.as_tuple()),
            "reward_asset": self.reward_asset,
            "reward_pool": list(self.reward_pool.as_tuple()),
        }
