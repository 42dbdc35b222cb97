"""
UserPosition — позиция пользователя в раунде

Ключ: (user, round_id). Создаётся лениво при первом депозите.

- deposited: вклад по двум активам раунда (SlotAmounts)
- withdrawable: баланс к выплате по адресу актива (включая reward-актив)
- units: упорядоченные множества id дробных NFT-юнитов по адресу piece-актива

deposited растёт только через принятые депозиты и обнуляется только
через refund / withdraw. withdrawable растёт только при settlement
и уменьшается только через claim (сначала удаление, потом выплата).
"""

from pydantic import BaseModel, Field

from src.core.domain.round import SlotAmounts, normalize_address
from src.core.math.fixed_point import validate_amount


class UserPosition(BaseModel):
    """Позиция пользователя в раунде."""

    user: str = Field(..., min_length=1)
    round_id: int = Field(..., ge=1)

    deposited: SlotAmounts = Field(default_factory=SlotAmounts)
    withdrawable: dict[str, int] = Field(default_factory=dict)

    # dict[int, None] — insertion-ordered set с O(1) membership / insert / remove
    units: dict[str, dict[int, None]] = Field(default_factory=dict)

    def has_deposit(self) -> bool:
        return self.deposited.amount0 > 0 or self.deposited.amount1 > 0

    # -------------------------------------------------------------------------
    # withdrawable
    # -------------------------------------------------------------------------

    def withdrawable_of(self, asset: str) -> int:
        return self.withdrawable.get(normalize_address(asset), 0)

    def credit(self, asset: str, amount: int) -> None:
        validate_amount(amount)
        if amount == 0:
            return
        key = normalize_address(asset)
        self.withdrawable[key] = self.withdrawable.get(key, 0) + amount

    def debit(self, asset: str, amount: int) -> None:
        validate_amount(amount)
        key = normalize_address(asset)
        balance = self.withdrawable.get(key, 0)
        if amount > balance:
            raise ValueError(f"debit {amount} exceeds withdrawable {balance} for {key}")
        remaining = balance - amount
        if remaining:
            self.withdrawable[key] = remaining
        else:
            self.withdrawable.pop(key, None)

    def take_withdrawable(self, asset: str) -> int:
        """Удаляет баланс актива и возвращает его (consume-once)."""
        return self.withdrawable.pop(normalize_address(asset), 0)

    # -------------------------------------------------------------------------
    # units
    # -------------------------------------------------------------------------

    def owned_units(self, asset: str) -> list[int]:
        return list(self.units.get(normalize_address(asset), {}))

    def owns_unit(self, asset: str, unit_id: int) -> bool:
        return unit_id in self.units.get(normalize_address(asset), {})

    def add_units(self, asset: str, unit_ids: list[int]) -> None:
        owned = self.units.setdefault(normalize_address(asset), {})
        for unit_id in unit_ids:
            owned[unit_id] = None

    def remove_units(self, asset: str, unit_ids: list[int]) -> None:
        key = normalize_address(asset)
        owned = self.units.get(key, {})
        for unit_id in unit_ids:
            owned.pop(unit_id, None)
        if not owned:
            self.units.pop(key, None)

    def snapshot(self) -> "UserPosition":
        return self.model_copy(deep=True)

    def to_payload(self) -> dict:
        """Сериализация для read view (контракт user_position)."""
        return {
            "user": self.user,
            "round_id": self.round_id,
            "deposited": list(self.deposited.as_tuple()),
            "withdrawable": dict(self.withdrawable),
            "units": {asset: list(ids) for asset, ids in self.units.items()},
        }
