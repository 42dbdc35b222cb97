"""
DepositLedger — учёт вкладов пользователей

- Позиции (user, round) создаются лениво при первом депозите
- Допуск депозита: статус Processing, now ∈ [start, end], актив раунда,
  headroom = target - raised > 0
- Принятая сумма = min(запрошено, headroom): raised никогда не превышает target
- Piece-активы: юниты принимаются минимальным целым числом,
  покрывающим headroom (ceil), лишние pieces возвращаются вкладчику

Ledger только мутирует записи. Переводы активов выполняет facade
через коллабораторов. Вызывать под registry.exclusive(round_id).
"""

from dataclasses import dataclass
from typing import Dict, Optional

from src.core.domain.position import UserPosition
from src.core.domain.round import Round, RoundStatus, normalize_address
from src.core.logger import get_logger
from src.core.math.fixed_point import ceil_div, validate_amount
from src.rounds.errors import (
    InvalidStatus,
    OutsideDepositWindow,
    TargetFilled,
    UnitNotOwned,
    UnsupportedAsset,
    ZeroAmount,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class DepositResult:
    """Результат fungible депозита."""

    asset: str
    requested: int
    accepted: int

    # Неиспользованная часть запроса: возвращается вызывающим
    excess: int


@dataclass(frozen=True)
class UnitDepositResult:
    """Результат депозита NFT-юнитов."""

    asset: str
    accepted_ids: tuple[int, ...]
    rejected_ids: tuple[int, ...]
    minted: int
    accepted: int

    # minted - accepted: pieces к возврату вкладчику
    overage: int


@dataclass(frozen=True)
class RedeemResult:
    """Результат выкупа NFT-юнитов из позиции."""

    asset: str
    unit_ids: tuple[int, ...]
    required: int
    debited: int

    # Недостающие pieces покрываются с баланса пользователя
    shortfall: int


class DepositLedger:
    """Позиции пользователей по раундам."""

    def __init__(self):
        self._positions: Dict[tuple[int, str], UserPosition] = {}

    # -------------------------------------------------------------------------
    # Positions
    # -------------------------------------------------------------------------

    def position(self, round_id: int, user: str, create: bool = False) -> Optional[UserPosition]:
        """Живая позиция (или None). create=True создаёт пустую позицию."""
        key = (round_id, user)
        position = self._positions.get(key)
        if position is None and create:
            position = UserPosition(user=user, round_id=round_id)
            self._positions[key] = position
        return position

    def query(self, round_id: int, user: str) -> UserPosition:
        """Snapshot позиции; отсутствующая позиция → нулевая запись."""
        position = self._positions.get((round_id, user))
        if position is None:
            return UserPosition(user=user, round_id=round_id)
        return position.snapshot()

    def snapshot(self, round_id: int, user: str) -> Optional[UserPosition]:
        position = self._positions.get((round_id, user))
        return position.snapshot() if position is not None else None

    def restore(self, round_id: int, user: str, snapshot: Optional[UserPosition]) -> None:
        """Rollback позиции к снапшоту; None удаляет лениво созданную позицию."""
        if snapshot is None:
            self._positions.pop((round_id, user), None)
        else:
            self._positions[(round_id, user)] = snapshot

    # -------------------------------------------------------------------------
    # Admission
    # -------------------------------------------------------------------------

    def _admit(self, round_: Round, asset: str, now: int) -> int:
        """Проверка допуска депозита. Returns: слот актива."""
        if round_.status != RoundStatus.PROCESSING:
            raise InvalidStatus(f"round {round_.round_id} is {round_.status.value}")
        if not round_.start_ts <= now <= round_.end_ts:
            raise OutsideDepositWindow(
                f"now {now} outside [{round_.start_ts}, {round_.end_ts}]"
            )
        slot = round_.slot_of(asset)
        if slot is None or round_.target.get(slot) == 0:
            raise UnsupportedAsset(f"{asset} is not an asset of round {round_.round_id}")
        if round_.headroom(slot) <= 0:
            raise TargetFilled(f"{asset} target of round {round_.round_id} is filled")
        return slot

    # -------------------------------------------------------------------------
    # Deposits
    # -------------------------------------------------------------------------

    def record_deposit(
        self, round_: Round, user: str, asset: str, amount: int, now: int
    ) -> DepositResult:
        """Fungible депозит, клампится по headroom."""
        validate_amount(amount)
        if amount == 0:
            raise ZeroAmount("deposit amount is zero")

        slot = self._admit(round_, asset, now)
        accepted = min(amount, round_.headroom(slot))

        round_.raised.add(slot, accepted)
        self.position(round_.round_id, user, create=True).deposited.add(slot, accepted)

        logger.info(
            "deposit round=%d user=%s asset=%s requested=%d accepted=%d",
            round_.round_id, user, asset, amount, accepted,
        )
        return DepositResult(
            asset=normalize_address(asset),
            requested=amount,
            accepted=accepted,
            excess=amount - accepted,
        )

    def record_unit_deposit(
        self,
        round_: Round,
        user: str,
        piece_asset: str,
        unit_ids: list[int],
        pieces_per_unit: int,
        now: int,
    ) -> UnitDepositResult:
        """
        Депозит NFT-юнитов piece-актива.

        units_needed = ceil(headroom / pieces_per_unit), но не больше переданных.
        Принимаются первые units_needed id, остальные отклоняются.
        """
        ids = list(dict.fromkeys(unit_ids))
        if not ids:
            raise ZeroAmount("no unit ids supplied")
        if pieces_per_unit <= 0:
            raise ValueError(f"pieces_per_unit must be positive, got {pieces_per_unit}")

        slot = self._admit(round_, piece_asset, now)
        headroom = round_.headroom(slot)

        count = min(ceil_div(headroom, pieces_per_unit), len(ids))
        accepted_ids = ids[:count]
        minted = count * pieces_per_unit
        accepted = min(minted, headroom)

        round_.raised.add(slot, accepted)
        position = self.position(round_.round_id, user, create=True)
        position.deposited.add(slot, accepted)
        position.add_units(piece_asset, accepted_ids)

        logger.info(
            "unit_deposit round=%d user=%s asset=%s units=%d accepted=%d overage=%d",
            round_.round_id, user, piece_asset, count, accepted, minted - accepted,
        )
        return UnitDepositResult(
            asset=normalize_address(piece_asset),
            accepted_ids=tuple(accepted_ids),
            rejected_ids=tuple(ids[count:]),
            minted=minted,
            accepted=accepted,
            overage=minted - accepted,
        )

    # -------------------------------------------------------------------------
    # Redemption
    # -------------------------------------------------------------------------

    def redeem_units(
        self,
        round_id: int,
        user: str,
        piece_asset: str,
        unit_ids: list[int],
        pieces_per_unit: int,
    ) -> RedeemResult:
        """
        Выкуп юнитов из позиции за withdrawable pieces.

        Все id должны принадлежать пользователю (иначе UnitNotOwned, без мутаций).
        Если withdrawable pieces < required, недостающее (shortfall)
        должно быть покрыто с баланса пользователя вызывающим.
        """
        ids = list(dict.fromkeys(unit_ids))
        if not ids:
            raise ZeroAmount("no unit ids supplied")

        position = self.position(round_id, user)
        for unit_id in ids:
            if position is None or not position.owns_unit(piece_asset, unit_id):
                raise UnitNotOwned(f"unit {unit_id} of {piece_asset} is not owned by {user}")

        required = len(ids) * pieces_per_unit
        debited = min(position.withdrawable_of(piece_asset), required)

        position.debit(piece_asset, debited)
        position.remove_units(piece_asset, ids)

        logger.info(
            "units_redeemed round=%d user=%s asset=%s units=%d debited=%d shortfall=%d",
            round_id, user, piece_asset, len(ids), debited, required - debited,
        )
        return RedeemResult(
            asset=normalize_address(piece_asset),
            unit_ids=tuple(ids),
            required=required,
            debited=debited,
            shortfall=required - debited,
        )

    def redeemable_units(self, round_id: int, user: str, piece_asset: str, pieces_per_unit: int) -> list[int]:
        """Юниты, полностью покрываемые withdrawable pieces (в порядке депозита)."""
        position = self.position(round_id, user)
        if position is None:
            return []
        owned = position.owned_units(piece_asset)
        covered = position.withdrawable_of(piece_asset) // pieces_per_unit
        return owned[:covered]

    # -------------------------------------------------------------------------
    # Settlement movements
    # -------------------------------------------------------------------------

    def move_deposits_to_withdrawable(self, round_: Round, user: str) -> tuple[int, int]:
        """Refund: deposited → withdrawable для обоих активов, deposited = 0."""
        position = self.position(round_.round_id, user)
        if position is None:
            return 0, 0
        amount0, amount1 = position.deposited.as_tuple()
        position.credit(round_.asset0, amount0)
        position.credit(round_.asset1, amount1)
        position.deposited.clear()
        return amount0, amount1
