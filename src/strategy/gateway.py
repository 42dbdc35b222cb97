"""
StrategyGateway — интерфейсы внешних коллабораторов

Коллабораторы вне core:
- StrategyGateway: стратегия ликвидности / lending (оценки + execute / exit)
- AssetCustody: перевод fungible активов и approve
- UnitVault: фракционирование NFT-юнитов в pieces и обратно

Все вызовы синхронные, считаются авторитетными, без retry.
Цены — fixed-point (ONE = 1.0): стоимость asset1 за единицу asset0.
"""

from typing import Protocol, runtime_checkable

from src.core.domain.round import Round


@runtime_checkable
class StrategyGateway(Protocol):
    """Стратегия, в которую раунд коммитит собранный капитал."""

    address: str

    # -------------------------------------------------------------------------
    # Оценки
    # -------------------------------------------------------------------------

    def market_price(self, round_: Round) -> int:
        """Текущая рыночная цена пары раунда."""
        ...

    def target_price(self, round_: Round) -> int:
        """Цена, соответствующая market.target_price раунда."""
        ...

    def settlement_price(self, round_id: int) -> int:
        """Цена, по которой раунд был исполнен."""
        ...

    def realized_amounts(self, round_id: int) -> tuple[int, int]:
        """Реализованные после execute суммы ликвидности (asset0, asset1)."""
        ...

    def lending_capital(self, round_id: int) -> tuple[int, int]:
        """Side-capital, размещённый в lending (asset0, asset1)."""
        ...

    def lending_bonus(self, round_id: int) -> tuple[int, int]:
        """Начисленный lending bonus (asset0, asset1)."""
        ...

    def accrued_fees(self, round_id: int) -> tuple[int, int]:
        """Накопленные swap fees (asset0, asset1)."""
        ...

    # -------------------------------------------------------------------------
    # Команды
    # -------------------------------------------------------------------------

    def execute(self, round_: Round, amount0: int, amount1: int) -> None:
        ...

    def exit(self, round_: Round) -> None:
        ...


@runtime_checkable
class AssetCustody(Protocol):
    """Хранение и перевод fungible активов пула."""

    def pull(self, asset: str, owner: str, amount: int) -> None:
        """Перевод amount от owner в пул."""
        ...

    def release(self, asset: str, to: str, amount: int) -> None:
        """Перевод amount из пула получателю."""
        ...

    def approve(self, asset: str, spender: str, amount: int) -> None:
        ...


@runtime_checkable
class UnitVault(Protocol):
    """Vault, фракционирующий NFT-юниты в fungible pieces."""

    def pieces_per_unit(self, piece_asset: str) -> int:
        ...

    def mint(self, piece_asset: str, owner: str, unit_ids: list[int]) -> int:
        """Депонирует юниты owner в vault, возвращает число выпущенных pieces в пул."""
        ...

    def redeem(self, piece_asset: str, to: str, unit_ids: list[int]) -> None:
        """Сжигает pieces пула и выдаёт юниты получателю."""
        ...
