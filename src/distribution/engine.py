"""
DistributionEngine — распределение капитала, комиссий и reward-токенов

Модуль вычисляет доли пользователя при settlement раунда:
- capital: реализованная ликвидность strategy + lending side-capital
- fees / bonus: swap fees и lending bonus, пропорционально investment_proportion
- reward: reward-пул пропорционально вкладу по каждому активу

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Вся математика — fixed-point со шкалой ONE, floor-деление
2. Умножение всегда до деления; порядок операций фиксирован
3. investment_proportion == 0, если статус не Finished / Received
4. Сконфигурированный актив всегда имеет target > 0 (деление на 0 недостижимо)

ФОРМУЛЫ (t = target, d = deposited, r = returned):
    Ветка 1 (r0 > t0):  p = d1/t1;  a0 = d0 + p*(r0 - t0);  a1 = p*r1
    Ветка 2 (r1 > t1):  p = d0/t0;  a1 = d1 + p*(r1 - t1);  a0 = p*r0
    Ветка 3 (иначе):    a_i = (d_i/t_i) * r_i

    total = t0*P + t1;  user = d0*P + d1;  proportion = user / total

    reward = pool0*d0/t0 + pool1*d1/t1
"""

from dataclasses import dataclass

from src.core.domain.round import SETTLED_STATUSES, Round
from src.core.math.fixed_point import apply_ratio, mul_div_floor, ratio
from src.rounds.ledger import DepositLedger
from src.rounds.registry import RoundRegistry


# =============================================================================
# RESULT TYPES
# =============================================================================


@dataclass(frozen=True)
class FeeShares:
    """Доля пользователя в swap fees и lending bonus."""

    fee0: int
    fee1: int
    bonus0: int
    bonus1: int


@dataclass(frozen=True)
class WithdrawQuote:
    """Прогноз выплаты пользователю при withdraw."""

    amount0: int
    amount1: int
    fee0: int
    fee1: int
    bonus0: int
    bonus1: int
    reward: int

    @property
    def total0(self) -> int:
        return self.amount0 + self.fee0 + self.bonus0

    @property
    def total1(self) -> int:
        return self.amount1 + self.fee1 + self.bonus1


ZERO_QUOTE = WithdrawQuote(0, 0, 0, 0, 0, 0, 0)


# =============================================================================
# PURE MATH
# =============================================================================


def split_capital(
    target: tuple[int, int],
    deposited: tuple[int, int],
    returned: tuple[int, int],
) -> tuple[int, int]:
    """
    Доля пользователя в реализованном капитале.

    Args:
        target: (target0, target1), оба > 0
        deposited: (dep0, dep1) пользователя
        returned: (return0, return1) с учётом side-capital

    Returns:
        (amount0, amount1)

    Examples:
        >>> split_capital((100, 200), (30, 60), (150, 180))
        (45, 54)
        >>> split_capital((100, 100), (50, 50), (100, 100))
        (50, 50)
    """
    target0, target1 = target
    dep0, dep1 = deposited
    return0, return1 = returned

    if return0 > target0:
        diff = return0 - target0
        p = ratio(dep1, target1)
        return dep0 + apply_ratio(diff, p), apply_ratio(return1, p)

    if return1 > target1:
        diff = return1 - target1
        p = ratio(dep0, target0)
        return apply_ratio(return0, p), dep1 + apply_ratio(diff, p)

    return (
        apply_ratio(return0, ratio(dep0, target0)),
        apply_ratio(return1, ratio(dep1, target1)),
    )


def value_proportion(
    target: tuple[int, int],
    deposited: tuple[int, int],
    price: int,
) -> int:
    """
    Fixed-point доля стоимости вклада в стоимости раунда.

    price — стоимость asset1 за единицу asset0 (fixed-point).
    """
    target0, target1 = target
    dep0, dep1 = deposited
    total_value = apply_ratio(target0, price) + target1
    user_value = apply_ratio(dep0, price) + dep1
    return ratio(user_value, total_value)


def pro_rata_reward(
    reward_pool: tuple[int, int],
    target: tuple[int, int],
    deposited: tuple[int, int],
) -> int:
    """
    Examples:
        >>> pro_rata_reward((1000, 0), (100, 100), (10, 0))
        100
    """
    total = 0
    for pool, tgt, dep in zip(reward_pool, target, deposited):
        if pool and dep:
            total += mul_div_floor(pool, dep, tgt)
    return total


# =============================================================================
# ENGINE
# =============================================================================


class DistributionEngine:
    """Расчёт долей пользователя по данным registry, ledger и strategy."""

    def __init__(self, registry: RoundRegistry, ledger: DepositLedger):
        self.registry = registry
        self.ledger = ledger

    def _deposited(self, round_: Round, user: str) -> tuple[int, int]:
        position = self.ledger.position(round_.round_id, user)
        if position is None:
            return 0, 0
        return position.deposited.as_tuple()

    def capital_distribution(self, round_id: int, user: str) -> tuple[int, int]:
        """Капитал к возврату пользователю; (0, 0) до исполнения раунда."""
        round_ = self.registry.get(round_id)
        if round_.status not in SETTLED_STATUSES:
            return 0, 0

        strategy = self.registry.require_strategy()
        return0, return1 = strategy.realized_amounts(round_id)
        capital0, capital1 = strategy.lending_capital(round_id)

        return split_capital(
            round_.target.as_tuple(),
            self._deposited(round_, user),
            (return0 + capital0, return1 + capital1),
        )

    def investment_proportion(self, round_id: int, user: str) -> int:
        round_ = self.registry.get(round_id)
        if round_.status not in SETTLED_STATUSES:
            return 0

        deposited = self._deposited(round_, user)
        if deposited == (0, 0):
            return 0

        price = self.registry.require_strategy().settlement_price(round_id)
        return value_proportion(round_.target.as_tuple(), deposited, price)

    def fee_distribution(self, round_id: int, user: str) -> FeeShares:
        proportion = self.investment_proportion(round_id, user)
        if proportion == 0:
            return FeeShares(0, 0, 0, 0)

        strategy = self.registry.require_strategy()
        fee0, fee1 = strategy.accrued_fees(round_id)
        bonus0, bonus1 = strategy.lending_bonus(round_id)

        return FeeShares(
            fee0=apply_ratio(fee0, proportion),
            fee1=apply_ratio(fee1, proportion),
            bonus0=apply_ratio(bonus0, proportion),
            bonus1=apply_ratio(bonus1, proportion),
        )

    def reward_token_amount(self, round_id: int, user: str) -> int:
        round_ = self.registry.get(round_id)
        return pro_rata_reward(
            round_.reward_pool.as_tuple(),
            round_.target.as_tuple(),
            self._deposited(round_, user),
        )

    def withdraw_quote(self, round_id: int, user: str) -> WithdrawQuote:
        """Полный прогноз выплаты; нулевой до исполнения раунда."""
        round_ = self.registry.get(round_id)
        if round_.status not in SETTLED_STATUSES:
            return ZERO_QUOTE

        amount0, amount1 = self.capital_distribution(round_id, user)
        fees = self.fee_distribution(round_id, user)
        return WithdrawQuote(
            amount0=amount0,
            amount1=amount1,
            fee0=fees.fee0,
            fee1=fees.fee1,
            bonus0=fees.bonus0,
            bonus1=fees.bonus1,
            reward=self.reward_token_amount(round_id, user),
        )
