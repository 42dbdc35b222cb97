"""ExecutionTrigger — автоматическое исполнение раунда после депозита.

Stateless, вызывается синхронно в конце каждого успешного депозита.

Условия авто-исполнения:
1. target_reached: raised[i] >= target[i] для обоих активов
2. Strategy сконфигурирована
3. Рыночная цена внутри диапазона вокруг implied цены:
   delta = implied * floating_percentage // ONE
   implied - delta <= market <= implied + delta

Иначе раунд остаётся Processing до входа цены в диапазон,
force_execute администратора или отмены.
"""

from dataclasses import dataclass
from typing import Optional

from src.core.domain.round import Round, RoundStatus
from src.core.logger import get_logger
from src.core.math.fixed_point import apply_ratio
from src.strategy.gateway import StrategyGateway

logger = get_logger(__name__)


@dataclass(frozen=True)
class TriggerDecision:
    """Результат оценки ExecutionTrigger."""

    execute: bool
    reason: str

    target_reached: bool
    market_price: Optional[int] = None
    implied_price: Optional[int] = None
    delta: Optional[int] = None


class ExecutionTrigger:
    """Оценка условий авто-исполнения раунда."""

    @staticmethod
    def target_reached(round_: Round) -> bool:
        return round_.target_reached()

    def evaluate(
        self,
        round_: Round,
        strategy: Optional[StrategyGateway],
        floating_percentage: int,
    ) -> TriggerDecision:
        """
        Args:
            round_: живая запись раунда (после применения депозита)
            strategy: коллаборатор цен (None → исполнение невозможно)
            floating_percentage: допуск диапазона (fixed-point)

        Returns:
            TriggerDecision; execute=True означает, что facade должен
            перевести раунд в Finished и вызвать strategy.execute
        """
        if round_.status != RoundStatus.PROCESSING:
            return TriggerDecision(execute=False, reason="not_processing", target_reached=False)

        if not self.target_reached(round_):
            return TriggerDecision(execute=False, reason="target_not_reached", target_reached=False)

        if strategy is None:
            logger.warning("round %d reached target but no strategy is configured", round_.round_id)
            return TriggerDecision(execute=False, reason="strategy_not_set", target_reached=True)

        market = strategy.market_price(round_)
        implied = strategy.target_price(round_)
        delta = apply_ratio(implied, floating_percentage)

        if implied - delta <= market <= implied + delta:
            return TriggerDecision(
                execute=True,
                reason="price_in_band",
                target_reached=True,
                market_price=market,
                implied_price=implied,
                delta=delta,
            )

        logger.debug(
            "round %d price out of band: market=%d implied=%d delta=%d",
            round_.round_id, market, implied, delta,
        )
        return TriggerDecision(
            execute=False,
            reason="price_out_of_band",
            target_reached=True,
            market_price=market,
            implied_price=implied,
            delta=delta,
        )
