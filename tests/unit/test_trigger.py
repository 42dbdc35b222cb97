"""Тесты для ExecutionTrigger: target_reached и ценовой диапазон."""

import pytest

from src.core.domain import Round, RoundStatus
from src.core.math import ONE
from src.rounds import ExecutionTrigger
from tests.fakes import FakeClock, FakeStrategy, make_params

FIVE_PCT = ONE * 5 // 100


@pytest.fixture
def filled_round():
    round_ = Round.from_params(1, make_params(FakeClock()))
    round_.raised.set(0, 100)
    round_.raised.set(1, 200)
    return round_


class TestExecutionTrigger:
    def test_target_not_reached(self, filled_round):
        filled_round.raised.set(1, 199)
        decision = ExecutionTrigger().evaluate(filled_round, FakeStrategy(), FIVE_PCT)
        assert not decision.execute
        assert not decision.target_reached
        assert decision.reason == "target_not_reached"

    def test_in_band_executes(self, filled_round):
        decision = ExecutionTrigger().evaluate(filled_round, FakeStrategy(), FIVE_PCT)
        assert decision.execute
        assert decision.reason == "price_in_band"
        assert decision.delta == FIVE_PCT

    @pytest.mark.parametrize("market", [ONE - FIVE_PCT, ONE + FIVE_PCT])
    def test_band_edges_inclusive(self, filled_round, market):
        strategy = FakeStrategy()
        strategy.market = market
        assert ExecutionTrigger().evaluate(filled_round, strategy, FIVE_PCT).execute

    @pytest.mark.parametrize("market", [ONE - FIVE_PCT - 1, ONE + FIVE_PCT + 1])
    def test_out_of_band(self, filled_round, market):
        strategy = FakeStrategy()
        strategy.market = market
        decision = ExecutionTrigger().evaluate(filled_round, strategy, FIVE_PCT)
        assert not decision.execute
        assert decision.target_reached
        assert decision.reason == "price_out_of_band"
        assert decision.market_price == market

    def test_zero_tolerance_requires_exact_price(self, filled_round):
        strategy = FakeStrategy()
        assert ExecutionTrigger().evaluate(filled_round, strategy, 0).execute
        strategy.market = ONE + 1
        assert not ExecutionTrigger().evaluate(filled_round, strategy, 0).execute

    def test_no_strategy(self, filled_round):
        decision = ExecutionTrigger().evaluate(filled_round, None, FIVE_PCT)
        assert not decision.execute
        assert decision.reason == "strategy_not_set"

    def test_not_processing(self, filled_round):
        filled_round.status = RoundStatus.FINISHED
        decision = ExecutionTrigger().evaluate(filled_round, FakeStrategy(), FIVE_PCT)
        assert not decision.execute
        assert decision.reason == "not_processing"

    def test_evaluate_does_not_mutate(self, filled_round):
        ExecutionTrigger().evaluate(filled_round, FakeStrategy(), FIVE_PCT)
        assert filled_round.status == RoundStatus.PROCESSING
