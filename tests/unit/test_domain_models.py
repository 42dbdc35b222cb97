"""
Тесты доменных моделей: Round, RoundParams, SlotAmounts, UserPosition

Покрывает:
- Валидация RoundParams (адреса, положительные target)
- Двухслотовые таблицы сумм
- Headroom и target_reached
- Snapshot независим от живой записи
- withdrawable consume-once и ordered set юнитов
"""

import pytest
from pydantic import ValidationError

from src.core.domain import (
    MarketParams,
    Round,
    RoundParams,
    RoundStatus,
    SlotAmounts,
    UserPosition,
    address_key,
    is_zero_address,
    ZERO_ADDRESS,
)
from tests.fakes import ASSET0, ASSET1, REWARD, FakeClock, make_params


@pytest.fixture
def round_():
    return Round.from_params(1, make_params(FakeClock()))


# =============================================================================
# ТЕСТЫ: Адреса
# =============================================================================


class TestAddresses:
    def test_zero_address(self):
        assert is_zero_address(ZERO_ADDRESS)
        assert not is_zero_address(ASSET0)

    def test_ordering_is_numeric(self):
        assert address_key(ASSET0) < address_key(ASSET1)
        assert address_key("0x" + "A" * 40) == address_key("0x" + "a" * 40)


# =============================================================================
# ТЕСТЫ: RoundParams
# =============================================================================


class TestRoundParams:
    def test_addresses_lowercased(self):
        upper = "0x" + "AB" * 20
        params = make_params(FakeClock(), asset1=upper)
        assert params.asset1 == upper.lower()

    def test_bad_address_rejected(self):
        with pytest.raises(ValidationError):
            make_params(FakeClock(), asset0="0x1234")

    @pytest.mark.parametrize("field", ["target0", "target1"])
    def test_zero_target_rejected(self, field):
        with pytest.raises(ValidationError):
            make_params(FakeClock(), **{field: 0})

    def test_frozen(self):
        params = make_params(FakeClock())
        with pytest.raises(ValidationError):
            params.target0 = 5

    def test_market_params_frozen(self):
        market = MarketParams(fee=500, target_price=1, tick_lower=-10, tick_upper=10)
        with pytest.raises(ValidationError):
            market.fee = 3000


# =============================================================================
# ТЕСТЫ: SlotAmounts
# =============================================================================


class TestSlotAmounts:
    def test_get_set_add(self):
        slots = SlotAmounts()
        slots.set(0, 5)
        slots.add(1, 7)
        slots.add(1, 3)
        assert slots.as_tuple() == (5, 10)

    def test_invalid_slot(self):
        with pytest.raises(IndexError):
            SlotAmounts().get(2)

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            SlotAmounts().set(0, -1)

    def test_clear(self):
        slots = SlotAmounts(amount0=1, amount1=2)
        slots.clear()
        assert slots.as_tuple() == (0, 0)


# =============================================================================
# ТЕСТЫ: Round
# =============================================================================


class TestRound:
    def test_from_params(self, round_):
        assert round_.round_id == 1
        assert round_.status == RoundStatus.PROCESSING
        assert round_.target.as_tuple() == (100, 200)
        assert round_.raised.as_tuple() == (0, 0)
        assert round_.reward_pool.as_tuple() == (1_000, 2_000)
        assert round_.reward_asset == REWARD

    def test_slot_of(self, round_):
        assert round_.slot_of(ASSET0) == 0
        assert round_.slot_of(ASSET1.upper().replace("0X", "0x")) == 1
        assert round_.slot_of(REWARD) is None

    def test_headroom_and_target_reached(self, round_):
        round_.raised.set(0, 100)
        assert round_.headroom(0) == 0
        assert not round_.target_reached()
        round_.raised.set(1, 200)
        assert round_.target_reached()

    def test_snapshot_is_independent(self, round_):
        snap = round_.snapshot()
        round_.raised.add(0, 10)
        round_.status = RoundStatus.CANCELED
        assert snap.raised.amount0 == 0
        assert snap.status == RoundStatus.PROCESSING

    def test_status_assignment_validated(self, round_):
        with pytest.raises(ValidationError):
            round_.status = "Unknown"


# =============================================================================
# ТЕСТЫ: UserPosition
# =============================================================================


class TestUserPosition:
    def test_credit_and_take_once(self):
        position = UserPosition(user="alice", round_id=1)
        position.credit(ASSET0, 40)
        position.credit(ASSET0, 2)
        assert position.withdrawable_of(ASSET0) == 42
        assert position.take_withdrawable(ASSET0) == 42
        assert position.take_withdrawable(ASSET0) == 0

    def test_credit_zero_is_noop(self):
        position = UserPosition(user="alice", round_id=1)
        position.credit(ASSET0, 0)
        assert position.withdrawable == {}

    def test_debit_exceeding_balance(self):
        position = UserPosition(user="alice", round_id=1)
        position.credit(ASSET0, 5)
        with pytest.raises(ValueError):
            position.debit(ASSET0, 6)
        position.debit(ASSET0, 5)
        assert ASSET0 not in position.withdrawable

    def test_units_ordered_set(self):
        position = UserPosition(user="alice", round_id=1)
        position.add_units(ASSET0, [3, 1, 2, 1])
        assert position.owned_units(ASSET0) == [3, 1, 2]
        assert position.owns_unit(ASSET0, 2)
        position.remove_units(ASSET0, [1])
        assert position.owned_units(ASSET0) == [3, 2]
        position.remove_units(ASSET0, [3, 2])
        assert position.units == {}

    def test_has_deposit(self):
        position = UserPosition(user="alice", round_id=1)
        assert not position.has_deposit()
        position.deposited.add(1, 1)
        assert position.has_deposit()
