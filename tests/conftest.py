"""Общие fixtures для тестов."""

import pytest

from src.core.config import LaunchpadSettings
from src.core.math import ONE
from src.rounds import DepositLedger, RoundRegistry
from src.settlement import SettlementFacade
from tests.fakes import (
    ADMIN,
    ALICE,
    ASSET0,
    ASSET1,
    BOB,
    POOL,
    REWARD,
    FakeClock,
    FakeStrategy,
    InMemoryCustody,
    InMemoryVault,
    make_params,
)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def strategy():
    return FakeStrategy()


@pytest.fixture
def custody():
    c = InMemoryCustody()
    for user in (ALICE, BOB):
        c.mint(ASSET0, user, 10_000)
        c.mint(ASSET1, user, 10_000)
    c.mint(REWARD, POOL, 1_000_000)
    return c


@pytest.fixture
def vault(custody):
    return InMemoryVault(custody)


@pytest.fixture
def settings():
    return LaunchpadSettings(admin=ADMIN, floating_percentage=ONE * 5 // 100)


@pytest.fixture
def registry(settings, clock):
    return RoundRegistry(settings=settings, clock=clock)


@pytest.fixture
def facade(registry, custody, vault, strategy):
    f = SettlementFacade(registry, DepositLedger(), custody, vault=vault)
    f.set_strategy(ADMIN, strategy)
    return f


@pytest.fixture
def round_params(clock):
    return make_params(clock)


@pytest.fixture
def open_round(facade, clock, round_params):
    """Раунд, окно депозитов которого открыто."""
    round_id = facade.create_round(ADMIN, round_params)
    clock.now = round_params.start_ts
    return round_id
