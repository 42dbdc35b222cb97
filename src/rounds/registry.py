"""
RoundRegistry — создание и хранение раундов

- Последовательные round_id (первый = 1)
- Записи раундов хранятся бессрочно, не удаляются
- Владеет процессными параметрами: strategy и floating_percentage
  (меняются только через административные операции)
- Per-round RLock + busy-флаг для сериализации мутирующих операций
"""

import threading
import time
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, Optional

from pydantic import ValidationError as PydanticValidationError

from src.core.config import LaunchpadSettings
from src.core.contracts import validate_round_params
from src.core.domain.round import Round, RoundParams, address_key, is_zero_address
from src.core.logger import get_logger
from src.core.math.fixed_point import validate_ratio
from src.rounds.errors import (
    InvalidAssetOrder,
    InvalidWindow,
    ReentrantCall,
    RoundNotFound,
    StrategyNotSet,
    Unauthorized,
    ZeroAddress,
)
from src.strategy.gateway import StrategyGateway

logger = get_logger(__name__)

Clock = Callable[[], int]


def system_clock() -> int:
    return int(time.time())


class RoundRegistry:
    """
    Реестр раундов.

    Административные операции (create, set_strategy, set_floating_percentage)
    требуют caller == admin.
    """

    def __init__(
        self,
        settings: Optional[LaunchpadSettings] = None,
        clock: Optional[Clock] = None,
        strategy: Optional[StrategyGateway] = None,
    ):
        self.settings = settings or LaunchpadSettings()
        self.clock: Clock = clock or system_clock

        self._admin = self.settings.admin
        self._floating_percentage = self.settings.floating_percentage
        self._strategy = strategy

        self._rounds: Dict[int, Round] = {}
        self._next_id = 1

        self._registry_lock = threading.Lock()
        self._locks: Dict[int, threading.RLock] = {}
        self._busy: set[int] = set()

    # -------------------------------------------------------------------------
    # Admin capability
    # -------------------------------------------------------------------------

    @property
    def admin(self) -> str:
        return self._admin

    def require_admin(self, caller: str) -> None:
        if caller != self._admin:
            raise Unauthorized(f"{caller} has no administrative capability")

    # -------------------------------------------------------------------------
    # Global parameters
    # -------------------------------------------------------------------------

    @property
    def floating_percentage(self) -> int:
        return self._floating_percentage

    def set_floating_percentage(self, caller: str, value: int) -> None:
        self.require_admin(caller)
        validate_ratio(value, "floating_percentage")
        self._floating_percentage = value
        logger.info("floating_percentage set to %d", value)

    @property
    def strategy(self) -> Optional[StrategyGateway]:
        return self._strategy

    def require_strategy(self) -> StrategyGateway:
        if self._strategy is None:
            raise StrategyNotSet("strategy collaborator is not configured")
        return self._strategy

    def set_strategy(self, caller: str, strategy: StrategyGateway) -> None:
        self.require_admin(caller)
        if strategy is None or is_zero_address(strategy.address):
            raise ZeroAddress("strategy address is zero")
        self._strategy = strategy
        logger.info("strategy set to %s", strategy.address)

    # -------------------------------------------------------------------------
    # Create
    # -------------------------------------------------------------------------

    def create(self, caller: str, params: RoundParams) -> int:
        """
        Создание раунда.

        Порядок проверок:
        1. Административная capability
        2. start >= now, start < end < unlock
        3. asset0 != 0
        4. asset0 < asset1

        Returns:
            round_id нового раунда

        Raises:
            Unauthorized, InvalidWindow, ZeroAddress, InvalidAssetOrder
        """
        self.require_admin(caller)

        now = self.clock()
        if params.start_ts < now:
            raise InvalidWindow(f"start {params.start_ts} is before now {now}")
        if not params.start_ts < params.end_ts < params.unlock_ts:
            raise InvalidWindow(
                f"window must satisfy start < end < unlock, got "
                f"{params.start_ts} / {params.end_ts} / {params.unlock_ts}"
            )
        if is_zero_address(params.asset0):
            raise ZeroAddress("asset0 is the zero address")
        if address_key(params.asset0) >= address_key(params.asset1):
            raise InvalidAssetOrder(f"asset0 {params.asset0} must be < asset1 {params.asset1}")

        with self._registry_lock:
            round_id = self._next_id
            self._next_id += 1
            self._rounds[round_id] = Round.from_params(round_id, params)
            self._locks[round_id] = threading.RLock()

        logger.info(
            "round_created id=%d assets=(%s, %s) targets=(%d, %d) window=[%d, %d] unlock=%d",
            round_id,
            params.asset0,
            params.asset1,
            params.target0,
            params.target1,
            params.start_ts,
            params.end_ts,
            params.unlock_ts,
        )
        return round_id

    def create_from_payload(self, caller: str, payload: Dict[str, Any]) -> int:
        """
        Создание раунда из JSON payload (контракт round_params).

        Raises:
            jsonschema.ValidationError: payload не соответствует контракту
        """
        validate_round_params(payload)
        try:
            params = RoundParams.model_validate(payload)
        except PydanticValidationError as e:
            raise ValueError(f"round params rejected: {e}") from e
        return self.create(caller, params)

    # -------------------------------------------------------------------------
    # Query
    # -------------------------------------------------------------------------

    def query(self, round_id: int) -> Round:
        """Read-only snapshot раунда. Неизвестный id → RoundNotFound."""
        return self.get(round_id).snapshot()

    def get(self, round_id: int) -> Round:
        """Живая запись раунда (мутировать только под lock(round_id))."""
        try:
            return self._rounds[round_id]
        except KeyError:
            raise RoundNotFound(f"round {round_id} does not exist") from None

    def restore(self, snapshot: Round) -> None:
        """Замена записи раунда снапшотом (rollback)."""
        self.get(snapshot.round_id)
        self._rounds[snapshot.round_id] = snapshot

    def round_count(self) -> int:
        return len(self._rounds)

    def round_ids(self) -> Iterator[int]:
        return iter(sorted(self._rounds))

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    @contextmanager
    def exclusive(self, round_id: int) -> Iterator[Round]:
        """
        Критическая секция раунда.

        Повторный вход из того же потока (коллаборатор вызывает мутирующую
        операцию того же раунда) → ReentrantCall.
        """
        self.get(round_id)
        lock = self._locks[round_id]
        with lock:
            if round_id in self._busy:
                raise ReentrantCall(f"round {round_id} is busy")
            self._busy.add(round_id)
            try:
                yield self._rounds[round_id]
            finally:
                self._busy.discard(round_id)
