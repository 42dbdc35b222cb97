"""SettlementFacade — state machine раунда и публичная поверхность.

Состояния:
- PROCESSING (начальное) → FINISHED → RECEIVED
- PROCESSING → CANCELED
- RECEIVED и CANCELED — терминальные

Каждая мутирующая операция:
1. Выполняется под registry.exclusive(round_id) (сериализация + reentrancy guard)
2. Снимает снапшот раунда и позиции (_step)
3. При любом исключении откатывает раунд и позицию к снапшоту
4. Ошибки коллабораторов оборачиваются в StrategyCallError

Откат снапшота не возвращает средства, уже переведённые коллаборатором:
- deposit / deposit_units / redeem_units отменяют входящий перевод
  встречным (_compensating), если последующий шаг отказал
- claim / withdraw фиксируют каждый исходящий перевод и exit отдельным
  шагом; отказ следующего шага не восстанавливает выплаченный баланс

Withdraw / claim обнуляют withdrawable до перевода активов наружу.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

from src.core.config import LaunchpadSettings
from src.core.domain.position import UserPosition
from src.core.domain.round import (
    SETTLED_STATUSES,
    MarketParams,
    Round,
    RoundParams,
    RoundStatus,
)
from src.core.logger import get_logger, setup_logger
from src.distribution.engine import DistributionEngine, WithdrawQuote
from src.rounds.errors import (
    InvalidStatus,
    NoDeposit,
    RoundError,
    StillLocked,
    StrategyCallError,
    TargetNotReached,
    VaultNotSet,
)
from src.rounds.ledger import DepositLedger, DepositResult, RedeemResult, UnitDepositResult
from src.rounds.registry import Clock, RoundRegistry
from src.rounds.trigger import ExecutionTrigger, TriggerDecision
from src.strategy.gateway import AssetCustody, StrategyGateway, UnitVault

logger = get_logger(__name__)


# =============================================================================
# RESULT TYPES
# =============================================================================


@dataclass(frozen=True)
class WithdrawResult:
    """Суммы, зачисленные в withdrawable при withdraw."""

    quote: WithdrawQuote
    exited: bool


@dataclass(frozen=True)
class ClaimResult:
    """Суммы, выплаченные при claim."""

    amount0: int
    amount1: int
    units_redeemed: tuple[int, ...] = ()


# =============================================================================
# FACADE
# =============================================================================


class SettlementFacade:
    """Владелец state machine раунда."""

    def __init__(
        self,
        registry: RoundRegistry,
        ledger: DepositLedger,
        custody: AssetCustody,
        vault: Optional[UnitVault] = None,
        engine: Optional[DistributionEngine] = None,
        trigger: Optional[ExecutionTrigger] = None,
    ):
        self.registry = registry
        self.ledger = ledger
        self.custody = custody
        self.vault = vault
        self.engine = engine or DistributionEngine(registry, ledger)
        self.trigger = trigger or ExecutionTrigger()

    @classmethod
    def from_settings(
        cls,
        settings: LaunchpadSettings,
        custody: AssetCustody,
        vault: Optional[UnitVault] = None,
        clock: Optional[Clock] = None,
        strategy: Optional[StrategyGateway] = None,
    ) -> "SettlementFacade":
        setup_logger(level=settings.log_level, log_root=settings.log_root)
        registry = RoundRegistry(settings=settings, clock=clock, strategy=strategy)
        return cls(registry, DepositLedger(), custody, vault=vault)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _now(self) -> int:
        return self.registry.clock()

    @contextmanager
    def _atomic(self, round_id: int, user: Optional[str] = None) -> Iterator[Round]:
        """Критическая секция раунда с откатом раунда и позиции при исключении."""
        with self.registry.exclusive(round_id) as round_:
            with self._step(round_, user):
                yield round_

    @contextmanager
    def _step(self, round_: Round, user: Optional[str] = None) -> Iterator[None]:
        """
        Шаг с откатом раунда и позиции к снапшоту, снятому на входе.

        Операции из нескольких внешних переводов выполняют каждый перевод
        отдельным шагом: откат неудачного шага не восстанавливает балансы,
        уже выплаченные предыдущими шагами.
        """
        round_snapshot = round_.snapshot()
        position_snapshot = (
            self.ledger.snapshot(round_.round_id, user) if user is not None else None
        )
        try:
            yield
        except BaseException:
            self.registry.restore(round_snapshot)
            if user is not None:
                self.ledger.restore(round_.round_id, user, position_snapshot)
            raise

    @contextmanager
    def _compensating(self, action: str, undo: Callable[[], None]) -> Iterator[None]:
        """Исключение в блоке отменяет уже совершённый перевод через undo."""
        try:
            yield
        except BaseException:
            logger.warning("%s aborted, reverting transfer", action)
            with self._collaborator(f"revert {action}"):
                undo()
            raise

    @contextmanager
    def _collaborator(self, action: str) -> Iterator[None]:
        try:
            yield
        except RoundError:
            raise
        except Exception as e:
            logger.error("%s failed: %s", action, e)
            raise StrategyCallError(f"{action} failed: {e}") from e

    def _require_vault(self) -> UnitVault:
        if self.vault is None:
            raise VaultNotSet("unit vault is not configured")
        return self.vault

    def _execute(self, round_: Round) -> None:
        """
        Finished + strategy.execute.

        Статус переключается до вызова strategy (блокирует повторный trigger);
        при отказе strategy статус возвращается в Processing.
        """
        strategy = self.registry.require_strategy()
        amount0, amount1 = round_.raised.as_tuple()

        round_.status = RoundStatus.FINISHED
        try:
            with self._collaborator(f"execute round {round_.round_id}"):
                self.custody.approve(round_.asset0, strategy.address, amount0)
                self.custody.approve(round_.asset1, strategy.address, amount1)
                strategy.execute(round_.snapshot(), amount0, amount1)
        except BaseException:
            round_.status = RoundStatus.PROCESSING
            raise

        logger.info(
            "executed round=%d amounts=(%d, %d) unlock=%d",
            round_.round_id, amount0, amount1, round_.unlock_ts,
        )

    def _exit(self, round_: Round) -> None:
        strategy = self.registry.require_strategy()
        round_.status = RoundStatus.RECEIVED
        with self._collaborator(f"exit round {round_.round_id}"):
            strategy.exit(round_.snapshot())
        logger.info("exit round=%d", round_.round_id)

    def _after_deposit(self, round_: Round) -> TriggerDecision:
        with self._collaborator(f"price check round {round_.round_id}"):
            decision = self.trigger.evaluate(
                round_, self.registry.strategy, self.registry.floating_percentage
            )
        if decision.execute:
            self._execute(round_)
        return decision

    def _force_redeem(self, round_: Round, user: str, asset: str) -> tuple[int, ...]:
        """Выкуп юнитов актива, полностью покрытых withdrawable pieces."""
        position = self.ledger.position(round_.round_id, user)
        if position is None or not position.owned_units(asset):
            return ()

        vault = self._require_vault()
        with self._collaborator(f"pieces_per_unit {asset}"):
            pieces_per_unit = vault.pieces_per_unit(asset)
        unit_ids = self.ledger.redeemable_units(round_.round_id, user, asset, pieces_per_unit)
        if not unit_ids:
            return ()

        result = self.ledger.redeem_units(round_.round_id, user, asset, unit_ids, pieces_per_unit)
        with self._collaborator(f"redeem {asset} units for {user}"):
            vault.redeem(result.asset, user, list(result.unit_ids))
        return result.unit_ids

    def _release(self, round_id: int, user: str, asset: str) -> int:
        """Consume-once: баланс удаляется до перевода."""
        position = self.ledger.position(round_id, user)
        if position is None:
            return 0
        amount = position.take_withdrawable(asset)
        if amount:
            with self._collaborator(f"release {asset} to {user}"):
                self.custody.release(asset, user, amount)
        return amount

    # -------------------------------------------------------------------------
    # Administrative surface
    # -------------------------------------------------------------------------

    def create_round(self, caller: str, params: RoundParams) -> int:
        return self.registry.create(caller, params)

    def set_strategy(self, caller: str, strategy: StrategyGateway) -> None:
        self.registry.set_strategy(caller, strategy)

    def set_floating_percentage(self, caller: str, value: int) -> None:
        self.registry.set_floating_percentage(caller, value)

    def force_execute(self, caller: str, round_id: int) -> None:
        """
        Исполнение без проверки ценового диапазона.

        unlock пересчитывается как now + (unlock - end): сохраняется
        длительность lock, а не дедлайн.
        """
        self.registry.require_admin(caller)
        with self._atomic(round_id) as round_:
            if round_.status != RoundStatus.PROCESSING:
                raise InvalidStatus(f"round {round_id} is {round_.status.value}")
            if not round_.target_reached():
                raise TargetNotReached(f"round {round_id} has not reached its targets")

            round_.unlock_ts = self._now() + (round_.unlock_ts - round_.end_ts)
            self._execute(round_)

    def cancel(self, caller: str, round_id: int) -> None:
        self.registry.require_admin(caller)
        with self._atomic(round_id) as round_:
            if round_.status != RoundStatus.PROCESSING:
                raise InvalidStatus(f"round {round_id} is {round_.status.value}")
            round_.end_ts = self._now()
            round_.status = RoundStatus.CANCELED
        logger.info("canceled round=%d", round_id)

    # -------------------------------------------------------------------------
    # Public surface
    # -------------------------------------------------------------------------

    def deposit(self, round_id: int, user: str, asset: str, amount: int) -> DepositResult:
        """
        Fungible депозит.

        С пользователя списывается только принятая часть (result.excess
        остаётся у пользователя). После депозита выполняется ExecutionTrigger;
        если исполнение отказало, принятая сумма возвращается пользователю.
        """
        with self._atomic(round_id, user) as round_:
            result = self.ledger.record_deposit(round_, user, asset, amount, self._now())
            with self._collaborator(f"pull {asset} from {user}"):
                self.custody.pull(result.asset, user, result.accepted)
            with self._compensating(
                f"deposit round {round_id}",
                lambda: self.custody.release(result.asset, user, result.accepted),
            ):
                self._after_deposit(round_)
        return result

    def deposit_units(
        self, round_id: int, user: str, piece_asset: str, unit_ids: list[int]
    ) -> UnitDepositResult:
        """
        Депозит NFT-юнитов.

        Лишние pieces (overage) возвращаются пользователю после успешного
        trigger. При отказе после mint юниты выкупаются обратно пользователю.
        """
        vault = self._require_vault()
        with self._atomic(round_id, user) as round_:
            with self._collaborator(f"pieces_per_unit {piece_asset}"):
                pieces_per_unit = vault.pieces_per_unit(piece_asset)
            result = self.ledger.record_unit_deposit(
                round_, user, piece_asset, unit_ids, pieces_per_unit, self._now()
            )
            accepted_ids = list(result.accepted_ids)
            with self._collaborator(f"mint {piece_asset} units for {user}"):
                minted = vault.mint(result.asset, user, accepted_ids)

            with self._compensating(
                f"unit deposit round {round_id}",
                lambda: vault.redeem(result.asset, user, accepted_ids),
            ):
                with self._collaborator(f"mint {piece_asset} units for {user}"):
                    if minted != result.minted:
                        raise ValueError(
                            f"vault minted {minted} pieces, expected {result.minted}"
                        )
                self._after_deposit(round_)
                if result.overage:
                    with self._collaborator(f"release overage to {user}"):
                        self.custody.release(result.asset, user, result.overage)
        return result

    def redeem_units(
        self, round_id: int, user: str, piece_asset: str, unit_ids: list[int]
    ) -> RedeemResult:
        """Выкуп юнитов; shortfall списывается с баланса пользователя."""
        vault = self._require_vault()
        with self._atomic(round_id, user):
            with self._collaborator(f"pieces_per_unit {piece_asset}"):
                pieces_per_unit = vault.pieces_per_unit(piece_asset)
            result = self.ledger.redeem_units(round_id, user, piece_asset, unit_ids, pieces_per_unit)
            if result.shortfall:
                with self._collaborator(f"pull {piece_asset} shortfall from {user}"):
                    self.custody.pull(result.asset, user, result.shortfall)

            def return_shortfall() -> None:
                if result.shortfall:
                    self.custody.release(result.asset, user, result.shortfall)

            with self._compensating(f"redeem round {round_id}", return_shortfall):
                with self._collaborator(f"redeem {piece_asset} units for {user}"):
                    vault.redeem(result.asset, user, list(result.unit_ids))
        return result

    def refund(self, round_id: int, user: str) -> tuple[int, int]:
        """
        Возврат вклада после окончания окна (Canceled или незавершённый Processing).

        Returns:
            (amount0, amount1), перенесённые из deposited в withdrawable
        """
        with self._atomic(round_id, user) as round_:
            if not self._now() > round_.end_ts:
                raise StillLocked(f"round {round_id} deposit window is still open")
            if round_.status not in (RoundStatus.CANCELED, RoundStatus.PROCESSING):
                raise InvalidStatus(f"round {round_id} is {round_.status.value}")
            if round_.status == RoundStatus.PROCESSING:
                round_.status = RoundStatus.CANCELED
                logger.info("canceled round=%d on refund", round_id)

            position = self.ledger.position(round_id, user)
            if position is None or not position.has_deposit():
                raise NoDeposit(f"{user} has no deposit in round {round_id}")

            amounts = self.ledger.move_deposits_to_withdrawable(round_, user)

        logger.info("refund round=%d user=%s amounts=%s", round_id, user, amounts)
        return amounts

    def exit_strategy(self, round_id: int) -> None:
        with self._atomic(round_id) as round_:
            if not self._now() > round_.unlock_ts:
                raise StillLocked(f"round {round_id} is locked until {round_.unlock_ts}")
            if round_.status != RoundStatus.FINISHED:
                raise InvalidStatus(f"round {round_id} is {round_.status.value}")
            self._exit(round_)

    def withdraw(self, round_id: int, user: str) -> WithdrawResult:
        """
        Settlement позиции: capital + fee + bonus в withdrawable активов раунда,
        reward в withdrawable reward-актива, deposited = 0.

        Inline exit фиксируется отдельным шагом: отказ расчёта после exit
        не возвращает раунд в Finished.
        """
        with self.registry.exclusive(round_id) as round_:
            if not self._now() > round_.unlock_ts:
                raise StillLocked(f"round {round_id} is locked until {round_.unlock_ts}")
            if round_.status not in SETTLED_STATUSES:
                raise InvalidStatus(f"round {round_id} is {round_.status.value}")

            position = self.ledger.position(round_id, user)
            if position is None or not position.has_deposit():
                raise NoDeposit(f"{user} has no deposit in round {round_id}")

            exited = round_.status == RoundStatus.FINISHED
            if exited:
                with self._step(round_):
                    self._exit(round_)

            with self._step(round_, user):
                with self._collaborator(f"distribution round {round_id}"):
                    quote = self.engine.withdraw_quote(round_id, user)

                position = self.ledger.position(round_id, user)
                position.credit(round_.asset0, quote.total0)
                position.credit(round_.asset1, quote.total1)
                position.credit(round_.reward_asset, quote.reward)
                position.deposited.clear()

        logger.info(
            "withdraw round=%d user=%s credited=(%d, %d) reward=%d",
            round_id, user, quote.total0, quote.total1, quote.reward,
        )
        return WithdrawResult(quote=quote, exited=exited)

    def claim(self, round_id: int, user: str) -> ClaimResult:
        """
        Выплата withdrawable по двум активам раунда.

        Сначала принудительно выкупаются юниты, полностью покрытые
        withdrawable pieces. Непокрытые юниты остаются за пользователем
        и выкупаются через redeem_units (shortfall списывается с кошелька).

        Каждый выкуп и каждый перевод — отдельный шаг: при отказе на
        asset1 выплата asset0 остаётся зафиксированной, повторный claim
        выплачивает только остаток.
        """
        with self.registry.exclusive(round_id) as round_:
            if self.ledger.position(round_id, user) is None:
                return ClaimResult(0, 0)

            redeemed: list[int] = []
            for asset in round_.assets:
                with self._step(round_, user):
                    redeemed.extend(self._force_redeem(round_, user, asset))

            amounts: list[int] = []
            for asset in round_.assets:
                with self._step(round_, user):
                    amounts.append(self._release(round_id, user, asset))

        amount0, amount1 = amounts
        if amount0 or amount1 or redeemed:
            logger.info(
                "claim round=%d user=%s amounts=(%d, %d) units=%s",
                round_id, user, amount0, amount1, redeemed,
            )
        return ClaimResult(amount0, amount1, tuple(redeemed))

    def claim_reward_token(self, round_id: int, user: str) -> int:
        with self._atomic(round_id, user) as round_:
            amount = self._release(round_id, user, round_.reward_asset)

        if amount:
            logger.info("claim_reward round=%d user=%s amount=%d", round_id, user, amount)
        return amount

    # -------------------------------------------------------------------------
    # Read views
    # -------------------------------------------------------------------------

    def round_info(self, round_id: int) -> dict:
        return self.registry.query(round_id).to_payload()

    def raised_amounts(self, round_id: int) -> tuple[int, int]:
        return self.registry.query(round_id).raised.as_tuple()

    def target_amounts(self, round_id: int) -> tuple[int, int]:
        return self.registry.query(round_id).target.as_tuple()

    def market_params(self, round_id: int) -> MarketParams:
        return self.registry.query(round_id).market

    def status(self, round_id: int) -> RoundStatus:
        return self.registry.query(round_id).status

    def target_reached(self, round_id: int) -> bool:
        return self.registry.query(round_id).target_reached()

    def user_position(self, round_id: int, user: str) -> UserPosition:
        self.registry.get(round_id)
        return self.ledger.query(round_id, user)

    def withdraw_quote(self, round_id: int, user: str) -> WithdrawQuote:
        with self._collaborator(f"distribution round {round_id}"):
            return self.engine.withdraw_quote(round_id, user)

    def investment_proportion(self, round_id: int, user: str) -> int:
        with self._collaborator(f"distribution round {round_id}"):
            return self.engine.investment_proportion(round_id, user)

    def reward_token_amount(self, round_id: int, user: str) -> int:
        return self.engine.reward_token_amount(round_id, user)
