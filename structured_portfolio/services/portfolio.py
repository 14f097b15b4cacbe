"""Portfolio facade: lifecycle, gating and atomic settle-then-mutate operations.

``StructuredPortfolio`` owns one ``PortfolioState`` and is its only writer.
Each mutating call runs under a re-entrant lock against a deep copy of the
committed state:

1. the pause gate, caller and lifecycle preconditions are checked,
2. a checkpoint settles fees and re-baselines nominal values up to ``now``,
3. the operation's own effect is applied to the copy,
4. the copy replaces the committed state and queued events are delivered.

Any exception before step 4 discards the copy, so callers never observe a
partially applied operation. ``calculate_waterfall`` reads the committed
state without taking the lock.
"""

from __future__ import annotations

import copy
import logging
import threading
from typing import Callable, List, Sequence, TypeVar

from opentelemetry import metrics, trace

from structured_portfolio.config.settings import PortfolioSettings
from structured_portfolio.core.arithmetic import checked_add, ensure_amount
from structured_portfolio.core.errors import (
    InvalidLifecycleState,
    PortfolioError,
    PortfolioPaused,
    Unauthorized,
)
from structured_portfolio.models.events import (
    CheckpointUpdated,
    EventObserver,
    PortfolioEvent,
    PortfolioStatusChanged,
)
from structured_portfolio.models.portfolio import (
    Investment,
    PortfolioState,
    PortfolioStatus,
    Tranche,
    TrancheInput,
)
from structured_portfolio.services.environment import Clock, LifecycleGate, PauseSwitch, SystemClock
from structured_portfolio.services.ledger import CapitalLedger
from structured_portfolio.services.registry import InvestmentRegistry
from structured_portfolio.services.vaults import EligibilityRegistry, VaultDirectory
from structured_portfolio.services.waterfall import (
    AccrualPolicy,
    WaterfallResult,
    calculate_waterfall,
    settle_checkpoint,
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)
meter = metrics.get_meter(__name__)
operation_counter = meter.create_counter(
    "portfolio.operations",
    description="Mutating portfolio operations by outcome",
)

T = TypeVar("T")

_LIVE = (PortfolioStatus.LIVE,)
_LIVE_OR_CLOSED = (PortfolioStatus.LIVE, PortfolioStatus.CLOSED)
_OPEN_FOR_DEPOSITS = (PortfolioStatus.CAPITAL_FORMATION, PortfolioStatus.LIVE)

Emit = Callable[[PortfolioEvent], None]


class StructuredPortfolio:
    """Tranche waterfall portfolio with a single manager and injected vaults."""

    def __init__(
        self,
        state: PortfolioState,
        *,
        eligibility: EligibilityRegistry,
        vaults: VaultDirectory,
        clock: Clock | None = None,
        gate: LifecycleGate | None = None,
        policy: AccrualPolicy | None = None,
    ) -> None:
        if not state.tranches:
            raise ValueError("a portfolio needs at least one tranche")
        self._state = state
        self._lock = threading.RLock()
        self._vaults = vaults
        self._clock: Clock = clock or SystemClock()
        self._gate: LifecycleGate = gate or PauseSwitch()
        self._policy = policy or AccrualPolicy()
        self._registry = InvestmentRegistry(eligibility, vaults)
        self._ledger = CapitalLedger(vaults, self._registry)
        self._observers: List[EventObserver] = []

    @classmethod
    def create(
        cls,
        *,
        portfolio_id: str,
        underlying_asset: str,
        manager: str,
        duration: int,
        tranches: Sequence[TrancheInput],
        protocol_fee_rate_bps: int = 0,
        **collaborators,
    ) -> "StructuredPortfolio":
        """Build a portfolio in ``CapitalFormation`` with empty tranches."""

        state = PortfolioState(
            portfolio_id=portfolio_id,
            underlying_asset=underlying_asset,
            manager=manager,
            duration=duration,
            protocol_fee_rate_bps=protocol_fee_rate_bps,
            tranches=[
                Tranche(name=t.name, fee_rate_bps=t.fee_rate_bps, target_apy_bps=t.target_apy_bps)
                for t in tranches
            ],
        )
        return cls(state, **collaborators)

    @classmethod
    def from_settings(cls, settings: PortfolioSettings, **collaborators) -> "StructuredPortfolio":
        tranches = [
            TrancheInput(name=name, fee_rate_bps=fee, target_apy_bps=apy)
            for name, fee, apy in zip(
                settings.tranche_names,
                settings.tranche_fee_rates_bps,
                settings.tranche_target_apys_bps,
            )
        ]
        collaborators.setdefault("policy", settings.accrual_policy())
        return cls.create(
            portfolio_id=settings.portfolio_id,
            underlying_asset=settings.underlying_asset,
            manager=settings.manager,
            duration=settings.portfolio_duration_seconds,
            tranches=tranches,
            protocol_fee_rate_bps=settings.protocol_fee_rate_bps,
            **collaborators,
        )

    # ------------------------------------------------------------------
    # Read side

    @property
    def state(self) -> PortfolioState:
        """The committed state. Treat as read-only outside of tests."""

        return self._state

    @property
    def status(self) -> PortfolioStatus:
        return self._state.status

    @property
    def policy(self) -> AccrualPolicy:
        return self._policy

    def snapshot(self) -> PortfolioState:
        return copy.deepcopy(self._state)

    def investments(self) -> list[Investment]:
        return [copy.copy(investment) for investment in self._state.investments.values()]

    def waterfall(self) -> WaterfallResult:
        """Project the waterfall at the current clock time without settling it."""

        return calculate_waterfall(self._state, self._clock.now(), self._vaults, self._policy)

    def calculate_waterfall(self) -> list[int]:
        return self.waterfall().values

    def subscribe(self, observer: EventObserver) -> Callable[[], None]:
        """Register ``observer`` for committed events; returns an unsubscribe callable."""

        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    # ------------------------------------------------------------------
    # Lifecycle

    def deposit(self, caller: str, tranche_index: int, assets: int) -> None:
        """Add lender capital to a tranche before or during the Live phase."""

        def apply(state: PortfolioState, emit: Emit, now: int) -> None:
            if state.status == PortfolioStatus.LIVE:
                self._checkpoint(state, emit, now)
            self._ledger.deposit_to_tranche(state, tranche_index, assets)

        self._execute("deposit", caller, _OPEN_FOR_DEPOSITS, apply, manager_only=False)

    def start(self, caller: str) -> None:
        def apply(state: PortfolioState, emit: Emit, now: int) -> None:
            state.start_date = now
            state.end_date = checked_add(now, state.duration)
            state.last_checkpoint_time = now
            state.status = PortfolioStatus.LIVE
            emit(PortfolioStatusChanged(status=state.status))

        self._execute("start", caller, (PortfolioStatus.CAPITAL_FORMATION,), apply)

    def close(self, caller: str) -> None:
        def apply(state: PortfolioState, emit: Emit, now: int) -> None:
            self._checkpoint(state, emit, now, closing=True)
            state.status = PortfolioStatus.CLOSED
            emit(PortfolioStatusChanged(status=state.status))

        self._execute("close", caller, _LIVE, apply)

    def update_checkpoint(self, caller: str) -> list[int]:
        def apply(state: PortfolioState, emit: Emit, now: int) -> list[int]:
            self._checkpoint(state, emit, now)
            return state.nominal_values

        return self._execute("update_checkpoint", caller, _LIVE_OR_CLOSED, apply)

    # ------------------------------------------------------------------
    # Investments

    def register(self, caller: str, vault_address: str) -> None:
        def apply(state: PortfolioState, emit: Emit, now: int) -> None:
            self._checkpoint(state, emit, now)
            self._registry.register(state, vault_address, emit)

        self._execute("register", caller, _LIVE, apply)

    def register_and_execute_deposit(self, caller: str, vault_address: str, amount: int) -> int:
        def apply(state: PortfolioState, emit: Emit, now: int) -> int:
            self._checkpoint(state, emit, now)
            self._registry.register(state, vault_address, emit)
            return self._ledger.execute_deposit(state, vault_address, amount, emit)

        return self._execute("register_and_execute_deposit", caller, _LIVE, apply)

    def execute_deposit(self, caller: str, vault_address: str, amount: int) -> int:
        def apply(state: PortfolioState, emit: Emit, now: int) -> int:
            ensure_amount(amount)
            self._registry.get(state, vault_address)
            self._checkpoint(state, emit, now)
            return self._ledger.execute_deposit(state, vault_address, amount, emit)

        return self._execute("execute_deposit", caller, _LIVE, apply)

    def execute_redeem_and_unregister(self, caller: str, vault_address: str, asset_amount: int) -> int:
        def apply(state: PortfolioState, emit: Emit, now: int) -> int:
            ensure_amount(asset_amount, "asset_amount")
            self._registry.get(state, vault_address)
            self._checkpoint(state, emit, now)
            return self._ledger.execute_redeem(state, vault_address, asset_amount, emit)

        return self._execute("execute_redeem_and_unregister", caller, _LIVE_OR_CLOSED, apply)

    # ------------------------------------------------------------------
    # Internals

    def _checkpoint(self, state: PortfolioState, emit: Emit, now: int, *, closing: bool = False) -> None:
        result = calculate_waterfall(state, now, self._vaults, self._policy, closing=closing)
        settle_checkpoint(state, result)
        emit(
            CheckpointUpdated(
                timestamp=state.last_checkpoint_time,
                nominal_values=tuple(state.nominal_values),
                protocol_fee=result.protocol_fee,
                tranche_fees=tuple(result.tranche_fees),
            )
        )

    def _check_preconditions(
        self,
        caller: str,
        allowed: Sequence[PortfolioStatus],
        *,
        manager_only: bool,
    ) -> None:
        if self._gate.is_paused():
            raise PortfolioPaused("Portfolio is paused")
        if manager_only and caller != self._state.manager:
            raise Unauthorized(f"{caller} is not the portfolio manager")
        if self._state.status not in allowed:
            expected = ", ".join(status.value for status in allowed)
            raise InvalidLifecycleState(
                f"Operation requires status {expected}; portfolio is {self._state.status.value}"
            )

    def _execute(
        self,
        operation: str,
        caller: str,
        allowed: Sequence[PortfolioStatus],
        apply: Callable[[PortfolioState, Emit, int], T],
        *,
        manager_only: bool = True,
    ) -> T:
        events: list[PortfolioEvent] = []
        with self._lock, tracer.start_as_current_span(f"portfolio.{operation}") as span:
            span.set_attribute("portfolio.id", self._state.portfolio_id)
            span.set_attribute("portfolio.caller", caller)
            try:
                self._check_preconditions(caller, allowed, manager_only=manager_only)
                working = copy.deepcopy(self._state)
                result = apply(working, events.append, self._clock.now())
            except PortfolioError as exc:
                span.set_attribute("portfolio.error", exc.code)
                operation_counter.add(1, {"operation": operation, "outcome": exc.code})
                logger.warning("Rejected %s by %s: %s", operation, caller, exc.message)
                raise
            self._state = working
            span.set_attribute("portfolio.status", working.status.value)
            operation_counter.add(1, {"operation": operation, "outcome": "ok"})

        self._notify(events)
        return result

    def _notify(self, events: list[PortfolioEvent]) -> None:
        for event in events:
            logger.info("Portfolio %s event: %s", self._state.portfolio_id, event)
            for observer in list(self._observers):
                observer(event)


__all__ = ["StructuredPortfolio"]
