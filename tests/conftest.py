import asyncio
import inspect
import pathlib
import sys

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from structured_portfolio.models import TrancheInput  # noqa: E402
from structured_portfolio.services import (  # noqa: E402
    AccrualPolicy,
    InMemoryVault,
    InMemoryVaultRegistry,
    ManualClock,
    PauseSwitch,
    StructuredPortfolio,
)
from structured_portfolio.config.settings import DEFAULT_SECONDS_PER_YEAR  # noqa: E402

START_TIME = 1_700_000_000
DURATION = 2 * DEFAULT_SECONDS_PER_YEAR
DEPOSITS = (1_000_000, 2_000_000, 3_000_000)


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers used in the suite."""

    config.addinivalue_line("markers", "asyncio: mark test as running in an asyncio event loop")


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Execute async test functions without requiring pytest-asyncio."""

    test_function = pyfuncitem.obj
    if inspect.iscoroutinefunction(test_function):
        loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(loop)
            funcargs = pyfuncitem.funcargs
            testargs = {arg: funcargs[arg] for arg in pyfuncitem._fixtureinfo.argnames}
            loop.run_until_complete(test_function(**testargs))
        finally:
            asyncio.set_event_loop(None)
            loop.close()
        return True
    return None


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(start=START_TIME)


@pytest.fixture
def gate() -> PauseSwitch:
    return PauseSwitch()


@pytest.fixture
def vault() -> InMemoryVault:
    return InMemoryVault("vault-a", "USDC")


@pytest.fixture
def vault_registry(vault: InMemoryVault) -> InMemoryVaultRegistry:
    return InMemoryVaultRegistry([vault])


@pytest.fixture
def make_portfolio(clock, gate, vault_registry):
    """Factory for a three-tranche USDC portfolio managed by ``manager``.

    Tranches receive ``deposits`` from a lender during capital formation and
    the portfolio is started at ``START_TIME`` unless ``start=False``.
    """

    def _make(
        *,
        tranche_fees=(0, 0, 0),
        target_apys=(0, 0, 0),
        protocol_fee_bps: int = 0,
        deposits=DEPOSITS,
        start: bool = True,
        policy: AccrualPolicy | None = None,
    ) -> StructuredPortfolio:
        portfolio = StructuredPortfolio.create(
            portfolio_id="portfolio",
            underlying_asset="USDC",
            manager="manager",
            duration=DURATION,
            tranches=[
                TrancheInput(name, fee_rate_bps=fee, target_apy_bps=apy)
                for name, fee, apy in zip(("equity", "junior", "senior"), tranche_fees, target_apys)
            ],
            protocol_fee_rate_bps=protocol_fee_bps,
            eligibility=vault_registry,
            vaults=vault_registry,
            clock=clock,
            gate=gate,
            policy=policy or AccrualPolicy(),
        )
        for index, amount in enumerate(deposits):
            portfolio.deposit("lender", index, amount)
        if start:
            portfolio.start("manager")
        return portfolio

    return _make
