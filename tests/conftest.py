"""Shared test fixtures.

In-memory repositories conform to the Protocols in the domain layers so the
application services run unchanged without PostgreSQL. They store copies and
hand out copies, like rows read back from a database. ``rollback`` on the fake
session does NOT undo anything, so a test that sees unchanged state after a
failed call proves every check ran before the first write.
"""

import os

os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from dataclasses import replace  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from src.bm_admin.application.service import AdminService  # noqa: E402
from src.bm_common.enums import Direction, LedgerEntryType, MarketPhase  # noqa: E402
from src.bm_common.errors import (  # noqa: E402
    InsufficientFundsError,
    InternalError,
    MarketNotFoundError,
    PositionNotFoundError,
)
from src.bm_market.application.service import MarketRegistry  # noqa: E402
from src.bm_market.domain.models import EngineConfig, Market  # noqa: E402
from src.bm_settlement.application.service import SettlementEngine  # noqa: E402
from src.bm_settlement.domain.models import Position  # noqa: E402
from src.main import app  # noqa: E402

OWNER = "OWNER"
ORACLE = "ORACLE"
MIN_STAKE = 1_000_000
FEE_PCT = 2


class FakeMarketRepo:
    def __init__(self) -> None:
        self.markets: dict[int, Market] = {}

    async def get_market_by_id(self, db, market_id, for_update=False):
        m = self.markets.get(market_id)
        return replace(m) if m else None

    async def insert_market(self, db, market):
        self.markets[market.id] = replace(market)
        return replace(market)

    async def add_stake(self, db, market_id, direction, amount):
        m = self.markets.get(market_id)
        if m is None or m.resolved:
            raise MarketNotFoundError(market_id)
        if direction is Direction.UP:
            m.total_up_stake += amount
        else:
            m.total_down_stake += amount
        return replace(m)

    async def mark_resolved(self, db, market_id, end_price):
        m = self.markets.get(market_id)
        if m is None or m.resolved:
            raise MarketNotFoundError(market_id)
        m.end_price = end_price
        m.resolved = True
        return replace(m)

    async def list_markets(self, db, phase, block, cursor_id, limit):
        items = sorted(self.markets.values(), key=lambda m: m.id, reverse=True)
        if cursor_id is not None:
            items = [m for m in items if m.id < cursor_id]
        if phase is not None:
            items = [m for m in items if m.phase_at(block) is MarketPhase(phase)]
        return [replace(m) for m in items[:limit]]


class FakeConfigRepo:
    def __init__(self, config: EngineConfig | None) -> None:
        self.config = config

    async def get_config(self, db):
        return replace(self.config) if self.config else None

    async def lock_config(self, db):
        if self.config is None:
            raise InternalError("engine_config has not been seeded")
        return replace(self.config)

    async def save_config(self, db, config):
        self.config = replace(config)

    async def ensure_config(self, db, defaults):
        if self.config is None:
            self.config = replace(defaults)
        return replace(self.config)


class FakePositionRepo:
    def __init__(self) -> None:
        self.positions: dict[tuple[int, str], Position] = {}

    async def get_position(self, db, market_id, participant, for_update=False):
        p = self.positions.get((market_id, participant))
        return replace(p) if p else None

    async def upsert_position(self, db, position):
        self.positions[(position.market_id, position.participant)] = replace(position)
        return replace(position)

    async def mark_claimed(self, db, market_id, participant):
        p = self.positions.get((market_id, participant))
        if p is None or p.claimed:
            raise PositionNotFoundError(market_id, participant)
        p.claimed = True
        return replace(p)

    async def list_positions(self, db, market_id):
        return [replace(p) for (mid, _), p in self.positions.items() if mid == market_id]


class FakeTransfers:
    def __init__(self, balances: dict[str, int] | None = None) -> None:
        self.balances: dict[str, int] = dict(balances or {})
        self.entries: list[tuple[str, str, int, LedgerEntryType, str]] = []

    async def balance_of(self, db, holder_id):
        return self.balances.get(holder_id, 0)

    async def transfer(self, db, source, target, amount, entry_type, reference_id):
        if amount == 0:
            return
        available = self.balances.get(source, 0)
        if available < amount:
            raise InsufficientFundsError(amount, available)
        self.balances[source] = available - amount
        self.balances[target] = self.balances.get(target, 0) + amount
        self.entries.append((source, target, amount, entry_type, reference_id))

    def total(self) -> int:
        return sum(self.balances.values())


class FakeClock:
    def __init__(self, block: int = 0) -> None:
        self.block = block

    async def current_block(self, db):
        return self.block


@pytest.fixture
def db() -> MagicMock:
    session = MagicMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


@pytest.fixture
def market_repo() -> FakeMarketRepo:
    return FakeMarketRepo()


@pytest.fixture
def config_repo() -> FakeConfigRepo:
    return FakeConfigRepo(
        EngineConfig(
            owner_address=OWNER,
            oracle_address=ORACLE,
            minimum_stake=MIN_STAKE,
            fee_percentage=FEE_PCT,
            next_market_id=1,
        )
    )


@pytest.fixture
def unseeded_config_repo() -> FakeConfigRepo:
    return FakeConfigRepo(None)


@pytest.fixture
def position_repo() -> FakePositionRepo:
    return FakePositionRepo()


@pytest.fixture
def transfers() -> FakeTransfers:
    return FakeTransfers(
        {"alice": 10_000_000, "bob": 10_000_000, "carol": 10_000_000, "dave": 500_000}
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(block=0)


@pytest.fixture
def registry(market_repo, config_repo, position_repo, transfers, clock) -> MarketRegistry:
    return MarketRegistry(
        repo=market_repo,
        config_repo=config_repo,
        positions=position_repo,
        transfers=transfers,
        clock=clock,
        reject_repeat_stake=False,
    )


@pytest.fixture
def settlement(market_repo, config_repo, position_repo, transfers) -> SettlementEngine:
    return SettlementEngine(
        markets=market_repo,
        config_repo=config_repo,
        positions=position_repo,
        transfers=transfers,
    )


@pytest.fixture
def admin(market_repo, config_repo, position_repo, transfers) -> AdminService:
    return AdminService(
        config_repo=config_repo,
        markets=market_repo,
        positions=position_repo,
        transfers=transfers,
        reject_repeat_stake=False,
    )


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints (lifespan not run)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
