"""Repository Protocols: dependency inversion for testability.

Unit tests inject in-memory implementations that conform to these Protocols.
Infrastructure layer provides the real implementations.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_common.enums import Direction, MarketPhase
from src.bm_market.domain.models import EngineConfig, Market


class MarketRepositoryProtocol(Protocol):
    async def get_market_by_id(
        self, db: AsyncSession, market_id: int, for_update: bool = False
    ) -> Market | None: ...

    async def insert_market(self, db: AsyncSession, market: Market) -> Market: ...

    async def add_stake(
        self, db: AsyncSession, market_id: int, direction: Direction, amount: int
    ) -> Market: ...

    async def mark_resolved(
        self, db: AsyncSession, market_id: int, end_price: int
    ) -> Market: ...

    async def list_markets(
        self,
        db: AsyncSession,
        phase: MarketPhase | None,
        block: int,
        cursor_id: int | None,
        limit: int,
    ) -> list[Market]: ...


class ConfigRepositoryProtocol(Protocol):
    async def get_config(self, db: AsyncSession) -> EngineConfig | None: ...

    async def lock_config(self, db: AsyncSession) -> EngineConfig:
        """Row-lock the config record; serializes every mutating operation."""
        ...

    async def save_config(self, db: AsyncSession, config: EngineConfig) -> None: ...

    async def ensure_config(
        self, db: AsyncSession, defaults: EngineConfig
    ) -> EngineConfig: ...
