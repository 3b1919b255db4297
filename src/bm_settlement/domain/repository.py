"""Repository Protocol for positions."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_settlement.domain.models import Position


class PositionRepositoryProtocol(Protocol):
    async def get_position(
        self,
        db: AsyncSession,
        market_id: int,
        participant: str,
        for_update: bool = False,
    ) -> Position | None: ...

    async def upsert_position(self, db: AsyncSession, position: Position) -> Position:
        """Insert, or overwrite direction/stake/claimed of an existing position."""
        ...

    async def mark_claimed(
        self, db: AsyncSession, market_id: int, participant: str
    ) -> Position: ...

    async def list_positions(self, db: AsyncSession, market_id: int) -> list[Position]: ...
