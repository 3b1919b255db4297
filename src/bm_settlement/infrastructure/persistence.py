"""PositionRepository: concrete implementation of PositionRepositoryProtocol."""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_common.enums import Direction
from src.bm_common.errors import PositionNotFoundError
from src.bm_settlement.domain.models import Position

_POSITION_COLUMNS = "market_id, participant, direction, stake, claimed, created_at, updated_at"

_GET_POSITION_SQL = text(f"""
    SELECT {_POSITION_COLUMNS} FROM positions
    WHERE market_id = :market_id AND participant = :participant
""")

_GET_POSITION_FOR_UPDATE_SQL = text(f"""
    SELECT {_POSITION_COLUMNS} FROM positions
    WHERE market_id = :market_id AND participant = :participant
    FOR UPDATE
""")

# A repeat stake replaces the previous position wholesale (no accumulation).
_UPSERT_POSITION_SQL = text(f"""
    INSERT INTO positions (market_id, participant, direction, stake, claimed)
    VALUES (:market_id, :participant, :direction, :stake, :claimed)
    ON CONFLICT (market_id, participant) DO UPDATE
        SET direction = EXCLUDED.direction,
            stake = EXCLUDED.stake,
            claimed = EXCLUDED.claimed
    RETURNING {_POSITION_COLUMNS}
""")

# claimed = FALSE guard keeps the flag a one-way transition
_MARK_CLAIMED_SQL = text(f"""
    UPDATE positions
    SET claimed = TRUE
    WHERE market_id = :market_id AND participant = :participant AND claimed = FALSE
    RETURNING {_POSITION_COLUMNS}
""")

_LIST_POSITIONS_SQL = text(f"""
    SELECT {_POSITION_COLUMNS} FROM positions
    WHERE market_id = :market_id
    ORDER BY participant
""")


def _row_to_position(row: object) -> Position:
    return Position(
        market_id=row.market_id,  # type: ignore[attr-defined]
        participant=row.participant,  # type: ignore[attr-defined]
        direction=Direction(row.direction),  # type: ignore[attr-defined]
        stake=row.stake,  # type: ignore[attr-defined]
        claimed=row.claimed,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


class PositionRepository:
    async def get_position(
        self,
        db: AsyncSession,
        market_id: int,
        participant: str,
        for_update: bool = False,
    ) -> Position | None:
        sql = _GET_POSITION_FOR_UPDATE_SQL if for_update else _GET_POSITION_SQL
        row = (
            await db.execute(sql, {"market_id": market_id, "participant": participant})
        ).fetchone()
        return _row_to_position(row) if row else None

    async def upsert_position(self, db: AsyncSession, position: Position) -> Position:
        row = (
            await db.execute(
                _UPSERT_POSITION_SQL,
                {
                    "market_id": position.market_id,
                    "participant": position.participant,
                    "direction": position.direction.value,
                    "stake": position.stake,
                    "claimed": position.claimed,
                },
            )
        ).fetchone()
        return _row_to_position(row)

    async def mark_claimed(
        self, db: AsyncSession, market_id: int, participant: str
    ) -> Position:
        row = (
            await db.execute(
                _MARK_CLAIMED_SQL, {"market_id": market_id, "participant": participant}
            )
        ).fetchone()
        if row is None:
            raise PositionNotFoundError(market_id, participant)
        return _row_to_position(row)

    async def list_positions(self, db: AsyncSession, market_id: int) -> list[Position]:
        rows = (await db.execute(_LIST_POSITIONS_SQL, {"market_id": market_id})).fetchall()
        return [_row_to_position(row) for row in rows]
