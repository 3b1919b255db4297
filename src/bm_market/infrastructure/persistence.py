"""MarketRepository / ConfigRepository: concrete Protocol implementations.

All queries use raw text() SQL (no ORM).
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_common.enums import Direction, MarketPhase
from src.bm_common.errors import InternalError, MarketNotFoundError
from src.bm_market.domain.models import EngineConfig, Market

# ---------------------------------------------------------------------------
# SQL: markets
# ---------------------------------------------------------------------------

_MARKET_COLUMNS = """
    id, start_price, end_price, total_up_stake, total_down_stake,
    start_block, end_block, resolved, created_at, updated_at
"""

_GET_MARKET_SQL = text(f"SELECT {_MARKET_COLUMNS} FROM markets WHERE id = :market_id")

_GET_MARKET_FOR_UPDATE_SQL = text(
    f"SELECT {_MARKET_COLUMNS} FROM markets WHERE id = :market_id FOR UPDATE"
)

_INSERT_MARKET_SQL = text(f"""
    INSERT INTO markets (id, start_price, end_price, total_up_stake, total_down_stake,
                         start_block, end_block, resolved)
    VALUES (:id, :start_price, 0, 0, 0, :start_block, :end_block, FALSE)
    RETURNING {_MARKET_COLUMNS}
""")

_ADD_UP_STAKE_SQL = text(f"""
    UPDATE markets
    SET total_up_stake = total_up_stake + :amount
    WHERE id = :market_id AND resolved = FALSE
    RETURNING {_MARKET_COLUMNS}
""")

_ADD_DOWN_STAKE_SQL = text(f"""
    UPDATE markets
    SET total_down_stake = total_down_stake + :amount
    WHERE id = :market_id AND resolved = FALSE
    RETURNING {_MARKET_COLUMNS}
""")

# resolved = FALSE guard keeps end_price write-once even without the service check
_RESOLVE_SQL = text(f"""
    UPDATE markets
    SET end_price = :end_price, resolved = TRUE
    WHERE id = :market_id AND resolved = FALSE
    RETURNING {_MARKET_COLUMNS}
""")

_LIST_MARKETS_SQL = text(f"""
    SELECT {_MARKET_COLUMNS}
    FROM markets
    WHERE (CAST(:cursor_id AS BIGINT) IS NULL OR id < CAST(:cursor_id AS BIGINT))
      AND (
        CAST(:phase AS TEXT) IS NULL
        OR (CAST(:phase AS TEXT) = 'RESOLVED' AND resolved)
        OR (CAST(:phase AS TEXT) = 'CREATED' AND NOT resolved AND start_block > :block)
        OR (CAST(:phase AS TEXT) = 'OPEN' AND NOT resolved
            AND start_block <= :block AND end_block > :block)
        OR (CAST(:phase AS TEXT) = 'CLOSED' AND NOT resolved AND end_block <= :block)
      )
    ORDER BY id DESC
    LIMIT :limit
""")

# ---------------------------------------------------------------------------
# SQL: engine_config
# ---------------------------------------------------------------------------

_CONFIG_COLUMNS = "owner_address, oracle_address, minimum_stake, fee_percentage, next_market_id"

_GET_CONFIG_SQL = text(f"SELECT {_CONFIG_COLUMNS} FROM engine_config WHERE id = 1")

_LOCK_CONFIG_SQL = text(f"SELECT {_CONFIG_COLUMNS} FROM engine_config WHERE id = 1 FOR UPDATE")

_SAVE_CONFIG_SQL = text("""
    UPDATE engine_config
    SET owner_address = :owner_address,
        oracle_address = :oracle_address,
        minimum_stake = :minimum_stake,
        fee_percentage = :fee_percentage,
        next_market_id = :next_market_id
    WHERE id = 1
""")

_SEED_CONFIG_SQL = text("""
    INSERT INTO engine_config
        (id, owner_address, oracle_address, minimum_stake, fee_percentage, next_market_id)
    VALUES (1, :owner_address, :oracle_address, :minimum_stake, :fee_percentage, :next_market_id)
    ON CONFLICT (id) DO NOTHING
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_market(row: object) -> Market:
    return Market(
        id=row.id,  # type: ignore[attr-defined]
        start_price=row.start_price,  # type: ignore[attr-defined]
        end_price=row.end_price,  # type: ignore[attr-defined]
        total_up_stake=row.total_up_stake,  # type: ignore[attr-defined]
        total_down_stake=row.total_down_stake,  # type: ignore[attr-defined]
        start_block=row.start_block,  # type: ignore[attr-defined]
        end_block=row.end_block,  # type: ignore[attr-defined]
        resolved=row.resolved,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_config(row: object) -> EngineConfig:
    return EngineConfig(
        owner_address=row.owner_address,  # type: ignore[attr-defined]
        oracle_address=row.oracle_address,  # type: ignore[attr-defined]
        minimum_stake=row.minimum_stake,  # type: ignore[attr-defined]
        fee_percentage=row.fee_percentage,  # type: ignore[attr-defined]
        next_market_id=row.next_market_id,  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------


class MarketRepository:
    async def get_market_by_id(
        self, db: AsyncSession, market_id: int, for_update: bool = False
    ) -> Market | None:
        sql = _GET_MARKET_FOR_UPDATE_SQL if for_update else _GET_MARKET_SQL
        row = (await db.execute(sql, {"market_id": market_id})).fetchone()
        return _row_to_market(row) if row else None

    async def insert_market(self, db: AsyncSession, market: Market) -> Market:
        row = (
            await db.execute(
                _INSERT_MARKET_SQL,
                {
                    "id": market.id,
                    "start_price": market.start_price,
                    "start_block": market.start_block,
                    "end_block": market.end_block,
                },
            )
        ).fetchone()
        return _row_to_market(row)

    async def add_stake(
        self, db: AsyncSession, market_id: int, direction: Direction, amount: int
    ) -> Market:
        sql = _ADD_UP_STAKE_SQL if direction is Direction.UP else _ADD_DOWN_STAKE_SQL
        row = (await db.execute(sql, {"market_id": market_id, "amount": amount})).fetchone()
        if row is None:
            raise MarketNotFoundError(market_id)
        return _row_to_market(row)

    async def mark_resolved(
        self, db: AsyncSession, market_id: int, end_price: int
    ) -> Market:
        row = (
            await db.execute(_RESOLVE_SQL, {"market_id": market_id, "end_price": end_price})
        ).fetchone()
        if row is None:
            raise MarketNotFoundError(market_id)
        return _row_to_market(row)

    async def list_markets(
        self,
        db: AsyncSession,
        phase: MarketPhase | None,
        block: int,
        cursor_id: int | None,
        limit: int,
    ) -> list[Market]:
        rows = (
            await db.execute(
                _LIST_MARKETS_SQL,
                {
                    "phase": phase.value if phase else None,
                    "block": block,
                    "cursor_id": cursor_id,
                    "limit": limit,
                },
            )
        ).fetchall()
        return [_row_to_market(row) for row in rows]


class ConfigRepository:
    async def get_config(self, db: AsyncSession) -> EngineConfig | None:
        row = (await db.execute(_GET_CONFIG_SQL)).fetchone()
        return _row_to_config(row) if row else None

    async def lock_config(self, db: AsyncSession) -> EngineConfig:
        row = (await db.execute(_LOCK_CONFIG_SQL)).fetchone()
        if row is None:
            raise InternalError("engine_config has not been seeded")
        return _row_to_config(row)

    async def save_config(self, db: AsyncSession, config: EngineConfig) -> None:
        await db.execute(
            _SAVE_CONFIG_SQL,
            {
                "owner_address": config.owner_address,
                "oracle_address": config.oracle_address,
                "minimum_stake": config.minimum_stake,
                "fee_percentage": config.fee_percentage,
                "next_market_id": config.next_market_id,
            },
        )

    async def ensure_config(
        self, db: AsyncSession, defaults: EngineConfig
    ) -> EngineConfig:
        """Seed the config row on first start; an existing row always wins."""
        await db.execute(
            _SEED_CONFIG_SQL,
            {
                "owner_address": defaults.owner_address,
                "oracle_address": defaults.oracle_address,
                "minimum_stake": defaults.minimum_stake,
                "fee_percentage": defaults.fee_percentage,
                "next_market_id": defaults.next_market_id,
            },
        )
        return await self.lock_config(db)
