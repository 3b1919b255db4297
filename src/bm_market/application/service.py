"""MarketRegistry: market lifecycle: create, stake, resolve, query.

Every mutating call runs as one transaction that first row-locks the
engine_config record, so all state transitions are totally ordered across
processes. All rule checks run before the first write; on any exception the
transaction is rolled back and re-raised, leaving state untouched.
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.bm_common.enums import EngineEventType, LedgerEntryType, MarketPhase
from src.bm_common.errors import InvalidParametersError, MarketNotFoundError, RepeatStakeError
from src.bm_ledger.domain.constants import POOL_HOLDER_ID
from src.bm_ledger.domain.repository import BlockClockProtocol, ValueTransferProtocol
from src.bm_ledger.infrastructure.block_clock import ChainHeadClock
from src.bm_ledger.infrastructure.journal import write_engine_event
from src.bm_ledger.infrastructure.persistence import ValueTransferRepository
from src.bm_market.application.schemas import (
    MarketDetail,
    MarketListResponse,
    cursor_decode,
    cursor_encode,
)
from src.bm_market.domain.models import EngineConfig, Market
from src.bm_market.domain.repository import (
    ConfigRepositoryProtocol,
    MarketRepositoryProtocol,
)
from src.bm_market.domain.rules import (
    check_market_params,
    check_oracle,
    check_owner,
    check_participant,
    check_resolvable,
    check_stake_amount,
    check_stake_window,
    parse_direction,
)
from src.bm_market.infrastructure.persistence import ConfigRepository, MarketRepository
from src.bm_settlement.domain.models import Position
from src.bm_settlement.domain.repository import PositionRepositoryProtocol
from src.bm_settlement.infrastructure.persistence import PositionRepository

logger = logging.getLogger(__name__)


async def ensure_engine_config(
    db: AsyncSession, config_repo: ConfigRepositoryProtocol | None = None
) -> EngineConfig:
    """Seed engine_config from deployment settings if it does not exist yet."""
    repo: ConfigRepositoryProtocol = config_repo or ConfigRepository()
    defaults = EngineConfig(
        owner_address=settings.OWNER_ADDRESS,
        oracle_address=settings.ORACLE_ADDRESS,
        minimum_stake=settings.MINIMUM_STAKE,
        fee_percentage=settings.FEE_PERCENTAGE,
        next_market_id=1,
    )
    try:
        config = await repo.ensure_config(db, defaults)
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    logger.info(
        "Engine config ready: owner=%s oracle=%s min_stake=%d fee=%d%% next_id=%d",
        config.owner_address,
        config.oracle_address,
        config.minimum_stake,
        config.fee_percentage,
        config.next_market_id,
    )
    return config


class MarketRegistry:
    def __init__(
        self,
        repo: MarketRepositoryProtocol | None = None,
        config_repo: ConfigRepositoryProtocol | None = None,
        positions: PositionRepositoryProtocol | None = None,
        transfers: ValueTransferProtocol | None = None,
        clock: BlockClockProtocol | None = None,
        reject_repeat_stake: bool | None = None,
    ) -> None:
        self._repo: MarketRepositoryProtocol = repo or MarketRepository()
        self._config: ConfigRepositoryProtocol = config_repo or ConfigRepository()
        self._positions: PositionRepositoryProtocol = positions or PositionRepository()
        self._transfers: ValueTransferProtocol = transfers or ValueTransferRepository()
        self._clock: BlockClockProtocol = clock or ChainHeadClock()
        self._reject_repeat_stake = (
            settings.REJECT_REPEAT_STAKE if reject_repeat_stake is None else reject_repeat_stake
        )
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def create_market(
        self,
        db: AsyncSession,
        caller: str,
        start_price: int,
        start_block: int,
        end_block: int,
    ) -> int:
        """Owner-only. Returns the newly allocated market id."""
        async with self._lock:
            try:
                config = await self._config.lock_config(db)
                check_owner(config, caller)
                check_market_params(start_price, start_block, end_block)

                market_id = config.next_market_id
                config.next_market_id += 1
                await self._config.save_config(db, config)
                await self._repo.insert_market(
                    db,
                    Market(
                        id=market_id,
                        start_price=start_price,
                        end_price=0,
                        total_up_stake=0,
                        total_down_stake=0,
                        start_block=start_block,
                        end_block=end_block,
                        resolved=False,
                    ),
                )
                await write_engine_event(
                    EngineEventType.MARKET_CREATED,
                    market_id,
                    {
                        "start_price": start_price,
                        "start_block": start_block,
                        "end_block": end_block,
                    },
                    db,
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        logger.info(
            "Market %d created: start_price=%d blocks=[%d, %d)",
            market_id, start_price, start_block, end_block,
        )
        return market_id

    async def make_prediction(
        self,
        db: AsyncSession,
        caller: str,
        market_id: int,
        direction: str,
        amount: int,
    ) -> Position:
        """Lock ``amount`` of the caller's funds on one direction of an open market.

        A second stake by the same caller replaces the earlier position while the
        earlier amount stays in the market totals and the pool, unless repeat
        stakes are configured to be rejected.
        """
        async with self._lock:
            try:
                config = await self._config.lock_config(db)
                check_participant(caller)
                market = await self._repo.get_market_by_id(db, market_id, for_update=True)
                if market is None:
                    raise MarketNotFoundError(market_id)
                block = await self._clock.current_block(db)
                check_stake_window(market, block)
                side = parse_direction(direction)
                available = await self._transfers.balance_of(db, caller)
                check_stake_amount(amount, config.minimum_stake, available)
                previous = await self._positions.get_position(
                    db, market_id, caller, for_update=True
                )
                if previous is not None and self._reject_repeat_stake:
                    raise RepeatStakeError(market_id, caller)

                await self._transfers.transfer(
                    db, caller, POOL_HOLDER_ID, amount, LedgerEntryType.STAKE, str(market_id)
                )
                position = await self._positions.upsert_position(
                    db,
                    Position(
                        market_id=market_id,
                        participant=caller,
                        direction=side,
                        stake=amount,
                        claimed=False,
                    ),
                )
                await self._repo.add_stake(db, market_id, side, amount)
                await write_engine_event(
                    EngineEventType.STAKE_RECORDED,
                    market_id,
                    {
                        "participant": caller,
                        "direction": side.value,
                        "amount": amount,
                        "block": block,
                        "overwrote_stake": previous.stake if previous else None,
                    },
                    db,
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        if previous is not None:
            logger.warning(
                "Market %d: %s restaked; previous %s %d stays in the pool totals",
                market_id, caller, previous.direction.value, previous.stake,
            )
        logger.info(
            "Market %d: %s staked %d on %s at block %d",
            market_id, caller, amount, side.value, block,
        )
        return position

    async def resolve_market(
        self, db: AsyncSession, caller: str, market_id: int, end_price: int
    ) -> Market:
        """Oracle-only. Fixes the final price once; unlocks claims."""
        async with self._lock:
            try:
                config = await self._config.lock_config(db)
                check_oracle(config, caller)
                market = await self._repo.get_market_by_id(db, market_id, for_update=True)
                if market is None:
                    raise MarketNotFoundError(market_id)
                block = await self._clock.current_block(db)
                check_resolvable(market, block, end_price)

                market = await self._repo.mark_resolved(db, market_id, end_price)
                await write_engine_event(
                    EngineEventType.MARKET_RESOLVED,
                    market_id,
                    {"end_price": end_price, "block": block},
                    db,
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        logger.info(
            "Market %d resolved at block %d: start_price=%d end_price=%d",
            market_id, block, market.start_price, end_price,
        )
        return market

    # ------------------------------------------------------------------
    # Queries (read-only, no transaction management)
    # ------------------------------------------------------------------

    async def get_market(self, db: AsyncSession, market_id: int) -> MarketDetail | None:
        market = await self._repo.get_market_by_id(db, market_id)
        if market is None:
            return None
        block = await self._clock.current_block(db)
        return MarketDetail.from_domain(market, block)

    async def list_markets(
        self,
        db: AsyncSession,
        phase: str | None,
        cursor: str | None,
        limit: int,
    ) -> MarketListResponse:
        phase_filter: MarketPhase | None = None
        if phase is not None:
            try:
                phase_filter = MarketPhase(phase.upper())
            except ValueError:
                raise InvalidParametersError(f"unknown phase {phase!r}") from None
        block = await self._clock.current_block(db)
        cursor_id = cursor_decode(cursor)

        # Fetch limit+1 to detect has_more without COUNT(*)
        markets = await self._repo.list_markets(db, phase_filter, block, cursor_id, limit + 1)
        has_more = len(markets) > limit
        page = markets[:limit]

        items = [MarketDetail.from_domain(m, block) for m in page]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return MarketListResponse(items=items, next_cursor=next_cursor, has_more=has_more)
