"""SettlementEngine: claims against resolved markets and position queries."""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_common.enums import EngineEventType, LedgerEntryType
from src.bm_common.errors import (
    InsufficientFundsError,
    MarketInactiveError,
    MarketNotFoundError,
    NotWinningSideError,
    PositionNotFoundError,
    RewardsAlreadyClaimedError,
)
from src.bm_ledger.domain.constants import POOL_HOLDER_ID
from src.bm_ledger.domain.repository import ValueTransferProtocol
from src.bm_ledger.infrastructure.journal import write_engine_event
from src.bm_ledger.infrastructure.persistence import ValueTransferRepository
from src.bm_market.domain.repository import (
    ConfigRepositoryProtocol,
    MarketRepositoryProtocol,
)
from src.bm_market.domain.rules import check_participant
from src.bm_market.infrastructure.persistence import ConfigRepository, MarketRepository
from src.bm_settlement.application.schemas import PoolBalanceResponse, PositionDetail
from src.bm_settlement.domain.models import Payout
from src.bm_settlement.domain.payout import compute_payout, winning_direction
from src.bm_settlement.domain.repository import PositionRepositoryProtocol
from src.bm_settlement.infrastructure.persistence import PositionRepository

logger = logging.getLogger(__name__)


class SettlementEngine:
    def __init__(
        self,
        markets: MarketRepositoryProtocol | None = None,
        config_repo: ConfigRepositoryProtocol | None = None,
        positions: PositionRepositoryProtocol | None = None,
        transfers: ValueTransferProtocol | None = None,
    ) -> None:
        self._markets: MarketRepositoryProtocol = markets or MarketRepository()
        self._config: ConfigRepositoryProtocol = config_repo or ConfigRepository()
        self._positions: PositionRepositoryProtocol = positions or PositionRepository()
        self._transfers: ValueTransferProtocol = transfers or ValueTransferRepository()
        self._lock = asyncio.Lock()

    async def claim_winnings(self, db: AsyncSession, caller: str, market_id: int) -> Payout:
        """Pay the caller's proportional share of a resolved market, exactly once.

        Net payout goes to the caller and the fee to the owner, both from the
        pool; the position is flagged claimed in the same transaction.
        """
        async with self._lock:
            try:
                config = await self._config.lock_config(db)
                check_participant(caller)
                market = await self._markets.get_market_by_id(db, market_id, for_update=True)
                if market is None:
                    raise MarketNotFoundError(market_id)
                if not market.resolved:
                    raise MarketInactiveError(market_id)
                position = await self._positions.get_position(
                    db, market_id, caller, for_update=True
                )
                if position is None:
                    raise PositionNotFoundError(market_id, caller)
                if position.claimed:
                    raise RewardsAlreadyClaimedError(market_id, caller)
                if position.direction is not winning_direction(market):
                    raise NotWinningSideError(market_id, position.direction.value)

                payout = compute_payout(market, position.stake, config.fee_percentage)
                pool = await self._transfers.balance_of(db, POOL_HOLDER_ID)
                if pool < payout.gross:
                    raise InsufficientFundsError(payout.gross, pool)

                reference = str(market_id)
                await self._transfers.transfer(
                    db, POOL_HOLDER_ID, caller, payout.net, LedgerEntryType.PAYOUT, reference
                )
                await self._transfers.transfer(
                    db,
                    POOL_HOLDER_ID,
                    config.owner_address,
                    payout.fee,
                    LedgerEntryType.FEE,
                    reference,
                )
                await self._positions.mark_claimed(db, market_id, caller)
                await write_engine_event(
                    EngineEventType.WINNINGS_CLAIMED,
                    market_id,
                    {
                        "participant": caller,
                        "gross": payout.gross,
                        "fee": payout.fee,
                        "net": payout.net,
                    },
                    db,
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        logger.info(
            "Market %d: %s claimed net=%d (gross=%d fee=%d)",
            market_id, caller, payout.net, payout.gross, payout.fee,
        )
        return payout

    async def get_user_prediction(
        self, db: AsyncSession, market_id: int, participant: str
    ) -> PositionDetail | None:
        position = await self._positions.get_position(db, market_id, participant)
        return PositionDetail.from_domain(position) if position else None

    async def get_contract_balance(self, db: AsyncSession) -> PoolBalanceResponse:
        balance = await self._transfers.balance_of(db, POOL_HOLDER_ID)
        return PoolBalanceResponse(holder_id=POOL_HOLDER_ID, balance=balance)
