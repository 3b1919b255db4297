"""Admin application service: owner-only controls and invariant verification.

None of these operations touch market or position records.
"""
import asyncio
import logging
from collections.abc import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.bm_admin.application.schemas import (
    ConfigResponse,
    InvariantReport,
    MarketAuditItem,
    WithdrawFeesResponse,
)
from src.bm_common.enums import EngineEventType, LedgerEntryType
from src.bm_common.errors import (
    InsufficientFundsError,
    InternalError,
    InvalidParametersError,
)
from src.bm_ledger.domain.constants import POOL_HOLDER_ID
from src.bm_ledger.domain.repository import ValueTransferProtocol
from src.bm_ledger.infrastructure.journal import write_engine_event
from src.bm_ledger.infrastructure.persistence import ValueTransferRepository
from src.bm_market.domain.models import EngineConfig, Market
from src.bm_market.domain.repository import (
    ConfigRepositoryProtocol,
    MarketRepositoryProtocol,
)
from src.bm_market.domain.rules import MAX_STORED_INT, check_owner
from src.bm_market.infrastructure.persistence import ConfigRepository, MarketRepository
from src.bm_settlement.domain.invariants import audit_market
from src.bm_settlement.domain.repository import PositionRepositoryProtocol
from src.bm_settlement.infrastructure.persistence import PositionRepository

logger = logging.getLogger(__name__)

_AUDIT_PAGE_SIZE = 500


class AdminService:
    def __init__(
        self,
        config_repo: ConfigRepositoryProtocol | None = None,
        markets: MarketRepositoryProtocol | None = None,
        positions: PositionRepositoryProtocol | None = None,
        transfers: ValueTransferProtocol | None = None,
        reject_repeat_stake: bool | None = None,
    ) -> None:
        self._config: ConfigRepositoryProtocol = config_repo or ConfigRepository()
        self._markets: MarketRepositoryProtocol = markets or MarketRepository()
        self._positions: PositionRepositoryProtocol = positions or PositionRepository()
        self._transfers: ValueTransferProtocol = transfers or ValueTransferRepository()
        self._reject_repeat_stake = (
            settings.REJECT_REPEAT_STAKE if reject_repeat_stake is None else reject_repeat_stake
        )
        self._lock = asyncio.Lock()

    async def get_config(self, db: AsyncSession) -> ConfigResponse:
        config = await self._config.get_config(db)
        if config is None:
            raise InternalError("engine_config has not been seeded")
        return ConfigResponse.from_domain(config)

    async def set_oracle_address(
        self, db: AsyncSession, caller: str, oracle_address: str
    ) -> ConfigResponse:
        def _apply(config: EngineConfig) -> None:
            if oracle_address == config.oracle_address:
                raise InvalidParametersError("oracle address is unchanged")
            config.oracle_address = oracle_address

        return await self._update_config(db, caller, "oracle_address", _apply)

    async def set_minimum_stake(
        self, db: AsyncSession, caller: str, minimum_stake: int
    ) -> ConfigResponse:
        def _apply(config: EngineConfig) -> None:
            if not (0 < minimum_stake <= MAX_STORED_INT):
                raise InvalidParametersError(
                    f"minimum stake must be within 1..{MAX_STORED_INT}, got {minimum_stake}"
                )
            config.minimum_stake = minimum_stake

        return await self._update_config(db, caller, "minimum_stake", _apply)

    async def set_fee_percentage(
        self, db: AsyncSession, caller: str, fee_percentage: int
    ) -> ConfigResponse:
        def _apply(config: EngineConfig) -> None:
            if not (0 <= fee_percentage <= 100):
                raise InvalidParametersError(
                    f"fee percentage must be within 0-100, got {fee_percentage}"
                )
            config.fee_percentage = fee_percentage

        return await self._update_config(db, caller, "fee_percentage", _apply)

    async def _update_config(
        self,
        db: AsyncSession,
        caller: str,
        field: str,
        apply: Callable[[EngineConfig], None],
    ) -> ConfigResponse:
        async with self._lock:
            try:
                config = await self._config.lock_config(db)
                check_owner(config, caller)
                old_value = getattr(config, field)
                apply(config)
                await self._config.save_config(db, config)
                await write_engine_event(
                    EngineEventType.CONFIG_UPDATED,
                    None,
                    {"field": field, "old": old_value, "new": getattr(config, field)},
                    db,
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        logger.info("Config %s changed: %s -> %s", field, old_value, getattr(config, field))
        return ConfigResponse.from_domain(config)

    async def withdraw_fees(
        self, db: AsyncSession, caller: str, amount: int
    ) -> WithdrawFeesResponse:
        """Move ``amount`` from the pool to the owner."""
        async with self._lock:
            try:
                config = await self._config.lock_config(db)
                check_owner(config, caller)
                if amount <= 0:
                    raise InvalidParametersError(f"amount must be positive, got {amount}")
                pool = await self._transfers.balance_of(db, POOL_HOLDER_ID)
                if amount > pool:
                    raise InsufficientFundsError(amount, pool)

                await self._transfers.transfer(
                    db,
                    POOL_HOLDER_ID,
                    config.owner_address,
                    amount,
                    LedgerEntryType.FEE_WITHDRAWAL,
                    "POOL",
                )
                await write_engine_event(
                    EngineEventType.FEES_WITHDRAWN,
                    None,
                    {"owner": config.owner_address, "amount": amount},
                    db,
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        logger.info("Owner %s withdrew %d from the pool", config.owner_address, amount)
        return WithdrawFeesResponse(amount=amount, pool_balance=pool - amount)

    async def verify_invariants(self, db: AsyncSession, caller: str) -> InvariantReport:
        """Audit every market and check the pool covers what it still owes."""
        config = await self._config.get_config(db)
        if config is None:
            raise InternalError("engine_config has not been seeded")
        check_owner(config, caller)

        markets: list[Market] = []
        cursor_id: int | None = None
        while True:
            page = await self._markets.list_markets(db, None, 0, cursor_id, _AUDIT_PAGE_SIZE)
            markets.extend(page)
            if len(page) < _AUDIT_PAGE_SIZE:
                break
            cursor_id = page[-1].id

        audits = []
        violations: list[str] = []
        for market in markets:
            positions = await self._positions.list_positions(db, market.id)
            audit = audit_market(market, positions, allow_drift=not self._reject_repeat_stake)
            audits.append(audit)
            violations.extend(audit.violations)

        pool = await self._transfers.balance_of(db, POOL_HOLDER_ID)
        outstanding = sum(a.outstanding for a in audits)
        if pool < outstanding:
            msg = f"INV-P violated: pool_balance({pool}) < outstanding({outstanding})"
            violations.append(msg)
            logger.error(msg)

        return InvariantReport(
            ok=len(violations) == 0,
            pool_balance=pool,
            outstanding=outstanding,
            markets=[MarketAuditItem.from_audit(a) for a in audits],
            violations=violations,
        )
