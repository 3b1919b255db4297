"""Validation rules for the Market Registry.

Each check raises the matching AppError subclass and never mutates anything,
so services can run all of them before the first write.
"""

from src.bm_common.enums import Direction
from src.bm_common.errors import (
    InsufficientFundsError,
    InvalidParametersError,
    MarketAlreadyResolvedError,
    MarketEndedError,
    MarketNotEndedError,
    MarketNotStartedError,
    StakeBelowMinimumError,
    UnauthorizedError,
    UnknownDirectionError,
)
from src.bm_ledger.domain.constants import POOL_HOLDER_ID
from src.bm_market.domain.models import EngineConfig, Market

# Prices, blocks and amounts are stored in BIGINT columns.
MAX_STORED_INT = 2**63 - 1


def check_owner(config: EngineConfig, caller: str) -> None:
    if caller != config.owner_address:
        raise UnauthorizedError("owner", caller)


def check_oracle(config: EngineConfig, caller: str) -> None:
    if caller != config.oracle_address:
        raise UnauthorizedError("oracle", caller)


def check_participant(caller: str) -> None:
    """The pool holder only receives and pays out; it never stakes or claims."""
    if caller == POOL_HOLDER_ID:
        raise UnauthorizedError("participant", caller)


def _check_stored_int(name: str, value: int, minimum: int) -> None:
    if not (minimum <= value <= MAX_STORED_INT):
        raise InvalidParametersError(
            f"{name} must be within {minimum}..{MAX_STORED_INT}, got {value}"
        )


def check_market_params(start_price: int, start_block: int, end_block: int) -> None:
    _check_stored_int("start_block", start_block, 0)
    _check_stored_int("end_block", end_block, 0)
    if end_block <= start_block:
        raise InvalidParametersError(
            f"end_block {end_block} must be greater than start_block {start_block}"
        )
    if start_price <= 0:
        raise InvalidParametersError(f"start_price must be positive, got {start_price}")
    _check_stored_int("start_price", start_price, 1)


def check_stake_window(market: Market, block: int) -> None:
    """Low end inclusive, high end exclusive."""
    if block < market.start_block:
        raise MarketNotStartedError(market.id, block, market.start_block)
    if block >= market.end_block:
        raise MarketEndedError(market.id, block, market.end_block)


def parse_direction(raw: str | Direction) -> Direction:
    if isinstance(raw, Direction):
        return raw
    try:
        return Direction(str(raw).upper())
    except ValueError:
        raise UnknownDirectionError(raw) from None


def check_stake_amount(amount: int, minimum_stake: int, available: int) -> None:
    if amount < minimum_stake:
        raise StakeBelowMinimumError(amount, minimum_stake)
    if amount > available:
        raise InsufficientFundsError(amount, available)


def check_resolvable(market: Market, block: int, end_price: int) -> None:
    if block < market.end_block:
        raise MarketNotEndedError(market.id, block, market.end_block)
    if market.resolved:
        raise MarketAlreadyResolvedError(market.id)
    if end_price <= 0:
        raise InvalidParametersError(f"end_price must be positive, got {end_price}")
    _check_stored_int("end_price", end_price, 1)
