"""Unit tests for Market Registry validation rules."""

import pytest

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
from src.bm_market.domain.models import EngineConfig, Market
from src.bm_market.domain.rules import (
    check_market_params,
    check_oracle,
    MAX_STORED_INT,
    check_owner,
    check_participant,
    check_resolvable,
    check_stake_amount,
    check_stake_window,
    parse_direction,
)


def _config() -> EngineConfig:
    return EngineConfig(
        owner_address="OWNER",
        oracle_address="ORACLE",
        minimum_stake=1_000_000,
        fee_percentage=2,
        next_market_id=1,
    )


def _market(**kwargs) -> Market:
    defaults = dict(
        id=1, start_price=50_000, end_price=0, total_up_stake=0, total_down_stake=0,
        start_block=100, end_block=200, resolved=False,
    )
    defaults.update(kwargs)
    return Market(**defaults)


class TestRoles:
    def test_owner_passes(self) -> None:
        check_owner(_config(), "OWNER")

    def test_oracle_is_not_owner(self) -> None:
        with pytest.raises(UnauthorizedError):
            check_owner(_config(), "ORACLE")

    def test_owner_is_not_oracle(self) -> None:
        with pytest.raises(UnauthorizedError):
            check_oracle(_config(), "OWNER")

    def test_pool_holder_is_not_a_participant(self) -> None:
        with pytest.raises(UnauthorizedError):
            check_participant("SETTLEMENT_POOL")

    def test_participant_passes(self) -> None:
        check_participant("alice")


class TestMarketParams:
    def test_valid(self) -> None:
        check_market_params(50_000, 100, 101)

    @pytest.mark.parametrize("end_block", [100, 99])
    def test_end_block_must_exceed_start(self, end_block: int) -> None:
        with pytest.raises(InvalidParametersError):
            check_market_params(50_000, 100, end_block)

    @pytest.mark.parametrize("price", [0, -1])
    def test_start_price_must_be_positive(self, price: int) -> None:
        with pytest.raises(InvalidParametersError):
            check_market_params(price, 100, 200)

    @pytest.mark.parametrize("start_block", [-1, -50])
    def test_negative_start_block(self, start_block: int) -> None:
        with pytest.raises(InvalidParametersError):
            check_market_params(50_000, start_block, 10)

    def test_price_above_bigint(self) -> None:
        with pytest.raises(InvalidParametersError):
            check_market_params(2**64 - 1, 0, 10)

    def test_end_block_above_bigint(self) -> None:
        with pytest.raises(InvalidParametersError):
            check_market_params(50_000, 0, MAX_STORED_INT + 1)

    def test_bigint_max_accepted(self) -> None:
        check_market_params(MAX_STORED_INT, 0, MAX_STORED_INT)


class TestStakeWindow:
    def test_start_block_is_inclusive(self) -> None:
        check_stake_window(_market(), 100)

    def test_last_open_block(self) -> None:
        check_stake_window(_market(), 199)

    def test_before_start(self) -> None:
        with pytest.raises(MarketNotStartedError):
            check_stake_window(_market(), 99)

    def test_end_block_is_exclusive(self) -> None:
        with pytest.raises(MarketEndedError):
            check_stake_window(_market(), 200)


class TestDirection:
    @pytest.mark.parametrize("raw", ["UP", "up", "Up"])
    def test_up(self, raw: str) -> None:
        assert parse_direction(raw) is Direction.UP

    def test_enum_passthrough(self) -> None:
        assert parse_direction(Direction.DOWN) is Direction.DOWN

    @pytest.mark.parametrize("raw", ["SIDEWAYS", "", "2"])
    def test_unknown(self, raw: str) -> None:
        with pytest.raises(UnknownDirectionError):
            parse_direction(raw)


class TestStakeAmount:
    def test_exact_minimum_ok(self) -> None:
        check_stake_amount(1_000_000, 1_000_000, 1_000_000)

    def test_below_minimum(self) -> None:
        with pytest.raises(StakeBelowMinimumError):
            check_stake_amount(999_999, 1_000_000, 10_000_000)

    def test_minimum_checked_before_funds(self) -> None:
        with pytest.raises(StakeBelowMinimumError):
            check_stake_amount(10, 1_000_000, 0)

    def test_insufficient_funds(self) -> None:
        with pytest.raises(InsufficientFundsError):
            check_stake_amount(2_000_000, 1_000_000, 1_999_999)


class TestResolvable:
    def test_at_end_block(self) -> None:
        check_resolvable(_market(), 200, 60_000)

    def test_before_end_block(self) -> None:
        with pytest.raises(MarketNotEndedError):
            check_resolvable(_market(), 199, 60_000)

    def test_already_resolved(self) -> None:
        with pytest.raises(MarketAlreadyResolvedError):
            check_resolvable(_market(resolved=True, end_price=1), 300, 60_000)

    def test_zero_price(self) -> None:
        with pytest.raises(InvalidParametersError):
            check_resolvable(_market(), 200, 0)

    def test_end_price_above_bigint(self) -> None:
        with pytest.raises(InvalidParametersError):
            check_resolvable(_market(), 200, MAX_STORED_INT + 1)
