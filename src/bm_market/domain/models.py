"""Domain models for bm_market: pure dataclasses, no persistence logic."""

from dataclasses import dataclass
from datetime import datetime

from src.bm_common.enums import Direction, MarketPhase


@dataclass
class Market:
    id: int
    start_price: int
    end_price: int            # 0 until resolution
    total_up_stake: int
    total_down_stake: int
    start_block: int
    end_block: int            # always > start_block
    resolved: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def total_stake(self) -> int:
        return self.total_up_stake + self.total_down_stake

    def stake_on(self, direction: Direction) -> int:
        if direction is Direction.UP:
            return self.total_up_stake
        return self.total_down_stake

    def phase_at(self, block: int) -> MarketPhase:
        if self.resolved:
            return MarketPhase.RESOLVED
        if block < self.start_block:
            return MarketPhase.CREATED
        if block < self.end_block:
            return MarketPhase.OPEN
        return MarketPhase.CLOSED


@dataclass
class EngineConfig:
    """Single owner-mutable configuration record.

    Changes apply to operations executed afterwards; markets keep their own
    frozen prices and blocks.
    """

    owner_address: str
    oracle_address: str
    minimum_stake: int
    fee_percentage: int       # 0-100, applied to gross winnings
    next_market_id: int
