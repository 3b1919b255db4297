"""Global enums: must match DB CHECK constraints exactly."""

from enum import Enum


class Direction(str, Enum):
    UP = "UP"
    DOWN = "DOWN"


class MarketPhase(str, Enum):
    """Derived from the market record and the current block, never stored."""
    CREATED = "CREATED"      # now < start_block
    OPEN = "OPEN"            # start_block <= now < end_block
    CLOSED = "CLOSED"        # now >= end_block, not yet resolved
    RESOLVED = "RESOLVED"    # terminal


class LedgerEntryType(str, Enum):
    # Stake (participant -> pool)
    STAKE = "STAKE"
    # Claim (pool -> winner, pool -> owner)
    PAYOUT = "PAYOUT"
    FEE = "FEE"
    # Owner withdrawal (pool -> owner)
    FEE_WITHDRAWAL = "FEE_WITHDRAWAL"


class EngineEventType(str, Enum):
    MARKET_CREATED = "MARKET_CREATED"
    STAKE_RECORDED = "STAKE_RECORDED"
    MARKET_RESOLVED = "MARKET_RESOLVED"
    WINNINGS_CLAIMED = "WINNINGS_CLAIMED"
    CONFIG_UPDATED = "CONFIG_UPDATED"
    FEES_WITHDRAWN = "FEES_WITHDRAWN"
