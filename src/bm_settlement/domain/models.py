"""Domain models for bm_settlement: pure dataclasses."""

from dataclasses import dataclass
from datetime import datetime

from src.bm_common.enums import Direction


@dataclass
class Position:
    market_id: int
    participant: str
    direction: Direction
    stake: int
    claimed: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class Payout:
    gross: int
    fee: int
    net: int
