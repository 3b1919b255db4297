"""Pydantic schemas and cursor utilities for bm_market API."""

import base64
import json

from pydantic import BaseModel

from src.bm_common.enums import MarketPhase
from src.bm_market.domain.models import Market
from src.bm_settlement.domain.payout import winning_direction

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode a market id into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except (ValueError, KeyError, TypeError):
        return None


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
# Numeric bounds are enforced by the domain rules so that violations surface
# as the engine's own error codes rather than request-validation errors.


class CreateMarketRequest(BaseModel):
    start_price: int
    start_block: int
    end_block: int


class PredictionRequest(BaseModel):
    direction: str
    stake: int


class ResolveRequest(BaseModel):
    end_price: int


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class MarketCreatedResponse(BaseModel):
    market_id: int


class MarketDetail(BaseModel):
    id: int
    start_price: int
    end_price: int
    total_up_stake: int
    total_down_stake: int
    total_stake: int
    start_block: int
    end_block: int
    resolved: bool
    phase: MarketPhase
    winning_direction: str | None
    current_block: int

    @classmethod
    def from_domain(cls, m: Market, current_block: int) -> "MarketDetail":
        return cls(
            id=m.id,
            start_price=m.start_price,
            end_price=m.end_price,
            total_up_stake=m.total_up_stake,
            total_down_stake=m.total_down_stake,
            total_stake=m.total_stake,
            start_block=m.start_block,
            end_block=m.end_block,
            resolved=m.resolved,
            phase=m.phase_at(current_block),
            winning_direction=winning_direction(m).value if m.resolved else None,
            current_block=current_block,
        )


class MarketListResponse(BaseModel):
    items: list[MarketDetail]
    next_cursor: str | None
    has_more: bool


class ResolutionResponse(BaseModel):
    market_id: int
    start_price: int
    end_price: int
    winning_direction: str

    @classmethod
    def from_domain(cls, m: Market) -> "ResolutionResponse":
        return cls(
            market_id=m.id,
            start_price=m.start_price,
            end_price=m.end_price,
            winning_direction=winning_direction(m).value,
        )
