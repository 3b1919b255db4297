"""Pydantic schemas for bm_settlement API responses."""

from pydantic import BaseModel

from src.bm_settlement.domain.models import Payout, Position


class PositionDetail(BaseModel):
    market_id: int
    participant: str
    direction: str
    stake: int
    claimed: bool

    @classmethod
    def from_domain(cls, p: Position) -> "PositionDetail":
        return cls(
            market_id=p.market_id,
            participant=p.participant,
            direction=p.direction.value,
            stake=p.stake,
            claimed=p.claimed,
        )


class ClaimResponse(BaseModel):
    """``payout`` is the net amount credited to the caller."""

    market_id: int
    payout: int
    gross: int
    fee: int

    @classmethod
    def from_payout(cls, market_id: int, payout: Payout) -> "ClaimResponse":
        return cls(market_id=market_id, payout=payout.net, gross=payout.gross, fee=payout.fee)


class PoolBalanceResponse(BaseModel):
    holder_id: str
    balance: int
