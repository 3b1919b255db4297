"""Pydantic schemas for the owner-only admin API."""

from pydantic import BaseModel

from src.bm_market.domain.models import EngineConfig
from src.bm_settlement.domain.invariants import MarketAudit


class OracleRequest(BaseModel):
    oracle_address: str


class MinimumStakeRequest(BaseModel):
    minimum_stake: int


class FeePercentageRequest(BaseModel):
    fee_percentage: int


class WithdrawFeesRequest(BaseModel):
    amount: int


class ConfigResponse(BaseModel):
    owner_address: str
    oracle_address: str
    minimum_stake: int
    fee_percentage: int
    next_market_id: int

    @classmethod
    def from_domain(cls, c: EngineConfig) -> "ConfigResponse":
        return cls(
            owner_address=c.owner_address,
            oracle_address=c.oracle_address,
            minimum_stake=c.minimum_stake,
            fee_percentage=c.fee_percentage,
            next_market_id=c.next_market_id,
        )


class WithdrawFeesResponse(BaseModel):
    amount: int
    pool_balance: int


class MarketAuditItem(BaseModel):
    market_id: int
    total_stake: int
    live_stake: int
    drift: int
    distributed: int
    outstanding: int

    @classmethod
    def from_audit(cls, a: MarketAudit) -> "MarketAuditItem":
        return cls(
            market_id=a.market_id,
            total_stake=a.total_stake,
            live_stake=a.live_stake,
            drift=a.drift,
            distributed=a.distributed,
            outstanding=a.outstanding,
        )


class InvariantReport(BaseModel):
    ok: bool
    pool_balance: int
    outstanding: int
    markets: list[MarketAuditItem]
    violations: list[str]
