"""bm_market REST endpoints (Market Registry).

POST /markets create market (owner)
GET  /markets list with cursor pagination
GET  /markets/{market_id} market detail, data=null when absent
POST /markets/{market_id}/predictions stake on UP/DOWN
POST /markets/{market_id}/resolve fix final price (oracle)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_common.database import get_db_session
from src.bm_common.response import ApiResponse, success_response
from src.bm_gateway.auth.dependencies import get_current_caller
from src.bm_market.application.schemas import (
    CreateMarketRequest,
    MarketCreatedResponse,
    MarketDetail,
    PredictionRequest,
    ResolutionResponse,
    ResolveRequest,
)
from src.bm_market.application.service import MarketRegistry
from src.bm_settlement.application.schemas import PositionDetail

router = APIRouter(prefix="/markets", tags=["markets"])

_registry = MarketRegistry()


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


@router.post("")
async def create_market(
    body: CreateMarketRequest,
    request: Request,
    caller: Annotated[str, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    market_id = await _registry.create_market(
        db, caller, body.start_price, body.start_block, body.end_block
    )
    data = MarketCreatedResponse(market_id=market_id)
    return success_response(data.model_dump(), _request_id(request))


@router.get("")
async def list_markets(
    request: Request,
    caller: Annotated[str, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    phase: str | None = Query(
        None, description="CREATED, OPEN, CLOSED or RESOLVED. Default: all phases."
    ),
    limit: int = Query(20, ge=1, le=100),
    cursor: str | None = Query(None),
) -> ApiResponse:
    result = await _registry.list_markets(db, phase, cursor, limit)
    return success_response(result.model_dump(), _request_id(request))


@router.get("/{market_id}")
async def get_market(
    market_id: int,
    request: Request,
    caller: Annotated[str, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result: MarketDetail | None = await _registry.get_market(db, market_id)
    return success_response(result.model_dump() if result else None, _request_id(request))


@router.post("/{market_id}/predictions")
async def make_prediction(
    market_id: int,
    body: PredictionRequest,
    request: Request,
    caller: Annotated[str, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    position = await _registry.make_prediction(
        db, caller, market_id, body.direction, body.stake
    )
    data = PositionDetail.from_domain(position)
    return success_response(data.model_dump(), _request_id(request))


@router.post("/{market_id}/resolve")
async def resolve_market(
    market_id: int,
    body: ResolveRequest,
    request: Request,
    caller: Annotated[str, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    market = await _registry.resolve_market(db, caller, market_id, body.end_price)
    data = ResolutionResponse.from_domain(market)
    return success_response(data.model_dump(), _request_id(request))
