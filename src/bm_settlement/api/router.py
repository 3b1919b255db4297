"""bm_settlement REST endpoints (Settlement Engine).

POST /markets/{market_id}/claim claim winnings
GET  /markets/{market_id}/predictions/{participant} position, data=null when absent
GET  /pool/balance pooled balance
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_common.database import get_db_session
from src.bm_common.response import ApiResponse, success_response
from src.bm_gateway.auth.dependencies import get_current_caller
from src.bm_settlement.application.schemas import ClaimResponse
from src.bm_settlement.application.service import SettlementEngine

router = APIRouter(tags=["settlement"])

_engine = SettlementEngine()


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


@router.post("/markets/{market_id}/claim")
async def claim_winnings(
    market_id: int,
    request: Request,
    caller: Annotated[str, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    payout = await _engine.claim_winnings(db, caller, market_id)
    data = ClaimResponse.from_payout(market_id, payout)
    return success_response(data.model_dump(), _request_id(request))


@router.get("/markets/{market_id}/predictions/{participant}")
async def get_user_prediction(
    market_id: int,
    participant: str,
    request: Request,
    caller: Annotated[str, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _engine.get_user_prediction(db, market_id, participant)
    return success_response(result.model_dump() if result else None, _request_id(request))


@router.get("/pool/balance")
async def get_contract_balance(
    request: Request,
    caller: Annotated[str, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _engine.get_contract_balance(db)
    return success_response(result.model_dump(), _request_id(request))
