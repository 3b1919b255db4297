"""Admin REST API: owner-only controls.

Role checks happen in AdminService against the persisted engine config.
"""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_admin.application.schemas import (
    FeePercentageRequest,
    MinimumStakeRequest,
    OracleRequest,
    WithdrawFeesRequest,
)
from src.bm_admin.application.service import AdminService
from src.bm_common.database import get_db_session
from src.bm_common.response import ApiResponse, success_response
from src.bm_gateway.auth.dependencies import get_current_caller

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


@router.get("/config")
async def get_config(
    request: Request,
    caller: Annotated[str, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_config(db)
    return success_response(result.model_dump(), _request_id(request))


@router.put("/oracle")
async def set_oracle_address(
    body: OracleRequest,
    request: Request,
    caller: Annotated[str, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.set_oracle_address(db, caller, body.oracle_address)
    return success_response(result.model_dump(), _request_id(request))


@router.put("/minimum-stake")
async def set_minimum_stake(
    body: MinimumStakeRequest,
    request: Request,
    caller: Annotated[str, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.set_minimum_stake(db, caller, body.minimum_stake)
    return success_response(result.model_dump(), _request_id(request))


@router.put("/fee-percentage")
async def set_fee_percentage(
    body: FeePercentageRequest,
    request: Request,
    caller: Annotated[str, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.set_fee_percentage(db, caller, body.fee_percentage)
    return success_response(result.model_dump(), _request_id(request))


@router.post("/withdraw-fees")
async def withdraw_fees(
    body: WithdrawFeesRequest,
    request: Request,
    caller: Annotated[str, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.withdraw_fees(db, caller, body.amount)
    return success_response(result.model_dump(), _request_id(request))


@router.get("/invariants")
async def verify_invariants(
    request: Request,
    caller: Annotated[str, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.verify_invariants(db, caller)
    return success_response(result.model_dump(), _request_id(request))
