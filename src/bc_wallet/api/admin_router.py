"""Admin endpoints — client account provisioning."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.bc_common.database import get_db_session
from src.bc_common.response import ApiResponse, success_response
from src.bc_gateway.auth.dependencies import Identity, require_admin
from src.bc_wallet.api.router import get_wallet_service
from src.bc_wallet.application.schemas import OpenAccountRequest
from src.bc_wallet.application.service import WalletApplicationService

router = APIRouter(prefix="/admin/accounts", tags=["admin"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def open_account(
    body: OpenAccountRequest,
    admin: Annotated[Identity, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[WalletApplicationService, Depends(get_wallet_service)],
    request: Request,
) -> ApiResponse:
    data = await service.open_account(db, body.user_id, body.initial_balance)
    resp = success_response(data.model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.delete("/{user_id}")
async def close_account(
    user_id: str,
    admin: Annotated[Identity, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[WalletApplicationService, Depends(get_wallet_service)],
    request: Request,
) -> ApiResponse:
    await service.close_account(db, user_id)
    resp = success_response({"user_id": user_id, "deleted": True})
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
