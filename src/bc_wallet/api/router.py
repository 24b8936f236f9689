"""bc_wallet REST API — client wallet endpoints, all require a client token."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.bc_common.database import get_db_session
from src.bc_common.enums import TradeType
from src.bc_common.response import ApiResponse, success_response
from src.bc_gateway.auth.dependencies import Identity, require_client
from src.bc_wallet.application.schemas import TradeRequest, TransactionRequest
from src.bc_wallet.application.service import WalletApplicationService

router = APIRouter(prefix="/wallet", tags=["wallet"])

_service = WalletApplicationService()


def get_wallet_service() -> WalletApplicationService:
    return _service


Client = Annotated[Identity, Depends(require_client)]
Db = Annotated[AsyncSession, Depends(get_db_session)]
Service = Annotated[WalletApplicationService, Depends(get_wallet_service)]


def _respond(request: Request, data: object) -> ApiResponse:
    resp = success_response(data)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("")
async def get_portfolio(
    client: Client, db: Db, service: Service, request: Request
) -> ApiResponse:
    data = await service.get_portfolio(db, client.user_id)
    return _respond(request, data.model_dump(mode="json"))


@router.get("/balance")
async def get_balance(
    client: Client, db: Db, service: Service, request: Request
) -> ApiResponse:
    data = await service.get_balance(db, client.user_id)
    return _respond(request, data.model_dump(mode="json"))


@router.get("/holdings/{asset_id}")
async def get_holding(
    asset_id: str, client: Client, db: Db, service: Service, request: Request
) -> ApiResponse:
    data = await service.get_holding(db, client.user_id, asset_id)
    return _respond(request, data.model_dump(mode="json"))


@router.post("/buy", status_code=status.HTTP_201_CREATED)
async def buy(
    body: TradeRequest, client: Client, db: Db, service: Service, request: Request
) -> ApiResponse:
    data = await service.buy(db, client.user_id, body)
    return _respond(request, data.model_dump(mode="json"))


@router.post("/sell", status_code=status.HTTP_201_CREATED)
async def sell(
    body: TradeRequest, client: Client, db: Db, service: Service, request: Request
) -> ApiResponse:
    data = await service.sell(db, client.user_id, body)
    return _respond(request, data.model_dump(mode="json"))


@router.post("/transactions", status_code=status.HTTP_201_CREATED)
async def record_transaction(
    body: TransactionRequest, client: Client, db: Db, service: Service, request: Request
) -> ApiResponse:
    data = await service.execute(db, client.user_id, body.type, body)
    return _respond(request, data.model_dump(mode="json"))


@router.get("/transactions")
async def list_transactions(
    client: Client,
    db: Db,
    service: Service,
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    asset_id: str | None = Query(None, description="Filter by asset"),
    type: TradeType | None = Query(None, description="Filter by buy/sell"),
) -> ApiResponse:
    data = await service.list_transactions(
        db, client.user_id, cursor, limit, asset_id, type
    )
    return _respond(request, data.model_dump(mode="json"))
