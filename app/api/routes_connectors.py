from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas_connectors import ConnectorCreateRequest, ConnectorResponse, ConnectorUpdateRequest
from app.core.tenancy import RequestContext, get_request_context
from app.db.session import get_session
from app.domain import connector_service

router = APIRouter(prefix="/automation/connectors", tags=["connectors"])


@router.get("", response_model=list[ConnectorResponse])
async def list_connectors(
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
):
    connectors = await connector_service.list_connectors(session, tenant_id=ctx.tenant_id)
    return [ConnectorResponse.from_model(c) for c in connectors]


@router.post("", response_model=ConnectorResponse, status_code=201)
async def create_connector(
    req: ConnectorCreateRequest,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
):
    connector = await connector_service.create_connector(
        session,
        tenant_id=ctx.tenant_id,
        name=req.name,
        type=req.type,
        config=req.config,
    )
    return ConnectorResponse.from_model(connector)


@router.patch("/{connector_id}", response_model=ConnectorResponse)
async def update_connector(
    connector_id: str,
    req: ConnectorUpdateRequest,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
):
    connector = await connector_service.update_connector(
        session,
        connector_id=connector_id,
        tenant_id=ctx.tenant_id,
        is_active=req.is_active,
    )
    return ConnectorResponse.from_model(connector)
