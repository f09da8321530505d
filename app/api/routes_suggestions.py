from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas_suggestions import SuggestionResponse, SuggestionUpdateRequest
from app.core.tenancy import RequestContext, get_request_context
from app.db.session import get_session
from app.domain import suggestion_service

router = APIRouter(prefix="/automation/suggestions", tags=["suggestions"])


@router.get("", response_model=list[SuggestionResponse])
async def list_suggestions(
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
):
    suggestions = await suggestion_service.list_suggestions(session, tenant_id=ctx.tenant_id)
    return [SuggestionResponse.model_validate(s, from_attributes=True) for s in suggestions]


@router.patch("/{suggestion_id}", response_model=SuggestionResponse)
async def update_suggestion(
    suggestion_id: str,
    req: SuggestionUpdateRequest,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
):
    suggestion = await suggestion_service.update_suggestion(
        session,
        suggestion_id=suggestion_id,
        tenant_id=ctx.tenant_id,
        status=req.status,
        resolution=req.resolution,
    )
    return SuggestionResponse.model_validate(suggestion, from_attributes=True)
