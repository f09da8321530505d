from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas_quality import FindingResponse, FindingUpdateRequest, QualityCheckRequest, QualityCheckResponse
from app.core.tenancy import RequestContext, get_request_context
from app.db.session import get_session
from app.domain import finding_service

router = APIRouter(prefix="/quality", tags=["quality"])


@router.post("/check", response_model=QualityCheckResponse)
async def run_quality_check(
    req: QualityCheckRequest,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
):
    findings = await finding_service.run_quality_checks(
        session, document_id=req.document_id, tenant_id=ctx.tenant_id
    )
    return QualityCheckResponse(
        document_id=req.document_id,
        findings=[FindingResponse.model_validate(f, from_attributes=True) for f in findings],
    )


@router.get("/findings", response_model=list[FindingResponse])
async def list_findings(
    document_id: Optional[str] = None,
    job_id: Optional[str] = None,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
):
    findings = await finding_service.list_findings(
        session, tenant_id=ctx.tenant_id, document_id=document_id, job_id=job_id
    )
    return [FindingResponse.model_validate(f, from_attributes=True) for f in findings]


@router.patch("/findings/{finding_id}", response_model=FindingResponse)
async def update_finding(
    finding_id: str,
    req: FindingUpdateRequest,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
):
    finding = await finding_service.update_finding(
        session, finding_id=finding_id, tenant_id=ctx.tenant_id, resolution=req.resolution
    )
    return FindingResponse.model_validate(finding, from_attributes=True)
