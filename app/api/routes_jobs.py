from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_dispatcher, get_generator
from app.api.schemas_jobs import JobCreateRequest, JobDetailResponse, JobResponse
from app.core.errors import JobProcessingError, PipelineError
from app.core.tenancy import RequestContext, get_request_context
from app.db.session import get_session
from app.domain import job_service
from app.generation.contracts import DraftGenerator
from app.runtime.dispatcher import Dispatcher

router = APIRouter(prefix="/automation/jobs", tags=["jobs"])


@router.get("", response_model=list[JobDetailResponse])
async def list_jobs(
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
):
    jobs = await job_service.list_jobs(session, tenant_id=ctx.tenant_id)
    return [JobDetailResponse.from_details(d) for d in jobs]


@router.post("", response_model=JobResponse, status_code=201)
async def create_job(
    req: JobCreateRequest,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
    dispatcher: Dispatcher = Depends(get_dispatcher),
):
    job = await job_service.create_job(
        session,
        tenant_id=ctx.tenant_id,
        user_id=ctx.user_id,
        dispatcher=dispatcher,
        intent=req.intent,
        payload=req.payload,
        document_id=req.document_id,
        connector_id=req.connector_id,
        title=req.title,
    )
    return JobResponse.from_model(job)


@router.get("/{job_id}", response_model=JobDetailResponse)
async def get_job(
    job_id: str,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
):
    details = await job_service.get_job_with_details(session, job_id=job_id, tenant_id=ctx.tenant_id)
    return JobDetailResponse.from_details(details)


@router.post("/{job_id}/approve", response_model=JobResponse)
async def approve_job(
    job_id: str,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
):
    job = await job_service.approve_job(session, job_id=job_id, tenant_id=ctx.tenant_id)
    return JobResponse.from_model(job)


@router.post("/{job_id}/retry", response_model=JobDetailResponse)
async def retry_job(
    job_id: str,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
    dispatcher: Dispatcher = Depends(get_dispatcher),
):
    details = await job_service.retry_job(session, job_id=job_id, tenant_id=ctx.tenant_id, dispatcher=dispatcher)
    return JobDetailResponse.from_details(details)


@router.post("/{job_id}/cancel", response_model=JobResponse)
async def cancel_job(
    job_id: str,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
):
    job = await job_service.cancel_job(session, job_id=job_id, tenant_id=ctx.tenant_id)
    return JobResponse.from_model(job)


@router.post("/{job_id}/process", response_model=JobDetailResponse)
async def process_job(
    job_id: str,
    ctx: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
    generator: DraftGenerator = Depends(get_generator),
):
    """
    Process is idempotent:
    - If the job is already COMPLETED, the stored result comes back unchanged.
    - If generation fails, the job is saved as FAILED and the call returns 502 naming the job.
    """
    try:
        details = await job_service.process_job(session, job_id=job_id, tenant_id=ctx.tenant_id, generator=generator)
    except PipelineError:
        raise
    except Exception as e:
        raise JobProcessingError(job_id, e) from e
    return JobDetailResponse.from_details(details)
