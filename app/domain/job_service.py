from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Union

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import InvalidStateError, NotFoundError
from app.core.tenancy import owned_by
from app.db.models import (
    Connector,
    Document,
    GenerationJob,
    JobStatus,
    QualityFinding,
    UpdateSuggestion,
    utcnow,
)
from app.domain.connector_config import parse_connector_config
from app.domain.connector_service import get_connector
from app.domain.documents import get_document
from app.domain.json_fields import parse_json_object, serialize_payload
from app.domain.state_machine import (
    RETRYABLE,
    TransitionError,
    ensure_cancel_allowed,
    ensure_retry_allowed,
    ensure_transition_allowed,
    sources_of,
)
from app.domain.suggestion_service import create_suggestion_for_job, list_suggestions_for_jobs
from app.generation.contracts import ConnectorContext, DocumentContext, DraftGenerator, GenerationContext
from app.runtime.quality_rules import derive_draft_findings

if TYPE_CHECKING:
    from app.runtime.dispatcher import Dispatcher

logger = logging.getLogger(__name__)

DEFAULT_INTENT = "CREATE"
INTERRUPTED_MESSAGE = "generation interrupted"


@dataclass
class JobDetails:
    job: GenerationJob
    suggestions: List[UpdateSuggestion] = field(default_factory=list)
    findings: List[QualityFinding] = field(default_factory=list)


# -----------------------
# helpers
# -----------------------

async def _load_job(session: AsyncSession, *, job_id: str, tenant_id: Optional[str]) -> GenerationJob:
    # status guards must see the row as stored, not a cached identity-map copy
    res = await session.execute(
        select(GenerationJob)
        .where(GenerationJob.id == job_id, owned_by(GenerationJob.tenant_id, tenant_id))
        .execution_options(populate_existing=True)
    )
    job = res.scalar_one_or_none()
    if not job:
        raise NotFoundError("job", job_id)
    return job


async def _transition(
    session: AsyncSession,
    *,
    job_id: str,
    from_statuses: Iterable[JobStatus],
    values: Dict[str, Any],
) -> bool:
    """
    Conditional UPDATE: applies only while the row is still in one of
    ``from_statuses``. Returns False when a concurrent transition got there first.
    Does not commit.
    """
    res = await session.execute(
        update(GenerationJob)
        .where(GenerationJob.id == job_id, GenerationJob.status.in_(list(from_statuses)))
        .values(**values, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    return res.rowcount == 1


async def _fail_running_job(session: AsyncSession, job: GenerationJob, *, job_id: str, message: str) -> None:
    """Roll back the half-done run and record FAILED, unless the job already left RUNNING.

    Reloads ``job`` afterwards so callers can still inspect it once the error propagates.
    """
    await session.rollback()
    failed = await _transition(
        session,
        job_id=job_id,
        from_statuses={JobStatus.RUNNING},
        values={"status": JobStatus.FAILED, "error": message, "result_draft": None, "completed_at": None},
    )
    await session.commit()
    await session.refresh(job)
    if failed:
        logger.error("job %s failed: %s", job_id, message)
    else:
        logger.error("job %s errored after leaving RUNNING (now %s): %s", job_id, job.status.value, message)


async def _findings_for_jobs(session: AsyncSession, job_ids: List[str]) -> List[QualityFinding]:
    if not job_ids:
        return []
    res = await session.execute(
        select(QualityFinding).where(QualityFinding.job_id.in_(job_ids)).order_by(QualityFinding.created_at.asc())
    )
    return list(res.scalars().all())


async def _details(session: AsyncSession, job: GenerationJob) -> JobDetails:
    return JobDetails(
        job=job,
        suggestions=await list_suggestions_for_jobs(session, [job.id]),
        findings=await _findings_for_jobs(session, [job.id]),
    )


def normalize_intent(intent: Optional[str]) -> str:
    return (intent or "").strip().upper() or DEFAULT_INTENT


async def build_generation_context(session: AsyncSession, job: GenerationJob) -> GenerationContext:
    connector = await session.get(Connector, job.connector_id) if job.connector_id else None
    document = await session.get(Document, job.document_id) if job.document_id else None

    return GenerationContext(
        job_id=job.id,
        intent=job.intent,
        tenant_id=job.tenant_id,
        payload=parse_json_object(job.payload),
        connector=ConnectorContext(
            id=connector.id,
            name=connector.name,
            type=connector.type,
            config=parse_connector_config(connector.type, connector.config).model_dump(exclude={"kind"}),
        )
        if connector
        else None,
        document=DocumentContext(id=document.id, title=document.title) if document else None,
    )


# -----------------------
# queries
# -----------------------

async def list_jobs(session: AsyncSession, *, tenant_id: Optional[str]) -> List[JobDetails]:
    res = await session.execute(
        select(GenerationJob)
        .where(owned_by(GenerationJob.tenant_id, tenant_id))
        .order_by(GenerationJob.created_at.desc())
    )
    jobs = list(res.scalars().all())
    job_ids = [j.id for j in jobs]

    by_job: Dict[str, JobDetails] = {j.id: JobDetails(job=j) for j in jobs}
    for s in await list_suggestions_for_jobs(session, job_ids):
        by_job[s.job_id].suggestions.append(s)
    for f in await _findings_for_jobs(session, job_ids):
        by_job[f.job_id].findings.append(f)
    return [by_job[j.id] for j in jobs]


async def get_job_with_details(session: AsyncSession, *, job_id: str, tenant_id: Optional[str]) -> JobDetails:
    job = await _load_job(session, job_id=job_id, tenant_id=tenant_id)
    return await _details(session, job)


# -----------------------
# transitions
# -----------------------

async def create_job(
    session: AsyncSession,
    *,
    tenant_id: Optional[str],
    user_id: Optional[str],
    dispatcher: "Dispatcher",
    intent: Optional[str] = None,
    payload: Union[str, Dict[str, Any], None] = None,
    document_id: Optional[str] = None,
    connector_id: Optional[str] = None,
    title: Optional[str] = None,
) -> GenerationJob:
    if connector_id:
        connector = await get_connector(session, connector_id=connector_id, tenant_id=tenant_id)
        if not connector.is_active:
            raise InvalidStateError(f"connector {connector_id} is inactive")
    if document_id:
        await get_document(session, document_id=document_id, tenant_id=tenant_id)

    job = GenerationJob(
        tenant_id=tenant_id,
        created_by=user_id,
        intent=normalize_intent(intent),
        payload=serialize_payload(payload),
        document_id=document_id,
        connector_id=connector_id,
        status=JobStatus.PENDING,
    )
    session.add(job)
    await session.commit()
    await session.refresh(job)
    logger.info("job %s created (intent=%s, tenant=%s)", job.id, job.intent, tenant_id)

    if title or document_id:
        await create_suggestion_for_job(session, job=job, title=title)

    await dispatcher.dispatch(session, job_id=job.id, tenant_id=tenant_id)
    await session.refresh(job)
    return job


async def process_job(
    session: AsyncSession,
    *,
    job_id: str,
    tenant_id: Optional[str],
    generator: DraftGenerator,
) -> JobDetails:
    """
    Generation engine entry point.
    - COMPLETED: no-op, returns the stored result (no generator call).
    - RUNNING: owned by another worker, returned unchanged.
    - PENDING/FAILED: claimed, generated, scanned, committed atomically.
    The completion commit only lands while the job is still RUNNING, so a
    cancel or approve that happens during generation wins.
    A failed or interrupted run is saved as FAILED before the error propagates.
    """
    job = await _load_job(session, job_id=job_id, tenant_id=tenant_id)

    if job.status == JobStatus.COMPLETED:
        logger.info("job %s already completed, returning stored result", job.id)
        return await _details(session, job)
    if job.status == JobStatus.RUNNING:
        logger.warning("job %s is already running, skipping", job.id)
        return await _details(session, job)
    ensure_transition_allowed(job.status, JobStatus.RUNNING)

    claimed = await _transition(
        session,
        job_id=job.id,
        from_statuses=sources_of(JobStatus.RUNNING),
        values={"status": JobStatus.RUNNING, "error": None, "completed_at": None, "result_draft": None},
    )
    await session.commit()
    await session.refresh(job)
    if not claimed:
        logger.info("job %s changed to %s before it could be claimed", job.id, job.status.value)
        return await _details(session, job)

    logger.info("job %s running", job.id)
    try:
        context = await build_generation_context(session, job)
        draft = await generator.generate(context)
        findings = derive_draft_findings(draft)

        completed = await _transition(
            session,
            job_id=job.id,
            from_statuses={JobStatus.RUNNING},
            values={
                "status": JobStatus.COMPLETED,
                "result_draft": draft,
                "completed_at": utcnow(),
                "error": None,
            },
        )
        if not completed:
            await session.rollback()
            await session.refresh(job)
            logger.warning("job %s left RUNNING during generation (now %s), draft discarded", job.id, job.status.value)
            return await _details(session, job)

        await session.execute(delete(QualityFinding).where(QualityFinding.job_id == job.id))
        session.add_all(
            [
                QualityFinding(
                    tenant_id=job.tenant_id,
                    job_id=job.id,
                    document_id=job.document_id,
                    category=f.category,
                    severity=f.severity,
                    message=f.message,
                    location=f.location,
                )
                for f in findings
            ]
        )
        await session.commit()
    except asyncio.CancelledError:
        # worker shutdown or client disconnect
        await _fail_running_job(session, job, job_id=job_id, message=INTERRUPTED_MESSAGE)
        raise
    except Exception as e:
        message = str(e) or f"unexpected generation error ({type(e).__name__})"
        await _fail_running_job(session, job, job_id=job_id, message=message)
        raise

    await session.refresh(job)
    logger.info("job %s completed with %d finding(s)", job.id, len(findings))
    return await _details(session, job)


async def approve_job(session: AsyncSession, *, job_id: str, tenant_id: Optional[str]) -> GenerationJob:
    """
    Operator override: force COMPLETED without generating.
    Allowed from PENDING, RUNNING and FAILED; a no-op on COMPLETED; rejected on
    CANCELLED (retry it first). Draft and findings are left as they are.
    """
    job = await _load_job(session, job_id=job_id, tenant_id=tenant_id)
    if job.status == JobStatus.COMPLETED:
        return job
    ensure_transition_allowed(job.status, JobStatus.COMPLETED)

    approved = await _transition(
        session,
        job_id=job.id,
        from_statuses=sources_of(JobStatus.COMPLETED),
        values={"status": JobStatus.COMPLETED, "completed_at": utcnow(), "error": None},
    )
    await session.commit()
    await session.refresh(job)
    if not approved and job.status != JobStatus.COMPLETED:
        raise TransitionError(from_status=job.status, to_status=JobStatus.COMPLETED)
    logger.info("job %s approved", job.id)
    return job


async def retry_job(
    session: AsyncSession,
    *,
    job_id: str,
    tenant_id: Optional[str],
    dispatcher: "Dispatcher",
) -> JobDetails:
    job = await _load_job(session, job_id=job_id, tenant_id=tenant_id)
    ensure_retry_allowed(job.status)

    # reset and finding cleanup share one transaction
    reset = await _transition(
        session,
        job_id=job.id,
        from_statuses=RETRYABLE,
        values={"status": JobStatus.PENDING, "result_draft": None, "completed_at": None, "error": None},
    )
    if not reset:
        await session.rollback()
        await session.refresh(job)
        ensure_retry_allowed(job.status)
        raise InvalidStateError(f"job {job.id} could not be reset from {job.status.value}")
    await session.execute(delete(QualityFinding).where(QualityFinding.job_id == job.id))
    await session.commit()
    await session.refresh(job)
    logger.info("job %s reset for retry", job.id)

    await dispatcher.dispatch(session, job_id=job.id, tenant_id=job.tenant_id)
    return await get_job_with_details(session, job_id=job.id, tenant_id=tenant_id)


async def cancel_job(session: AsyncSession, *, job_id: str, tenant_id: Optional[str]) -> GenerationJob:
    job = await _load_job(session, job_id=job_id, tenant_id=tenant_id)
    ensure_cancel_allowed(job.status)

    cancelled = await _transition(
        session,
        job_id=job.id,
        from_statuses=sources_of(JobStatus.CANCELLED),
        values={"status": JobStatus.CANCELLED, "completed_at": utcnow()},
    )
    await session.commit()
    await session.refresh(job)
    if not cancelled:
        raise InvalidStateError(f"job cannot be cancelled in status {job.status.value}")
    logger.info("job %s cancelled", job.id)
    return job
