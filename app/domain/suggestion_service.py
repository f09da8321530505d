from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.best_effort import BestEffortOutcome, run_best_effort
from app.core.errors import NotFoundError
from app.core.tenancy import owned_by
from app.db.models import GenerationJob, SuggestionStatus, UpdateSuggestion

logger = logging.getLogger(__name__)

DEFAULT_SUGGESTION_TITLE = "Automatic update"
DEFAULT_SUGGESTION_SUMMARY = "An AI draft was created. Please review."


def normalize_status(raw: Optional[str]) -> SuggestionStatus:
    try:
        return SuggestionStatus((raw or "").strip().upper())
    except ValueError:
        return SuggestionStatus.OPEN


async def list_suggestions(
    session: AsyncSession,
    *,
    tenant_id: Optional[str],
    all_tenants: bool = False,
) -> List[UpdateSuggestion]:
    stmt = select(UpdateSuggestion)
    if not all_tenants:
        stmt = stmt.join(GenerationJob, GenerationJob.id == UpdateSuggestion.job_id).where(
            owned_by(GenerationJob.tenant_id, tenant_id)
        )
    res = await session.execute(stmt.order_by(UpdateSuggestion.updated_at.desc()))
    return list(res.scalars().all())


async def list_suggestions_for_jobs(session: AsyncSession, job_ids: List[str]) -> List[UpdateSuggestion]:
    if not job_ids:
        return []
    res = await session.execute(
        select(UpdateSuggestion).where(UpdateSuggestion.job_id.in_(job_ids)).order_by(UpdateSuggestion.created_at.asc())
    )
    return list(res.scalars().all())


async def update_suggestion(
    session: AsyncSession,
    *,
    suggestion_id: str,
    tenant_id: Optional[str],
    status: Optional[str],
    resolution: Optional[str] = None,
) -> UpdateSuggestion:
    res = await session.execute(
        select(UpdateSuggestion)
        .join(GenerationJob, GenerationJob.id == UpdateSuggestion.job_id)
        .where(UpdateSuggestion.id == suggestion_id, owned_by(GenerationJob.tenant_id, tenant_id))
    )
    suggestion = res.scalar_one_or_none()
    if not suggestion:
        raise NotFoundError("suggestion", suggestion_id)

    suggestion.set_status(normalize_status(status), resolution=resolution)

    await session.commit()
    await session.refresh(suggestion)
    logger.debug("suggestion %s -> %s", suggestion.id, suggestion.status.value)
    return suggestion


async def create_suggestion_for_job(
    session: AsyncSession,
    *,
    job: GenerationJob,
    title: Optional[str],
) -> BestEffortOutcome:
    """Opportunistic OPEN suggestion for a new job; never fails the caller."""

    async def _create() -> None:
        session.add(
            UpdateSuggestion(
                job_id=job.id,
                document_id=job.document_id,
                title=title or DEFAULT_SUGGESTION_TITLE,
                summary=DEFAULT_SUGGESTION_SUMMARY,
                status=SuggestionStatus.OPEN,
            )
        )
        await session.commit()

    async def _rollback() -> None:
        await session.rollback()
        # rollback expires loaded state; reload so callers can keep using the job
        await session.refresh(job)

    return await run_best_effort(f"suggestion for job {job.id}", _create, on_error=_rollback)
