from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError
from app.core.tenancy import visible_to
from app.db.models import QualityFinding
from app.domain.documents import get_document
from app.runtime.quality_rules import derive_document_findings

logger = logging.getLogger(__name__)


async def run_quality_checks(
    session: AsyncSession,
    *,
    document_id: str,
    tenant_id: Optional[str],
) -> List[QualityFinding]:
    """Job-less scan of a stored document; replaces its previous job-less findings."""
    document = await get_document(session, document_id=document_id, tenant_id=tenant_id)
    derived = derive_document_findings(document.content)

    await session.execute(
        delete(QualityFinding).where(
            QualityFinding.document_id == document.id,
            QualityFinding.job_id.is_(None),
        )
    )
    findings = [
        QualityFinding(
            tenant_id=document.tenant_id,
            document_id=document.id,
            job_id=None,
            category=f.category,
            severity=f.severity,
            message=f.message,
            location=f.location,
        )
        for f in derived
    ]
    session.add_all(findings)
    await session.commit()
    for finding in findings:
        await session.refresh(finding)

    logger.info("quality check for document %s: %d finding(s)", document.id, len(findings))
    return findings


async def list_findings(
    session: AsyncSession,
    *,
    tenant_id: Optional[str],
    document_id: Optional[str] = None,
    job_id: Optional[str] = None,
) -> List[QualityFinding]:
    stmt = select(QualityFinding).where(visible_to(QualityFinding.tenant_id, tenant_id))
    if document_id:
        stmt = stmt.where(QualityFinding.document_id == document_id)
    if job_id:
        stmt = stmt.where(QualityFinding.job_id == job_id)
    res = await session.execute(stmt.order_by(QualityFinding.created_at.desc()))
    return list(res.scalars().all())


async def update_finding(
    session: AsyncSession,
    *,
    finding_id: str,
    tenant_id: Optional[str],
    resolution: Optional[str],
) -> QualityFinding:
    """Resolve (non-empty resolution) or reopen (None / empty)."""
    res = await session.execute(
        select(QualityFinding).where(
            QualityFinding.id == finding_id,
            visible_to(QualityFinding.tenant_id, tenant_id),
        )
    )
    finding = res.scalar_one_or_none()
    if not finding:
        raise NotFoundError("finding", finding_id)

    finding.set_resolution(resolution or None)
    await session.commit()
    await session.refresh(finding)
    logger.debug("finding %s resolved=%s", finding.id, finding.resolved_at is not None)
    return finding
