from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError
from app.core.tenancy import visible_to
from app.db.models import Document


async def get_document(session: AsyncSession, *, document_id: str, tenant_id: Optional[str]) -> Document:
    res = await session.execute(
        select(Document).where(Document.id == document_id, visible_to(Document.tenant_id, tenant_id))
    )
    document = res.scalar_one_or_none()
    if not document:
        raise NotFoundError("document", document_id)
    return document
