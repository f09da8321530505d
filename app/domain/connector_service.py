from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError
from app.core.tenancy import owned_by, visible_to
from app.db.models import Connector
from app.domain.json_fields import serialize_config

logger = logging.getLogger(__name__)


async def list_connectors(session: AsyncSession, *, tenant_id: Optional[str]) -> List[Connector]:
    res = await session.execute(
        select(Connector)
        .where(visible_to(Connector.tenant_id, tenant_id))
        .order_by(Connector.is_active.desc(), Connector.updated_at.desc())
    )
    return list(res.scalars().all())


async def get_connector(session: AsyncSession, *, connector_id: str, tenant_id: Optional[str]) -> Connector:
    res = await session.execute(
        select(Connector).where(Connector.id == connector_id, visible_to(Connector.tenant_id, tenant_id))
    )
    connector = res.scalar_one_or_none()
    if not connector:
        raise NotFoundError("connector", connector_id)
    return connector


async def create_connector(
    session: AsyncSession,
    *,
    tenant_id: Optional[str],
    name: str,
    type: str,
    config: Union[str, Dict[str, Any], None] = None,
) -> Connector:
    connector = Connector(
        tenant_id=tenant_id,
        name=name.strip(),
        type=type.strip().upper(),
        config=serialize_config(config),
        is_active=True,
    )
    session.add(connector)
    await session.commit()
    await session.refresh(connector)
    logger.info("connector %s created (type=%s, tenant=%s)", connector.id, connector.type, tenant_id)
    return connector


async def update_connector(
    session: AsyncSession,
    *,
    connector_id: str,
    tenant_id: Optional[str],
    is_active: Optional[bool] = None,
) -> Connector:
    # only the owning scope may toggle; a tenant cannot flip a global connector
    res = await session.execute(
        select(Connector).where(Connector.id == connector_id, owned_by(Connector.tenant_id, tenant_id))
    )
    connector = res.scalar_one_or_none()
    if not connector:
        raise NotFoundError("connector", connector_id)

    if is_active is not None and connector.is_active != is_active:
        connector.is_active = is_active
        await session.commit()
        await session.refresh(connector)
        logger.info("connector %s active=%s", connector.id, is_active)
    return connector
