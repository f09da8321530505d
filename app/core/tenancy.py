from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Header
from sqlalchemy import or_
from sqlalchemy.sql.elements import ColumnElement


@dataclass(frozen=True)
class RequestContext:
    tenant_id: Optional[str] = None  # None = global scope, never "all tenants"
    user_id: Optional[str] = None


async def get_request_context(
    x_tenant_id: str | None = Header(default=None),
    x_user_id: str | None = Header(default=None),
) -> RequestContext:
    return RequestContext(tenant_id=x_tenant_id or None, user_id=x_user_id or None)


def owned_by(column, tenant_id: str | None) -> ColumnElement[bool]:
    """Rows owned by exactly this scope (global rows only when tenant_id is None)."""
    if tenant_id is None:
        return column.is_(None)
    return column == tenant_id


def visible_to(column, tenant_id: str | None) -> ColumnElement[bool]:
    """Rows owned by the tenant plus global rows."""
    if tenant_id is None:
        return column.is_(None)
    return or_(column == tenant_id, column.is_(None))
