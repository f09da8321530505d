from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field

from app.db.models import Connector
from app.domain.connector_config import parse_connector_config


class ConnectorCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    type: str = Field(min_length=1)
    config: Union[Dict[str, Any], str, None] = None


class ConnectorUpdateRequest(BaseModel):
    is_active: Optional[bool] = None


class ConnectorResponse(BaseModel):
    id: str
    tenant_id: Optional[str] = None
    name: str
    type: str
    config: Dict[str, Any] = Field(default_factory=dict)
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, connector: Connector) -> "ConnectorResponse":
        return cls(
            id=connector.id,
            tenant_id=connector.tenant_id,
            name=connector.name,
            type=connector.type,
            config=parse_connector_config(connector.type, connector.config).model_dump(),
            is_active=connector.is_active,
            created_at=connector.created_at,
            updated_at=connector.updated_at,
        )
