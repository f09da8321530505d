from __future__ import annotations

import logging
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from app.domain.json_fields import JsonBlob, parse_json_object, serialize_config

logger = logging.getLogger(__name__)

CONNECTOR_TYPES = ("GIT", "TICKET_SYSTEM", "DOCUMENT_REPO", "CUSTOM")


class GitConnectorConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    kind: Literal["GIT"] = "GIT"
    repo_url: str
    branch: str = "main"
    path: Optional[str] = None


class TicketSystemConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    kind: Literal["TICKET_SYSTEM"] = "TICKET_SYSTEM"
    base_url: str
    project: Optional[str] = None


class DocumentRepoConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    kind: Literal["DOCUMENT_REPO"] = "DOCUMENT_REPO"
    location: str
    folder: Optional[str] = None


class CustomConnectorConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    kind: Literal["CUSTOM"] = "CUSTOM"


class RawConnectorConfig(BaseModel):
    """Config that could not be parsed for its connector type."""

    kind: Literal["RAW"] = "RAW"
    raw: str


ConnectorConfig = Annotated[
    Union[
        GitConnectorConfig,
        TicketSystemConfig,
        DocumentRepoConfig,
        CustomConnectorConfig,
        RawConnectorConfig,
    ],
    Field(discriminator="kind"),
]

_CONFIG_ADAPTER = TypeAdapter(ConnectorConfig)


def parse_connector_config(connector_type: str, stored: JsonBlob) -> ConnectorConfig:
    kind = (connector_type or "").strip().upper()
    raw = serialize_config(stored)
    if kind not in CONNECTOR_TYPES:
        return RawConnectorConfig(raw=raw)
    data = parse_json_object(stored) or {}
    if set(data) == {"raw"}:
        return RawConnectorConfig(raw=raw)
    try:
        return _CONFIG_ADAPTER.validate_python({**data, "kind": kind})
    except ValidationError:
        logger.info("connector config does not match the %s schema, keeping raw form", kind)
        return RawConnectorConfig(raw=raw)
