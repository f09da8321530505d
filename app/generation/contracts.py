from __future__ import annotations
from typing import Any, Dict, Optional, Protocol

from pydantic import BaseModel, Field


class ConnectorContext(BaseModel):
    id: str
    name: str
    type: str
    config: Dict[str, Any] = Field(default_factory=dict)


class DocumentContext(BaseModel):
    id: str
    title: Optional[str] = None


class GenerationContext(BaseModel):
    job_id: str
    intent: str
    tenant_id: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None
    connector: Optional[ConnectorContext] = None
    document: Optional[DocumentContext] = None

    @property
    def document_title(self) -> Optional[str]:
        return self.document.title if self.document else None

    @property
    def connector_name(self) -> Optional[str]:
        return self.connector.name if self.connector else None


class DraftGenerationError(RuntimeError):
    pass


class GenerationTimeoutError(DraftGenerationError):
    pass


class DraftGenerator(Protocol):
    async def generate(self, context: GenerationContext) -> str:
        ...
