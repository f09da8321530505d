from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from app.api.schemas_quality import FindingResponse
from app.api.schemas_suggestions import SuggestionResponse
from app.db.models import GenerationJob, JobStatus
from app.domain.job_service import JobDetails
from app.domain.json_fields import parse_json_object


class JobCreateRequest(BaseModel):
    intent: Optional[str] = None
    document_id: Optional[str] = None
    connector_id: Optional[str] = None
    payload: Union[Dict[str, Any], str, None] = None
    title: Optional[str] = None


class JobResponse(BaseModel):
    id: str
    tenant_id: Optional[str] = None
    created_by: Optional[str] = None
    status: JobStatus
    intent: str
    payload: Optional[Dict[str, Any]] = None
    document_id: Optional[str] = None
    connector_id: Optional[str] = None
    result_draft: Optional[str] = None
    error: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, job: GenerationJob) -> "JobResponse":
        return cls(
            id=job.id,
            tenant_id=job.tenant_id,
            created_by=job.created_by,
            status=job.status,
            intent=job.intent,
            payload=parse_json_object(job.payload),
            document_id=job.document_id,
            connector_id=job.connector_id,
            result_draft=job.result_draft,
            error=job.error,
            created_at=job.created_at,
            updated_at=job.updated_at,
            completed_at=job.completed_at,
        )


class JobDetailResponse(JobResponse):
    suggestions: List[SuggestionResponse] = Field(default_factory=list)
    findings: List[FindingResponse] = Field(default_factory=list)

    @classmethod
    def from_details(cls, details: JobDetails) -> "JobDetailResponse":
        base = JobResponse.from_model(details.job)
        return cls(
            **base.model_dump(),
            suggestions=[SuggestionResponse.model_validate(s, from_attributes=True) for s in details.suggestions],
            findings=[FindingResponse.model_validate(f, from_attributes=True) for f in details.findings],
        )
