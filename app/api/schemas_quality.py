from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.db.models import Severity


class FindingResponse(BaseModel):
    id: str
    job_id: Optional[str] = None
    document_id: Optional[str] = None
    category: str
    severity: Severity
    message: str
    location: Optional[str] = None
    resolution: Optional[str] = None
    resolved_at: Optional[datetime] = None
    created_at: datetime


class QualityCheckRequest(BaseModel):
    document_id: str = Field(min_length=1)


class QualityCheckResponse(BaseModel):
    document_id: str
    findings: List[FindingResponse]


class FindingUpdateRequest(BaseModel):
    resolution: Optional[str] = None
