from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel

from app.db.models import SuggestionStatus


class SuggestionResponse(BaseModel):
    id: str
    job_id: str
    document_id: Optional[str] = None
    title: str
    summary: Optional[str] = None
    diff_preview: Optional[str] = None
    status: SuggestionStatus
    resolution_metadata: Optional[Dict[str, Any]] = None
    resolved_at: Optional[datetime] = None
    updated_at: datetime


class SuggestionUpdateRequest(BaseModel):
    # free-form; unknown values fall back to OPEN
    status: Optional[str] = None
    resolution: Optional[str] = None
