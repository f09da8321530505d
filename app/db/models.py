from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class JobStatus(str, enum.Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class SuggestionStatus(str, enum.Enum):
    OPEN = "OPEN"
    APPLIED = "APPLIED"
    DISMISSED = "DISMISSED"


class Severity(str, enum.Enum):
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class Connector(Base):
    __tablename__ = "source_connectors"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    tenant_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)  # NULL = global

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False)  # GIT, TICKET_SYSTEM, DOCUMENT_REPO, CUSTOM
    config: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class Document(Base):
    """Read-only view of the platform's documents; managed elsewhere."""

    __tablename__ = "documents"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    tenant_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)

    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)

    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class GenerationJob(Base):
    __tablename__ = "generation_jobs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    tenant_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    created_by: Mapped[str | None] = mapped_column(String(64), nullable=True)

    intent: Mapped[str] = mapped_column(String(32), nullable=False, default="CREATE")
    payload: Mapped[str | None] = mapped_column(Text, nullable=True)  # serialized JSON

    document_id: Mapped[str | None] = mapped_column(ForeignKey("documents.id"), nullable=True)
    connector_id: Mapped[str | None] = mapped_column(ForeignKey("source_connectors.id"), nullable=True)

    status: Mapped[JobStatus] = mapped_column(Enum(JobStatus), nullable=False, default=JobStatus.PENDING, index=True)
    result_draft: Mapped[str | None] = mapped_column(Text, nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class QualityFinding(Base):
    __tablename__ = "quality_findings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    # copied from the job or document at insert time
    tenant_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)

    job_id: Mapped[str | None] = mapped_column(ForeignKey("generation_jobs.id"), nullable=True, index=True)
    document_id: Mapped[str | None] = mapped_column(ForeignKey("documents.id"), nullable=True, index=True)

    category: Mapped[str] = mapped_column(String(32), nullable=False)
    severity: Mapped[Severity] = mapped_column(Enum(Severity), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)

    resolution: Mapped[str | None] = mapped_column(Text, nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    def set_resolution(self, resolution: str | None) -> None:
        # resolution and resolved_at always move together
        self.resolution = resolution
        self.resolved_at = utcnow() if resolution is not None else None


class UpdateSuggestion(Base):
    __tablename__ = "update_suggestions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    job_id: Mapped[str] = mapped_column(ForeignKey("generation_jobs.id"), nullable=False, index=True)
    document_id: Mapped[str | None] = mapped_column(ForeignKey("documents.id"), nullable=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    diff_preview: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[SuggestionStatus] = mapped_column(Enum(SuggestionStatus), nullable=False, default=SuggestionStatus.OPEN)
    # "metadata" is reserved on declarative classes
    resolution_metadata: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def set_status(self, status: SuggestionStatus, resolution: str | None = None) -> None:
        # resolved_at and resolution metadata exist only on APPLIED/DISMISSED
        self.status = status
        terminal = status in {SuggestionStatus.APPLIED, SuggestionStatus.DISMISSED}
        self.resolved_at = utcnow() if terminal else None
        self.resolution_metadata = {"resolution": resolution} if terminal and resolution else None
