from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.errors import JobProcessingError, PipelineError
from app.domain.job_service import process_job
from app.generation.contracts import DraftGenerator
from app.runtime.queue import InMemoryJobQueue, JobMessage

logger = logging.getLogger(__name__)


class DispatchPolicy(str, enum.Enum):
    MANUAL = "MANUAL"
    IMMEDIATE = "IMMEDIATE"
    QUEUED = "QUEUED"

    @classmethod
    def from_flags(cls, *, queue_autorun: bool, run_immediate: bool) -> "DispatchPolicy":
        if queue_autorun:
            return cls.QUEUED
        if run_immediate:
            return cls.IMMEDIATE
        return cls.MANUAL


@dataclass
class Dispatcher:
    """Decides, once per created or retried job, where it gets processed."""

    policy: DispatchPolicy
    generator: DraftGenerator
    queue: Optional[InMemoryJobQueue] = None

    def __post_init__(self) -> None:
        if self.policy == DispatchPolicy.QUEUED and self.queue is None:
            raise ValueError("QUEUED dispatch requires a job queue")

    async def dispatch(self, session: AsyncSession, *, job_id: str, tenant_id: Optional[str]) -> DispatchPolicy:
        if self.policy == DispatchPolicy.QUEUED:
            assert self.queue is not None
            await self.queue.publish(JobMessage(job_id=job_id, tenant_id=tenant_id))
        elif self.policy == DispatchPolicy.IMMEDIATE:
            # failures reach the creating/retrying caller tagged with the job id
            try:
                await process_job(session, job_id=job_id, tenant_id=tenant_id, generator=self.generator)
            except PipelineError:
                raise
            except Exception as e:
                raise JobProcessingError(job_id, e) from e
        else:
            logger.debug("job %s left PENDING for manual processing", job_id)
        return self.policy


class JobQueueWorker:
    """Queue subscriber: one session per message, failures logged not raised."""

    def __init__(self, *, session_factory: async_sessionmaker[AsyncSession], generator: DraftGenerator) -> None:
        self.session_factory = session_factory
        self.generator = generator

    async def handle(self, message: JobMessage) -> None:
        async with self.session_factory() as session:
            try:
                await process_job(
                    session,
                    job_id=message.job_id,
                    tenant_id=message.tenant_id,
                    generator=self.generator,
                )
            except Exception:
                logger.exception("failed to process queued job %s", message.job_id)

    def attach(self, queue: InMemoryJobQueue) -> None:
        queue.subscribe(self.handle)
