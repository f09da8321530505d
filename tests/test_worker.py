from __future__ import annotations

import pytest

from app.db.models import JobStatus
from app.domain import job_service
from app.runtime import worker
from tests.fakes import DIRTY_DRAFT, FailingDraftGenerator, StaticDraftGenerator


async def _stored_status(session_factory, job_id, tenant_id="t1"):
    async with session_factory() as s:
        details = await job_service.get_job_with_details(s, job_id=job_id, tenant_id=tenant_id)
        return details.job.status, details.job.error


class TestRunJob:
    @pytest.mark.asyncio
    async def test_processes_pending_job(self, session, session_factory, manual_dispatcher):
        job = await job_service.create_job(session, tenant_id="t1", user_id=None, dispatcher=manual_dispatcher)

        code = await worker.run_job(
            job.id, tenant_id="t1", session_factory=session_factory, generator=StaticDraftGenerator(DIRTY_DRAFT)
        )
        assert code == 0
        assert await _stored_status(session_factory, job.id) == (JobStatus.COMPLETED, None)

    @pytest.mark.asyncio
    async def test_generation_failure_exits_nonzero(self, session, session_factory, manual_dispatcher):
        job = await job_service.create_job(session, tenant_id="t1", user_id=None, dispatcher=manual_dispatcher)

        code = await worker.run_job(
            job.id,
            tenant_id="t1",
            session_factory=session_factory,
            generator=FailingDraftGenerator(RuntimeError("boom")),
        )
        assert code == 1
        assert await _stored_status(session_factory, job.id) == (JobStatus.FAILED, "boom")

    @pytest.mark.asyncio
    async def test_job_of_another_tenant_is_not_processed(self, session, session_factory, manual_dispatcher):
        job = await job_service.create_job(session, tenant_id="t1", user_id=None, dispatcher=manual_dispatcher)
        generator = StaticDraftGenerator()

        code = await worker.run_job(job.id, tenant_id="t2", session_factory=session_factory, generator=generator)
        assert code == 1
        assert generator.calls == []
        assert (await _stored_status(session_factory, job.id))[0] == JobStatus.PENDING

    @pytest.mark.asyncio
    async def test_cancelled_job_is_not_processed(self, session, session_factory, manual_dispatcher):
        job = await job_service.create_job(session, tenant_id="t1", user_id=None, dispatcher=manual_dispatcher)
        await job_service.cancel_job(session, job_id=job.id, tenant_id="t1")

        code = await worker.run_job(
            job.id, tenant_id="t1", session_factory=session_factory, generator=StaticDraftGenerator()
        )
        assert code == 1


class TestMain:
    def test_job_id_is_required(self):
        with pytest.raises(SystemExit) as excinfo:
            worker.main([])
        assert excinfo.value.code == 2

    def test_passes_arguments_through(self, monkeypatch):
        seen = {}

        async def fake_init_db():
            seen["init_db"] = True

        async def fake_run_job(job_id, *, tenant_id, session_factory, generator):
            seen.update(job_id=job_id, tenant_id=tenant_id, generator=generator)
            return 1

        generator = StaticDraftGenerator()
        monkeypatch.setattr(worker, "init_db", fake_init_db)
        monkeypatch.setattr(worker, "run_job", fake_run_job)
        monkeypatch.setattr(worker, "build_draft_generator", lambda settings: generator)

        assert worker.main(["job-1", "--tenant", "t1"]) == 1
        assert seen == {"init_db": True, "job_id": "job-1", "tenant_id": "t1", "generator": generator}
