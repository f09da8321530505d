"""Suggestion and finding lifecycles."""

from __future__ import annotations

import pytest

from app.core.errors import NotFoundError
from app.db.models import Severity, SuggestionStatus
from app.domain import finding_service, job_service, suggestion_service
from app.domain.suggestion_service import normalize_status
from tests.fakes import DIRTY_DRAFT, StaticDraftGenerator


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("applied", SuggestionStatus.APPLIED),
        (" Dismissed ", SuggestionStatus.DISMISSED),
        ("open", SuggestionStatus.OPEN),
        ("archived", SuggestionStatus.OPEN),
        (None, SuggestionStatus.OPEN),
    ],
)
def test_normalize_status(raw, expected):
    assert normalize_status(raw) == expected


class TestSuggestions:
    @pytest.mark.asyncio
    async def test_apply_then_reopen(self, session, manual_dispatcher):
        await job_service.create_job(
            session, tenant_id="t1", user_id=None, dispatcher=manual_dispatcher, title="Update backup chapter"
        )
        [suggestion] = await suggestion_service.list_suggestions(session, tenant_id="t1")
        assert suggestion.title == "Update backup chapter"
        assert suggestion.resolved_at is None

        applied = await suggestion_service.update_suggestion(
            session, suggestion_id=suggestion.id, tenant_id="t1", status="applied", resolution="merged into v3"
        )
        assert applied.status == SuggestionStatus.APPLIED
        assert applied.resolved_at is not None
        assert applied.resolution_metadata == {"resolution": "merged into v3"}

        reopened = await suggestion_service.update_suggestion(
            session, suggestion_id=suggestion.id, tenant_id="t1", status="OPEN"
        )
        assert reopened.status == SuggestionStatus.OPEN
        assert reopened.resolved_at is None
        assert reopened.resolution_metadata is None

    @pytest.mark.asyncio
    async def test_resolution_ignored_without_terminal_status(self, session, manual_dispatcher):
        await job_service.create_job(session, tenant_id="t1", user_id=None, dispatcher=manual_dispatcher, title="x")
        [suggestion] = await suggestion_service.list_suggestions(session, tenant_id="t1")
        updated = await suggestion_service.update_suggestion(
            session, suggestion_id=suggestion.id, tenant_id="t1", status="OPEN", resolution="y"
        )
        assert updated.status == SuggestionStatus.OPEN
        assert updated.resolution_metadata is None

    @pytest.mark.asyncio
    async def test_unknown_status_reopens(self, session, manual_dispatcher):
        await job_service.create_job(session, tenant_id="t1", user_id=None, dispatcher=manual_dispatcher, title="x")
        [suggestion] = await suggestion_service.list_suggestions(session, tenant_id="t1")
        await suggestion_service.update_suggestion(session, suggestion_id=suggestion.id, tenant_id="t1", status="DISMISSED")
        updated = await suggestion_service.update_suggestion(
            session, suggestion_id=suggestion.id, tenant_id="t1", status="bogus"
        )
        assert updated.status == SuggestionStatus.OPEN
        assert updated.resolved_at is None

    @pytest.mark.asyncio
    async def test_scoped_by_job_tenant(self, session, manual_dispatcher):
        await job_service.create_job(session, tenant_id="t1", user_id=None, dispatcher=manual_dispatcher, title="a")
        await job_service.create_job(session, tenant_id="t2", user_id=None, dispatcher=manual_dispatcher, title="b")

        [mine] = await suggestion_service.list_suggestions(session, tenant_id="t1")
        assert mine.title == "a"
        assert len(await suggestion_service.list_suggestions(session, tenant_id=None, all_tenants=True)) == 2
        with pytest.raises(NotFoundError):
            await suggestion_service.update_suggestion(session, suggestion_id=mine.id, tenant_id="t2", status="APPLIED")


class TestFindings:
    @pytest.mark.asyncio
    async def test_quality_check_replaces_previous_scan(self, session, make_document):
        doc = await make_document(tenant_id="t1", content="<p>Lorem ipsum. password: abc</p>")
        first = await finding_service.run_quality_checks(session, document_id=doc.id, tenant_id="t1")
        second = await finding_service.run_quality_checks(session, document_id=doc.id, tenant_id="t1")

        assert [f.category for f in second] == [f.category for f in first]
        stored = await finding_service.list_findings(session, tenant_id="t1", document_id=doc.id)
        assert len(stored) == len(second) == 4
        assert {f.id for f in stored} == {f.id for f in second}
        assert any(f.severity == Severity.ERROR for f in stored)
        assert all(f.job_id is None for f in stored)

    @pytest.mark.asyncio
    async def test_quality_check_keeps_job_findings(self, session, manual_dispatcher, make_document):
        doc = await make_document(tenant_id="t1")
        job = await job_service.create_job(
            session, tenant_id="t1", user_id=None, dispatcher=manual_dispatcher, document_id=doc.id
        )
        await job_service.process_job(
            session, job_id=job.id, tenant_id="t1", generator=StaticDraftGenerator(DIRTY_DRAFT)
        )
        await finding_service.run_quality_checks(session, document_id=doc.id, tenant_id="t1")

        job_findings = await finding_service.list_findings(session, tenant_id="t1", job_id=job.id)
        assert len(job_findings) == 3

    @pytest.mark.asyncio
    async def test_quality_check_on_foreign_document(self, session, make_document):
        doc = await make_document(tenant_id="t2")
        with pytest.raises(NotFoundError):
            await finding_service.run_quality_checks(session, document_id=doc.id, tenant_id="t1")

    @pytest.mark.asyncio
    async def test_resolve_and_reopen(self, session, make_document):
        doc = await make_document(tenant_id="t1", content="lorem ipsum")
        findings = await finding_service.run_quality_checks(session, document_id=doc.id, tenant_id="t1")
        target = findings[0]

        resolved = await finding_service.update_finding(
            session, finding_id=target.id, tenant_id="t1", resolution="replaced filler text"
        )
        assert resolved.resolution == "replaced filler text"
        assert resolved.resolved_at is not None

        reopened = await finding_service.update_finding(session, finding_id=target.id, tenant_id="t1", resolution="")
        assert reopened.resolution is None
        assert reopened.resolved_at is None

    @pytest.mark.asyncio
    async def test_findings_hidden_from_other_tenants(self, session, make_document):
        doc = await make_document(tenant_id="t1", content="lorem ipsum")
        [first, *_] = await finding_service.run_quality_checks(session, document_id=doc.id, tenant_id="t1")
        assert await finding_service.list_findings(session, tenant_id="t2") == []
        with pytest.raises(NotFoundError):
            await finding_service.update_finding(session, finding_id=first.id, tenant_id="t2", resolution="x")
