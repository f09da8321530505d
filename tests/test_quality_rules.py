"""Deterministic quality rule tests (no persistence, no generator)."""

from __future__ import annotations

from app.db.models import Severity
from app.runtime.quality_rules import derive_document_findings, derive_draft_findings, strip_html


def test_clean_draft_has_no_findings() -> None:
    draft = "# Firewall\n\n## Context\n\nFrom the git connector.\n\nAll edits pass a review by the owner."
    assert derive_draft_findings(draft) == []


def test_draft_rules_flag_todo_missing_context_and_review() -> None:
    findings = derive_draft_findings("# Firewall\n\nTODO: describe rules")
    assert [(f.category, f.severity) for f in findings] == [
        ("STRUCTURE", Severity.WARNING),
        ("COMPLIANCE", Severity.INFO),
        ("TERMINOLOGY", Severity.INFO),
    ]
    assert findings[0].location == "body"


def test_draft_context_heading_is_case_insensitive_and_accepts_german() -> None:
    assert not any(f.category == "COMPLIANCE" for f in derive_draft_findings("## kontext\nreview"))
    assert not any(f.category == "COMPLIANCE" for f in derive_draft_findings("## CONTEXT\nreview"))


def test_todo_marker_is_case_sensitive() -> None:
    findings = derive_draft_findings("## Context\nreview\nthings todo later")
    assert findings == []


def test_draft_rules_are_deterministic() -> None:
    text = "TODO everywhere"
    assert derive_draft_findings(text) == derive_draft_findings(text)


def test_credential_leak_is_compliance_error() -> None:
    findings = derive_document_findings("Router login. password: abc123. Owner: net team. Review yearly.")
    assert any(f.category == "COMPLIANCE" and f.severity == Severity.ERROR for f in findings)


def test_credential_leak_detected_through_html_tags() -> None:
    findings = derive_document_findings("<p>Password:</p><b>Secret1</b>")
    assert any(f.category == "COMPLIANCE" and f.severity == Severity.ERROR for f in findings)


def test_credential_leak_behind_html_entities() -> None:
    findings = derive_document_findings("<p>Admin password:&nbsp;hunter2</p><p>Owner: ops. Review yearly.</p>")
    assert [(f.category, f.severity) for f in findings] == [("COMPLIANCE", Severity.ERROR)]


def test_strip_html_decodes_entities() -> None:
    assert strip_html("<p>Tom&nbsp;&amp;&nbsp;Jerry</p>") == "Tom & Jerry"


def test_document_rules_full_set_in_order() -> None:
    findings = derive_document_findings("<h1>Lorem ipsum</h1><p>password: hunter2</p>")
    assert [f.category for f in findings] == ["STYLE", "COMPLIANCE", "STRUCTURE", "GOVERNANCE"]
    assert [f.severity for f in findings] == [Severity.WARNING, Severity.ERROR, Severity.INFO, Severity.INFO]


def test_clean_document_has_no_findings() -> None:
    text = "<p>Responsible: service desk. Changes follow the review board.</p>"
    assert derive_document_findings(text) == []


def test_empty_document_only_reports_missing_sections() -> None:
    findings = derive_document_findings(None)
    assert [f.category for f in findings] == ["STRUCTURE", "GOVERNANCE"]


def test_strip_html_collapses_whitespace() -> None:
    assert strip_html("<p>a</p>\n\n<div>  b </div>") == "a b"
    assert strip_html(None) == ""
