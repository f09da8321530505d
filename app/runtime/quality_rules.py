from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from bs4 import BeautifulSoup
from pydantic import BaseModel

from app.db.models import Severity


class DerivedFinding(BaseModel):
    category: str
    severity: Severity
    message: str
    location: Optional[str] = None


@dataclass(frozen=True)
class QualityRule:
    name: str
    category: str
    severity: Severity
    message: str
    triggered: Callable[[str], bool]
    location: Optional[str] = None

    def check(self, text: str) -> Optional[DerivedFinding]:
        if not self.triggered(text):
            return None
        return DerivedFinding(
            category=self.category,
            severity=self.severity,
            message=self.message,
            location=self.location,
        )


def _contains(pattern: str, flags: int = 0) -> Callable[[str], bool]:
    rx = re.compile(pattern, flags)
    return lambda text: rx.search(text) is not None


def _missing(pattern: str, flags: int = re.I) -> Callable[[str], bool]:
    rx = re.compile(pattern, flags)
    return lambda text: rx.search(text) is None


_WS = re.compile(r"\s+")


def strip_html(content: str | None) -> str:
    """Visible text of an HTML fragment: tags dropped, entities decoded, whitespace collapsed."""
    if not content:
        return ""
    text = BeautifulSoup(content, "html.parser").get_text(" ")
    # str patterns treat the decoded &nbsp; (U+00A0) as whitespace too
    return _WS.sub(" ", text).strip()


# Applied to freshly generated drafts.
DRAFT_RULES: Sequence[QualityRule] = (
    QualityRule(
        name="todo_markers",
        category="STRUCTURE",
        severity=Severity.WARNING,
        message="TODO placeholders found. Make them concrete and remove them.",
        triggered=_contains(r"TODO"),
        location="body",
    ),
    QualityRule(
        name="context_section",
        category="COMPLIANCE",
        severity=Severity.INFO,
        message="No context section found. Add sources/references for the audit trail.",
        triggered=_missing(r"## (Kontext|Context)"),
    ),
    QualityRule(
        name="review_process",
        category="TERMINOLOGY",
        severity=Severity.INFO,
        message="Describe the review/approval process.",
        triggered=_missing(r"review"),
    ),
)

# Applied to existing documents (de-tagged text).
DOCUMENT_RULES: Sequence[QualityRule] = (
    QualityRule(
        name="placeholder_text",
        category="STYLE",
        severity=Severity.WARNING,
        message="Placeholder text (lorem ipsum) found. Replace it with real content.",
        triggered=_contains(r"lorem ipsum|dummy text", re.I),
    ),
    QualityRule(
        name="plaintext_password",
        category="COMPLIANCE",
        severity=Severity.ERROR,
        message="Plain-text password detected. Remove it or move it to a secrets manager.",
        triggered=_contains(r"password:\s*[a-z0-9]", re.I),
    ),
    QualityRule(
        name="review_process",
        category="STRUCTURE",
        severity=Severity.INFO,
        message="Add a section describing the review/approval process.",
        triggered=_missing(r"review"),
    ),
    QualityRule(
        name="owner_named",
        category="GOVERNANCE",
        severity=Severity.INFO,
        message="No responsible party named. Document the owner/responsible unit.",
        triggered=_missing(r"owner|responsible|verantwortlich"),
    ),
)


def derive_findings(text: str, rules: Sequence[QualityRule]) -> List[DerivedFinding]:
    """
    Deterministic quality scan (no LLM).
    Findings come back in rule declaration order.
    """
    text = text or ""
    findings: List[DerivedFinding] = []
    for rule in rules:
        finding = rule.check(text)
        if finding is not None:
            findings.append(finding)
    return findings


def derive_draft_findings(draft: str) -> List[DerivedFinding]:
    return derive_findings(draft, DRAFT_RULES)


def derive_document_findings(content: str | None) -> List[DerivedFinding]:
    return derive_findings(strip_html(content), DOCUMENT_RULES)
