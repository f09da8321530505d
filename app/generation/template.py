from __future__ import annotations

import json
from datetime import datetime, timezone

from app.generation.contracts import GenerationContext


class TemplateDraftGenerator:
    """Deterministic markdown skeleton; used when no model is configured."""

    async def generate(self, context: GenerationContext) -> str:
        now = datetime.now(timezone.utc).isoformat()
        meta = [f"- Generated at: {now}"]
        if context.document_title:
            meta.append(f"- Document: {context.document_title}")
        if context.connector_name:
            meta.append(f"- Source: {context.connector_name}")

        parts = [f"# Automated draft ({context.intent})", "\n".join(meta)]
        if context.payload:
            parts.append("## Context\n\n" + json.dumps(context.payload, indent=2, ensure_ascii=False))
        parts.append(
            "## TODOs\n\n"
            "- [ ] Editorial review of the content\n"
            "- [ ] Check compliance and terminology\n"
            "- [ ] Approve changes"
        )
        return "\n\n".join(parts)
