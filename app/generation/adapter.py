from __future__ import annotations

import asyncio

from app.core.config import Settings
from app.generation.contracts import DraftGenerator, GenerationContext, GenerationTimeoutError
from app.generation.engine import OpenAIDraftGenerator
from app.generation.template import TemplateDraftGenerator

DEFAULT_GENERATION_TIMEOUT_S = 60.0


class DeadlineDraftGenerator:
    """Bounds the wrapped generator's call; other failures pass through unchanged."""

    def __init__(self, inner: DraftGenerator, *, timeout_s: float = DEFAULT_GENERATION_TIMEOUT_S) -> None:
        self.inner = inner
        self.timeout_s = timeout_s

    async def generate(self, context: GenerationContext) -> str:
        try:
            return await asyncio.wait_for(self.inner.generate(context), timeout=self.timeout_s)
        except asyncio.TimeoutError as e:
            raise GenerationTimeoutError(f"draft generation timed out after {self.timeout_s}s") from e


def build_draft_generator(settings: Settings) -> DraftGenerator:
    kind = settings.draft_generator.strip().lower()
    if kind == "openai":
        inner: DraftGenerator = OpenAIDraftGenerator(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            max_output_tokens=settings.generation_max_output_tokens,
        )
    elif kind == "template":
        inner = TemplateDraftGenerator()
    else:
        raise ValueError(f"unknown draft generator: {settings.draft_generator}")

    timeout_s = settings.generation_timeout_s
    if timeout_s and timeout_s > 0:
        return DeadlineDraftGenerator(inner, timeout_s=timeout_s)
    return inner
