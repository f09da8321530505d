from __future__ import annotations

from typing import Any, Dict


class PipelineError(Exception):
    code = "PIPELINE_ERROR"
    http_status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def context(self) -> Dict[str, Any]:
        """Extra fields rendered next to ``detail`` and ``code`` in error responses."""
        return {}


class NotFoundError(PipelineError):
    code = "NOT_FOUND"
    http_status = 404

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class InvalidStateError(PipelineError):
    code = "INVALID_STATE"
    http_status = 409


class JobProcessingError(PipelineError):
    """Draft generation failed; the job is already saved as FAILED."""

    code = "GENERATION_FAILED"
    http_status = 502

    def __init__(self, job_id: str, cause: BaseException) -> None:
        super().__init__(f"draft generation failed for job {job_id}: {str(cause) or type(cause).__name__}")
        self.job_id = job_id

    def context(self) -> Dict[str, Any]:
        return {"job_id": self.job_id}
