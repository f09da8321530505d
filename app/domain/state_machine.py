from __future__ import annotations
from typing import Dict, FrozenSet, Set

from app.core.errors import InvalidStateError
from app.db.models import JobStatus

# Run transitions. FAILED -> RUNNING re-runs a failed job in place;
# PENDING/RUNNING/FAILED -> COMPLETED includes the operator approve path.
# Retry is a reset to PENDING, not a run transition (see ensure_retry_allowed).
_ALLOWED: Dict[JobStatus, Set[JobStatus]] = {
    JobStatus.PENDING: {JobStatus.RUNNING, JobStatus.COMPLETED, JobStatus.CANCELLED},
    JobStatus.RUNNING: {JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED},
    JobStatus.FAILED: {JobStatus.RUNNING, JobStatus.COMPLETED},
    JobStatus.COMPLETED: set(),
    JobStatus.CANCELLED: set(),
}


def sources_of(to_status: JobStatus) -> FrozenSet[JobStatus]:
    """Statuses from which ``to_status`` may be entered; used in conditional UPDATEs."""
    return frozenset(s for s, targets in _ALLOWED.items() if to_status in targets)


RETRYABLE: FrozenSet[JobStatus] = frozenset(s for s in JobStatus if s is not JobStatus.RUNNING)


class TransitionError(InvalidStateError):
    def __init__(self, from_status: JobStatus, to_status: JobStatus) -> None:
        super().__init__(f"invalid transition: {from_status.value} -> {to_status.value}")
        self.from_status = from_status
        self.to_status = to_status


def ensure_transition_allowed(from_status: JobStatus, to_status: JobStatus) -> None:
    allowed = _ALLOWED.get(from_status, set())
    if to_status not in allowed:
        raise TransitionError(from_status=from_status, to_status=to_status)


def ensure_retry_allowed(status: JobStatus) -> None:
    if status not in RETRYABLE:
        raise InvalidStateError("job is currently running and cannot be retried")


def ensure_cancel_allowed(status: JobStatus) -> None:
    if JobStatus.CANCELLED not in _ALLOWED.get(status, set()):
        raise InvalidStateError(f"job cannot be cancelled in status {status.value}")
