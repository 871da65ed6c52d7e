"""
Scheduling error taxonomy.

Services raise these; main.py maps them to HTTP responses. Every check that
raises one of these runs before the write it guards.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional, Sequence
from uuid import UUID

if TYPE_CHECKING:
    from hms_scheduling.services.conflicts import Conflict


class SchedulingError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SchedulingError):
    """Malformed request: start >= end, bad pattern, invalid transition."""

    status_code = 400


class NotFoundError(SchedulingError):
    status_code = 404


class ConflictError(SchedulingError):
    """Overlap or time-off collision. Carries the detected conflicts."""

    status_code = 409

    def __init__(self, message: str, conflicts: Sequence["Conflict"] = ()):
        super().__init__(message)
        self.conflicts = list(conflicts)


class CapacityExceededError(SchedulingError):
    status_code = 409


class ImmutableStateError(SchedulingError):
    """Editing or deleting a slot that still holds bookings."""

    status_code = 409


class TerminalStateError(SchedulingError):
    """Mutating a COMPLETED / CANCELLED / NO_SHOW appointment."""

    status_code = 409


class GenerationAbortedError(ConflictError):
    """
    A generated slot conflicted under the "abort" policy.

    Batches committed before the conflict stay; `created_slot_ids` and
    `checkpoint` tell the caller what exists and where to resume.
    """

    def __init__(
        self,
        message: str,
        conflicts: Sequence["Conflict"] = (),
        created_slot_ids: Sequence[UUID] = (),
        checkpoint: Optional[datetime] = None,
    ):
        super().__init__(message, conflicts)
        self.created_slot_ids = list(created_slot_ids)
        self.checkpoint = checkpoint
