"""
Persists generated slot sequences (recurring or bulk) in batches.

Each draft goes through the ConflictDetector before it is inserted, so a
draft also conflicts with drafts written earlier in the same run. Batches are
committed every `batch_size` rows and the provider row is re-locked at the
start of every batch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable, List, Literal, Optional
from uuid import UUID

from hms_scheduling.core.config import settings
from hms_scheduling.core.errors import GenerationAbortedError, NotFoundError
from hms_scheduling.models.slot import AppointmentSlot
from hms_scheduling.scheduling.drafts import SlotDraft
from hms_scheduling.services.conflicts import Conflict, ConflictDetector
from hms_scheduling.services.slot_store import SlotStore

logger = logging.getLogger(__name__)

ConflictPolicy = Literal["skip", "abort"]


@dataclass
class SkippedDraft:
    draft: SlotDraft
    conflicts: List[Conflict]


@dataclass
class GenerationReport:
    created: List[AppointmentSlot] = field(default_factory=list)
    # captured before commit; stays readable once the rows are expired
    created_slot_ids: List[UUID] = field(default_factory=list)
    skipped: List[SkippedDraft] = field(default_factory=list)
    cancelled: bool = False
    # start_time of the last draft whose batch was committed
    checkpoint: Optional[datetime] = None


class SlotWriter:
    def __init__(
        self,
        store: SlotStore,
        detector: ConflictDetector,
        batch_size: Optional[int] = None,
    ):
        self.store = store
        self.detector = detector
        self.batch_size = max(1, batch_size or settings.bulk_commit_batch_size)

    def write(
        self,
        drafts: Iterable[SlotDraft],
        conflict_policy: ConflictPolicy = "skip",
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> GenerationReport:
        """
        Insert every conflict-free draft.

        policy "skip": conflicting drafts are left out and listed in the report.
        policy "abort": the uncommitted batch is rolled back and
        GenerationAbortedError is raised carrying the ids and checkpoint of the
        batches committed before it, which stay.
        `should_cancel` is polled before each draft; on True the pending batch
        is committed and the report comes back with cancelled=True.
        """
        db = self.store.db
        report = GenerationReport()
        pending: List[AppointmentSlot] = []
        locked_provider = None

        for draft in drafts:
            if should_cancel is not None and should_cancel():
                report.cancelled = True
                logger.info("Slot generation cancelled after %d slots", len(report.created) + len(pending))
                break

            if locked_provider != draft.provider_id:
                if self.store.get_provider(draft.provider_id, lock=True) is None:
                    db.rollback()
                    raise NotFoundError("Provider not found")
                locked_provider = draft.provider_id

            conflicts = self.detector.detect_conflicts(
                draft.start_time,
                draft.end_time,
                draft.provider_id,
                resource_id=draft.resource_id,
            )
            if conflicts:
                if conflict_policy == "abort":
                    db.rollback()
                    raise GenerationAbortedError(
                        f"Generated slot at {draft.start_time.isoformat()} conflicts with existing schedule",
                        conflicts,
                        created_slot_ids=report.created_slot_ids,
                        checkpoint=report.checkpoint,
                    )
                report.skipped.append(SkippedDraft(draft=draft, conflicts=conflicts))
                continue

            pending.append(self.store.create_slot(draft))
            if len(pending) >= self.batch_size:
                self._commit(pending, report)
                pending = []
                # the commit released the row lock
                locked_provider = None

        if pending:
            self._commit(pending, report)

        logger.info(
            "Slot generation finished: %d created, %d skipped%s",
            len(report.created),
            len(report.skipped),
            " (cancelled)" if report.cancelled else "",
        )
        return report

    def _commit(self, batch: List[AppointmentSlot], report: GenerationReport) -> None:
        # read before commit expires the instances
        checkpoint = batch[-1].start_time
        slot_ids = [s.slot_id for s in batch]
        self.store.db.commit()
        report.created.extend(batch)
        report.created_slot_ids.extend(slot_ids)
        report.checkpoint = checkpoint
        logger.debug("Committed %d generated slots up to %s", len(batch), checkpoint.isoformat())
