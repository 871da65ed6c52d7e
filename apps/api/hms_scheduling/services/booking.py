from __future__ import annotations

import logging
import time
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy.exc import OperationalError

from hms_scheduling.core.config import settings
from hms_scheduling.services.slot_store import SlotStore

logger = logging.getLogger(__name__)


class BookingCoordinator:
    """
    Reserve/release one unit of slot capacity.

    Both operations are one conditional UPDATE each (SlotStore.update_slot_counts).
    Lock timeouts and serialization failures surface as OperationalError and are
    retried with exponential backoff; a "slot is full" answer is final.
    Callers should reserve before any other write in their transaction, since a
    retry rolls the transaction back.
    """

    def __init__(
        self,
        store: SlotStore,
        attempts: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.store = store
        self.attempts = max(1, attempts if attempts is not None else settings.reservation_retry_attempts)
        self.backoff_seconds = (
            backoff_seconds if backoff_seconds is not None else settings.reservation_retry_backoff_seconds
        )
        self._sleep = sleep

    def reserve(self, slot_id: UUID) -> bool:
        reserved = self._with_retry(lambda: self.store.update_slot_counts(slot_id, +1), "reserve", slot_id)
        if not reserved:
            logger.info("Reservation refused for slot %s (missing, closed or full)", slot_id)
        return reserved

    def release(self, slot_id: UUID) -> None:
        released = self._with_retry(lambda: self.store.update_slot_counts(slot_id, -1), "release", slot_id)
        if not released:
            logger.debug("Release on slot %s was a no-op", slot_id)

    def _with_retry(self, op: Callable[[], bool], name: str, slot_id: UUID) -> bool:
        delay = self.backoff_seconds
        for attempt in range(1, self.attempts + 1):
            try:
                return op()
            except OperationalError:
                self.store.db.rollback()
                if attempt == self.attempts:
                    logger.error("%s on slot %s failed after %d attempts", name, slot_id, attempt)
                    raise
                logger.warning("%s on slot %s hit store contention (attempt %d), retrying", name, slot_id, attempt)
                self._sleep(delay)
                delay *= 2
        return False
