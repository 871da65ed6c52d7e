from typing import List
from uuid import UUID

from pydantic import BaseModel

from hms_scheduling.services.conflicts import Conflict, ConflictType


class ConflictOut(BaseModel):
    type: ConflictType
    message: str
    slot_ids: List[UUID] = []
    appointment_ids: List[UUID] = []
    time_off_ids: List[UUID] = []

    @classmethod
    def from_conflict(cls, c: Conflict) -> "ConflictOut":
        return cls(
            type=c.type,
            message=c.message,
            slot_ids=c.slot_ids,
            appointment_ids=c.appointment_ids,
            time_off_ids=c.time_off_ids,
        )
