from fastapi import BackgroundTasks, Depends
from sqlalchemy.orm import Session

from hms_scheduling.core.database import get_db
from hms_scheduling.services.collaborators import default_subscribers
from hms_scheduling.services.events import BackgroundEventPublisher
from hms_scheduling.services.scheduling_service import SchedulingService


def get_scheduling_service(
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
) -> SchedulingService:
    """One service per request; collaborator delivery runs after the response is sent."""
    publisher = BackgroundEventPublisher(background_tasks, default_subscribers())
    return SchedulingService(db, publisher=publisher)
