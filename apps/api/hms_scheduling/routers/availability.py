from fastapi import APIRouter, Depends
from datetime import date
from uuid import UUID

from hms_scheduling.routers.deps import get_scheduling_service
from hms_scheduling.schemas.availability import AvailabilityDayOut, AvailabilityRangeOut
from hms_scheduling.services.availability import AvailabilityOptions
from hms_scheduling.services.scheduling_service import SchedulingService

router = APIRouter()


@router.get("/{provider_id}/availability", response_model=AvailabilityDayOut)
def get_provider_availability(
    provider_id: UUID,
    date: date,
    include_time_off: bool = True,
    include_bookings: bool = True,
    svc: SchedulingService = Depends(get_scheduling_service),
):
    opts = AvailabilityOptions(include_time_off=include_time_off, include_bookings=include_bookings)
    return AvailabilityDayOut.from_day(svc.availability_for_date(provider_id, date, opts))


@router.get("/{provider_id}/availability/range", response_model=AvailabilityRangeOut)
def get_provider_availability_range(
    provider_id: UUID,
    start_date: date,
    end_date: date,
    include_time_off: bool = True,
    include_bookings: bool = True,
    include_past_dates: bool = False,
    svc: SchedulingService = Depends(get_scheduling_service),
):
    opts = AvailabilityOptions(
        include_time_off=include_time_off,
        include_bookings=include_bookings,
        include_past_dates=include_past_dates,
    )
    days = svc.availability_for_range(provider_id, start_date, end_date, opts)
    return AvailabilityRangeOut(
        provider_id=provider_id,
        start_date=start_date,
        end_date=end_date,
        days=[AvailabilityDayOut.from_day(d) for d in days],
    )
