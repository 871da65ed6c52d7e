from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hms_scheduling.core.config import settings
from hms_scheduling.core.errors import ConflictError, GenerationAbortedError, SchedulingError
from hms_scheduling.core.logging import configure_logging
from hms_scheduling.schemas.conflicts import ConflictOut

from hms_scheduling.routers.providers import router as providers_router
from hms_scheduling.routers.providers import resources_router
from hms_scheduling.routers.provider_schedules import router as provider_schedules_router
from hms_scheduling.routers.time_off import router as time_off_router
from hms_scheduling.routers.slots import router as slots_router
from hms_scheduling.routers.availability import router as availability_router
from hms_scheduling.routers.appointments import router as appointments_router

configure_logging(settings.log_level)

app = FastAPI(title="HMS Scheduling API")

# Comma-separated list, e.g.:
# CORS_ORIGINS="http://localhost:5173,https://admin.example.org"
allow_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]

# Safe fallback for local dev if env var not set
if not allow_origins:
    allow_origins = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SchedulingError)
def scheduling_error_handler(request: Request, exc: SchedulingError):
    conflicts = []
    if isinstance(exc, ConflictError):
        conflicts = [ConflictOut.from_conflict(c).model_dump(mode="json") for c in exc.conflicts]
    content = {"detail": exc.message, "conflicts": conflicts}
    if isinstance(exc, GenerationAbortedError):
        content["created_slot_ids"] = [str(i) for i in exc.created_slot_ids]
        content["checkpoint"] = exc.checkpoint.isoformat() if exc.checkpoint else None
    return JSONResponse(status_code=exc.status_code, content=content)


app.include_router(providers_router, prefix="/providers", tags=["providers"])
app.include_router(availability_router, prefix="/providers", tags=["availability"])
app.include_router(resources_router, prefix="/resources", tags=["resources"])
app.include_router(provider_schedules_router, prefix="/provider-schedules", tags=["provider-schedules"])
app.include_router(time_off_router, prefix="/provider-time-off", tags=["provider-time-off"])
app.include_router(slots_router, prefix="/slots", tags=["slots"])
app.include_router(appointments_router, prefix="/appointments", tags=["appointments"])


@app.get("/health")
def health():
    return {"status": "ok"}
