from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from coverdesk.api.routes import (
    activity,
    catalog,
    conflicts,
    health,
    notifications,
    substitutions,
    teachers,
    timetable,
    workload,
)
from coverdesk.core.config import get_settings
from coverdesk.core.exceptions import AppError
from coverdesk.core.logging import configure_logging
from coverdesk.core.middleware import RequestLoggingMiddleware, RequestSizeLimitMiddleware
from coverdesk.db.bootstrap import ensure_schema

settings = get_settings()
configure_logging(settings)


@asynccontextmanager
async def lifespan(_: FastAPI):
    ensure_schema()
    yield


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_size_bytes)
app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(teachers.router, prefix=f"{settings.api_prefix}/teachers", tags=["teachers"])
app.include_router(catalog.router, prefix=settings.api_prefix, tags=["catalog"])
app.include_router(timetable.router, prefix=settings.api_prefix, tags=["timetable"])
app.include_router(conflicts.router, prefix=settings.api_prefix, tags=["conflicts"])
app.include_router(substitutions.router, prefix=settings.api_prefix, tags=["substitutions"])
app.include_router(workload.router, prefix=settings.api_prefix, tags=["workload"])
app.include_router(notifications.router, prefix=settings.api_prefix, tags=["notifications"])
app.include_router(activity.router, prefix=settings.api_prefix, tags=["activity"])
