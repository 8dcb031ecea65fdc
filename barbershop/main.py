# barbershop/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlmodel import Session

from .config import get_settings
from .data import ensure_admin, seed_services
from .db import create_db_and_tables, engine
from .errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    SchedulingError,
    StoreUnavailableError,
    ValidationError,
)
from .routers import admin_routes, auth_routes, barbers_routes, bookings_routes, users_routes

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    with Session(engine) as session:
        if settings.SEED_SERVICES:
            seed_services(session)
        ensure_admin(session, settings)
    logger.info(f"{settings.APP_NAME} started")
    yield
    logger.info(f"{settings.APP_NAME} shutting down")


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

app.include_router(auth_routes.router)
app.include_router(users_routes.router)
app.include_router(admin_routes.router)
app.include_router(barbers_routes.router)
app.include_router(bookings_routes.router)

ERROR_STATUS = {
    ValidationError: 422,
    PermissionDeniedError: 403,
    NotFoundError: 404,
    ConflictError: 409,
    StoreUnavailableError: 503,
}


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    status_code = 500
    for error_type, code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            status_code = code
            break
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


@app.get("/health")
def health_check():
    return {"status": "ok"}
