import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import settings
from .core.errors import (
    GatewayError,
    GatewayTimeout,
    InvalidCoordinates,
    NotFound,
    WageNormalizationError,
)
from .core.logging import setup_logging
from .db import close_db, init_db
from .routers import health, locations, organizations, wage_reports

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info(f"Starting {settings.app_name} ({settings.app_env})")
    await init_db()
    yield
    await close_db()


app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc), "error": type(exc).__name__})


@app.exception_handler(WageNormalizationError)
async def wage_normalization_error(request: Request, exc: WageNormalizationError):
    return _error(422, exc)


@app.exception_handler(InvalidCoordinates)
async def invalid_coordinates(request: Request, exc: InvalidCoordinates):
    return _error(422, exc)


@app.exception_handler(NotFound)
async def not_found(request: Request, exc: NotFound):
    return _error(404, exc)


@app.exception_handler(GatewayError)
async def gateway_error(request: Request, exc: GatewayError):
    logger.error(f"POI provider failure on {request.url.path}: {exc}")
    return _error(504 if isinstance(exc, GatewayTimeout) else 502, exc)


API_PREFIX = "/api/v1"
app.include_router(health.router, prefix=API_PREFIX)
app.include_router(locations.router, prefix=API_PREFIX)
app.include_router(organizations.router, prefix=API_PREFIX)
app.include_router(wage_reports.router, prefix=API_PREFIX)


@app.get("/")
def root():
    return {"name": settings.app_name, "env": settings.app_env, "message": "OK"}
