"""FastAPI application factory for the strikesim pricing API."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from strikesim.config import VERSION, Settings
from strikesim.errors import (
    InvalidTargetKind,
    ParseError,
    SerializationError,
    SimulationError,
    ValidationError,
)
from strikesim.logging_config import setup_logging
from strikesim.web.schemas import ErrorResponse

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ParseError: 422,
    ValidationError: 400,
    InvalidTargetKind: 400,
    SerializationError: 500,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: initialize and cleanup resources."""
    settings = app.state.settings
    logger.info("Starting strikesim API...")

    from strikesim.web.cache import CacheService

    app.state.cache = await CacheService.create(
        settings.redis_url, settings.cache_ttl, settings.cache_max_entries
    )

    logger.info("strikesim API ready")
    yield

    if app.state.cache:
        await app.state.cache.close()
    logger.info("strikesim API shutdown complete")


async def simulation_error_handler(request: Request, exc: SimulationError) -> JSONResponse:
    status = next(
        (code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)), 400
    )
    logger.warning("%s %s failed (%d): %s", request.method, request.url.path, status, exc)
    body = ErrorResponse(error={"code": exc.code, "message": str(exc)})
    return JSONResponse(status_code=status, content=body.model_dump())


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if settings is None:
        settings = Settings()
    setup_logging()

    app = FastAPI(
        title="strikesim API",
        description="Regime-switching stochastic-volatility Monte Carlo for target hit probabilities",
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Accept"],
    )

    app.add_exception_handler(SimulationError, simulation_error_handler)
    _register_routers(app)

    return app


def _register_routers(app: FastAPI):
    """Register all API routers."""
    from strikesim.web.routers.simulation import router as simulation_router
    from strikesim.web.routers.system import router as system_router

    app.include_router(simulation_router, prefix="/api/v1")
    app.include_router(system_router, prefix="/api/v1")
