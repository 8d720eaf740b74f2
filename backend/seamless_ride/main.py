"""
Seamless Ride Booking API - Main Application Entry Point

Trip search and seat reservation for 18-seater shuttles:
- Per-trip serialized, all-or-nothing seat confirmation
- Confirmed-seat unique index as the storage-level guarantee
- Redis for shared trip claims and trip search caching
- Structured logging with request correlation
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from seamless_ride.api.middleware import RequestLoggingMiddleware
from seamless_ride.api.router import api_router
from seamless_ride.core.config import Settings, get_settings
from seamless_ride.core.exceptions import register_exception_handlers
from seamless_ride.core.logging import get_logger, setup_logging
from seamless_ride.core.metrics import metrics_endpoint
from seamless_ride.db.base import Base
from seamless_ride.db.session import create_engine_from_settings, create_session_factory
from seamless_ride.infrastructure.redis_client import close_redis, connect_redis
from seamless_ride.services.container import build_services
from seamless_ride.services.seed_service import seed_trips


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifecycle: build shared resources once, tear them down on shutdown."""
        setup_logging(settings)
        logger = get_logger(__name__)

        logger.info(
            "application_starting",
            app=settings.APP_NAME,
            version=settings.APP_VERSION,
            environment=settings.ENVIRONMENT,
            claim_strategy=settings.CLAIM_STRATEGY,
        )

        engine = create_engine_from_settings(settings)
        session_factory = create_session_factory(engine)

        if settings.DB_AUTO_CREATE:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

        redis_client = await connect_redis(settings)
        if redis_client:
            logger.info("redis_ready")
        else:
            logger.warning("redis_unavailable", message="Running without cache")

        services = build_services(settings, session_factory, redis_client)
        app.state.services = services

        if settings.SEED_TRIPS:
            if await seed_trips(session_factory):
                await services.cache.invalidate_all()

        yield

        await close_redis(redis_client)
        await engine.dispose()
        logger.info("application_shutdown")

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Trip search and concurrency-safe seat reservation API",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Restrict in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)
    app.include_router(api_router)

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """Health check endpoint for Docker and load balancers."""
        services = request.app.state.services
        return {
            "status": "healthy",
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "claim_strategy": services.ledger.claim.name,
            "cache": await services.cache.stats(),
        }

    @app.get("/metrics", tags=["Health"], include_in_schema=False)
    async def metrics():
        return metrics_endpoint()

    @app.get("/", tags=["Root"])
    async def root():
        return {
            "message": f"Welcome to {settings.APP_NAME}",
            "version": settings.APP_VERSION,
            "docs": "/docs",
        }

    return app


app = create_app()
