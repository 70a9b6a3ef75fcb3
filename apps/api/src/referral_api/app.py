from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from referral_api.core.settings import settings
from referral_api.db.session import engine
from .api.routes import api_router
from .core.logging import configure_logging
from .observability.tracing import configure_tracing
from .services.rewards import RewardRates


APP_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    rates: RewardRates = app.state.reward_rates
    logger.info(
        "Referral reward service starting",
        level1_rate=str(rates.level1_rate),
        level2_rate=str(rates.level2_rate),
        environment=settings.environment,
    )
    try:
        yield
    finally:
        await engine.dispose()
        logger.info("Referral reward service stopped")


def create_app() -> FastAPI:
    """Application factory for the referral reward service."""
    configure_logging(
        service_name="referral-rewards-api",
        environment=settings.environment,
        version=APP_VERSION,
    )

    # Misconfigured rates must stop the process before it serves traffic.
    reward_rates = RewardRates.from_settings(settings)

    app = FastAPI(
        title="Referral Rewards API",
        version=APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.reward_rates = reward_rates

    configure_tracing(
        app,
        service_name="referral-rewards-api",
        service_version=APP_VERSION,
        environment=settings.environment,
    )

    app.include_router(api_router)

    @app.get("/healthz", tags=["Health"])
    async def health_check() -> dict[str, str]:
        return {
            "status": "ok",
            "environment": settings.environment,
            "version": APP_VERSION,
        }

    return app
