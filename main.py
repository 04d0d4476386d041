from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from careerzone.config import get_settings
from careerzone.infrastructure.database import SessionLocal, engine, initialize_database
from careerzone.infrastructure.retention import NotificationRetentionSweeper
from careerzone.interfaces.api.routes import register_routes


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables, run the retention sweep and release resources on shutdown."""

    settings = get_settings()
    initialize_database()
    sweeper = NotificationRetentionSweeper(
        SessionLocal,
        retention_days=settings.notification_retention_days,
        interval_seconds=settings.notification_sweep_interval_seconds,
    )
    sweeper.start()
    app.state.retention_sweeper = sweeper
    yield
    await sweeper.stop()
    engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = get_settings()
    app = FastAPI(title="CareerZone Ledger", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)
    return app


app = create_app()
