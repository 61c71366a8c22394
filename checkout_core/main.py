# checkout_core/main.py
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from checkout_core.api.handlers import register_exception_handlers
from checkout_core.api.routers import carts, checkout, health
from checkout_core.data.database import Base, engine
from checkout_core.utils.logging import get_logger
from checkout_core.utils.retry import db_connect_retry
from checkout_core.utils.settings import ENVIRONMENT, LOG_LEVEL, SEED_DEMO_DATA

# IMPORT WSZYSTKICH MODELI NA POCZĄTKU (PRZED JAKIMKOLWIEK CREATE_ALL)
from checkout_core.data import models  # noqa: F401

logger = get_logger(__name__)


@db_connect_retry()
def init_db() -> None:
    logger.info(f"Models registered in Base.metadata: {list(Base.metadata.tables.keys())}")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    if SEED_DEMO_DATA:
        from checkout_core.data.seed import seed

        seed()
    yield
    engine.dispose()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Checkout Service",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Include routers
    app.include_router(health.router)
    app.include_router(carts.router)
    app.include_router(checkout.router)

    register_exception_handlers(app)
    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "checkout_core.main:app",
        host="0.0.0.0",
        port=8000,
        reload=ENVIRONMENT == "development",
        log_level=LOG_LEVEL.lower(),
    )
