import logging

from fastapi import FastAPI

from lending.core.settings import settings
from lending.db.init_db import init_db
from lending.db.session import engine
from lending.utils.redis_client import close_redis_client

logger = logging.getLogger(__name__)


def register_event_handlers(app: FastAPI) -> None:
    @app.on_event("startup")
    async def on_startup() -> None:
        logger.info("Application startup environment=%s", settings.environment)
        if settings.seed_admin_on_startup:
            await init_db()

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        await close_redis_client()
        await engine.dispose()
        logger.info("Application shutdown")
