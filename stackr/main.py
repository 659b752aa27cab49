import logging
import os
import time
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI

# Load env from the project root before settings are read
project_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv(dotenv_path=os.path.join(project_dir, ".env"))

from stackr.core.config import settings, validate_config
from stackr.core.errors import register_error_handlers
from stackr.core.logging import configure_logging
from stackr.core.middleware.request_id import RequestIdMiddleware
from stackr.api import achievements, challenges, health, leaderboard

configure_logging(settings.ENV, settings.LOG_LEVEL)
validate_config(strict=settings.CONFIG_STRICT)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger("stackr")
    app.state.startup_time = time.time()
    if settings.DATABASE_URL:
        from stackr.core.database import create_all_tables

        create_all_tables()
        logger.info("Challenge store: SQL")
    else:
        logger.info("Challenge store: in-memory")
    try:
        yield
    finally:
        logger.info("Stopping Stackr challenge engine...")


app = FastAPI(title="Stackr - Savings Challenges", lifespan=lifespan)

# Middlewares
app.add_middleware(RequestIdMiddleware)

register_error_handlers(app)

app.include_router(challenges.router, tags=["challenges"])
app.include_router(achievements.router, tags=["achievements"])
app.include_router(leaderboard.router, tags=["leaderboard"])
app.include_router(health.root_router)
