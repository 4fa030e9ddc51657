"""
Instagram Feed Proxy - FastAPI application

Run:
    cd backend
    uvicorn main:app --reload
"""

import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from cache import cache_router
from instagram.errors import FeedError
from instagram.routes_fastapi import router as instagram_router, close_clients, feed_error_handler

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("[App] Instagram feed proxy starting")
    yield
    await close_clients()
    logger.info("[App] HTTP clients closed")


def create_app() -> FastAPI:
    """Build the FastAPI application with all routers and error handlers."""
    app = FastAPI(title="Instagram Feed Proxy", lifespan=lifespan)
    app.include_router(instagram_router)
    app.include_router(cache_router)
    app.add_exception_handler(FeedError, feed_error_handler)
    return app


app = create_app()
