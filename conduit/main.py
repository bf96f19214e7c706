import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from conduit.cache import cache
from conduit.config import settings
from conduit.database import engine
from conduit.exception_handlers import register_exception_handlers
from conduit.middleware import TimingMiddleware
from conduit.routers import articles, comments, profiles, tags, users
from conduit.schemas import GenericErrorModel, HealthResponse

SERVICE_NAME = "conduit-api"

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting %s %s (%s)", SERVICE_NAME, settings.APP_VERSION, settings.APP_ENV)
    await cache.connect()  # app works without Redis
    yield
    # Shutdown
    await cache.disconnect()
    await engine.dispose()
    logger.info("Shutdown complete")


app = FastAPI(
    title="Conduit API",
    description="Social blogging API: users, profiles, articles, comments and tags",
    version=settings.APP_VERSION,
    lifespan=lifespan,
    responses={
        422: {"model": GenericErrorModel, "description": "Validation error"},
        500: {"model": GenericErrorModel, "description": "Internal error"},
    },
)

# Middleware
app.add_middleware(TimingMiddleware, timeout_seconds=settings.REQUEST_TIMEOUT_SECONDS)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Routers
app.include_router(users.router)
app.include_router(profiles.router)
app.include_router(articles.router)
app.include_router(comments.router)
app.include_router(tags.router)


@app.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc),
        service=SERVICE_NAME,
        version=settings.APP_VERSION,
        cache_info=cache.stats,
    )


def run() -> None:
    uvicorn.run(
        "conduit.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
