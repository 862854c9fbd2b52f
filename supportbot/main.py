"""FastAPI application entry point."""

import asyncio
import contextlib
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from supportbot.api.dependencies import get_cached_config, get_container
from supportbot.api.middleware import ExceptionHandlerMiddleware, RequestLoggingMiddleware
from supportbot.api.routes import router as api_router
from supportbot.conversation.context_manager import ConversationContextManager
from supportbot.core.logging import get_logger, setup_logging

logger = get_logger(__name__)

CONTEXT_SWEEP_INTERVAL_SECONDS = 60 * 60


async def _sweep_idle_contexts(contexts: ConversationContextManager) -> None:
    while True:
        await asyncio.sleep(CONTEXT_SWEEP_INTERVAL_SECONDS)
        contexts.evict_idle()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    config = get_cached_config()

    # Setup logging
    setup_logging(
        log_level=config.log_level,
        json_format=config.log_json and not config.debug,
        log_dir=config.log_dir,
    )

    # Wire DI container
    container = get_container()
    container.wire(modules=["supportbot.api.routes"])

    logger.info(
        "application_starting",
        app_name=config.app_name,
        llm_provider=config.llm.provider,
        llm_model=config.llm.model,
        store_backend=config.store.backend,
        ranking_strategy=config.ranking.strategy,
    )

    content_cache = container.content_cache()
    registry = container.registry()
    await content_cache.start()
    await registry.start()
    sweeper = asyncio.create_task(_sweep_idle_contexts(container.context_manager()))

    logger.info(
        "container_initialized",
        llm_provider=type(container.llm()).__name__,
        ranker=type(container.ranker()).__name__,
        corpus=content_cache.status(),
    )

    yield

    logger.info("application_shutting_down")

    sweeper.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await sweeper
    await registry.stop()
    await content_cache.stop()
    await container.store().close()

    # Unwire DI container
    container.unwire()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    config = get_cached_config()

    app = FastAPI(
        title=config.app_name,
        description="Chat support engine with help-center retrieval and human handoff",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(ExceptionHandlerMiddleware)

    # Include routers
    app.include_router(api_router, prefix="/api/v1")

    # Root endpoint
    @app.get("/")
    async def root():
        return {
            "name": config.app_name,
            "version": "0.1.0",
            "docs": "/docs",
            "health": "/api/v1/health",
        }

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    config = get_cached_config()
    uvicorn.run(
        "supportbot.main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
    )
