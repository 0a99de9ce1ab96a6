"""Main application entry point."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.router import router
from .config import AppConfig, StoreConfig, load_app_config
from .exceptions import ChargerQueueError, ConfigurationError, Forbidden, InvalidInput
from .service import StateService
from .store import GitHubContentsStore, InMemoryStore, StateStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_store(config: StoreConfig) -> StateStore:
    """
    Build the store backend named in the configuration.

    Raises:
        ConfigurationError: If the GitHub backend is missing token, owner or repo
    """
    if config.backend == "memory":
        logger.warning("Using in-memory store: state is lost on restart")
        return InMemoryStore()

    missing = [name for name in ("token", "owner", "repo") if not getattr(config, name)]
    if missing:
        raise ConfigurationError(f"Missing store configuration: {', '.join(missing)}")

    return GitHubContentsStore(
        owner=config.owner,
        repo=config.repo,
        token=config.token,
        path=config.path,
        branch=config.branch,
        api_url=config.api_url,
        commit_message=config.commit_message,
        timeout_seconds=config.timeout_seconds,
    )


async def _invalid_input_handler(request: Request, exc: InvalidInput) -> PlainTextResponse:
    return PlainTextResponse(str(exc), status_code=400)


async def _forbidden_handler(request: Request, exc: Forbidden) -> PlainTextResponse:
    logger.warning(f"Rejected {request.method} {request.url.path}: bad or missing key")
    return PlainTextResponse("Forbidden", status_code=403)


async def _service_error_handler(request: Request, exc: ChargerQueueError) -> PlainTextResponse:
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return PlainTextResponse(f"Error: {exc}", status_code=500)


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> PlainTextResponse:
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)


def create_app(
    config: Optional[AppConfig] = None,
    store: Optional[StateStore] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Application configuration (loaded from file or environment if None)
        store: Store backend to use instead of the configured one

    Returns:
        Configured FastAPI app
    """
    config = config or load_app_config()
    store = store or create_store(config.store)

    service = StateService(
        store=store,
        spots=[s.model_dump(mode="json") for s in config.allocation.spots],
        internal_key=config.auth.internal_key,
        max_write_retries=config.allocation.max_write_retries,
        strict_write_all=config.allocation.strict_write_all,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        logger.info(f"Charger queue ready (store: {store.name})")
        if not config.auth.internal_key:
            logger.warning("No internal key configured: mutating requests are not authenticated")

        yield  # Application runs here

        logger.info("Shutting down...")
        await store.close()
        logger.info("Shutdown complete")

    app = FastAPI(
        title="Charger Queue",
        description="Shared EV charger queue with priority ordering and type matching",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.service = service
    app.state.started_at = datetime.now()

    app.add_exception_handler(InvalidInput, _invalid_input_handler)
    app.add_exception_handler(Forbidden, _forbidden_handler)
    app.add_exception_handler(ChargerQueueError, _service_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)

    app.include_router(router, prefix="/api/v1")
    return app


def main():
    """Run the application."""
    config = load_app_config()

    uvicorn.run(
        "charger_queue.main:create_app",
        factory=True,
        host=config.api.host,
        port=config.api.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
