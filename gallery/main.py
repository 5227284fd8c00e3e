"""Gallery FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gallery.config import get_settings
from gallery.services.gallery_service import GalleryService
from gallery.services.layout_resolver import build_layout_resolver
from gallery.services.tree_fetcher import TreeFetcher

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application startup and shutdown.

    On startup:
    - Open one shared httpx client for GitHub requests.
    - Create the TreeFetcher, the configured LayoutResolver and the
      GalleryService, and store the service on app.state.

    On shutdown:
    - Close the httpx client.
    """
    settings = get_settings()
    config = settings.gallery_config()

    client = httpx.AsyncClient(timeout=settings.request_timeout_seconds)
    fetcher = TreeFetcher(
        config,
        client,
        token=settings.github_token,
        cache_ttl=settings.cache_ttl_seconds,
    )
    resolver = build_layout_resolver(settings.layout_strategy, settings.agent_model)
    app.state.gallery_service = GalleryService(config, fetcher, resolver)
    logger.info(
        "Serving %s/%s@%s (prefix %r, layout strategy %s)",
        config.repo_owner,
        config.repo_name,
        config.branch,
        config.root_prefix,
        settings.layout_strategy,
    )

    yield

    await client.aclose()


app = FastAPI(
    title="Pics Gallery",
    description="Image gallery listing backed by a GitHub repository",
    version="0.1.0",
    lifespan=lifespan,
)

# Behind a reverse proxy (same origin): no CORS needed.
# In local dev: allow the frontend dev server origin.
settings = get_settings()
if not settings.behind_proxy:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

from gallery.routers.gallery import router as gallery_router  # noqa: E402

app.include_router(gallery_router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Simple health check endpoint."""
    return {"status": "ok"}
