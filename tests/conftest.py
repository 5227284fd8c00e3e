"""Shared pytest fixtures for gallery tests."""

from __future__ import annotations

import hashlib
from collections.abc import Callable

import httpx
import pytest
from fastapi import FastAPI

from gallery.config import GalleryConfig
from gallery.routers.gallery import router as gallery_router
from gallery.services.gallery_service import GalleryService
from gallery.services.layout_resolver import RuleLayoutResolver
from gallery.services.tree_fetcher import TreeFetcher


def make_tree(*paths: str, truncated: bool = False) -> dict:
    """Build a git-tree API payload; paths ending in ``/`` become trees."""
    entries = []
    for path in paths:
        kind = "tree" if path.endswith("/") else "blob"
        clean = path.rstrip("/")
        entries.append(
            {
                "path": clean,
                "mode": "040000" if kind == "tree" else "100644",
                "type": kind,
                "sha": hashlib.sha1(clean.encode()).hexdigest(),
                "url": f"https://api.github.com/blob/{clean}",
            }
        )
    return {"sha": "root-sha", "url": "https://api.github.com/tree", "tree": entries, "truncated": truncated}


def sha_of(path: str) -> str:
    return hashlib.sha1(path.encode()).hexdigest()


@pytest.fixture()
def gallery_config() -> GalleryConfig:
    return GalleryConfig(repo_owner="octo", repo_name="pics-repo", branch="main")


@pytest.fixture()
def make_fetcher(gallery_config: GalleryConfig) -> Callable[..., TreeFetcher]:
    """Return a factory creating a TreeFetcher served by a mock transport.

    The factory accepts either a JSON payload (returned with status 200)
    or a full ``httpx.MockTransport`` handler.
    """

    def factory(payload=None, handler=None, **kwargs) -> TreeFetcher:
        if handler is None:
            def handler(request: httpx.Request) -> httpx.Response:
                return httpx.Response(200, json=payload)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return TreeFetcher(gallery_config, client, **kwargs)

    return factory


@pytest.fixture()
def sample_tree() -> dict:
    return make_tree(
        "README.md",
        "pics/",
        "pics/a.jpg",
        "pics/b/",
        "pics/b/d.png",
        "pics/b/c.png",
        "pics/e/",
        "pics/e/f.jpg",
    )


@pytest.fixture()
def build_app(gallery_config: GalleryConfig, make_fetcher) -> Callable[..., FastAPI]:
    """Return a factory for a test app wired with a mocked GitHub tree."""

    def factory(payload=None, handler=None, resolver=None) -> FastAPI:
        test_app = FastAPI()
        fetcher = make_fetcher(payload, handler)
        test_app.state.gallery_service = GalleryService(
            gallery_config, fetcher, resolver or RuleLayoutResolver()
        )
        test_app.include_router(gallery_router)

        @test_app.get("/health")
        async def health_check() -> dict[str, str]:
            return {"status": "ok"}

        return test_app

    return factory


@pytest.fixture()
async def app_client(build_app, sample_tree) -> httpx.AsyncClient:
    """Create a test app over the sample tree and yield an async HTTP client."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=build_app(sample_tree)),
        base_url="http://testserver",
    ) as client:
        yield client
