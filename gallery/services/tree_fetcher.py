"""GitHub tree fetcher.

Retrieves the recursive file listing of one branch through the git-tree
API.  Every failure (transport error, non-2xx status, undecodable body,
schema mismatch) is logged and reported as a failed :class:`FetchOutcome`
instead of being raised, so callers decide once what an empty gallery
means.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Literal

import httpx
from pydantic import ValidationError

from gallery.config import GalleryConfig
from gallery.models.gallery import TreeEntry, TreeListing

logger = logging.getLogger(__name__)

GITHUB_ACCEPT = "application/vnd.github+json"
GITHUB_API_VERSION = "2022-11-28"


@dataclass(frozen=True)
class FetchOutcome:
    """Result of one tree fetch: either entries or the reason there are none."""

    status: Literal["ok", "failed"]
    entries: list[TreeEntry] = field(default_factory=list)
    truncated: bool = False
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @classmethod
    def failed(cls, reason: str) -> FetchOutcome:
        return cls(status="failed", reason=reason)


class TreeFetcher:
    """Fetch the branch tree configured in :class:`GalleryConfig`.

    Successful listings are kept for *cache_ttl* seconds (``0`` disables
    caching), so results may be stale by up to that horizon.

    Usage::

        async with httpx.AsyncClient() as client:
            fetcher = TreeFetcher(config, client, token=settings.github_token)
            outcome = await fetcher.fetch()
    """

    def __init__(
        self,
        config: GalleryConfig,
        client: httpx.AsyncClient,
        token: str | None = None,
        cache_ttl: float = 0.0,
    ) -> None:
        self.config = config
        self.client = client
        self._token = token
        self._cache_ttl = cache_ttl
        self._cached: FetchOutcome | None = None
        self._cached_at = 0.0

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": GITHUB_ACCEPT,
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def clear_cache(self) -> None:
        self._cached = None
        self._cached_at = 0.0

    async def fetch(self) -> FetchOutcome:
        """Return the branch listing, from cache when still fresh."""
        if self._cached is not None and self._cache_ttl > 0:
            if time.monotonic() - self._cached_at < self._cache_ttl:
                return self._cached

        outcome = await self._fetch_remote()
        if outcome.ok and self._cache_ttl > 0:
            self._cached = outcome
            self._cached_at = time.monotonic()
        return outcome

    async def _fetch_remote(self) -> FetchOutcome:
        url = self.config.tree_url
        try:
            response = await self.client.get(
                url, params={"recursive": "1"}, headers=self._headers()
            )
        except httpx.HTTPError as exc:
            logger.warning("Error fetching repository tree from %s: %s", url, exc)
            return FetchOutcome.failed(f"transport error: {exc}")

        if not response.is_success:
            logger.warning(
                "Failed to fetch repository tree from %s. Status: %d",
                url,
                response.status_code,
            )
            return FetchOutcome.failed(f"HTTP {response.status_code}")

        try:
            listing = TreeListing.model_validate(response.json())
        except ValueError as exc:
            # ValidationError is a ValueError; so is a JSON decode error
            kind = "schema mismatch" if isinstance(exc, ValidationError) else "invalid JSON"
            logger.warning("Failed to parse repository tree (%s): %s", kind, exc)
            return FetchOutcome.failed(kind)

        if listing.truncated:
            logger.warning(
                "Repository tree for %s/%s@%s is truncated; %d entries returned, "
                "some images may be missing",
                self.config.repo_owner,
                self.config.repo_name,
                self.config.branch,
                len(listing.entries),
            )

        logger.debug("Fetched %d tree entries from %s", len(listing.entries), url)
        return FetchOutcome(
            status="ok", entries=listing.entries, truncated=listing.truncated
        )
