"""Gallery listing service.

Runs the request-scoped pipeline: fetch the branch tree, group it into
root images and folders, resolve layouts, and package the result with an
explicit status so an upstream failure is distinguishable from an empty
gallery.  Nothing is kept between calls except what the fetcher caches.
"""

from __future__ import annotations

import logging
from typing import Literal

from gallery.config import GalleryConfig
from gallery.models.gallery import (
    ClassifiedTree,
    FolderResponse,
    GalleryItem,
    GalleryResponse,
    ListingStatus,
)
from gallery.services.layout_resolver import LayoutResolver
from gallery.services.path_classifier import classify_tree, combine
from gallery.services.tree_fetcher import FetchOutcome, TreeFetcher

logger = logging.getLogger(__name__)

GalleryView = Literal["all", "images", "folders"]


class GalleryService:
    """Compose the tree fetcher, path classifier, and layout resolver."""

    def __init__(
        self,
        config: GalleryConfig,
        fetcher: TreeFetcher,
        resolver: LayoutResolver,
    ) -> None:
        self.config = config
        self.fetcher = fetcher
        self.resolver = resolver

    async def _classified(self) -> tuple[FetchOutcome, ClassifiedTree]:
        outcome = await self.fetcher.fetch()
        if not outcome.ok:
            logger.warning("Serving empty gallery: %s", outcome.reason)
            return outcome, ClassifiedTree()
        return outcome, classify_tree(outcome.entries, self.config)

    async def get_gallery(self, view: GalleryView = "all") -> GalleryResponse:
        """Return the ordered, layout-resolved gallery for *view*.

        ``images`` lists root images only, ``folders`` lists folders only,
        ``all`` combines both in the configured order.
        """
        outcome, classified = await self._classified()

        items: list[GalleryItem]
        if view == "images":
            items = list(classified.root_images)
        elif view == "folders":
            items = list(classified.folders)
        else:
            items = combine(classified, self.config.item_order)

        resolution = await self.resolver.resolve(items)

        status: ListingStatus
        if not outcome.ok:
            status = "upstream_failed"
        elif resolution.items:
            status = "ok"
        else:
            status = "empty"

        return GalleryResponse(
            items=resolution.items,
            status=status,
            truncated=outcome.truncated,
            layout_status=resolution.status,
        )

    async def get_folder(self, folder_name: str) -> FolderResponse | None:
        """Return one folder's images with layouts, or ``None`` if unknown."""
        outcome, classified = await self._classified()
        folder = next(
            (f for f in classified.folders if f.name == folder_name), None
        )
        if folder is None:
            return None

        resolution = await self.resolver.resolve(folder.images)
        return FolderResponse(
            id=folder.id,
            name=folder.name,
            path=folder.path,
            items=resolution.items,
            truncated=outcome.truncated,
            layout_status=resolution.status,
        )
