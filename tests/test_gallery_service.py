"""Tests for the end-to-end gallery listing pipeline."""

from __future__ import annotations

from collections.abc import Sequence

import httpx

from conftest import make_tree
from gallery.config import GalleryConfig
from gallery.models.gallery import LayoutRequestItem
from gallery.services.gallery_service import GalleryService
from gallery.services.layout_resolver import DelegatedLayoutResolver, RuleLayoutResolver


class _RecordingClassifier:
    def __init__(self) -> None:
        self.calls = 0

    async def classify(self, items: Sequence[LayoutRequestItem]):
        self.calls += 1
        raise RuntimeError("should fall back")


def _service(config: GalleryConfig, fetcher, resolver=None) -> GalleryService:
    return GalleryService(config, fetcher, resolver or RuleLayoutResolver())


async def test_all_view_images_first(gallery_config, make_fetcher, sample_tree) -> None:
    response = await _service(gallery_config, make_fetcher(sample_tree)).get_gallery()

    assert response.status == "ok"
    assert [(i.type, i.name, i.layout) for i in response.items] == [
        ("image", "a.jpg", "vertical"),
        ("folder", "b", "horizontal"),
        ("folder", "e", "horizontal"),
    ]
    assert [img.name for img in response.items[1].images] == ["c.png", "d.png"]
    assert response.layout_status == "ok"


async def test_folders_first_order(make_fetcher, sample_tree) -> None:
    config = GalleryConfig(repo_owner="octo", repo_name="pics-repo", item_order="folders_first")
    response = await _service(config, make_fetcher(sample_tree)).get_gallery()
    assert [i.type for i in response.items] == ["folder", "folder", "image"]


async def test_images_and_folders_views(gallery_config, make_fetcher, sample_tree) -> None:
    service = _service(gallery_config, make_fetcher(sample_tree))

    images = await service.get_gallery("images")
    folders = await service.get_gallery("folders")

    assert [i.name for i in images.items] == ["a.jpg"]
    assert [i.name for i in folders.items] == ["b", "e"]


async def test_upstream_failure_is_distinguishable(gallery_config, make_fetcher) -> None:
    classifier = _RecordingClassifier()
    fetcher = make_fetcher(handler=lambda request: httpx.Response(503))
    service = _service(gallery_config, fetcher, DelegatedLayoutResolver(classifier))

    response = await service.get_gallery()

    assert response.items == []
    assert response.status == "upstream_failed"
    assert response.layout_status == "skipped"
    assert classifier.calls == 0


async def test_empty_tree_never_invokes_classifier(gallery_config, make_fetcher) -> None:
    classifier = _RecordingClassifier()
    service = _service(gallery_config, make_fetcher(make_tree("README.md")), DelegatedLayoutResolver(classifier))

    response = await service.get_gallery()

    assert response.items == []
    assert response.status == "empty"
    assert classifier.calls == 0


async def test_classifier_failure_uses_defaults(gallery_config, make_fetcher, sample_tree) -> None:
    service = _service(
        gallery_config, make_fetcher(sample_tree), DelegatedLayoutResolver(_RecordingClassifier())
    )
    response = await service.get_gallery()

    assert response.status == "ok"
    assert response.layout_status == "failed"
    assert [i.layout for i in response.items] == ["vertical", "horizontal", "horizontal"]


async def test_truncated_flag_is_surfaced(gallery_config, make_fetcher) -> None:
    service = _service(gallery_config, make_fetcher(make_tree("pics/a.jpg", truncated=True)))
    response = await service.get_gallery()
    assert response.truncated is True
    assert response.status == "ok"


async def test_get_folder(gallery_config, make_fetcher, sample_tree) -> None:
    folder = await _service(gallery_config, make_fetcher(sample_tree)).get_folder("b")

    assert folder is not None
    assert folder.path == "pics/b"
    assert [(i.name, i.layout) for i in folder.items] == [
        ("c.png", "vertical"),
        ("d.png", "vertical"),
    ]


async def test_get_missing_folder(gallery_config, make_fetcher, sample_tree) -> None:
    service = _service(gallery_config, make_fetcher(sample_tree))
    assert await service.get_folder("nope") is None


async def test_repeated_listing_is_identical(gallery_config, make_fetcher, sample_tree) -> None:
    service = _service(gallery_config, make_fetcher(sample_tree))
    assert await service.get_gallery() == await service.get_gallery()
