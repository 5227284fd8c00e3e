"""Group repository tree entries into root images and folders.

Only ``blob`` entries under the configured root prefix with an image
extension are considered.  The path remainder after the prefix decides
where an image goes:

- ``pics/a.jpg`` -- one segment, a root image.
- ``pics/b/c.png`` -- more segments, a member of folder ``b`` (or of
  ``b/x`` for ``pics/b/x/c.png`` when nested folders are enabled).

Folders are only created when their first image is seen, so a folder with
no surviving images never appears in the output.
"""

from __future__ import annotations

import hashlib
import logging
import posixpath
from collections.abc import Iterable
from urllib.parse import quote

from gallery.config import GalleryConfig, ItemOrder
from gallery.models.gallery import (
    ClassifiedTree,
    FolderItem,
    GalleryItem,
    ImageItem,
    TreeEntry,
)

logger = logging.getLogger(__name__)


def name_sort_key(name: str) -> tuple[str, str]:
    """Case-insensitive ordering with the raw name as tie-breaker."""
    return (name.casefold(), name)


def folder_id(folder_path: str) -> str:
    """Deterministic id for a folder, derived from its path only."""
    digest = hashlib.sha1(folder_path.encode("utf-8")).hexdigest()[:16]
    return f"folder-{digest}"


def is_image_path(path: str, extensions: Iterable[str]) -> bool:
    _, ext = posixpath.splitext(path)
    return ext[1:].lower() in extensions


def image_url(config: GalleryConfig, path: str) -> str:
    """Build the raw-content URL for *path*; no network access needed."""
    return config.raw_url_template.format(
        owner=config.repo_owner,
        repo=config.repo_name,
        branch=config.branch,
        path=quote(path),
    )


def classify_tree(entries: Iterable[TreeEntry], config: GalleryConfig) -> ClassifiedTree:
    """Split *entries* into name-sorted root images and name-sorted folders."""
    prefix = config.root_prefix
    root_images: list[ImageItem] = []
    folders: dict[str, FolderItem] = {}

    for entry in entries:
        if entry.kind != "blob" or not entry.path.startswith(prefix):
            continue
        if not is_image_path(entry.path, config.image_extensions):
            continue

        segments = entry.path[len(prefix):].split("/")
        file_name = segments[-1]
        if not file_name:
            continue

        image = ImageItem(
            id=entry.content_hash,
            name=file_name,
            path=entry.path,
            url=image_url(config, entry.path),
        )
        if len(segments) == 1:
            root_images.append(image)
            continue

        key_segments = segments[:-1] if config.nested_folders else segments[:1]
        if any(not s for s in key_segments):
            logger.debug("Skipping path with empty folder segment: %s", entry.path)
            continue
        key = "/".join(key_segments)

        folder = folders.get(key)
        if folder is None:
            folder_path = f"{prefix}{key}"
            folder = FolderItem(id=folder_id(folder_path), name=key, path=folder_path)
            folders[key] = folder
        folder.images.append(image)

    for folder in folders.values():
        folder.images.sort(key=lambda img: name_sort_key(img.name))

    return ClassifiedTree(
        root_images=sorted(root_images, key=lambda img: name_sort_key(img.name)),
        folders=sorted(folders.values(), key=lambda f: name_sort_key(f.name)),
    )


def combine(classified: ClassifiedTree, order: ItemOrder = "images_first") -> list[GalleryItem]:
    """Flatten a :class:`ClassifiedTree` into one ordered gallery list."""
    if order == "folders_first":
        return [*classified.folders, *classified.root_images]
    return [*classified.root_images, *classified.folders]
