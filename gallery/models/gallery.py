"""Pydantic models for the repository tree and the gallery listing."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

Layout = Literal["horizontal", "vertical"]
ItemType = Literal["image", "folder"]


class TreeEntry(BaseModel):
    """A single path record from the GitHub git-tree API."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    path: str
    kind: Literal["blob", "tree", "commit"] = Field(alias="type")
    """``blob`` for files, ``tree`` for directories, ``commit`` for submodules."""

    content_hash: str = Field(alias="sha")


class TreeListing(BaseModel):
    """Validated body of ``GET /repos/{owner}/{repo}/git/trees/{branch}``.

    Extra fields returned by GitHub (``url``, ``mode``, ``size``) are ignored.
    """

    model_config = ConfigDict(populate_by_name=True)

    sha: str = ""
    entries: list[TreeEntry] = Field(alias="tree")
    truncated: bool = False


class ImageItem(BaseModel):
    """A single image, either at the gallery root or inside a folder."""

    type: Literal["image"] = "image"
    id: str
    """Git blob sha of the file."""

    name: str
    path: str
    url: str
    layout: Layout | None = None


class FolderItem(BaseModel):
    """A folder of images grouped by path under the root prefix."""

    type: Literal["folder"] = "folder"
    id: str
    """Synthetic id derived from the folder path, not from any remote hash."""

    name: str
    path: str
    images: list[ImageItem] = Field(default_factory=list)
    layout: Layout | None = None


GalleryItem = Annotated[Union[ImageItem, FolderItem], Field(discriminator="type")]


class ClassifiedTree(BaseModel):
    """Root images and folders extracted from a tree listing."""

    root_images: list[ImageItem] = Field(default_factory=list)
    folders: list[FolderItem] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Layout classification contract
# ---------------------------------------------------------------------------


class LayoutRequestItem(BaseModel):
    """What the layout classifier is told about each item."""

    id: str
    type: ItemType
    name: str
    path: str
    image_count: int | None = None
    """Number of images in a folder; ``None`` for single images."""


class LayoutDecision(BaseModel):
    """A layout chosen for one item."""

    id: str = Field(description="The identifier of the item this decision is for")
    layout: Layout = Field(
        description="The suggested layout: 'horizontal' or 'vertical'"
    )


class LayoutDecisionBatch(BaseModel):
    """Structured output of the batched layout classifier."""

    items_with_layout: list[LayoutDecision] = Field(
        description="One layout decision for every submitted item id"
    )


class SingleLayoutDecision(BaseModel):
    """Structured output of the per-item layout classifier."""

    layout: Layout = Field(
        description="The suggested layout: 'horizontal' or 'vertical'"
    )
    reason: str = Field(
        default="", description="Brief reasoning behind the suggestion"
    )


# ---------------------------------------------------------------------------
# API responses
# ---------------------------------------------------------------------------


ListingStatus = Literal["ok", "empty", "upstream_failed"]
LayoutStatus = Literal["ok", "partial", "failed", "skipped"]


class GalleryResponse(BaseModel):
    """Response for ``GET /gallery``."""

    items: list[GalleryItem]
    status: ListingStatus
    """``upstream_failed`` when the tree could not be fetched at all."""

    truncated: bool = False
    """GitHub reported an incomplete tree; some images may be missing."""

    layout_status: LayoutStatus = "skipped"


class FolderResponse(BaseModel):
    """Response for ``GET /gallery/folders/{folder_name}``."""

    id: str
    name: str
    path: str
    items: list[ImageItem]
    truncated: bool = False
    layout_status: LayoutStatus = "skipped"
