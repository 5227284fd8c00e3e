"""Gallery API router.

Endpoints:
- GET /gallery -- root images and folders with layouts
- GET /gallery/folders/{folder_name} -- images inside one folder
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from gallery.dependencies import get_gallery_service
from gallery.models.gallery import FolderResponse, GalleryResponse
from gallery.services.gallery_service import GalleryService, GalleryView

router = APIRouter(prefix="/gallery", tags=["gallery"])


@router.get("", response_model=GalleryResponse)
async def list_gallery(
    view: GalleryView = Query(
        default="all",
        description="'images' for root images, 'folders' for folders, 'all' for both",
    ),
    service: GalleryService = Depends(get_gallery_service),
) -> GalleryResponse:
    """List gallery items with a resolved layout each.

    ``status`` is ``upstream_failed`` when the repository tree could not be
    fetched, ``empty`` when it was fetched but holds no images.
    """
    return await service.get_gallery(view)


@router.get("/folders/{folder_name:path}", response_model=FolderResponse)
async def get_folder(
    folder_name: str,
    service: GalleryService = Depends(get_gallery_service),
) -> FolderResponse:
    """List the images of one folder, sorted by name."""
    folder = await service.get_folder(folder_name)
    if folder is None:
        raise HTTPException(status_code=404, detail="Folder not found")
    return folder
