"""FastAPI dependency injection for the gallery services."""

from fastapi import Request

from gallery.services.gallery_service import GalleryService


def get_gallery_service(request: Request) -> GalleryService:
    """Return the application-wide GalleryService stored on app.state."""
    return request.app.state.gallery_service
