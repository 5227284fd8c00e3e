"""Gallery service configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic_settings import BaseSettings

LayoutStrategy = Literal["rule", "agent", "agent_per_item"]
ItemOrder = Literal["images_first", "folders_first"]


class GalleryConfig(BaseModel):
    """Immutable description of where the gallery lives and what counts as an image.

    Built once from :class:`Settings` and handed to the tree fetcher and the
    path classifier at construction, so both can run against fixtures.
    """

    model_config = ConfigDict(frozen=True)

    repo_owner: str = "studio-prototyping"
    repo_name: str = "allpi-gallery"
    branch: str = "main"
    root_prefix: str = "pics/"
    """Always ends with ``/`` unless empty (the repository root)."""

    image_extensions: frozenset[str] = frozenset({"jpg", "jpeg", "png", "gif", "webp"})
    """Lowercase, without the leading dot."""

    nested_folders: bool = False
    item_order: ItemOrder = "images_first"
    github_api_base: str = "https://api.github.com"
    raw_url_template: str = (
        "https://raw.githubusercontent.com/{owner}/{repo}/{branch}/{path}"
    )

    @field_validator("root_prefix")
    @classmethod
    def _directory_prefix(cls, value: str) -> str:
        value = value.strip("/")
        return f"{value}/" if value else ""

    @field_validator("image_extensions")
    @classmethod
    def _normalize_extensions(cls, value: frozenset[str]) -> frozenset[str]:
        return frozenset(ext.strip().lower().lstrip(".") for ext in value)

    @property
    def tree_url(self) -> str:
        """Recursive git-tree endpoint for the configured branch."""
        return (
            f"{self.github_api_base.rstrip('/')}/repos/"
            f"{self.repo_owner}/{self.repo_name}/git/trees/{self.branch}"
        )


_defaults = GalleryConfig()


class Settings(BaseSettings):
    """Gallery service settings.

    All fields can be overridden via environment variables with
    the GALLERY_ prefix (e.g., GALLERY_GITHUB_TOKEN).  Repository and
    classification defaults come from :class:`GalleryConfig`.
    """

    repo_owner: str = _defaults.repo_owner
    repo_name: str = _defaults.repo_name
    branch: str = _defaults.branch
    root_prefix: str = _defaults.root_prefix
    image_extensions: list[str] = sorted(_defaults.image_extensions)
    nested_folders: bool = _defaults.nested_folders
    item_order: ItemOrder = _defaults.item_order
    github_api_base: str = _defaults.github_api_base
    raw_url_template: str = _defaults.raw_url_template
    github_token: str | None = None
    cache_ttl_seconds: float = 0.0
    request_timeout_seconds: float = 10.0
    layout_strategy: LayoutStrategy = "rule"
    agent_model: str = "google-gla:gemini-2.0-flash"
    host: str = "0.0.0.0"
    port: int = 8000
    behind_proxy: bool = False
    cors_origins: list[str] = ["http://localhost:3000"]

    model_config = {
        "env_prefix": "GALLERY_",
        "env_file": ".env",
        "extra": "ignore",
    }

    def gallery_config(self) -> GalleryConfig:
        """Freeze the repository/classification subset of the settings."""
        return GalleryConfig(
            repo_owner=self.repo_owner,
            repo_name=self.repo_name,
            branch=self.branch,
            root_prefix=self.root_prefix,
            image_extensions=frozenset(self.image_extensions),
            nested_folders=self.nested_folders,
            item_order=self.item_order,
            github_api_base=self.github_api_base,
            raw_url_template=self.raw_url_template,
        )


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (singleton)."""
    return Settings()
