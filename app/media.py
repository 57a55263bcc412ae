from __future__ import annotations

from pathlib import Path
from urllib.parse import urlparse

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MediaSettings(BaseSettings):
    media_root: str = Field(default="uploads", alias="MEDIA_ROOT")
    media_url: str = Field(default="/media", alias="MEDIA_URL")
    public_base_url: str = Field(default="http://127.0.0.1:8000", alias="PUBLIC_BASE_URL")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", case_sensitive=False)


def media_settings() -> MediaSettings:
    return MediaSettings()


def media_root() -> Path:
    return Path(media_settings().media_root).resolve()


def media_url() -> str:
    return media_settings().media_url.rstrip("/")


def public_base_url() -> str:
    return media_settings().public_base_url.rstrip("/")


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def build_public_url(relative_path: str) -> str:
    return f"{public_base_url()}{media_url()}/{relative_path.lstrip('/')}"


def resolve_media_path_from_url(url: str) -> Path | None:
    """Map a public media URL back to a file under the media root, or None."""
    try:
        path = urlparse(url).path
    except ValueError:
        return None
    prefix = media_url()
    if not path.startswith(prefix + "/"):
        return None
    root = media_root()
    candidate = (root / path[len(prefix) + 1:]).resolve()
    if root in candidate.parents:
        return candidate
    return None
