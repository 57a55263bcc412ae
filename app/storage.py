"""
Local asset store for product avatars.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from app.domain.catalog.errors import ValidationError
from app.media import build_public_url, ensure_dir, media_root, resolve_media_path_from_url

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}
EXTENSION_ALIASES = {"jpeg": "jpg"}
MAX_IMAGE_BYTES = 5 * 1024 * 1024

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
JPEG_SIGNATURE = b"\xFF\xD8\xFF"
GIF_SIGNATURES = (b"GIF87a", b"GIF89a")
RIFF_SIGNATURE = b"RIFF"
WEBP_SIGNATURE = b"WEBP"


def _sniff_image(contents: bytes) -> str | None:
    if contents.startswith(PNG_SIGNATURE):
        return "png"
    if contents.startswith(JPEG_SIGNATURE):
        return "jpg"
    if contents.startswith(GIF_SIGNATURES):
        return "gif"
    if contents.startswith(RIFF_SIGNATURE) and contents[8:12] == WEBP_SIGNATURE:
        return "webp"
    return None


def image_extension(filename: str | None, content_type: str | None, contents: bytes) -> str:
    """Return the file extension of an uploaded image or raise ValidationError.

    The declared type (content type, else file name) must agree with the
    bytes actually uploaded.
    """
    expected = ALLOWED_IMAGE_TYPES.get((content_type or "").lower())
    if expected is None and filename and "." in filename:
        suffix = filename.rsplit(".", 1)[1].lower()
        suffix = EXTENSION_ALIASES.get(suffix, suffix)
        if suffix in ALLOWED_IMAGE_TYPES.values():
            expected = suffix
    if expected is None:
        raise ValidationError("Only image files are allowed!")
    if not contents:
        raise ValidationError("Empty image file")
    if len(contents) > MAX_IMAGE_BYTES:
        raise ValidationError("Image too large (max 5MB)")
    if _sniff_image(contents) != expected:
        raise ValidationError("Invalid image file")
    return expected


def build_media_key(*parts: str) -> str:
    return "/".join(p.strip("/") for p in parts if p and p.strip("/"))


@dataclass(frozen=True)
class LocalStorage:
    def save(self, key: str, contents: bytes) -> str:
        dest_path = media_root() / key
        ensure_dir(dest_path.parent)
        dest_path.write_bytes(contents)
        return build_public_url(key)

    def delete_by_url(self, url: str | None) -> None:
        if not url:
            return
        old_path = resolve_media_path_from_url(url)
        if old_path is None or not old_path.exists():
            return
        try:
            old_path.unlink()
        except OSError:
            logger.warning("Could not remove media file path=%s", old_path)


def save_product_avatar(
    storage: LocalStorage,
    product_id: str,
    filename: str | None,
    content_type: str | None,
    contents: bytes,
) -> str:
    ext = image_extension(filename, content_type, contents)
    key = build_media_key("products", product_id, f"{uuid.uuid4()}.{ext}")
    return storage.save(key, contents)


def get_storage() -> LocalStorage:
    return LocalStorage()
