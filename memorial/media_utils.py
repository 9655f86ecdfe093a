"""Photo upload helpers: allow-list checks, generated filenames and thumbnails."""
import logging
import os
import secrets
import time
from typing import Optional, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)

THUMBNAIL_SIZE = (300, 300)
MAX_PHOTO_BYTES = 5 * 1024 * 1024
SUPPORTED_IMAGE_TYPES = {
    "image/jpeg": [".jpg", ".jpeg"],
    "image/png": [".png"],
    "image/webp": [".webp"],
}
ALLOWED_EXTENSIONS = {ext for exts in SUPPORTED_IMAGE_TYPES.values() for ext in exts}


def is_allowed_image(mime_type: Optional[str], filename: Optional[str]) -> bool:
    """Both the declared MIME type and the filename extension must be on the allow-list."""
    ext = os.path.splitext(filename or "")[1].lower()
    return (mime_type or "").lower() in SUPPORTED_IMAGE_TYPES and ext in ALLOWED_EXTENSIONS


def generate_filename(original_name: str) -> str:
    """
    Collision-resistant stored name: ``<epoch-ms>-<random>.<ext>``.

    Only the extension of the client's filename is kept.
    """
    ext = os.path.splitext(original_name)[1].lower()
    return f"{int(time.time() * 1000)}-{secrets.token_hex(6)}{ext}"


def create_thumbnail(source_path: str, thumbnail_dir: str, base_name: str) -> Optional[Tuple[str, int, int]]:
    """
    Write ``thumb_<base_name>.jpg`` (at most 300x300, EXIF-upright) next to the upload.

    Returns (path, width, height), or None when Pillow cannot decode the source;
    callers then serve the original file as its own thumbnail.
    """
    thumb_path = os.path.join(thumbnail_dir, f"thumb_{base_name}.jpg")
    try:
        with Image.open(source_path) as original:
            img = ImageOps.exif_transpose(original)
            if img.mode in ("RGBA", "LA", "P"):
                img = img.convert("RGBA")
                flattened = Image.new("RGB", img.size, (255, 255, 255))
                flattened.paste(img, mask=img.getchannel("A"))
                img = flattened
            elif img.mode != "RGB":
                img = img.convert("RGB")
            img.thumbnail(THUMBNAIL_SIZE, Image.Resampling.LANCZOS)
            img.save(thumb_path, "JPEG", quality=85, optimize=True)
            return thumb_path, img.width, img.height
    except (OSError, UnidentifiedImageError, ValueError) as e:
        logger.warning("Thumbnail skipped for %s: %s", source_path, e)
        return None
