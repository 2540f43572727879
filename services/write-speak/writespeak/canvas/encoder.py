import io
import logging
from typing import Optional

from PIL import Image, UnidentifiedImageError

from .. import config
from ..errors import InputError
from ..utils import flatten_onto, image_to_png_bytes, to_data_url

logger = logging.getLogger("image_encoder")

MAX_UPLOAD_BYTES = 10 * 1024 * 1024


def encode_raster(image: Image.Image) -> str:
    """PNG data URL of a raster. Same pixels always give the same string."""
    return to_data_url(image_to_png_bytes(image), "image/png")


def is_image_mime(content_type: Optional[str]) -> bool:
    return bool(content_type) and content_type.split(";")[0].strip().lower().startswith("image/")


def encode_upload(data: bytes, content_type: Optional[str], filename: Optional[str] = None) -> str:
    """
    Read user-provided image bytes into a PNG data URL.
    Non-image MIME types are rejected before anything goes downstream. Any
    format Pillow opens (JPEG, GIF, WebP, BMP, TIFF) is flattened onto the
    canvas background and re-encoded, so recognition only ever sees PNG.
    """
    if not is_image_mime(content_type):
        logger.info("rejected upload %s (%s)", filename, content_type)
        raise InputError(f"Unsupported file type: {content_type or 'unknown'}", code="input_error")
    if not data:
        raise InputError("Empty file", code="unreadable_image")
    if len(data) > MAX_UPLOAD_BYTES:
        raise InputError("File too large (max 10MB).", code="unreadable_image")

    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return encode_raster(flatten_onto(img, config.CANVAS_BACKGROUND))
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
        logger.info("unreadable upload %s: %s", filename, e)
        raise InputError("Could not read image", code="unreadable_image")
