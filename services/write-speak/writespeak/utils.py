from PIL import Image
import base64
import io
import re
from typing import Optional, Tuple

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(;[\w-]+=[\w-]+)*;base64,", re.IGNORECASE)


def split_data_url(value: str) -> Tuple[Optional[str], str]:
    """Return (mime type or None, raw base64 payload)."""
    match = _DATA_URL_RE.match(value)
    if not match:
        return None, value
    return match.group("mime"), value[match.end():]


def to_data_url(data: bytes, mime: str = "image/png") -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('utf-8')}"


def image_to_png_bytes(image: Image.Image) -> bytes:
    buffered = io.BytesIO()
    image.save(buffered, format="PNG")
    return buffered.getvalue()


def flatten_onto(image: Image.Image, background=(255, 255, 255)) -> Image.Image:
    """
    Composite an image onto an opaque background so no transparent holes remain.
    """
    if image.mode == "RGB":
        return image
    rgba = image.convert("RGBA")
    canvas = Image.new("RGB", rgba.size, background)
    canvas.paste(rgba, mask=rgba.split()[-1])
    return canvas
