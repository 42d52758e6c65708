from __future__ import annotations

import base64
import binascii
import io
import logging

from PIL import Image, UnidentifiedImageError

from ..core.exceptions import ValidationError

logger = logging.getLogger(__name__)

JPEG_MIME = "image/jpeg"


def strip_data_uri(value: str) -> str:
    """Return the base64 payload of a data URI (or the value itself if it has no header)."""
    value = (value or "").strip()
    if "," in value:
        return value.split(",", 1)[1]
    return value


def decode_image(value: str) -> bytes:
    payload = strip_data_uri(value)
    if not payload:
        raise ValidationError("image is required")
    try:
        return base64.b64decode(payload, validate=True)
    except (ValueError, binascii.Error) as exc:
        raise ValidationError("invalid image data") from exc


def to_data_uri(data: bytes, mime: str = JPEG_MIME) -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def require_image(value: str) -> str:
    """Check that a captured frame is a decodable image and return it unchanged."""
    data = decode_image(value)
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
    except (UnidentifiedImageError, OSError) as exc:
        raise ValidationError("invalid image data") from exc
    return value.strip()


def compress_image(value: str, max_width: int = 300, quality: int = 70) -> str:
    """Resize to at most ``max_width`` (keeping aspect ratio) and re-encode as JPEG.

    Transparent areas are flattened onto white. If the image cannot be
    decoded the original value is returned unchanged.
    """

    try:
        data = decode_image(value)
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            width, height = img.size
            if width > max_width:
                height = max(1, round(height * max_width / width))
                width = max_width
                img = img.resize((width, height), Image.LANCZOS)

            canvas = Image.new("RGB", img.size, (255, 255, 255))
            if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
                rgba = img.convert("RGBA")
                canvas.paste(rgba, mask=rgba.split()[-1])
            else:
                canvas.paste(img.convert("RGB"))

            out = io.BytesIO()
            canvas.save(out, format="JPEG", quality=int(quality))
    except (ValidationError, UnidentifiedImageError, OSError) as exc:
        logger.warning("Image compression failed, returning original: %s", exc)
        return value
    return to_data_uri(out.getvalue())
