"""Image helpers shared by the vision adapters and the image-analysis service."""

from __future__ import annotations

import io

import structlog
from PIL import Image, UnidentifiedImageError

logger = structlog.get_logger(logger_name=__name__)


def detect_media_type(image_bytes: bytes) -> str:
    """Detect the MIME type of an image from its magic bytes.

    PNG starts with 89 50 4E 47 0D 0A 1A 0A, WEBP with RIFF....WEBP and
    JPEG with FF D8.  Anything else is reported as JPEG, the format phone
    cameras produce.
    """
    if image_bytes[:8] == b"\x89PNG\r\n\x1a\n":
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    if image_bytes[:2] == b"\xff\xd8":
        return "image/jpeg"
    return "image/jpeg"


def downscale_if_oversized(image_data: bytes, max_dim: int) -> bytes:
    """Downscale an image whose largest side exceeds *max_dim* pixels.

    Returns the original bytes when the image already fits.  Oversized
    images are re-encoded as quality-90 JPEG.  Bytes Pillow cannot decode
    are returned unchanged so the vision model can still try them.
    """
    try:
        img = Image.open(io.BytesIO(image_data))
        largest = max(img.size)
        if largest <= max_dim:
            return image_data

        scale = max_dim / largest
        new_size = (max(1, int(img.size[0] * scale)), max(1, int(img.size[1] * scale)))
        img = img.convert("RGB").resize(new_size, Image.LANCZOS)

        buf = io.BytesIO()
        img.save(buf, format="JPEG", quality=90)
        logger.info(
            "image_downscaled",
            original_largest_dim=largest,
            new_size=new_size,
            original_bytes=len(image_data),
            new_bytes=buf.tell(),
        )
        return buf.getvalue()
    except (UnidentifiedImageError, OSError) as exc:
        logger.warning("image_downscale_failed", error=str(exc))
        return image_data
