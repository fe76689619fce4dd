"""
Image intake for the vision route.

`decode_image_data` accepts either a data URL (``data:image/png;base64,...``)
or bare base64 and returns an `ImagePayload`. `prepare_image` shrinks large
uploads before they are inlined into a provider request; big inline images
make the provider REST APIs answer 400.
"""
import base64
import binascii
import logging
import re
from io import BytesIO

from PIL import Image, UnidentifiedImageError

from backend.schemas import ImagePayload

logger = logging.getLogger(__name__)

MAX_INLINE_BYTES = 700_000
MAX_INLINE_DIMENSION = 1400
REENCODE_DIMENSION = 1200
REENCODE_QUALITY = 75

DATA_URL_PATTERN = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?:;[^,]*)?;base64,(?P<data>.*)$", re.DOTALL)
_WHITESPACE = re.compile(r"\s+")


def decode_image_data(image_data: str) -> ImagePayload:
    """Decode the `imageData` field of an analyze request.

    Raises ValueError when the field is empty or not valid base64.
    """
    if not image_data or not image_data.strip():
        raise ValueError("imageData is required")

    mime_type = "image/jpeg"
    encoded = image_data.strip()
    match = DATA_URL_PATTERN.match(encoded)
    if match:
        mime_type = match.group("mime") or mime_type
        encoded = match.group("data")
    elif encoded.startswith("data:"):
        raise ValueError("imageData data URL must be base64 encoded")

    encoded = _WHITESPACE.sub("", encoded)
    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"imageData is not valid base64: {e}") from e
    if not data:
        raise ValueError("imageData decoded to zero bytes")
    return ImagePayload(data=data, mime_type=mime_type)


def _reject_oversized(img: Image.Image) -> None:
    w, h = img.size
    if Image.MAX_IMAGE_PIXELS and w * h > Image.MAX_IMAGE_PIXELS:
        raise ValueError(f"image dimensions {w}x{h} exceed the pixel limit")


def needs_reencode(payload: ImagePayload) -> bool:
    """Raises ValueError for images whose declared size is a decompression bomb."""
    try:
        with Image.open(BytesIO(payload.data)) as img:
            _reject_oversized(img)
            return len(payload.data) > MAX_INLINE_BYTES or max(img.size) > MAX_INLINE_DIMENSION
    except Image.DecompressionBombError as e:
        raise ValueError(f"image is too large to process: {e}") from e
    except (UnidentifiedImageError, OSError):
        # Not something Pillow understands; send it unchanged.
        return False


def prepare_image(payload: ImagePayload) -> ImagePayload:
    """Re-encode oversized images as JPEG no larger than 1200px on the long side.

    Anything Pillow cannot open is passed through untouched. Raises
    ValueError when the declared dimensions are beyond Pillow's pixel limit.
    """
    if not needs_reencode(payload):
        return payload
    try:
        with Image.open(BytesIO(payload.data)) as img_obj:
            img_obj = img_obj.convert("RGB")
            w, h = img_obj.size
            if max(w, h) > REENCODE_DIMENSION:
                scale = REENCODE_DIMENSION / float(max(w, h))
                img_obj = img_obj.resize((max(1, int(w * scale)), max(1, int(h * scale))), Image.LANCZOS)
            out = BytesIO()
            img_obj.save(out, format="JPEG", quality=REENCODE_QUALITY, optimize=True)
    except Image.DecompressionBombError as e:
        raise ValueError(f"image is too large to process: {e}") from e
    except (UnidentifiedImageError, OSError) as e:
        logger.warning("[images] failed to re-encode upload, sending original: %s", e)
        return payload

    out_bytes = out.getvalue()
    logger.info("[images] re-encoded upload: %d -> %d bytes, %dx%d",
                len(payload.data), len(out_bytes), img_obj.size[0], img_obj.size[1])
    return ImagePayload(data=out_bytes, mime_type="image/jpeg")
