from __future__ import annotations

import base64
import struct
import zlib
from io import BytesIO

import pytest
from PIL import Image

from backend.schemas import ImagePayload
from backend.services.images import decode_image_data, prepare_image


def _png_bytes(size=(64, 48)) -> bytes:
    out = BytesIO()
    Image.new("RGB", size, color=(40, 160, 60)).save(out, format="PNG")
    return out.getvalue()


def test_decodes_data_url_and_keeps_mime_type() -> None:
    data = _png_bytes()
    url = "data:image/png;base64," + base64.b64encode(data).decode("ascii")

    payload = decode_image_data(url)

    assert payload.data == data
    assert payload.mime_type == "image/png"


def test_decodes_bare_base64_as_jpeg() -> None:
    payload = decode_image_data(base64.b64encode(b"raw-bytes").decode("ascii"))

    assert payload.data == b"raw-bytes"
    assert payload.mime_type == "image/jpeg"


@pytest.mark.parametrize("value", ["", "   ", "not base64 at all!!", "data:image/png,plain-text"])
def test_invalid_image_data_raises_value_error(value) -> None:
    with pytest.raises(ValueError):
        decode_image_data(value)


def test_small_images_pass_through_untouched() -> None:
    payload = ImagePayload(data=_png_bytes(), mime_type="image/png")

    assert prepare_image(payload) is payload


def test_large_images_are_downscaled_to_jpeg() -> None:
    payload = ImagePayload(data=_png_bytes((2000, 1000)), mime_type="image/png")

    prepared = prepare_image(payload)

    assert prepared.mime_type == "image/jpeg"
    with Image.open(BytesIO(prepared.data)) as img:
        assert img.format == "JPEG"
        assert img.size == (1200, 600)


def test_unreadable_bytes_are_sent_unchanged() -> None:
    payload = ImagePayload(data=b"definitely not an image")

    assert prepare_image(payload) is payload


def _png_header_only(width: int, height: int) -> bytes:
    """A PNG that declares `width` x `height` but carries no pixel data."""

    def chunk(kind: bytes, body: bytes) -> bytes:
        return struct.pack(">I", len(body)) + kind + body + struct.pack(">I", zlib.crc32(kind + body) & 0xFFFFFFFF)

    ihdr = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return b"\x89PNG\r\n\x1a\n" + chunk(b"IHDR", ihdr) + chunk(b"IEND", b"")


def test_decompression_bomb_is_rejected_as_bad_input() -> None:
    payload = ImagePayload(data=_png_header_only(20000, 20000), mime_type="image/png")

    with pytest.raises(ValueError):
        prepare_image(payload)
