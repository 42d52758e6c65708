import base64
import io

import pytest
from PIL import Image

from faceauth_station.common.images import compress_image, decode_image, require_image, strip_data_uri
from faceauth_station.core.exceptions import ValidationError


def _open(data_uri: str) -> Image.Image:
    assert data_uri.startswith("data:image/jpeg;base64,")
    return Image.open(io.BytesIO(base64.b64decode(strip_data_uri(data_uri))))


def test_wide_image_is_scaled_to_max_width(make_image):
    out = compress_image(make_image(800, 600), max_width=200, quality=50)

    img = _open(out)
    assert img.format == "JPEG"
    assert img.size == (200, 150)


def test_narrow_image_keeps_its_size(make_image):
    img = _open(compress_image(make_image(120, 90), max_width=300))

    assert img.size == (120, 90)


def test_transparency_is_flattened_onto_white(make_image):
    out = compress_image(make_image(10, 10, mode="RGBA", color=(0, 0, 0, 0)), max_width=300, quality=95)

    r, g, b = _open(out).convert("RGB").getpixel((5, 5))
    assert min(r, g, b) > 240


def test_undecodable_input_is_returned_unchanged():
    garbage = "data:image/jpeg;base64,bm90IGFuIGltYWdl"

    assert compress_image(garbage) == garbage


def test_strip_data_uri_handles_bare_payload():
    assert strip_data_uri("data:image/png;base64,QUJD") == "QUJD"
    assert strip_data_uri("QUJD") == "QUJD"


@pytest.mark.parametrize("value, message", [("", "image is required"), ("data:image/png;base64,%%%", "invalid image data")])
def test_decode_image_rejects_bad_input(value, message):
    with pytest.raises(ValidationError, match=message):
        decode_image(value)


def test_require_image_accepts_real_image_and_rejects_text(face_image):
    assert require_image(face_image) == face_image

    with pytest.raises(ValidationError):
        require_image("data:image/png;base64," + base64.b64encode(b"hello").decode())
