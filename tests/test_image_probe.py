import io

import pytest
from PIL import Image

from conftest import make_png
from school_directory.services.errors import ValidationError
from school_directory.utils.image_probe import ensure_image, get_image_info


def _bmp() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4)).save(buffer, format="BMP")
    return buffer.getvalue()


def test_get_image_info():
    info = get_image_info(make_png(size=(10, 6)))
    assert info["format"] == "PNG"
    assert info["size"] == (10, 6)


def test_get_image_info_not_an_image():
    assert get_image_info(b"definitely not an image") is None


def test_ensure_image_keeps_filename():
    assert ensure_image(make_png(), "campus.png") == "campus.png"


def test_ensure_image_adds_missing_extension():
    assert ensure_image(make_png(), "campus") == "campus.png"
    assert ensure_image(make_png(), None) == "upload.png"


@pytest.mark.parametrize(
    "content, message",
    [
        (b"", "is empty"),
        (b"plain text, not pixels", "not a valid image"),
    ],
)
def test_ensure_image_rejects_bad_content(content, message):
    with pytest.raises(ValidationError) as exc_info:
        ensure_image(content, "bad.gif")
    assert message in exc_info.value.message


def test_ensure_image_rejects_unsupported_format():
    with pytest.raises(ValidationError) as exc_info:
        ensure_image(_bmp(), "scan.bmp")
    assert "unsupported format BMP" in exc_info.value.message
