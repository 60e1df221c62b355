"""Unit tests for FileValidator and the header sniffing helpers."""
from __future__ import annotations

import io

import pydantic
import pytest

from fieldcheck import File, ImageDimensions, UploadedFile
from fieldcheck.schema.context import ValidationContext
from fieldcheck.validate.file import (
    aspect_ratio_matches,
    detect_mime,
    file_size,
    format_file_size,
    image_size,
    mime_allowed,
)
from tests.fixtures import gif_bytes, jpeg_bytes, png_bytes


def run(validator, value):
    return validator.validate(ValidationContext(root={}).child("avatar"), value)


def upload(content: bytes, name: str = "a.png") -> UploadedFile:
    return UploadedFile(filename=name, content=content)


class Wrapper:
    """Framework-style upload exposing a stream but no size."""

    def __init__(self, filename: str, content: bytes) -> None:
        self.filename = filename
        self._buf = io.BytesIO(content)

    def read(self, n: int = -1) -> bytes:
        return self._buf.read(n)

    def seek(self, offset: int, whence: int = 0) -> int:
        return self._buf.seek(offset, whence)

    def tell(self) -> int:
        return self._buf.tell()


class TestSniffing:
    @pytest.mark.parametrize(
        "head, mime",
        [
            (png_bytes(1, 1), "image/png"),
            (jpeg_bytes(1, 1), "image/jpeg"),
            (gif_bytes(1, 1), "image/gif"),
            (b"%PDF-1.7\n", "application/pdf"),
            (b"RIFF\x00\x00\x00\x00WEBPVP8 ", "image/webp"),
            (b"RIFF\x00\x00\x00\x00WAVEfmt ", "audio/wav"),
            (b"\x00\x00\x00\x18ftypmp42", "video/mp4"),
            (b"  <svg xmlns='http://www.w3.org/2000/svg'/>", "image/svg+xml"),
            (b"hello, world\n", "text/plain"),
            (b"\x00\x01\x02\xfe", "application/octet-stream"),
        ],
    )
    def test_detect_mime(self, head, mime):
        assert detect_mime(head) == mime

    @pytest.mark.parametrize(
        "head, size",
        [
            (png_bytes(640, 480), (640, 480)),
            (gif_bytes(32, 16), (32, 16)),
            (jpeg_bytes(1920, 1080), (1920, 1080)),
            (b"not an image", None),
        ],
    )
    def test_image_size(self, head, size):
        assert image_size(head) == size

    def test_mime_wildcards(self):
        assert mime_allowed("image/png", ("image/*",))
        assert mime_allowed("IMAGE/PNG", ("image/png",))
        assert not mime_allowed("application/pdf", ("image/*", "text/plain"))

    @pytest.mark.parametrize(
        "size, text",
        [(512, "512 bytes"), (1024, "1.00 KB"), (1536 * 1024, "1.50 MB"), (2 * 1024**3, "2.00 GB")],
    )
    def test_format_file_size(self, size, text):
        assert format_file_size(size) == text

    def test_aspect_ratio(self):
        assert aspect_ratio_matches(1920, 1080, "16/9")
        assert not aspect_ratio_matches(1000, 1000, "16/9")
        assert not aspect_ratio_matches(10, 10, "bad")
        assert not aspect_ratio_matches(10, 0, "1/1")


class TestFileValidator:
    def test_not_a_file(self):
        assert run(File(), b"raw bytes") == {"avatar": ["avatar must be a file"]}

    def test_missing(self):
        assert run(File(), None) == {}
        assert run(File().required(), None) == {"avatar": ["avatar is required"]}

    def test_size_bounds(self):
        f = upload(b"x" * 100, "a.txt")
        assert run(File().min(1024), f) == {"avatar": ["avatar must be at least 1.00 KB"]}
        assert run(File().max(10), f) == {"avatar": ["avatar must not be greater than 10 bytes"]}

    def test_size_of_stream_without_size(self):
        w = Wrapper("a.txt", b"12345")
        assert file_size(w) == 5
        assert w.read() == b"12345"

    def test_mimes(self):
        v = File().mimes("image/*")
        assert run(v, upload(png_bytes(2, 2))) == {}
        assert run(v, upload(b"%PDF-1.4", "a.png")) == {"avatar": ["avatar must be a file of type: image/*"]}

    def test_extensions(self):
        v = File().extensions("png", ".JPG")
        assert run(v, upload(b"", "photo.jpg")) == {}
        assert run(v, upload(b"", "photo.gif")) == {
            "avatar": ["avatar must be a file with extension: png, .JPG"]
        }

    def test_image(self):
        assert run(File().image(), upload(gif_bytes(1, 1))) == {}
        assert run(File().image(), upload(b"plain text")) == {"avatar": ["avatar must be an image"]}

    def test_dimensions(self):
        f = upload(png_bytes(800, 600))
        assert run(File().dimensions(min_width=640, max_height=600, ratio="4/3"), f) == {}
        assert run(File().dimensions(width=100, height=100), f) == {
            "avatar": [
                "avatar must have width of 100 pixels",
                "avatar must have height of 100 pixels",
            ]
        }
        assert run(File().dimensions(ImageDimensions(max_width=640, ratio="1/1")), f) == {
            "avatar": [
                "avatar must have maximum width of 640 pixels",
                "avatar must have aspect ratio of 1/1",
            ]
        }

    def test_dimensions_of_non_image(self):
        assert run(File().dimensions(min_width=1), upload(b"text")) == {
            "avatar": ["avatar must be an image with valid dimensions"]
        }

    def test_wrapper_objects_are_files(self):
        w = Wrapper("logo.png", png_bytes(10, 10))
        assert run(File().image().max(1024).dimensions(width=10), w) == {}

    def test_unknown_dimension_bound_is_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            File().dimensions(depth=3)
