"""Uploaded-file validator.

A file value is an :class:`UploadedFile`, or any object exposing
``filename`` plus ``read()``/``seek()`` (e.g. a framework upload wrapper).
The content type is sniffed from the leading bytes, never taken from the
client-supplied header.
"""
from __future__ import annotations

import io
import os
import struct
from dataclasses import dataclass
from typing import Any, Self

from pydantic import BaseModel, ConfigDict

from fieldcheck.schema.context import ValidationContext
from fieldcheck.schema.messages import MessageArg
from fieldcheck.validate.base import FieldErrors, FieldValidator

IMAGE_MIMES = (
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/bmp",
    "image/svg+xml",
    "image/webp",
    "image/tiff",
)
DOCUMENT_MIMES = (
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/plain",
)
VIDEO_MIMES = ("video/mp4", "video/mpeg", "video/quicktime", "video/x-msvideo", "video/webm")
AUDIO_MIMES = ("audio/mpeg", "audio/wav", "audio/ogg", "audio/mp4", "audio/webm")

_SNIFF_LEN = 512


@dataclass
class UploadedFile:
    """An in-memory upload.

    Attributes:
        filename: Client-supplied file name.
        content: Raw bytes.
    """

    filename: str
    content: bytes

    def __post_init__(self) -> None:
        self._stream = io.BytesIO(self.content)

    @property
    def size(self) -> int:
        return len(self.content)

    def read(self, size: int = -1) -> bytes:
        return self._stream.read(size)

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        return self._stream.seek(offset, whence)


class ImageDimensions(BaseModel):
    """Image size constraints; ``0`` / ``""`` disables a bound.

    Attributes:
        width: Exact width.
        height: Exact height.
        min_width: Minimum width.
        max_width: Maximum width.
        min_height: Minimum height.
        max_height: Maximum height.
        ratio: Aspect ratio such as ``"16/9"``, matched within 0.01.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    width: int = 0
    height: int = 0
    min_width: int = 0
    max_width: int = 0
    min_height: int = 0
    max_height: int = 0
    ratio: str = ""


class FileValidator(FieldValidator):
    def __init__(self) -> None:
        super().__init__()
        self._min: int | None = None
        self._max: int | None = None
        self._mimes: tuple[str, ...] = ()
        self._extensions: tuple[str, ...] = ()
        self._image = False
        self._dimensions: ImageDimensions | None = None

    def min(self, size: int, message: MessageArg | None = None) -> Self:
        """Minimum size in bytes."""
        self._min = size
        self._set_message("min", message)
        return self

    def max(self, size: int, message: MessageArg | None = None) -> Self:
        """Maximum size in bytes."""
        self._max = size
        self._set_message("max", message)
        return self

    def mimes(self, *mimes: str, message: MessageArg | None = None) -> Self:
        """Allowed sniffed types; ``"image/*"`` style wildcards are accepted."""
        self._mimes = mimes
        self._set_message("mimes", message)
        return self

    def extensions(self, *extensions: str, message: MessageArg | None = None) -> Self:
        self._extensions = extensions
        self._set_message("extensions", message)
        return self

    def image(self, message: MessageArg | None = None) -> Self:
        self._image = True
        self._set_message("image", message)
        return self

    def dimensions(
        self,
        dimensions: ImageDimensions | None = None,
        message: MessageArg | None = None,
        **bounds: Any,
    ) -> Self:
        """Constrain image dimensions, e.g. ``dimensions(min_width=100, ratio="1/1")``."""
        self._dimensions = dimensions if dimensions is not None else ImageDimensions(**bounds)
        self._set_message("dimensions", message)
        return self

    def validate(self, ctx: ValidationContext, value: Any) -> FieldErrors:
        done = self._presence(ctx, value)
        if done is not None:
            return done

        name = ctx.field_name
        mctx = self._message_context(ctx, value)
        if not is_file(value):
            return {ctx.full_path: [self._msg("type", f"{name} must be a file", mctx)]}

        errors: FieldErrors = {}

        def add(rule: str, default: str, param: Any = None) -> None:
            self._add(errors, ctx, mctx, rule, default, param)

        size = file_size(value)
        if self._min is not None and size < self._min:
            add("min", f"{name} must be at least {format_file_size(self._min)}", self._min)
        if self._max is not None and size > self._max:
            add("max", f"{name} must not be greater than {format_file_size(self._max)}", self._max)

        head = _read_head(value)
        mime = detect_mime(head) if head is not None else None
        if self._mimes:
            if mime is None:
                add("mimes", f"{name}: unable to detect file type", list(self._mimes))
            elif not mime_allowed(mime, self._mimes):
                add("mimes", f"{name} must be a file of type: {', '.join(self._mimes)}", list(self._mimes))

        if self._extensions:
            ext = os.path.splitext(getattr(value, "filename", "") or "")[1].lstrip(".").lower()
            if ext not in {e.lstrip(".").lower() for e in self._extensions}:
                add(
                    "extensions",
                    f"{name} must be a file with extension: {', '.join(self._extensions)}",
                    list(self._extensions),
                )

        if self._image and mime not in IMAGE_MIMES:
            add("image", f"{name} must be an image")

        if self._dimensions is not None:
            self._check_dimensions(value, name, add)

        self._run_custom(errors, ctx, mctx, value)
        return errors

    def _check_dimensions(self, value: Any, name: str, add: Any) -> None:
        d = self._dimensions
        size = image_size(_read_head(value, 64 * 1024) or b"")
        if size is None:
            add("dimensions", f"{name} must be an image with valid dimensions", d)
            return
        width, height = size
        if d.width and width != d.width:
            add("dimensions", f"{name} must have width of {d.width} pixels", d.width)
        if d.height and height != d.height:
            add("dimensions", f"{name} must have height of {d.height} pixels", d.height)
        if d.min_width and width < d.min_width:
            add("dimensions", f"{name} must have minimum width of {d.min_width} pixels", d.min_width)
        if d.max_width and width > d.max_width:
            add("dimensions", f"{name} must have maximum width of {d.max_width} pixels", d.max_width)
        if d.min_height and height < d.min_height:
            add("dimensions", f"{name} must have minimum height of {d.min_height} pixels", d.min_height)
        if d.max_height and height > d.max_height:
            add("dimensions", f"{name} must have maximum height of {d.max_height} pixels", d.max_height)
        if d.ratio and not aspect_ratio_matches(width, height, d.ratio):
            add("dimensions", f"{name} must have aspect ratio of {d.ratio}", d.ratio)


def File() -> FileValidator:
    """Create a file validator."""
    return FileValidator()


# ---------------------------------------------------------------------------
# File helpers
# ---------------------------------------------------------------------------


def is_file(value: Any) -> bool:
    return (
        hasattr(value, "filename")
        and callable(getattr(value, "read", None))
        and callable(getattr(value, "seek", None))
    )


def file_size(value: Any) -> int:
    """``value.size`` when available, otherwise measured by seeking."""
    size = getattr(value, "size", None)
    if isinstance(size, int):
        return size
    try:
        end = value.seek(0, io.SEEK_END)
        if not isinstance(end, int):
            end = value.tell()
        return end
    except OSError:
        return 0
    finally:
        value.seek(0)


def _read_head(value: Any, limit: int = _SNIFF_LEN) -> bytes | None:
    try:
        value.seek(0)
        head = value.read(limit)
        value.seek(0)
    except OSError:
        return None
    return head if isinstance(head, bytes) else None


def format_file_size(size: int) -> str:
    kb, mb, gb = 1024, 1024**2, 1024**3
    if size >= gb:
        return f"{size / gb:.2f} GB"
    if size >= mb:
        return f"{size / mb:.2f} MB"
    if size >= kb:
        return f"{size / kb:.2f} KB"
    return f"{size} bytes"


def mime_allowed(mime: str, allowed: tuple[str, ...]) -> bool:
    mime = mime.lower()
    for candidate in allowed:
        candidate = candidate.lower()
        if candidate == mime:
            return True
        if candidate.endswith("/*") and mime.startswith(candidate[:-1]):
            return True
    return False


_SIGNATURES: tuple[tuple[bytes, int, str], ...] = (
    (b"\x89PNG\r\n\x1a\n", 0, "image/png"),
    (b"\xff\xd8\xff", 0, "image/jpeg"),
    (b"GIF87a", 0, "image/gif"),
    (b"GIF89a", 0, "image/gif"),
    (b"BM", 0, "image/bmp"),
    (b"II*\x00", 0, "image/tiff"),
    (b"MM\x00*", 0, "image/tiff"),
    (b"%PDF-", 0, "application/pdf"),
    (b"PK\x03\x04", 0, "application/zip"),
    (b"\x1f\x8b\x08", 0, "application/x-gzip"),
    (b"OggS", 0, "audio/ogg"),
    (b"ID3", 0, "audio/mpeg"),
    (b"\x1aE\xdf\xa3", 0, "video/webm"),
    (b"ftyp", 4, "video/mp4"),
)


def detect_mime(head: bytes) -> str:
    """Sniff a content type from the first bytes of a file."""
    for magic, offset, mime in _SIGNATURES:
        if head[offset : offset + len(magic)] == magic:
            return mime
    if head[:4] == b"RIFF" and len(head) >= 12:
        kind = head[8:12]
        if kind == b"WEBP":
            return "image/webp"
        if kind == b"WAVE":
            return "audio/wav"
        if kind == b"AVI ":
            return "video/x-msvideo"
    stripped = head.lstrip()
    if stripped[:4].lower() == b"<svg" or (stripped[:5] == b"<?xml" and b"<svg" in head):
        return "image/svg+xml"
    if b"\x00" not in head:
        try:
            head.decode("utf-8")
        except UnicodeDecodeError:
            pass
        else:
            return "text/plain"
    return "application/octet-stream"


def image_size(head: bytes) -> tuple[int, int] | None:
    """``(width, height)`` read from a PNG, GIF, BMP, WebP or JPEG header."""
    if head[:8] == b"\x89PNG\r\n\x1a\n" and len(head) >= 24:
        return struct.unpack(">II", head[16:24])
    if head[:6] in (b"GIF87a", b"GIF89a") and len(head) >= 10:
        return struct.unpack("<HH", head[6:10])
    if head[:2] == b"BM" and len(head) >= 26:
        width, height = struct.unpack("<ii", head[18:26])
        return width, abs(height)
    if head[:4] == b"RIFF" and head[8:12] == b"WEBP" and len(head) >= 30:
        return _webp_size(head)
    if head[:2] == b"\xff\xd8":
        return _jpeg_size(head)
    return None


def _webp_size(head: bytes) -> tuple[int, int] | None:
    chunk = head[12:16]
    if chunk == b"VP8 ":
        width, height = struct.unpack("<HH", head[26:30])
        return width & 0x3FFF, height & 0x3FFF
    if chunk == b"VP8L" and len(head) >= 25:
        bits = int.from_bytes(head[21:25], "little")
        return (bits & 0x3FFF) + 1, ((bits >> 14) & 0x3FFF) + 1
    if chunk == b"VP8X":
        width = int.from_bytes(head[24:27], "little") + 1
        height = int.from_bytes(head[27:30], "little") + 1
        return width, height
    return None


def _jpeg_size(head: bytes) -> tuple[int, int] | None:
    pos = 2
    while pos + 4 <= len(head):
        if head[pos] != 0xFF:
            return None
        marker = head[pos + 1]
        if marker in (0xD8, 0x01) or 0xD0 <= marker <= 0xD7:
            pos += 2
            continue
        (length,) = struct.unpack(">H", head[pos + 2 : pos + 4])
        if 0xC0 <= marker <= 0xCF and marker not in (0xC4, 0xC8, 0xCC):
            if pos + 9 > len(head):
                return None
            height, width = struct.unpack(">HH", head[pos + 5 : pos + 9])
            return width, height
        pos += 2 + length
    return None


def aspect_ratio_matches(width: int, height: int, ratio: str) -> bool:
    """``True`` when ``width/height`` is within 0.01 of ``ratio`` (``"16/9"``)."""
    parts = ratio.split("/")
    if len(parts) != 2 or height == 0:
        return False
    try:
        ratio_w, ratio_h = int(parts[0]), int(parts[1])
    except ValueError:
        return False
    if ratio_w == 0 or ratio_h == 0:
        return False
    return abs(width / height - ratio_w / ratio_h) <= 0.01
