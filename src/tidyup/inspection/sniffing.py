"""Best-effort MIME detection and image metadata extraction."""

from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from PIL import ExifTags, Image, UnidentifiedImageError

LOGGER = logging.getLogger(__name__)

OCTET_STREAM = "application/octet-stream"

# Extension types that differ between platform MIME tables or are missing from them.
_EXTENSION_TYPES = {
    "md": "text/markdown",
    "markdown": "text/markdown",
    "txt": "text/plain",
    "rst": "text/x-rst",
    "log": "text/x-log",
    "json": "application/json",
    "yaml": "application/yaml",
    "yml": "application/yaml",
    "xml": "application/xml",
    "csv": "text/csv",
    "sql": "application/sql",
    "conf": "text/x-config",
    "cfg": "text/x-config",
    "ini": "text/x-config",
    "toml": "text/x-config",
    "env": "text/x-config",
    "properties": "text/x-config",
    "py": "text/x-python",
    "rs": "text/x-rust",
    "go": "text/x-go",
    "ts": "text/x-typescript",
    "tsx": "text/x-typescript",
    "jsx": "text/javascript",
    "vue": "text/x-vue",
    "kt": "text/x-kotlin",
    "swift": "text/x-swift",
    "heic": "image/heic",
    "webp": "image/webp",
    "raw": "image/x-raw",
    "mkv": "video/x-matroska",
    "webm": "video/webm",
    "m4a": "audio/mp4",
    "flac": "audio/flac",
    "opus": "audio/opus",
    "7z": "application/x-7z-compressed",
    "rar": "application/vnd.rar",
    "xz": "application/x-xz",
    "bz2": "application/x-bzip2",
    "gz": "application/gzip",
    "tgz": "application/gzip",
    "iso": "application/x-iso9660-image",
    "dmg": "application/x-apple-diskimage",
    "exe": "application/vnd.microsoft.portable-executable",
    "msi": "application/x-msi",
    "deb": "application/vnd.debian.binary-package",
    "rpm": "application/x-rpm",
    "ttf": "font/ttf",
    "otf": "font/otf",
    "woff": "font/woff",
    "woff2": "font/woff2",
}

# Leading-byte signatures checked when the extension is unknown.
_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"BM", "image/bmp"),
    (b"%PDF-", "application/pdf"),
    (b"PK\x03\x04", "application/zip"),
    (b"\x1f\x8b", "application/gzip"),
    (b"BZh", "application/x-bzip2"),
    (b"\xfd7zXZ\x00", "application/x-xz"),
    (b"7z\xbc\xaf\x27\x1c", "application/x-7z-compressed"),
    (b"Rar!\x1a\x07", "application/vnd.rar"),
    (b"\x7fELF", "application/x-executable"),
    (b"ID3", "audio/mpeg"),
    (b"OggS", "audio/ogg"),
    (b"fLaC", "audio/flac"),
)


@dataclass(frozen=True)
class ImageMetadata:
    """Dimensions and selected EXIF tags for an image."""

    width: int
    height: int
    camera: Optional[str] = None
    software: Optional[str] = None


class ContentSniffer:
    """Identify MIME types and read image metadata.

    The sniffer is the content-sniffing provider for the inspector. With
    ``inspect_images`` off, images are typed by extension and magic bytes only.
    """

    def __init__(self, *, inspect_images: bool = True) -> None:
        self.inspect_images = inspect_images

    def detect(self, path: Path, head: bytes = b"") -> str:
        """Return a MIME type from the extension, then the leading bytes."""
        extension = path.suffix.lower().lstrip(".")
        if extension in _EXTENSION_TYPES:
            return _EXTENSION_TYPES[extension]
        guessed, _ = mimetypes.guess_type(path.name, strict=False)
        if guessed:
            return guessed
        return self.detect_bytes(head)

    def detect_bytes(self, head: bytes) -> str:
        """Return a MIME type derived from content alone."""
        for signature, mime in _SIGNATURES:
            if head.startswith(signature):
                return mime
        if head[:4] == b"RIFF" and head[8:12] == b"WAVE":
            return "audio/wav"
        if head[:4] == b"RIFF" and head[8:12] == b"AVI ":
            return "video/x-msvideo"
        if head[4:8] == b"ftyp":
            return "video/mp4"
        if head and _looks_like_text(head):
            return "text/plain"
        return OCTET_STREAM

    def image_metadata(self, path: Path) -> Optional[ImageMetadata]:
        """Return dimensions and camera/software tags, or None when unreadable."""
        if not self.inspect_images:
            return None
        try:
            with Image.open(path) as img:
                width, height = img.size
                exif = img.getexif()
        except (OSError, UnidentifiedImageError, ValueError) as exc:
            LOGGER.debug("Image metadata unavailable for %s: %s", path, exc)
            return None

        make = _exif_text(exif, ExifTags.Base.Make)
        model = _exif_text(exif, ExifTags.Base.Model)
        camera = " ".join(part for part in (make, model) if part) or None
        return ImageMetadata(
            width=width,
            height=height,
            camera=camera,
            software=_exif_text(exif, ExifTags.Base.Software),
        )


def _exif_text(exif, tag) -> Optional[str]:
    value = exif.get(tag) if exif else None
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    text = str(value).strip("\x00 ").strip()
    return text or None


def _looks_like_text(head: bytes) -> bool:
    if b"\x00" in head:
        return False
    try:
        head.decode("utf-8")
    except UnicodeDecodeError as exc:
        # A multi-byte sequence cut off at the sample boundary is still text.
        return exc.start >= len(head) - 3
    return True


__all__ = ["ContentSniffer", "ImageMetadata", "OCTET_STREAM"]
