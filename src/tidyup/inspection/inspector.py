"""Content inspection: size, type, age, samples, and image metadata."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .errors import InspectionError
from .models import AgeClass, ContentFacts, SizeClass
from .sniffing import ContentSniffer

LOGGER = logging.getLogger(__name__)

KIB = 1024
MIB = 1024 * KIB
MAX_SAMPLE_BYTES = 10 * KIB
_HEAD_BYTES = 512

# Upper bounds (exclusive) for each size bucket; anything larger is "huge".
SIZE_BUCKETS: tuple[tuple[int, SizeClass], ...] = (
    (KIB, "tiny"),
    (100 * KIB, "small"),
    (10 * MIB, "medium"),
    (100 * MIB, "large"),
)

# Upper bounds (inclusive) in days for each age bucket; anything older is "old".
AGE_BUCKETS: tuple[tuple[int, AgeClass], ...] = (
    (0, "today"),
    (7, "this_week"),
    (31, "this_month"),
    (365, "this_year"),
)

# Extensions whose leading text is sampled even when their MIME type is not text/*.
SAMPLED_EXTENSIONS = frozenset(
    {
        "py", "js", "ts", "tsx", "jsx", "java", "c", "h", "cpp", "hpp", "cs", "go", "rs",
        "rb", "php", "sh", "bash", "zsh", "pl", "lua", "kt", "swift", "scala", "vue",
        "html", "css", "scss", "md", "rst", "txt", "log", "tex",
        "json", "yaml", "yml", "xml", "csv", "tsv", "sql",
        "conf", "cfg", "ini", "toml", "env", "properties",
    }
)
_TEXTUAL_APPLICATION_TYPES = frozenset(
    {"application/json", "application/xml", "application/yaml", "application/sql"}
)


def size_class_for(size_bytes: int) -> SizeClass:
    """Return the size bucket for a byte count."""
    for limit, label in SIZE_BUCKETS:
        if size_bytes < limit:
            return label
    return "huge"


def age_class_for(age_days: int) -> AgeClass:
    """Return the age bucket for a whole number of days."""
    for limit, label in AGE_BUCKETS:
        if age_days <= limit:
            return label
    return "old"


class ContentInspector:
    """Derive read-only facts about a file.

    Unreadable files never abort a pass: they produce placeholder facts with
    ``readable=False`` so the rest of the pipeline can still classify them by
    name.
    """

    def __init__(
        self,
        sniffer: Optional[ContentSniffer] = None,
        *,
        sample_bytes: int = MAX_SAMPLE_BYTES,
        now: Optional[datetime] = None,
    ) -> None:
        self.sniffer = sniffer or ContentSniffer()
        self.sample_bytes = max(0, min(sample_bytes, MAX_SAMPLE_BYTES))
        self.now = now or datetime.now(timezone.utc)

    def inspect(self, path: Path) -> ContentFacts:
        """Return facts for path, degrading to placeholders on failure."""
        try:
            return self._inspect(path)
        except InspectionError as exc:
            LOGGER.warning("Inspection failed for %s: %s", path, exc)
            return ContentFacts(
                path=path,
                mime_type=self.sniffer.detect(path),
                readable=False,
                error=str(exc),
            )

    def _inspect(self, path: Path) -> ContentFacts:
        try:
            stat = path.stat()
            with path.open("rb") as fh:
                head = fh.read(max(_HEAD_BYTES, self.sample_bytes))
        except OSError as exc:
            raise InspectionError(f"{path}: {exc.strerror or exc}") from exc

        modified = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)
        age_days = max(0, (self.now - modified).days)
        mime = self.sniffer.detect(path, head[:_HEAD_BYTES])

        sample = None
        if self.sample_bytes and self._should_sample(path, mime):
            sample = head[: self.sample_bytes].decode("utf-8", errors="replace")

        width = height = None
        camera = software = None
        if mime.startswith("image/"):
            image = self.sniffer.image_metadata(path)
            if image is not None:
                width, height = image.width, image.height
                camera, software = image.camera, image.software

        return ContentFacts(
            path=path,
            size_bytes=stat.st_size,
            size_class=size_class_for(stat.st_size),
            mime_type=mime,
            modified_at=modified,
            age_days=age_days,
            age_class=age_class_for(age_days),
            sample=sample,
            image_width=width,
            image_height=height,
            camera=camera,
            software=software,
        )

    def _should_sample(self, path: Path, mime: str) -> bool:
        if mime.startswith("text/") or mime in _TEXTUAL_APPLICATION_TYPES:
            return True
        return path.suffix.lower().lstrip(".") in SAMPLED_EXTENSIONS


__all__ = [
    "AGE_BUCKETS",
    "ContentInspector",
    "MAX_SAMPLE_BYTES",
    "SIZE_BUCKETS",
    "age_class_for",
    "size_class_for",
]
