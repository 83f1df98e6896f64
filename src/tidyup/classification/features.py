"""Feature extraction: filename patterns, directory context, and content markers."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

from tidyup.inspection.models import ContentFacts

from .models import DirectoryContext, FeatureSet, ImageShape, NamePattern

EXTENSION_ALIASES = {
    "jpeg": "jpg",
    "jpe": "jpg",
    "yml": "yaml",
    "htm": "html",
    "tif": "tiff",
    "markdown": "md",
    "mpeg": "mpg",
}

LANGUAGES = {
    "py": "python",
    "pyw": "python",
    "js": "javascript",
    "mjs": "javascript",
    "jsx": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
    "java": "java",
    "c": "c",
    "h": "c",
    "cpp": "cpp",
    "cc": "cpp",
    "cxx": "cpp",
    "hpp": "cpp",
    "cs": "csharp",
    "go": "go",
    "rs": "rust",
    "rb": "ruby",
    "php": "php",
    "sh": "shell",
    "bash": "shell",
    "zsh": "shell",
    "pl": "perl",
    "lua": "lua",
    "kt": "kotlin",
    "swift": "swift",
    "scala": "scala",
    "vue": "vue",
    "html": "html",
    "css": "css",
    "scss": "css",
}

_SHEBANG_LANGUAGES = (
    ("python", "python"),
    ("node", "javascript"),
    ("bash", "shell"),
    ("zsh", "shell"),
    ("sh", "shell"),
    ("perl", "perl"),
    ("ruby", "ruby"),
    ("php", "php"),
    ("lua", "lua"),
)

CONFIG_EXTENSIONS = frozenset({"conf", "cfg", "ini", "toml", "env", "properties", "rc"})
DATA_EXTENSIONS = frozenset({"json", "csv", "xml", "yaml", "sql"})

# Checked top to bottom against the lowercased filename; the first match wins.
NAME_PATTERNS: tuple[tuple[NamePattern, re.Pattern[str]], ...] = (
    (
        "screenshot",
        re.compile(r"screen ?shot|screen[ _-]?capture|^scr[_-]?\d|^capture[ _-]|^snip"),
    ),
    (
        "backup",
        re.compile(r"\.(bak|backup|old|orig)$|(^|[._ -])(backup|bak)([._ -]|$)|~$"),
    ),
    (
        "temporary",
        re.compile(r"\.(tmp|temp|swp|swo|part|crdownload)$|^~\$|^\.~|(^|[._-])(tmp|temp)([._-]|$)"),
    ),
    ("test", re.compile(r"(^|[._-])(test|tests|spec)([._-]|$)")),
    (
        "config",
        re.compile(
            r"(^|[._-])(config|configuration|settings|prefs|preferences)([._-]|$)"
            r"|^\.[\w-]+rc(\.|$)|^\.env"
        ),
    ),
    (
        "documentation",
        re.compile(
            r"^(readme|changelog|contributing|authors|install|usage|manual|guide|docs?)([._ -]|$)"
            r"|(^|[._ -])(docs?|manual|guide|howto|tutorial)([._ -]|$)"
        ),
    ),
    (
        "legal",
        re.compile(
            r"^(license|licence|copying|notice)([._ -]|$)"
            r"|contract|agreement|(^|[._ -])nda([._ -]|$)|terms|privacy|legal"
        ),
    ),
    ("dated", re.compile(r"(19|20)\d{2}[-_.]?(0[1-9]|1[0-2])[-_.]?(0[1-9]|[12]\d|3[01])")),
    ("versioned", re.compile(r"(^|[._ -])v\d+(\.\d+)*([._ -]|$)|(^|[._ -])(rev|version)[._ -]?\d+")),
    ("draft", re.compile(r"draft|(^|[._ -])wip([._ -]|$)")),
    ("final", re.compile(r"final")),
)

DIRECTORY_CONTEXTS: dict[str, DirectoryContext] = {
    "downloads": "downloads",
    "download": "downloads",
    "desktop": "desktop",
    "documents": "documents",
    "docs": "documents",
    "my documents": "documents",
    "pictures": "pictures",
    "photos": "pictures",
    "images": "pictures",
    "videos": "videos",
    "movies": "videos",
    "music": "music",
    "audio": "music",
    "src": "project",
    "code": "project",
    "projects": "project",
    "dev": "project",
    "repos": "project",
    "workspace": "project",
    "work": "work",
    "office": "work",
    "clients": "work",
    "business": "work",
}

THUMBNAIL_MAX_SIDE = 256
WIDE_RATIO = 2.0
RECENT_WINDOW = timedelta(hours=1)

_INI_SECTION = re.compile(r"^\[[\w .:-]+\]\s*$", re.MULTILINE)
_ASSIGNMENT = re.compile(r"^\s*[A-Za-z_][\w.-]*\s*=\s*\S", re.MULTILINE)
_MARKDOWN_HEADING = re.compile(r"^#{1,6} +\S", re.MULTILINE)


def normalize_extension(filename: str) -> str:
    """Return the lowercase extension without the dot, with aliases folded."""
    suffix = Path(filename).suffix.lower().lstrip(".")
    return EXTENSION_ALIASES.get(suffix, suffix)


def match_name_pattern(filename: str) -> NamePattern:
    """Return the first filename pattern matching filename, or ``none``."""
    lowered = filename.lower()
    for label, pattern in NAME_PATTERNS:
        if pattern.search(lowered):
            return label
    return "none"


def directory_context_for(parent_name: Optional[str]) -> DirectoryContext:
    """Map a parent folder name onto a directory context."""
    if not parent_name:
        return "none"
    return DIRECTORY_CONTEXTS.get(parent_name.strip().lower(), "none")


def image_shape_for(width: Optional[int], height: Optional[int]) -> Optional[ImageShape]:
    """Bucket image dimensions into a shape."""
    if not width or not height:
        return None
    if max(width, height) <= THUMBNAIL_MAX_SIDE:
        return "thumbnail"
    if width >= height * WIDE_RATIO:
        return "wide"
    if height > width:
        return "portrait"
    return "standard"


def language_for(extension: str, sample: Optional[str]) -> Optional[str]:
    """Detect the source language from the extension, then a shebang line."""
    if extension in LANGUAGES:
        return LANGUAGES[extension]
    if sample and sample.startswith("#!"):
        interpreter = sample.splitlines()[0].lower()
        for token, language in _SHEBANG_LANGUAGES:
            if re.search(rf"[/ ]{token}[\d.]*(\s|$)", interpreter):
                return language
    return None


def looks_like_config(sample: Optional[str]) -> bool:
    """Return True for INI sections or several ``key = value`` lines."""
    if not sample:
        return False
    return bool(_INI_SECTION.search(sample)) or len(_ASSIGNMENT.findall(sample)) >= 2


def looks_like_data(sample: Optional[str]) -> bool:
    """Return True for JSON, XML, or CSV-shaped samples."""
    if not sample:
        return False
    stripped = sample.strip()
    if not stripped:
        return False
    if stripped[0] in "{[" and stripped[-1] in "}]":
        return True
    if stripped.startswith("<?xml"):
        return True
    lines = [line for line in stripped.splitlines()[:5] if line.strip()]
    if len(lines) >= 3:
        counts = {line.count(",") for line in lines}
        return len(counts) == 1 and counts.pop() >= 1
    return False


class FeatureExtractor:
    """Combine content facts with filename and directory heuristics."""

    def __init__(self, *, now: Optional[datetime] = None) -> None:
        self.now = now or datetime.now(timezone.utc)

    def extract(self, facts: ContentFacts, parent_name: Optional[str] = None) -> FeatureSet:
        """Return the immutable feature set for one inspected file.

        Args:
            facts: Output of the content inspector.
            parent_name: Name of the directory holding the file. Defaults to the
                actual parent of ``facts.path``.

        Returns:
            FeatureSet: Features consumed by the classifiers.
        """
        filename = facts.path.name
        extension = normalize_extension(filename)
        if parent_name is None:
            parent_name = facts.path.parent.name

        structured = extension in CONFIG_EXTENSIONS or extension in DATA_EXTENSIONS
        modified_recently = False
        if facts.modified_at is not None:
            modified_recently = abs(self.now - facts.modified_at) <= RECENT_WINDOW

        return FeatureSet(
            filename=filename,
            extension=extension,
            size_bytes=facts.size_bytes,
            size_class=facts.size_class,
            mime_category=facts.mime_category,
            mime_subtype=facts.mime_subtype,
            name_pattern=match_name_pattern(filename),
            age_class=facts.age_class,
            directory_context=directory_context_for(parent_name),
            language=language_for(extension, facts.sample),
            image_shape=image_shape_for(facts.image_width, facts.image_height),
            has_camera=facts.camera is not None,
            has_software=facts.software is not None,
            config_content=extension not in DATA_EXTENSIONS and looks_like_config(facts.sample),
            data_content=extension not in CONFIG_EXTENSIONS and looks_like_data(facts.sample),
            doc_marker=not structured and bool(
                facts.sample and _MARKDOWN_HEADING.search(facts.sample)
            ),
            modified_at=facts.modified_at,
            modified_recently=modified_recently,
        )


__all__ = [
    "CONFIG_EXTENSIONS",
    "DATA_EXTENSIONS",
    "FeatureExtractor",
    "LANGUAGES",
    "NAME_PATTERNS",
    "directory_context_for",
    "image_shape_for",
    "language_for",
    "looks_like_config",
    "looks_like_data",
    "match_name_pattern",
    "normalize_extension",
]
