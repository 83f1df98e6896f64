"""Directory-level analysis run once before organizing."""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path

from .models import DirectoryAnalysis

LOGGER = logging.getLogger(__name__)

PACKAGE_MANIFESTS = frozenset(
    {"package.json", "pyproject.toml", "setup.py", "Cargo.toml", "pom.xml", "go.mod",
     "composer.json", "Gemfile"}
)
REQUIREMENT_FILES = frozenset(
    {"requirements.txt", "Pipfile", "poetry.lock", "package-lock.json", "yarn.lock"}
)
BUILD_MANIFESTS = frozenset(
    {"Makefile", "CMakeLists.txt", "build.gradle", "meson.build", "Dockerfile"}
)

_INDICATORS = (
    ("nodejs", ("package.json",)),
    ("python", ("requirements.txt", "setup.py", "pyproject.toml")),
    ("rust", ("Cargo.toml",)),
    ("java", ("pom.xml", "build.gradle")),
    ("go", ("go.mod",)),
    ("makefile", ("Makefile",)),
)


def analyze_directory(root: Path) -> DirectoryAnalysis:
    """Collect file statistics and project markers for root's direct children."""
    names: set[str] = set()
    extensions: Counter[str] = Counter()
    total_files = 0
    total_dirs = 0
    largest: tuple[int, str] | None = None

    try:
        entries = list(root.iterdir())
    except OSError as exc:
        LOGGER.warning("Unable to analyze %s: %s", root, exc)
        return DirectoryAnalysis(root=root)

    for entry in entries:
        names.add(entry.name)
        if entry.is_dir():
            total_dirs += 1
            continue
        if not entry.is_file():
            continue
        total_files += 1
        if "." in entry.name.lstrip("."):
            extensions[entry.suffix.lower().lstrip(".")] += 1
        try:
            size = entry.stat().st_size
        except OSError:
            continue
        if largest is None or size > largest[0]:
            largest = (size, entry.name)

    marker_kinds = []
    if names & PACKAGE_MANIFESTS:
        marker_kinds.append("package_manifest")
    if names & REQUIREMENT_FILES:
        marker_kinds.append("requirements")
    if names & BUILD_MANIFESTS:
        marker_kinds.append("build_manifest")
    if ".git" in names:
        marker_kinds.append("git")

    indicators = [label for label, markers in _INDICATORS if names.intersection(markers)]
    if ".git" in names:
        indicators.append("git")

    return DirectoryAnalysis(
        root=root,
        total_files=total_files,
        total_directories=total_dirs,
        largest_file=largest[1] if largest else None,
        dominant_extensions=[ext for ext, _ in extensions.most_common(5)],
        project_indicators=indicators,
        marker_kinds=marker_kinds,
    )


__all__ = ["BUILD_MANIFESTS", "PACKAGE_MANIFESTS", "REQUIREMENT_FILES", "analyze_directory"]
