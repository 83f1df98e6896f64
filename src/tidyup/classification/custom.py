"""User-defined rules evaluated ahead of the built-in rule table."""

from __future__ import annotations

import fnmatch
import logging
from pathlib import Path
from typing import Iterable, Optional, Sequence

import yaml
from pydantic import ValidationError

from tidyup.config.exceptions import ConfigError
from tidyup.config.models import CustomRuleSpec

from .features import normalize_extension
from .models import ClassificationResult, FeatureSet

LOGGER = logging.getLogger(__name__)


class CustomRuleSet:
    """Ordered collection of custom rules; the first matching rule wins."""

    def __init__(self, rules: Iterable[CustomRuleSpec] = ()) -> None:
        self.rules: list[CustomRuleSpec] = list(rules)

    def __len__(self) -> int:
        return len(self.rules)

    @classmethod
    def from_file(cls, path: Path) -> "CustomRuleSet":
        """Load rules from a YAML file holding a list or a ``rules:`` mapping.

        Raises:
            ConfigError: If the file is missing, unparsable, or has invalid rules.
        """
        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise ConfigError(f"Unable to read custom rules file {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse custom rules file {path}: {exc}") from exc

        if isinstance(raw, dict):
            raw = raw.get("rules", [])
        if raw is None:
            raw = []
        if not isinstance(raw, list):
            raise ConfigError("Custom rules file must contain a list of rules.")

        try:
            rules = [CustomRuleSpec.model_validate(entry) for entry in raw]
        except ValidationError as exc:
            raise ConfigError(f"Invalid custom rule in {path}: {exc}") from exc
        LOGGER.info("Loaded %d custom rule(s) from %s", len(rules), path)
        return cls(rules)

    def extend(self, rules: Sequence[CustomRuleSpec]) -> None:
        """Append rules that are consulted after the existing ones."""
        self.rules.extend(rules)

    def classify(self, features: FeatureSet) -> Optional[ClassificationResult]:
        """Return the result of the first matching rule, if any."""
        for index, rule in enumerate(self.rules):
            if not self._matches(rule, features):
                continue
            label = rule.name or f"custom rule #{index + 1}"
            return ClassificationResult(
                category=rule.category,
                subcategory=rule.subcategory,
                confidence=rule.confidence,
                rationale=f"Matched {label}",
                source="rule",
                destination=rule.destination,
            )
        return None

    @staticmethod
    def _matches(rule: CustomRuleSpec, features: FeatureSet) -> bool:
        if not (rule.extensions or rule.pattern or rule.mime):
            return False
        if rule.extensions:
            wanted = {normalize_extension(f"x.{ext.lstrip('.')}") for ext in rule.extensions}
            if features.extension not in wanted:
                return False
        if rule.pattern and not fnmatch.fnmatch(features.filename.lower(), rule.pattern.lower()):
            return False
        if rule.mime and not features.mime_type.startswith(rule.mime.lower()):
            return False
        return True


__all__ = ["CustomRuleSet"]
