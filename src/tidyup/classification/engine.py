"""Classification pipeline driver.

The engine chains the individual stages for one feature set: custom rules,
the ordered rule table, the ensemble fallback when the rule confidence is
below the model threshold, and finally the context booster.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from tidyup.inspection.models import DirectoryAnalysis
from tidyup.state.models import ConfidenceModel

from .context import ContextBooster
from .custom import CustomRuleSet
from .ensemble import EnsembleClassifier
from .models import ClassificationResult, FeatureSet
from .rules import RuleClassifier

LOGGER = logging.getLogger(__name__)


class ClassificationEngine:
    """Produce exactly one ClassificationResult per feature set.

    Args:
        model: Confidence thresholds and adjustments for this run.
        custom_rules: User rules consulted before the built-in table.
        analysis: Directory signals for the context booster.
        ensemble_scale: Confidence multiplier for ensemble results.
    """

    def __init__(
        self,
        model: Optional[ConfidenceModel] = None,
        *,
        custom_rules: Optional[CustomRuleSet] = None,
        analysis: Optional[DirectoryAnalysis] = None,
        ensemble_scale: float = 0.8,
    ) -> None:
        self.model = model or ConfidenceModel()
        self.custom_rules = custom_rules or CustomRuleSet()
        self.rules = RuleClassifier(self.model)
        self.ensemble = EnsembleClassifier(scale=ensemble_scale)
        self.booster = ContextBooster(analysis)

    def classify(self, features: FeatureSet) -> ClassificationResult:
        """Run the pipeline for one file.

        Args:
            features: Feature set produced by the extractor.

        Returns:
            ClassificationResult: Final category, subcategory, and confidence.
        """
        custom = self.custom_rules.classify(features)
        if custom is not None:
            LOGGER.debug("%s matched a custom rule: %s", features.filename, custom.rationale)
            return custom

        result = self.rules.classify(features)
        threshold = self.model.threshold_for(result.category)
        if result.confidence < threshold:
            LOGGER.debug(
                "%s: rule confidence %d below %s threshold %d; consulting ensemble",
                features.filename,
                result.confidence,
                result.category,
                threshold,
            )
            result = self.ensemble.classify(features, result)
        return self.booster.boost(features, result)

    def classify_all(self, features: Iterable[FeatureSet]) -> list[ClassificationResult]:
        """Classify several feature sets in order."""
        return [self.classify(item) for item in features]


__all__ = ["ClassificationEngine"]
