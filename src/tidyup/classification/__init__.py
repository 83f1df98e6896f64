"""Feature extraction and the classification pipeline."""

from .context import ContextBooster
from .custom import CustomRuleSet
from .engine import ClassificationEngine
from .ensemble import EnsembleClassifier
from .features import FeatureExtractor
from .models import ClassificationResult, FeatureSet, clamp_confidence
from .rules import RuleClassifier

__all__ = [
    "ClassificationEngine",
    "ClassificationResult",
    "ContextBooster",
    "CustomRuleSet",
    "EnsembleClassifier",
    "FeatureExtractor",
    "FeatureSet",
    "RuleClassifier",
    "clamp_confidence",
]
