"""Validation package for generated architecture guides."""

from .accuracy import AccuracyValidator
from .base import (
    PassResult,
    QualityGateFailure,
    ValidationContext,
    ValidationIssue,
    Validator,
)
from .completeness import CompletenessValidator
from .consistency import ConsistencyValidator
from .engine import GuideReport, ValidationEngine

__all__ = [
    "AccuracyValidator",
    "CompletenessValidator",
    "ConsistencyValidator",
    "GuideReport",
    "PassResult",
    "QualityGateFailure",
    "ValidationContext",
    "ValidationEngine",
    "ValidationIssue",
    "Validator",
]
