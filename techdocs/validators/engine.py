"""Runs the validation passes over generated guides and applies the quality gate."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from ..analyzers.syntax import SyntaxChecker
from ..config import ValidationConfig
from ..logging import get_logger
from ..models import AnalysisResult
from .accuracy import AccuracyValidator
from .base import QualityGateFailure, ValidationContext, ValidationIssue, Validator
from .completeness import CompletenessValidator
from .consistency import ConsistencyValidator

logger = get_logger("validators.engine")


@dataclass
class GuideReport:
    """Validation outcome for one guide."""

    guide: str
    issues: List[ValidationIssue] = field(default_factory=list)
    pass_ratios: Dict[str, float] = field(default_factory=dict)
    quality_score: float = 1.0
    review_required: bool = False
    gate_failure: Optional[QualityGateFailure] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "guide": self.guide,
            "qualityScore": round(self.quality_score, 4),
            "reviewRequired": self.review_required,
            "passes": {name: round(value, 4) for name, value in self.pass_ratios.items()},
            "issues": [
                {
                    "check": issue.check,
                    "severity": issue.severity,
                    "message": issue.message,
                    "line": issue.line,
                }
                for issue in self.issues
            ],
            "qualityGateFailure": str(self.gate_failure) if self.gate_failure else None,
        }


class ValidationEngine:
    """Validates every guide with the accuracy, completeness and consistency passes.

    Passes run independently and their findings are unioned. A guide's quality
    score is the mean of the pass ratios; below the confidence threshold the
    report carries a :class:`QualityGateFailure` and ``review_required``.
    """

    def __init__(
        self,
        config: ValidationConfig | None = None,
        *,
        syntax: Optional[SyntaxChecker] = None,
        validators: Optional[Sequence[Validator]] = None,
    ) -> None:
        self.config = config or ValidationConfig()
        self.validators: Tuple[Validator, ...] = tuple(
            validators
            if validators is not None
            else (AccuracyValidator(syntax), CompletenessValidator(), ConsistencyValidator())
        )

    def validate(self, generated_docs: Mapping[str, str], analysis: AnalysisResult) -> Dict[str, GuideReport]:
        context = ValidationContext.build(generated_docs, analysis, self.config.required_sections)
        threshold = self.config.confidence_threshold
        reports: Dict[str, GuideReport] = {}
        for guide in sorted(generated_docs):
            text = generated_docs[guide]
            report = GuideReport(guide=guide)
            for validator in self.validators:
                result = validator.validate(guide, text, context)
                report.issues.extend(result.issues)
                report.pass_ratios[validator.name] = result.ratio
            if report.pass_ratios:
                report.quality_score = sum(report.pass_ratios.values()) / len(report.pass_ratios)
            if report.quality_score < threshold:
                report.review_required = True
                report.gate_failure = QualityGateFailure(guide, report.quality_score, threshold)
                logger.warning("%s", report.gate_failure)
            reports[guide] = report
        logger.info(
            "Validated %d guides (%d flagged for review)",
            len(reports),
            sum(1 for report in reports.values() if report.review_required),
        )
        return reports


__all__ = ["GuideReport", "ValidationEngine"]
