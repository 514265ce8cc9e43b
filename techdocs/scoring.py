"""Confidence and completeness scoring per domain."""

from __future__ import annotations

from typing import Dict, Iterable, Mapping

from .config import ScoringWeights, ValidationConfig
from .logging import get_logger
from .models import DOMAINS, STATUS_ACCEPTED, Capability, CodeExample, DomainMatch, DomainScore
from .signatures import CONFIGURATION_CATEGORY

logger = get_logger("scoring")


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


class DomainScorer:
    """Combines pattern, example and configuration evidence into a score per domain.

    Each evidence kind contributes its weight when present and nothing when
    absent, so adding evidence can never lower confidence.
    """

    def __init__(self, weights: ScoringWeights | None = None, validation: ValidationConfig | None = None) -> None:
        self.weights = weights or ScoringWeights()
        self.threshold = (validation or ValidationConfig()).confidence_threshold

    def score(
        self,
        capabilities: Mapping[str, Capability],
        matches: Iterable[DomainMatch],
        examples: Iterable[CodeExample],
    ) -> Dict[str, DomainScore]:
        match_counts: Dict[str, int] = {}
        for match in matches:
            match_counts[match.domain] = match_counts.get(match.domain, 0) + 1
        accepted_counts: Dict[str, int] = {}
        for example in examples:
            if example.status == STATUS_ACCEPTED:
                accepted_counts[example.domain] = accepted_counts.get(example.domain, 0) + 1
        configured = {
            capability.domain
            for capability in capabilities.values()
            if capability.category == CONFIGURATION_CATEGORY and capability.domain
        }

        scores: Dict[str, DomainScore] = {}
        for domain in DOMAINS:
            pattern_matches = match_counts.get(domain, 0)
            accepted = accepted_counts.get(domain, 0)
            has_configuration = domain in configured
            confidence = _clamp(
                self.weights.patterns * (pattern_matches > 0)
                + self.weights.examples * (accepted > 0)
                + self.weights.configuration * has_configuration
            )
            confidence = round(confidence, 4)
            completeness = round(_clamp(accepted / max(pattern_matches, 1)), 4)
            scores[domain] = DomainScore(
                domain=domain,
                confidence=confidence,
                completeness=completeness,
                review_required=confidence < self.threshold,
                pattern_matches=pattern_matches,
                accepted_examples=accepted,
                has_configuration=has_configuration,
            )
        flagged = sorted(domain for domain, score in scores.items() if score.review_required)
        if flagged:
            logger.debug("Domains below the %.2f confidence threshold: %s", self.threshold, ", ".join(flagged))
        return scores


__all__ = ["DomainScorer"]
