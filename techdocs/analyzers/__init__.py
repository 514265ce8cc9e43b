"""Detectors and extractors that turn a catalog into analysis facts."""

from .examples import CodeExampleExtractor, ValidationFailure
from .imports import ImportResolver
from .patterns import ArchitecturePatternDetector
from .syntax import SyntaxChecker
from .tech_stack import TechStackDetector, group_by_category, leaders

__all__ = [
    "ArchitecturePatternDetector",
    "CodeExampleExtractor",
    "ImportResolver",
    "SyntaxChecker",
    "TechStackDetector",
    "ValidationFailure",
    "group_by_category",
    "leaders",
]
