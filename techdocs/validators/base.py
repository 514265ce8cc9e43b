"""Core validation data structures shared by the guide validators."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterator, List, Mapping, Optional, Protocol, Sequence, Tuple

from ..models import AnalysisResult, CodeExample

_FENCE_OPEN = re.compile(r"^(?P<indent>[ \t]*)(?P<fence>`{3,}|~{3,})(?P<info>[^`\n]*)$")
_HEADING = re.compile(r"^\s{0,3}#{1,6}\s+(?P<title>.+?)\s*#*\s*$")


@dataclass(frozen=True)
class ValidationIssue:
    """A single finding against one generated guide."""

    guide: str
    check: str
    message: str
    line: Optional[int] = None
    severity: str = "error"


class QualityGateFailure(Exception):
    """A guide scored below the confidence threshold.

    Recorded on the guide report rather than raised, so a low-quality guide
    is always surfaced for review but never silently dropped.
    """

    def __init__(self, guide: str, score: float, threshold: float) -> None:
        super().__init__(f"{guide} scored {score:.2f}, below the {threshold:.2f} threshold")
        self.guide = guide
        self.score = score
        self.threshold = threshold


@dataclass(frozen=True)
class CodeBlock:
    info: str
    body: str
    line: int


@dataclass
class ValidationContext:
    """Everything a validator may inspect for one batch of guides."""

    guides: Mapping[str, str]
    analysis: AnalysisResult
    required_sections: Sequence[str] = ()
    examples_by_path: Mapping[str, Tuple[CodeExample, ...]] = field(default_factory=dict)

    @classmethod
    def build(cls, guides: Mapping[str, str], analysis: AnalysisResult, required_sections: Sequence[str]) -> "ValidationContext":
        examples: dict[str, list[CodeExample]] = {}
        for example in analysis.examples:
            examples.setdefault(example.path, []).append(example)
        return cls(
            guides=guides,
            analysis=analysis,
            required_sections=tuple(required_sections),
            examples_by_path={path: tuple(items) for path, items in examples.items()},
        )


@dataclass(frozen=True)
class PassResult:
    """Issues from one pass plus the share of its checks that succeeded."""

    issues: Tuple[ValidationIssue, ...]
    ratio: float


class Validator(Protocol):
    """Protocol implemented by guide validators."""

    name: str

    def validate(self, guide: str, text: str, context: ValidationContext) -> PassResult:
        """Check one guide and return its findings."""


def iter_code_blocks(text: str) -> Iterator[CodeBlock]:
    """Yield fenced code blocks with the 1-based line of their opening fence."""
    lines = text.splitlines()
    index = 0
    while index < len(lines):
        match = _FENCE_OPEN.match(lines[index])
        if not match:
            index += 1
            continue
        fence = match.group("fence")
        opened_at = index
        body: List[str] = []
        index += 1
        while index < len(lines) and not lines[index].strip().startswith(fence):
            body.append(lines[index])
            index += 1
        yield CodeBlock(info=match.group("info").strip(), body="\n".join(body), line=opened_at + 1)
        index += 1


def iter_headings(text: str) -> Iterator[str]:
    in_fence = False
    for line in text.splitlines():
        if _FENCE_OPEN.match(line):
            in_fence = not in_fence
            continue
        if in_fence:
            continue
        match = _HEADING.match(line)
        if match:
            yield match.group("title")


def ratio(passed: int, total: int) -> float:
    return 1.0 if total == 0 else passed / total


__all__ = [
    "CodeBlock",
    "PassResult",
    "QualityGateFailure",
    "ValidationContext",
    "ValidationIssue",
    "Validator",
    "iter_code_blocks",
    "iter_headings",
    "ratio",
]
