"""Core data models shared across techdocs components."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Pattern, Tuple

DOMAINS: Tuple[str, ...] = (
    "authentication",
    "components",
    "state",
    "backgroundJobs",
    "fileStorage",
    "database",
    "errorHandling",
    "testing",
    "integration",
    "deployment",
)

FILE_PATTERN = "filePattern"
FUNCTION_PATTERN = "functionPattern"
IMPORT_PATTERN = "importPattern"
RULE_DIMENSIONS: Tuple[str, ...] = (FILE_PATTERN, FUNCTION_PATTERN, IMPORT_PATTERN)

STATUS_ACCEPTED = "accepted"
STATUS_NEEDS_REVIEW = "needs-review"

_BINARY_SNIFF_BYTES = 8192


@dataclass(frozen=True)
class FileEntry:
    """A single file discovered by the catalog; content is read on first access."""

    path: str
    size: int
    language: Optional[str]
    absolute_path: Path = field(repr=False, compare=False)
    size_exceeded: bool = False
    readable: bool = True

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def suffix(self) -> str:
        name = self.name
        return name[name.rfind(".") :].lower() if "." in name else ""

    @cached_property
    def text(self) -> Optional[str]:
        """Decoded file contents, or None for oversized, unreadable or binary files."""
        if self.size_exceeded or not self.readable:
            return None
        try:
            raw = self.absolute_path.read_bytes()
        except OSError:
            return None
        if b"\x00" in raw[:_BINARY_SNIFF_BYTES]:
            return None
        return raw.decode("utf-8", errors="replace")

    @cached_property
    def lines(self) -> Tuple[str, ...]:
        text = self.text
        return tuple(text.splitlines()) if text is not None else ()


@dataclass(frozen=True)
class ScanWarning:
    """A recoverable problem with a single file encountered while scanning."""

    path: str
    reason: str
    detail: str = ""


@dataclass(frozen=True)
class Capability:
    """A detected technology fact tied to the files that evidence it."""

    name: str
    category: str
    domain: Optional[str]
    markers: Tuple[str, ...]
    evidence: Tuple[str, ...]
    score: float

    def __post_init__(self) -> None:
        if not self.evidence:
            raise ValueError(f"Capability {self.name!r} requires at least one evidence path")

    @property
    def key(self) -> str:
        return self.name.split(":", 1)[-1]


@dataclass(frozen=True)
class PatternRule:
    """A single compiled detection rule for one architectural domain."""

    rule_id: str
    domain: str
    dimension: str
    source: str
    matcher: Pattern[str] = field(repr=False, compare=False)

    def matches(self, value: str) -> bool:
        # File rules are compiled globs and must cover the whole path.
        if self.dimension == FILE_PATTERN:
            return self.matcher.fullmatch(value) is not None
        return self.matcher.search(value) is not None


@dataclass(frozen=True)
class DomainMatch:
    """A file's corroborated membership in a domain."""

    domain: str
    file: FileEntry
    rule_ids: Tuple[str, ...]

    @property
    def path(self) -> str:
        return self.file.path


@dataclass(frozen=True)
class CodeExample:
    """A validated source excerpt (1-based inclusive line range) for a domain."""

    domain: str
    file: FileEntry
    start_line: int
    end_line: int
    import_block: str
    code: str
    rule_ids: Tuple[str, ...] = ()
    status: str = STATUS_ACCEPTED
    unresolved_imports: Tuple[str, ...] = ()

    @property
    def path(self) -> str:
        return self.file.path

    @property
    def language(self) -> Optional[str]:
        return self.file.language

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1

    @property
    def snippet(self) -> str:
        if not self.import_block:
            return self.code
        return f"{self.import_block}\n\n{self.code}"


@dataclass(frozen=True)
class DomainScore:
    """Confidence and completeness for a single domain."""

    domain: str
    confidence: float
    completeness: float
    review_required: bool
    pattern_matches: int = 0
    accepted_examples: int = 0
    has_configuration: bool = False


@dataclass(frozen=True)
class ProjectInfo:
    """Descriptive metadata about the analysed project."""

    name: str
    description: str
    root: str
    structure: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RunMetadata:
    """Bookkeeping for a single analysis run."""

    timestamp: str
    duration_seconds: float
    files_scanned: int
    partial: bool = False
    timed_out_stages: Tuple[str, ...] = ()
    failed_stages: Tuple[str, ...] = ()
    warnings: Tuple[ScanWarning, ...] = ()


@dataclass(frozen=True)
class AnalysisResult:
    """The immutable handoff produced by one analysis run."""

    project: ProjectInfo
    capabilities: Mapping[str, Capability]
    matches: Tuple[DomainMatch, ...]
    examples: Tuple[CodeExample, ...]
    scores: Mapping[str, DomainScore]
    metadata: RunMetadata


def group_by_domain(items: Any) -> Dict[str, list]:
    """Bucket matches or examples by their domain, preserving order."""
    grouped: Dict[str, list] = {}
    for item in items:
        grouped.setdefault(item.domain, []).append(item)
    return grouped
