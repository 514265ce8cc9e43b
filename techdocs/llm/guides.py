"""The fixed guide catalogue and the prompts sent for each guide."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

MASTER_PROMPT = """You are a senior software architect writing internal architecture documentation.

Write one markdown guide about a single architectural domain of the analysed codebase.

Rules:
- Use only facts present in the analysis JSON. Do not invent libraries, files or behaviour.
- Every code example must be copied from the extracted examples and followed by a line
  `Source: <path>:<start>-<end>` using the example's file and line range.
- Spell technology names exactly as they appear in the analysis.
- When the domain's confidence is below the review threshold, say so near the top and
  mark uncertain statements with "(needs review)".

Structure the guide with these second level headings, in order:
{sections}
"""


@dataclass(frozen=True)
class Guide:
    name: str
    domain: str
    priority: int
    title: str

    @property
    def filename(self) -> str:
        return f"{self.name}.md"


GUIDES: Tuple[Guide, ...] = (
    Guide("authentication-architecture", "authentication", 1, "Authentication Architecture"),
    Guide("component-architecture", "components", 1, "Component Architecture"),
    Guide("state-management-architecture", "state", 1, "State Management Architecture"),
    Guide("background-jobs-architecture", "backgroundJobs", 2, "Background Jobs Architecture"),
    Guide("file-storage-architecture", "fileStorage", 2, "File Storage Architecture"),
    Guide("database-architecture", "database", 2, "Database Architecture"),
    Guide("error-handling-architecture", "errorHandling", 3, "Error Handling Architecture"),
    Guide("testing-architecture", "testing", 3, "Testing Architecture"),
    Guide("integration-architecture", "integration", 3, "Integration Architecture"),
    Guide("deployment-architecture", "deployment", 3, "Deployment Architecture"),
)


@dataclass(frozen=True)
class GuideResult:
    """Outcome of generating one guide."""

    guide: Guide
    confidence: float
    path: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def select_guides(names: Optional[Iterable[str]] = None) -> List[Guide]:
    """Resolve a ``--guides`` filter given as guide names or domain ids."""
    if names is None:
        return list(GUIDES)
    wanted = [name.strip() for name in names if name.strip()]
    selected: List[Guide] = []
    unknown: List[str] = []
    for name in wanted:
        guide = next((item for item in GUIDES if name in (item.name, item.domain)), None)
        if guide is None:
            unknown.append(name)
        elif guide not in selected:
            selected.append(guide)
    if unknown:
        raise ValueError(f"Unknown guides requested: {', '.join(unknown)}")
    return selected


def order_guides(guides: Sequence[Guide], confidence: Mapping[str, float]) -> List[Guide]:
    """Priority first, then the most confident domain first."""
    return sorted(guides, key=lambda guide: (guide.priority, -confidence.get(guide.domain, 0.0)))


def build_prompt(
    analysis_payload: Mapping[str, Any],
    guide: Guide,
    *,
    required_sections: Sequence[str] = ("Overview", "Architecture", "Implementation", "Code Examples"),
) -> Tuple[str, str]:
    """Return the system message and user prompt for one guide."""
    sections = "\n".join(f"## {section}" for section in required_sections)
    context = dict(analysis_payload)
    context["targetGuide"] = guide.name
    context["focusArea"] = guide.domain
    prompt = "\n".join(
        [
            "## Current Task",
            f'Generate the "{guide.name}" documentation guide for the analysed codebase.',
            f"Title it \"# {guide.title}\".",
            "",
            "## Analysis Context",
            json.dumps(context, indent=2, sort_keys=False),
            "",
            "## Instructions",
            f'1. Focus only on the "{guide.domain}" architectural domain.',
            "2. Use only the provided analysis data and code examples.",
            "3. Include the domain's confidence score and any review flags.",
            "",
            "Generate the complete guide now.",
        ]
    )
    return MASTER_PROMPT.format(sections=sections), prompt


__all__ = [
    "GUIDES",
    "Guide",
    "GuideResult",
    "MASTER_PROMPT",
    "build_prompt",
    "order_guides",
    "select_guides",
]
