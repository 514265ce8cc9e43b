"""Writes generated guides, the index README and the validation report."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .llm.guides import GUIDES, Guide, GuideResult
from .logging import get_logger
from .models import AnalysisResult
from .validators.engine import GuideReport

INDEX_FILENAME = "README.md"
REPORT_FILENAME = "validation-report.json"

logger = get_logger("writer")


def confidence_badge(value: float) -> str:
    percentage = round(value * 100)
    if percentage >= 80:
        return "🟢"
    if percentage >= 60:
        return "🟡"
    return "🔴"


class DocumentWriter:
    """Owns the output directory layout."""

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = Path(output_dir)

    def write_guide(self, guide: Guide, content: str) -> Path:
        path = self.output_dir / guide.filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        logger.debug("Wrote %s", path)
        return path

    def read_guides(self, guides: Optional[Sequence[Guide]] = None) -> Dict[str, str]:
        """Load previously written guides that exist on disk, keyed by guide name."""
        found: Dict[str, str] = {}
        for guide in guides if guides is not None else GUIDES:
            path = self.output_dir / guide.filename
            if path.is_file():
                found[guide.name] = path.read_text(encoding="utf-8")
        return found

    def write_index(self, analysis: AnalysisResult, results: Iterable[GuideResult], *, generated_at: Optional[str] = None) -> Path:
        path = self.output_dir / INDEX_FILENAME
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(render_index(analysis, list(results), generated_at=generated_at), encoding="utf-8")
        logger.info("Generated documentation index at %s", path)
        return path

    def write_report(self, reports: Mapping[str, GuideReport]) -> Path:
        path = self.output_dir / REPORT_FILENAME
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "guides": {name: report.to_dict() for name, report in sorted(reports.items())},
            "reviewRequired": sorted(name for name, report in reports.items() if report.review_required),
        }
        path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
        logger.info("Validation report saved to %s", path)
        return path


def render_index(analysis: AnalysisResult, results: List[GuideResult], *, generated_at: Optional[str] = None) -> str:
    timestamp = generated_at or datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    project = analysis.project
    frameworks = sorted(
        capability.key for capability in analysis.capabilities.values() if capability.category == "framework"
    )
    succeeded = [result for result in results if result.ok]
    failed = [result for result in results if not result.ok]

    lines = [
        f"# Technical Documentation - {project.name}",
        "",
        "## Overview",
        f"This documentation was generated on {timestamp}.",
        "",
        f"**Project**: {project.name}",
        f"**Description**: {project.description}",
        f"**Technologies**: {', '.join(frameworks) or 'None detected'}",
    ]
    metadata = analysis.metadata
    if metadata.partial:
        if metadata.failed_stages:
            lines += ["", f"> Analysis stages failed: {', '.join(metadata.failed_stages)}."]
        if metadata.timed_out_stages or not metadata.failed_stages:
            stages = ", ".join(metadata.timed_out_stages) or "analysis"
            lines += ["", f"> Analysis timed out during: {stages}."]
        lines[-1] += " Findings are partial."

    lines += ["", "## Generated Guides", "", f"### Successfully Generated ({len(succeeded)})"]
    for result in succeeded:
        lines.append(
            f"- [{result.guide.title}]({result.guide.filename}) "
            f"{confidence_badge(result.confidence)} {round(result.confidence * 100)}% confidence"
        )
    if failed:
        lines += ["", f"### Failed to Generate ({len(failed)})"]
        lines += [f"- {result.guide.name}: {result.error}" for result in failed]

    structure = project.structure
    lines += [
        "",
        "## Analysis Summary",
        f"- **Analysis Time**: {round(analysis.metadata.duration_seconds)}s",
        f"- **Files Analyzed**: {structure.get('totalFiles', analysis.metadata.files_scanned)}",
        f"- **Technologies Detected**: {len(analysis.capabilities)}",
        f"- **Patterns Identified**: {len(analysis.matches)}",
        f"- **Code Examples**: {len(analysis.examples)}",
        "",
        "## Quality Metrics",
    ]
    for domain, score in analysis.scores.items():
        review = " (review required)" if score.review_required else ""
        lines.append(
            f"- **{domain[0].upper()}{domain[1:]}**: {confidence_badge(score.confidence)} "
            f"{round(score.confidence * 100)}% confidence, {round(score.completeness * 100)}% complete{review}"
        )
    lines += [
        "",
        "## Next Steps",
        "1. Review generated documentation for accuracy",
        "2. Add project-specific context where needed",
        "3. Validate code examples in your environment",
        "",
    ]
    return "\n".join(lines)


__all__ = ["DocumentWriter", "INDEX_FILENAME", "REPORT_FILENAME", "confidence_badge", "render_index"]
