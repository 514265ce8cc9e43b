"""Tests for guide, index and report output."""

from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path

from techdocs.llm.guides import GUIDES, GuideResult
from techdocs.validators import ValidationEngine
from techdocs.writer import REPORT_FILENAME, DocumentWriter, confidence_badge, render_index
from tests._fixtures.analysis import make_analysis, make_capability, make_example

COMPONENTS = next(guide for guide in GUIDES if guide.domain == "components")
DATABASE = next(guide for guide in GUIDES if guide.domain == "database")


def test_confidence_badges() -> None:
    assert confidence_badge(0.8) == "🟢"
    assert confidence_badge(0.6) == "🟡"
    assert confidence_badge(0.59) == "🔴"


def test_guides_round_trip_through_output_dir(tmp_path: Path) -> None:
    writer = DocumentWriter(tmp_path / "docs")

    path = writer.write_guide(COMPONENTS, "# Component Architecture\n")

    assert path.name == "component-architecture.md"
    assert writer.read_guides() == {"component-architecture": "# Component Architecture\n"}
    assert writer.read_guides([DATABASE]) == {}


def test_index_lists_successes_failures_and_scores() -> None:
    analysis = make_analysis(
        capabilities=[make_capability("framework:react", domain="components")],
        examples=[make_example("components", "src/components/Button.tsx")],
        partial=True,
    )
    results = [
        GuideResult(guide=COMPONENTS, confidence=0.8, path="component-architecture.md"),
        GuideResult(guide=DATABASE, confidence=0.0, error="HTTP 500: upstream error"),
    ]

    text = render_index(analysis, results, generated_at="2026-01-01T00:00:00Z")

    assert text.startswith("# Technical Documentation - shop-ui\n")
    assert "This documentation was generated on 2026-01-01T00:00:00Z." in text
    assert "**Technologies**: react" in text
    assert "Findings are partial." in text
    assert "### Successfully Generated (1)" in text
    assert "- [Component Architecture](component-architecture.md) 🟢 80% confidence" in text
    assert "### Failed to Generate (1)" in text
    assert "- database-architecture: HTTP 500: upstream error" in text
    assert "- **Database**: 🔴 0% confidence, 0% complete (review required)" in text


def test_report_lists_guides_needing_review(tmp_path: Path) -> None:
    analysis = make_analysis()
    reports = ValidationEngine().validate({"component-architecture": "no headings here\n"}, analysis)

    path = DocumentWriter(tmp_path).write_report(reports)

    assert path.name == REPORT_FILENAME
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["reviewRequired"] == ["component-architecture"]
    assert data["guides"]["component-architecture"]["passes"]["completeness"] == 0.0


def test_index_names_failed_stages() -> None:
    analysis = make_analysis()
    metadata = replace(analysis.metadata, partial=True, failed_stages=("techStack",))

    text = render_index(replace(analysis, metadata=metadata), [], generated_at="2026-01-01T00:00:00Z")

    assert "> Analysis stages failed: techStack. Findings are partial." in text
    assert "timed out" not in text
