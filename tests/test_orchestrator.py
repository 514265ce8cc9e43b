"""Tests for techdocs.orchestrator."""

from __future__ import annotations

import http.client
import json
from dataclasses import replace
from pathlib import Path

import pytest

from techdocs.analyzers import ArchitecturePatternDetector, TechStackDetector
from techdocs.config import AnalysisConfig
from techdocs.llm.client import ContentGenerator, GenerationFailure
from techdocs.orchestrator import STAGE_EXAMPLES, STAGE_PATTERNS, STAGE_TECH_STACK, Orchestrator
from techdocs.stores import ANALYSIS_FILENAME
from techdocs.writer import INDEX_FILENAME, REPORT_FILENAME, DocumentWriter
from tests._fixtures.repo_builder import REACT_APP, RepoBuilder

GUIDE_TEMPLATE = """# {title}

## Overview

Built with React.

## Architecture

Plain function components.

## Implementation

Props in, markup out.

## Code Examples

Source: src/components/Button.tsx:3-16
"""


class ScriptedRunner:
    """Stands in for the HTTP call; fails for the guides it is told to."""

    def __init__(self, failing: tuple = ()) -> None:
        self.failing = set(failing)
        self.calls: list[str] = []

    def __call__(self, request) -> str:
        self.calls.append(request.guide)
        if request.guide in self.failing:
            raise GenerationFailure(request.guide, "HTTP 500: upstream error")
        title = request.guide.replace("-", " ").title()
        return GUIDE_TEMPLATE.format(title=title)


def _orchestrator(config: AnalysisConfig, runner: ScriptedRunner, sleeps: list | None = None) -> Orchestrator:
    generator = ContentGenerator(config.ai, required_sections=config.validation.required_sections, runner=runner)
    recorded = sleeps if sleeps is not None else []
    return Orchestrator(config, generator=generator, sleep=recorded.append)


def test_react_scenario_scores_components(repo_builder: RepoBuilder, config: AnalysisConfig) -> None:
    repo_builder.write(REACT_APP)

    analysis = Orchestrator(config).analyze(repo_builder.path())

    react = analysis.capabilities["framework:react"]
    assert "package.json" in react.evidence
    assert [(match.domain, match.path) for match in analysis.matches] == [
        ("components", "src/components/Button.tsx")
    ]
    assert [(example.path, example.status) for example in analysis.examples] == [
        ("src/components/Button.tsx", "accepted")
    ]
    components = analysis.scores["components"]
    assert components.confidence >= 0.8
    assert not components.review_required
    assert analysis.project.name == "shop-ui"
    assert analysis.metadata.files_scanned == 2
    assert not analysis.metadata.partial


def test_analysis_is_repeatable(repo_builder: RepoBuilder, config: AnalysisConfig) -> None:
    repo_builder.write(REACT_APP)
    orchestrator = Orchestrator(config)

    first = orchestrator.analyze(repo_builder.path())
    second = orchestrator.analyze(repo_builder.path())

    assert first.capabilities == second.capabilities
    assert first.matches == second.matches
    assert first.examples == second.examples
    assert first.scores == second.scores


def test_timeout_yields_partial_results(
    repo_builder: RepoBuilder, config: AnalysisConfig, monkeypatch: pytest.MonkeyPatch
) -> None:
    repo_builder.write(REACT_APP)

    class StalledDetector(TechStackDetector):
        def detect(self, catalog):
            self._stop.wait(10)
            return {}

    monkeypatch.setattr("techdocs.orchestrator.TechStackDetector", StalledDetector)
    config = replace(config, scan=replace(config.scan, timeout=1.0))

    analysis = Orchestrator(config).analyze(repo_builder.path())

    assert analysis.metadata.partial
    assert STAGE_TECH_STACK in analysis.metadata.timed_out_stages
    assert STAGE_PATTERNS not in analysis.metadata.timed_out_stages
    assert analysis.capabilities == {}
    assert [match.path for match in analysis.matches] == ["src/components/Button.tsx"]


def test_missing_root_is_rejected(tmp_path: Path, config: AnalysisConfig) -> None:
    with pytest.raises(FileNotFoundError):
        Orchestrator(config).analyze(tmp_path / "absent")


def test_failed_guide_does_not_block_the_rest(
    repo_builder: RepoBuilder, config: AnalysisConfig, tmp_path: Path
) -> None:
    repo_builder.write(REACT_APP)
    runner = ScriptedRunner(failing=("component-architecture",))
    sleeps: list = []
    output = tmp_path / "docs"

    outcome = _orchestrator(config, runner, sleeps).run(
        repo_builder.path(), output, ["components", "state", "database"]
    )

    assert runner.calls == ["component-architecture", "state-management-architecture", "database-architecture"]
    assert [(result.guide.name, result.ok) for result in outcome.generation] == [
        ("component-architecture", False),
        ("state-management-architecture", True),
        ("database-architecture", True),
    ]
    assert sleeps == [pytest.approx(0.1)] * 2
    assert not (output / "component-architecture.md").exists()
    assert (output / "database-architecture.md").read_text(encoding="utf-8").startswith("# Database Architecture")
    assert outcome.analysis_path == output / ANALYSIS_FILENAME

    index = (output / INDEX_FILENAME).read_text(encoding="utf-8")
    assert "### Failed to Generate (1)" in index
    assert "component-architecture: HTTP 500: upstream error" in index

    report = json.loads((output / REPORT_FILENAME).read_text(encoding="utf-8"))
    assert sorted(report["guides"]) == ["database-architecture", "state-management-architecture"]
    assert set(outcome.reports) == {"database-architecture", "state-management-architecture"}


def test_validate_uses_persisted_analysis(repo_builder: RepoBuilder, config: AnalysisConfig, tmp_path: Path) -> None:
    repo_builder.write(REACT_APP)
    output = tmp_path / "docs"
    orchestrator = _orchestrator(config, ScriptedRunner())
    orchestrator.run(repo_builder.path(), output, ["components"])

    analysis, fresh = orchestrator.load_or_analyze(repo_builder.path(), output)
    reports = orchestrator.validate(analysis, output)

    assert not fresh
    report = reports["component-architecture"]
    assert report.pass_ratios["completeness"] == 1.0
    assert report.pass_ratios["accuracy"] == 1.0
    assert not report.review_required


def test_load_or_analyze_runs_fresh_when_nothing_is_stored(
    repo_builder: RepoBuilder, config: AnalysisConfig, tmp_path: Path
) -> None:
    repo_builder.write(REACT_APP)

    analysis, fresh = Orchestrator(config).load_or_analyze(repo_builder.path(), tmp_path / "docs")

    assert fresh
    assert (tmp_path / "docs" / ANALYSIS_FILENAME).is_file()
    assert "framework:react" in analysis.capabilities


def test_crashing_detector_yields_partial_results(
    repo_builder: RepoBuilder, config: AnalysisConfig, monkeypatch: pytest.MonkeyPatch
) -> None:
    repo_builder.write(REACT_APP)

    class BrokenDetector(TechStackDetector):
        def detect(self, catalog):
            raise RuntimeError("grammar download failed")

    monkeypatch.setattr("techdocs.orchestrator.TechStackDetector", BrokenDetector)

    analysis = Orchestrator(config).analyze(repo_builder.path())

    assert analysis.metadata.partial
    assert analysis.metadata.failed_stages == (STAGE_TECH_STACK,)
    assert analysis.metadata.timed_out_stages == ()
    assert analysis.capabilities == {}
    assert [example.path for example in analysis.examples] == ["src/components/Button.tsx"]


def test_crashing_pattern_stage_skips_extraction(
    repo_builder: RepoBuilder, config: AnalysisConfig, monkeypatch: pytest.MonkeyPatch
) -> None:
    repo_builder.write(REACT_APP)

    class BrokenPatterns(ArchitecturePatternDetector):
        def detect(self, catalog, rules):
            raise ValueError("bad rule")

    monkeypatch.setattr("techdocs.orchestrator.ArchitecturePatternDetector", BrokenPatterns)

    analysis = Orchestrator(config).analyze(repo_builder.path())

    assert analysis.metadata.failed_stages == (STAGE_PATTERNS, STAGE_EXAMPLES)
    assert analysis.matches == ()
    assert "framework:react" in analysis.capabilities


def test_transport_and_write_errors_do_not_block_the_rest(
    repo_builder: RepoBuilder, config: AnalysisConfig, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    repo_builder.write(REACT_APP)
    runner = ScriptedRunner()

    def flaky_runner(request) -> str:
        if request.guide == "component-architecture":
            raise http.client.IncompleteRead(b"partial")
        return runner(request)

    original_write = DocumentWriter.write_guide

    def write_guide(self, guide, content):
        if guide.name == "state-management-architecture":
            raise PermissionError("read-only output directory")
        return original_write(self, guide, content)

    monkeypatch.setattr(DocumentWriter, "write_guide", write_guide)
    generator = ContentGenerator(config.ai, required_sections=config.validation.required_sections, runner=flaky_runner)
    orchestrator = Orchestrator(config, generator=generator, sleep=lambda seconds: None)
    analysis = orchestrator.analyze(repo_builder.path())

    results = orchestrator.generate(analysis, tmp_path / "docs", ["components", "state", "database"])

    assert [(result.guide.name, result.ok) for result in results] == [
        ("component-architecture", False),
        ("state-management-architecture", False),
        ("database-architecture", True),
    ]
    assert "IncompleteRead" in results[0].error
    assert results[1].error == "could not write guide: read-only output directory"
    assert (tmp_path / "docs" / "database-architecture.md").is_file()
