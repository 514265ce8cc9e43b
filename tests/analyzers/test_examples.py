"""Tests for code example extraction."""

from __future__ import annotations

import textwrap
from typing import List, Optional

import pytest

from techdocs.analyzers.examples import CodeExampleExtractor, densest_window
from techdocs.analyzers.patterns import ArchitecturePatternDetector
from techdocs.analyzers.syntax import SyntaxChecker, grammar_for_path
from techdocs.config import AnalysisConfig, ExtractionLimits
from techdocs.models import STATUS_ACCEPTED, STATUS_NEEDS_REVIEW, CodeExample
from techdocs.scoring import DomainScorer
from tests._fixtures.repo_builder import REACT_APP, RepoBuilder


def _extract(
    repo_builder: RepoBuilder, config: AnalysisConfig, limits: Optional[ExtractionLimits] = None
) -> List[CodeExample]:
    catalog = repo_builder.scan()
    matches = ArchitecturePatternDetector().detect(catalog, config.rules)
    return CodeExampleExtractor(config.rules).extract(catalog, matches, limits or config.extraction)


def test_react_component_yields_accepted_example(repo_builder: RepoBuilder, config: AnalysisConfig) -> None:
    repo_builder.write(REACT_APP)

    examples = _extract(repo_builder, config)

    assert len(examples) == 1
    example = examples[0]
    assert example.domain == "components"
    assert example.path == "src/components/Button.tsx"
    assert (example.start_line, example.end_line) == (3, 16)
    assert example.line_count == 14
    assert example.import_block == 'import React from "react";'
    assert example.code.startswith("export default function Button(")
    assert example.status == STATUS_ACCEPTED
    assert example.unresolved_imports == ()


def test_undeclared_import_marks_example_for_review(repo_builder: RepoBuilder, config: AnalysisConfig) -> None:
    files = dict(REACT_APP)
    files["src/components/Button.tsx"] = 'import clsx from "clsx";\n' + textwrap.dedent(files["src/components/Button.tsx"]).lstrip("\n")
    repo_builder.write(files)

    examples = _extract(repo_builder, config)

    assert len(examples) == 1
    assert examples[0].status == STATUS_NEEDS_REVIEW
    assert examples[0].unresolved_imports == ("clsx",)


def test_relative_import_to_missing_file_is_unresolved(repo_builder: RepoBuilder, config: AnalysisConfig) -> None:
    files = dict(REACT_APP)
    files["src/components/Button.tsx"] = 'import theme from "./theme";\n' + textwrap.dedent(files["src/components/Button.tsx"]).lstrip("\n")
    repo_builder.write(files)

    assert _extract(repo_builder, config)[0].unresolved_imports == ("./theme",)

    repo_builder.write({"src/components/theme.ts": "export default { primary: 'blue' };\n"})

    examples = [example for example in _extract(repo_builder, config) if example.path.endswith("Button.tsx")]
    assert examples[0].status == STATUS_ACCEPTED


def test_syntax_failure_falls_back_to_next_candidate(repo_builder: RepoBuilder, config: AnalysisConfig) -> None:
    repo_builder.write(
        {
            "requirements.txt": "pytest\n",
            "tests/test_alpha.py": """
                import pytest


                def test_alpha(:
                    assert True
                    assert 1 == 1
            """,
            "tests/test_beta.py": """
                import pytest


                def test_beta():
                    value = 1 + 1
                    assert value == 2
            """,
        }
    )
    limits = ExtractionLimits(min_example_lines=2)

    examples = [example for example in _extract(repo_builder, config, limits) if example.domain == "testing"]

    assert [example.path for example in examples] == ["tests/test_beta.py"]
    assert (examples[0].start_line, examples[0].end_line) == (4, 6)
    assert examples[0].import_block == "import pytest"
    assert examples[0].status == STATUS_ACCEPTED


def test_blocks_outside_line_limits_are_rejected(repo_builder: RepoBuilder, config: AnalysisConfig) -> None:
    body = "\n".join(f"  const value{index} = {index};" for index in range(60))
    repo_builder.write(
        {
            "package.json": '{"dependencies": {"react": "18"}}',
            "src/components/Huge.tsx": f"export function Huge() {{\n{body}\n  return null;\n}}\n",
        }
    )

    assert _extract(repo_builder, config) == []


def test_examples_per_domain_are_capped_and_ranked(repo_builder: RepoBuilder, config: AnalysisConfig) -> None:
    component = """
        export function {name}() {{
          const label = "{name}";
          const size = 2;
          const ready = true;
          return ready ? label.repeat(size) : null;
        }}
    """
    repo_builder.write(
        {
            "src/components/Alpha.tsx": component.format(name="Alpha"),
            "src/components/Beta.tsx": component.format(name="Beta"),
            "src/components/Gamma.tsx": component.format(name="Gamma"),
        }
    )
    limits = ExtractionLimits(max_examples_per_domain=2, priority_files=("**/Gamma.tsx",))

    examples = _extract(repo_builder, config, limits)

    assert [example.path for example in examples] == ["src/components/Gamma.tsx", "src/components/Alpha.tsx"]


def test_densest_window_prefers_hit_density_within_bounds() -> None:
    units = [(0, 4), (6, 10), (12, 30)]
    hits = [False] * 31
    hits[7] = hits[8] = True
    hits[20] = True

    assert densest_window(units, hits, 5, 50) == (6, 10)
    assert densest_window(units, hits, 20, 50) == (6, 30)
    assert densest_window(units, hits, 5, 4) is None


def test_densest_window_breaks_ties_by_earliest_start() -> None:
    units = [(0, 5), (10, 15)]
    hits = [False] * 16

    assert densest_window(units, hits, 5, 10) == (0, 5)


def test_flagged_examples_do_not_fill_the_cap(repo_builder: RepoBuilder, config: AnalysisConfig) -> None:
    component = """
        export function {name}() {{
          const label = "{name}";
          const size = 2;
          const ready = true;
          return ready ? label.repeat(size) : null;
        }}
    """
    repo_builder.write(
        {
            "src/components/Alpha.tsx": 'import clsx from "clsx";\n' + textwrap.dedent(component.format(name="Alpha")).lstrip("\n"),
            "src/components/Beta.tsx": component.format(name="Beta"),
        }
    )
    catalog = repo_builder.scan()
    matches = ArchitecturePatternDetector().detect(catalog, config.rules)
    limits = ExtractionLimits(max_examples_per_domain=1)

    examples = CodeExampleExtractor(config.rules).extract(catalog, matches, limits)

    assert [(example.path, example.status) for example in examples] == [
        ("src/components/Alpha.tsx", STATUS_NEEDS_REVIEW),
        ("src/components/Beta.tsx", STATUS_ACCEPTED),
    ]
    score = DomainScorer(config.scoring, config.validation).score({}, matches, examples)["components"]
    assert score.accepted_examples == 1
    assert score.confidence == pytest.approx(0.8)


def test_every_example_reparses_with_its_import_block(repo_builder: RepoBuilder, config: AnalysisConfig) -> None:
    files = dict(REACT_APP)
    files.update(
        {
            "requirements.txt": "sqlalchemy\npytest\n",
            "app/models/order.py": """
                from sqlalchemy import Column, Integer, String
                from sqlalchemy.orm import declarative_base

                Base = declarative_base()


                class Order(Base):
                    __tablename__ = "orders"

                    id = Column(Integer, primary_key=True)
                    status = Column(String(20), default="pending")
            """,
            "service/order_test.go": """
                package service

                import "testing"

                func TestTotal(t *testing.T) {
                	total := 2 + 3
                	if total != 5 {
                		t.Fatalf("got %d", total)
                	}
                }
            """,
        }
    )
    repo_builder.write(files)

    examples = _extract(repo_builder, config)

    assert {example.path for example in examples} == {
        "src/components/Button.tsx",
        "app/models/order.py",
        "service/order_test.go",
    }
    checker = SyntaxChecker()
    for example in examples:
        result = checker.check(example.snippet, grammar_for_path(example.path))
        assert result.ok, (example.path, result.error)
    statuses = {example.path: example.status for example in examples}
    assert statuses["src/components/Button.tsx"] == STATUS_ACCEPTED
    assert statuses["app/models/order.py"] == STATUS_ACCEPTED
