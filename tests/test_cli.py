"""Tests for the techdocs CLI."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from techdocs import cli
from techdocs.stores import ANALYSIS_FILENAME
from tests._fixtures.repo_builder import REACT_APP, RepoBuilder


def test_parser_defaults() -> None:
    args = cli._build_parser().parse_args(["run", "."])

    assert args.command == "run"
    assert args.project_root == "."
    assert args.output == Path("docs/architecture")
    assert args.config is None
    assert args.guides is None
    assert args.verbose is False


def test_verbose_flag_accepted_after_subcommand() -> None:
    args = cli._build_parser().parse_args(["analyze", "repo", "-v", "--guides", "testing"])

    assert args.verbose is True
    assert args.guides == "testing"


def test_unknown_guide_is_a_usage_error(repo_builder: RepoBuilder) -> None:
    with pytest.raises(SystemExit) as info:
        cli.main(["run", str(repo_builder.path()), "--guides", "payments"])

    assert info.value.code == 2


def test_analyze_writes_results(repo_builder: RepoBuilder, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    repo_builder.write(REACT_APP)
    output = tmp_path / "out"

    exit_code = cli.main(["analyze", str(repo_builder.path()), "--output", str(output)])

    assert exit_code == 0
    data = json.loads((output / ANALYSIS_FILENAME).read_text(encoding="utf-8"))
    assert "framework:react" in data["analysis"]["capabilities"]
    assert "Analysis results saved to" in capsys.readouterr().out


def test_missing_root_exits_with_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(["analyze", str(tmp_path / "absent"), "--output", str(tmp_path / "out")])

    assert exit_code == 1
    assert "project root" in capsys.readouterr().err
    assert not (tmp_path / "out").exists()


def test_invalid_config_exits_with_error(repo_builder: RepoBuilder, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    config_file = tmp_path / "techdocs.yml"
    config_file.write_text("patterns:\n  payments: {}\n", encoding="utf-8")

    exit_code = cli.main(["analyze", str(repo_builder.path()), "--config", str(config_file)])

    assert exit_code == 1
    assert "Unknown pattern domain" in capsys.readouterr().err


def test_validate_reports_flagged_guides(repo_builder: RepoBuilder, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    repo_builder.write(REACT_APP)
    output = tmp_path / "out"
    output.mkdir()
    (output / "component-architecture.md").write_text("# Component Architecture\n\nNo sections.\n", encoding="utf-8")

    exit_code = cli.main(["validate", str(repo_builder.path()), "--output", str(output)])

    assert exit_code == 0
    assert "Validated 1 guides; 1 flagged for review" in capsys.readouterr().out
    assert (output / ANALYSIS_FILENAME).is_file()
