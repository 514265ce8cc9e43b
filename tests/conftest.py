from __future__ import annotations

from pathlib import Path

import pytest

from techdocs.config import AnalysisConfig, default_config
from tests._fixtures.repo_builder import RepoBuilder


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """Provide a reusable project builder rooted at the pytest tmp_path."""
    return RepoBuilder(tmp_path)


@pytest.fixture
def config() -> AnalysisConfig:
    return default_config()
