"""Tests for techdocs.config."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from techdocs.config import AnalysisConfig, ConfigError, build_config, default_config, load_config, parse_size
from techdocs.constants import DEFAULT_DOMAIN_RULES
from techdocs.models import DOMAINS, FILE_PATTERN


def test_default_config_covers_every_domain() -> None:
    config = default_config()

    assert isinstance(config, AnalysisConfig)
    assert list(config.rules) == list(DOMAINS)
    assert config.scan.max_file_size == 1024**2
    assert config.scan.timeout == 300.0
    assert config.extraction.max_examples_per_domain == 3
    assert config.validation.confidence_threshold == 0.7
    assert config.scoring.patterns == 0.4
    assert config.ai.rate_limit_delay == pytest.approx(0.1)


def test_load_config_parses_yaml(tmp_path: Path) -> None:
    config_file = tmp_path / "techdocs.yml"
    config_file.write_text(
        """
analysis:
  maxFileSize: 512KB
  timeout: 30
  excludePatterns:
    - "fixtures/"
extraction:
  maxExamplesPerDomain: 2
  minExampleLines: 3
  maxExampleLines: 20
  priorityFiles:
    - "src/lib/**"
validation:
  confidenceThreshold: 0.5
  requiredSections: [Overview, Usage]
ai:
  model: "local-model"
  baseUrl: "http://localhost:8080/v1"
  rateLimitDelay: 250
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.source == config_file.resolve()
    assert config.scan.max_file_size == 512 * 1024
    assert config.scan.timeout == 30.0
    assert config.scan.exclude_patterns == ("fixtures/",)
    assert config.extraction.max_examples_per_domain == 2
    assert config.extraction.priority_files == ("src/lib/**",)
    assert config.validation.confidence_threshold == 0.5
    assert config.validation.required_sections == ("Overview", "Usage")
    assert config.ai.model == "local-model"
    assert config.ai.base_url == "http://localhost:8080/v1"
    assert config.ai.rate_limit_delay == pytest.approx(0.25)


def test_load_config_parses_json(tmp_path: Path) -> None:
    config_file = tmp_path / "techdocs.json"
    config_file.write_text(json.dumps({"scoring": {"weights": {"patterns": 0.5}}}), encoding="utf-8")

    config = load_config(config_file)

    assert config.scoring.patterns == 0.5
    assert config.scoring.examples == 0.4


def test_empty_config_file_yields_defaults(tmp_path: Path) -> None:
    config_file = tmp_path / "techdocs.yml"
    config_file.write_text("\n", encoding="utf-8")

    assert load_config(config_file).scan == default_config().scan


def test_pattern_override_replaces_only_listed_dimensions() -> None:
    defaults = default_config().rules["components"]

    config = build_config({"patterns": {"components": {"filePatterns": ["app/widgets/**"]}}})
    rules = config.rules["components"]

    assert [rule.source for rule in rules.file_rules] == ["app/widgets/**"]
    assert rules.file_rules[0].dimension == FILE_PATTERN
    assert rules.file_rules[0].matches("app/widgets/Card.tsx")
    assert [rule.source for rule in rules.function_rules] == [rule.source for rule in defaults.function_rules]
    assert [rule.source for rule in rules.import_rules] == [rule.source for rule in defaults.import_rules]


def test_configuration_file_signatures_can_be_added() -> None:
    config = build_config(
        {"techStack": {"configurationFiles": {"taskfile": {"domain": "deployment", "files": ["Taskfile.yml"]}}}}
    )

    names = {signature.name for signature in config.signatures.config_files}
    assert {"taskfile", "docker"} <= names


@pytest.mark.parametrize(
    ("document", "message"),
    [
        ({"patterns": {"payments": {}}}, "Unknown pattern domain"),
        ({"patterns": {"database": {"functionPatterns": ["(unclosed"]}}}, "Invalid regular expression"),
        ({"patterns": {"database": {"queryPatterns": []}}}, "unknown keys"),
        ({"analysis": {"maxFileSize": "lots"}}, "Invalid size value"),
        ({"analysis": {"timeout": -1}}, "analysis.timeout"),
        ({"extraction": {"minExampleLines": 10, "maxExampleLines": 5}}, "must not exceed"),
        ({"validation": {"confidenceThreshold": 1.5}}, "confidenceThreshold"),
        ({"scoring": {"weights": {"coverage": 0.1}}}, "unknown keys"),
        ({"techStack": {"cloud": {}}}, "Unknown techStack table"),
        ({"analysis": ["not", "a", "mapping"]}, "must be a mapping"),
    ],
)
def test_build_config_rejects_invalid_documents(document: dict, message: str) -> None:
    with pytest.raises(ConfigError, match=message):
        build_config(document)


def test_load_config_reports_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "missing.yml")


def test_load_config_reports_parse_errors(tmp_path: Path) -> None:
    config_file = tmp_path / "broken.yml"
    config_file.write_text("analysis: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Failed to parse"):
        load_config(config_file)


def test_load_config_requires_mapping_root(tmp_path: Path) -> None:
    config_file = tmp_path / "list.yml"
    config_file.write_text("- one\n- two\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="mapping at the root"):
        load_config(config_file)


@pytest.mark.parametrize(
    ("value", "expected"),
    [(2048, 2048), ("1MB", 1024**2), ("1.5 kb", 1536), ("10", 10), ("2GiB", 2 * 1024**3)],
)
def test_parse_size(value: object, expected: int) -> None:
    assert parse_size(value) == expected


def test_every_default_rule_compiles() -> None:
    config = build_config({})

    for domain, rules in DEFAULT_DOMAIN_RULES.items():
        compiled = config.rules[domain]
        assert len(compiled.file_rules) == len(rules.get("filePatterns", []))
        assert len(compiled.function_rules) == len(rules.get("functionPatterns", []))
        assert len(compiled.import_rules) == len(rules.get("importPatterns", []))


def test_default_database_rule_recognises_model_classes() -> None:
    rules = build_config({}).rules["database"].function_rules

    for line in ("class Order(db.Model):", "class Order(models.Model):", "class Order(Base):", "class Order(SQLModel, table=True):"):
        assert any(rule.matches(line) for rule in rules), line
    assert not any(rule.matches("class Order(Serializer):") for rule in rules)
