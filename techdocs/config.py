"""Configuration loading and validation for techdocs analysis runs."""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import yaml

from .constants import (
    DEFAULT_CONFIDENCE_THRESHOLD,
    DEFAULT_DOMAIN_RULES,
    DEFAULT_EXCLUDE_PATTERNS,
    DEFAULT_INCLUDE_PATTERNS,
    DEFAULT_MAX_EXAMPLE_LINES,
    DEFAULT_MAX_EXAMPLES_PER_DOMAIN,
    DEFAULT_MAX_FILE_SIZE,
    DEFAULT_MIN_EXAMPLE_LINES,
    DEFAULT_REQUIRED_SECTIONS,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_WEIGHTS,
)
from .globs import compile_glob
from .models import (
    DOMAINS,
    FILE_PATTERN,
    FUNCTION_PATTERN,
    IMPORT_PATTERN,
    PatternRule,
)
from .signatures import (
    CATEGORY_PREFIXES,
    DEFAULT_SIGNATURES,
    ConfigFileSignature,
    SignatureIndex,
    default_config_files,
)

_SIZE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([KMGT]?)(I?B)?\s*$", re.IGNORECASE)
_SIZE_FACTORS = {"": 1, "K": 1024, "M": 1024**2, "G": 1024**3, "T": 1024**4}

_RULE_KEYS = {
    "filePatterns": FILE_PATTERN,
    "functionPatterns": FUNCTION_PATTERN,
    "importPatterns": IMPORT_PATTERN,
}


class ConfigError(RuntimeError):
    """Raised when the configuration file is missing, unparsable or invalid."""


@dataclass(frozen=True)
class ScanConfig:
    """File discovery settings."""

    include_patterns: Tuple[str, ...] = tuple(DEFAULT_INCLUDE_PATTERNS)
    exclude_patterns: Tuple[str, ...] = tuple(DEFAULT_EXCLUDE_PATTERNS)
    max_file_size: int = 1024**2
    timeout: float = DEFAULT_TIMEOUT_SECONDS


@dataclass(frozen=True)
class DomainRules:
    """Compiled rules for one domain, grouped by dimension."""

    domain: str
    file_rules: Tuple[PatternRule, ...] = ()
    function_rules: Tuple[PatternRule, ...] = ()
    import_rules: Tuple[PatternRule, ...] = ()

    @property
    def content_rules(self) -> Tuple[PatternRule, ...]:
        return self.function_rules + self.import_rules

    def __iter__(self):  # type: ignore[no-untyped-def]
        return iter(self.file_rules + self.function_rules + self.import_rules)


@dataclass(frozen=True)
class ExtractionLimits:
    """Bounds for code example extraction."""

    max_examples_per_domain: int = DEFAULT_MAX_EXAMPLES_PER_DOMAIN
    min_example_lines: int = DEFAULT_MIN_EXAMPLE_LINES
    max_example_lines: int = DEFAULT_MAX_EXAMPLE_LINES
    priority_files: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ScoringWeights:
    """Policy weights for the confidence formula."""

    patterns: float = DEFAULT_WEIGHTS["patterns"]
    examples: float = DEFAULT_WEIGHTS["examples"]
    configuration: float = DEFAULT_WEIGHTS["configuration"]


@dataclass(frozen=True)
class ValidationConfig:
    """Quality gate settings."""

    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD
    required_sections: Tuple[str, ...] = tuple(DEFAULT_REQUIRED_SECTIONS)


@dataclass(frozen=True)
class AIConfig:
    """Settings for the external content generation service."""

    model: Optional[str] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    temperature: Optional[float] = 0.2
    max_tokens: Optional[int] = None
    request_timeout: float = 120.0
    rate_limit_delay: float = 0.1


@dataclass(frozen=True)
class AnalysisConfig:
    """The validated configuration document passed down by the orchestrator."""

    source: Optional[Path] = None
    scan: ScanConfig = field(default_factory=ScanConfig)
    signatures: SignatureIndex = field(default_factory=SignatureIndex.default)
    rules: Mapping[str, DomainRules] = field(default_factory=dict)
    extraction: ExtractionLimits = field(default_factory=ExtractionLimits)
    scoring: ScoringWeights = field(default_factory=ScoringWeights)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    ai: AIConfig = field(default_factory=AIConfig)


def load_config(config_path: Path) -> AnalysisConfig:
    """Load and validate configuration from a YAML or JSON document."""
    path = Path(config_path).expanduser()
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")
    if not path.is_file():
        raise ConfigError(f"Configuration path is not a file: {path}")
    data = _read_config(path)
    return build_config(data, source=path.resolve())


def default_config() -> AnalysisConfig:
    """Return the configuration implied by an empty document."""
    return build_config({})


def build_config(data: Mapping[str, Any], *, source: Optional[Path] = None) -> AnalysisConfig:
    """Validate a parsed configuration mapping into typed settings."""
    if not isinstance(data, Mapping):
        raise ConfigError("Configuration must contain a mapping at the root")

    return AnalysisConfig(
        source=source,
        scan=_build_scan(_section(data, "analysis")),
        signatures=_build_signatures(_section(data, "techStack")),
        rules=_build_rules(_section(data, "patterns")),
        extraction=_build_extraction(_section(data, "extraction")),
        scoring=_build_scoring(_section(data, "scoring")),
        validation=_build_validation(_section(data, "validation")),
        ai=_build_ai(_section(data, "ai")),
    )


def parse_size(value: Any) -> int:
    """Parse a size such as ``"1MB"`` or ``512`` into bytes (1024 based)."""
    if isinstance(value, bool):
        raise ConfigError(f"Invalid size value: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise ConfigError(f"Size must not be negative: {value}")
        return value
    if isinstance(value, float) and math.isfinite(value) and value >= 0:
        return int(value)
    if isinstance(value, str):
        match = _SIZE_PATTERN.match(value)
        if match:
            number, unit, _ = match.groups()
            return int(float(number) * _SIZE_FACTORS[unit.upper()])
    raise ConfigError(f"Invalid size value: {value!r} (expected e.g. '1MB' or a byte count)")


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Unable to read {path}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        if path.suffix.lower() == ".json":
            loaded = json.loads(text)
        else:
            loaded = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _build_scan(data: Mapping[str, Any]) -> ScanConfig:
    include = _str_list(data.get("includePatterns"), "analysis.includePatterns", DEFAULT_INCLUDE_PATTERNS)
    exclude = _str_list(data.get("excludePatterns"), "analysis.excludePatterns", DEFAULT_EXCLUDE_PATTERNS)
    for pattern in (*include, *exclude):
        _compile_glob(pattern, "analysis")
    max_size = parse_size(data.get("maxFileSize", DEFAULT_MAX_FILE_SIZE))
    timeout = _number(data.get("timeout"), "analysis.timeout", DEFAULT_TIMEOUT_SECONDS, minimum=0.0)
    return ScanConfig(
        include_patterns=tuple(include),
        exclude_patterns=tuple(exclude),
        max_file_size=max_size,
        timeout=timeout,
    )


def _build_signatures(data: Mapping[str, Any]) -> SignatureIndex:
    tables: Dict[str, Dict[str, List[str]]] = {
        section: {key: list(values) for key, values in table.items()}
        for section, table in DEFAULT_SIGNATURES.items()
    }
    for section, table in data.items():
        if section == "configurationFiles":
            continue
        if section not in CATEGORY_PREFIXES:
            raise ConfigError(f"Unknown techStack table '{section}'")
        if not isinstance(table, Mapping):
            raise ConfigError(f"techStack.{section} must be a mapping of name to markers")
        for key, markers in table.items():
            tables[section][str(key)] = _str_list(markers, f"techStack.{section}.{key}", [])

    config_files: Dict[str, ConfigFileSignature] = {
        signature.name: signature for signature in default_config_files()
    }
    overrides = data.get("configurationFiles") or {}
    if not isinstance(overrides, Mapping):
        raise ConfigError("techStack.configurationFiles must be a mapping")
    for name, declared in overrides.items():
        where = f"techStack.configurationFiles.{name}"
        if not isinstance(declared, Mapping):
            raise ConfigError(f"{where} must define 'domain' and 'files'")
        domain = declared.get("domain")
        if domain not in DOMAINS:
            raise ConfigError(f"{where}.domain must be one of: {', '.join(DOMAINS)}")
        files = _str_list(declared.get("files"), f"{where}.files", [])
        for pattern in files:
            _compile_glob(pattern, where)
        config_files[str(name)] = ConfigFileSignature(name=str(name), domain=domain, files=tuple(files))

    return SignatureIndex.build(tables, config_files.values())


def _build_rules(data: Mapping[str, Any]) -> Dict[str, DomainRules]:
    for domain in data:
        if domain not in DOMAINS:
            raise ConfigError(f"Unknown pattern domain '{domain}'; expected one of: {', '.join(DOMAINS)}")

    rules: Dict[str, DomainRules] = {}
    for domain in DOMAINS:
        defaults = DEFAULT_DOMAIN_RULES.get(domain, {})
        override = data.get(domain) or {}
        if not isinstance(override, Mapping):
            raise ConfigError(f"patterns.{domain} must be a mapping")
        unknown = set(override) - set(_RULE_KEYS)
        if unknown:
            raise ConfigError(f"patterns.{domain} has unknown keys: {', '.join(sorted(unknown))}")

        compiled: Dict[str, List[PatternRule]] = {dimension: [] for dimension in _RULE_KEYS.values()}
        for key, dimension in _RULE_KEYS.items():
            where = f"patterns.{domain}.{key}"
            sources = _str_list(override.get(key), where, defaults.get(key, []))
            for index, source in enumerate(sources):
                compiled[dimension].append(
                    PatternRule(
                        rule_id=f"{domain}.{dimension}.{index}",
                        domain=domain,
                        dimension=dimension,
                        source=source,
                        matcher=_compile_matcher(dimension, source, where),
                    )
                )
        rules[domain] = DomainRules(
            domain=domain,
            file_rules=tuple(compiled[FILE_PATTERN]),
            function_rules=tuple(compiled[FUNCTION_PATTERN]),
            import_rules=tuple(compiled[IMPORT_PATTERN]),
        )
    return rules


def _build_extraction(data: Mapping[str, Any]) -> ExtractionLimits:
    limits = ExtractionLimits(
        max_examples_per_domain=_integer(
            data.get("maxExamplesPerDomain"), "extraction.maxExamplesPerDomain", DEFAULT_MAX_EXAMPLES_PER_DOMAIN, minimum=0
        ),
        min_example_lines=_integer(
            data.get("minExampleLines"), "extraction.minExampleLines", DEFAULT_MIN_EXAMPLE_LINES, minimum=1
        ),
        max_example_lines=_integer(
            data.get("maxExampleLines"), "extraction.maxExampleLines", DEFAULT_MAX_EXAMPLE_LINES, minimum=1
        ),
        priority_files=tuple(_str_list(data.get("priorityFiles"), "extraction.priorityFiles", [])),
    )
    if limits.min_example_lines > limits.max_example_lines:
        raise ConfigError("extraction.minExampleLines must not exceed extraction.maxExampleLines")
    for pattern in limits.priority_files:
        _compile_glob(pattern, "extraction.priorityFiles")
    return limits


def _build_scoring(data: Mapping[str, Any]) -> ScoringWeights:
    weights = data.get("weights") or {}
    if not isinstance(weights, Mapping):
        raise ConfigError("scoring.weights must be a mapping")
    unknown = set(weights) - set(DEFAULT_WEIGHTS)
    if unknown:
        raise ConfigError(f"scoring.weights has unknown keys: {', '.join(sorted(unknown))}")
    return ScoringWeights(
        **{
            key: _number(weights.get(key), f"scoring.weights.{key}", default, minimum=0.0, maximum=1.0)
            for key, default in DEFAULT_WEIGHTS.items()
        }
    )


def _build_validation(data: Mapping[str, Any]) -> ValidationConfig:
    return ValidationConfig(
        confidence_threshold=_number(
            data.get("confidenceThreshold"),
            "validation.confidenceThreshold",
            DEFAULT_CONFIDENCE_THRESHOLD,
            minimum=0.0,
            maximum=1.0,
        ),
        required_sections=tuple(
            _str_list(data.get("requiredSections"), "validation.requiredSections", DEFAULT_REQUIRED_SECTIONS)
        ),
    )


def _build_ai(data: Mapping[str, Any]) -> AIConfig:
    max_tokens = data.get("maxTokens")
    return AIConfig(
        model=_optional_str(data.get("model"), "ai.model"),
        base_url=_optional_str(data.get("baseUrl"), "ai.baseUrl"),
        api_key=_optional_str(data.get("apiKey"), "ai.apiKey"),
        temperature=_number(data.get("temperature"), "ai.temperature", 0.2, minimum=0.0),
        max_tokens=None if max_tokens is None else _integer(max_tokens, "ai.maxTokens", 0, minimum=1),
        request_timeout=_number(data.get("requestTimeout"), "ai.requestTimeout", 120.0, minimum=0.0),
        rate_limit_delay=_number(data.get("rateLimitDelay"), "ai.rateLimitDelay", 100.0, minimum=0.0) / 1000.0,
    )


def _compile_matcher(dimension: str, source: str, where: str) -> "re.Pattern[str]":
    if dimension == FILE_PATTERN:
        return _compile_glob(source, where)
    try:
        flags = re.MULTILINE if dimension == FUNCTION_PATTERN else 0
        return re.compile(source, flags)
    except re.error as exc:
        raise ConfigError(f"Invalid regular expression in {where}: {source!r} ({exc})") from exc


def _compile_glob(pattern: str, where: str) -> "re.Pattern[str]":
    try:
        return compile_glob(pattern)
    except (ValueError, re.error) as exc:
        raise ConfigError(f"Invalid glob in {where}: {pattern!r} ({exc})") from exc


def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"'{key}' must be a mapping")
    return value


def _str_list(value: Any, where: str, default: Sequence[str]) -> List[str]:
    if value is None:
        return list(default)
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value):
        return [item for item in value if item.strip()]
    raise ConfigError(f"{where} must be a list of strings")


def _optional_str(value: Any, where: str) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value or None
    raise ConfigError(f"{where} must be a string")


def _number(
    value: Any,
    where: str,
    default: float,
    *,
    minimum: Optional[float] = None,
    maximum: Optional[float] = None,
) -> float:
    if value is None:
        return float(default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{where} must be a number")
    number = float(value)
    if not math.isfinite(number):
        raise ConfigError(f"{where} must be finite")
    if minimum is not None and number < minimum:
        raise ConfigError(f"{where} must be >= {minimum}")
    if maximum is not None and number > maximum:
        raise ConfigError(f"{where} must be <= {maximum}")
    return number


def _integer(value: Any, where: str, default: int, *, minimum: Optional[int] = None) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{where} must be an integer")
    if minimum is not None and value < minimum:
        raise ConfigError(f"{where} must be >= {minimum}")
    return value


__all__ = [
    "AIConfig",
    "AnalysisConfig",
    "ConfigError",
    "DomainRules",
    "ExtractionLimits",
    "ScanConfig",
    "ScoringWeights",
    "ValidationConfig",
    "build_config",
    "default_config",
    "load_config",
    "parse_size",
]
