"""Persisted ``analysis-results.json`` documents."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from ..analyzers.tech_stack import group_by_category, leaders
from ..logging import get_logger
from ..models import (
    AnalysisResult,
    Capability,
    CodeExample,
    DomainMatch,
    DomainScore,
    FileEntry,
    ProjectInfo,
    RunMetadata,
    ScanWarning,
    group_by_domain,
)
from ..signatures import CONFIGURATION_CATEGORY

SCHEMA_VERSION = 1
ANALYSIS_FILENAME = "analysis-results.json"

logger = get_logger("stores.analysis")


class AnalysisStore:
    """Reads and writes the versioned analysis document in an output directory."""

    def __init__(self, output_dir: Path) -> None:
        self.path = Path(output_dir) / ANALYSIS_FILENAME

    def save(self, result: AnalysisResult) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(to_dict(result), indent=2) + "\n", encoding="utf-8")
        logger.info("Analysis results saved to %s", self.path)
        return self.path

    def load(self) -> Optional[AnalysisResult]:
        """Return the stored analysis, or None when absent or written by another schema."""
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable %s: %s", self.path, exc)
            return None
        if not isinstance(data, dict) or data.get("schemaVersion") != SCHEMA_VERSION:
            logger.warning("Ignoring %s: unsupported schemaVersion %r", self.path, data.get("schemaVersion") if isinstance(data, dict) else None)
            return None
        return from_dict(data)


def to_dict(result: AnalysisResult) -> Dict[str, Any]:
    capabilities = result.capabilities
    tech_stack: Dict[str, Dict[str, List[str]]] = {}
    for category, items in group_by_category(capabilities).items():
        tech_stack[category] = {
            "items": [capability.name for capability in items],
            "leaders": [capability.name for capability in leaders(items)],
        }
    configurations: Dict[str, List[str]] = {}
    for capability in capabilities.values():
        if capability.category == CONFIGURATION_CATEGORY and capability.domain:
            configurations.setdefault(capability.domain, []).append(capability.name)

    metadata = result.metadata
    return {
        "schemaVersion": SCHEMA_VERSION,
        "project": {
            "name": result.project.name,
            "description": result.project.description,
            "root": result.project.root,
            "structure": dict(result.project.structure),
        },
        "analysis": {
            "capabilities": {
                name: {
                    "category": capability.category,
                    "domain": capability.domain,
                    "markers": list(capability.markers),
                    "evidence": list(capability.evidence),
                    "score": capability.score,
                }
                for name, capability in capabilities.items()
            },
            "techStack": tech_stack,
            "patterns": {
                domain: [
                    {"file": match.path, "language": match.file.language, "rules": list(match.rule_ids)}
                    for match in matches
                ]
                for domain, matches in group_by_domain(result.matches).items()
            },
            "examples": {
                domain: [_example_to_dict(example) for example in examples]
                for domain, examples in group_by_domain(result.examples).items()
            },
            "configurations": configurations,
        },
        "metadata": {
            "timestamp": metadata.timestamp,
            "durationSeconds": metadata.duration_seconds,
            "filesScanned": metadata.files_scanned,
            "partial": metadata.partial,
            "timedOutStages": list(metadata.timed_out_stages),
            "failedStages": list(metadata.failed_stages),
            "warnings": [
                {"path": warning.path, "reason": warning.reason, "detail": warning.detail}
                for warning in metadata.warnings
            ],
            "confidence": {domain: score.confidence for domain, score in result.scores.items()},
            "completeness": {domain: score.completeness for domain, score in result.scores.items()},
            "scores": {
                domain: {
                    "confidence": score.confidence,
                    "completeness": score.completeness,
                    "reviewRequired": score.review_required,
                    "patternMatches": score.pattern_matches,
                    "acceptedExamples": score.accepted_examples,
                    "hasConfiguration": score.has_configuration,
                }
                for domain, score in result.scores.items()
            },
        },
    }


def analysis_payload(result: AnalysisResult) -> Dict[str, Any]:
    """The document minus the schema marker, as sent to the generation service."""
    payload = to_dict(result)
    payload.pop("schemaVersion", None)
    return payload


def from_dict(data: Mapping[str, Any]) -> AnalysisResult:
    """Rebuild an :class:`AnalysisResult` from a persisted document."""
    project_data = data.get("project") or {}
    root = Path(str(project_data.get("root") or "."))
    analysis = data.get("analysis") or {}
    metadata = data.get("metadata") or {}

    def _entry(path: str, language: Optional[str]) -> FileEntry:
        return FileEntry(path=path, size=0, language=language, absolute_path=root / path)

    capabilities = {
        name: Capability(
            name=name,
            category=str(item["category"]),
            domain=item.get("domain"),
            markers=tuple(item.get("markers") or ()),
            evidence=tuple(item.get("evidence") or ()),
            score=float(item.get("score", 0.0)),
        )
        for name, item in (analysis.get("capabilities") or {}).items()
    }
    matches = tuple(
        DomainMatch(domain=domain, file=_entry(item["file"], item.get("language")), rule_ids=tuple(item.get("rules") or ()))
        for domain, items in (analysis.get("patterns") or {}).items()
        for item in items
    )
    examples = tuple(
        CodeExample(
            domain=domain,
            file=_entry(item["file"], item.get("language")),
            start_line=int(item["startLine"]),
            end_line=int(item["endLine"]),
            import_block=item.get("importBlock", ""),
            code=item.get("code", ""),
            rule_ids=tuple(item.get("rules") or ()),
            status=item.get("status", "accepted"),
            unresolved_imports=tuple(item.get("unresolvedImports") or ()),
        )
        for domain, items in (analysis.get("examples") or {}).items()
        for item in items
    )
    scores = {
        domain: DomainScore(
            domain=domain,
            confidence=float(item["confidence"]),
            completeness=float(item["completeness"]),
            review_required=bool(item["reviewRequired"]),
            pattern_matches=int(item.get("patternMatches", 0)),
            accepted_examples=int(item.get("acceptedExamples", 0)),
            has_configuration=bool(item.get("hasConfiguration", False)),
        )
        for domain, item in (metadata.get("scores") or {}).items()
    }
    return AnalysisResult(
        project=ProjectInfo(
            name=str(project_data.get("name", root.name)),
            description=str(project_data.get("description", "")),
            root=str(root),
            structure=dict(project_data.get("structure") or {}),
        ),
        capabilities=capabilities,
        matches=matches,
        examples=examples,
        scores=scores,
        metadata=RunMetadata(
            timestamp=str(metadata.get("timestamp", "")),
            duration_seconds=float(metadata.get("durationSeconds", 0.0)),
            files_scanned=int(metadata.get("filesScanned", 0)),
            partial=bool(metadata.get("partial", False)),
            timed_out_stages=tuple(metadata.get("timedOutStages") or ()),
            failed_stages=tuple(metadata.get("failedStages") or ()),
            warnings=tuple(
                ScanWarning(path=item["path"], reason=item["reason"], detail=item.get("detail", ""))
                for item in metadata.get("warnings") or ()
            ),
        ),
    )


def _example_to_dict(example: CodeExample) -> Dict[str, Any]:
    return {
        "file": example.path,
        "language": example.language,
        "startLine": example.start_line,
        "endLine": example.end_line,
        "lineCount": example.line_count,
        "importBlock": example.import_block,
        "code": example.code,
        "rules": list(example.rule_ids),
        "status": example.status,
        "unresolvedImports": list(example.unresolved_imports),
    }


__all__ = ["ANALYSIS_FILENAME", "SCHEMA_VERSION", "AnalysisStore", "analysis_payload", "from_dict", "to_dict"]
