"""Tests for persisted analysis results and the per-run cache."""

from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path

from techdocs.models import STATUS_NEEDS_REVIEW
from techdocs.stores import ANALYSIS_FILENAME, SCHEMA_VERSION, AnalysisStore, RunCache, analysis_payload
from tests._fixtures.analysis import make_analysis, make_capability, make_entry, make_example


def _analysis():
    return make_analysis(
        capabilities=[
            make_capability("framework:react", domain="components"),
            make_capability("config:jest", category="configuration", domain="testing"),
        ],
        examples=[make_example("components", "src/components/Button.tsx")],
    )


def test_save_writes_versioned_document(tmp_path: Path) -> None:
    path = AnalysisStore(tmp_path / "docs").save(_analysis())

    assert path == tmp_path / "docs" / ANALYSIS_FILENAME
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["schemaVersion"] == SCHEMA_VERSION
    assert data["project"]["name"] == "shop-ui"
    assert data["analysis"]["techStack"]["framework"] == {
        "items": ["framework:react"],
        "leaders": ["framework:react"],
    }
    assert data["analysis"]["configurations"] == {"testing": ["config:jest"]}
    example = data["analysis"]["examples"]["components"][0]
    assert example["file"] == "src/components/Button.tsx"
    assert (example["startLine"], example["endLine"], example["lineCount"]) == (3, 16, 14)
    assert data["metadata"]["confidence"]["testing"] == 0.2
    assert data["metadata"]["scores"]["components"]["acceptedExamples"] == 1


def test_load_restores_what_validation_needs(tmp_path: Path) -> None:
    store = AnalysisStore(tmp_path)
    original = _analysis()
    store.save(original)

    loaded = store.load()

    assert loaded is not None
    assert set(loaded.capabilities) == set(original.capabilities)
    assert loaded.capabilities["framework:react"].key == "react"
    assert [(example.path, example.start_line, example.end_line) for example in loaded.examples] == [
        ("src/components/Button.tsx", 3, 16)
    ]
    assert loaded.scores["components"].confidence == original.scores["components"].confidence
    assert loaded.metadata.timestamp == original.metadata.timestamp


def test_load_ignores_missing_corrupt_and_foreign_documents(tmp_path: Path) -> None:
    store = AnalysisStore(tmp_path)
    assert store.load() is None

    store.path.write_text("{not json", encoding="utf-8")
    assert store.load() is None

    store.path.write_text(json.dumps({"schemaVersion": SCHEMA_VERSION + 1}), encoding="utf-8")
    assert store.load() is None


def test_payload_omits_schema_marker() -> None:
    example = make_example("components", "src/components/Button.tsx")
    flagged = replace(example, status=STATUS_NEEDS_REVIEW, unresolved_imports=("clsx",))

    payload = analysis_payload(make_analysis(examples=[flagged]))

    assert "schemaVersion" not in payload
    assert payload["analysis"]["examples"]["components"][0]["unresolvedImports"] == ["clsx"]


def test_run_cache_builds_lookups_once(tmp_path: Path) -> None:
    (tmp_path / "package.json").write_text('{"dependencies": {"react": "18"}}', encoding="utf-8")
    entries = [
        make_entry("package.json", "JSON", root=tmp_path),
        make_entry("src/App.tsx", root=tmp_path),
    ]
    cache = RunCache(entries)

    assert cache.syntax is cache.syntax
    assert cache.resolver is cache.resolver
    assert cache.resolver.resolves(entries[1], "react")
    assert not cache.resolver.resolves(entries[1], "vue")


def test_stage_outcomes_survive_a_reload(tmp_path: Path) -> None:
    original = _analysis()
    metadata = replace(original.metadata, partial=True, failed_stages=("techStack",), timed_out_stages=("examples",))
    store = AnalysisStore(tmp_path)
    store.save(replace(original, metadata=metadata))

    loaded = store.load()

    assert loaded is not None
    assert loaded.metadata.partial
    assert loaded.metadata.failed_stages == ("techStack",)
    assert loaded.metadata.timed_out_stages == ("examples",)
