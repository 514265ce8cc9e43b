"""Persistence helpers and per-run caches."""

from .analysis_store import ANALYSIS_FILENAME, SCHEMA_VERSION, AnalysisStore, analysis_payload
from .run_cache import RunCache

__all__ = ["ANALYSIS_FILENAME", "SCHEMA_VERSION", "AnalysisStore", "RunCache", "analysis_payload"]
