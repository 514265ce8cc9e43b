"""Per-run lookups shared by the analysis stages."""

from __future__ import annotations

import threading
from typing import Iterable, Optional

from ..analyzers.imports import ImportResolver
from ..analyzers.syntax import SyntaxChecker
from ..analyzers.utils import declared_dependencies
from ..models import FileEntry


class RunCache:
    """Holds compiled parsers and dependency lookups for exactly one run.

    The orchestrator creates one per analysis and drops it afterwards; nothing
    here outlives the run or is shared between runs.
    """

    def __init__(self, entries: Iterable[FileEntry]) -> None:
        self._entries = tuple(entries)
        self._lock = threading.Lock()
        self._syntax: Optional[SyntaxChecker] = None
        self._resolver: Optional[ImportResolver] = None

    @property
    def syntax(self) -> SyntaxChecker:
        with self._lock:
            if self._syntax is None:
                self._syntax = SyntaxChecker()
            return self._syntax

    @property
    def resolver(self) -> ImportResolver:
        with self._lock:
            if self._resolver is None:
                declared = declared_dependencies(self._entries)
                self._resolver = ImportResolver(self._entries, declared)
            return self._resolver


__all__ = ["RunCache"]
