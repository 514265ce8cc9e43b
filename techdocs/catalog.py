"""Single-pass file discovery producing the sealed catalog every detector reads."""

from __future__ import annotations

import os
from collections import Counter
from collections.abc import Sequence
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, overload

from .config import ScanConfig
from .globs import GlobSet
from .logging import get_logger
from .models import FileEntry, ScanWarning

_LANGUAGE_BY_SUFFIX = {
    ".py": "Python",
    ".pyi": "Python",
    ".js": "JavaScript",
    ".mjs": "JavaScript",
    ".cjs": "JavaScript",
    ".jsx": "JavaScript",
    ".ts": "TypeScript",
    ".mts": "TypeScript",
    ".cts": "TypeScript",
    ".tsx": "TypeScript",
    ".vue": "Vue",
    ".svelte": "Svelte",
    ".java": "Java",
    ".kt": "Kotlin",
    ".kts": "Kotlin",
    ".go": "Go",
    ".rs": "Rust",
    ".rb": "Ruby",
    ".php": "PHP",
    ".cs": "C#",
    ".c": "C",
    ".h": "C",
    ".cpp": "C++",
    ".hpp": "C++",
    ".cc": "C++",
    ".swift": "Swift",
    ".scala": "Scala",
    ".sh": "Shell",
    ".sql": "SQL",
    ".prisma": "Prisma",
    ".yaml": "YAML",
    ".yml": "YAML",
    ".json": "JSON",
    ".toml": "TOML",
    ".md": "Markdown",
    ".css": "CSS",
    ".scss": "SCSS",
    ".html": "HTML",
}

_LANGUAGE_BY_NAME = {
    "Dockerfile": "Dockerfile",
    "Makefile": "Makefile",
    "Gemfile": "Ruby",
}

logger = get_logger("catalog")


class Catalog(Sequence):
    """An ordered, immutable view of the scanned tree.

    Built once per run by :class:`FileCatalog`; detectors only ever read it.
    """

    def __init__(
        self,
        root: Path,
        entries: Tuple[FileEntry, ...],
        warnings: Tuple[ScanWarning, ...] = (),
    ) -> None:
        self._root = root
        self._entries = entries
        self._warnings = warnings
        self._by_path: Dict[str, FileEntry] = {entry.path: entry for entry in entries}

    @property
    def root(self) -> Path:
        return self._root

    @property
    def warnings(self) -> Tuple[ScanWarning, ...]:
        return self._warnings

    @property
    def total_files(self) -> int:
        return len(self._entries)

    @overload
    def __getitem__(self, index: int) -> FileEntry: ...

    @overload
    def __getitem__(self, index: slice) -> Tuple[FileEntry, ...]: ...

    def __getitem__(self, index):  # type: ignore[no-untyped-def]
        return self._entries[index]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[FileEntry]:
        return iter(self._entries)

    def get(self, path: str) -> Optional[FileEntry]:
        return self._by_path.get(path)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, str):
            return item in self._by_path
        return item in self._entries

    def readable(self) -> Iterator[FileEntry]:
        """Entries whose content may be loaded."""
        return (entry for entry in self._entries if entry.readable and not entry.size_exceeded)

    def structure(self) -> Dict[str, object]:
        """Summarise the tree for project metadata."""
        languages = Counter(entry.language for entry in self._entries if entry.language)
        directories = sorted({entry.path.split("/", 1)[0] for entry in self._entries if "/" in entry.path})
        return {
            "totalFiles": len(self._entries),
            "totalSize": sum(entry.size for entry in self._entries),
            "languages": dict(sorted(languages.items(), key=lambda item: (-item[1], item[0]))),
            "topLevelDirectories": directories,
            "oversizedFiles": sum(1 for entry in self._entries if entry.size_exceeded),
            "unreadableFiles": sum(1 for entry in self._entries if not entry.readable),
        }


class FileCatalog:
    """Walks a project tree once and returns a sealed :class:`Catalog`."""

    def scan(self, root: str | Path, config: ScanConfig) -> Catalog:
        root_path = resolve_root(root)

        includes = GlobSet(config.include_patterns)
        excludes = GlobSet(config.exclude_patterns)
        entries: List[FileEntry] = []
        warnings: List[ScanWarning] = []

        for path, rel_path in _iter_files(root_path, excludes, warnings):
            # Exclusion has already been applied; size is only checked for survivors.
            if includes and not includes.matches(rel_path):
                continue
            try:
                size = path.stat().st_size
            except OSError as exc:
                warnings.append(ScanWarning(path=rel_path, reason="unreadable", detail=str(exc)))
                entries.append(_entry(path, rel_path, 0, readable=False))
                continue

            if size > config.max_file_size:
                logger.debug("Skipping content of %s (%d bytes exceeds limit)", rel_path, size)
                warnings.append(
                    ScanWarning(
                        path=rel_path,
                        reason="size-exceeded",
                        detail=f"{size} bytes > {config.max_file_size} bytes",
                    )
                )
                entries.append(_entry(path, rel_path, size, size_exceeded=True))
                continue

            problem = _check_readable(path)
            if problem is not None:
                logger.warning("Unable to read %s: %s", rel_path, problem)
                warnings.append(ScanWarning(path=rel_path, reason="unreadable", detail=problem))
                entries.append(_entry(path, rel_path, size, readable=False))
                continue

            entries.append(_entry(path, rel_path, size))

        logger.info("Catalogued %d files under %s (%d warnings)", len(entries), root_path, len(warnings))
        return Catalog(root_path, tuple(entries), tuple(warnings))


def resolve_root(root: str | Path) -> Path:
    """Return the absolute project root, raising if it cannot be scanned."""
    root_path = Path(root).expanduser().resolve()
    if not root_path.exists():
        raise FileNotFoundError(f"Project root not found: {root}")
    if not root_path.is_dir():
        raise NotADirectoryError(f"Project root is not a directory: {root}")
    if not os.access(root_path, os.R_OK | os.X_OK):
        raise PermissionError(f"Project root is not readable: {root}")
    return root_path


def _iter_files(
    root: Path, excludes: GlobSet, warnings: List[ScanWarning]
) -> Iterator[Tuple[Path, str]]:
    def _on_error(error: OSError) -> None:
        target = Path(error.filename) if error.filename else root
        try:
            rel = target.relative_to(root).as_posix()
        except ValueError:
            rel = str(target)
        warnings.append(ScanWarning(path=rel, reason="unreadable", detail=error.strerror or str(error)))

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        kept_dirs = []
        for name in sorted(dirnames):
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            if excludes.matches_directory(rel_path):
                continue
            kept_dirs.append(name)
        dirnames[:] = kept_dirs

        for filename in sorted(filenames):
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if excludes.matches(rel_path):
                continue
            yield current_dir / filename, rel_path


def _check_readable(path: Path) -> Optional[str]:
    try:
        with path.open("rb") as handle:
            handle.read(1)
    except OSError as exc:
        return exc.strerror or str(exc)
    return None


def _detect_language(path: Path) -> Optional[str]:
    if path.name in _LANGUAGE_BY_NAME:
        return _LANGUAGE_BY_NAME[path.name]
    return _LANGUAGE_BY_SUFFIX.get(path.suffix.lower())


def _entry(
    path: Path,
    rel_path: str,
    size: int,
    *,
    size_exceeded: bool = False,
    readable: bool = True,
) -> FileEntry:
    return FileEntry(
        path=rel_path,
        size=size,
        language=_detect_language(path),
        absolute_path=path,
        size_exceeded=size_exceeded,
        readable=readable,
    )


__all__ = ["Catalog", "FileCatalog", "resolve_root"]
