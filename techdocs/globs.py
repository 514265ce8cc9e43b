"""Glob matching for POSIX-style relative paths.

Supports ``*`` and ``?`` within a single segment, ``**`` across directories,
``{a,b}`` alternation and ``[...]`` character classes. Patterns without a
slash match any single path segment, the way ``.gitignore`` entries do, and a
trailing slash means "everything below this directory".
"""

from __future__ import annotations

import re
from typing import Iterable, List, Pattern, Sequence


def translate(pattern: str) -> str:
    """Return a regular expression source equivalent to ``pattern``."""
    parts: List[str] = []
    index = 0
    length = len(pattern)
    while index < length:
        char = pattern[index]
        if char == "*":
            if pattern.startswith("**/", index):
                parts.append("(?:.*/)?")
                index += 3
                continue
            if pattern.startswith("**", index):
                parts.append(".*")
                index += 2
                continue
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        elif char == "{":
            close = pattern.find("}", index)
            if close == -1:
                parts.append(re.escape(char))
            else:
                options = pattern[index + 1 : close].split(",")
                parts.append("(?:" + "|".join(translate(option) for option in options) + ")")
                index = close + 1
                continue
        elif char == "[":
            close = pattern.find("]", index + 1)
            if close == -1:
                parts.append(re.escape(char))
            else:
                body = pattern[index + 1 : close]
                if body.startswith("!"):
                    body = "^" + body[1:]
                parts.append(f"[{body}]")
                index = close + 1
                continue
        else:
            parts.append(re.escape(char))
        index += 1
    return "".join(parts)


def compile_glob(pattern: str) -> Pattern[str]:
    """Compile a glob into a regex to be used with ``fullmatch``."""
    cleaned = pattern.strip().replace("\\", "/")
    if not cleaned:
        raise ValueError("Empty glob pattern")
    if cleaned.startswith("/"):
        cleaned = cleaned[1:]
        anchored = True
    else:
        anchored = False
    directory = cleaned.endswith("/")
    stem = cleaned.rstrip("/")
    source = translate(f"{stem}/**" if directory else stem)
    if "/" not in stem and not anchored:
        # Bare names behave like .gitignore entries and match any segment.
        source = f"(?:.*/)?{source}" if directory else f"(?:.*/)?{source}(?:/.*)?"
    return re.compile(source)


class GlobSet:
    """A group of globs answering "does any of these match this path?"."""

    def __init__(self, patterns: Iterable[str]) -> None:
        self.patterns: Sequence[str] = tuple(patterns)
        self._compiled = tuple(compile_glob(pattern) for pattern in self.patterns)

    def __bool__(self) -> bool:
        return bool(self._compiled)

    def matches(self, path: str) -> bool:
        return any(regex.fullmatch(path) for regex in self._compiled)

    def matches_directory(self, rel_dir: str) -> bool:
        """True when every file under ``rel_dir`` would be matched."""
        return any(
            regex.fullmatch(rel_dir) or regex.fullmatch(f"{rel_dir}/")
            for regex in self._compiled
        )


__all__ = ["GlobSet", "compile_glob", "translate"]
