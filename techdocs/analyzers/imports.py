"""Resolve the import specifiers of an extracted snippet against the scanned tree."""

from __future__ import annotations

import posixpath
import re
import sys
from typing import FrozenSet, Iterable, List, Optional, Set

from ..models import FileEntry
from .utils import package_candidates

_JS_LANGUAGES = {"JavaScript", "TypeScript", "Vue", "Svelte"}
_JS_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".vue", ".svelte", ".json", ".d.ts")
_PATH_ALIASES = (("@/", ("src/", "")), ("~/", ("src/", "")), ("#/", ("src/", "")))
_GO_MODULE = re.compile(r"^\s*module\s+(\S+)", re.MULTILINE)
_RUST_BUILTIN_CRATES = {"std", "core", "alloc", "crate", "self", "super", "proc_macro", "test"}

NODE_BUILTINS: FrozenSet[str] = frozenset(
    {
        "assert", "async_hooks", "buffer", "child_process", "cluster", "console", "crypto",
        "dgram", "dns", "events", "fs", "http", "http2", "https", "module", "net", "os",
        "path", "perf_hooks", "process", "querystring", "readline", "stream", "string_decoder",
        "timers", "tls", "tty", "url", "util", "v8", "vm", "worker_threads", "zlib",
    }
)


class ImportResolver:
    """Answers whether a specifier imported by ``entry`` points at something real.

    Relative specifiers must land on a catalog file. Bare specifiers must be a
    declared dependency, part of the language's standard library, or a module
    that lives in the tree itself.
    """

    def __init__(self, entries: Iterable[FileEntry], declared: Iterable[str]) -> None:
        self._paths: Set[str] = set()
        self._directories: Set[str] = set()
        self._python_modules: Set[str] = set()
        self._go_modules: List[str] = []
        for entry in entries:
            self._paths.add(entry.path)
            parent = posixpath.dirname(entry.path)
            while parent:
                self._directories.add(parent)
                parent = posixpath.dirname(parent)
            if entry.suffix in {".py", ".pyi"}:
                parts = entry.path[: -len(entry.suffix)].split("/")
                self._python_modules.update(part for part in parts if part.isidentifier())
            if entry.name == "go.mod" and entry.text:
                match = _GO_MODULE.search(entry.text)
                if match:
                    self._go_modules.append(match.group(1))
        self._declared = {name.lower() for name in declared}

    def unresolved(self, entry: FileEntry, specifiers: Iterable[str]) -> List[str]:
        return [specifier for specifier in dict.fromkeys(specifiers) if not self.resolves(entry, specifier)]

    def resolves(self, entry: FileEntry, specifier: str) -> bool:
        language = entry.language
        if language in _JS_LANGUAGES:
            return self._resolve_js(entry, specifier)
        if language == "Python":
            return self._resolve_python(entry, specifier)
        if language == "Go":
            return self._resolve_go(specifier)
        if language == "Rust":
            return specifier in _RUST_BUILTIN_CRATES or self._is_declared(specifier, language)
        # Other ecosystems have no reliable mapping from import to manifest entry.
        return True

    def _is_declared(self, specifier: str, language: Optional[str]) -> bool:
        for candidate in package_candidates(specifier, language):
            lowered = candidate.lower()
            if lowered in self._declared or lowered.replace("_", "-") in self._declared:
                return True
        return False

    def _exists(self, path: str) -> bool:
        return path in self._paths or path in self._directories

    def _resolve_js(self, entry: FileEntry, specifier: str) -> bool:
        if specifier.startswith("."):
            target = posixpath.normpath(posixpath.join(posixpath.dirname(entry.path), specifier))
            return self._js_file_exists(target)
        for prefix, roots in _PATH_ALIASES:
            if specifier.startswith(prefix):
                rest = specifier[len(prefix) :]
                return any(self._js_file_exists(posixpath.normpath(root + rest)) for root in roots)
        if specifier.startswith("node:"):
            return True
        parts = specifier.split("/")
        package = "/".join(parts[:2]) if specifier.startswith("@") else parts[0]
        if package in NODE_BUILTINS or package.lower() in self._declared:
            return True
        # Non-relative paths such as "components/Button" via baseUrl.
        return self._js_file_exists(specifier) or self._js_file_exists(f"src/{specifier}")

    def _js_file_exists(self, target: str) -> bool:
        if target.startswith("..") or target in {"", "."}:
            return False
        if target in self._paths:
            return True
        for extension in _JS_EXTENSIONS:
            if f"{target}{extension}" in self._paths or f"{target}/index{extension}" in self._paths:
                return True
        return False

    def _resolve_python(self, entry: FileEntry, specifier: str) -> bool:
        if specifier.startswith("."):
            level = len(specifier) - len(specifier.lstrip("."))
            base = posixpath.dirname(entry.path)
            for _ in range(level - 1):
                base = posixpath.dirname(base)
            rest = specifier[level:].replace(".", "/")
            if not rest:
                return base == "" or self._exists(base)
            target = f"{base}/{rest}" if base else rest
            return f"{target}.py" in self._paths or f"{target}/__init__.py" in self._paths or self._exists(target)
        top = specifier.split(".", 1)[0]
        if top in sys.stdlib_module_names or top == "__future__":
            return True
        return top in self._python_modules or self._is_declared(specifier, "Python")

    def _resolve_go(self, specifier: str) -> bool:
        first = specifier.split("/", 1)[0]
        if "." not in first:
            return True
        if any(specifier == module or specifier.startswith(f"{module}/") for module in self._go_modules):
            return True
        lowered = specifier.lower()
        return any(lowered == dep or lowered.startswith(f"{dep}/") for dep in self._declared)


__all__ = ["ImportResolver", "NODE_BUILTINS"]
