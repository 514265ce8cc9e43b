"""Syntax checks and top-level structure for source excerpts.

Python is handled with :mod:`ast`; every other language goes through a
tree-sitter grammar from ``tree-sitter-language-pack``. Languages without a
grammar fall back to a bracket-balance check and blank-line paragraphs.
"""

from __future__ import annotations

import ast
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from tree_sitter import Node, Parser
from tree_sitter_language_pack import get_parser

from ..logging import get_logger

logger = get_logger("analyzers.syntax")

PYTHON = "python"

GRAMMAR_BY_SUFFIX: Dict[str, str] = {
    ".py": PYTHON,
    ".pyi": PYTHON,
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "javascript",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
    ".go": "go",
    ".rs": "rust",
    ".java": "java",
    ".kt": "kotlin",
    ".rb": "ruby",
    ".php": "php",
    ".cs": "csharp",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".hpp": "cpp",
    ".swift": "swift",
    ".scala": "scala",
    ".sh": "bash",
}

# Info strings seen on markdown fences.
GRAMMAR_BY_FENCE: Dict[str, str] = {
    "py": PYTHON,
    "python": PYTHON,
    "js": "javascript",
    "javascript": "javascript",
    "jsx": "javascript",
    "mjs": "javascript",
    "ts": "typescript",
    "typescript": "typescript",
    "tsx": "tsx",
    "go": "go",
    "golang": "go",
    "rs": "rust",
    "rust": "rust",
    "java": "java",
    "kotlin": "kotlin",
    "kt": "kotlin",
    "rb": "ruby",
    "ruby": "ruby",
    "php": "php",
    "cs": "csharp",
    "csharp": "csharp",
    "c": "c",
    "cpp": "cpp",
    "c++": "cpp",
    "swift": "swift",
    "scala": "scala",
}

_IMPORT_NODE_TYPES = {
    "import_statement",
    "import_declaration",
    "import_header",
    "import_list",
    "package_clause",
    "package_declaration",
    "package_header",
    "use_declaration",
    "extern_crate_declaration",
    "using_directive",
    "namespace_use_declaration",
    "namespace_definition",
    "php_tag",
    "preproc_include",
}
_SKIPPABLE_NODE_TYPES = {"comment", "line_comment", "block_comment"}
_REQUIRE_STATEMENT = re.compile(r"^\s*(const|let|var)\s+[\w{}\s,:]+=\s*require\s*\(")
_DIRECTIVE = re.compile(r"^\s*['\"]use [\w ]+['\"];?\s*$")
_STRING_LITERAL = re.compile(r"\"(?:\\.|[^\"\\\n])*\"|'(?:\\.|[^'\\\n])*'|`(?:\\.|[^`\\])*`")
_LINE_COMMENT = re.compile(r"(//|#).*$", re.MULTILINE)
_FALLBACK_IMPORT = re.compile(r"^\s*(import|from|use|require|using|#include|package)\b")
_PAIRS = {")": "(", "]": "[", "}": "{"}


@dataclass(frozen=True)
class SyntaxResult:
    ok: bool
    checker: str
    error: str = ""


@dataclass(frozen=True)
class SourceLayout:
    """Where a file's leading import block ends and its top-level units lie.

    Line numbers are 0-based and inclusive.
    """

    body_start: int
    units: Tuple[Tuple[int, int], ...]


def grammar_for_path(path: str) -> Optional[str]:
    dot = path.rfind(".")
    if dot == -1 or "/" in path[dot:]:
        return None
    return GRAMMAR_BY_SUFFIX.get(path[dot:].lower())


def grammar_for_fence(info: str) -> Optional[str]:
    word = info.strip().split(maxsplit=1)[0].lower() if info.strip() else ""
    return GRAMMAR_BY_FENCE.get(word)


class SyntaxChecker:
    """Parses snippets; owns one tree-sitter parser per grammar for a single run."""

    def __init__(self) -> None:
        self._parsers: Dict[str, Optional[Parser]] = {}

    def parser_for(self, grammar: str) -> Optional[Parser]:
        if grammar in self._parsers:
            return self._parsers[grammar]
        try:
            parser: Optional[Parser] = get_parser(grammar)  # type: ignore[arg-type]
        except LookupError as exc:
            logger.debug("No tree-sitter grammar for %s: %s", grammar, exc)
            parser = None
        except Exception as exc:  # noqa: BLE001 - pack-specific download and load errors
            logger.warning("Could not load tree-sitter grammar for %s (%s); using bracket checks", grammar, exc)
            parser = None
        self._parsers[grammar] = parser
        return parser

    def check(self, source: str, grammar: Optional[str]) -> SyntaxResult:
        if grammar == PYTHON:
            try:
                ast.parse(source)
            except (SyntaxError, ValueError) as exc:
                return SyntaxResult(ok=False, checker="ast", error=str(exc))
            return SyntaxResult(ok=True, checker="ast")

        parser = self.parser_for(grammar) if grammar else None
        if parser is not None:
            tree = parser.parse(source.encode("utf-8"))
            if tree.root_node.has_error:
                return SyntaxResult(ok=False, checker=f"tree-sitter:{grammar}", error=_first_error(tree.root_node))
            return SyntaxResult(ok=True, checker=f"tree-sitter:{grammar}")

        problem = _bracket_problem(source)
        if problem:
            return SyntaxResult(ok=False, checker="brackets", error=problem)
        return SyntaxResult(ok=True, checker="brackets")

    def layout(self, source: str, grammar: Optional[str]) -> SourceLayout:
        if grammar == PYTHON:
            layout = _python_layout(source)
            if layout is not None:
                return layout
        elif grammar:
            parser = self.parser_for(grammar)
            if parser is not None:
                return _tree_layout(parser, source)
        return _paragraph_layout(source)


def _python_layout(source: str) -> Optional[SourceLayout]:
    try:
        module = ast.parse(source)
    except (SyntaxError, ValueError):
        return None
    body_start = 0
    index = 0
    statements = module.body
    if statements and isinstance(statements[0], ast.Expr) and isinstance(getattr(statements[0], "value", None), ast.Constant):
        if isinstance(statements[0].value.value, str):
            body_start = statements[0].end_lineno or 0
            index = 1
    while index < len(statements) and isinstance(statements[index], (ast.Import, ast.ImportFrom)):
        body_start = statements[index].end_lineno or body_start
        index += 1
    if index == 0 or body_start == 0:
        body_start = 0
    units: List[Tuple[int, int]] = []
    for node in statements[index:]:
        decorators = getattr(node, "decorator_list", None) or []
        start = min([node.lineno] + [decorator.lineno for decorator in decorators]) - 1
        end = (node.end_lineno or node.lineno) - 1
        units.append((start, end))
    return SourceLayout(body_start=body_start, units=tuple(units))


def _tree_layout(parser: Parser, source: str) -> SourceLayout:
    tree = parser.parse(source.encode("utf-8"))
    lines = source.splitlines()
    children = list(tree.root_node.children)
    body_start = 0
    index = 0
    last_import = -1
    while index < len(children):
        child = children[index]
        start_row = child.start_point[0]
        first_line = lines[start_row] if start_row < len(lines) else ""
        if child.type in _IMPORT_NODE_TYPES or _REQUIRE_STATEMENT.match(first_line) or _DIRECTIVE.match(first_line):
            last_import = index
        elif child.type not in _SKIPPABLE_NODE_TYPES:
            break
        index += 1
    if last_import >= 0:
        body_start = children[last_import].end_point[0] + 1
        index = last_import + 1
    else:
        index = 0
    units = tuple(
        (child.start_point[0], _end_row(child))
        for child in children[index:]
        if child.type not in _SKIPPABLE_NODE_TYPES
    )
    return SourceLayout(body_start=body_start, units=units)


def _end_row(node: Node) -> int:
    row, column = node.end_point[0], node.end_point[1]
    if column == 0 and row > node.start_point[0]:
        return row - 1
    return row


def _paragraph_layout(source: str) -> SourceLayout:
    lines = source.splitlines()
    body_start = 0
    for number, line in enumerate(lines):
        if not line.strip():
            continue
        if _FALLBACK_IMPORT.match(line):
            body_start = number + 1
            continue
        break
    units: List[Tuple[int, int]] = []
    start: Optional[int] = None
    for number in range(body_start, len(lines)):
        if lines[number].strip():
            if start is None:
                start = number
        elif start is not None:
            units.append((start, number - 1))
            start = None
    if start is not None:
        units.append((start, len(lines) - 1))
    return SourceLayout(body_start=body_start, units=tuple(units))


def _first_error(node: Node) -> str:
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == "ERROR" or current.is_missing:
            row, column = current.start_point[0], current.start_point[1]
            kind = "missing token" if current.is_missing else "unexpected input"
            return f"{kind} at line {row + 1}, column {column + 1}"
        stack.extend(reversed(current.children))
    return "syntax error"


def _bracket_problem(source: str) -> str:
    stripped = _LINE_COMMENT.sub("", _STRING_LITERAL.sub('""', source))
    stack: List[str] = []
    for char in stripped:
        if char in "([{":
            stack.append(char)
        elif char in _PAIRS:
            if not stack or stack[-1] != _PAIRS[char]:
                return f"unbalanced '{char}'"
            stack.pop()
    if stack:
        return f"unclosed '{stack[-1]}'"
    return ""


__all__ = [
    "GRAMMAR_BY_FENCE",
    "GRAMMAR_BY_SUFFIX",
    "SourceLayout",
    "SyntaxChecker",
    "SyntaxResult",
    "grammar_for_fence",
    "grammar_for_path",
]
