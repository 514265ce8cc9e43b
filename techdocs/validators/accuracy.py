"""Accuracy pass: code blocks must parse and cited sources must exist."""

from __future__ import annotations

import re
from typing import List, Optional

from ..analyzers.syntax import SyntaxChecker, grammar_for_fence
from .base import PassResult, ValidationContext, ValidationIssue, iter_code_blocks, ratio

_PROVENANCE = re.compile(r"Source:\s*`?(?P<path>[^\s`:]+):(?P<start>\d+)-(?P<end>\d+)`?")


class AccuracyValidator:
    """Re-parses fenced code and checks ``Source: path:start-end`` annotations."""

    name = "accuracy"

    def __init__(self, syntax: Optional[SyntaxChecker] = None) -> None:
        self._syntax = syntax or SyntaxChecker()

    def validate(self, guide: str, text: str, context: ValidationContext) -> PassResult:
        issues: List[ValidationIssue] = []
        checks = 0

        for block in iter_code_blocks(text):
            grammar = grammar_for_fence(block.info)
            if grammar is None:
                continue
            checks += 1
            result = self._syntax.check(block.body, grammar)
            if not result.ok:
                issues.append(
                    ValidationIssue(
                        guide=guide,
                        check=self.name,
                        message=f"{block.info or 'code'} block does not parse ({result.error})",
                        line=block.line,
                    )
                )

        for number, line in enumerate(text.splitlines(), start=1):
            for match in _PROVENANCE.finditer(line):
                checks += 1
                path = match.group("path")
                start, end = int(match.group("start")), int(match.group("end"))
                examples = context.examples_by_path.get(path, ())
                if not any(example.start_line <= start and end <= example.end_line for example in examples):
                    issues.append(
                        ValidationIssue(
                            guide=guide,
                            check=self.name,
                            message=f"Source {path}:{start}-{end} does not match any extracted example",
                            line=number,
                        )
                    )

        return PassResult(issues=tuple(issues), ratio=ratio(checks - len(issues), checks))


__all__ = ["AccuracyValidator"]
