"""Select bounded, syntactically valid code excerpts for each domain."""

from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..config import DomainRules, ExtractionLimits
from ..globs import GlobSet
from ..logging import get_logger
from ..models import (
    DOMAINS,
    STATUS_ACCEPTED,
    STATUS_NEEDS_REVIEW,
    CodeExample,
    DomainMatch,
    FileEntry,
    PatternRule,
    group_by_domain,
)
from .imports import ImportResolver
from .syntax import SyntaxChecker, grammar_for_path
from .utils import declared_dependencies, import_statements

logger = get_logger("analyzers.examples")


class ValidationFailure(Exception):
    """A candidate excerpt could not be turned into a valid example."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class CodeExampleExtractor:
    """Picks the densest bounded block of top-level code from each matched file.

    Candidates are tried in rank order (priority files, then rule count, then
    path). A candidate whose snippet does not parse is discarded and the next
    one is tried; a snippet whose imports cannot all be resolved is kept but
    flagged for review. Only accepted examples count toward the per-domain cap.
    """

    def __init__(
        self,
        rules: Mapping[str, DomainRules],
        *,
        syntax: Optional[SyntaxChecker] = None,
        resolver: Optional[ImportResolver] = None,
        stop: Optional[threading.Event] = None,
    ) -> None:
        self.rules = rules
        self._syntax = syntax
        self._resolver = resolver
        self._stop = stop

    def extract(
        self,
        catalog: Sequence[FileEntry],
        matches: Iterable[DomainMatch],
        limits: ExtractionLimits,
    ) -> List[CodeExample]:
        syntax = self._syntax or SyntaxChecker()
        resolver = self._resolver or ImportResolver(catalog, declared_dependencies(catalog))
        priority = GlobSet(limits.priority_files)
        grouped = group_by_domain(matches)

        examples: List[CodeExample] = []
        for domain in sorted(grouped, key=_domain_order):
            if self._stopped():
                break
            candidates = sorted(grouped[domain], key=lambda match: _rank(match, priority))
            domain_rules = self.rules.get(domain)
            content_rules = domain_rules.function_rules if domain_rules else ()
            accepted = flagged = 0
            for match in candidates:
                if accepted >= limits.max_examples_per_domain or self._stopped():
                    break
                try:
                    example = self._extract_one(match, content_rules, limits, syntax, resolver)
                except ValidationFailure as exc:
                    logger.debug("Rejected %s example from %s", domain, exc)
                    continue
                if example.status == STATUS_ACCEPTED:
                    accepted += 1
                elif flagged < limits.max_examples_per_domain:
                    # Flagged examples ride along but never fill the cap.
                    flagged += 1
                else:
                    continue
                examples.append(example)
            logger.debug(
                "Extracted %d accepted and %d flagged %s examples from %d candidates",
                accepted,
                flagged,
                domain,
                len(candidates),
            )
        return examples

    def _stopped(self) -> bool:
        if self._stop is not None and self._stop.is_set():
            logger.warning("Example extraction stopped early")
            return True
        return False

    def _extract_one(
        self,
        match: DomainMatch,
        content_rules: Sequence[PatternRule],
        limits: ExtractionLimits,
        syntax: SyntaxChecker,
        resolver: ImportResolver,
    ) -> CodeExample:
        entry = match.file
        text = entry.text
        if text is None:
            raise ValidationFailure(entry.path, "no readable content")
        lines = entry.lines
        grammar = grammar_for_path(entry.path)
        layout = syntax.layout(text, grammar)

        units = [unit for unit in layout.units if unit[0] >= layout.body_start]
        window = densest_window(units, _line_hits(lines, content_rules), limits.min_example_lines, limits.max_example_lines)
        if window is None:
            raise ValidationFailure(entry.path, "no top-level block within the line limits")
        start, end = window

        import_block = "\n".join(lines[: layout.body_start]).strip("\n")
        code = "\n".join(lines[start : end + 1])
        snippet = f"{import_block}\n\n{code}" if import_block else code
        result = syntax.check(snippet, grammar)
        if not result.ok:
            raise ValidationFailure(entry.path, f"{result.checker}: {result.error}")

        specifiers = [specifier for statement, specifier in import_statements(entry) if statement in snippet]
        unresolved = resolver.unresolved(entry, specifiers)
        if unresolved:
            logger.info("Example from %s has unresolved imports: %s", entry.path, ", ".join(unresolved))
        return CodeExample(
            domain=match.domain,
            file=entry,
            start_line=start + 1,
            end_line=end + 1,
            import_block=import_block,
            code=code,
            rule_ids=match.rule_ids,
            status=STATUS_NEEDS_REVIEW if unresolved else STATUS_ACCEPTED,
            unresolved_imports=tuple(unresolved),
        )


def densest_window(
    units: Sequence[Tuple[int, int]],
    line_hits: Sequence[bool],
    min_lines: int,
    max_lines: int,
) -> Optional[Tuple[int, int]]:
    """Return the contiguous run of units with the highest rule-hit density.

    Only runs spanning between ``min_lines`` and ``max_lines`` lines qualify.
    Ties prefer more hits, then the earliest start.
    """
    best: Optional[Tuple[int, int]] = None
    best_key: Optional[Tuple[float, int, int]] = None
    for first in range(len(units)):
        start = units[first][0]
        for last in range(first, len(units)):
            end = units[last][1]
            span = end - start + 1
            if span > max_lines:
                break
            if span < min_lines:
                continue
            hits = sum(1 for hit in line_hits[start : end + 1] if hit)
            key = (hits / span, hits, -start)
            if best_key is None or key > best_key:
                best, best_key = (start, end), key
    return best


def _line_hits(lines: Sequence[str], rules: Sequence[PatternRule]) -> List[bool]:
    return [any(rule.matcher.search(line) for rule in rules) for line in lines]


def _rank(match: DomainMatch, priority: GlobSet) -> Tuple[bool, int, str]:
    return (not (priority and priority.matches(match.path)), -len(match.rule_ids), match.path)


_DOMAIN_INDEX: Dict[str, int] = {domain: index for index, domain in enumerate(DOMAINS)}


def _domain_order(domain: str) -> Tuple[int, str]:
    return (_DOMAIN_INDEX.get(domain, len(DOMAINS)), domain)


__all__ = ["CodeExampleExtractor", "ValidationFailure", "densest_window"]
