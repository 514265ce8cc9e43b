"""Architecture pattern detection for the ten fixed domains."""

from __future__ import annotations

import threading
from typing import Iterable, List, Mapping, Optional

from ..config import DomainRules
from ..logging import get_logger
from ..models import DOMAINS, DomainMatch, FileEntry
from .utils import import_statements

logger = get_logger("analyzers.patterns")


class ArchitecturePatternDetector:
    """Assigns files to domains when path and content corroborate each other.

    A file joins a domain only when at least one file rule matches its path and
    at least one function or import rule matches its content. Import rules see
    only the file's import statements; function rules see the whole text.
    """

    def __init__(self, *, stop: Optional[threading.Event] = None) -> None:
        self._stop = stop

    def detect(self, catalog: Iterable[FileEntry], rules: Mapping[str, DomainRules]) -> List[DomainMatch]:
        domains = [domain for domain in DOMAINS if domain in rules] + sorted(
            domain for domain in rules if domain not in DOMAINS
        )
        matches: List[DomainMatch] = []
        seen: set[tuple[str, str]] = set()

        for entry in catalog:
            if self._stop is not None and self._stop.is_set():
                logger.warning("Pattern detection stopped early")
                break
            if entry.text is None:
                continue
            imports_text: Optional[str] = None
            for domain in domains:
                key = (domain, entry.path)
                if key in seen:
                    continue
                domain_rules = rules[domain]
                path_hits = [rule.rule_id for rule in domain_rules.file_rules if rule.matches(entry.path)]
                if not path_hits:
                    continue
                content_hits = [rule.rule_id for rule in domain_rules.function_rules if rule.matches(entry.text)]
                if domain_rules.import_rules:
                    if imports_text is None:
                        imports_text = "\n".join(statement for statement, _ in import_statements(entry))
                    content_hits.extend(
                        rule.rule_id for rule in domain_rules.import_rules if imports_text and rule.matches(imports_text)
                    )
                if not content_hits:
                    continue
                seen.add(key)
                matches.append(DomainMatch(domain=domain, file=entry, rule_ids=tuple(path_hits + content_hits)))

        logger.debug("Detected %d domain matches", len(matches))
        return matches


__all__ = ["ArchitecturePatternDetector"]
