"""Technology stack detection from manifests, imports and config filenames."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from ..globs import GlobSet
from ..logging import get_logger
from ..models import Capability, FileEntry
from ..signatures import CONFIGURATION_CATEGORY, SignatureIndex
from .utils import import_statements, is_manifest, manifest_dependencies, package_candidates

logger = get_logger("analyzers.tech_stack")


@dataclass
class _Tally:
    category: str
    domain: Optional[str]
    markers: Dict[str, None] = field(default_factory=dict)
    evidence: Dict[str, None] = field(default_factory=dict)
    score: float = 0.0

    def freeze(self, name: str) -> Capability:
        return Capability(
            name=name,
            category=self.category,
            domain=self.domain,
            markers=tuple(sorted(self.markers)),
            evidence=tuple(sorted(self.evidence)),
            score=round(self.score, 4),
        )


class TechStackDetector:
    """Turns manifest declarations and import statements into weighted capability votes.

    A declaration in a manifest is direct evidence and votes 1.0; an import seen
    in ordinary source votes 0.5 since usage is only inferred. Each file votes at
    most once per capability. Nothing here picks a single winner: see
    :func:`leaders` for tie-aware ranking.
    """

    MANIFEST_WEIGHT = 1.0
    IMPORT_WEIGHT = 0.5
    CONFIG_FILE_WEIGHT = 1.0

    def __init__(self, signatures: SignatureIndex, *, stop: Optional[threading.Event] = None) -> None:
        self.signatures = signatures
        self._stop = stop
        self._config_globs = [(signature, GlobSet(signature.files)) for signature in signatures.config_files]

    def detect(self, catalog: Iterable[FileEntry]) -> Dict[str, Capability]:
        tallies: Dict[str, _Tally] = {}
        for entry in catalog:
            if self._stop is not None and self._stop.is_set():
                logger.warning("Tech stack detection stopped early")
                break
            self._vote_config_files(entry, tallies)
            if entry.text is None:
                continue
            if is_manifest(entry):
                self._vote_manifest(entry, tallies)
            else:
                self._vote_imports(entry, tallies)

        capabilities = {name: tallies[name].freeze(name) for name in sorted(tallies)}
        logger.debug("Detected %d capabilities", len(capabilities))
        return capabilities

    def _vote_config_files(self, entry: FileEntry, tallies: Dict[str, _Tally]) -> None:
        for signature, globs in self._config_globs:
            if globs.matches(entry.path):
                self._vote(
                    tallies,
                    f"config:{signature.name}",
                    entry,
                    marker=entry.name,
                    weight=self.CONFIG_FILE_WEIGHT,
                    category=CONFIGURATION_CATEGORY,
                    domain=signature.domain,
                )

    def _vote_manifest(self, entry: FileEntry, tallies: Dict[str, _Tally]) -> None:
        voted: Dict[str, str] = {}
        for dependency in manifest_dependencies(entry):
            for name, marker in self.signatures.lookup(dependency):
                voted.setdefault(name, marker)
        for name, marker in voted.items():
            self._vote(tallies, name, entry, marker=marker, weight=self.MANIFEST_WEIGHT)

    def _vote_imports(self, entry: FileEntry, tallies: Dict[str, _Tally]) -> None:
        voted: Dict[str, str] = {}
        for _, specifier in import_statements(entry):
            for candidate in package_candidates(specifier, entry.language):
                for name, marker in self.signatures.lookup(candidate):
                    voted.setdefault(name, marker)
        for name, marker in voted.items():
            self._vote(tallies, name, entry, marker=marker, weight=self.IMPORT_WEIGHT)

    def _vote(
        self,
        tallies: Dict[str, _Tally],
        name: str,
        entry: FileEntry,
        *,
        marker: str,
        weight: float,
        category: Optional[str] = None,
        domain: Optional[str] = None,
    ) -> None:
        tally = tallies.get(name)
        if tally is None:
            tally = _Tally(
                category=category or self.signatures.category_of(name),
                domain=domain if category else self.signatures.domain_of(name),
            )
            tallies[name] = tally
        tally.markers[marker] = None
        tally.evidence[entry.path] = None
        tally.score += weight


def group_by_category(capabilities: Mapping[str, Capability]) -> Dict[str, List[Capability]]:
    grouped: Dict[str, List[Capability]] = {}
    for name in sorted(capabilities):
        capability = capabilities[name]
        grouped.setdefault(capability.category, []).append(capability)
    return grouped


def leaders(capabilities: Sequence[Capability] | Mapping[str, Capability], category: Optional[str] = None) -> List[Capability]:
    """Every capability sharing the top score, so ambiguous evidence yields several."""
    pool = list(capabilities.values()) if isinstance(capabilities, Mapping) else list(capabilities)
    if category is not None:
        pool = [capability for capability in pool if capability.category == category]
    if not pool:
        return []
    best = max(capability.score for capability in pool)
    return sorted((capability for capability in pool if capability.score == best), key=lambda item: item.name)


__all__ = ["TechStackDetector", "group_by_category", "leaders"]
