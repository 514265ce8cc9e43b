"""Consistency pass: capability names are spelled one way across all guides."""

from __future__ import annotations

import re
from collections import Counter
from typing import Dict, List, Mapping

from ..signatures import COMMON_WORD_KEYS
from .base import PassResult, ValidationContext, ValidationIssue, ratio

_WORD = re.compile(r"[A-Za-z0-9@][A-Za-z0-9@._/-]*[A-Za-z0-9]|[A-Za-z0-9]")
_SEPARATORS = re.compile(r"[-_. /]")
_FENCED = re.compile(r"^[ \t]*(`{3,}|~{3,}).*?^[ \t]*\1[ \t]*$", re.MULTILINE | re.DOTALL)
_INLINE_CODE = re.compile(r"`[^`\n]*`")


def normalise(name: str) -> str:
    return _SEPARATORS.sub("", name.lower())


def prose(text: str) -> str:
    """Markdown text without fenced or inline code."""
    return _INLINE_CODE.sub(" ", _FENCED.sub(" ", text))


def spellings(text: str, keys: Mapping[str, str]) -> Dict[str, Counter]:
    """Count each spelling of every capability key found in ``text``'s prose."""
    found: Dict[str, Counter] = {}
    for match in _WORD.finditer(prose(text)):
        word = match.group(0)
        normalised = normalise(word)
        key = keys.get(normalised)
        if key is None:
            continue
        if word.islower() and word.isalpha() and normalised in COMMON_WORD_KEYS:
            # "the next step" is not a mention of Next.
            continue
        found.setdefault(key, Counter())[word] += 1
    return found


class ConsistencyValidator:
    """Flags capability names whose spelling differs from the majority spelling."""

    name = "consistency"

    def canonical(self, context: ValidationContext) -> Dict[str, str]:
        keys = _capability_keys(context)
        totals: Dict[str, Counter] = {}
        for text in context.guides.values():
            for key, counts in spellings(text, keys).items():
                totals.setdefault(key, Counter()).update(counts)
        return {key: min(counts.items(), key=lambda item: (-item[1], item[0]))[0] for key, counts in totals.items()}

    def validate(self, guide: str, text: str, context: ValidationContext) -> PassResult:
        canonical = self.canonical(context)
        found = spellings(text, _capability_keys(context))
        issues: List[ValidationIssue] = []
        for key in sorted(found):
            variants = sorted(spelling for spelling in found[key] if spelling != canonical[key])
            if variants:
                issues.append(
                    ValidationIssue(
                        guide=guide,
                        check=self.name,
                        message=f"'{', '.join(variants)}' should be spelled '{canonical[key]}'",
                        severity="warning",
                    )
                )
        return PassResult(issues=tuple(issues), ratio=ratio(len(found) - len(issues), len(found)))


def _capability_keys(context: ValidationContext) -> Dict[str, str]:
    keys: Dict[str, str] = {}
    for capability in context.analysis.capabilities.values():
        normalised = normalise(capability.key)
        if normalised:
            keys.setdefault(normalised, capability.key)
    return keys


__all__ = ["ConsistencyValidator", "normalise", "prose", "spellings"]
