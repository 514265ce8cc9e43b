"""Completeness pass: every required section heading must be present."""

from __future__ import annotations

from .base import PassResult, ValidationContext, ValidationIssue, iter_headings, ratio


class CompletenessValidator:
    name = "completeness"

    def validate(self, guide: str, text: str, context: ValidationContext) -> PassResult:
        headings = [heading.lower() for heading in iter_headings(text)]
        missing = [
            section
            for section in context.required_sections
            if not any(heading == section.lower() or heading.startswith(f"{section.lower()} ") for heading in headings)
        ]
        issues = tuple(
            ValidationIssue(guide=guide, check=self.name, message=f"Missing required section '{section}'")
            for section in missing
        )
        total = len(context.required_sections)
        return PassResult(issues=issues, ratio=ratio(total - len(missing), total))


__all__ = ["CompletenessValidator"]
