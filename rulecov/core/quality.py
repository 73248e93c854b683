"""
Rule Quality Checks — Static sanity checks on a rule before it is run.

Errors fail the rule; warnings are reported but don't.
"""

from __future__ import annotations

import re

from rulecov.core.markers import is_executable_line
from rulecov.models.example_models import Example, RuleMetadata
from rulecov.models.query_models import QueryAnalysis

MIN_NAME_LENGTH = 3
MIN_MESSAGE_LENGTH = 10
MIN_DESCRIPTION_LENGTH = 20
MIN_DUPLICATE_LENGTH = 10


class QualityResult:
    """Issues (errors) and warnings collected by the quality checks."""

    def __init__(self) -> None:
        self.passed = True
        self.issues: list[str] = []
        self.warnings: list[str] = []

    def add_issue(self, issue: str) -> None:
        self.passed = False
        self.issues.append(issue)

    def add_warning(self, warning: str) -> None:
        self.warnings.append(warning)

    def merge(self, other: QualityResult) -> None:
        for issue in other.issues:
            self.add_issue(issue)
        self.warnings.extend(other.warnings)


def check_rule_metadata(metadata: RuleMetadata, analysis: QueryAnalysis) -> QualityResult:
    result = QualityResult()

    if not metadata.rule_name:
        result.add_issue("Rule name is missing")
    elif len(metadata.rule_name) < MIN_NAME_LENGTH:
        result.add_warning(f"Rule name '{metadata.rule_name}' is very short")

    if not metadata.message:
        result.add_issue("Rule message is missing")
    elif len(metadata.message) < MIN_MESSAGE_LENGTH:
        result.add_warning("Rule message is very short")

    if not metadata.description:
        result.add_warning("Rule description is missing")
    elif len(metadata.description) < MIN_DESCRIPTION_LENGTH:
        result.add_warning("Rule description is very short")

    if not metadata.query:
        result.add_issue("Rule has no XPath query")
    elif analysis.hardcoded_values:
        shown = ", ".join(analysis.hardcoded_values[:5])
        result.add_warning(f"XPath contains hardcoded values: {shown}")

    return result


def check_examples(examples: list[Example]) -> QualityResult:
    result = QualityResult()
    if not examples:
        result.add_issue("No examples found in rule")
        return result

    for example in examples:
        if not any(is_executable_line(line) for line in example.content.split("\n")):
            result.add_issue(f"Example {example.example_index} contains no code")
        if not example.violation_markers and not example.valid_markers:
            result.add_warning(
                f"Example {example.example_index} has no violation or valid markers"
            )
    return result


def _normalize(line: str) -> str:
    return re.sub(r"\s+", " ", line).strip().lower()


def check_duplicates(examples: list[Example]) -> QualityResult:
    """Warn about code lines repeated verbatim across examples."""
    result = QualityResult()
    seen: dict[str, int] = {}
    reported: set[str] = set()
    for example in examples:
        for line in [*example.violations, *example.valids]:
            normalized = _normalize(line)
            if len(normalized) <= MIN_DUPLICATE_LENGTH:
                continue
            first = seen.setdefault(normalized, example.example_index)
            if first != example.example_index and normalized not in reported:
                reported.add(normalized)
                result.add_warning(
                    f"Duplicate pattern in examples {first} and {example.example_index}: {line.strip()}"
                )
    return result


def check_rule_quality(
    metadata: RuleMetadata,
    examples: list[Example],
    analysis: QueryAnalysis,
) -> QualityResult:
    result = check_rule_metadata(metadata, analysis)
    result.merge(check_examples(examples))
    result.merge(check_duplicates(examples))
    return result
