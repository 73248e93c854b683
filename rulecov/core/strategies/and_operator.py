"""
AND operator strategy — every operand of a top-level ``and`` must be exercised.

Operands that test a modifier flag (``@Final = true()``) are satisfied by
the literal keyword in the example; other operands are matched by
attribute values, node-type steps, or plain vocabulary.
"""

from __future__ import annotations

from rulecov.core.query_analyzer import negated_argument
from rulecov.core.strategies import not_condition
from rulecov.core.strategies.keywords import (
    any_keyword_present,
    extract_keywords,
    keyword_present,
    modifier_keywords,
    part_is_covered,
    truncate,
)
from rulecov.core.xpath_text import split_top_level
from rulecov.models.coverage_models import CoverageEvidence, CoverageResult
from rulecov.models.query_models import Conditional, ConditionalKind

KIND = ConditionalKind.AND

NOTHING_TO_CHECK = "No expression to check"


def _operand_covered(part: str, content: str) -> bool:
    """A ``not(...)`` operand is covered the way a NOT predicate is."""
    argument = negated_argument(part)
    if argument:
        negation = Conditional(kind=ConditionalKind.NOT, expression=argument, position=0)
        return not_condition.check(negation, content).success
    return part_is_covered(part, content)


def _part_label(part: str, content: str) -> str:
    missing = [kw for kw in modifier_keywords(part) if not keyword_present(kw, content)]
    if missing:
        keywords = ", ".join(f"'{kw}'" for kw in missing)
        return f"{part} ({keywords} keyword)"
    return part


def _check_single(expression: str, content: str, subject: str) -> CoverageResult:
    modifiers = modifier_keywords(expression)
    if modifiers:
        missing = [kw for kw in modifiers if not keyword_present(kw, content)]
        found = len(modifiers) - len(missing)
        if missing:
            names = ", ".join(f"'{kw}'" for kw in missing)
            message = f"{subject} not covered - missing {names} keyword"
        else:
            message = f"{subject} is covered"
        return CoverageResult(
            success=not missing,
            message=message,
            subject=subject,
            evidence=[CoverageEvidence(
                type="modifier_keyword",
                description=f"{found}/{len(modifiers)} modifier keywords present",
                count=0 if missing else 1,
                required=1,
            )],
            details=[expression] if missing else [],
        )

    keywords = extract_keywords(expression)
    matched = any_keyword_present(keywords, content)
    if matched:
        message = f"{subject} is covered (matched: {', '.join(matched)})"
    else:
        message = f"{subject} not covered - none of: {', '.join(keywords) or '(no keywords)'}"
    return CoverageResult(
        success=bool(matched),
        message=message,
        subject=subject,
        evidence=[CoverageEvidence(
            type="keyword",
            description=f"{len(matched)}/{len(keywords)} keywords found",
            count=len(matched),
            required=1,
        )],
        details=[] if matched else [expression],
    )


def check(conditional: Conditional, content: str) -> CoverageResult:
    """Coverage of an ``and`` predicate against example text."""
    expression = conditional.expression.strip()
    if not expression:
        return CoverageResult(success=False, message=NOTHING_TO_CHECK, subject="AND condition")

    subject = f'AND condition "{truncate(expression)}"'
    parts = split_top_level(expression, "and")
    if len(parts) < 2:
        return _check_single(expression, content, subject)

    missing = [part for part in parts if not _operand_covered(part, content)]
    covered = len(parts) - len(missing)

    if missing:
        labels = ", ".join(_part_label(part, content) for part in missing)
        message = f"{subject} not fully covered - missing: {labels}"
    else:
        message = f"{subject} is covered (all {len(parts)} parts satisfied)"

    return CoverageResult(
        success=not missing,
        message=message,
        subject=subject,
        evidence=[CoverageEvidence(
            type="and_parts",
            description=f"{covered}/{len(parts)} parts covered",
            count=0 if missing else 1,
            required=1,
        )],
        details=missing,
    )
