"""
NOT condition strategy — the excluded shape must appear somewhere.

A ``not(...)`` branch is only exercised when an example contains what the
negation rules out, so coverage looks for the negated vocabulary.
"""

from __future__ import annotations

import re

from rulecov.core.node_coverage import ALWAYS_COVERED, node_type_present
from rulecov.core.query_analyzer import extract_node_types
from rulecov.core.strategies.keywords import any_keyword_present, extract_keywords, truncate
from rulecov.models.coverage_models import CoverageEvidence, CoverageResult
from rulecov.models.query_models import Conditional, ConditionalKind

KIND = ConditionalKind.NOT

_FIELD_MARKERS = ("fielddeclarationstatements", "fielddeclaration", "field[", "ancestor::field")
_FIELD_LINE = re.compile(
    r"^\s*(?:(?:private|public|protected|global)\s+)?(?:(?:static|final|transient)\s+)+"
    r"[A-Za-z_][\w.]*(?:<[^>;]*>)?(?:\[\])?\s+\w+\s*(?:=[^;]*)?;",
    re.IGNORECASE,
)


def _is_field_pattern(expression: str) -> bool:
    lowered = expression.lower().replace(" ", "")
    return any(marker in lowered for marker in _FIELD_MARKERS)


def _static_final_fields(content: str) -> list[str]:
    lines = []
    for line in content.split("\n"):
        words = set(re.findall(r"\w+", line.lower()))
        if {"static", "final"} <= words and _FIELD_LINE.match(line):
            lines.append(line.strip())
    return lines


def check(conditional: Conditional, content: str) -> CoverageResult:
    """Coverage of a ``not(...)`` predicate against example text."""
    expression = conditional.expression.strip()
    subject = f'NOT condition "{truncate(expression)}"'

    if _is_field_pattern(expression):
        fields = _static_final_fields(content)
        return CoverageResult(
            success=bool(fields),
            message=(
                f"{subject} is covered (static final field present)"
                if fields
                else f"{subject} not covered - no static final field declaration found"
            ),
            subject=subject,
            evidence=[CoverageEvidence(
                type="static_final_field",
                description=f"{len(fields)} static final field declaration(s)",
                count=len(fields),
                required=1,
            )],
            details=[] if fields else [expression],
        )

    # Node-type steps are matched by their code shape, not their name
    node_types = [t for t in extract_node_types(expression) if t not in ALWAYS_COVERED]
    type_names = {t.lower() for t in node_types}
    keywords = [
        kw for kw in extract_keywords(
            expression,
            split_pattern=r"[=<>!()\[\]:]+",
            stopwords=frozenset({"ancestor", "descendant", "parent", "child", "self"}),
        )
        if kw not in type_names
    ]
    matched = [t for t in node_types if node_type_present(t, content)]
    matched += any_keyword_present(keywords, content)
    return CoverageResult(
        success=bool(matched),
        message=(
            f"{subject} is covered (negated pattern present: {', '.join(matched)})"
            if matched
            else f"{subject} not covered - negated pattern never appears"
        ),
        subject=subject,
        evidence=[CoverageEvidence(
            type="negated_keyword",
            description=f"{len(matched)}/{len(node_types) + len(keywords)} negated keywords found",
            count=len(matched),
            required=1,
        )],
        details=[] if matched else [expression],
    )
