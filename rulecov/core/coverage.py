"""
Coverage Aggregator — One coverage verdict per rule.

Conditional strategies and node/attribute checks run against the
concatenated text of every example. A ``CoverageLedger``, scoped to one
rule run, then walks the examples in order and flags branches an earlier
example already exercised.
"""

from __future__ import annotations

import logging
import re

from rulecov.core.markers import marker_code_lines
from rulecov.core.node_coverage import check_attributes, check_node_types, node_types_on_line
from rulecov.core.strategy_registry import check_conditional
from rulecov.core.syntax_tree import SyntaxTreeParser
from rulecov.models.coverage_models import BranchCombination, CoverageResult, RuleCoverageResult
from rulecov.models.example_models import Example
from rulecov.models.query_models import QueryAnalysis
from rulecov.models.syntax_models import SyntaxNode

logger = logging.getLogger("rulecov.coverage")

_QUALIFIED_CALL = re.compile(r"\b(\w+(?:\.\w+)+)\s*\(")
_SIMPLE_CALL = re.compile(r"\b(\w+)\s*\(")

# Node kinds with a precise discriminator; every other kind matches coarsely
_DISCRIMINATORS = {
    "MethodCallExpression",
}


def branch_detail(node_type: str, code: str) -> tuple[str, bool]:
    """``(detail, heuristic)`` for the branch a line of code exercises.

    Method calls are told apart by their call name; for all other kinds the
    detail is empty and the match is flagged heuristic.
    """
    if node_type in _DISCRIMINATORS:
        match = _QUALIFIED_CALL.search(code) or _SIMPLE_CALL.search(code)
        if match:
            return match.group(1), False
    return "", True


class CoverageLedger:
    """Branches exercised so far in one rule run, in example order."""

    def __init__(self) -> None:
        self._branches: dict[tuple[str, str, str], BranchCombination] = {}

    def record(
        self,
        example_index: int,
        section: str,
        node_type: str,
        detail: str = "",
        heuristic: bool = False,
    ) -> int | None:
        """Record a hit; return the earlier example that covered it, if any."""
        key = (section, node_type, detail)
        branch = self._branches.get(key)
        if branch is None:
            self._branches[key] = BranchCombination(
                section=section,
                node_type=node_type,
                detail=detail,
                examples=[example_index],
                heuristic=heuristic,
            )
            return None

        earlier = [i for i in branch.examples if i < example_index]
        if example_index not in branch.examples:
            branch.examples.append(example_index)
        return min(earlier) if earlier else None

    def is_covered(self, section: str, node_type: str, detail: str = "") -> bool:
        return (section, node_type, detail) in self._branches

    @property
    def branches(self) -> list[BranchCombination]:
        return list(self._branches.values())


def record_example(
    ledger: CoverageLedger,
    example: Example,
    node_types: list[str],
) -> list[str]:
    """Add one example's marked lines to the ledger; describe redundant hits."""
    redundant: list[str] = []
    markers = [*example.violation_markers, *example.valid_markers]
    for marker in markers:
        section = "violation" if marker.is_violation else "valid"
        for code_line in marker_code_lines(example.content, marker):
            for node_type in node_types_on_line(code_line.text, node_types):
                detail, heuristic = branch_detail(node_type, code_line.text)
                earlier = ledger.record(
                    example.example_index, section, node_type, detail, heuristic
                )
                if earlier is None:
                    continue
                label = f"{node_type} {detail}".strip()
                note = " (heuristic match)" if heuristic else ""
                redundant.append(
                    f"Example {example.example_index} line {code_line.line_number}: "
                    f"{section} {label} already covered by example {earlier}{note}"
                )
    return redundant


def aggregate(results: list[CoverageResult]) -> RuleCoverageResult:
    """Fold individual verdicts; every failure is listed as uncovered."""
    uncovered: list[str] = []
    for result in results:
        if result.success:
            continue
        for item in result.details or [result.subject or result.message]:
            if item not in uncovered:
                uncovered.append(item)
    return RuleCoverageResult(
        coverage=results,
        uncovered_branches=uncovered,
        overall_success=all(r.success for r in results),
    )


def _corpus_tree(examples: list[Example], parser: SyntaxTreeParser | None) -> SyntaxNode | None:
    if parser is None or not parser.available:
        return None
    trees = [t for t in (parser.parse(e.content) for e in examples) if t is not None]
    return SyntaxNode(kind="corpus", children=trees) if trees else None


def check_rule_coverage(
    analysis: QueryAnalysis,
    examples: list[Example],
    query: str | None,
    ledger: CoverageLedger | None = None,
    parser: SyntaxTreeParser | None = None,
) -> RuleCoverageResult:
    """Coverage of a rule's query by all of its examples."""
    if not query or not examples:
        return RuleCoverageResult(overall_success=False)

    content = "\n".join(example.content for example in examples)
    results: list[CoverageResult] = [
        check_conditional(conditional, content) for conditional in analysis.conditionals
    ]
    if analysis.node_types:
        results.append(
            check_node_types(analysis.node_types, content, _corpus_tree(examples, parser))
        )
    if analysis.attributes:
        results.append(check_attributes(analysis.attributes, content, query))

    coverage = aggregate(results)

    ledger = ledger if ledger is not None else CoverageLedger()
    redundant: list[str] = []
    for example in sorted(examples, key=lambda e: e.example_index):
        redundant.extend(record_example(ledger, example, analysis.node_types))

    logger.info(
        f"Coverage: {sum(r.success for r in results)}/{len(results)} checks satisfied, "
        f"{len(redundant)} redundant branch hit(s)"
    )
    return coverage.model_copy(
        update={"branches": ledger.branches, "redundant_branches": redundant}
    )
