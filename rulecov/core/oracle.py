"""
Test Oracle — Reconcile annotated examples with what PMD actually reported.

Violation half: passes iff PMD reports at least one violation on a line
that a violation marker speaks for. Valid half: passes iff PMD reports no
violation on a line a valid marker speaks for. PMD failures fail the half
and still resolve a best-effort rule-file line number.
"""

from __future__ import annotations

import logging

from rulecov.core.line_locator import LineLocator
from rulecov.core.markers import marker_code_lines
from rulecov.models.engine_models import EngineResult, FixtureFile
from rulecov.models.example_models import Example, Marker
from rulecov.models.report_models import ExampleTestResult, TestType

logger = logging.getLogger("rulecov.oracle")


def attributable_lines(example: Example, marker: Marker) -> set[int]:
    """Example lines a marker claims, always including its own line."""
    lines = {line.line_number for line in marker_code_lines(example.content, marker)}
    lines.add(marker.line_number)
    return lines


def reported_example_lines(result: EngineResult, fixture: FixtureFile | None) -> set[int]:
    """Example lines of PMD's violations.

    Fixture lines are translated through the fixture's line map; without a
    map the fixture is assumed to mirror the example line for line.
    Violations on scaffolding lines that map nowhere are dropped.
    """
    lines: set[int] = set()
    for violation in result.violations:
        if fixture is not None and fixture.line_map:
            mapped = fixture.line_map.get(violation.line)
            if mapped is None:
                logger.debug(f"Violation on fixture line {violation.line} maps to no example line")
                continue
            lines.add(mapped)
        else:
            lines.add(violation.line)
    return lines


def _engine_failure(
    example: Example,
    test_type: TestType,
    result: EngineResult,
    markers: list[Marker],
    locator: LineLocator | None,
) -> ExampleTestResult:
    line_number = None
    if locator is not None and markers:
        line_number = locator.recover_line_number(example.example_index, markers[0].line_number)
    logger.warning(
        f"Example {example.example_index} {test_type.value} test: PMD failed: {result.error}"
    )
    return ExampleTestResult(
        example_index=example.example_index,
        test_type=test_type,
        passed=False,
        line_number=line_number,
        message=f"PMD execution failed for {test_type.value} test",
        unmatched_markers=[m.line_number for m in markers],
        error=result.error or "Unknown PMD failure",
    )


def evaluate_violation_test(
    example: Example,
    result: EngineResult,
    fixture: FixtureFile | None = None,
    locator: LineLocator | None = None,
) -> ExampleTestResult:
    """Verdict for the violation half of one example."""
    markers = example.violation_markers
    if not result.success:
        return _engine_failure(example, TestType.VIOLATION, result, markers, locator)

    reported = reported_example_lines(result, fixture)
    matched = [m for m in markers if attributable_lines(example, m) & reported]
    unmatched = [m for m in markers if m not in matched]
    passed = bool(matched)

    focus = matched[0] if passed else (unmatched[0] if unmatched else None)
    line_number = None
    if locator is not None and focus is not None:
        line_number = locator.recover_line_number(example.example_index, focus.line_number)

    if passed:
        message = f"{len(matched)}/{len(markers)} violation marker(s) reported by PMD"
    else:
        message = (
            f"Expected violation not reported "
            f"({len(result.violations)} violation(s) on other lines)"
        )
    return ExampleTestResult(
        example_index=example.example_index,
        test_type=TestType.VIOLATION,
        passed=passed,
        line_number=line_number,
        message=message,
        unmatched_markers=[m.line_number for m in unmatched],
        tool_violations=len(result.violations),
    )


def evaluate_valid_test(
    example: Example,
    result: EngineResult,
    fixture: FixtureFile | None = None,
    locator: LineLocator | None = None,
) -> ExampleTestResult:
    """Verdict for the valid half of one example."""
    markers = example.valid_markers
    if not result.success:
        return _engine_failure(example, TestType.VALID, result, markers, locator)

    reported = reported_example_lines(result, fixture)
    offending = sorted({
        line
        for marker in markers
        for line in attributable_lines(example, marker) & reported
    })

    line_number = None
    if locator is not None:
        if offending:
            line_number = locator.file_line(example.example_index, offending[0])
        elif markers:
            line_number = locator.recover_line_number(
                example.example_index, markers[0].line_number
            )

    return ExampleTestResult(
        example_index=example.example_index,
        test_type=TestType.VALID,
        passed=not offending,
        line_number=line_number,
        message=(
            f"Unexpected violation on valid line(s) {', '.join(map(str, offending))}"
            if offending
            else "No violations on valid code"
        ),
        tool_violations=len(result.violations),
    )
