"""
Tests for the Test Oracle and rule-file line recovery.
"""

from rulecov.core.line_locator import LineLocator
from rulecov.core.markers import parse_example
from rulecov.core.oracle import (
    attributable_lines,
    evaluate_valid_test,
    evaluate_violation_test,
    reported_example_lines,
)
from rulecov.core.rule_file import parse_rule_xml
from rulecov.models.engine_models import EngineResult, FixtureFile, ToolViolation
from rulecov.models.report_models import TestType


def _reported(*lines):
    return EngineResult(
        success=True,
        violations=[ToolViolation(line=n, rule="PublicMethod", message="hit") for n in lines],
    )


def _oracle_example(text):
    rule = parse_rule_xml(text, path="PublicMethod.xml")
    return rule.examples[0]


def test_comment_marker_claims_next_code_line(oracle_rule_text):
    example = _oracle_example(oracle_rule_text)
    marker = example.violation_markers[0]
    assert marker.line_number == 4
    assert attributable_lines(example, marker) == {4, 5}


def test_violation_on_marked_line_passes(oracle_rule_text):
    example = _oracle_example(oracle_rule_text)
    locator = LineLocator(text=oracle_rule_text)
    for line in (4, 5):
        verdict = evaluate_violation_test(example, _reported(line), locator=locator)
        assert verdict.passed is True
        assert verdict.test_type is TestType.VIOLATION
        assert verdict.unmatched_markers == []
        assert verdict.line_number == 14


def test_violation_elsewhere_fails_with_recovered_line(oracle_rule_text):
    example = _oracle_example(oracle_rule_text)
    verdict = evaluate_violation_test(
        example, _reported(9), locator=LineLocator(text=oracle_rule_text)
    )
    assert verdict.passed is False
    assert verdict.unmatched_markers == [4]
    # Marker sits on example line 4; the code it annotates is rule-file line 14
    assert verdict.line_number == 14
    assert "1 violation(s) on other lines" in verdict.message


def test_no_violations_fails(oracle_rule_text):
    example = _oracle_example(oracle_rule_text)
    verdict = evaluate_violation_test(example, _reported())
    assert verdict.passed is False
    assert verdict.line_number is None


def test_engine_failure_still_recovers_line(oracle_rule_text):
    example = _oracle_example(oracle_rule_text)
    result = EngineResult(success=False, error="PMD execution exceeded 30s timeout")
    verdict = evaluate_violation_test(
        example, result, locator=LineLocator(text=oracle_rule_text)
    )
    assert verdict.passed is False
    assert verdict.error == "PMD execution exceeded 30s timeout"
    assert verdict.line_number == 14
    assert verdict.unmatched_markers == [4]


def test_fixture_line_map_translates_and_drops_scaffolding():
    fixture = FixtureFile(file_path="TestClass1.cls", line_map={2: 3, 3: 7})
    lines = reported_example_lines(_reported(1, 2, 3, 4), fixture)
    assert lines == {3, 7}
    # Without a map, fixture lines are example lines
    assert reported_example_lines(_reported(1, 2), None) == {1, 2}


def test_valid_half(inline_example):
    example = parse_example(inline_example, example_index=1)
    clean = evaluate_valid_test(example, _reported(2))
    assert clean.passed is True
    assert clean.test_type is TestType.VALID
    assert clean.message == "No violations on valid code"

    dirty = evaluate_valid_test(example, _reported(3))
    assert dirty.passed is False
    assert dirty.message == "Unexpected violation on valid line(s) 3"


def test_valid_engine_failure(inline_example):
    example = parse_example(inline_example, example_index=1)
    verdict = evaluate_valid_test(example, EngineResult(success=False, error="boom"))
    assert verdict.passed is False
    assert verdict.error == "boom"
    assert verdict.line_number is None


def test_locator_maps_example_lines(oracle_rule_text):
    locator = LineLocator(text=oracle_rule_text)
    assert locator.example_line_number(1) == 9
    assert locator.file_line(1, 1) == 10
    assert locator.file_line(1, 5) == 14
    assert locator.recover_line_number(1, 5) == 14
    # Blank line 6 resolves forward to the helper method on line 7
    assert locator.recover_line_number(1, 6) == 16


def test_locator_soft_failures(tmp_path, oracle_rule_text):
    missing = LineLocator(rule_file=str(tmp_path / "gone.xml"))
    assert missing.file_line(1, 1) is None
    assert missing.recover_line_number(1, 1) is None
    assert missing.example_line_number(1) is None

    locator = LineLocator(text=oracle_rule_text)
    assert locator.file_line(2, 1) is None
    assert locator.file_line(0, 1) is None
    assert locator.recover_line_number(1, 0) is None


def test_locator_reads_file_lazily(tmp_path, oracle_rule_text):
    path = tmp_path / "PublicMethod.xml"
    path.write_text(oracle_rule_text, encoding="utf-8")
    locator = LineLocator(rule_file=str(path))
    assert locator.recover_line_number(1, 4) == 14
