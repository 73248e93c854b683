"""
Tests for the Rule Worker — the full pipeline with a stand-in PMD engine.
"""

import asyncio
import json

import pytest

from rulecov.audit.logger import AuditLogger
from rulecov.engine.fixtures import FixtureBuilder
from rulecov.errors import RuleValidationError
from rulecov.models.report_models import TestType
from rulecov.workers.rule_worker import NO_VIOLATIONS_ISSUE, RuleWorker

# Rule-file line of the first line of the first example built by rule_xml()
FIRST_EXAMPLE_LINE = 15


def test_public_method_reported(make_worker, fake_engine, write_rule, build_rule_xml):
    engine = fake_engine(trigger="public void")
    worker = make_worker(engine)
    path = write_rule(build_rule_xml(["public void m() {} // ❌"]))

    report = asyncio.run(worker.test_rule_file(path))

    assert report.passed is True
    assert report.examples_tested == 1
    assert report.examples_passed == 1
    # No valid marker, so only the violation half runs
    assert [r.test_type for r in report.results] == [TestType.VIOLATION]
    assert report.results[0].line_number == FIRST_EXAMPLE_LINE
    assert len(engine.calls) == 1
    assert report.results[0].tool_violations == 1
    assert report.total_tool_violations == 1
    assert engine.calls[0][1] == path
    assert report.metadata.rule_name == "AvoidPublicMethods"


def test_missed_violation_fails_but_coverage_holds(make_worker, fake_engine, write_rule, build_rule_xml):
    worker = make_worker(fake_engine())
    path = write_rule(build_rule_xml(["public void m() {} // ❌"]))

    report = asyncio.run(worker.test_rule_file(path))

    assert report.passed is False
    assert report.results[0].passed is False
    assert report.results[0].unmatched_markers == [1]
    node_result = next(r for r in report.coverage.coverage if r.subject == "Node types")
    assert node_result.success is True


def test_both_halves(make_worker, fake_engine, write_rule, build_rule_xml, inline_example):
    worker = make_worker(fake_engine(trigger="public void"))
    path = write_rule(build_rule_xml([inline_example]))

    report = asyncio.run(worker.test_rule_file(path))

    assert [(r.test_type, r.passed) for r in report.results] == [
        (TestType.VIOLATION, True),
        (TestType.VALID, True),
    ]
    assert report.passed is True


def test_violation_in_valid_half_fails(make_worker, fake_engine, write_rule, build_rule_xml, inline_example):
    # Trigger on "void" flags the valid line too
    worker = make_worker(fake_engine(trigger="void"))
    path = write_rule(build_rule_xml([inline_example]))

    report = asyncio.run(worker.test_rule_file(path))

    valid = next(r for r in report.results if r.test_type is TestType.VALID)
    assert valid.passed is False
    assert valid.line_number == FIRST_EXAMPLE_LINE + 2
    assert report.passed is False
    assert report.examples_passed == 0
    # One violation reported for each half
    assert report.total_tool_violations == 2


def test_rule_without_examples_raises_before_pmd(make_worker, fake_engine, write_rule, build_rule_xml):
    engine = fake_engine(trigger="public")
    worker = make_worker(engine)
    path = write_rule(build_rule_xml([]))

    with pytest.raises(RuleValidationError):
        asyncio.run(worker.test_rule_file(path))
    assert engine.calls == []


def test_rule_without_violation_markers_skips_pmd(make_worker, fake_engine, write_rule, build_rule_xml):
    engine = fake_engine(trigger="public")
    worker = make_worker(engine)
    path = write_rule(build_rule_xml(["private void n() {} // ✅"]))

    report = asyncio.run(worker.test_rule_file(path))

    assert report.passed is False
    assert NO_VIOLATIONS_ISSUE in report.issues
    assert report.results == []
    assert engine.calls == []


def test_malformed_rule_file_is_a_failed_report(make_worker, fake_engine, write_rule):
    worker = make_worker(fake_engine())
    path = write_rule("<rule name='Broken'><example>")

    report = asyncio.run(worker.test_rule_file(path))

    assert report.passed is False
    assert "malformed rule XML" in report.issues[0]


def test_engine_failure_is_reported_per_example(make_worker, broken_engine, write_rule, build_rule_xml):
    worker = make_worker(broken_engine)
    path = write_rule(build_rule_xml(["public void m() {} // ❌", "public void n() {} // ❌"]))

    report = asyncio.run(worker.test_rule_file(path))

    assert report.passed is False
    assert broken_engine.calls == 2
    assert all(r.error == "PMD execution exceeded 30s timeout" for r in report.results)
    assert report.results[0].line_number == FIRST_EXAMPLE_LINE


class UnwritableFixtures(FixtureBuilder):
    def create(self, *args, **kwargs):
        raise OSError("disk full")


def test_unwritable_fixture_is_an_engine_failure(tmp_path, text_only_parser, fake_engine, write_rule, build_rule_xml):
    engine = fake_engine(trigger="public void")
    worker = RuleWorker(
        engine=engine,
        fixtures=UnwritableFixtures(str(tmp_path / "fixtures")),
        parser=text_only_parser,
    )
    path = write_rule(build_rule_xml(["public void m() {} // ❌"]))

    report = asyncio.run(worker.test_rule_file(path))

    assert report.passed is False
    assert engine.calls == []
    result = report.results[0]
    assert result.error == "Could not write fixture: disk full"
    assert result.line_number == FIRST_EXAMPLE_LINE
    assert result.unmatched_markers == [1]
    assert report.total_tool_violations == 0


def test_concurrency_does_not_change_verdicts(make_worker, fake_engine, write_rule, build_rule_xml):
    examples = [
        "public void a() {} // ❌",
        "private void b() {} // ❌",
        "public void c() {} // ❌\nprivate void d() {} // ✅",
        "public void e() {} // ❌",
    ]
    path = write_rule(build_rule_xml(examples))
    # Make the first example the slowest so completion order differs from input order
    delays = {"example-1-": 0.05}

    serial = asyncio.run(
        make_worker(fake_engine("public void", delays), max_concurrency=1).test_rule_file(path)
    )
    parallel = asyncio.run(
        make_worker(fake_engine("public void", delays), max_concurrency=4).test_rule_file(path)
    )

    assert [r.model_dump() for r in serial.results] == [r.model_dump() for r in parallel.results]
    assert [r.example_index for r in parallel.results] == [1, 2, 3, 3, 4]
    assert serial.examples_passed == parallel.examples_passed == 3


def test_fixtures_are_cleaned_up(tmp_path, make_worker, fake_engine, write_rule, build_rule_xml, inline_example):
    worker = make_worker(fake_engine("public void"))
    path = write_rule(build_rule_xml([inline_example]))
    asyncio.run(worker.test_rule_file(path))
    assert list((tmp_path / "fixtures").iterdir()) == []


def test_rule_text(make_worker, fake_engine, build_rule_xml):
    worker = make_worker(fake_engine("public void"))
    report = asyncio.run(
        worker.test_rule_text(build_rule_xml(["public void m() {} // ❌"]), name="inline.xml")
    )
    assert report.rule_file == "inline.xml"
    assert report.passed is True
    assert report.results[0].line_number == FIRST_EXAMPLE_LINE


def test_rule_text_without_examples_raises(make_worker, fake_engine, build_rule_xml):
    with pytest.raises(RuleValidationError) as exc_info:
        asyncio.run(make_worker(fake_engine()).test_rule_text(build_rule_xml([])))
    assert exc_info.value.reason == "No examples found in rule"


def test_batch_isolates_failures(make_worker, fake_engine, write_rule, build_rule_xml):
    good = write_rule(build_rule_xml(["public void m() {} // ❌"]), name="Good.xml")
    empty = write_rule(build_rule_xml([]), name="Empty.xml")
    broken = write_rule("<rule", name="Broken.xml")

    batch = asyncio.run(make_worker(fake_engine("public void")).run_batch([good, empty, broken]))

    assert [r.rule_file for r in batch.reports] == [good, empty, broken]
    assert batch.passed == 1
    assert batch.failed == 2
    assert batch.reports[1].issues == ["No examples found in rule"]
    assert "malformed rule XML" in batch.reports[2].issues[0]


def test_audit_trail(tmp_path, text_only_parser, fake_engine, write_rule, build_rule_xml):
    audit = AuditLogger(str(tmp_path / "audit.jsonl"))
    worker = RuleWorker(engine=fake_engine(), parser=text_only_parser, audit=audit)
    path = write_rule(build_rule_xml(["public void m() {} // ❌"]))

    asyncio.run(worker.test_rule_file(path))

    lines = (tmp_path / "audit.jsonl").read_text(encoding="utf-8").splitlines()
    record = json.loads(lines[0])
    assert record["rule_file"] == path
    assert record["rule_name"] == "AvoidPublicMethods"
    assert record["passed"] is False
    assert "timestamp" in record
    assert [r["rule_file"] for r in audit.failures()] == [path]
