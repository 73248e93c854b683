"""
Rule Worker — Test one rule file, or a batch of them.

Pipeline per rule file:
  1. Read rule XML → metadata + annotated examples
  2. Quality checks (metadata, examples, duplicates)
  3. Query coverage across all examples (with redundancy ledger)
  4. Per example, bounded concurrency:
       fixture → PMD → oracle, once for violations and once for valids
  5. Assemble the report (and audit it)

A rule with no examples raises ``RuleValidationError`` before PMD runs.
Every other problem lands in the report.
"""

from __future__ import annotations

import asyncio
import logging
import tempfile
import time
from pathlib import Path
from typing import Protocol

from rulecov.audit.logger import AuditLogger
from rulecov.config import settings
from rulecov.core.coverage import CoverageLedger, check_rule_coverage
from rulecov.core.line_locator import LineLocator
from rulecov.core.oracle import evaluate_valid_test, evaluate_violation_test
from rulecov.core.quality import check_rule_quality
from rulecov.core.query_analyzer import analyze_query
from rulecov.core.rule_file import parse_rule_xml, read_rule_file
from rulecov.core.syntax_tree import SyntaxTreeParser
from rulecov.engine.fixtures import FixtureBuilder
from rulecov.engine.pmd_runner import PMDRunner
from rulecov.errors import RuleFileError, RuleValidationError
from rulecov.models.engine_models import EngineResult
from rulecov.models.example_models import Example, RuleFile
from rulecov.models.report_models import (
    BatchReport,
    ExampleTestResult,
    RuleTestReport,
    TestType,
)
from rulecov.workers.pool import host_parallelism, run_bounded

logger = logging.getLogger("rulecov.worker")

NO_VIOLATIONS_ISSUE = "Rule has no violation markers: at least one violation required"


class EngineAdapter(Protocol):
    def run(self, fixture_path: str, ruleset_path: str) -> EngineResult: ...


class RuleWorker:
    """Runs the full verification pipeline for rule files."""

    def __init__(
        self,
        engine: EngineAdapter | None = None,
        fixtures: FixtureBuilder | None = None,
        parser: SyntaxTreeParser | None = None,
        max_concurrency: int | None = None,
        audit: AuditLogger | None = None,
    ) -> None:
        self.engine = engine or PMDRunner()
        self.fixtures = fixtures or FixtureBuilder()
        self.parser = parser if parser is not None else SyntaxTreeParser()
        self.max_concurrency = max_concurrency or settings.max_concurrency or host_parallelism()
        if audit is None and settings.audit_log_path:
            audit = AuditLogger(settings.audit_log_path)
        self.audit = audit

    # ── One example half ──

    async def _run_half(
        self,
        example: Example,
        test_type: TestType,
        ruleset_path: str,
        locator: LineLocator,
    ) -> ExampleTestResult:
        is_violation = test_type is TestType.VIOLATION
        evaluate = evaluate_violation_test if is_violation else evaluate_valid_test
        try:
            fixture = self.fixtures.create(
                example.content,
                example.example_index,
                include_violations=is_violation,
                include_valids=not is_violation,
            )
        except OSError as e:
            logger.warning(f"Example {example.example_index}: could not write fixture: {e}")
            # Reported as an engine failure for this half
            failure = EngineResult(success=False, error=f"Could not write fixture: {e}")
            return evaluate(example, failure, None, locator)

        try:
            # PMD blocks; keep the event loop free for sibling examples
            result = await asyncio.to_thread(self.engine.run, fixture.file_path, ruleset_path)
            return evaluate(example, result, fixture, locator)
        finally:
            if not settings.keep_fixtures:
                self.fixtures.cleanup(fixture)

    async def _test_example(
        self,
        example: Example,
        ruleset_path: str,
        locator: LineLocator,
    ) -> list[ExampleTestResult]:
        results: list[ExampleTestResult] = []
        if example.violation_markers:
            results.append(
                await self._run_half(example, TestType.VIOLATION, ruleset_path, locator)
            )
        if example.valid_markers:
            results.append(
                await self._run_half(example, TestType.VALID, ruleset_path, locator)
            )
        logger.info(
            f"Example {example.example_index}: "
            f"{sum(r.passed for r in results)}/{len(results)} test(s) passed"
        )
        return results

    def _failed_example(self, example: Example, error: str) -> list[ExampleTestResult]:
        """Results for an example whose task crashed outright."""
        halves = []
        if example.violation_markers:
            halves.append(TestType.VIOLATION)
        if example.valid_markers:
            halves.append(TestType.VALID)
        return [
            ExampleTestResult(
                example_index=example.example_index,
                test_type=test_type,
                passed=False,
                message="Example could not be tested",
                error=error,
            )
            for test_type in halves
        ]

    # ── One rule file ──

    async def test_rule(
        self,
        rule: RuleFile,
        ruleset_path: str,
        locator: LineLocator | None = None,
    ) -> RuleTestReport:
        """Test an already-parsed rule; ``ruleset_path`` is handed to PMD."""
        start = time.monotonic()
        locator = locator or LineLocator(rule.path)

        # ── Step 1: Nothing to test ──
        if not rule.examples:
            raise RuleValidationError(rule.path, "No examples found in rule")

        # ── Step 2: Quality checks ──
        analysis = analyze_query(rule.metadata.query)
        quality = check_rule_quality(rule.metadata, rule.examples, analysis)
        issues = list(quality.issues)
        has_violations = any(example.violation_markers for example in rule.examples)
        if not has_violations:
            issues.append(NO_VIOLATIONS_ISSUE)

        # ── Step 3: Coverage (pure text, independent of PMD) ──
        coverage = check_rule_coverage(
            analysis,
            rule.examples,
            rule.metadata.query,
            ledger=CoverageLedger(),
            parser=self.parser,
        )

        report = RuleTestReport(
            rule_file=rule.path,
            metadata=rule.metadata,
            coverage=coverage,
            issues=issues,
            warnings=quality.warnings,
        )

        if not has_violations:
            logger.warning(f"{rule.path}: {NO_VIOLATIONS_ISSUE}")
            report.duration_ms = round((time.monotonic() - start) * 1000, 2)
            self._audit(report)
            return report

        # ── Step 4: Examples under the concurrency bound ──
        outcomes = await run_bounded(
            [
                lambda example=example: self._test_example(example, ruleset_path, locator)
                for example in rule.examples
            ],
            limit=self.max_concurrency,
        )

        results: list[ExampleTestResult] = []
        tested = passed_examples = 0
        for example, outcome in zip(rule.examples, outcomes):
            example_results = (
                outcome.value if outcome.ok else self._failed_example(example, outcome.error)
            )
            if not example_results:
                continue
            tested += 1
            passed_examples += all(r.passed for r in example_results)
            results.extend(example_results)

        # ── Step 5: Assemble ──
        report.results = results
        report.examples_tested = tested
        report.examples_passed = passed_examples
        report.total_tool_violations = sum(r.tool_violations for r in results)
        report.passed = not issues and tested > 0 and all(r.passed for r in results)
        report.duration_ms = round((time.monotonic() - start) * 1000, 2)

        logger.info(
            f"{rule.metadata.rule_name or rule.path}: "
            f"{'PASSED' if report.passed else 'FAILED'} "
            f"({passed_examples}/{tested} examples, "
            f"coverage {'complete' if coverage.overall_success else 'incomplete'})"
        )
        self._audit(report)
        return report

    async def test_rule_file(self, rule_file: str) -> RuleTestReport:
        """Test the rule file at ``rule_file``.

        Unreadable or malformed files come back as failed reports; a rule
        without examples raises ``RuleValidationError``.
        """
        try:
            rule = read_rule_file(rule_file, parser=self.parser)
        except RuleFileError as e:
            logger.error(str(e))
            return RuleTestReport(rule_file=rule_file, issues=[str(e)])
        return await self.test_rule(rule, rule_file)

    async def test_rule_text(self, rule_xml: str, name: str = "<inline>") -> RuleTestReport:
        """Test rule XML held in memory; PMD gets a temporary copy."""
        rule = parse_rule_xml(rule_xml, path=name, parser=self.parser)
        if not rule.examples:
            raise RuleValidationError(name, "No examples found in rule")

        with tempfile.NamedTemporaryFile(
            mode="w", suffix=".xml", delete=False, encoding="utf-8"
        ) as f:
            f.write(rule_xml)
            ruleset_path = f.name
        try:
            return await self.test_rule(rule, ruleset_path, LineLocator(text=rule_xml))
        finally:
            Path(ruleset_path).unlink(missing_ok=True)

    # ── Batch ──

    async def run_batch(self, rule_files: list[str]) -> BatchReport:
        """Test every rule file; one file's failure never stops the others."""

        async def one(path: str) -> RuleTestReport:
            try:
                return await self.test_rule_file(path)
            except RuleValidationError as e:
                logger.error(str(e))
                return RuleTestReport(rule_file=path, issues=[e.reason])

        limit = min(len(rule_files), host_parallelism()) or 1
        outcomes = await run_bounded(
            [lambda path=path: one(path) for path in rule_files],
            limit=limit,
        )

        reports = [
            outcome.value if outcome.ok
            else RuleTestReport(rule_file=path, issues=[f"Rule run crashed: {outcome.error}"])
            for path, outcome in zip(rule_files, outcomes)
        ]
        passed = sum(report.passed for report in reports)
        logger.info(f"Batch complete: {passed}/{len(reports)} rule files passed")
        return BatchReport(reports=reports, passed=passed, failed=len(reports) - passed)

    def _audit(self, report: RuleTestReport) -> None:
        if self.audit is not None:
            self.audit.record(report)
