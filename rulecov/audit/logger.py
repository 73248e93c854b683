"""
Audit Logger — JSON-lines trail of rule runs.

One record per tested rule file: when, which rule, verdict, how many
examples passed, and whether the query was fully covered.
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path

from rulecov.models.report_models import AuditEntry, RuleTestReport

logger = logging.getLogger("rulecov.audit")


def entry_from_report(report: RuleTestReport) -> AuditEntry:
    return AuditEntry(
        rule_file=report.rule_file,
        rule_name=report.metadata.rule_name,
        passed=report.passed,
        examples_tested=report.examples_tested,
        examples_passed=report.examples_passed,
        coverage_success=report.coverage.overall_success,
        uncovered_branches=len(report.coverage.uncovered_branches),
        duration_ms=report.duration_ms,
    )


class AuditLogger:
    """Appends one JSON object per rule run to ``log_path``."""

    def __init__(self, log_path: str) -> None:
        self.log_path = Path(log_path)

    def record(self, report: RuleTestReport) -> None:
        """Append the audit entry for ``report``; write errors are logged, not raised."""
        payload = {
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            **entry_from_report(report).model_dump(),
        }
        try:
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(payload) + "\n")
        except OSError as e:
            logger.error(f"Failed to write audit log {self.log_path}: {e}")

    def failures(self, limit: int = 50) -> list[dict]:
        """The last ``limit`` audit records whose rule did not pass."""
        try:
            raw_lines = self.log_path.read_text(encoding="utf-8").splitlines()
        except OSError:
            return []

        failed: list[dict] = []
        for raw in raw_lines:
            if not raw.strip():
                continue
            try:
                record = json.loads(raw)
            except json.JSONDecodeError:
                continue
            if not record.get("passed", False):
                failed.append(record)
        return failed[-limit:]
