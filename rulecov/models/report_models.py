"""
Report Models — Oracle verdicts and the final per-rule report.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from rulecov.models.coverage_models import RuleCoverageResult
from rulecov.models.example_models import RuleMetadata


class TestType(str, Enum):
    __test__ = False

    VIOLATION = "violation"
    VALID = "valid"


class ExampleTestResult(BaseModel):
    """Oracle verdict for one half (violation or valid) of one example."""

    example_index: int
    test_type: TestType
    passed: bool
    line_number: int | None = Field(
        default=None, description="Rule-file line of the relevant code, best effort"
    )
    message: str = ""
    unmatched_markers: list[int] = Field(
        default_factory=list, description="Example lines of markers with no matching violation"
    )
    tool_violations: int = Field(default=0, description="Violations PMD reported for this half")
    error: str | None = None


class RuleTestReport(BaseModel):
    """Final pass/fail for one rule file."""

    rule_file: str
    metadata: RuleMetadata = Field(default_factory=RuleMetadata)
    passed: bool = False
    examples_tested: int = 0
    examples_passed: int = 0
    total_tool_violations: int = 0
    results: list[ExampleTestResult] = Field(default_factory=list)
    coverage: RuleCoverageResult = Field(default_factory=RuleCoverageResult)
    issues: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    duration_ms: float = 0.0


class BatchReport(BaseModel):
    reports: list[RuleTestReport] = Field(default_factory=list)
    passed: int = 0
    failed: int = 0


class AuditEntry(BaseModel):
    """Audit metadata for one rule run."""

    rule_file: str
    rule_name: str | None = None
    passed: bool
    examples_tested: int = 0
    examples_passed: int = 0
    coverage_success: bool = False
    uncovered_branches: int = 0
    duration_ms: float = 0.0
