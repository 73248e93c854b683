"""
Coverage Models — Evidence and verdicts for query branch coverage.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class CoverageEvidence(BaseModel):
    """One unit of proof (or disproof) of coverage."""

    type: str
    description: str
    count: int = 0
    required: int = 1

    @property
    def satisfied(self) -> bool:
        return self.count >= self.required


class CoverageResult(BaseModel):
    """Verdict for one conditional or one node/attribute group."""

    success: bool
    message: str
    subject: str = Field(default="", description="Identifier used in uncovered branch lists")
    evidence: list[CoverageEvidence] = Field(default_factory=list)
    details: list[str] = Field(
        default_factory=list, description="Unsatisfied items (parts, node types, attributes)"
    )
    unknown: bool = Field(
        default=False, description="No strategy could decide; not a genuine negative"
    )


class BranchCombination(BaseModel):
    """A (section, node type, discriminator) branch and the examples that hit it."""

    section: Literal["violation", "valid"]
    node_type: str
    detail: str = ""
    examples: list[int] = Field(default_factory=list)
    heuristic: bool = Field(
        default=False, description="True when matched by the coarse per-kind heuristic"
    )


class RuleCoverageResult(BaseModel):
    """All coverage verdicts for one rule."""

    coverage: list[CoverageResult] = Field(default_factory=list)
    uncovered_branches: list[str] = Field(default_factory=list)
    overall_success: bool = False
    branches: list[BranchCombination] = Field(default_factory=list)
    redundant_branches: list[str] = Field(default_factory=list)
