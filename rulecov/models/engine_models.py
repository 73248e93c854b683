"""
Engine Models — Fixture files handed to PMD and what PMD reports back.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ToolViolation(BaseModel):
    """A violation reported by the external rule engine."""

    line: int = 0
    column: int = 0
    rule: str = ""
    message: str = ""
    priority: int = 5


class EngineResult(BaseModel):
    """Either ``success`` with violations, or a failure with an error string."""

    success: bool
    violations: list[ToolViolation] = Field(default_factory=list)
    error: str | None = None


class FixtureFile(BaseModel):
    """A synthesized source file for one half of one example."""

    file_path: str
    has_violations: bool = False
    has_valids: bool = False
    violation_count: int = 0
    valid_count: int = 0
    line_map: dict[int, int] = Field(
        default_factory=dict, description="Fixture line -> example line"
    )
