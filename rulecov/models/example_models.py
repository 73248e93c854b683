"""
Rule & Example Models — What a rule file declares.

Line numbers on markers and code lines are 1-based and relative to the
example's own text, never to a fixture file or the rule file.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


SectionMode = Literal["violation", "valid", "none"]


class RuleMetadata(BaseModel):
    """Top-level attributes of the rule element."""

    rule_name: str | None = None
    message: str | None = None
    description: str | None = None
    query: str | None = None

    model_config = {"frozen": True}


class CodeSpan(BaseModel):
    start_line: int
    end_line: int


class Marker(BaseModel):
    """An annotation declaring a line as an expected violation or valid case."""

    line_number: int = Field(..., ge=1)
    description: str
    is_violation: bool
    index: int = Field(..., ge=0, description="Ordinal among same-kind markers")
    code_span: CodeSpan | None = None
    associated_node_type: str | None = None

    model_config = {"frozen": True}


class MarkerSet(BaseModel):
    violation_markers: list[Marker] = Field(default_factory=list)
    valid_markers: list[Marker] = Field(default_factory=list)


class CodeLine(BaseModel):
    """A code line of an example together with the section it belongs to."""

    line_number: int
    text: str
    section: SectionMode

    model_config = {"frozen": True}


class Example(BaseModel):
    """One <example> block of a rule file."""

    content: str
    example_index: int = Field(..., ge=1)
    violations: list[str] = Field(default_factory=list)
    valids: list[str] = Field(default_factory=list)
    violation_markers: list[Marker] = Field(default_factory=list)
    valid_markers: list[Marker] = Field(default_factory=list)

    model_config = {"frozen": True}


class RuleFile(BaseModel):
    """A parsed rule file: metadata plus its examples, in document order."""

    path: str
    metadata: RuleMetadata
    examples: list[Example] = Field(default_factory=list)
    category: str | None = None
