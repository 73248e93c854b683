"""
Query Models — Structural summary of a rule's XPath query.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class ConditionalKind(str, Enum):
    """Closed set of conditional classifications; one coverage strategy each."""

    AND = "and"
    NOT = "not"
    OR = "or"
    IF = "if"
    QUANTIFIED = "quantified"
    BOOLEAN_FUNCTION = "boolean_function"


class Conditional(BaseModel):
    """A classified predicate found inside the query."""

    kind: ConditionalKind
    expression: str = Field(..., description="Predicate text (argument text for not(...))")
    position: int = Field(..., description="Offset of the predicate in the query string")

    model_config = {"frozen": True}


class QueryAnalysis(BaseModel):
    """Pure derived data; recomputable from the query string alone."""

    node_types: list[str] = Field(default_factory=list)
    attributes: list[str] = Field(default_factory=list)
    operators: list[str] = Field(default_factory=list)
    op_values: list[str] = Field(
        default_factory=list, description="Literal values compared against @Op"
    )
    conditionals: list[Conditional] = Field(default_factory=list)
    let_variables: dict[str, str] = Field(default_factory=dict)
    hardcoded_values: list[str] = Field(default_factory=list)
    has_let_expressions: bool = False
    has_unions: bool = False

    model_config = {"frozen": True}
