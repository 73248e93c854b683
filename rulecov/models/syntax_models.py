"""
Syntax Models — Grammar-independent view of a parsed example.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class SyntaxNode(BaseModel):
    """Tagged node: ``kind`` is the grammar's node type, lines are 1-based."""

    kind: str
    attributes: dict[str, str] = Field(default_factory=dict)
    children: list[SyntaxNode] = Field(default_factory=list)
    line: int = 0
    end_line: int = 0

    def walk(self):
        """Yield this node and all descendants, pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def kinds(self) -> set[str]:
        return {node.kind for node in self.walk()}
