"""
Strategies with no text heuristic yet.

Each reports ``unknown`` coverage: ``success`` is false but the result is
marked so callers never read it as a genuine negative.
"""

from __future__ import annotations

from typing import Callable

from rulecov.core.strategies.keywords import truncate
from rulecov.models.coverage_models import CoverageResult
from rulecov.models.query_models import Conditional


def _not_implemented(label: str) -> Callable[[Conditional, str], CoverageResult]:
    def check(conditional: Conditional, content: str) -> CoverageResult:
        return CoverageResult(
            success=False,
            message=f"{label} coverage check not implemented",
            subject=f'{label} condition "{truncate(conditional.expression)}"',
            unknown=True,
        )

    check.__name__ = f"check_{label.lower()}"
    return check


or_branch = _not_implemented("OR")
if_condition = _not_implemented("IF")
quantified = _not_implemented("Quantified")
boolean_function = _not_implemented("Boolean function")
