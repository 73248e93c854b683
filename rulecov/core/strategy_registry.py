"""
Conditional Coverage Strategy Registry — one checker per conditional kind.

The table is keyed by the closed ``ConditionalKind`` enum and checked for
completeness at import time.
"""

from __future__ import annotations

import logging
from typing import Callable

from rulecov.core.strategies import and_operator, not_condition, unimplemented
from rulecov.core.strategies.keywords import truncate
from rulecov.models.coverage_models import CoverageResult
from rulecov.models.query_models import Conditional, ConditionalKind

logger = logging.getLogger("rulecov.strategies")

# Type for a conditional coverage check
StrategyFn = Callable[[Conditional, str], CoverageResult]

STRATEGY_REGISTRY: dict[ConditionalKind, StrategyFn] = {
    and_operator.KIND: and_operator.check,
    not_condition.KIND: not_condition.check,
    ConditionalKind.OR: unimplemented.or_branch,
    ConditionalKind.IF: unimplemented.if_condition,
    ConditionalKind.QUANTIFIED: unimplemented.quantified,
    ConditionalKind.BOOLEAN_FUNCTION: unimplemented.boolean_function,
}

_missing = set(ConditionalKind) - set(STRATEGY_REGISTRY)
if _missing:
    raise RuntimeError(f"No coverage strategy for: {sorted(k.value for k in _missing)}")


def check_conditional(conditional: Conditional, content: str) -> CoverageResult:
    """Run the strategy for ``conditional``; a crashing heuristic yields unknown coverage."""
    strategy = STRATEGY_REGISTRY[conditional.kind]
    try:
        return strategy(conditional, content)
    except Exception as e:
        logger.error(f"Strategy '{conditional.kind.value}' failed: {e}")
        return CoverageResult(
            success=False,
            message=f"Strategy '{conditional.kind.value}' failed: {e}",
            subject=f'{conditional.kind.value} condition "{truncate(conditional.expression)}"',
            unknown=True,
        )
