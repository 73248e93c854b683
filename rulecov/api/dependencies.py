"""
FastAPI Dependencies — Shared singletons injected via Depends().
"""

from __future__ import annotations

from functools import lru_cache

from rulecov.core.syntax_tree import SyntaxTreeParser
from rulecov.workers.rule_worker import RuleWorker


@lru_cache
def get_syntax_parser() -> SyntaxTreeParser:
    """One parser per process; grammar loading is the expensive part."""
    return SyntaxTreeParser()


@lru_cache
def get_rule_worker() -> RuleWorker:
    return RuleWorker(parser=get_syntax_parser())
