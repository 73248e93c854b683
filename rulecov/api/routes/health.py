"""
Health Check Route — GET /health
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from rulecov.api.dependencies import get_syntax_parser
from rulecov.config import settings
from rulecov.core.syntax_tree import SyntaxTreeParser

router = APIRouter()


@router.get("/health")
async def health(parser: SyntaxTreeParser = Depends(get_syntax_parser)):
    """Health check; also reports which analysis mode is active."""
    return {
        "status": "ok",
        "version": "1.0.0",
        "engine": settings.pmd_command,
        "syntax_tree": "available" if parser.available else "text-only",
    }
