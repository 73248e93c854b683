"""
Verify Route — POST /verify

Accepts a PMD XPath rule file as text, runs every annotated example through
PMD, and returns the per-example verdicts plus query coverage.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from rulecov.api.dependencies import get_rule_worker
from rulecov.config import settings
from rulecov.errors import RuleFileError, RuleValidationError
from rulecov.models.report_models import RuleTestReport
from rulecov.workers.rule_worker import RuleWorker

logger = logging.getLogger("rulecov.api.verify")

router = APIRouter()


class VerifyRequest(BaseModel):
    rule_xml: str = Field(..., min_length=1, description="Complete rule XML document")
    name: str = Field(default="<inline>", description="Label used in the report")


@router.post("/verify", response_model=RuleTestReport)
async def verify_rule(
    req: VerifyRequest,
    worker: RuleWorker = Depends(get_rule_worker),
):
    """Verify one rule's examples against PMD and report coverage."""
    if len(req.rule_xml.encode("utf-8")) > settings.max_rule_file_bytes:
        raise HTTPException(
            status_code=400,
            detail=f"Rule file exceeds maximum size of {settings.max_rule_file_bytes} bytes",
        )

    try:
        return await worker.test_rule_text(req.rule_xml, name=req.name)
    except RuleFileError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except RuleValidationError as e:
        logger.warning(f"Rejected rule '{req.name}': {e.reason}")
        raise HTTPException(status_code=422, detail=e.reason)
