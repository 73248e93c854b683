"""
rulecov FastAPI Application.

Coverage-guided verification of PMD XPath rules:
  POST /verify → run annotated examples through PMD, report verdicts + coverage
  GET  /health → {"status": "ok", ...}
"""

from __future__ import annotations

import logging

from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rulecov.api.routes.health import router as health_router
from rulecov.api.routes.verify import router as verify_router
from rulecov.config import settings

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("rulecov")

app = FastAPI(
    title="rulecov",
    description="Coverage-guided verification harness for PMD XPath rules",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(verify_router)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error(f"Invalid /verify request: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": exc.errors()})
