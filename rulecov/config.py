"""
rulecov Configuration — pydantic-settings based.

All settings are read from environment variables (prefix ``RULECOV_``) or a
``.env`` file. Nothing is required; defaults run PMD from ``$PATH``.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings sourced from environment variables."""

    # ── Rule engine ──
    pmd_command: str = Field(default="pmd", description="PMD executable name or path")
    engine_timeout: int = Field(
        default=30, description="Timeout per PMD invocation in seconds"
    )

    # ── Concurrency ──
    max_concurrency: int | None = Field(
        default=None,
        description="Examples tested in parallel per rule file (None = host CPU count)",
    )

    # ── Fixtures ──
    fixture_dir: str | None = Field(
        default=None, description="Directory for fixture files (None = system temp dir)"
    )
    keep_fixtures: bool = Field(
        default=False, description="Keep fixture files after the oracle has run"
    )

    # ── Syntax tree ──
    grammar_module: str | None = Field(
        default="tree_sitter_java",
        description="tree-sitter grammar module used for marker/node association; None = text-only",
    )

    # ── HTTP surface ──
    max_rule_file_bytes: int = Field(
        default=1_000_000, description="Max rule file size accepted by POST /verify"
    )
    cors_origins: list[str] = Field(
        default=["*"], description="Allowed CORS origins"
    )
    log_level: str = Field(default="INFO", description="Root log level")

    # ── Audit ──
    audit_log_path: str | None = Field(
        default=None, description="JSON-lines audit log path (None = disabled)"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "RULECOV_",
        "case_sensitive": False,
    }


# Singleton instance, imported by other modules
settings = Settings()
