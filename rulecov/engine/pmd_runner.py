"""
PMD Runner — Invoke the PMD CLI on one fixture file and parse its XML report.

Every failure mode (missing executable, timeout, crash, unparsable output)
comes back as ``EngineResult(success=False, error=...)``; nothing raises.
"""

from __future__ import annotations

import logging
import subprocess
import time
import xml.etree.ElementTree as ET

from rulecov.config import settings
from rulecov.models.engine_models import EngineResult, ToolViolation

logger = logging.getLogger("rulecov.engine")

# Max characters of stderr/stdout echoed into an error message
_OUTPUT_EXCERPT = 500


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _int_attr(element: ET.Element, name: str, default: int) -> int:
    try:
        return int(element.get(name, default))
    except (TypeError, ValueError):
        return default


def parse_violations(xml_output: str) -> list[ToolViolation]:
    """Violations from a PMD XML report (namespace agnostic).

    Raises ``ET.ParseError`` when the output is not XML.
    """
    root = ET.fromstring(xml_output)
    violations: list[ToolViolation] = []
    for element in root.iter():
        if _local_name(element.tag) != "violation":
            continue
        message = element.get("message") or (element.text or "").strip()
        violations.append(ToolViolation(
            line=_int_attr(element, "beginline", 0),
            column=_int_attr(element, "begincolumn", 0),
            rule=element.get("rule", ""),
            message=message,
            priority=_int_attr(element, "priority", 5),
        ))
    return violations


class PMDRunner:
    """Runs ``pmd check`` as a subprocess with a per-invocation timeout."""

    def __init__(self, command: str | None = None, timeout: int | None = None) -> None:
        self.command = command or settings.pmd_command
        self.timeout = timeout or settings.engine_timeout

    def build_command(self, fixture_path: str, ruleset_path: str) -> list[str]:
        return [
            self.command, "check",
            "--no-cache", "--no-progress",
            "-d", fixture_path,
            "-R", ruleset_path,
            "-f", "xml",
        ]

    def run(self, fixture_path: str, ruleset_path: str) -> EngineResult:
        """Run PMD on ``fixture_path`` with the rule file at ``ruleset_path``."""
        start = time.monotonic()
        try:
            proc = subprocess.run(
                self.build_command(fixture_path, ruleset_path),
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError:
            return EngineResult(
                success=False,
                error=f"PMD CLI not available: '{self.command}' not found on PATH",
            )
        except subprocess.TimeoutExpired:
            logger.warning(f"PMD timed out after {self.timeout}s on {fixture_path}")
            return EngineResult(
                success=False,
                error=f"PMD execution exceeded {self.timeout}s timeout",
            )
        except OSError as e:
            return EngineResult(success=False, error=f"PMD execution failed: {e}")

        elapsed = (time.monotonic() - start) * 1000
        stdout = (proc.stdout or "").strip()

        # PMD exits non-zero when it finds violations; the report is still on stdout
        if stdout.startswith("<"):
            try:
                violations = parse_violations(stdout)
            except ET.ParseError as e:
                return EngineResult(
                    success=False,
                    error=f"PMD output is not valid XML: {e}",
                )
            logger.debug(
                f"PMD exit {proc.returncode}: {len(violations)} violation(s) in {elapsed:.0f}ms"
            )
            return EngineResult(success=True, violations=violations)

        error = f"PMD execution failed (exit {proc.returncode})"
        details = (proc.stderr or "").strip() or stdout
        if details:
            error += f": {details[:_OUTPUT_EXCERPT]}"
        return EngineResult(success=False, error=error)
