"""
Fixture Builder — One temporary Apex class per example half.

Only the code lines of the requested section(s) go into the class body,
so PMD sees exactly the snippet under test. File names are unique per
call because examples run concurrently.
"""

from __future__ import annotations

import logging
import tempfile
import uuid
from pathlib import Path

from rulecov.config import settings
from rulecov.core.markers import classify_code_lines
from rulecov.models.engine_models import FixtureFile

logger = logging.getLogger("rulecov.fixtures")


class FixtureBuilder:
    """Writes fixture files into ``fixture_dir`` (system temp dir by default)."""

    def __init__(self, fixture_dir: str | None = None) -> None:
        self.fixture_dir = Path(fixture_dir or settings.fixture_dir or tempfile.gettempdir())

    def create(
        self,
        example_content: str,
        example_index: int,
        include_violations: bool = True,
        include_valids: bool = True,
    ) -> FixtureFile:
        """Write a fixture for one example; raises ``OSError`` if it can't be written."""
        code_lines = classify_code_lines(example_content)
        violations = [line for line in code_lines if line.section == "violation"]
        valids = [line for line in code_lines if line.section == "valid"]

        if include_violations and not include_valids:
            selected = violations
        elif include_valids and not include_violations:
            selected = valids
        else:
            selected = sorted(violations + valids, key=lambda line: line.line_number)

        body = [f"public class TestClass{example_index} {{"]
        line_map: dict[int, int] = {}
        for code_line in selected:
            body.append(f"    {code_line.text}")
            line_map[len(body)] = code_line.line_number
        body.append("}")

        self.fixture_dir.mkdir(parents=True, exist_ok=True)
        path = self.fixture_dir / f"rule-test-example-{example_index}-{uuid.uuid4().hex}.cls"
        path.write_text("\n".join(body) + "\n", encoding="utf-8")

        return FixtureFile(
            file_path=str(path),
            has_violations=bool(violations),
            has_valids=bool(valids),
            violation_count=len(violations),
            valid_count=len(valids),
            line_map=line_map,
        )

    def cleanup(self, fixture: FixtureFile) -> None:
        try:
            Path(fixture.file_path).unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove fixture {fixture.file_path}: {e}")
