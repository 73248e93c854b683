"""
Line Locator — Map example lines back to rule-file lines.

Reports point at the rule XML, so every example line is translated by
finding the example's boundaries in the raw file text. Every lookup is
best effort: a missing file, example, or boundary yields ``None``.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from rulecov.core.markers import code_part, is_executable_line

logger = logging.getLogger("rulecov.locator")

_EXAMPLE_OPEN = re.compile(r"<example\b[^>]*>")
_EXAMPLE_CLOSE = "</example>"
_CDATA_OPEN = "<![CDATA["


class LineLocator:
    """Line lookups in one rule file; the file is read lazily, once."""

    def __init__(self, rule_file: str | None = None, text: str | None = None) -> None:
        self.rule_file = rule_file
        self._text = text
        self._read_failed = False

    def _source(self) -> str | None:
        if self._text is None and not self._read_failed and self.rule_file:
            try:
                self._text = Path(self.rule_file).read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Cannot re-read rule file {self.rule_file}: {e}")
                self._read_failed = True
        return self._text

    def _example_offsets(self, example_index: int) -> tuple[int, int] | None:
        """Character offsets ``(content_start, content_end)`` of the nth example."""
        text = self._source()
        if text is None or example_index < 1:
            return None
        opens = list(_EXAMPLE_OPEN.finditer(text))
        if example_index > len(opens):
            return None
        tag = opens[example_index - 1]
        end = text.find(_EXAMPLE_CLOSE, tag.end())
        if end == -1:
            return None

        # Example text is trimmed and CDATA-transparent when parsed
        start = tag.end()
        while start < end and text[start].isspace():
            start += 1
        if text.startswith(_CDATA_OPEN, start):
            start += len(_CDATA_OPEN)
            while start < end and text[start].isspace():
                start += 1
        return start, end

    def _line_of(self, offset: int) -> int:
        return (self._source() or "").count("\n", 0, offset) + 1

    def example_line_number(self, example_index: int) -> int | None:
        """Rule-file line of the nth ``<example>`` tag."""
        text = self._source()
        if text is None or example_index < 1:
            return None
        opens = list(_EXAMPLE_OPEN.finditer(text))
        if example_index > len(opens):
            return None
        return self._line_of(opens[example_index - 1].start())

    def file_line(self, example_index: int, example_line: int) -> int | None:
        """Rule-file line of a 1-based line of the example's own text."""
        offsets = self._example_offsets(example_index)
        if offsets is None or example_line < 1:
            return None
        start, end = offsets
        first = self._line_of(start)
        line = first + example_line - 1
        return line if line <= self._line_of(end) else None

    def recover_line_number(self, example_index: int, marker_line: int) -> int | None:
        """First executable rule-file line at or after a marker.

        A marker on a code line resolves to that line; a header or a
        comment-only marker resolves to the next code line. Stops at the
        end of the example.
        """
        offsets = self._example_offsets(example_index)
        start_line = self.file_line(example_index, marker_line)
        if offsets is None or start_line is None:
            return None

        lines = (self._source() or "").split("\n")
        last_line = self._line_of(offsets[1])
        for number in range(start_line, last_line + 1):
            raw = lines[number - 1]
            if number == last_line:
                raw = raw.split(_EXAMPLE_CLOSE)[0]
            raw = raw.replace("]]>", "")
            if is_executable_line(raw) and code_part(raw):
                return number
        return None
