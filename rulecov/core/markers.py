"""
Marker & Section Extractor — Ground truth from annotated example text.

Two annotation styles:
  inline   ``foo(); // ❌ why``   one marker on that exact line
  section  ``// Violation: why``  one marker on the header line, and every
                                  following code line belongs to the section

If an example contains any inline marker, section headers only switch the
current section and never emit markers of their own.
"""

from __future__ import annotations

import logging
import re

from rulecov.core.query_analyzer import analyze_query
from rulecov.core.syntax_tree import (
    ENGINE_NODE_NAMES,
    SyntaxTreeParser,
    engine_kinds,
    first_node_after_line,
    first_node_on_line,
    subtree_engine_kinds,
)
from rulecov.models.example_models import (
    CodeLine,
    CodeSpan,
    Example,
    Marker,
    MarkerSet,
    SectionMode,
)
from rulecov.models.syntax_models import SyntaxNode

logger = logging.getLogger("rulecov.markers")

VIOLATION_GLYPH = "❌"
VALID_GLYPH = "✅"

INLINE_VIOLATION_PLACEHOLDER = "Inline violation marker"
INLINE_VALID_PLACEHOLDER = "Inline valid marker"
SECTION_VIOLATION_PLACEHOLDER = "Violation"
SECTION_VALID_PLACEHOLDER = "Valid"

MAY_NOT_TRIGGER_SUFFIX = " (⚠️ Rule may not trigger)"

_INLINE = re.compile(rf"//[^\n]*?({VIOLATION_GLYPH}|{VALID_GLYPH})(.*)$")
_SECTION = re.compile(r"^\s*//\s*(Violation|Valid):(.*)$")
_COMMENT_LINE = re.compile(r"^\s*(//|/\*|\*)")


def _inline_match(line: str) -> re.Match | None:
    return _INLINE.search(line)


def _section_match(line: str) -> re.Match | None:
    return _SECTION.match(line)


def has_inline_markers(content: str) -> bool:
    return any(_inline_match(line) for line in content.split("\n"))


def code_part(line: str) -> str:
    """The code on a line with any inline marker comment removed."""
    match = _inline_match(line)
    return (line[:match.start()] if match else line).strip()


def is_executable_line(line: str) -> bool:
    """Non-blank, not a comment line, and not XML markup."""
    stripped = line.strip()
    if not stripped or _COMMENT_LINE.match(stripped):
        return False
    return not (stripped.startswith("<") and stripped.endswith(">")) and not stripped.startswith(
        ("<![CDATA[", "]]>")
    )


def _scan_markers(content: str) -> MarkerSet:
    lines = content.split("\n")
    inline_present = has_inline_markers(content)
    violations: list[Marker] = []
    valids: list[Marker] = []

    for line_number, line in enumerate(lines, start=1):
        inline = _inline_match(line)
        if inline:
            is_violation = inline.group(1) == VIOLATION_GLYPH
            text = inline.group(2).strip()
            placeholder = (
                INLINE_VIOLATION_PLACEHOLDER if is_violation else INLINE_VALID_PLACEHOLDER
            )
            bucket = violations if is_violation else valids
            bucket.append(Marker(
                line_number=line_number,
                description=text or placeholder,
                is_violation=is_violation,
                index=len(bucket),
            ))
            continue

        section = _section_match(line)
        if section and not inline_present:
            is_violation = section.group(1) == "Violation"
            text = section.group(2).strip()
            placeholder = (
                SECTION_VIOLATION_PLACEHOLDER if is_violation else SECTION_VALID_PLACEHOLDER
            )
            bucket = violations if is_violation else valids
            bucket.append(Marker(
                line_number=line_number,
                description=text or placeholder,
                is_violation=is_violation,
                index=len(bucket),
            ))

    return MarkerSet(violation_markers=violations, valid_markers=valids)


def _associate(marker: Marker, tree: SyntaxNode, lines: list[str]) -> Marker:
    header = _section_match(lines[marker.line_number - 1]) is not None
    if header or not code_part(lines[marker.line_number - 1]):
        node = first_node_after_line(tree, marker.line_number)
    else:
        node = first_node_on_line(tree, marker.line_number)
    if node is None:
        return marker
    return marker.model_copy(update={
        "associated_node_type": engine_kinds(node)[0],
        "code_span": CodeSpan(start_line=node.line, end_line=node.end_line),
    })


def _may_not_trigger(marker: Marker, tree: SyntaxNode, query_node_types: list[str]) -> bool:
    if not query_node_types or marker.code_span is None:
        return False
    # Only judge when every queried type is one the grammar can produce
    if not all(t in ENGINE_NODE_NAMES for t in query_node_types):
        return False
    span_kinds: set[str] = set()
    for node in tree.walk():
        if node is tree:
            continue
        if marker.code_span.start_line <= node.line <= marker.code_span.end_line:
            span_kinds |= subtree_engine_kinds(node)
    return not span_kinds.intersection(query_node_types)


def extract_markers(
    content: str | None,
    query: str | None = None,
    parser: SyntaxTreeParser | None = None,
) -> MarkerSet:
    """Violation and valid markers of one example, in line order.

    With a parser whose grammar is available, markers are associated with
    the syntax node they annotate; with a query as well, violation markers
    whose node cannot match any queried node type are flagged.
    """
    if not content:
        return MarkerSet()

    markers = _scan_markers(content)
    if parser is None or not parser.available:
        return markers

    tree = parser.parse(content)
    if tree is None:
        return markers

    lines = content.split("\n")
    query_types = analyze_query(query).node_types if query else []

    violations: list[Marker] = []
    for marker in markers.violation_markers:
        marker = _associate(marker, tree, lines)
        if _may_not_trigger(marker, tree, query_types):
            logger.debug(f"Marker on line {marker.line_number} may not trigger the rule")
            marker = marker.model_copy(
                update={"description": marker.description + MAY_NOT_TRIGGER_SUFFIX}
            )
        violations.append(marker)
    valids = [_associate(marker, tree, lines) for marker in markers.valid_markers]

    return MarkerSet(violation_markers=violations, valid_markers=valids)


def classify_code_lines(content: str) -> list[CodeLine]:
    """Every code line of an example with the section it belongs to.

    Inline glyphs decide the section of their own line; other lines take
    the current section. Headers, comment-only and blank lines are skipped.
    """
    code_lines: list[CodeLine] = []
    mode: SectionMode = "none"
    # Set by a comment-only inline marker, consumed by the next code line
    pending: SectionMode | None = None
    for line_number, line in enumerate(content.split("\n"), start=1):
        section = _section_match(line)
        if section:
            mode = "violation" if section.group(1) == "Violation" else "valid"
            pending = None
            continue
        inline = _inline_match(line)
        inline_mode: SectionMode | None = None
        if inline:
            inline_mode = "violation" if inline.group(1) == VIOLATION_GLYPH else "valid"
        if not is_executable_line(line):
            if inline_mode:
                pending = inline_mode
            continue
        line_mode = inline_mode or pending or mode
        pending = None
        text = code_part(line)
        if text:
            code_lines.append(CodeLine(line_number=line_number, text=text, section=line_mode))
    return code_lines


def marker_code_lines(content: str, marker: Marker) -> list[CodeLine]:
    """Code lines a marker speaks for.

    An inline marker on a code line covers that line; one on a comment-only
    line covers the next code line. A section header covers every code line
    of its section up to the next header.
    """
    lines = content.split("\n")
    if marker.line_number > len(lines):
        return []
    code_lines = classify_code_lines(content)
    marker_line = lines[marker.line_number - 1]

    if _section_match(marker_line):
        headers = [
            n for n, line in enumerate(lines, start=1)
            if n > marker.line_number and _section_match(line)
        ]
        section_end = headers[0] if headers else len(lines) + 1
        return [
            line for line in code_lines
            if marker.line_number < line.line_number < section_end
        ]

    if code_part(marker_line) and is_executable_line(marker_line):
        return [line for line in code_lines if line.line_number == marker.line_number]

    following = [line for line in code_lines if line.line_number > marker.line_number]
    return following[:1]


def map_lines_to_sections(content: str) -> dict[int, SectionMode]:
    """Example line → section, for every code line."""
    return {line.line_number: line.section for line in classify_code_lines(content)}


def parse_example(
    content: str,
    example_index: int,
    query: str | None = None,
    parser: SyntaxTreeParser | None = None,
) -> Example:
    """Build an ``Example`` with its code-line lists and markers."""
    code_lines = classify_code_lines(content)
    markers = extract_markers(content, query=query, parser=parser)
    return Example(
        content=content,
        example_index=example_index,
        violations=[line.text for line in code_lines if line.section == "violation"],
        valids=[line.text for line in code_lines if line.section == "valid"],
        violation_markers=markers.violation_markers,
        valid_markers=markers.valid_markers,
    )
