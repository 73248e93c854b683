"""
Tests for the Marker & Section Extractor.
"""

from rulecov.core.markers import (
    INLINE_VIOLATION_PLACEHOLDER,
    SECTION_VALID_PLACEHOLDER,
    classify_code_lines,
    extract_markers,
    map_lines_to_sections,
    marker_code_lines,
    parse_example,
)


def test_inline_marker_line_numbers():
    content = (
        "\n"
        "public class TestClass {\n"
        "    private String field; // ❌ Invalid field access\n"
        "}"
    )
    markers = extract_markers(content)
    assert len(markers.violation_markers) == 1
    marker = markers.violation_markers[0]
    assert marker.line_number == 3
    assert marker.description == "Invalid field access"
    assert marker.is_violation is True
    assert marker.index == 0
    assert markers.valid_markers == []


def test_inline_markers_both_kinds(inline_example):
    markers = extract_markers(inline_example)
    assert [m.line_number for m in markers.violation_markers] == [2]
    assert [m.line_number for m in markers.valid_markers] == [3]
    assert markers.valid_markers[0].description == "private is fine"
    assert markers.valid_markers[0].is_violation is False


def test_index_counts_per_kind():
    content = (
        "a(); // ❌ first\n"
        "b(); // ✅ ok\n"
        "c(); // ❌ second\n"
        "d(); // ❌\n"
    )
    markers = extract_markers(content)
    assert [m.index for m in markers.violation_markers] == [0, 1, 2]
    assert [m.index for m in markers.valid_markers] == [0]
    assert markers.violation_markers[2].description == INLINE_VIOLATION_PLACEHOLDER


def test_section_markers(section_example):
    markers = extract_markers(section_example)
    assert len(markers.violation_markers) == 1
    assert markers.violation_markers[0].line_number == 1
    assert markers.violation_markers[0].description == "Pattern compiled on every call"
    assert markers.valid_markers[0].line_number == 4
    assert markers.valid_markers[0].description == "Compiled once and reused"


def test_section_marker_placeholder():
    markers = extract_markers("// Valid:\nfoo();")
    assert markers.valid_markers[0].description == SECTION_VALID_PLACEHOLDER


def test_inline_markers_suppress_section_markers():
    content = (
        "// Violation: header that must not become a marker\n"
        "Pattern.compile('x'); // ❌ inline wins\n"
        "// Valid: neither must this\n"
        "String s = 'ok';\n"
    )
    markers = extract_markers(content)
    assert [m.line_number for m in markers.violation_markers] == [2]
    assert markers.valid_markers == []


def test_extraction_is_idempotent(inline_example, section_example):
    for content in (inline_example, section_example, "no markers here"):
        assert extract_markers(content) == extract_markers(content)


def test_malformed_text_never_raises():
    for content in (None, "", "// ❌", "\n\n\n", "<<<>>> // Violation", "✅✅✅"):
        markers = extract_markers(content)
        assert isinstance(markers.violation_markers, list)
        assert isinstance(markers.valid_markers, list)


def test_marker_free_text_yields_empty_lists():
    markers = extract_markers("public class A {\n    void m() {}\n}")
    assert markers.violation_markers == []
    assert markers.valid_markers == []


def test_classify_code_lines_sections(section_example):
    lines = classify_code_lines(section_example)
    assert [(l.line_number, l.section) for l in lines] == [(2, "violation"), (5, "valid")]
    assert map_lines_to_sections(section_example) == {2: "violation", 5: "valid"}


def test_comment_only_marker_claims_next_code_line():
    content = "// ❌ next line is bad\nfoo();\nbar();"
    lines = classify_code_lines(content)
    assert [(l.text, l.section) for l in lines] == [("foo();", "violation"), ("bar();", "none")]


def test_parse_example_strips_inline_comments(inline_example):
    example = parse_example(inline_example, example_index=2)
    assert example.example_index == 2
    assert example.violations == ["public void exposed() {}"]
    assert example.valids == ["private void hidden() {}"]
    assert len(example.violation_markers) == 1
    assert len(example.valid_markers) == 1


def test_marker_code_lines(section_example):
    example = parse_example(section_example, example_index=1)
    violation = example.violation_markers[0]
    valid = example.valid_markers[0]
    assert [l.line_number for l in marker_code_lines(example.content, violation)] == [2]
    assert [l.line_number for l in marker_code_lines(example.content, valid)] == [5]


def test_text_only_parser_leaves_markers_unassociated(inline_example, text_only_parser):
    markers = extract_markers(inline_example, query="//Method", parser=text_only_parser)
    assert markers == extract_markers(inline_example)
    assert markers.violation_markers[0].associated_node_type is None
