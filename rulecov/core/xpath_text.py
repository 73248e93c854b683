"""
XPath text helpers — quote/nesting aware scanning without a real parser.

Masking replaces characters that are not at the top level (inside quotes,
or inside parentheses / brackets) with a filler so regexes run over the
masked copy report offsets that are valid in the original string.
"""

from __future__ import annotations

import re

FILLER = "\x00"

_OPENERS = {"(": ")", "[": "]"}
_CLOSERS = {")", "]"}


def mask_quotes(text: str) -> str:
    """Blank out the contents of quoted string literals, keeping the quotes."""
    out: list[str] = []
    quote: str | None = None
    for ch in text:
        if quote:
            if ch == quote:
                quote = None
                out.append(ch)
            else:
                out.append(FILLER)
        elif ch in ("'", '"'):
            quote = ch
            out.append(ch)
        else:
            out.append(ch)
    return "".join(out)


def mask_nested(text: str) -> str:
    """Blank out quoted contents and everything nested in () or [].

    The bracket characters themselves are kept, so ``if (x) then`` becomes
    ``if (_) then`` and a top-level ``and`` stays visible.
    """
    quoted = mask_quotes(text)
    out: list[str] = []
    depth = 0
    for ch in quoted:
        if ch in _OPENERS:
            out.append(ch if depth == 0 else FILLER)
            depth += 1
        elif ch in _CLOSERS:
            depth = max(depth - 1, 0)
            out.append(ch if depth == 0 else FILLER)
        else:
            out.append(ch if depth == 0 else FILLER)
    return "".join(out)


def split_top_level(text: str, keyword: str) -> list[str]:
    """Split ``text`` at every top-level occurrence of ``keyword``.

    Returns ``[text]`` (stripped) when the keyword never occurs at the top
    level. Empty parts are dropped.
    """
    masked = mask_nested(text)
    pattern = re.compile(rf"\s{re.escape(keyword)}\s", re.IGNORECASE)
    parts: list[str] = []
    start = 0
    for match in pattern.finditer(masked):
        parts.append(text[start:match.start()])
        start = match.end()
    parts.append(text[start:])
    parts = [p.strip() for p in parts if p.strip()]
    return parts or [text.strip()]


def has_top_level_keyword(text: str, keyword: str) -> bool:
    """Standalone ``keyword`` at the top level; ``ancestor-or-self`` does not count."""
    pattern = rf"(?<![\w-]){re.escape(keyword)}(?![\w-])"
    return re.search(pattern, mask_nested(text)) is not None


def matching_paren(text: str, open_index: int) -> int:
    """Index of the parenthesis closing the one at ``open_index``, or -1."""
    quoted = mask_quotes(text)
    depth = 0
    for i in range(open_index, len(quoted)):
        ch = quoted[i]
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return i
    return -1


def predicate_groups(text: str) -> list[tuple[int, str]]:
    """All bracketed predicates as ``(offset_of_bracket, inner_text)``.

    Nested predicates are returned too; the list is ordered by offset.
    Unbalanced brackets are ignored.
    """
    quoted = mask_quotes(text)
    stack: list[int] = []
    groups: list[tuple[int, str]] = []
    for i, ch in enumerate(quoted):
        if ch == "[":
            stack.append(i)
        elif ch == "]" and stack:
            start = stack.pop()
            groups.append((start, text[start + 1:i]))
    return sorted(groups, key=lambda g: g[0])
