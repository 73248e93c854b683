"""
Shared text heuristics for conditional coverage strategies.
"""

from __future__ import annotations

import re

from rulecov.core.node_coverage import CALL, DOTTED_CALL, node_type_present

# Attribute flags whose truth shows up as a literal keyword in Apex source
MODIFIER_ATTRIBUTES: dict[str, str] = {
    "final": "final",
    "static": "static",
    "abstract": "abstract",
    "virtual": "virtual",
    "override": "override",
    "transient": "transient",
}

BOOLEAN_WORDS = frozenset({"and", "or", "not", "true", "false"})

_MODIFIER_REF = re.compile(
    r"@(" + "|".join(MODIFIER_ATTRIBUTES) + r")\b(?!\s*=\s*false)", re.IGNORECASE
)
_ATTR_COMPARISON = re.compile(r"@(\w+)\s*(?:!=|=)\s*(\$|[\"'])")
_QUOTED_VALUE = re.compile(r"(['\"])(.*?)\1")
_NODE_STEP = re.compile(r"\.?//([A-Z]\w*)")
_ATTR_NAME = re.compile(r"@(\w+)")


def truncate(expression: str, limit: int = 50) -> str:
    """Single-line form of ``expression``, at most ``limit`` characters."""
    text = " ".join(expression.split())
    return text if len(text) <= limit else text[: limit - 3] + "..."


def modifier_keywords(expression: str) -> list[str]:
    """Source keywords for every modifier flag the expression tests as true."""
    found: list[str] = []
    for match in _MODIFIER_REF.finditer(expression):
        keyword = MODIFIER_ATTRIBUTES[match.group(1).lower()]
        if keyword not in found:
            found.append(keyword)
    return found


def keyword_present(keyword: str, content: str) -> bool:
    return re.search(rf"\b{re.escape(keyword)}\b", content, re.IGNORECASE) is not None


def extract_keywords(
    expression: str,
    split_pattern: str = r"[=<>!()\[\]]+",
    stopwords: frozenset[str] = frozenset(),
) -> list[str]:
    """Vocabulary of an expression once operators and brackets are removed.

    Attribute-sigil tokens and boolean words are dropped. If nothing is
    left, the referenced attribute names stand in for the vocabulary.
    """
    keywords: list[str] = []
    for token in re.split(split_pattern, expression):
        token = token.strip().strip("'\"").strip()
        if not token or token.startswith("@") or not re.search(r"\w", token):
            continue
        lowered = token.lower()
        if lowered in BOOLEAN_WORDS or lowered in stopwords:
            continue
        if lowered not in keywords:
            keywords.append(lowered)
    if not keywords:
        keywords = [name.lower() for name in _ATTR_NAME.findall(expression)]
    return keywords


def any_keyword_present(keywords: list[str], content: str) -> list[str]:
    lowered = content.lower()
    return [kw for kw in keywords if kw in lowered]


def part_is_covered(part: str, content: str) -> bool:
    """Does one ``and`` operand show up in the example text?"""
    comparison = _ATTR_COMPARISON.search(part)
    if comparison:
        attribute = comparison.group(1).lower()
        if attribute == "fullmethodname":
            return DOTTED_CALL.search(content) is not None
        if attribute == "methodname":
            return CALL.search(content) is not None
        value = _QUOTED_VALUE.search(part[comparison.start():])
        if value:
            return value.group(2).lower() in content.lower()
        # Compared against a variable; nothing to look for in text
        return True

    modifiers = modifier_keywords(part)
    if modifiers:
        return all(keyword_present(kw, content) for kw in modifiers)

    node_step = _NODE_STEP.search(part)
    if node_step:
        return node_type_present(node_step.group(1), content)

    keywords = extract_keywords(part, split_pattern=r"[=<>!()\[\]/.@$]+")
    return bool(any_keyword_present(keywords, content))
