"""
Query Structural Analyzer — What does an XPath rule query talk about?

Produces a ``QueryAnalysis``: referenced node types, attributes, operators,
classified predicate conditionals, ``let`` bindings and union usage.
Pure text analysis; the query is never evaluated.
"""

from __future__ import annotations

import re

from rulecov.core.xpath_text import (
    FILLER,
    has_top_level_keyword,
    mask_nested,
    mask_quotes,
    matching_paren,
    predicate_groups,
)
from rulecov.models.query_models import Conditional, ConditionalKind, QueryAnalysis

# Apex AST node names that don't follow the suffix families below
KNOWN_NODE_TYPES: frozenset[str] = frozenset({
    "ApexFile", "CompilationUnit",
    "UserClass", "UserInterface", "UserEnum", "UserTrigger", "UserExceptionMethods",
    "Method", "Field", "Class", "Type", "Condition", "Loop", "Block",
    "Parameter", "Property", "Annotation", "AnnotationParameter",
    "ModifierNode", "KeywordModifier", "TypeRef", "Identifier",
    "StandardCondition", "WhenValue", "WhenType", "WhenElse", "WhenClause",
    "ElseWhenBlock", "EnumValue", "SoqlOrSoslBinding", "FormalComment",
    "MapEntryNode", "Expression", "Statement", "Declaration",
})

# Families of node names recognised by shape (longest token wins, see _NODE_TOKEN)
_NODE_SUFFIX = re.compile(
    r"^[A-Z][A-Za-z0-9]*(?:Statement|Statements|Expression|Declaration|Node|Block"
    r"|Initializer|Literal|Modifier|Clause|Value)$"
)
_NODE_FAMILY = re.compile(r"(?:Method|Class|Field|Condition|Loop|Type|Dml|Soql|Sosl)")

# Token that starts right after a path step, axis, or grouping punctuation
_NODE_TOKEN = re.compile(r"(?:^|(?<=/)|(?<=::)|(?<=[\s(\[,|]))([A-Z][A-Za-z0-9]*)\b(?!\s*\()")

_ATTRIBUTE = re.compile(r"@([A-Za-z][A-Za-z0-9]*)")
_OP_VALUE = re.compile(r"@Op\s*=\s*(['\"])(.*?)\1")
_OPERATOR = re.compile(
    r"!=|<=|>=|(?<![!<>:])=|<|>|\b(?:eq|ne|lt|le|gt|ge)\b"
    r"|(?<![\w-])(?:and|or)(?![\w-])|\bnot(?=\s*\()"
)
_QUOTED = re.compile(r"(['\"])(.*?)\1", re.DOTALL)
_NUMBER = re.compile(r"(?<![\w.$@])(\d+)(?![\w.])")
_LET = re.compile(r"\blet\s+(?=\$)")
_RETURN = re.compile(r"\breturn\b")
_LET_DECL = re.compile(r"\$([A-Za-z_]\w*)\s*:?=\s*(.+)", re.DOTALL)

_NOT_CALL = re.compile(r"^not\s*\(")
_IF_EXPR = re.compile(r"\bif\s*\(")
_QUANTIFIER = re.compile(r"\b(?:some|every)\s+\$[A-Za-z_][\w-]*\s+in\b")
_FUNCTION_CALL = re.compile(r"^[A-Za-z_][\w.-]*(?::[A-Za-z_][\w.-]*)?\s*\(")


def is_known_node_type(name: str) -> bool:
    """True if ``name`` belongs to the rule engine's node-type vocabulary."""
    if name in KNOWN_NODE_TYPES:
        return True
    return bool(_NODE_SUFFIX.match(name)) or (
        bool(_NODE_FAMILY.search(name)) and name[0].isupper()
    )


def _unique(items) -> list[str]:
    seen: dict[str, None] = {}
    for item in items:
        seen.setdefault(item, None)
    return list(seen)


def extract_node_types(query: str) -> list[str]:
    masked = mask_quotes(query)
    tokens = (m.group(1) for m in _NODE_TOKEN.finditer(masked))
    return _unique(t for t in tokens if is_known_node_type(t))


def extract_attributes(query: str) -> list[str]:
    masked = mask_quotes(query)
    return _unique(m.group(1) for m in _ATTRIBUTE.finditer(masked))


def extract_operators(query: str) -> list[str]:
    masked = mask_quotes(query)
    return _unique(m.group(0) for m in _OPERATOR.finditer(masked))


def extract_op_values(query: str) -> list[str]:
    return _unique(m.group(2) for m in _OP_VALUE.finditer(query) if m.group(2))


def _let_ranges(query: str) -> list[tuple[int, int]]:
    """Spans from each ``let`` keyword to its top-level ``return``."""
    masked = mask_quotes(query)
    ranges: list[tuple[int, int]] = []
    for let_match in _LET.finditer(masked):
        nested = mask_nested(query[let_match.start():])
        ret = _RETURN.search(nested)
        end = let_match.start() + ret.start() if ret else len(query)
        ranges.append((let_match.start(), end))
    return ranges


def extract_let_variables(query: str) -> dict[str, str]:
    """``$name`` → bound expression for every ``let`` clause."""
    variables: dict[str, str] = {}
    for start, end in _let_ranges(query):
        body = query[start + 3:end]
        masked = mask_nested(body)
        declarations: list[str] = []
        last = 0
        for i, ch in enumerate(masked):
            if ch == "," and masked[i + 1:].lstrip().startswith("$"):
                declarations.append(body[last:i])
                last = i + 1
        declarations.append(body[last:])
        for decl in declarations:
            match = _LET_DECL.search(decl.strip())
            if match:
                variables[match.group(1)] = match.group(2).strip()
    return variables


def extract_hardcoded_values(query: str) -> list[str]:
    """Quoted literals and numbers other than 0/1 outside ``let`` bindings."""
    ranges = _let_ranges(query)

    def outside_let(pos: int) -> bool:
        return not any(start <= pos < end for start, end in ranges)

    values = [
        m.group(2)
        for m in _QUOTED.finditer(query)
        if m.group(2).strip() and outside_let(m.start())
    ]
    masked = mask_quotes(query)
    values.extend(
        m.group(1)
        for m in _NUMBER.finditer(masked)
        if int(m.group(1)) > 1 and outside_let(m.start())
    )
    return _unique(values)


def _is_single_call(predicate: str) -> bool:
    match = _FUNCTION_CALL.match(predicate)
    if not match:
        return False
    return matching_paren(predicate, match.end() - 1) == len(predicate) - 1


def negated_argument(text: str) -> str | None:
    """Argument of a leading ``not(...)`` call; ``None`` without one."""
    text = text.strip()
    if not _NOT_CALL.match(text):
        return None
    open_index = text.index("(")
    close_index = matching_paren(text, open_index)
    if close_index == -1:
        return None
    return text[open_index + 1:close_index].strip()


def classify_predicate(predicate: str) -> tuple[ConditionalKind, str] | None:
    """Classify one predicate's inner text; ``None`` when nothing matches.

    Top-level ``or`` binds loosest, then ``and``. A predicate that starts
    with ``not(`` is a negation when no top-level boolean keyword follows
    it; its expression is the negated argument when the call spans the
    whole predicate.
    """
    text = predicate.strip()
    if not text:
        return None

    if has_top_level_keyword(text, "or"):
        return ConditionalKind.OR, text
    if has_top_level_keyword(text, "and"):
        return ConditionalKind.AND, text

    if _NOT_CALL.match(text):
        argument = negated_argument(text)
        if argument is not None and matching_paren(text, text.index("(")) == len(text) - 1:
            return ConditionalKind.NOT, argument
        return ConditionalKind.NOT, text

    masked = mask_nested(text)
    if _IF_EXPR.search(masked):
        return ConditionalKind.IF, text
    if _QUANTIFIER.search(masked.replace(FILLER, " ")):
        return ConditionalKind.QUANTIFIED, text
    if _is_single_call(text):
        return ConditionalKind.BOOLEAN_FUNCTION, text
    return None


def extract_conditionals(query: str) -> list[Conditional]:
    conditionals: list[Conditional] = []
    for position, inner in predicate_groups(query):
        classified = classify_predicate(inner)
        if classified is None:
            continue
        kind, expression = classified
        conditionals.append(
            Conditional(kind=kind, expression=expression, position=position)
        )
        # `not(X) and Y` is also a negation of X
        if kind is ConditionalKind.AND:
            argument = negated_argument(inner)
            if argument:
                conditionals.append(
                    Conditional(kind=ConditionalKind.NOT, expression=argument, position=position)
                )
    return conditionals


def analyze_query(query: str | None) -> QueryAnalysis:
    """Structural summary of ``query``. Never raises; ``None``/blank → empty."""
    if not query or not query.strip():
        return QueryAnalysis()

    masked = mask_quotes(query)
    return QueryAnalysis(
        node_types=extract_node_types(query),
        attributes=extract_attributes(query),
        operators=extract_operators(query),
        op_values=extract_op_values(query),
        conditionals=extract_conditionals(query),
        let_variables=extract_let_variables(query),
        hardcoded_values=extract_hardcoded_values(query),
        has_let_expressions=_LET.search(masked) is not None,
        has_unions="|" in masked,
    )
