"""
Node/Attribute Coverage Checker — Does the example text produce what the query selects?

Per node type and per attribute, decide from text whether at least one
example plausibly contains that construct. A parsed syntax tree, when
available, can only add coverage; the text heuristics always run.
"""

from __future__ import annotations

import logging
import re

from rulecov.core.syntax_tree import subtree_engine_kinds
from rulecov.models.coverage_models import CoverageEvidence, CoverageResult
from rulecov.models.syntax_models import SyntaxNode

logger = logging.getLogger("rulecov.coverage")

# Scaffolding present in every parsed file
ALWAYS_COVERED: frozenset[str] = frozenset({"StandardCondition"})

_I = re.IGNORECASE
DOTTED_CALL = re.compile(r"\b\w+\.\w+\s*\(")
CALL = re.compile(r"\b\w+\s*\(")
_LITERAL = re.compile(r"(['\"]).*?\1|\b\d+(?:\.\d+)?\b|\b(?:true|false|null)\b", _I)
_FIELD_DECL = re.compile(
    r"^\s*(?:(?:private|public|protected|global)\s+)?(?:(?:static|final|transient)\s+)*"
    r"[A-Za-z_][\w.]*(?:<[^>;]*>)?(?:\[\])?\s+\w+\s*(?:=[^;]*)?;",
    re.MULTILINE,
)

NODE_HEURISTICS: dict[str, re.Pattern] = {
    "Method": re.compile(
        r"\b(?:public|private|protected|global)\s+(?:(?:static|virtual|override|abstract)\s+)*"
        r"[\w.<>,\[\] ]+?\s+\w+\s*\(",
    ),
    "UserClass": re.compile(r"\bclass\s+\w+", _I),
    "Class": re.compile(r"\bclass\s+\w+", _I),
    "UserInterface": re.compile(r"\binterface\s+\w+", _I),
    "UserEnum": re.compile(r"\benum\s+\w+", _I),
    "UserTrigger": re.compile(r"\btrigger\s+\w+\s+on\b", _I),
    "EnumValue": re.compile(r"\benum\s+\w+\s*\{\s*\w+", _I),
    "Parameter": re.compile(r"\w+\s*\(\s*[\w.<>]+\s+\w+\s*[,)]"),
    "Field": _FIELD_DECL,
    "FieldDeclaration": _FIELD_DECL,
    "FieldDeclarationStatements": _FIELD_DECL,
    "Property": re.compile(r"\{\s*(?:public\s+|private\s+)?(?:get|set)\s*[;{]", _I),
    "VariableDeclaration": re.compile(r"\b[A-Za-z_][\w.<>]*\s+\w+\s*(?:=|;)"),
    "VariableDeclarationStatements": re.compile(r"\b[A-Za-z_][\w.<>]*\s+\w+\s*(?:=|;)"),
    "MethodCallExpression": CALL,
    "NewObjectExpression": re.compile(r"\bnew\s+[\w.]+\s*(?:<[^>]*>)?\s*\(", _I),
    "NewListLiteralExpression": re.compile(r"\bnew\s+List\s*[<(]", _I),
    "NewListInitExpression": re.compile(r"\bnew\s+List\s*[<(]", _I),
    "NewSetLiteralExpression": re.compile(r"\bnew\s+Set\s*[<(]", _I),
    "NewSetInitExpression": re.compile(r"\bnew\s+Set\s*[<(]", _I),
    "NewMapLiteralExpression": re.compile(r"\bnew\s+Map\s*[<(]", _I),
    "NewMapInitExpression": re.compile(r"\bnew\s+Map\s*[<(]", _I),
    "IfBlockStatement": re.compile(r"\bif\s*\(", _I),
    "IfElseBlockStatement": re.compile(r"\bif\s*\(", _I),
    "ForLoopStatement": re.compile(r"\bfor\s*\(", _I),
    "ForEachStatement": re.compile(r"\bfor\s*\([^;)]*:", _I),
    "WhileLoopStatement": re.compile(r"\bwhile\s*\(", _I),
    "DoLoopStatement": re.compile(r"\bdo\s*\{", _I),
    "TryCatchFinallyBlockStatement": re.compile(r"\btry\s*\{", _I),
    "CatchBlockStatement": re.compile(r"\bcatch\s*\(", _I),
    "ThrowStatement": re.compile(r"\bthrow\b", _I),
    "ReturnStatement": re.compile(r"\breturn\b", _I),
    "BreakStatement": re.compile(r"\bbreak\s*;", _I),
    "ContinueStatement": re.compile(r"\bcontinue\s*;", _I),
    "SwitchStatement": re.compile(r"\bswitch\s+on\b", _I),
    "TernaryExpression": re.compile(r"\?[^:;]*:"),
    "BinaryExpression": re.compile(r"\w\s*(?:[+\-*/%]|<<|>>)\s*\w"),
    "BooleanExpression": re.compile(r"==|!=|&&|\|\||<=|>=|\w\s*[<>]\s*\w"),
    "AssignmentExpression": re.compile(r"\w\s*(?:[+\-*/]?=)(?!=)"),
    "CastExpression": re.compile(r"\(\s*[A-Z][\w.<>]*\s*\)\s*\w"),
    "LiteralExpression": _LITERAL,
    "ThisVariableExpression": re.compile(r"\bthis\b", _I),
    "SuperExpression": re.compile(r"\bsuper\b", _I),
    "Annotation": re.compile(r"@\w+"),
    "AnnotationParameter": re.compile(r"@\w+\s*\([^)]*\w+\s*="),
    "ModifierNode": re.compile(r"\b(?:public|private|protected|global|static|final)\b", _I),
    "SoqlExpression": re.compile(r"\[\s*select\b", _I),
    "SoslExpression": re.compile(r"\[\s*find\b", _I),
    "DmlInsertStatement": re.compile(r"\binsert\s+\w", _I),
    "DmlUpdateStatement": re.compile(r"\bupdate\s+\w", _I),
    "DmlDeleteStatement": re.compile(r"\bdelete\s+\w", _I),
    "DmlUndeleteStatement": re.compile(r"\bundelete\s+\w", _I),
    "DmlUpsertStatement": re.compile(r"\bupsert\s+\w", _I),
    "DmlMergeStatement": re.compile(r"\bmerge\s+\w", _I),
    "BlockStatement": re.compile(r"\{"),
    "ExpressionStatement": re.compile(r";"),
}

_BOOL_KEYWORDS = ("final", "static", "abstract", "virtual", "override", "transient")

ATTRIBUTE_HEURISTICS: dict[str, re.Pattern] = {
    "methodname": CALL,
    "string": re.compile(r"(['\"]).*?\1"),
    "null": re.compile(r"\bnull\b", _I),
    "literaltype": _LITERAL,
    "image": re.compile(r"(['\"]).*?\1|\b\d+\b|\bclass\s+\w+|\b\w+\s*\(", _I),
    "nested": re.compile(r"\bclass\s+\w+[^{]*\{[^}]*\bclass\s+\w+", re.DOTALL | _I),
    "name": re.compile(r"\b\w+\s+\w+\s*[=;(]"),
    "value": re.compile(r"@\w+\s*\([^)]*=\s*[^)]+\)"),
    "visibility": re.compile(r"\b(?:public|private|protected|global)\b", _I),
    "typename": re.compile(r"\b[A-Z][\w.]*(?:<[^>]*>)?\s+\w+\s*[=;]"),
    **{kw: re.compile(rf"\b{kw}\b", _I) for kw in _BOOL_KEYWORDS},
}


def node_type_present(node_type: str, content: str, tree: SyntaxNode | None = None) -> bool:
    """Heuristic: does ``content`` plausibly contain a ``node_type`` node?"""
    if node_type in ALWAYS_COVERED:
        return True
    if tree is not None and node_type in subtree_engine_kinds(tree):
        return True
    pattern = NODE_HEURISTICS.get(node_type)
    if pattern is not None:
        return pattern.search(content) is not None
    return node_type.lower() in content.lower()


def node_types_on_line(line: str, node_types: list[str]) -> list[str]:
    """The queried node types a single line of code plausibly produces."""
    return [
        t for t in node_types
        if t not in ALWAYS_COVERED and node_type_present(t, line)
    ]


def check_node_types(
    node_types: list[str],
    content: str,
    tree: SyntaxNode | None = None,
) -> CoverageResult:
    covered = [t for t in node_types if node_type_present(t, content, tree)]
    missing = [t for t in node_types if t not in covered]
    total = len(node_types)
    logger.debug(f"Node types covered: {covered}, missing: {missing}")
    return CoverageResult(
        success=not missing,
        message=f"Node types: {len(covered)}/{total} covered",
        subject="Node types",
        evidence=[CoverageEvidence(
            type="node_types",
            description=f"{len(covered)}/{total} node types covered",
            count=len(covered),
            required=total,
        )],
        details=missing,
    )


def query_values(attribute: str, query: str) -> list[tuple[str, bool]]:
    """Literal values the query compares ``@attribute`` against.

    Each entry is ``(value, is_regex)``; regexes come from ``matches()``.
    """
    name = re.escape(attribute)
    values: list[tuple[str, bool]] = []
    for m in re.finditer(rf"@{name}\b\s*(?:!=|=)\s*(['\"])([^'\"]*)\1", query):
        values.append((m.group(2), False))
    for m in re.finditer(rf"(['\"])([^'\"]*)\1\s*(?:!=|=)\s*@{name}\b", query):
        values.append((m.group(2), False))
    for m in re.finditer(rf"([\w-]+)\(\s*@{name}\b\s*,\s*(['\"])([^'\"]*)\2", query):
        values.append((m.group(3), m.group(1) == "matches"))
    return [(v, is_regex) for v, is_regex in values if v]


def _value_present(value: str, is_regex: bool, content: str) -> bool:
    if is_regex:
        try:
            return re.search(value, content) is not None
        except re.error:
            pass
    return value.lower() in content.lower()


def attribute_present(attribute: str, content: str, query: str = "") -> bool:
    """Heuristic: does ``content`` exercise ``@attribute`` as the query uses it?"""
    key = attribute.lower()
    if key == "fullmethodname":
        return DOTTED_CALL.search(content) is not None

    values = query_values(attribute, query) if query else []
    if values:
        return any(_value_present(v, is_regex, content) for v, is_regex in values)

    pattern = ATTRIBUTE_HEURISTICS.get(key)
    if pattern is not None:
        return pattern.search(content) is not None
    return key in content.lower()


def check_attributes(attributes: list[str], content: str, query: str = "") -> CoverageResult:
    covered = [a for a in attributes if attribute_present(a, content, query)]
    missing = [a for a in attributes if a not in covered]
    total = len(attributes)
    return CoverageResult(
        success=not missing,
        message=f"Attributes: {len(covered)}/{total} covered",
        subject="Attributes",
        evidence=[CoverageEvidence(
            type="attributes",
            description=f"{len(covered)}/{total} attributes covered",
            count=len(covered),
            required=total,
        )],
        details=[f"@{a}" for a in missing],
    )
