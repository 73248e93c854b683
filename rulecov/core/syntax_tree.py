"""
Syntax Tree — Optional tree-sitter view of example code.

Examples are Apex, which tree-sitter's Java grammar parses well enough for
node association. Parsed trees are converted once into ``SyntaxNode``
values; everything downstream works on those, never on tree-sitter nodes.
When the grammar module cannot be loaded the parser reports
``available = False`` and callers stay on text heuristics.
"""

from __future__ import annotations

import importlib
import logging
from typing import Callable

from tree_sitter import Language, Parser

from rulecov.config import settings
from rulecov.models.syntax_models import SyntaxNode

logger = logging.getLogger("rulecov.syntax")

# Snippets are wrapped so class-body code parses; line 1 is the wrapper
_WRAPPER_HEAD = "class RulecovSnippet {\n"
_WRAPPER_TAIL = "\n}\n"
_WRAPPER_LINES = 1

# Grammar kind → rule engine node names
KIND_ALIASES: dict[str, tuple[str, ...]] = {
    "class_declaration": ("UserClass", "Class"),
    "interface_declaration": ("UserInterface",),
    "enum_declaration": ("UserEnum",),
    "enum_constant": ("EnumValue",),
    "method_declaration": ("Method",),
    "constructor_declaration": ("Method",),
    "formal_parameter": ("Parameter",),
    "field_declaration": ("FieldDeclarationStatements", "FieldDeclaration", "Field"),
    "local_variable_declaration": ("VariableDeclarationStatements",),
    "variable_declarator": ("VariableDeclaration",),
    "method_invocation": ("MethodCallExpression",),
    "object_creation_expression": ("NewObjectExpression",),
    "array_creation_expression": ("NewObjectExpression",),
    "if_statement": ("IfBlockStatement", "IfElseBlockStatement"),
    "for_statement": ("ForLoopStatement",),
    "enhanced_for_statement": ("ForEachStatement",),
    "while_statement": ("WhileLoopStatement",),
    "do_statement": ("DoLoopStatement",),
    "try_statement": ("TryCatchFinallyBlockStatement",),
    "try_with_resources_statement": ("TryCatchFinallyBlockStatement",),
    "catch_clause": ("CatchBlockStatement",),
    "throw_statement": ("ThrowStatement",),
    "return_statement": ("ReturnStatement",),
    "break_statement": ("BreakStatement",),
    "continue_statement": ("ContinueStatement",),
    "expression_statement": ("ExpressionStatement",),
    "block": ("BlockStatement",),
    "binary_expression": ("BinaryExpression",),
    "ternary_expression": ("TernaryExpression",),
    "assignment_expression": ("AssignmentExpression",),
    "cast_expression": ("CastExpression",),
    "instanceof_expression": ("InstanceOfExpression",),
    "unary_expression": ("PrefixExpression",),
    "update_expression": ("PostfixExpression",),
    "field_access": ("VariableExpression",),
    "string_literal": ("LiteralExpression",),
    "decimal_integer_literal": ("LiteralExpression",),
    "decimal_floating_point_literal": ("LiteralExpression",),
    "true": ("LiteralExpression",),
    "false": ("LiteralExpression",),
    "null_literal": ("LiteralExpression",),
    "this": ("ThisVariableExpression",),
    "super": ("SuperExpression",),
    "annotation": ("Annotation",),
    "marker_annotation": ("Annotation",),
    "element_value_pair": ("AnnotationParameter",),
    "modifiers": ("ModifierNode",),
    "switch_expression": ("SwitchStatement",),
    "block_comment": ("FormalComment",),
}

# Collection constructors get their literal-specific names first
_COLLECTION_LITERALS: dict[str, str] = {
    "List": "NewListLiteralExpression",
    "Set": "NewSetLiteralExpression",
    "Map": "NewMapLiteralExpression",
}

ENGINE_NODE_NAMES: frozenset[str] = frozenset(
    name for names in KIND_ALIASES.values() for name in names
) | frozenset(_COLLECTION_LITERALS.values())


def _text(ts_node) -> str:
    return ts_node.text.decode("utf-8", errors="replace") if ts_node is not None else ""


def _named_field(field: str) -> Callable:
    def extract(ts_node) -> dict[str, str]:
        name = ts_node.child_by_field_name(field)
        return {"Image": _text(name)} if name is not None else {}
    return extract


def _method_call_attrs(ts_node) -> dict[str, str]:
    name = _text(ts_node.child_by_field_name("name"))
    target = ts_node.child_by_field_name("object")
    full = f"{_text(target)}.{name}" if target is not None else name
    return {"Image": name, "MethodName": name, "FullMethodName": full}


def _creation_attrs(ts_node) -> dict[str, str]:
    return {"Type": _text(ts_node.child_by_field_name("type"))}


def _declaration_attrs(ts_node) -> dict[str, str]:
    attrs: dict[str, str] = {}
    for child in ts_node.named_children:
        if child.type == "modifiers":
            words = _text(child).lower().split()
            attrs["Modifiers"] = " ".join(words)
            for flag in ("static", "final", "abstract", "transient"):
                attrs[flag.capitalize()] = "true" if flag in words else "false"
        elif child.type == "variable_declarator":
            attrs["Image"] = _text(child.child_by_field_name("name"))
    return attrs


def _literal_attrs(ts_node) -> dict[str, str]:
    return {"Image": _text(ts_node), "LiteralType": ts_node.type}


# Grammar kind → attribute extractor
ATTRIBUTE_EXTRACTORS: dict[str, Callable] = {
    "class_declaration": _named_field("name"),
    "interface_declaration": _named_field("name"),
    "enum_declaration": _named_field("name"),
    "method_declaration": _named_field("name"),
    "constructor_declaration": _named_field("name"),
    "formal_parameter": _named_field("name"),
    "method_invocation": _method_call_attrs,
    "object_creation_expression": _creation_attrs,
    "field_declaration": _declaration_attrs,
    "local_variable_declaration": _declaration_attrs,
    "string_literal": _literal_attrs,
    "decimal_integer_literal": _literal_attrs,
    "null_literal": _literal_attrs,
}


def to_syntax_node(ts_node, line_offset: int = 0, inherited_line: int = 0) -> SyntaxNode:
    """Convert a tree-sitter node (and subtree) into a ``SyntaxNode``.

    Lines are shifted by ``line_offset``; a node that lands outside the
    snippet takes the line handed down by its parent.
    """
    line = ts_node.start_point[0] + 1 - line_offset
    if line < 1:
        line = inherited_line
    end_line = max(ts_node.end_point[0] + 1 - line_offset, line)

    extractor = ATTRIBUTE_EXTRACTORS.get(ts_node.type)
    attributes = extractor(ts_node) if extractor else {}

    return SyntaxNode(
        kind=ts_node.type,
        attributes=attributes,
        children=[
            to_syntax_node(child, line_offset, line) for child in ts_node.named_children
        ],
        line=line,
        end_line=end_line,
    )


def engine_kinds(node: SyntaxNode) -> tuple[str, ...]:
    """Rule engine node names for one grammar node."""
    names = KIND_ALIASES.get(node.kind, ())
    if node.kind == "object_creation_expression":
        base = node.attributes.get("Type", "").split("<")[0].strip()
        literal = _COLLECTION_LITERALS.get(base)
        if literal:
            names = (literal,) + names
    return names


def subtree_engine_kinds(node: SyntaxNode) -> set[str]:
    kinds: set[str] = set()
    for child in node.walk():
        kinds.update(engine_kinds(child))
    return kinds


def first_node_on_line(root: SyntaxNode, line: int) -> SyntaxNode | None:
    """Outermost node starting on ``line`` that the rule engine has a name for."""
    for node in root.walk():
        if node is not root and node.line == line and engine_kinds(node):
            return node
    return None


def first_node_after_line(root: SyntaxNode, line: int) -> SyntaxNode | None:
    best: SyntaxNode | None = None
    for node in root.walk():
        if node is root or node.line <= line or not engine_kinds(node):
            continue
        if best is None or node.line < best.line:
            best = node
    return best


class SyntaxTreeParser:
    """Thin wrapper around tree-sitter; text-only mode when no grammar loads."""

    def __init__(self, grammar_module: str | None = None) -> None:
        self._parser: Parser | None = None
        module_name = grammar_module if grammar_module is not None else settings.grammar_module
        if not module_name:
            return
        try:
            grammar = importlib.import_module(module_name)
            self._parser = Parser(Language(grammar.language()))
        except (ImportError, AttributeError, TypeError, ValueError) as e:
            logger.info(f"Grammar '{module_name}' unavailable, using text heuristics: {e}")

    @property
    def available(self) -> bool:
        return self._parser is not None

    def parse(self, code: str) -> SyntaxNode | None:
        """Parse an example snippet; ``None`` in text-only mode.

        Partial trees are kept: examples are fragments and tree-sitter
        recovers around what it cannot parse.
        """
        if self._parser is None or not code.strip():
            return None
        source = (_WRAPPER_HEAD + code + _WRAPPER_TAIL).encode("utf-8")
        tree = self._parser.parse(source)

        # Drop the wrapper class; its body holds the snippet's nodes
        container = tree.root_node
        wrapper = container.named_children[0] if container.named_children else None
        if wrapper is not None and wrapper.type == "class_declaration":
            body = wrapper.child_by_field_name("body")
            if body is not None:
                container = body

        children = [
            to_syntax_node(child, line_offset=_WRAPPER_LINES, inherited_line=1)
            for child in container.named_children
        ]
        return SyntaxNode(
            kind="snippet",
            children=children,
            line=1,
            end_line=code.count("\n") + 1,
        )
