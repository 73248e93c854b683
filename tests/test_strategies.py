"""
Tests for the conditional coverage strategies and their registry.
"""

import pytest

from rulecov.core.strategies import and_operator, not_condition
from rulecov.core.strategy_registry import STRATEGY_REGISTRY, check_conditional
from rulecov.core.xpath_text import split_top_level
from rulecov.models.query_models import Conditional, ConditionalKind


def _cond(kind, expression):
    return Conditional(kind=kind, expression=expression, position=0)


# --- Registry ---

def test_registry_covers_every_kind():
    assert set(STRATEGY_REGISTRY) == set(ConditionalKind)


@pytest.mark.parametrize("kind", [
    ConditionalKind.OR,
    ConditionalKind.IF,
    ConditionalKind.QUANTIFIED,
    ConditionalKind.BOOLEAN_FUNCTION,
])
def test_unimplemented_strategies_report_unknown(kind):
    result = check_conditional(_cond(kind, "@A = 'x'"), "anything at all")
    assert result.success is False
    assert result.unknown is True
    assert "not implemented" in result.message
    assert result.evidence == []


def test_crashing_strategy_becomes_unknown(monkeypatch):
    def explode(conditional, content):
        raise ValueError("boom")

    monkeypatch.setitem(STRATEGY_REGISTRY, ConditionalKind.AND, explode)
    result = check_conditional(_cond(ConditionalKind.AND, "@A and @B"), "text")
    assert result.success is False
    assert result.unknown is True
    assert "boom" in result.message


# --- AND operator ---

def test_and_empty_expression():
    result = and_operator.check(_cond(ConditionalKind.AND, "   "), "code")
    assert result.success is False
    assert result.message == and_operator.NOTHING_TO_CHECK
    assert result.evidence == []


def test_and_modifiers_all_present():
    result = and_operator.check(
        _cond(ConditionalKind.AND, "@Final = true() and @Static = true()"),
        "private static final X y;",
    )
    assert result.success is True
    assert result.evidence[0].description == "2/2 parts covered"
    assert result.evidence[0].count == 1
    assert "all 2 parts satisfied" in result.message


def test_and_modifier_missing_names_keyword():
    result = and_operator.check(
        _cond(ConditionalKind.AND, "@Final = true() and @Static = true()"),
        "private final X y;",
    )
    assert result.success is False
    assert result.evidence[0].count == 0
    assert "'static'" in result.message
    assert result.details == ["@Static = true()"]


def test_and_three_parts_two_satisfied():
    expression = "@Image = 'compile' and @Static = true() and @Final = true()"
    result = and_operator.check(
        _cond(ConditionalKind.AND, expression),
        "static Pattern p = Pattern.compile('x');",
    )
    assert result.success is False
    assert result.evidence[0].description == "2/3 parts covered"
    assert result.details == ["@Final = true()"]


def test_and_method_name_parts():
    expression = "@FullMethodName = $target and @MethodName = 'x'"
    covered = and_operator.check(_cond(ConditionalKind.AND, expression), "Foo.bar(1);")
    assert covered.success is True
    uncovered = and_operator.check(_cond(ConditionalKind.AND, expression), "int x = 1;")
    assert uncovered.success is False


def test_and_node_step_part():
    expression = ".//NewListLiteralExpression and @Image = 'items'"
    result = and_operator.check(
        _cond(ConditionalKind.AND, expression),
        "List<String> items = new List<String>();",
    )
    assert result.success is True


def test_and_single_part_keyword_fallback():
    result = and_operator.check(_cond(ConditionalKind.AND, "@Image = 'Database'"), "Database.query(q);")
    assert result.success is True
    miss = and_operator.check(_cond(ConditionalKind.AND, "@Image = 'Database'"), "List<X> l;")
    assert miss.success is False


def test_and_negated_ancestor_part():
    expression = "not(ancestor::UserInterface) and @Name = 'foo'"
    covered = and_operator.check(
        _cond(ConditionalKind.AND, expression),
        "interface Bar {}\nvoid foo() {}",
    )
    assert covered.success is True
    assert covered.evidence[0].description == "2/2 parts covered"
    uncovered = and_operator.check(_cond(ConditionalKind.AND, expression), "void foo() {}")
    assert uncovered.success is False
    assert uncovered.details == ["not(ancestor::UserInterface)"]


def test_and_tolerates_garbage():
    result = and_operator.check(_cond(ConditionalKind.AND, "((( and ]]] and '"), "\x00\xff")
    assert isinstance(result.success, bool)


def test_split_respects_quotes_and_parentheses():
    parts = split_top_level("@A = 'x and y' and f(a and b) and @C", "and")
    assert parts == ["@A = 'x and y'", "f(a and b)", "@C"]


# --- NOT condition ---

def test_not_static_final_field_pattern():
    conditional = _cond(
        ConditionalKind.NOT, "ancestor::FieldDeclarationStatements[@Static = true()]"
    )
    covered = not_condition.check(
        conditional, "private static final Pattern P = Pattern.compile('x');"
    )
    assert covered.success is True
    uncovered = not_condition.check(conditional, "private Pattern p = Pattern.compile('x');")
    assert uncovered.success is False
    assert "no static final field" in uncovered.message


def test_not_generic_requires_negated_vocabulary():
    conditional = _cond(ConditionalKind.NOT, "@Image = 'Test.isRunningTest'")
    assert not_condition.check(conditional, "if (Test.isRunningTest()) {}").success is True
    assert not_condition.check(conditional, "System.debug('x');").success is False


def test_not_attribute_only_expression_uses_attribute_names():
    conditional = _cond(ConditionalKind.NOT, "@Nested = true()")
    assert not_condition.check(conditional, "class Outer { class Nested {} }").success is True


def test_not_ancestor_node_type():
    conditional = _cond(ConditionalKind.NOT, "ancestor::UserInterface")
    covered = not_condition.check(conditional, "interface Bar { void m(); }")
    assert covered.success is True
    assert "UserInterface" in covered.message
    uncovered = not_condition.check(conditional, "class Bar { void m() {} }")
    assert uncovered.success is False
    assert uncovered.details == ["ancestor::UserInterface"]
