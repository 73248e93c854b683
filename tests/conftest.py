"""
Test fixtures shared across all rulecov tests.
"""

import time
from pathlib import Path

import pytest

from rulecov.core.syntax_tree import SyntaxTreeParser
from rulecov.engine.fixtures import FixtureBuilder
from rulecov.models.engine_models import EngineResult, ToolViolation
from rulecov.workers.rule_worker import RuleWorker


def rule_xml(examples, query="//Method[@Visibility='public']", name="AvoidPublicMethods"):
    """Build a PMD ruleset document around ``examples``."""
    blocks = "\n".join(f"    <example><![CDATA[\n{body}\n    ]]></example>" for body in examples)
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<ruleset name="Samples" xmlns="http://pmd.sourceforge.net/ruleset/2.0.0">
  <rule name="{name}" language="apex" message="Public methods are not allowed in samples"
        class="net.sourceforge.pmd.lang.rule.xpath.XPathRule">
    <description>Flags every public method declared in a sample class.</description>
    <priority>3</priority>
    <properties>
      <property name="xpath">
        <value><![CDATA[
{query}
        ]]></value>
      </property>
    </properties>
{blocks}
  </rule>
</ruleset>
"""


class FakeEngine:
    """Stands in for PMD: reports every fixture line containing ``trigger``."""

    def __init__(self, trigger=None, delays=None):
        self.trigger = trigger
        self.delays = delays or {}
        self.calls = []

    def run(self, fixture_path, ruleset_path):
        self.calls.append((fixture_path, ruleset_path))
        text = Path(fixture_path).read_text(encoding="utf-8")
        for name, delay in self.delays.items():
            if name in fixture_path:
                time.sleep(delay)
        if not self.trigger:
            return EngineResult(success=True, violations=[])
        violations = [
            ToolViolation(line=n, column=5, rule="AvoidPublicMethods", message="hit")
            for n, line in enumerate(text.split("\n"), start=1)
            if self.trigger in line
        ]
        return EngineResult(success=True, violations=violations)


class BrokenEngine:
    """Always fails the way PMD does when it times out."""

    def __init__(self):
        self.calls = 0

    def run(self, fixture_path, ruleset_path):
        self.calls += 1
        return EngineResult(success=False, error="PMD execution exceeded 30s timeout")


@pytest.fixture
def text_only_parser():
    return SyntaxTreeParser(grammar_module="")


@pytest.fixture
def make_worker(tmp_path, text_only_parser):
    def build(engine, max_concurrency=4):
        return RuleWorker(
            engine=engine,
            fixtures=FixtureBuilder(str(tmp_path / "fixtures")),
            parser=text_only_parser,
            max_concurrency=max_concurrency,
        )
    return build


@pytest.fixture
def write_rule(tmp_path):
    def write(text, name="AvoidPublicMethods.xml"):
        path = tmp_path / "rulesets" / "design" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return str(path)
    return write


@pytest.fixture
def inline_example():
    """One inline violation and one inline valid marker."""
    return (
        "public class Sample {\n"
        "    public void exposed() {} // ❌ public method\n"
        "    private void hidden() {} // ✅ private is fine\n"
        "}"
    )


@pytest.fixture
def section_example():
    return (
        "// Violation: Pattern compiled on every call\n"
        "Pattern p = Pattern.compile('[a-z]+');\n"
        "\n"
        "// Valid: Compiled once and reused\n"
        "static final Pattern CACHED = Pattern.compile('[a-z]+');"
    )


@pytest.fixture
def oracle_rule_text():
    """Rule file whose example line N sits on rule-file line N + 9."""
    lines = [
        '<?xml version="1.0"?>',
        '<rule name="PublicMethod" message="Avoid public methods in samples">',
        "  <description>Flags public methods in sample classes.</description>",
        "  <properties>",
        '    <property name="xpath">',
        "      <value><![CDATA[//Method[@Visibility='public']]]></value>",
        "    </property>",
        "  </properties>",
        "  <example><![CDATA[",
        "public class Sample {",                     # example line 1 / file line 10
        "    private Integer count;",                 # 2 / 11
        "",                                           # 3 / 12
        "    // ❌ public method below",              # 4 / 13
        "    public void m() {}",                     # 5 / 14
        "",                                           # 6 / 15
        "    private void helper() {",                # 7 / 16
        "        count = 1;",                         # 8 / 17
        "    }",                                      # 9 / 18
        "}",                                          # 10 / 19
        "  ]]></example>",
        "</rule>",
    ]
    return "\n".join(lines) + "\n"


@pytest.fixture
def build_rule_xml():
    return rule_xml


@pytest.fixture
def fake_engine():
    return FakeEngine


@pytest.fixture
def broken_engine():
    return BrokenEngine()
