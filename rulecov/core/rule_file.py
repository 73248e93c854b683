"""
Rule File Reader — PMD rule XML → metadata and annotated examples.

Expected shape (namespace optional)::

    <rule name="..." message="...">
      <description>...</description>
      <properties>
        <property name="xpath"><value><![CDATA[ //Method[...] ]]></value></property>
      </properties>
      <example><![CDATA[ ... ]]></example>
    </rule>
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path

from rulecov.core.markers import parse_example
from rulecov.core.syntax_tree import SyntaxTreeParser
from rulecov.errors import RuleFileError
from rulecov.models.example_models import Example, RuleFile, RuleMetadata

logger = logging.getLogger("rulecov.rules")

_QUERY_PROPERTY_NAMES = ("xpath", "query")


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


def _find_rule(root: ET.Element) -> ET.Element | None:
    for element in root.iter():
        if _local_name(element.tag) == "rule":
            return element
    return None


def _children(element: ET.Element, name: str):
    return (child for child in element.iter() if _local_name(child.tag) == name)


def _extract_query(rule: ET.Element) -> str | None:
    for prop in _children(rule, "property"):
        if prop.get("name", "").lower() not in _QUERY_PROPERTY_NAMES:
            continue
        for value in _children(prop, "value"):
            text = "".join(value.itertext()).strip()
            if text:
                return text
        if prop.get("value", "").strip():
            return prop.get("value").strip()
    return None


def extract_metadata(root: ET.Element) -> RuleMetadata:
    rule = _find_rule(root)
    if rule is None:
        return RuleMetadata()
    description = next(_children(rule, "description"), None)
    description_text = "".join(description.itertext()).strip() if description is not None else ""
    return RuleMetadata(
        rule_name=rule.get("name") or None,
        message=rule.get("message") or None,
        description=description_text or None,
        query=_extract_query(rule),
    )


def extract_examples(
    root: ET.Element,
    query: str | None = None,
    parser: SyntaxTreeParser | None = None,
) -> list[Example]:
    """Non-empty examples; ``example_index`` is the 1-based ordinal among all."""
    examples: list[Example] = []
    for ordinal, element in enumerate(_children(root, "example"), start=1):
        content = "".join(element.itertext()).strip()
        if not content:
            logger.debug(f"Skipping empty example {ordinal}")
            continue
        examples.append(parse_example(content, ordinal, query=query, parser=parser))
    return examples


def extract_category(path: str) -> str | None:
    """Path segment(s) after ``rulesets``, e.g. ``rulesets/security/X.xml`` → ``security``."""
    parts = Path(path).parts
    if "rulesets" not in parts:
        return None
    tail = parts[parts.index("rulesets") + 1:-1]
    return "/".join(tail) or None


def parse_rule_xml(
    text: str,
    path: str = "<inline>",
    parser: SyntaxTreeParser | None = None,
) -> RuleFile:
    """Parse rule XML text; raises ``RuleFileError`` if it is not well-formed."""
    try:
        root = ET.fromstring(text.encode("utf-8"))
    except ET.ParseError as e:
        raise RuleFileError(f"{path}: malformed rule XML: {e}") from e

    metadata = extract_metadata(root)
    return RuleFile(
        path=path,
        metadata=metadata,
        examples=extract_examples(root, query=metadata.query, parser=parser),
        category=extract_category(path),
    )


def read_rule_file(path: str, parser: SyntaxTreeParser | None = None) -> RuleFile:
    """Read and parse a rule file; raises ``RuleFileError`` if unreadable."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise RuleFileError(f"{path}: cannot read rule file: {e}") from e
    return parse_rule_xml(text, path=path, parser=parser)
