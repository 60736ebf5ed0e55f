"""Tests for Markdown document assembly."""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Any

from schema_md_tools.assemble import (
    DocumentAssembler,
    collapse_blank_lines,
    describe_bounds,
    stringify_examples,
)
from schema_md_tools.config import GeneratorConfig
from schema_md_tools.dependencies import build_dependency_map
from schema_md_tools.schema import Schema
from schema_md_tools.simplify import Diagnostics

PERSON = {
    "$id": "https://example.com/person.schema.json",
    "title": "Person",
    "description": "A human being.",
    "type": "object",
    "properties": {
        "name": {"type": "string", "description": "Full name", "examples": ["Ada"]},
        "home": {"$ref": "#/definitions/address"},
        "tags": {"type": "array", "items": {"type": "string"}},
    },
    "patternProperties": {"^x-": {"type": "string"}},
    "required": ["name"],
    "definitions": {"address": {"title": "Address", "type": "object"}},
    "examples": [{"name": "Ada"}],
}


def _schema(document: dict[str, Any], relative: str = "person.schema.json") -> Schema:
    return Schema(
        identifier=document.get("$id", f"/schemas/{relative}"),
        path=Path("/schemas") / relative,
        relative_path=PurePosixPath(relative),
        document=document,
    )


def _render(document: dict[str, Any], config: GeneratorConfig | None = None) -> str:
    schema = _schema(document)
    assembler = DocumentAssembler(config or GeneratorConfig(), {schema.identifier: schema})
    return assembler.render_schema(schema, {schema.identifier: ()}).text


def test_assemble_builds_sections_in_order() -> None:
    schema = _schema(PERSON)
    assembler = DocumentAssembler(GeneratorConfig())

    context = assembler.assemble(schema, {})

    assert [section.template for section in context] == [
        "frontmatter",
        "header",
        "examples",
        "properties",
        "property",
        "property",
        "property",
        "pattern-property",
    ]
    assert [section.data["name"] for section in context[4:7]] == ["home", "name", "tags"]
    name_section = context[5].data
    assert name_section["required"] is True
    assert name_section["examples"] == ['"Ada"']
    assert name_section["prop"]["simpletype"] == "string"


def test_assemble_without_properties_has_no_property_sections() -> None:
    schema = _schema({"title": "Empty", "definitions": {"a": {"type": "string"}}})
    context = DocumentAssembler(GeneratorConfig()).assemble(schema, {})
    assert [section.template for section in context] == ["frontmatter", "header"]


def test_assemble_reuses_overview_slugs() -> None:
    schema = _schema(
        {
            "title": "Slugs",
            "properties": {"type": {"type": "string"}, "Type": {"type": "integer"}},
        }
    )

    context = DocumentAssembler(GeneratorConfig()).assemble(schema, {})

    overview = {item["name"]: item["slug"] for item in context[2].data["props"]}
    sections = {section.data["name"]: section.data["slug"] for section in context[3:]}
    assert overview == sections == {"Type": "type", "type": "type-1"}


def test_assemble_records_unresolved_reference_once() -> None:
    schema = _schema(
        {"title": "Broken", "properties": {"home": {"$ref": "#/definitions/missing"}}}
    )
    assembler = DocumentAssembler(GeneratorConfig())
    diagnostics = Diagnostics()

    context = assembler.assemble(schema, {}, diagnostics)
    text = assembler.render(context)

    assert len(diagnostics) == 1
    assert "| [home](#home) | `reference` | Optional |" in text


def test_render_schema_produces_markdown() -> None:
    text = _render(PERSON)

    assert text.startswith("# Person Schema\n")
    assert "https://example.com/person.schema.json" in text
    assert "A human being." in text
    assert (
        "| Abstract | Extensible | Status | Identifiable | Custom Properties "
        "| Additional Properties | Defined In |"
    ) in text
    assert "| [name](#name) | `string` | **Required** | Person (this schema) |" in text
    assert "| [home](#home) | `Address` | Optional | Person (this schema) |" in text
    assert "| [tags](#tags) | `string[]` | Optional | Person (this schema) |" in text
    assert "| `^x-` | `string` | Pattern | Person (this schema) |" in text
    assert '<a id="name"></a>\n## name' in text
    assert "### `Address`" in text
    assert "## Pattern: `^x-`" in text
    assert '"name": "Ada"' in text
    assert "\n\n\n" not in text
    assert text.endswith("\n")


def test_render_schema_shows_default_and_bounds() -> None:
    text = _render(
        {
            "title": "Bounds docs",
            "properties": {
                "tolerance": {"type": "number", "minimum": 0.0, "exclusiveMaximum": 1.0},
                "grid": {"type": "integer", "default": 7},
            },
        }
    )

    assert "Default: `7`" in text
    assert "Minimum: `>= 0.0`" in text
    assert "Maximum: `< 1.0`" in text


def test_render_schema_lists_enum_values() -> None:
    text = _render(
        {
            "title": "Enum docs",
            "properties": {
                "method": {"enum": ["DDS", "MCMC"], "meta:enum": {"DDS": "Dynamically dimensioned"}}
            },
        }
    )

    assert '| `"DDS"` | Dynamically dimensioned |' in text
    assert '| `"MCMC"` |  |' in text


def test_render_schema_with_front_matter_and_links() -> None:
    config = GeneratorConfig(meta={"template": "reference"}, links={"abstract": "abstract.md"})

    text = _render(PERSON, config)

    assert text.startswith('---\ntemplate: "reference"\n---\n')
    assert "[Abstract](abstract.md)" in text


def test_render_schema_links_dependencies() -> None:
    common = _schema(
        {
            "$id": "https://example.com/common.schema.json",
            "title": "Common",
            "definitions": {"address": {"title": "Address"}},
        },
        "common.schema.json",
    )
    person = _schema(
        {
            "$id": "https://example.com/people/person.schema.json",
            "title": "Person",
            "properties": {
                "home": {"$ref": "https://example.com/common.schema.json#/definitions/address"}
            },
        },
        "people/person.schema.json",
    )
    registry = {common.identifier: common, person.identifier: person}
    dependency_map = build_dependency_map(registry)
    assembler = DocumentAssembler(GeneratorConfig(), registry)

    person_text = assembler.render_schema(person, dependency_map).text
    common_text = assembler.render_schema(common, dependency_map).text

    assert "## Schema Hierarchy" in person_text
    assert (
        "  * [Common](../common.schema.md) "
        "`https://example.com/common.schema.json#/definitions/address`"
    ) in person_text
    assert "* [Person](people/person.schema.md) uses `address`" in common_text


def test_render_schema_resolves_header_links_for_nested_documents() -> None:
    schema = _schema({"title": "Person"}, "people/person.schema.json")
    config = GeneratorConfig(
        links={"abstract": "abstract.md", "status": "https://example.com/status.md"}
    )
    assembler = DocumentAssembler(config, {schema.identifier: schema})

    text = assembler.render_schema(schema, {schema.identifier: ()}).text

    assert "[Abstract](../abstract.md)" in text
    assert "[Status](https://example.com/status.md)" in text


def test_render_schema_escapes_table_cells() -> None:
    text = _render(
        {
            "title": "Pipes",
            "properties": {
                "a|b": {"enum": ["x|y"], "meta:enum": {"x|y": "left | right"}},
            },
        }
    )

    assert "| [a\\|b](#ab) | `enum` |" in text
    assert '| `"x\\|y"` | left \\| right |' in text


def test_render_schema_quotes_front_matter_values() -> None:
    text = _render(PERSON, GeneratorConfig(meta={"title": "a: b"}))
    assert text.startswith('---\ntitle: "a: b"\n---\n')


def test_custom_templates_override_defaults(tmp_path: Path) -> None:
    (tmp_path / "header.md.j2").write_text("CUSTOM {{ title }}\n")

    text = _render(PERSON, GeneratorConfig(templates=tmp_path))

    assert text.startswith("CUSTOM Person\n")
    assert "# Person Properties" in text


def test_stringify_examples() -> None:
    assert stringify_examples(None) is None
    assert stringify_examples([]) is None
    assert stringify_examples("Ada") == ['"Ada"']
    assert stringify_examples([{"a": 1}]) == ['{\n  "a": 1\n}']


def test_collapse_blank_lines() -> None:
    assert collapse_blank_lines("a\n\n\n\nb\n  \n\nc\n\nd") == "a\n\nb\n\nc\n\nd"


def test_describe_bounds_draft4_exclusive_flags() -> None:
    assert describe_bounds({"minimum": 1, "exclusiveMinimum": True, "maxLength": 4}) == [
        "Minimum: `> 1`",
        "Maximum length: `4`",
    ]
