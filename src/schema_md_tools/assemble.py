"""Markdown documentation generation."""

from __future__ import annotations

import json
import logging
import posixpath
import re
from dataclasses import asdict, dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Iterable, Mapping

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from .config import GeneratorConfig
from .dependencies import DependencyEntry, DependencyMap, dependents_of
from .flatten import flatten_pattern_properties, flatten_properties
from .header import build_header_rows
from .schema import Schema
from .simplify import Diagnostics, enum_key
from .slugs import slugify

logger = logging.getLogger(__name__)

TEMPLATE_NAMES = (
    "frontmatter",
    "header",
    "examples",
    "properties",
    "property",
    "pattern-property",
    "readme",
)

_BLANK_RUN_RE = re.compile(r"\n(?:[ \t]*\n){2,}")


@dataclass(frozen=True)
class Section:
    """One template invocation of a document."""

    template: str
    data: dict[str, Any]


RenderContext = list[Section]


@dataclass
class RenderedDocument:
    """Markdown output for one schema plus the decorations computed for it."""

    schema: Schema
    output_path: PurePosixPath
    text: str
    properties: dict[str, dict[str, Any]] = field(default_factory=dict)
    pattern_properties: dict[str, dict[str, Any]] = field(default_factory=dict)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


@dataclass(frozen=True)
class SchemaSummary:
    """Index data of one schema."""

    title: str
    identifier: str
    relative_path: str
    output_path: str
    abstract: bool


def build_environment(template_dirs: Iterable[str | Path]) -> Environment:
    """Create the Jinja2 environment searching *template_dirs* in order."""
    environment = Environment(
        loader=FileSystemLoader([str(path) for path in template_dirs]),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    environment.filters["json"] = _to_json
    environment.filters["enum_key"] = enum_key
    environment.filters["cell"] = table_cell
    environment.globals["bounds"] = describe_bounds
    return environment


def _to_json(value: Any, indent: int | None = None) -> str:
    return json.dumps(value, indent=indent, ensure_ascii=False)


def table_cell(value: Any) -> str:
    """Escape *value* for use inside a Markdown table cell."""
    return " ".join(str(value).splitlines()).replace("|", "\\|")


def describe_bounds(prop: Mapping[str, Any]) -> list[str]:
    """Return human readable range and length constraints of *prop*."""
    lines: list[str] = []
    minimum = prop.get("minimum")
    exclusive_minimum = prop.get("exclusiveMinimum")
    if isinstance(exclusive_minimum, (int, float)) and not isinstance(exclusive_minimum, bool):
        lines.append(f"Minimum: `> {exclusive_minimum}`")
    elif minimum is not None:
        operator = ">" if exclusive_minimum is True else ">="
        lines.append(f"Minimum: `{operator} {minimum}`")
    maximum = prop.get("maximum")
    exclusive_maximum = prop.get("exclusiveMaximum")
    if isinstance(exclusive_maximum, (int, float)) and not isinstance(exclusive_maximum, bool):
        lines.append(f"Maximum: `< {exclusive_maximum}`")
    elif maximum is not None:
        operator = "<" if exclusive_maximum is True else "<="
        lines.append(f"Maximum: `{operator} {maximum}`")
    for key, label in (
        ("multipleOf", "Multiple of"),
        ("minLength", "Minimum length"),
        ("maxLength", "Maximum length"),
        ("minItems", "Minimum items"),
        ("maxItems", "Maximum items"),
    ):
        if key in prop:
            lines.append(f"{label}: `{prop[key]}`")
    return lines


def template_file(name: str) -> str:
    if name not in TEMPLATE_NAMES:
        raise ValueError(f"unknown template '{name}'")
    return f"{name}.md.j2"


def stringify_examples(examples: Any) -> list[str] | None:
    """Serialize example values for display, ``None`` when there are none."""
    if examples is None:
        return None
    if not isinstance(examples, list):
        examples = [examples]
    if not examples:
        return None
    return [json.dumps(example, indent=2, ensure_ascii=False) for example in examples]


def collapse_blank_lines(text: str) -> str:
    """Reduce every run of blank lines in *text* to a single blank line."""
    return _BLANK_RUN_RE.sub("\n\n", text)


def summarize(schema: Schema) -> SchemaSummary:
    return SchemaSummary(
        title=schema.title,
        identifier=schema.identifier,
        relative_path=str(schema.relative_path),
        output_path=str(schema.output_path),
        abstract=schema.is_abstract,
    )


class DocumentAssembler:
    """Builds and renders the Markdown document of a schema.

    One instance may be shared between threads: all per-document state
    (slugs, diagnostics, decorated properties) lives in local variables.
    """

    def __init__(
        self,
        config: GeneratorConfig,
        registry: Mapping[str, Schema] | None = None,
        environment: Environment | None = None,
    ) -> None:
        self.config = config
        self.registry = registry or {}
        self.environment = environment or build_environment(config.template_dirs)

    def assemble(
        self,
        schema: Schema,
        dependency_map: DependencyMap,
        diagnostics: Diagnostics | None = None,
    ) -> RenderContext:
        """Return the ordered sections of the document for *schema*."""
        if diagnostics is None:
            diagnostics = Diagnostics(source=str(schema.relative_path))
        context, _, _ = self._build(schema, dependency_map, diagnostics)
        return context

    def render(self, context: RenderContext) -> str:
        """Render every section of *context* and join the fragments."""
        fragments: list[str] = []
        for section in context:
            template = self.environment.get_template(template_file(section.template))
            fragment = template.render(section.data).strip("\n")
            if fragment.strip():
                fragments.append(fragment)
        return collapse_blank_lines("\n\n".join(fragments)) + "\n"

    def render_schema(self, schema: Schema, dependency_map: DependencyMap) -> RenderedDocument:
        """Assemble and render *schema* in one step."""
        diagnostics = Diagnostics(source=str(schema.relative_path))
        context, properties, pattern_properties = self._build(schema, dependency_map, diagnostics)
        logger.info("rendering %s", schema.output_path)
        return RenderedDocument(
            schema=schema,
            output_path=schema.output_path,
            text=self.render(context),
            properties=properties,
            pattern_properties=pattern_properties,
            diagnostics=diagnostics,
        )

    def render_readme(self, schemas: Iterable[Schema]) -> str:
        """Render the index document listing *schemas*."""
        summaries = sorted((summarize(schema) for schema in schemas), key=lambda s: s.output_path)
        data = {
            "meta": dict(self.config.meta),
            "top_level": [asdict(summary) for summary in summaries if not summary.abstract],
            "other": [asdict(summary) for summary in summaries if summary.abstract],
        }
        return self.render(
            [Section("frontmatter", {"meta": data["meta"]}), Section("readme", data)]
        )

    def _build(
        self,
        schema: Schema,
        dependency_map: DependencyMap,
        diagnostics: Diagnostics,
    ) -> tuple[RenderContext, dict[str, dict[str, Any]], dict[str, dict[str, Any]]]:
        context: RenderContext = [
            Section("frontmatter", {"meta": dict(self.config.meta)}),
            Section("header", self._header_data(schema, dependency_map)),
        ]

        examples = stringify_examples(schema.examples)
        if examples:
            context.append(Section("examples", {"title": schema.title, "examples": examples}))

        if not schema.properties:
            return context, {}, {}

        definitions = schema.definitions
        properties = flatten_properties(
            schema.properties, schema.required, definitions, diagnostics
        )
        pattern_properties = flatten_pattern_properties(
            schema.pattern_properties, definitions, diagnostics
        )
        slugs = slugify(properties)
        names = sorted(properties)
        patterns = list(pattern_properties)

        context.append(
            Section(
                "properties",
                {
                    "title": schema.title,
                    "props": [
                        {"name": name, "slug": slugs[name], "prop": properties[name]}
                        for name in names
                    ],
                    "pprops": [
                        {"name": pattern, "prop": pattern_properties[pattern]}
                        for pattern in patterns
                    ],
                    "additional": schema.document.get("additionalProperties") is not False,
                },
            )
        )
        for name in names:
            prop = properties[name]
            context.append(
                Section(
                    "property",
                    {
                        "name": name,
                        "slug": slugs[name],
                        "required": prop["isrequired"],
                        "examples": stringify_examples(prop.get("examples")),
                        "prop": prop,
                    },
                )
            )
        for pattern in patterns:
            prop = pattern_properties[pattern]
            context.append(
                Section(
                    "pattern-property",
                    {
                        "name": pattern,
                        "examples": stringify_examples(prop.get("examples")),
                        "prop": prop,
                    },
                )
            )
        return context, properties, pattern_properties

    def _header_data(self, schema: Schema, dependency_map: DependencyMap) -> dict[str, Any]:
        rows = build_header_rows(schema, self.config.links)
        return {
            "title": schema.title,
            "id": schema.schema_id,
            "description": schema.description,
            "rows": [asdict(row) for row in rows],
            "table": {
                "headers": [f"[{row.name}]({row.link})" if row.link else row.name for row in rows],
                "rules": ["-" * max(len(row.name), 3) for row in rows],
                "values": [row.value for row in rows],
            },
            "dependencies": [
                self._link_entry(schema, entry, entry.target)
                for entry in dependency_map.get(schema.identifier, ())
            ],
            "dependents": [
                self._link_entry(schema, entry, entry.source)
                for entry in dependents_of(dependency_map, schema.identifier)
            ],
        }

    def _link_entry(self, schema: Schema, entry: DependencyEntry, other: str) -> dict[str, Any]:
        other_schema = self.registry.get(other)
        link = None
        title = other
        if other_schema is not None:
            title = other_schema.title
            start = posixpath.dirname(str(schema.output_path)) or "."
            link = posixpath.relpath(str(other_schema.output_path), start)
        return {
            "id": other,
            "title": title,
            "definition": entry.definition,
            "definition_title": entry.title,
            "pointer": entry.pointer,
            "link": link,
        }
