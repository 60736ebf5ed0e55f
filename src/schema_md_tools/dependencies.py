"""Cross-schema dependency graph built from ``$ref`` pointers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterator, Mapping
from urllib.parse import urljoin

from .references import definition_name
from .schema import Schema

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class DependencyEntry:
    """A reference from schema *source* to definition *definition* of *target*."""

    target: str
    definition: str
    source: str
    title: str
    pointer: str


DependencyMap = dict[str, tuple[DependencyEntry, ...]]


def build_dependency_map(registry: Mapping[str, Schema]) -> DependencyMap:
    """Compute the definitions every schema references in other schemas.

    Must run after every schema has been registered, since a reference may
    point at any other file of the corpus.
    """
    locator = _SchemaLocator(registry)
    dependency_map: DependencyMap = {}
    for identifier, schema in registry.items():
        entries: dict[tuple[str, str], DependencyEntry] = {}
        for pointer in _iter_refs(schema.document):
            entry = _resolve_external(schema, pointer, locator)
            if entry is not None:
                entries.setdefault((entry.target, entry.definition), entry)
        dependency_map[identifier] = tuple(sorted(entries.values()))
        if entries:
            logger.debug("%s depends on %d definition(s)", identifier, len(entries))
    return dependency_map


def dependents_of(dependency_map: DependencyMap, identifier: str) -> list[DependencyEntry]:
    """Return the entries of other schemas that reference *identifier*."""
    dependents = [
        entry
        for entries in dependency_map.values()
        for entry in entries
        if entry.target == identifier
    ]
    return sorted(dependents, key=lambda entry: (entry.source, entry.definition))


class _SchemaLocator:
    def __init__(self, registry: Mapping[str, Schema]) -> None:
        self._by_identifier = dict(registry)
        self._by_id = {
            schema.schema_id: schema for schema in registry.values() if schema.schema_id
        }
        self._by_path = {schema.path: schema for schema in registry.values()}

    def find(self, referrer: Schema, document_ref: str) -> Schema | None:
        if document_ref in self._by_identifier:
            return self._by_identifier[document_ref]
        if document_ref in self._by_id:
            return self._by_id[document_ref]
        if referrer.schema_id:
            joined = urljoin(referrer.schema_id, document_ref)
            if joined in self._by_id:
                return self._by_id[joined]
        if "://" not in document_ref:
            candidate = (referrer.path.parent / document_ref).resolve()
            return self._by_path.get(candidate)
        return None


def _resolve_external(
    schema: Schema, pointer: str, locator: _SchemaLocator
) -> DependencyEntry | None:
    document_ref, _, fragment = pointer.partition("#")
    if not document_ref:
        return None
    target = locator.find(schema, document_ref)
    if target is None:
        logger.warning("%s: cannot locate referenced schema '%s'", schema.identifier, pointer)
        return None
    if target.identifier == schema.identifier:
        return None
    name = definition_name(f"#{fragment}")
    if name is None:
        return None
    definition = target.definitions.get(name)
    if not isinstance(definition, Mapping):
        logger.warning(
            "%s: definition '%s' not found in '%s'", schema.identifier, name, target.identifier
        )
        return None
    title = definition.get("title")
    return DependencyEntry(
        target=target.identifier,
        definition=name,
        source=schema.identifier,
        title=title if isinstance(title, str) and title else name,
        pointer=pointer,
    )


_NAMED_CHILDREN = ("properties", "patternProperties", "definitions")
_LITERAL_KEYWORDS = ("enum", "const", "examples", "default")


def _iter_refs(node: Any) -> Iterator[str]:
    if isinstance(node, Mapping):
        ref = node.get("$ref")
        if isinstance(ref, str):
            yield ref
        for key, value in node.items():
            if key in _LITERAL_KEYWORDS:
                continue
            if key in _NAMED_CHILDREN and isinstance(value, Mapping):
                for child in value.values():
                    yield from _iter_refs(child)
            else:
                yield from _iter_refs(value)
    elif isinstance(node, list):
        for value in node:
            yield from _iter_refs(value)
