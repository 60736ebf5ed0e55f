"""Resolution of local ``$ref`` pointers into a schema's definitions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

DEFINITIONS_PREFIX = "#/definitions/"


@dataclass(frozen=True)
class ResolvedRef:
    """A ``$ref`` that points at an existing local definition."""

    name: str
    title: str

    @property
    def display(self) -> str:
        return f"`{self.title}`"

    @property
    def link(self) -> str:
        return self.title


def definition_name(pointer: str) -> str | None:
    """Return the definition name addressed by a ``#/definitions/<name>`` pointer."""
    if not pointer.startswith(DEFINITIONS_PREFIX):
        return None
    name = pointer[len(DEFINITIONS_PREFIX) :]
    if not name or "/" in name:
        return None
    return name.replace("~1", "/").replace("~0", "~")


def resolve_ref(pointer: str, definitions: Mapping[str, Any] | None) -> ResolvedRef | None:
    """Resolve *pointer* against *definitions*.

    Only same-document pointers of the form ``#/definitions/<name>`` are
    resolved. Any other pointer, or a name missing from *definitions*,
    yields ``None``.
    """
    name = definition_name(pointer)
    if name is None or not definitions:
        return None
    definition = definitions.get(name)
    if not isinstance(definition, Mapping):
        return None
    title = definition.get("title")
    if not isinstance(title, str) or not title:
        title = name
    return ResolvedRef(name=name, title=title)
