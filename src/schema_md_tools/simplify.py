"""Reduction of property definitions to short display type labels."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Union

from .references import resolve_ref

logger = logging.getLogger(__name__)

PRIMITIVE_TYPES = ("string", "number", "boolean", "integer")

REFERENCE_LABEL = "reference"
ENUM_LABEL = "enum"
CONST_LABEL = "const"
OBJECT_LABEL = "object"
ARRAY_LABEL = "array"
COMPLEX_LABEL = "complex"

UNRESOLVED_REFERENCE = "unresolved-reference"
COMPLEX_TYPE = "complex-type"


@dataclass(frozen=True)
class ReferenceShape:
    pointer: str


@dataclass(frozen=True)
class EnumShape:
    values: tuple[Any, ...]


@dataclass(frozen=True)
class ConstShape:
    value: Any


@dataclass(frozen=True)
class PrimitiveShape:
    kind: str


@dataclass(frozen=True)
class ObjectShape:
    pass


@dataclass(frozen=True)
class ArrayShape:
    items: Mapping[str, Any] | None


@dataclass(frozen=True)
class UnmodeledShape:
    pass


PropertyShape = Union[
    ReferenceShape,
    EnumShape,
    ConstShape,
    PrimitiveShape,
    ObjectShape,
    ArrayShape,
    UnmodeledShape,
]


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal rendering anomaly."""

    kind: str
    location: str
    detail: str


class Diagnostics:
    """Collects the rendering anomalies of one document and logs them."""

    def __init__(self, source: str = "") -> None:
        self.source = source
        self._items: list[Diagnostic] = []

    def record(self, kind: str, location: str, detail: str) -> None:
        self._items.append(Diagnostic(kind=kind, location=location, detail=detail))
        where = f"{self.source}:{location}" if self.source else location
        logger.warning("%s at %s: %s", kind, where or "<root>", detail)

    def unresolved_reference(self, location: str, pointer: str) -> None:
        self.record(UNRESOLVED_REFERENCE, location, pointer)

    def complex_type(self, location: str, payload: Mapping[str, Any]) -> None:
        self.record(COMPLEX_TYPE, location, json.dumps(payload, sort_keys=True, default=str))

    @property
    def items(self) -> list[Diagnostic]:
        return list(self._items)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)


def classify(prop: Mapping[str, Any]) -> PropertyShape:
    """Map a property definition onto its display shape.

    ``$ref`` takes precedence over everything, ``enum`` over ``const`` and
    ``type``.
    """
    if "$ref" in prop:
        return ReferenceShape(pointer=str(prop["$ref"]))
    if "enum" in prop:
        values = prop["enum"]
        if not isinstance(values, list):
            values = [values]
        return EnumShape(values=tuple(values))
    if "const" in prop:
        return ConstShape(value=prop["const"])
    prop_type = prop.get("type")
    if prop_type in PRIMITIVE_TYPES:
        return PrimitiveShape(kind=prop_type)
    if prop_type == "object":
        return ObjectShape()
    if prop_type == "array":
        items = prop.get("items")
        return ArrayShape(items=items if isinstance(items, Mapping) else None)
    return UnmodeledShape()


def simplify(
    prop: Mapping[str, Any],
    definitions: Mapping[str, Any] | None,
    diagnostics: Diagnostics | None = None,
    location: str = "",
) -> dict[str, Any]:
    """Return a copy of *prop* decorated with its ``simpletype`` label.

    *definitions* is the owning schema's ``definitions`` map, used to resolve
    local ``$ref`` pointers. Unresolved references and unmodeled shapes are
    recorded in *diagnostics* and degrade to a fallback label. The input
    mapping is never modified.
    """
    if diagnostics is None:
        diagnostics = Diagnostics()
    simplified = dict(prop)

    match classify(prop):
        case ReferenceShape(pointer=pointer):
            resolved = resolve_ref(pointer, definitions)
            if resolved is None:
                diagnostics.unresolved_reference(location, pointer)
                simplified["simpletype"] = REFERENCE_LABEL
            else:
                simplified["title"] = resolved.display
                simplified["$linkVal"] = resolved.link
                simplified["simpletype"] = resolved.link
        case EnumShape(values=values):
            simplified["simpletype"] = ENUM_LABEL
            simplified["meta:enum"] = _enum_descriptions(values, prop.get("meta:enum"))
        case ConstShape():
            simplified["simpletype"] = CONST_LABEL
        case PrimitiveShape(kind=kind):
            simplified["simpletype"] = kind
        case ObjectShape():
            simplified["simpletype"] = OBJECT_LABEL
        case ArrayShape(items=None):
            simplified["simpletype"] = ARRAY_LABEL
        case ArrayShape(items=items):
            inner = simplify(items, definitions, diagnostics, f"{location}/items")
            simplified["items"] = inner
            if inner["simpletype"] == COMPLEX_LABEL:
                simplified["simpletype"] = ARRAY_LABEL
            else:
                simplified["simpletype"] = f"{inner['simpletype']}[]"
            if "$ref" in items and "$linkVal" in inner:
                simplified["title"] = f"`{inner['$linkVal']}[]`"
                simplified["$linkVal"] = inner["$linkVal"]
        case UnmodeledShape():
            diagnostics.complex_type(location, prop)
            simplified["simpletype"] = COMPLEX_LABEL

    return simplified


def enum_key(value: Any) -> str:
    """Return the description-map key of an enumerated literal."""
    if isinstance(value, str):
        return value
    return json.dumps(value, sort_keys=True)


def _enum_descriptions(values: tuple[Any, ...], existing: Any) -> dict[str, Any]:
    descriptions: dict[str, Any] = dict(existing) if isinstance(existing, Mapping) else {}
    for value in values:
        descriptions.setdefault(enum_key(value), "")
    return descriptions
