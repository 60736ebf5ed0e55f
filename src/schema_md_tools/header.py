"""Attribute table rendered at the top of every schema document."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from typing import Any, Mapping

from .schema import Schema


@dataclass(frozen=True)
class HeaderRow:
    """One column of the header table.

    ``link`` points at a document explaining the attribute, if the caller
    supplied one for the attribute's key.
    """

    name: str
    key: str | None
    value: str
    link: str | None = None


def build_header_rows(schema: Schema, links: Mapping[str, str] | None = None) -> list[HeaderRow]:
    """Return the header attributes of *schema* in display order.

    Relative *links* are taken relative to the output root and rewritten to
    be relative to the document of *schema*.
    """
    links = links or {}
    document = schema.document
    extensible_flag = document.get("meta:extensible") is True

    rows = [
        (
            "Abstract",
            "abstract",
            "Cannot be instantiated" if schema.is_abstract else "Can be instantiated",
        ),
        (
            "Extensible",
            "extensible",
            "Yes" if "definitions" in document or extensible_flag else "No",
        ),
        ("Status", "status", _status(document)),
        ("Identifiable", "id", "Yes" if _is_identifiable(schema.properties) else "No"),
        ("Custom Properties", "custom", "Allowed" if extensible_flag else "Forbidden"),
        (
            "Additional Properties",
            "additional",
            "Forbidden" if document.get("additionalProperties") is False else "Permitted",
        ),
        ("Defined In", None, str(schema.relative_path)),
    ]
    return [
        HeaderRow(
            name=name,
            key=key,
            value=value,
            link=_resolve_link(links.get(key), schema) if key else None,
        )
        for name, key, value in rows
    ]


def _resolve_link(link: str | None, schema: Schema) -> str | None:
    if not link or "://" in link or link.startswith(("/", "#")):
        return link
    start = posixpath.dirname(str(schema.output_path)) or "."
    return posixpath.relpath(link, start)


def _status(document: Mapping[str, Any]) -> str:
    status = document.get("meta:status")
    if isinstance(status, str) and status:
        return status[0].upper() + status[1:]
    return "Experimental"


def _is_identifiable(properties: Mapping[str, Any]) -> bool:
    identifier = properties.get("@id")
    return isinstance(identifier, Mapping) and identifier.get("format") == "uri"
