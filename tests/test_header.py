"""Tests for the schema header attribute table."""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Any

from schema_md_tools.header import build_header_rows
from schema_md_tools.schema import Schema


def _schema(document: dict[str, Any], relative: str = "person.schema.json") -> Schema:
    return Schema(
        identifier=f"/schemas/{relative}",
        path=Path("/schemas") / relative,
        relative_path=PurePosixPath(relative),
        document=document,
    )


def test_header_rows_in_display_order() -> None:
    rows = build_header_rows(_schema({"properties": {"a": {}}, "additionalProperties": False}))

    assert [row.name for row in rows] == [
        "Abstract",
        "Extensible",
        "Status",
        "Identifiable",
        "Custom Properties",
        "Additional Properties",
        "Defined In",
    ]
    assert rows[0].value == "Can be instantiated"
    assert rows[2].value == "Experimental"
    assert rows[5].value == "Forbidden"
    assert rows[6].value == "person.schema.json"


def test_header_links_are_relative_to_the_document() -> None:
    links = {
        "abstract": "abstract.md",
        "status": "docs/status.md",
        "id": "https://example.com/id.md",
    }

    top = {row.key: row.link for row in build_header_rows(_schema({}), links)}
    nested = {
        row.key: row.link
        for row in build_header_rows(_schema({}, "a/b/person.schema.json"), links)
    }

    assert top["abstract"] == "abstract.md"
    assert nested["abstract"] == "../../abstract.md"
    assert nested["status"] == "../../docs/status.md"
    assert nested["id"] == "https://example.com/id.md"
    assert nested["extensible"] is None
    assert nested[None] is None
