"""Merging of required markers and type labels into property maps."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from .simplify import Diagnostics, simplify


def flatten_properties(
    properties: Mapping[str, Any] | None,
    required: Iterable[str] | None,
    definitions: Mapping[str, Any] | None,
    diagnostics: Diagnostics | None = None,
) -> dict[str, dict[str, Any]]:
    """Return decorated copies of *properties*.

    Every property carries ``isrequired`` and ``simpletype``. Names listed in
    *required* that do not exist in *properties* are ignored.
    """
    if diagnostics is None:
        diagnostics = Diagnostics()
    required_set = set(required or ())
    flattened: dict[str, dict[str, Any]] = {}
    for name, prop in (properties or {}).items():
        if not isinstance(prop, Mapping):
            prop = {}
        decorated = simplify(prop, definitions, diagnostics, f"properties/{name}")
        decorated["isrequired"] = name in required_set
        flattened[name] = decorated
    return flattened


def flatten_pattern_properties(
    pattern_properties: Mapping[str, Any] | None,
    definitions: Mapping[str, Any] | None,
    diagnostics: Diagnostics | None = None,
) -> dict[str, dict[str, Any]]:
    """Return decorated copies of *pattern_properties*."""
    if diagnostics is None:
        diagnostics = Diagnostics()
    return {
        pattern: simplify(
            prop if isinstance(prop, Mapping) else {},
            definitions,
            diagnostics,
            f"patternProperties/{pattern}",
        )
        for pattern, prop in (pattern_properties or {}).items()
    }
