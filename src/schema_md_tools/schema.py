"""Schema loading utilities."""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any, Iterable, Mapping

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA_EXTENSION = "schema.json"


class SchemaLoadError(ValueError):
    """Raised when a schema file cannot be read, parsed or registered."""


@dataclass(frozen=True)
class Schema:
    """A parsed JSON Schema document and where it was loaded from."""

    identifier: str
    path: Path
    relative_path: PurePosixPath
    document: Mapping[str, Any]

    @property
    def schema_id(self) -> str | None:
        value = self.document.get("$id", self.document.get("id"))
        return value if isinstance(value, str) and value else None

    @property
    def title(self) -> str:
        title = self.document.get("title")
        if isinstance(title, str) and title:
            return title
        return self.relative_path.name

    @property
    def description(self) -> str | None:
        description = self.document.get("description")
        return description if isinstance(description, str) else None

    @property
    def properties(self) -> Mapping[str, Any]:
        return _mapping(self.document.get("properties"))

    @property
    def pattern_properties(self) -> Mapping[str, Any]:
        return _mapping(self.document.get("patternProperties"))

    @property
    def definitions(self) -> Mapping[str, Any]:
        return _mapping(self.document.get("definitions"))

    @property
    def required(self) -> list[str]:
        required = self.document.get("required")
        if not isinstance(required, list):
            return []
        return [name for name in required if isinstance(name, str)]

    @property
    def examples(self) -> Any:
        return self.document.get("examples")

    @property
    def is_abstract(self) -> bool:
        return "definitions" in self.document and not self.properties

    @property
    def output_path(self) -> PurePosixPath:
        """Relative location of the rendered Markdown document."""
        return self.relative_path.with_suffix(".md")


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def load_schema(path: str | Path, base_dir: str | Path | None = None) -> Schema:
    """Load a schema definition from *path*.

    Parameters
    ----------
    path:
        Location of the schema file.
    base_dir:
        Directory the relative output location is computed against. Defaults
        to the parent directory of *path*.
    """
    schema_path = Path(path).resolve()
    base = Path(base_dir).resolve() if base_dir is not None else schema_path.parent
    try:
        text = schema_path.read_text(encoding="utf-8")
    except OSError as err:
        raise SchemaLoadError(f"cannot read schema '{schema_path}': {err}") from err
    try:
        document = json.loads(text)
    except json.JSONDecodeError as err:
        raise SchemaLoadError(f"invalid JSON in schema '{schema_path}': {err}") from err
    if not isinstance(document, dict):
        raise SchemaLoadError(f"schema '{schema_path}' must be a JSON object")

    try:
        relative = PurePosixPath(schema_path.relative_to(base).as_posix())
    except ValueError as err:
        raise SchemaLoadError(f"schema '{schema_path}' is not located below '{base}'") from err

    identifier = document.get("$id", document.get("id"))
    if not isinstance(identifier, str) or not identifier:
        identifier = schema_path.as_posix()

    logger.debug("loaded schema %s as %s", schema_path, identifier)
    return Schema(
        identifier=identifier,
        path=schema_path,
        relative_path=relative,
        document=document,
    )


def discover_schema_files(
    input_path: str | Path,
    schema_extension: str = DEFAULT_SCHEMA_EXTENSION,
) -> tuple[Path, list[Path]]:
    """Return the base directory and the sorted schema files below *input_path*.

    A single file is returned as-is with its parent directory as base.
    """
    root = Path(input_path).resolve()
    if root.is_file():
        return root.parent, [root]
    if not root.is_dir():
        raise SchemaLoadError(f"input '{root}' does not exist")
    suffix = schema_extension.lstrip(".")
    files = sorted(path for path in root.rglob(f"*.{suffix}") if path.is_file())
    return root, files


def build_registry(schemas: Iterable[Schema]) -> dict[str, Schema]:
    """Register *schemas* by identifier, rejecting duplicates."""
    registry: dict[str, Schema] = {}
    for schema in schemas:
        existing = registry.get(schema.identifier)
        if existing is not None:
            raise SchemaLoadError(
                f"duplicate schema identifier '{schema.identifier}' "
                f"in '{existing.path}' and '{schema.path}'"
            )
        registry[schema.identifier] = schema
    return registry


def load_schemas(
    files: Iterable[str | Path],
    base_dir: str | Path,
    *,
    jobs: int | None = None,
) -> dict[str, Schema]:
    """Load every file in *files* concurrently and register the results.

    The first load error aborts the whole operation.
    """
    paths = list(files)
    with ThreadPoolExecutor(max_workers=jobs) as executor:
        schemas = list(executor.map(lambda path: load_schema(path, base_dir), paths))
    registry = build_registry(schemas)
    logger.info("registered %d schema(s) from %s", len(registry), Path(base_dir))
    return registry
