"""Generator configuration."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

try:
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - python<3.11
    import tomli as tomllib

from .schema import DEFAULT_SCHEMA_EXTENSION

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

_PATH_KEYS = ("input", "output", "templates", "schema_out")
_KNOWN_KEYS = set(_PATH_KEYS) | {"schema_extension", "readme", "meta", "links", "jobs"}


@dataclass
class GeneratorConfig:
    """Settings shared by the document assembler and the pipeline driver."""

    input: Path | None = None
    output: Path = Path("out")
    templates: Path | None = None
    schema_extension: str = DEFAULT_SCHEMA_EXTENSION
    schema_out: Path | None = None
    write_schemas: bool = True
    readme: bool = True
    meta: dict[str, str] = field(default_factory=dict)
    links: dict[str, str] = field(default_factory=dict)
    jobs: int | None = None

    @property
    def schema_output_dir(self) -> Path | None:
        """Directory for the decorated schema files, ``None`` when disabled."""
        if not self.write_schemas:
            return None
        return self.schema_out if self.schema_out is not None else self.output

    @property
    def template_dirs(self) -> list[Path]:
        """Template search path, custom templates first."""
        if self.templates is None:
            return [DEFAULT_TEMPLATE_DIR]
        return [self.templates, DEFAULT_TEMPLATE_DIR]


def load_config(path: str | Path) -> GeneratorConfig:
    """Read a TOML configuration file.

    Relative paths are resolved against the directory of *path*. A
    ``schema_out`` value of ``"-"`` disables the schema artifacts.
    """
    config_path = Path(path)
    with config_path.open("rb") as handle:
        raw = tomllib.load(handle)
    logger.debug("loaded config %s", config_path)
    return config_from_mapping(raw, base_dir=config_path.resolve().parent)


def config_from_mapping(raw: dict[str, Any], base_dir: Path | None = None) -> GeneratorConfig:
    """Validate a parsed configuration table."""
    unknown = sorted(set(raw) - _KNOWN_KEYS)
    if unknown:
        raise ValueError(f"unknown config keys: {', '.join(unknown)}")

    base = base_dir or Path.cwd()
    config = GeneratorConfig()

    for key in _PATH_KEYS:
        if key not in raw:
            continue
        value = raw[key]
        if not isinstance(value, str) or not value:
            raise ValueError(f"config {key} must be a non-empty string")
        if key == "schema_out" and value == "-":
            config.write_schemas = False
            continue
        setattr(config, key, base / value)

    extension = raw.get("schema_extension", DEFAULT_SCHEMA_EXTENSION)
    if not isinstance(extension, str) or not extension.strip("."):
        raise ValueError("config schema_extension must be a non-empty string")
    config.schema_extension = extension.lstrip(".")

    readme = raw.get("readme", True)
    if not isinstance(readme, bool):
        raise ValueError("config readme must be a boolean")
    config.readme = readme

    jobs = raw.get("jobs")
    if jobs is not None and (isinstance(jobs, bool) or not isinstance(jobs, int) or jobs < 1):
        raise ValueError("config jobs must be a positive integer")
    config.jobs = jobs

    config.meta = _string_table(raw.get("meta", {}), "meta")
    config.links = _string_table(raw.get("links", {}), "links")
    return config


def parse_key_values(items: Iterable[str] | None) -> dict[str, str]:
    """Parse ``KEY=VALUE`` items, ignoring entries without exactly one ``=``."""
    parsed: dict[str, str] = {}
    for item in items or ():
        parts = item.split("=")
        if len(parts) != 2 or not parts[0]:
            logger.warning("ignoring malformed option '%s', expected KEY=VALUE", item)
            continue
        parsed[parts[0]] = parts[1]
    return parsed


def _string_table(value: Any, name: str) -> dict[str, str]:
    if not isinstance(value, dict):
        raise ValueError(f"config {name} must be a table")
    table: dict[str, str] = {}
    for key, entry in value.items():
        if isinstance(entry, bool):
            table[str(key)] = "true" if entry else "false"
        elif isinstance(entry, (str, int, float)):
            table[str(key)] = str(entry)
        else:
            raise ValueError(f"config {name} entries must be scalars")
    return table
