"""Loading, rendering and writing of a whole schema corpus."""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping

from .assemble import DocumentAssembler, RenderedDocument
from .config import GeneratorConfig
from .dependencies import DependencyMap, build_dependency_map
from .schema import Schema, discover_schema_files, load_schemas

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Files written by :func:`generate_docs`."""

    documents: list[Path]
    schemas: list[Path]
    readme: Path | None
    diagnostics: int


def load_corpus(config: GeneratorConfig) -> tuple[Path, dict[str, Schema], bool]:
    """Load and register every schema below ``config.input``.

    Returns the base directory, the registry, and whether the input was a
    directory.
    """
    if config.input is None:
        raise ValueError("no input path configured")
    base_dir, files = discover_schema_files(config.input, config.schema_extension)
    registry = load_schemas(files, base_dir, jobs=config.jobs)
    logger.info(
        "finished reading all *.%s files in %s, beginning processing",
        config.schema_extension,
        base_dir,
    )
    return base_dir, registry, Path(config.input).resolve().is_dir()


def render_all(
    assembler: DocumentAssembler,
    registry: Mapping[str, Schema],
    dependency_map: DependencyMap,
    *,
    jobs: int | None = None,
) -> list[RenderedDocument]:
    """Render every registered schema; independent documents run concurrently."""
    schemas = sorted(registry.values(), key=lambda schema: str(schema.output_path))
    with ThreadPoolExecutor(max_workers=jobs) as executor:
        return list(
            executor.map(lambda schema: assembler.render_schema(schema, dependency_map), schemas)
        )


def write_document(output_dir: Path, document: RenderedDocument) -> Path:
    target = output_dir / Path(document.output_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(document.text, encoding="utf-8")
    logger.debug("wrote %s", target)
    return target


def write_readme(assembler: DocumentAssembler, output_dir: Path, schemas: Iterable[Schema]) -> Path:
    """Write the ``README.md`` index of *schemas* into *output_dir*."""
    target = output_dir / "README.md"
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(assembler.render_readme(schemas), encoding="utf-8")
    logger.info("wrote index %s", target)
    return target


def decorated_document(document: RenderedDocument) -> dict[str, Any]:
    """Return the schema of *document* with its decorated property maps."""
    decorated = dict(document.schema.document)
    if document.properties:
        decorated["properties"] = document.properties
    if document.pattern_properties:
        decorated["patternProperties"] = document.pattern_properties
    return decorated


def write_schema_artifacts(output_dir: Path, documents: Iterable[RenderedDocument]) -> list[Path]:
    """Write the decorated schemas below *output_dir*, mirroring the input tree."""
    written: list[Path] = []
    for document in documents:
        target = output_dir / Path(document.schema.relative_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(
            json.dumps(decorated_document(document), indent=2, ensure_ascii=False) + "\n",
            encoding="utf-8",
        )
        written.append(target)
    logger.info("wrote %d schema file(s) to %s", len(written), output_dir)
    return written


def generate_docs(config: GeneratorConfig) -> GenerationResult:
    """Generate the Markdown documentation described by *config*.

    All schemas are loaded and registered before the dependency map is built
    and any document is rendered. A load error aborts before anything is
    written.
    """
    _, registry, is_directory = load_corpus(config)
    dependency_map = build_dependency_map(registry)
    assembler = DocumentAssembler(config, registry)
    documents = render_all(assembler, registry, dependency_map, jobs=config.jobs)

    output_dir = Path(config.output)
    logger.info("output directory: %s", output_dir.resolve())
    written = [write_document(output_dir, document) for document in documents]

    readme: Path | None = None
    if config.readme and is_directory:
        readme = write_readme(assembler, output_dir, registry.values())

    schema_files: list[Path] = []
    schema_dir = config.schema_output_dir
    if schema_dir is not None:
        schema_files = write_schema_artifacts(Path(schema_dir), documents)

    diagnostics = sum(len(document.diagnostics) for document in documents)
    logger.info(
        "processing complete: %d document(s), %d diagnostic(s)", len(written), diagnostics
    )
    return GenerationResult(
        documents=written,
        schemas=schema_files,
        readme=readme,
        diagnostics=diagnostics,
    )
