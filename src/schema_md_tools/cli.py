"""Command line interface for schema-md-tools."""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Callable

from .config import GeneratorConfig, load_config, parse_key_values
from .dependencies import build_dependency_map
from .pipeline import generate_docs, load_corpus
from .schema import SchemaLoadError

Handler = Callable[[argparse.Namespace], int]

logger = logging.getLogger("schema_md_tools")


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        number = None
    if number is None or number < 1:
        raise argparse.ArgumentTypeError(f"jobs must be a positive integer, got '{value}'")
    return number


def _build_config(args: argparse.Namespace) -> GeneratorConfig:
    config = load_config(args.config) if args.config else GeneratorConfig()
    if args.input is not None:
        config.input = Path(args.input)
    if getattr(args, "schema_extension", None):
        config.schema_extension = args.schema_extension.lstrip(".")
    if getattr(args, "out", None) is not None:
        config.output = Path(args.out)
    if getattr(args, "templates", None) is not None:
        config.templates = Path(args.templates)
    schema_out = getattr(args, "schema_out", None)
    if schema_out == "-":
        config.write_schemas = False
    elif schema_out is not None:
        config.schema_out = Path(schema_out)
        config.write_schemas = True
    if getattr(args, "no_readme", False):
        config.readme = False
    config.meta.update(parse_key_values(getattr(args, "meta", None)))
    config.links.update(parse_key_values(getattr(args, "link", None)))
    if getattr(args, "jobs", None) is not None:
        config.jobs = args.jobs
    if config.input is None:
        raise ValueError("an input path is required (-d/--input or 'input' in the config)")
    if not config.input.exists():
        raise ValueError(f"input '{config.input}' does not exist")
    if config.templates is not None and not config.templates.is_dir():
        raise ValueError(f"template directory '{config.templates}' does not exist")
    return config


def _handle_gen_docs(args: argparse.Namespace) -> int:
    """Generate Markdown documentation for a schema file or directory."""
    config = _build_config(args)
    result = generate_docs(config)
    print(f"wrote {len(result.documents)} document(s) to {config.output}")
    return 0


def _handle_deps(args: argparse.Namespace) -> int:
    """Print the cross-schema dependency map as JSON."""
    config = _build_config(args)
    _, registry, _ = load_corpus(config)
    dependency_map = build_dependency_map(registry)
    payload = {
        identifier: [asdict(entry) for entry in entries]
        for identifier, entries in sorted(dependency_map.items())
    }
    print(json.dumps(payload, indent=2))
    return 0


def _add_input_arguments(sub: argparse.ArgumentParser) -> None:
    sub.add_argument(
        "-d",
        "--input",
        help="schema file or directory containing the schemas",
    )
    sub.add_argument("-c", "--config", help="TOML configuration file")
    sub.add_argument(
        "-e",
        "--schema-extension",
        help="schema file extension, e.g. 'schema.json' (default) or 'json'",
    )
    sub.add_argument("-j", "--jobs", type=_positive_int, help="number of worker threads")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="schema-md-tools",
        description="Generate Markdown documentation from JSON Schema.",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="log debug output")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="only log errors")
    subparsers = parser.add_subparsers(dest="command", required=True)

    gen_docs = subparsers.add_parser("gen-docs", help=_handle_gen_docs.__doc__)
    _add_input_arguments(gen_docs)
    gen_docs.add_argument("-o", "--out", help="output directory (default: ./out)")
    gen_docs.add_argument("-t", "--templates", help="directory with template overrides")
    gen_docs.add_argument(
        "-x",
        "--schema-out",
        help="directory for the decorated schema files, or '-' to skip them",
    )
    gen_docs.add_argument(
        "-n", "--no-readme", action="store_true", help="do not generate a README.md index"
    )
    gen_docs.add_argument(
        "-m",
        "--meta",
        action="append",
        metavar="KEY=VALUE",
        help="front matter entry, may be repeated",
    )
    gen_docs.add_argument(
        "--link",
        action="append",
        metavar="ATTR=PATH",
        help="document explaining a header attribute, e.g. abstract=abstract.md",
    )
    gen_docs.set_defaults(func=_handle_gen_docs)

    deps = subparsers.add_parser("deps", help=_handle_deps.__doc__)
    _add_input_arguments(deps)
    deps.set_defaults(func=_handle_deps)

    return parser


def _configure_logging(args: argparse.Namespace) -> None:
    level = logging.INFO
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.ERROR
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def main(argv: list[str] | None = None) -> int:
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args)
    handler: Handler = args.func
    try:
        return handler(args)
    except SchemaLoadError as err:
        logger.error("%s", err)
        return 1
    except (ValueError, OSError) as err:
        logger.error("%s", err)
        return 2


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
