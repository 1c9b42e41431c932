"""CLI entry point for graphwire.

Invoked as::

    graphwire [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m graphwire.cli.main

Commands
--------
encode      Encode a JSON or YAML document through a registered writer
writers     List registered content types
version     Show version information
"""
from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click
import yaml
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

if TYPE_CHECKING:
    from graphwire.untyped.nodes import UntypedNode

console = Console()
err_console = Console(stderr=True)


def _read_source(path: str) -> str:
    """Read an input document, exiting on error."""
    try:
        return Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        err_console.print(f"[red]Error:[/red] File not found: {path}")
        sys.exit(1)
    except OSError as exc:
        err_console.print(f"[red]Error:[/red] Cannot read {path}: {exc}")
        sys.exit(1)


def _input_format(path: str, requested: str) -> str:
    if requested != "auto":
        return requested
    return "yaml" if Path(path).suffix.lower() in {".yaml", ".yml"} else "json"


def _load_or_exit(source: str, path: str, input_format: str) -> "UntypedNode":
    """Decode a JSON or YAML document into an untyped tree, exiting on failure."""
    from graphwire.errors import SerializationError
    from graphwire.untyped import from_python, parse_untyped

    try:
        if input_format == "yaml":
            return from_python(yaml.safe_load(source))
        return parse_untyped(source)
    except json.JSONDecodeError as exc:
        err_console.print(f"[red]Invalid JSON[/red] in {path}: {exc}")
        sys.exit(1)
    except yaml.YAMLError as exc:
        err_console.print(f"[red]Invalid YAML[/red] in {path}: {exc}")
        sys.exit(1)
    except SerializationError as exc:
        err_console.print(f"[red]Unsupported value[/red] in {path}: {exc}")
        sys.exit(1)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="graphwire")
def cli() -> None:
    """Object-graph serialization toolkit: untyped trees, writers, content types."""


# ---------------------------------------------------------------------------
# version command
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from graphwire import __version__

    table = Table(show_header=False, box=None)
    table.add_row("[bold]graphwire[/bold]", f"v{__version__}")
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    table.add_row("Platform", sys.platform)
    console.print(table)


# ---------------------------------------------------------------------------
# writers command
# ---------------------------------------------------------------------------


@cli.command(name="writers")
@click.option(
    "--entrypoints/--no-entrypoints",
    default=True,
    help="Also load writers declared by installed packages",
)
def writers_command(entrypoints: bool) -> None:
    """List registered content types and their writers."""
    from graphwire.writer.registry import default_registry

    if entrypoints:
        default_registry.load_entrypoints()

    table = Table(title="Serialization writers")
    table.add_column("Content type", style="bold")
    table.add_column("Writer")
    for content_type in default_registry.list_content_types():
        table.add_row(content_type, default_registry.get(content_type).__qualname__)
    console.print(table)


# ---------------------------------------------------------------------------
# encode command
# ---------------------------------------------------------------------------


@cli.command(name="encode")
@click.argument("file", type=click.Path(exists=False))
@click.option(
    "--input-format",
    type=click.Choice(["auto", "json", "yaml"], case_sensitive=False),
    default="auto",
    help="Format of FILE (auto picks by extension)",
)
@click.option(
    "--content-type",
    "-t",
    default="application/json",
    show_default=True,
    help="Content type of the output",
)
@click.option(
    "--ensure-ascii",
    is_flag=True,
    default=False,
    help="Escape non-ASCII characters in JSON strings",
)
@click.option("--output", "-o", default=None, help="Output file path (defaults to stdout)")
def encode_command(
    file: str, input_format: str, content_type: str, ensure_ascii: bool, output: str | None
) -> None:
    """Encode a JSON or YAML document with a registered writer.

    FILE is the path to the document to encode.
    """
    from graphwire.errors import SerializationError
    from graphwire.writer.options import WriterOptions
    from graphwire.writer.registry import (
        ContentTypeNotRegisteredError,
        SerializationWriterFactoryRegistry,
        default_registry,
    )

    source = _read_source(file)
    tree = _load_or_exit(source, file, _input_format(file, input_format.lower()))

    try:
        writer_class = default_registry.get(content_type)
    except ContentTypeNotRegisteredError as exc:
        err_console.print(f"[red]Error:[/red] {exc.args[0]}")
        sys.exit(1)

    registry = SerializationWriterFactoryRegistry(
        "cli", options=WriterOptions(ensure_ascii=ensure_ascii)
    )
    registry.register_class(content_type, writer_class)

    try:
        with registry.get_serialization_writer(content_type) as writer:
            writer.write_untyped_value(None, tree)
            content = writer.get_serialized_content()
    except SerializationError as exc:
        err_console.print(f"[red]Serialization failed[/red] for {file}: {exc}")
        sys.exit(1)

    text = content.decode("utf-8")
    if output:
        Path(output).write_bytes(content)
        console.print(f"[green]Encoded output written to[/green] {output}")
    elif writer_class.content_type == "application/json":
        console.print(Syntax(text, "json"))
    else:
        console.print(text, markup=False, highlight=False)


if __name__ == "__main__":
    cli()
