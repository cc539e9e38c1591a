"""CLI commands for the markdown reference generator.

Provides the Click-based command group 'markdown-reference' with
subcommands for writing the reference to a file, printing it, and
dumping the extracted documentation trees as JSON.
"""

import json
import logging
from pathlib import Path
from typing import Any, Callable, Optional

import click

from markdown_reference import __version__
from markdown_reference.errors import MarkdownReferenceError
from markdown_reference.output.markdown import MarkdownWriter
from markdown_reference.parsers.structure import (
    ALL_EXPORTS,
    ExportFilter,
    ExportSelection,
    FileDocumentationConfig,
    SelectionMode,
)
from markdown_reference.reference import (
    generate_markdown_reference,
    parse_documentation,
    relative_entry_points,
)
from markdown_reference.utils.config import AppConfig, load_config, load_entry_points
from markdown_reference.utils.logging import setup_logging

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _split_names(value: Optional[str]) -> list[str]:
    """Split a comma-separated option value, dropping empty items."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _export_selection(pick_exports: Optional[str], omit_exports: Optional[str]) -> ExportSelection:
    """Build the export selection from the --pick-exports/--omit-exports options.

    Raises:
        click.UsageError: If both options are given.
    """
    to_pick = _split_names(pick_exports)
    to_omit = _split_names(omit_exports)
    if to_pick and to_omit:
        raise click.UsageError("--pick-exports and --omit-exports cannot be used together")
    if to_pick:
        return ExportFilter(mode=SelectionMode.PICK, names=frozenset(to_pick))
    if to_omit:
        return ExportFilter(mode=SelectionMode.OMIT, names=frozenset(to_omit))
    return ALL_EXPORTS


def _collect_entry_points(
    ctx: click.Context,
    entry: Optional[str],
    pick_exports: Optional[str],
    omit_exports: Optional[str],
) -> dict[str, FileDocumentationConfig]:
    """Resolve the entry points from the command line, or from the config file.

    Args:
        ctx: Click context holding the config file path.
        entry: Comma-separated entry point paths.
        pick_exports: Comma-separated export names to keep.
        omit_exports: Comma-separated export names to drop.

    Returns:
        File configuration by entry point path.

    Raises:
        click.UsageError: If no entry point is given, one does not exist, or
            an export filter is given without --entry.
    """
    selection = _export_selection(pick_exports, omit_exports)
    paths = _split_names(entry)

    if paths:
        entry_points = {path: FileDocumentationConfig(exports=selection) for path in paths}
    elif selection != ALL_EXPORTS:
        raise click.UsageError(
            "--pick-exports and --omit-exports need --entry; "
            "configured entry points select their exports in the config file"
        )
    else:
        try:
            entry_points = load_entry_points(ctx.obj["config_path"])
        except MarkdownReferenceError as e:
            raise click.ClickException(str(e)) from e

    if not entry_points:
        raise click.UsageError("Missing entry points, pass them with --entry a.ts,b.ts")
    missing = [path for path in entry_points if not Path(path).is_file()]
    if missing:
        raise click.UsageError(f"Entry point not found: {', '.join(missing)}")
    return entry_points


def entry_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Add the entry point and export selection options to a command."""
    func = click.option(
        "--omit-exports", default=None, help="Comma-separated export names to leave out."
    )(func)
    func = click.option(
        "--pick-exports", default=None, help="Comma-separated export names to keep."
    )(func)
    func = click.option(
        "--entry",
        default=None,
        help="Comma-separated list of entry points to generate the reference for.",
    )(func)
    return func


def heading_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Add the heading options to a rendering command."""
    func = click.option(
        "--start-heading-level",
        type=click.IntRange(min=1),
        default=None,
        help="Heading level of the exports (default: 2).",
    )(func)
    func = click.option("--main-heading", default=None, help="Title of the document.")(func)
    return func


def _generate(
    ctx: click.Context,
    entry_points: dict[str, FileDocumentationConfig],
    main_heading: Optional[str],
    start_heading_level: Optional[int],
) -> str:
    """Generate the markdown, turning library errors into CLI errors."""
    config: AppConfig = ctx.obj["config"]
    try:
        return generate_markdown_reference(
            entry_points,
            main_heading=main_heading if main_heading is not None else config.output.main_heading,
            start_heading_level=start_heading_level or config.output.start_heading_level,
        )
    except (MarkdownReferenceError, FileNotFoundError, ValueError) as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.version_option(version=__version__, prog_name="markdown-reference")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="YAML configuration file (default: ./markdown-reference.yaml).",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Override the configured log level.",
)
@click.pass_context
def reference(ctx: click.Context, config_path: Optional[str], log_level: Optional[str]) -> None:
    """Generate a markdown reference from the JSDoc of TypeScript/JavaScript exports."""
    try:
        config = load_config(config_path)
    except MarkdownReferenceError as e:
        raise click.ClickException(str(e)) from e
    setup_logging(
        level=log_level or config.logging.level,
        log_format=config.logging.format,
        log_file=config.logging.file,
    )
    ctx.obj = {"config": config, "config_path": config_path}


@reference.command()
@click.argument("output", type=click.Path(dir_okay=False), required=False)
@entry_options
@heading_options
@click.pass_context
def render(
    ctx: click.Context,
    output: Optional[str],
    entry: Optional[str],
    pick_exports: Optional[str],
    omit_exports: Optional[str],
    main_heading: Optional[str],
    start_heading_level: Optional[int],
) -> None:
    """Write the markdown reference to OUTPUT.

    Example: markdown-reference render ./reference.md --entry src/main.ts,src/other.js
    """
    output = output or ctx.obj["config"].output.output_file
    if not output:
        raise click.UsageError("Missing the OUTPUT file")

    entry_points = _collect_entry_points(ctx, entry, pick_exports, omit_exports)
    logger.debug("Generating the reference file %s", output)
    markdown = _generate(ctx, entry_points, main_heading, start_heading_level)
    path = MarkdownWriter().write(markdown, output)
    click.echo(f"Markdown reference written to {path}")


@reference.command(name="print")
@entry_options
@heading_options
@click.pass_context
def print_reference(
    ctx: click.Context,
    entry: Optional[str],
    pick_exports: Optional[str],
    omit_exports: Optional[str],
    main_heading: Optional[str],
    start_heading_level: Optional[int],
) -> None:
    """Print the markdown reference to stdout."""
    entry_points = _collect_entry_points(ctx, entry, pick_exports, omit_exports)
    click.echo(_generate(ctx, entry_points, main_heading, start_heading_level))


@reference.command(name="json")
@entry_options
@click.pass_context
def dump_json(
    ctx: click.Context,
    entry: Optional[str],
    pick_exports: Optional[str],
    omit_exports: Optional[str],
) -> None:
    """Dump the extracted documentation of every entry point as JSON."""
    entry_points = relative_entry_points(
        _collect_entry_points(ctx, entry, pick_exports, omit_exports)
    )
    try:
        docs_by_file = parse_documentation(entry_points)
    except (MarkdownReferenceError, FileNotFoundError) as e:
        raise click.ClickException(str(e)) from e

    data = {
        file_path: {name: doc.to_dict() for name, doc in exports.items()}
        for file_path, exports in docs_by_file.items()
    }
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))
