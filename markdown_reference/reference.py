"""End-to-end markdown reference generation.

Wires the pipeline together: every configured entry point is parsed
against one type oracle, its selected exports are extracted, the trees
are curated and grouped by public name, then rendered and written.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

from markdown_reference.documentation.aggregation import group_documentation_by_export_name
from markdown_reference.documentation.extractor import DocumentationExtractor
from markdown_reference.documentation.selector import is_export_to_document
from markdown_reference.output.markdown import (
    DEFAULT_START_HEADING_LEVEL,
    MarkdownWriter,
    markdown_reference_renderer,
)
from markdown_reference.parsers.structure import (
    FileDocumentation,
    FileDocumentationConfig,
)
from markdown_reference.parsers.ts_oracle import TreeSitterOracle
from markdown_reference.parsers.types import TypeOracle

logger = logging.getLogger(__name__)

EntryPoints = dict[str, FileDocumentationConfig]


def relative_entry_points(entry_points: EntryPoints) -> EntryPoints:
    """Key entry points by their path relative to the working directory."""
    return {os.path.relpath(path): config for path, config in entry_points.items()}


def parse_documentation(
    entry_points: EntryPoints,
    oracle: Optional[TypeOracle] = None,
) -> dict[str, FileDocumentation]:
    """Extract the documentation of the selected exports of every entry point.

    Args:
        entry_points: Configuration by file path, in processing order.
        oracle: Type oracle to query; a fresh TreeSitterOracle by default.

    Returns:
        Documentation by export name, keyed by file path relative to the
        working directory, in the order of ``entry_points``.

    Raises:
        FileNotFoundError: If an entry point does not exist.
        SourceLoadError: If an entry point cannot be read.
    """
    oracle = oracle or TreeSitterOracle()
    extractor = DocumentationExtractor(oracle)

    docs_by_file: dict[str, FileDocumentation] = {}
    for file_path, config in entry_points.items():
        relative_path = os.path.relpath(file_path)
        file_docs: FileDocumentation = {}
        for export_name, declaration in oracle.list_exported_declarations(file_path):
            if not is_export_to_document(export_name, config.exports):
                logger.debug("Skipping export %s of %s", export_name, relative_path)
                continue
            file_docs[export_name] = extractor.extract(declaration)

        logger.info("Parsed %s: %d exports documented", relative_path, len(file_docs))
        docs_by_file[relative_path] = file_docs
    return docs_by_file


def generate_markdown_reference(
    entry_points: EntryPoints,
    main_heading: Optional[str] = None,
    start_heading_level: int = DEFAULT_START_HEADING_LEVEL,
    oracle: Optional[TypeOracle] = None,
) -> str:
    """Build the markdown reference of a set of entry points without writing it.

    Args:
        entry_points: Configuration by file path, in processing order.
        main_heading: Optional document title.
        start_heading_level: Heading level of the top-level exports.
        oracle: Type oracle to query; a fresh TreeSitterOracle by default.

    Returns:
        The markdown text.

    Raises:
        NothingToRenderError: If no selected export is documented.
        FileNotFoundError: If an entry point does not exist.
    """
    entry_points = relative_entry_points(entry_points)
    docs_by_file = parse_documentation(entry_points, oracle)
    grouped = group_documentation_by_export_name(docs_by_file, entry_points)
    return markdown_reference_renderer(grouped, main_heading, start_heading_level)


def render_markdown_reference(
    entry_points: EntryPoints,
    output: Union[str, Path],
    main_heading: Optional[str] = None,
    start_heading_level: int = DEFAULT_START_HEADING_LEVEL,
    oracle: Optional[TypeOracle] = None,
) -> Path:
    """Generate the markdown reference of a set of entry points and write it.

    Args:
        entry_points: Configuration by file path, in processing order.
        output: Destination file, relative to the working directory.
        main_heading: Optional document title.
        start_heading_level: Heading level of the top-level exports.
        oracle: Type oracle to query; a fresh TreeSitterOracle by default.

    Returns:
        Absolute path of the written file.

    Raises:
        NothingToRenderError: If no selected export is documented.
        FileNotFoundError: If an entry point does not exist.
    """
    markdown = generate_markdown_reference(
        entry_points, main_heading, start_heading_level, oracle
    )
    return MarkdownWriter().write(markdown, output)
