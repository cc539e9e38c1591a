"""Markdown rendering of an aggregated documentation mapping.

Every export becomes a heading named after it in inline code, followed
by its description, summary, remarks admonition and examples, then by
its documented properties as sub-headings named ``export.property``.
Rendering stops three levels below the start, and a node without any
content of its own hides its whole subtree.
"""

import locale
import logging
from pathlib import Path
from typing import Optional, Union

from markdown_reference.errors import NothingToRenderError
from markdown_reference.parsers.structure import Example, ExportDocumentation

logger = logging.getLogger(__name__)

# Levels below this one are not rendered (export, property, sub-property)
MAX_RENDER_LEVEL = 3

DEFAULT_START_HEADING_LEVEL = 2

BLOCK_SEPARATOR = "\n\n"
NOTE_PREFIX = "> [!NOTE]\n> "


def collation_key(name: str) -> tuple[str, str]:
    """Sort key ordering names the way a reader expects.

    Names compare with the current locale's collation, ignoring case
    first; lowercase sorts before uppercase between otherwise equal names.

    Args:
        name: Export or property name.

    Returns:
        A tuple usable as a ``sorted`` key.
    """
    return (locale.strxfrm(name.casefold()), locale.strxfrm(name.swapcase()))


def render_example(example: Example) -> str:
    """Render one example as an optional bold title line followed by its code."""
    title = f"**{example.title}**" if example.title else ""
    return f"{title}\n{example.code}"


class MarkdownReferenceRenderer:
    """Renders documentation trees as a markdown reference.

    Attributes:
        main_heading: Text of an optional level-1 heading opening the document.
        start_heading_level: Heading level of the top-level exports.
    """

    def __init__(
        self,
        main_heading: Optional[str] = None,
        start_heading_level: int = DEFAULT_START_HEADING_LEVEL,
    ) -> None:
        """Initialize the renderer.

        Args:
            main_heading: Optional document title.
            start_heading_level: Heading level of the top-level exports.

        Raises:
            ValueError: If start_heading_level is lower than 1.
        """
        if start_heading_level < 1:
            raise ValueError(f"start_heading_level must be at least 1, got {start_heading_level}")
        self.main_heading = main_heading
        self.start_heading_level = start_heading_level

    def render(self, documentation_by_export_name: dict[str, ExportDocumentation]) -> str:
        """Render every export, sorted by name, into one markdown document.

        Args:
            documentation_by_export_name: Documentation by public export name.

        Returns:
            The markdown text, without a trailing newline.

        Raises:
            NothingToRenderError: If no export has any documentation to show.
        """
        blocks = [
            self.render_export(name, documentation_by_export_name[name])
            for name in sorted(documentation_by_export_name, key=collation_key)
        ]
        body = _join_blocks(blocks)
        if not body:
            raise NothingToRenderError()

        logger.debug("Rendered %d exports", sum(1 for block in blocks if block))
        if self.main_heading:
            return f"# {self.main_heading}{BLOCK_SEPARATOR}{body}"
        return body

    def render_export(
        self, name: str, documentation: ExportDocumentation, level: int = 1
    ) -> str:
        """Render one documentation node and its properties.

        Args:
            name: Dotted name of the node (``export.property``).
            documentation: The node to render.
            level: Nesting level, 1 for exports.

        Returns:
            The markdown of the node, or an empty string when it is beyond
            the depth limit or has no content of its own.
        """
        if level > MAX_RENDER_LEVEL:
            return ""

        content = self.content_blocks(documentation)
        if not content:
            return ""

        properties = documentation.properties or {}
        children = [
            self.render_export(f"{name}.{prop}", properties[prop], level + 1)
            for prop in sorted(properties, key=collation_key)
        ]
        heading = "#" * (level - 1 + self.start_heading_level)
        return _join_blocks([f"{heading} `{name}`", *content, *children])

    @staticmethod
    def content_blocks(documentation: ExportDocumentation) -> list[str]:
        """List the non-empty content blocks of a node, in rendering order."""
        blocks = [documentation.description, documentation.summary]
        if documentation.remarks:
            blocks.append(f"{NOTE_PREFIX}{documentation.remarks}")
        blocks.extend(render_example(example) for example in documentation.examples or [])
        return [block for block in blocks if block]


def markdown_reference_renderer(
    documentation_by_export_name: dict[str, ExportDocumentation],
    main_heading: Optional[str] = None,
    start_heading_level: int = DEFAULT_START_HEADING_LEVEL,
) -> str:
    """Render an aggregated documentation mapping as markdown.

    Args:
        documentation_by_export_name: Documentation by public export name.
        main_heading: Optional document title.
        start_heading_level: Heading level of the top-level exports.

    Returns:
        The markdown text.

    Raises:
        NothingToRenderError: If nothing is documented.
    """
    renderer = MarkdownReferenceRenderer(main_heading, start_heading_level)
    return renderer.render(documentation_by_export_name)


class MarkdownWriter:
    """Writes rendered markdown to disk."""

    def write(self, markdown: str, output: Union[str, Path]) -> Path:
        """Write markdown to a file, creating parent directories as needed.

        The file always ends with exactly one newline.

        Args:
            markdown: Rendered markdown.
            output: Destination file path.

        Returns:
            Absolute path of the written file.
        """
        path = Path(output).resolve()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(markdown.rstrip("\n") + "\n", encoding="utf-8")

        logger.info("Wrote markdown reference: %s", path)
        return path


def _join_blocks(blocks: list[str]) -> str:
    return BLOCK_SEPARATOR.join(block for block in blocks if block).strip()
