"""JSDoc comment parsing.

Turns the raw text of a ``/** ... */`` block comment into a DocComment
(free-text description plus block tags), and a DocComment into the
text fields of an ExportDocumentation.
"""

import logging
import re
from typing import Optional

from markdown_reference.parsers.structure import Example, ExportDocumentation
from markdown_reference.parsers.types import DocComment, DocTag

logger = logging.getLogger(__name__)

CODE_FENCE = "```"

_TAG_LINE = re.compile(r"^@(?P<name>[A-Za-z][\w-]*)(?:\s+(?P<text>.*))?$")

# Tags that overwrite a single text field of the documentation
_TEXT_TAGS = ("remarks", "summary", "category")


def is_jsdoc(raw: str) -> bool:
    """Whether a comment is a doc comment (``/**`` but not ``/**/``)."""
    return raw.startswith("/**") and not raw.startswith("/**/")


def clean_comment(raw: str) -> str:
    """Strip the comment delimiters and leading asterisks of a JSDoc comment.

    Relative indentation after the ``* `` gutter is preserved so that
    code in examples keeps its layout.

    Args:
        raw: Raw comment text including ``/**`` and ``*/``.

    Returns:
        Cleaned comment text.
    """
    text = raw.strip()
    if text.startswith("/**"):
        text = text[3:]
    if text.endswith("*/"):
        text = text[:-2]
    cleaned = []
    for line in text.split("\n"):
        line = line.lstrip()
        if line.startswith("*"):
            line = line[1:]
            if line.startswith(" "):
                line = line[1:]
        cleaned.append(line.rstrip())
    return "\n".join(cleaned).strip("\n")


def parse_comment(raw: str) -> DocComment:
    """Parse a raw JSDoc comment into its description and block tags.

    A block tag starts at a line beginning with ``@name``. Lines inside a
    fenced code block never start a tag, so decorators in examples stay
    part of the example.

    Args:
        raw: Raw comment text including delimiters.

    Returns:
        The parsed DocComment.
    """
    description: list[str] = []
    tags: list[tuple[str, list[str]]] = []
    in_fence = False

    for line in clean_comment(raw).split("\n"):
        match = None if in_fence else _TAG_LINE.match(line.strip())
        if match:
            tags.append((match.group("name"), [match.group("text") or ""]))
        elif tags:
            tags[-1][1].append(line)
        else:
            description.append(line)
        if line.count(CODE_FENCE) % 2:
            in_fence = not in_fence

    return DocComment(
        description="\n".join(description).strip(),
        tags=tuple(DocTag(name=name, text="\n".join(lines)) for name, lines in tags),
    )


def split_example(text: str) -> Example:
    """Split ``@example`` text into an optional title and the code.

    The title is whatever precedes the first code fence. Text without any
    fence is treated as code in its entirety.

    Args:
        text: Comment text of the example tag.

    Returns:
        The Example.
    """
    text = text.strip()
    fence = text.find(CODE_FENCE)
    if fence == -1:
        return Example(code=text)
    title = text[:fence].strip() or None
    return Example(code=text[fence:], title=title)


def documentation_from_comment(comment: Optional[DocComment]) -> Optional[ExportDocumentation]:
    """Build the text fields of a documentation node from a doc comment.

    Tags are applied in order: every ``@example`` appends an example,
    ``@remarks``, ``@summary`` and ``@category`` overwrite their field,
    and unknown tags are ignored.

    Args:
        comment: The comment, or None when the declaration has none.

    Returns:
        A documentation fragment without ``type`` or ``properties``, or
        None when there is no comment.
    """
    if comment is None:
        return None

    fields: dict[str, Optional[str]] = {name: None for name in _TEXT_TAGS}
    examples: Optional[list[Example]] = None

    for tag in comment.tags:
        if tag.name == "example":
            examples = [*(examples or []), split_example(tag.text)]
        elif tag.name in _TEXT_TAGS:
            fields[tag.name] = tag.text.strip() or None
        else:
            logger.debug("Ignoring unsupported tag @%s", tag.name)

    return ExportDocumentation(
        description=comment.description.strip() or None,
        examples=examples,
        **fields,
    )
