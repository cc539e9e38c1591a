"""Cross-file aggregation of documentation trees.

The same public name may be exported by several entry points, typically
a module and the barrel file re-exporting it. Their trees are folded in
configured file order with a fixed merge algebra: category and type keep
the first value, text fields are joined, examples are concatenated and
properties are merged shallowly, the later file winning per key.
"""

import logging
import os
from typing import Optional

from markdown_reference.documentation.curation import curate_export_documentation
from markdown_reference.errors import ConfigError
from markdown_reference.parsers.structure import (
    ExportDocumentation,
    FileDocumentation,
    FileDocumentationConfig,
)

logger = logging.getLogger(__name__)

TEXT_SEPARATOR = "\n\n"


def join_texts(*texts: Optional[str]) -> Optional[str]:
    """Join the present texts with a blank line.

    Args:
        *texts: Texts in order, absent ones skipped.

    Returns:
        The joined text, or None when every text is absent or empty.
    """
    present = [text for text in texts if text]
    return TEXT_SEPARATOR.join(present) if present else None


def merge_documentations(
    current: ExportDocumentation, new: ExportDocumentation
) -> ExportDocumentation:
    """Merge an incoming tree into the accumulated one.

    The merge is not commutative: ``current`` keeps its category and type
    and comes first in joined texts, and ``new`` replaces whole property
    subtrees that both sides define.

    Args:
        current: Previously accumulated documentation.
        new: Documentation of the same public name from a later file.

    Returns:
        The merged documentation.
    """
    if current.examples is None and new.examples is None:
        examples = None
    else:
        examples = [*(current.examples or []), *(new.examples or [])]

    return ExportDocumentation(
        category=current.category or new.category,
        type=current.type or new.type,
        description=join_texts(current.description, new.description),
        summary=join_texts(current.summary, new.summary),
        remarks=join_texts(current.remarks, new.remarks),
        examples=examples,
        properties={**(current.properties or {}), **(new.properties or {})},
    )


def group_documentation_by_export_name(
    docs_by_file: dict[str, FileDocumentation],
    entry_points: dict[str, FileDocumentationConfig],
) -> dict[str, ExportDocumentation]:
    """Curate every file's exports and fold them into one mapping by public name.

    Files are matched to their configuration by normalized path relative to
    the working directory, so absolute and relative spellings of the same
    entry point agree.

    Args:
        docs_by_file: Documentation by file, then by declared export name,
            in configured file order.
        entry_points: Configuration by file, used for renames and curation.

    Returns:
        Documentation by public export name.

    Raises:
        ConfigError: If a documented file has no configuration.
    """
    configs = {os.path.relpath(path): config for path, config in entry_points.items()}

    grouped: dict[str, ExportDocumentation] = {}
    for file_path, exports in docs_by_file.items():
        config = configs.get(os.path.relpath(file_path))
        if config is None:
            raise ConfigError(f"No entry point configuration for {file_path}")
        for export_name, documentation in exports.items():
            public_name = config.public_name(export_name)
            curated = curate_export_documentation(export_name, config, documentation)
            current = grouped.get(public_name)
            if current is None:
                grouped[public_name] = curated
            else:
                logger.debug("Merging %s from %s", public_name, file_path)
                grouped[public_name] = merge_documentations(current, curated)
    return grouped
