"""Selection of the exports of a file that get documented."""

import logging

from markdown_reference.parsers.structure import (
    ALL_EXPORTS,
    ExportFilter,
    ExportSelection,
    SelectionMode,
)

logger = logging.getLogger(__name__)


def is_export_to_document(export_name: str, selection: ExportSelection) -> bool:
    """Decide whether an export takes part in the reference.

    Names listed in a filter that match no export are never reported.

    Args:
        export_name: Declared name of the export.
        selection: ``"all"`` or an ExportFilter.

    Returns:
        True if the export should be documented.

    Raises:
        ValueError: If the selection is neither ``"all"`` nor a filter.
    """
    if selection == ALL_EXPORTS:
        return True
    if not isinstance(selection, ExportFilter):
        raise ValueError(f"Unknown export selection: {selection!r}")
    if selection.mode == SelectionMode.PICK:
        return export_name in selection.names
    return export_name not in selection.names


def pick_exports(*names: str) -> ExportFilter:
    """Build a filter keeping only the given export names."""
    return ExportFilter(mode=SelectionMode.PICK, names=frozenset(names))


def omit_exports(*names: str) -> ExportFilter:
    """Build a filter dropping the given export names."""
    return ExportFilter(mode=SelectionMode.OMIT, names=frozenset(names))
