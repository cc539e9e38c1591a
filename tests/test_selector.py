"""Tests for export selection."""

import pytest

from markdown_reference.documentation.selector import (
    is_export_to_document,
    omit_exports,
    pick_exports,
)
from markdown_reference.parsers.structure import ALL_EXPORTS, ExportFilter, SelectionMode

EXPORTS = ["schema", "array", "timeoutInMs", "default"]


def _selected(selection) -> list[str]:
    return [name for name in EXPORTS if is_export_to_document(name, selection)]


class TestIsExportToDocument:
    """Tests for the inclusion decision."""

    def test_all_includes_everything(self) -> None:
        assert _selected(ALL_EXPORTS) == EXPORTS

    def test_pick_is_intersection(self) -> None:
        assert _selected(pick_exports("array", "schema", "missing")) == ["schema", "array"]

    def test_omit_is_difference(self) -> None:
        assert _selected(omit_exports("array", "missing")) == ["schema", "timeoutInMs", "default"]

    def test_empty_pick_selects_nothing(self) -> None:
        assert _selected(ExportFilter(mode=SelectionMode.PICK)) == []

    def test_empty_omit_selects_everything(self) -> None:
        assert _selected(ExportFilter(mode=SelectionMode.OMIT)) == EXPORTS

    def test_unknown_selection_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unknown export selection"):
            is_export_to_document("schema", "some exports")
