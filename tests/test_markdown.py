"""Tests for the markdown reference renderer and writer."""

import textwrap
from pathlib import Path

import pytest

from markdown_reference.errors import NothingToRenderError
from markdown_reference.output.markdown import (
    MarkdownReferenceRenderer,
    MarkdownWriter,
    collation_key,
    markdown_reference_renderer,
    render_example,
)
from markdown_reference.parsers.structure import Example, ExportDocumentation


def _render(docs: dict[str, ExportDocumentation], **options) -> str:
    options.setdefault("main_heading", "Reference")
    return markdown_reference_renderer(docs, **options)


def _expected(text: str) -> str:
    return textwrap.dedent(text).strip()


class TestMarkdownReferenceRenderer:
    """Tests for rendering documentation mappings."""

    def test_fully_documented_variable(self) -> None:
        docs = {
            "array": ExportDocumentation(
                description="An array of numbers",
                type="number[]",
                summary="It does not do much",
                remarks="Beware of the tiger\nIt can bring its lot of problems",
                examples=[
                    Example(title="Hello World", code='```ts\nconsole.log("Hello World")\n```'),
                    Example(code='```ts\nconsole.log("Oops!")\n```'),
                ],
            )
        }
        expected = (
            "# Reference\n\n"
            "## `array`\n\n"
            "An array of numbers\n\n"
            "It does not do much\n\n"
            "> [!NOTE]\n"
            "> Beware of the tiger\n"
            "It can bring its lot of problems\n\n"
            "**Hello World**\n"
            '```ts\nconsole.log("Hello World")\n```\n\n'
            "\n"
            '```ts\nconsole.log("Oops!")\n```'
        )
        assert _render(docs) == expected

    def test_sorts_exports_alphabetically(self) -> None:
        docs = {
            "timeoutInMs": ExportDocumentation(description="Timeout for all XHR requests"),
            "array": ExportDocumentation(description="An array of numbers"),
        }
        assert _render(docs) == _expected(
            """
            # Reference

            ## `array`

            An array of numbers

            ## `timeoutInMs`

            Timeout for all XHR requests
            """
        )

    def test_undocumented_export_hides_its_properties(self) -> None:
        docs = {
            "fetchLove": ExportDocumentation(
                properties={"timeout": ExportDocumentation(description="Hello")}
            )
        }
        with pytest.raises(
            NothingToRenderError,
            match="No reference to generate, please check that your code has JSDoc",
        ):
            _render(docs)

    def test_undocumented_export_skipped_among_others(self) -> None:
        docs = {
            "hidden": ExportDocumentation(
                properties={"timeout": ExportDocumentation(description="Hello")}
            ),
            "shown": ExportDocumentation(description="Shown"),
        }
        rendered = _render(docs, main_heading=None)
        assert rendered == "## `shown`\n\nShown"

    def test_renders_properties_of_documented_export(self) -> None:
        docs = {
            "fetchLove": ExportDocumentation(
                description="Does what it does",
                properties={
                    "timeout": ExportDocumentation(
                        description="Time after which we stop searching for love"
                    )
                },
            )
        }
        assert _render(docs) == _expected(
            """
            # Reference

            ## `fetchLove`

            Does what it does

            ### `fetchLove.timeout`

            Time after which we stop searching for love
            """
        )

    def test_start_heading_level_one_without_main_heading(self) -> None:
        docs = {
            "fetchLove": ExportDocumentation(
                description="Does what it does",
                properties={
                    "timeout": ExportDocumentation(
                        description="Time after which we stop searching for love"
                    )
                },
            )
        }
        rendered = markdown_reference_renderer(docs, start_heading_level=1)
        assert rendered == _expected(
            """
            # `fetchLove`

            Does what it does

            ## `fetchLove.timeout`

            Time after which we stop searching for love
            """
        )

    def test_depth_cutoff(self) -> None:
        docs = {
            "a": ExportDocumentation(
                description="level 1",
                properties={
                    "b": ExportDocumentation(
                        description="level 2",
                        properties={
                            "c": ExportDocumentation(
                                description="level 3",
                                properties={"d": ExportDocumentation(description="level 4")},
                            )
                        },
                    )
                },
            )
        }
        rendered = _render(docs, main_heading=None)
        assert "### `a.b`" in rendered
        assert "#### `a.b.c`" in rendered
        assert "a.b.c.d" not in rendered
        assert "level 4" not in rendered

    def test_undocumented_property_hides_documented_children(self) -> None:
        docs = {
            "a": ExportDocumentation(
                description="Root",
                properties={
                    "b": ExportDocumentation(
                        properties={"c": ExportDocumentation(description="Deep")}
                    ),
                    "e": ExportDocumentation(description="Sibling"),
                },
            )
        }
        rendered = _render(docs, main_heading=None)
        assert rendered == "## `a`\n\nRoot\n\n### `a.e`\n\nSibling"

    def test_properties_sorted(self) -> None:
        docs = {
            "a": ExportDocumentation(
                description="Root",
                properties={
                    "zeta": ExportDocumentation(description="Z"),
                    "Beta": ExportDocumentation(description="B"),
                    "alpha": ExportDocumentation(description="A"),
                },
            )
        }
        rendered = _render(docs, main_heading=None)
        assert rendered.index("a.alpha") < rendered.index("a.Beta") < rendered.index("a.zeta")

    def test_type_is_not_rendered(self) -> None:
        docs = {"a": ExportDocumentation(description="Doc", type="number[]")}
        assert "number[]" not in _render(docs)

    def test_empty_mapping_raises(self) -> None:
        with pytest.raises(NothingToRenderError):
            _render({})

    def test_invalid_start_level(self) -> None:
        with pytest.raises(ValueError, match="start_heading_level"):
            MarkdownReferenceRenderer(start_heading_level=0)


class TestHelpers:
    """Tests for rendering helpers."""

    def test_render_titled_example(self) -> None:
        assert render_example(Example(code="```ts\nx\n```", title="T")) == "**T**\n```ts\nx\n```"

    def test_render_untitled_example(self) -> None:
        assert render_example(Example(code="```ts\nx\n```")) == "\n```ts\nx\n```"

    def test_collation_ignores_case(self) -> None:
        names = ["timeoutInMs", "Array", "array", "Zod", "beta"]
        assert sorted(names, key=collation_key) == ["array", "Array", "beta", "timeoutInMs", "Zod"]

    def test_content_blocks_order(self) -> None:
        doc = ExportDocumentation(
            description="D", summary="S", remarks="R", examples=[Example(code="c", title="E")]
        )
        assert MarkdownReferenceRenderer.content_blocks(doc) == [
            "D",
            "S",
            "> [!NOTE]\n> R",
            "**E**\nc",
        ]


class TestMarkdownWriter:
    """Tests for writing the rendered reference."""

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        output = tmp_path / "docs" / "api" / "reference.md"
        path = MarkdownWriter().write("# Reference", output)
        assert path == output.resolve()
        assert path.exists()

    def test_single_trailing_newline(self, tmp_path: Path) -> None:
        output = tmp_path / "reference.md"
        MarkdownWriter().write("# Reference\n\n\n", output)
        assert output.read_text(encoding="utf-8") == "# Reference\n"

    def test_writes_utf8(self, tmp_path: Path) -> None:
        output = tmp_path / "reference.md"
        MarkdownWriter().write("Délai d'attente ⏱", str(output))
        assert output.read_text(encoding="utf-8") == "Délai d'attente ⏱\n"
