"""Tests for the CLI commands using Click's CliRunner."""

import json
import logging
from pathlib import Path
from typing import Iterator

import pytest
import yaml
from click.testing import CliRunner

from markdown_reference.cli.commands import reference
from markdown_reference.utils.logging import PACKAGE_LOGGER

QUIET = ["--log-level", "ERROR"]


@pytest.fixture
def runner() -> CliRunner:
    """Create a Click CliRunner."""
    return CliRunner()


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, samples: Path) -> Path:
    """Run the CLI from a directory holding the sample sources."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Drop the handlers bound to each invocation's captured streams."""
    yield
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in package_logger.handlers:
        handler.close()
    package_logger.handlers.clear()


class TestReferenceGroup:
    """Tests for the main command group."""

    def test_help(self, runner: CliRunner) -> None:
        result = runner.invoke(reference, ["--help"])
        assert result.exit_code == 0
        assert "Generate a markdown reference" in result.output

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(reference, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_invalid_config(self, runner: CliRunner, project: Path) -> None:
        (project / "broken.yaml").write_text("output: [unclosed", encoding="utf-8")
        result = runner.invoke(
            reference, ["--config", "broken.yaml", "print", "--entry", "samples/schema.ts"]
        )
        assert result.exit_code == 1
        assert "Invalid YAML" in result.output


class TestRenderCommand:
    """Tests for the 'render' command."""

    def test_help(self, runner: CliRunner) -> None:
        result = runner.invoke(reference, ["render", "--help"])
        assert result.exit_code == 0
        assert "Write the markdown reference to OUTPUT" in result.output

    def test_writes_reference(self, runner: CliRunner, project: Path) -> None:
        result = runner.invoke(
            reference,
            [
                *QUIET,
                "render",
                "docs/reference.md",
                "--entry",
                "samples/schema.ts",
                "--pick-exports",
                "failure",
            ],
        )
        assert result.exit_code == 0, result.output
        assert "Markdown reference written to" in result.output
        written = (project / "docs" / "reference.md").read_text(encoding="utf-8")
        assert written == "## `failure`\n\ngenerates an error\n"

    def test_missing_output(self, runner: CliRunner, project: Path) -> None:
        result = runner.invoke(reference, [*QUIET, "render", "--entry", "samples/schema.ts"])
        assert result.exit_code == 2
        assert "Missing the OUTPUT file" in result.output

    def test_nothing_to_render(self, runner: CliRunner, project: Path) -> None:
        result = runner.invoke(
            reference,
            [*QUIET, "render", "out.md", "--entry", "samples/schema.ts", "--pick-exports", "Schema"],
        )
        assert result.exit_code == 1
        assert "No reference to generate" in result.output
        assert not (project / "out.md").exists()

    def test_entry_points_from_config(self, runner: CliRunner, project: Path) -> None:
        config_path = project / "reference.yaml"
        config_path.write_text(
            yaml.dump(
                {
                    "output": {"main_heading": "API", "output_file": "REFERENCE.md"},
                    "logging": {"level": "ERROR"},
                    "entry_points": {
                        "samples/schema.ts": {"exports": {"pick": ["failure"]}},
                        "samples/barrel.ts": {
                            "exports": {"pick": ["success"]},
                            "renames": {"success": "ok"},
                        },
                    },
                }
            ),
            encoding="utf-8",
        )
        result = runner.invoke(reference, ["--config", str(config_path), "render"])
        assert result.exit_code == 0, result.output
        assert (project / "REFERENCE.md").read_text(encoding="utf-8") == (
            "# API\n\n"
            "## `failure`\n\ngenerates an error\n\n"
            "## `ok`\n\nHelps creating success results\n"
        )


class TestPrintCommand:
    """Tests for the 'print' command."""

    def test_prints_reference(self, runner: CliRunner, project: Path) -> None:
        result = runner.invoke(
            reference,
            [
                *QUIET,
                "print",
                "--entry",
                "samples/schema.ts",
                "--pick-exports",
                "failure",
                "--main-heading",
                "API",
                "--start-heading-level",
                "3",
            ],
        )
        assert result.exit_code == 0, result.output
        assert result.output == "# API\n\n### `failure`\n\ngenerates an error\n"

    def test_omit_exports(self, runner: CliRunner, project: Path) -> None:
        result = runner.invoke(
            reference,
            [*QUIET, "print", "--entry", "samples/schema.ts", "--omit-exports", "string,success"],
        )
        assert result.exit_code == 0, result.output
        assert result.output == "## `failure`\n\ngenerates an error\n"

    def test_missing_entry(self, runner: CliRunner, project: Path) -> None:
        result = runner.invoke(reference, [*QUIET, "print"])
        assert result.exit_code == 2
        assert "Missing entry points" in result.output

    def test_nonexistent_entry(self, runner: CliRunner, project: Path) -> None:
        result = runner.invoke(reference, [*QUIET, "print", "--entry", "samples/nope.ts"])
        assert result.exit_code == 2
        assert "Entry point not found: samples/nope.ts" in result.output

    def test_pick_and_omit_together(self, runner: CliRunner, project: Path) -> None:
        result = runner.invoke(
            reference,
            [
                *QUIET,
                "print",
                "--entry",
                "samples/schema.ts",
                "--pick-exports",
                "a",
                "--omit-exports",
                "b",
            ],
        )
        assert result.exit_code == 2
        assert "cannot be used together" in result.output

    def test_export_filter_requires_entry(self, runner: CliRunner, project: Path) -> None:
        config_path = project / "reference.yaml"
        config_path.write_text(
            yaml.dump({"entry_points": {"samples/schema.ts": None}}), encoding="utf-8"
        )
        result = runner.invoke(
            reference,
            [*QUIET, "--config", str(config_path), "print", "--pick-exports", "failure"],
        )
        assert result.exit_code == 2
        assert "need --entry" in result.output

    def test_invalid_heading_level(self, runner: CliRunner, project: Path) -> None:
        result = runner.invoke(
            reference,
            [*QUIET, "print", "--entry", "samples/schema.ts", "--start-heading-level", "0"],
        )
        assert result.exit_code == 2


class TestJsonCommand:
    """Tests for the 'json' command."""

    def test_dumps_documentation(self, runner: CliRunner, project: Path) -> None:
        result = runner.invoke(
            reference,
            [*QUIET, "json", "--entry", "samples/fn.ts,samples/interface.ts"],
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert list(data) == ["samples/fn.ts", "samples/interface.ts"]
        assert data["samples/fn.ts"] == {
            "myFn": {
                "properties": {"maxLength": {"description": "Some doc on the test.maxLength"}}
            }
        }
        assert list(data["samples/interface.ts"]) == ["SchemaError1", "SchemaError2"]
