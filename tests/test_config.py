"""Tests for configuration loading and validation."""

import os.path
import textwrap
from pathlib import Path

import pytest
import yaml

from markdown_reference.errors import ConfigError
from markdown_reference.parsers.structure import (
    ALL_EXPORTS,
    Example,
    ExportFilter,
    SelectionMode,
)
from markdown_reference.utils.config import (
    AppConfig,
    LoggingConfig,
    OutputConfig,
    load_config,
    load_entry_points,
    parse_export_selection,
    resolve_function,
)


def _write_config(tmp_path: Path, data: dict) -> Path:
    path = tmp_path / "markdown-reference.yaml"
    path.write_text(yaml.dump(data), encoding="utf-8")
    return path


class TestAppConfigDefaults:
    """Tests for AppConfig with all defaults."""

    def test_default_construction(self) -> None:
        config = AppConfig()
        assert isinstance(config.output, OutputConfig)
        assert isinstance(config.logging, LoggingConfig)

    def test_default_values(self) -> None:
        config = AppConfig()
        assert config.logging.level == "INFO"
        assert config.output.main_heading is None
        assert config.output.start_heading_level == 2
        assert config.output.output_file is None


class TestLoadConfig:
    """Tests for the load_config function."""

    def test_missing_file_returns_defaults(self, tmp_path: Path) -> None:
        config = load_config(str(tmp_path / "nonexistent.yaml"))
        assert config == AppConfig()

    def test_reads_file_from_working_directory(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _write_config(tmp_path, {"output": {"main_heading": "API"}})
        monkeypatch.chdir(tmp_path)
        assert load_config().output.main_heading == "API"

    def test_custom_values(self, tmp_path: Path) -> None:
        path = _write_config(
            tmp_path,
            {
                "output": {
                    "main_heading": "Reference",
                    "start_heading_level": 3,
                    "output_file": "docs/reference.md",
                },
                "logging": {"level": "DEBUG", "file": "run.log"},
            },
        )
        config = load_config(path)
        assert config.output == OutputConfig("Reference", 3, "docs/reference.md")
        assert config.logging.level == "DEBUG"
        assert config.logging.file == "run.log"

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path) == AppConfig()

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.yaml"
        path.write_text("output: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)

    def test_top_level_must_be_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(path)


class TestParseExportSelection:
    """Tests for the exports value of an entry point."""

    def test_all(self) -> None:
        assert parse_export_selection("all") == ALL_EXPORTS
        assert parse_export_selection(None) == ALL_EXPORTS

    def test_pick(self) -> None:
        assert parse_export_selection({"pick": ["a", "b"]}) == ExportFilter(
            SelectionMode.PICK, frozenset({"a", "b"})
        )

    def test_omit(self) -> None:
        assert parse_export_selection({"omit": ["a"]}) == ExportFilter(
            SelectionMode.OMIT, frozenset({"a"})
        )

    @pytest.mark.parametrize("value", ["some", {"keep": ["a"]}, {"pick": [], "omit": []}, 3])
    def test_invalid(self, value: object) -> None:
        with pytest.raises(ConfigError):
            parse_export_selection(value)


class TestResolveFunction:
    """Tests for importing example mappers by dotted path."""

    def test_resolves_callable(self) -> None:
        assert resolve_function("os.path.join") is os.path.join

    def test_requires_module_path(self) -> None:
        with pytest.raises(ConfigError, match="full module path"):
            resolve_function("join")

    def test_unknown_module(self) -> None:
        with pytest.raises(ConfigError, match="Cannot import"):
            resolve_function("no_such_module_here.func")

    def test_unknown_attribute(self) -> None:
        with pytest.raises(ConfigError, match="no attribute"):
            resolve_function("os.path.no_such_function")

    def test_not_callable(self) -> None:
        with pytest.raises(ConfigError, match="not callable"):
            resolve_function("os.path.sep")


class TestLoadEntryPoints:
    """Tests for the entry_points section."""

    def test_missing_section(self, tmp_path: Path) -> None:
        assert load_entry_points(_write_config(tmp_path, {"output": {}})) == {}

    def test_missing_file(self, tmp_path: Path) -> None:
        assert load_entry_points(tmp_path / "nonexistent.yaml") == {}

    def test_full_entry(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "doc_mappers.py").write_text(
            textwrap.dedent(
                """\
                def strip_title(example, property_path):
                    return type(example)(code=example.code)
                """
            ),
            encoding="utf-8",
        )
        monkeypatch.syspath_prepend(str(tmp_path))
        path = _write_config(
            tmp_path,
            {
                "entry_points": {
                    "src/schema.ts": {
                        "exports": {"omit": ["internal"]},
                        "properties_to_omit": ["_brand"],
                        "renames": {"createSchema": "schema"},
                        "map_example": {"schema": "doc_mappers.strip_title"},
                    },
                    "src/index.ts": None,
                }
            },
        )
        entry_points = load_entry_points(path)
        assert list(entry_points) == ["src/schema.ts", "src/index.ts"]

        schema = entry_points["src/schema.ts"]
        assert schema.exports == ExportFilter(SelectionMode.OMIT, frozenset({"internal"}))
        assert schema.properties_to_omit == frozenset({"_brand"})
        assert schema.public_name("createSchema") == "schema"
        mapper = schema.map_example["schema"]
        assert mapper(Example(code="x", title="T"), None) == Example(code="x")

        assert entry_points["src/index.ts"].exports == ALL_EXPORTS

    def test_bad_mapper_path(self, tmp_path: Path) -> None:
        path = _write_config(
            tmp_path,
            {"entry_points": {"a.ts": {"map_example": {"a": "no_such_module_here.fn"}}}},
        )
        with pytest.raises(ConfigError):
            load_entry_points(path)

    def test_section_must_be_mapping(self, tmp_path: Path) -> None:
        path = _write_config(tmp_path, {"entry_points": ["a.ts"]})
        with pytest.raises(ConfigError, match="entry_points"):
            load_entry_points(path)
