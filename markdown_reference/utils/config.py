"""Configuration loader for the markdown reference generator.

Loads settings from markdown-reference.yaml and provides typed access
to all configuration sections via dataclasses. The optional
``entry_points`` section describes which files are documented and how.
"""

import importlib
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from markdown_reference.errors import ConfigError
from markdown_reference.parsers.structure import (
    ALL_EXPORTS,
    ExampleMapper,
    ExportFilter,
    ExportSelection,
    FileDocumentationConfig,
    SelectionMode,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "markdown-reference.yaml"


@dataclass
class OutputConfig:
    """Configuration for the rendered reference."""

    main_heading: Optional[str] = None
    start_heading_level: int = 2
    output_file: Optional[str] = None


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None


@dataclass
class AppConfig:
    """Top-level application configuration."""

    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _read_yaml(config_path: Optional[Union[str, Path]]) -> Optional[dict[str, Any]]:
    """Read the raw YAML mapping, or None when the file does not exist.

    Raises:
        ConfigError: If the file is not valid YAML or not a mapping.
    """
    path = Path(config_path) if config_path else Path.cwd() / DEFAULT_CONFIG_FILE

    if not path.exists():
        logger.warning("Config file not found at %s, using defaults", path)
        return None

    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"Expected a mapping at the top of {path}")

    logger.info("Loaded configuration from %s", path)
    return raw


def load_config(config_path: Optional[Union[str, Path]] = None) -> AppConfig:
    """Load application configuration from a YAML file.

    Falls back to defaults for any missing values.

    Args:
        config_path: Path to the YAML config file. If None, uses
            markdown-reference.yaml in the current directory.

    Returns:
        A fully populated AppConfig instance.

    Raises:
        ConfigError: If the file cannot be parsed.
    """
    raw = _read_yaml(config_path)
    if raw is None:
        return AppConfig()

    output_data = raw.get("output") or {}
    output_config = OutputConfig(
        main_heading=output_data.get("main_heading"),
        start_heading_level=int(output_data.get("start_heading_level", 2)),
        output_file=output_data.get("output_file"),
    )

    logging_data = raw.get("logging") or {}
    logging_config = LoggingConfig(
        level=logging_data.get("level", "INFO"),
        format=logging_data.get(
            "format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ),
        file=logging_data.get("file"),
    )

    return AppConfig(output=output_config, logging=logging_config)


def load_entry_points(
    config_path: Optional[Union[str, Path]] = None,
) -> dict[str, FileDocumentationConfig]:
    """Load the ``entry_points`` section of the YAML config.

    Example section::

        entry_points:
          src/schema.ts:
            exports:
              omit: [internalHelper]
            properties_to_omit: [_brand]
            renames:
              createSchema: schema
            map_example:
              schema: docs.examples.strip_imports

    Args:
        config_path: Path to the YAML config file. If None, uses
            markdown-reference.yaml in the current directory.

    Returns:
        File configuration by path, in file order. Empty when the file or
        the section is missing.

    Raises:
        ConfigError: If an entry is malformed or an example mapper
            cannot be imported.
    """
    raw = _read_yaml(config_path)
    if raw is None:
        return {}

    section = raw.get("entry_points") or {}
    if not isinstance(section, dict):
        raise ConfigError("entry_points must map file paths to their configuration")

    return {
        str(file_path): build_file_config(str(file_path), data or {})
        for file_path, data in section.items()
    }


def build_file_config(file_path: str, data: dict[str, Any]) -> FileDocumentationConfig:
    """Build a FileDocumentationConfig from one ``entry_points`` entry.

    Args:
        file_path: Entry point the configuration belongs to, for messages.
        data: Raw configuration of the entry.

    Returns:
        The file configuration.

    Raises:
        ConfigError: If the entry is malformed.
    """
    renames = data.get("renames") or {}
    if not isinstance(renames, dict):
        raise ConfigError(f"{file_path}: renames must be a mapping")

    map_example = data.get("map_example") or {}
    if not isinstance(map_example, dict):
        raise ConfigError(f"{file_path}: map_example must be a mapping")

    return FileDocumentationConfig(
        exports=parse_export_selection(data.get("exports", ALL_EXPORTS)),
        properties_to_omit=frozenset(data.get("properties_to_omit") or ()),
        renames={str(k): str(v) for k, v in renames.items()},
        map_example={str(name): resolve_function(path) for name, path in map_example.items()},
    )


def parse_export_selection(value: Any) -> ExportSelection:
    """Interpret the ``exports`` value of an entry point.

    Args:
        value: ``"all"``, ``{"pick": [...]}`` or ``{"omit": [...]}``.

    Returns:
        The export selection.

    Raises:
        ConfigError: If the value is none of the accepted forms.
    """
    if value is None or value == ALL_EXPORTS:
        return ALL_EXPORTS
    if isinstance(value, dict) and len(value) == 1:
        mode, names = next(iter(value.items()))
        try:
            selection_mode = SelectionMode(mode)
        except ValueError as e:
            raise ConfigError(f"Unknown exports mode {mode!r}, expected pick or omit") from e
        return ExportFilter(mode=selection_mode, names=frozenset(names or ()))
    raise ConfigError(f"Invalid exports selection: {value!r}")


def resolve_function(path: str) -> ExampleMapper:
    """Import a callable from its dotted path (``package.module.function``).

    Args:
        path: Full module path of the callable.

    Returns:
        The callable.

    Raises:
        ConfigError: If the module or attribute cannot be found, or the
            attribute is not callable.
    """
    if not isinstance(path, str) or "." not in path:
        raise ConfigError(f"{path!r} must be a full module path (e.g. 'docs.examples.rewrite')")

    module_path, func_name = path.rsplit(".", 1)
    try:
        module = importlib.import_module(module_path)
    except ImportError as e:
        raise ConfigError(f"Cannot import module {module_path!r}: {e}") from e

    func = getattr(module, func_name, None)
    if func is None:
        raise ConfigError(f"Module {module_path!r} has no attribute {func_name!r}")
    if not callable(func):
        raise ConfigError(f"{path!r} is not callable")
    return func
