"""Per-export curation of documentation trees.

Curation runs on every selected export before cross-file aggregation.
It prunes configured property names at every depth and passes each
example through the export's example mapper, if one is configured.
All other fields are left untouched.
"""

import logging
from dataclasses import replace
from typing import Optional

from markdown_reference.parsers.structure import (
    Example,
    ExampleMapper,
    ExportDocumentation,
    FileDocumentationConfig,
)

logger = logging.getLogger(__name__)


def curate_export_documentation(
    export_name: str,
    config: FileDocumentationConfig,
    documentation: ExportDocumentation,
    property_path: Optional[str] = None,
) -> ExportDocumentation:
    """Apply property pruning and example mapping to a documentation tree.

    The example mapper is looked up by the export's public name and is
    called as ``mapper(example, property_path)``, where the path is the
    dotted name of the owning property relative to the export
    (``"reasons.code"``) or None for the export's own examples.

    Args:
        export_name: Declared name of the export.
        config: Configuration of the file declaring the export.
        documentation: Tree to curate.
        property_path: Dotted path of ``documentation`` inside the export.

    Returns:
        A new, curated tree.
    """
    mapper = config.map_example.get(config.public_name(export_name))

    examples = documentation.examples
    if examples is not None and mapper is not None:
        examples = _map_examples(examples, mapper, property_path)

    properties = documentation.properties
    if properties is not None:
        curated: dict[str, ExportDocumentation] = {}
        for name, child in properties.items():
            if name in config.properties_to_omit:
                logger.debug("Omitting property %s of %s", name, export_name)
                continue
            child_path = f"{property_path}.{name}" if property_path else name
            curated[name] = curate_export_documentation(export_name, config, child, child_path)
        properties = curated

    return replace(documentation, examples=examples, properties=properties)


def _map_examples(
    examples: list[Example], mapper: ExampleMapper, property_path: Optional[str]
) -> list[Example]:
    mapped: list[Example] = []
    for example in examples:
        result = mapper(example, property_path)
        if result is not None:
            mapped.append(result)
    return mapped
