"""Data models for extracted documentation and per-file configuration.

Defines the documentation tree produced for every exported declaration,
the examples attached to it, and the configuration that controls which
exports of a file are documented and how their trees are curated. These
models form the shared vocabulary between the extractor, the curation
and aggregation steps, and the markdown renderer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Union


class Language(str, Enum):
    """Source languages understood by the tree-sitter oracle."""

    TYPESCRIPT = "typescript"
    TSX = "tsx"
    JAVASCRIPT = "javascript"


class SelectionMode(str, Enum):
    """How a list of export names restricts the documented exports."""

    PICK = "pick"
    OMIT = "omit"


ALL_EXPORTS = "all"


@dataclass(frozen=True)
class Example:
    """A code example taken from an ``@example`` tag.

    Attributes:
        code: The example text starting at its first code fence.
        title: Optional text written before the code fence.
    """

    code: str
    title: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary, leaving out an absent title.

        Returns:
            Dictionary representation of this example.
        """
        data: dict[str, Any] = {}
        if self.title is not None:
            data["title"] = self.title
        data["code"] = self.code
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Example:
        """Deserialize from a dictionary.

        Args:
            data: Dictionary with example fields.

        Returns:
            A new Example instance.
        """
        return cls(code=data["code"], title=data.get("title"))


@dataclass(frozen=True)
class ExportDocumentation:
    """Documentation tree node for an export or one of its properties.

    Nodes are never mutated once built; curation and merging create
    replacement nodes.

    Attributes:
        description: Free text of the doc comment.
        summary: Text of the ``@summary`` tag.
        remarks: Text of the ``@remarks`` tag.
        category: Text of the ``@category`` tag.
        type: Rendered type signature of the declaration.
        examples: Examples in the order they were written.
        properties: Documented nested properties by name.
    """

    description: Optional[str] = None
    summary: Optional[str] = None
    remarks: Optional[str] = None
    category: Optional[str] = None
    type: Optional[str] = None
    examples: Optional[list[Example]] = None
    properties: Optional[dict[str, ExportDocumentation]] = None

    @property
    def is_empty(self) -> bool:
        """Whether the node has no renderable content of its own.

        Nested properties do not count: a node that only documents its
        properties is still empty.
        """
        return not (self.description or self.summary or self.remarks or self.examples)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary, omitting absent fields.

        Returns:
            Dictionary representation of this node and its properties.
        """
        data: dict[str, Any] = {}
        for key in ("description", "summary", "remarks", "category", "type"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        if self.examples is not None:
            data["examples"] = [e.to_dict() for e in self.examples]
        if self.properties is not None:
            data["properties"] = {k: v.to_dict() for k, v in self.properties.items()}
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExportDocumentation:
        """Deserialize from a dictionary.

        Args:
            data: Dictionary with documentation fields.

        Returns:
            A new ExportDocumentation instance.
        """
        examples = data.get("examples")
        properties = data.get("properties")
        return cls(
            description=data.get("description"),
            summary=data.get("summary"),
            remarks=data.get("remarks"),
            category=data.get("category"),
            type=data.get("type"),
            examples=[Example.from_dict(e) for e in examples] if examples is not None else None,
            properties=(
                {k: cls.from_dict(v) for k, v in properties.items()}
                if properties is not None
                else None
            ),
        )


@dataclass(frozen=True)
class ExportFilter:
    """Restricts the documented exports of a file to, or away from, a set of names.

    Attributes:
        mode: Whether ``names`` are the only exports kept or the ones dropped.
        names: Export names the mode applies to.
    """

    mode: SelectionMode
    names: frozenset[str] = frozenset()


ExportSelection = Union[str, ExportFilter]
ExampleMapper = Callable[[Example, Optional[str]], Optional[Example]]


@dataclass
class FileDocumentationConfig:
    """How the exports of one entry point are selected and curated.

    Attributes:
        exports: ``"all"`` or an ExportFilter.
        properties_to_omit: Property names dropped at every nesting depth.
        renames: Declared export name to public export name.
        map_example: Public export name to a function rewriting (or
            dropping, by returning None) each of its examples.
    """

    exports: ExportSelection = ALL_EXPORTS
    properties_to_omit: frozenset[str] = frozenset()
    renames: dict[str, str] = field(default_factory=dict)
    map_example: dict[str, ExampleMapper] = field(default_factory=dict)

    def public_name(self, export_name: str) -> str:
        """Return the name an export is published under."""
        return self.renames.get(export_name, export_name)


FileDocumentation = dict[str, ExportDocumentation]
