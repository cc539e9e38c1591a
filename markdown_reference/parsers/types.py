"""Contract between the documentation extractor and a type oracle.

The extractor never touches a syntax tree directly. It asks a type
oracle for the exported declarations of a file, for the doc comment
attached to a syntax node, and for the structural type of a
declaration, described with the closed set of descriptors below.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Protocol, Union


@dataclass(frozen=True)
class DocTag:
    """A block tag of a doc comment, such as ``@example`` or ``@remarks``.

    Attributes:
        name: Tag name without the leading ``@``.
        text: Comment text following the tag name, possibly multi-line.
    """

    name: str
    text: str = ""


@dataclass(frozen=True)
class DocComment:
    """A parsed ``/** ... */`` comment.

    Attributes:
        description: Free text written before the first tag.
        tags: Block tags in the order they appear.
    """

    description: str = ""
    tags: tuple[DocTag, ...] = ()


class SyntaxNode(Protocol):
    """Minimal view of a syntax tree node used for doc comment lookup.

    Nodes are hashable, and two views of the same source node compare equal.
    """

    def parent(self) -> Optional[SyntaxNode]:
        """Return the enclosing node, or None at the root."""
        ...

    def own_doc_comment(self) -> Optional[DocComment]:
        """Return the doc comment written directly before this node."""
        ...

    def is_documentable(self) -> bool:
        """Whether a doc comment can be attached to this node."""
        ...

    def is_transparent(self) -> bool:
        """Whether this node only adds modifiers (``export``, ``declare``) to its child."""
        ...


class DeclarationKind(str, Enum):
    """Kinds of declarations an oracle can report."""

    PROPERTY_SIGNATURE = "property_signature"
    METHOD = "method"
    FIELD = "field"
    OBJECT_PROPERTY = "object_property"
    ASSIGNED_PROPERTY = "assigned_property"
    ENUM_MEMBER = "enum_member"
    VARIABLE = "variable"
    FUNCTION = "function"
    CLASS = "class"
    INTERFACE = "interface"
    TYPE_ALIAS = "type_alias"
    ENUM = "enum"
    NAMESPACE = "namespace"


@dataclass(eq=False)
class Declaration:
    """A named declaration known to an oracle.

    Attributes:
        name: Declared name.
        kind: What sort of declaration this is.
        node: Syntax node of the declaration itself.
    """

    name: str
    kind: DeclarationKind
    node: SyntaxNode

    @property
    def is_property_signature(self) -> bool:
        """Whether this is a plain ``name: Type`` member of an object type."""
        return self.kind == DeclarationKind.PROPERTY_SIGNATURE


@dataclass(frozen=True)
class PropertySymbol:
    """A property of an object type together with its first declaration."""

    name: str
    declaration: Declaration


@dataclass(frozen=True)
class OpaqueType:
    """Any type that carries no documented properties (unions, primitives...)."""

    text: str = "unknown"


@dataclass(frozen=True)
class ArrayType:
    """``T[]`` and its spellings."""

    element: TypeDescriptor


@dataclass(frozen=True)
class SetType:
    """A set-like container; ``element`` is None when no argument is given."""

    element: Optional[TypeDescriptor] = None


@dataclass(frozen=True)
class MapType:
    """A map-like container; ``value`` is None when no argument is given."""

    value: Optional[TypeDescriptor] = None


@dataclass(frozen=True)
class ObjectType:
    """An object-like type with an ordered list of properties."""

    properties: tuple[PropertySymbol, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ConditionalType:
    """A type alias defined as ``A extends B ? TrueBranch : FalseBranch``."""

    true_branch: TypeDescriptor
    false_branch: TypeDescriptor


TypeDescriptor = Union[OpaqueType, ArrayType, SetType, MapType, ObjectType, ConditionalType]


class TypeOracle(Protocol):
    """Source of exported declarations and their structural types."""

    def list_exported_declarations(self, file_path: str) -> list[tuple[str, Declaration]]:
        """Return the exported (name, declaration) pairs of a file in order."""
        ...

    def get_documentation_comment(self, declaration: Declaration) -> Optional[DocComment]:
        """Return the doc comment written on the declaration itself."""
        ...

    def get_structural_type(self, declaration: Declaration) -> TypeDescriptor:
        """Describe the shape of the declaration's type."""
        ...

    def render_type_text(self, declaration: Declaration) -> str:
        """Render the declaration's type as untruncated text."""
        ...
