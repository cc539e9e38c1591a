"""Documentation tree extraction for exported declarations.

Builds an ExportDocumentation for a declaration by reading its doc
comment and walking its structural type for documented properties,
through arrays, sets, maps and the branches of conditional aliases.
"""

import logging
from dataclasses import replace
from typing import Optional

from markdown_reference.parsers.jsdoc import documentation_from_comment
from markdown_reference.parsers.structure import ExportDocumentation
from markdown_reference.parsers.types import (
    ArrayType,
    ConditionalType,
    Declaration,
    DocComment,
    MapType,
    ObjectType,
    SetType,
    SyntaxNode,
    TypeDescriptor,
    TypeOracle,
)

logger = logging.getLogger(__name__)

# A doc comment may sit on the declaration or on up to two enclosing nodes
# (`export const x = ...` documents the statement, not the declarator)
MAX_DOC_ANCESTORS = 3

# Guards against very deep, non-repeating type graphs
MAX_PROPERTY_DEPTH = 32

TYPEOF_PREFIX = "typeof "

# Member declaration nodes of an object type, in order
Shape = tuple[SyntaxNode, ...]


def find_doc_comment(
    node: Optional[SyntaxNode], max_nodes: int = MAX_DOC_ANCESTORS
) -> Optional[DocComment]:
    """Return the doc comment of the nearest node able to carry one.

    The walk starts at the node itself and stops at the first documentable
    node, whether or not it has a comment, so an undocumented member never
    inherits the comment of the type that declares it. Transparent nodes,
    such as ``export`` and ``declare`` wrappers, are crossed without
    counting toward ``max_nodes``.

    Args:
        node: Node to start from.
        max_nodes: How many nodes (the start node included) to inspect.

    Returns:
        The nearest doc comment, or None.
    """
    current = node
    remaining = max_nodes
    while current is not None and remaining:
        if current.is_documentable():
            return current.own_doc_comment()
        if not current.is_transparent():
            remaining -= 1
        current = current.parent()
    return None


def object_shape(descriptor: ObjectType) -> Shape:
    """Identify an object type by the syntax nodes declaring its members."""
    return tuple(prop.declaration.node for prop in descriptor.properties)


def conditional_leaves(descriptor: ConditionalType) -> list[TypeDescriptor]:
    """Flatten every branch of a (possibly nested) conditional type.

    Args:
        descriptor: The conditional type.

    Returns:
        The non-conditional branch types, true branches first.
    """
    leaves: list[TypeDescriptor] = []
    for branch in (descriptor.true_branch, descriptor.false_branch):
        if isinstance(branch, ConditionalType):
            leaves.extend(conditional_leaves(branch))
        else:
            leaves.append(branch)
    return leaves


class DocumentationExtractor:
    """Builds documentation trees by querying a type oracle."""

    def __init__(self, oracle: TypeOracle, max_depth: int = MAX_PROPERTY_DEPTH) -> None:
        self.oracle = oracle
        self.max_depth = max_depth

    def extract(self, declaration: Declaration) -> ExportDocumentation:
        """Build the documentation tree of an exported declaration.

        The doc comment is looked up on the declaration and its nearest
        ancestors. A declaration without any documentation still yields
        a node, possibly an empty one.

        Args:
            declaration: The exported declaration.

        Returns:
            Its documentation tree.
        """
        fragment = documentation_from_comment(find_doc_comment(declaration.node))
        properties = self.extract_properties(self.oracle.get_structural_type(declaration))
        return replace(
            fragment or ExportDocumentation(),
            type=self._type_text(declaration),
            properties=properties,
        )

    def extract_properties(
        self,
        descriptor: TypeDescriptor,
        depth: int = 0,
        expanding: frozenset[Shape] = frozenset(),
    ) -> Optional[dict[str, ExportDocumentation]]:
        """Collect the documented properties of a type.

        An object type already being expanded further up the current path
        is not expanded again, so self-referencing types stop at their
        first repetition instead of branching until the depth cap.

        Args:
            descriptor: Structural type to walk.
            depth: Current nesting depth.
            expanding: Shapes of the object types on the current path.

        Returns:
            Documented properties by name, or None when there are none.
        """
        if depth > self.max_depth:
            logger.warning(
                "Stopped looking for documented properties after %d nested levels",
                self.max_depth,
            )
            return None

        if isinstance(descriptor, ArrayType):
            return self.extract_properties(descriptor.element, depth + 1, expanding)
        if isinstance(descriptor, SetType):
            if descriptor.element is None:
                return None
            return self.extract_properties(descriptor.element, depth + 1, expanding)
        if isinstance(descriptor, MapType):
            if descriptor.value is None:
                return None
            return self.extract_properties(descriptor.value, depth + 1, expanding)
        if isinstance(descriptor, ConditionalType):
            merged: Optional[dict[str, ExportDocumentation]] = None
            for leaf in conditional_leaves(descriptor):
                leaf_properties = self.extract_properties(leaf, depth + 1, expanding)
                if leaf_properties:
                    merged = {**(merged or {}), **leaf_properties}
            return merged
        if isinstance(descriptor, ObjectType):
            return self._object_properties(descriptor, depth, expanding)
        return None

    def _object_properties(
        self, descriptor: ObjectType, depth: int, expanding: frozenset[Shape]
    ) -> Optional[dict[str, ExportDocumentation]]:
        shape = object_shape(descriptor)
        if shape in expanding:
            logger.debug("Not expanding a self-referencing type again at depth %d", depth)
            return None
        expanding = expanding | {shape}

        properties: dict[str, ExportDocumentation] = {}
        for prop in descriptor.properties:
            declaration = prop.declaration
            if not declaration.is_property_signature:
                # Methods and assigned functions: nearest comment, no nesting
                comment = find_doc_comment(declaration.node)
                if comment is not None:
                    properties[prop.name] = documentation_from_comment(comment)
                continue

            own = documentation_from_comment(self.oracle.get_documentation_comment(declaration))
            nested = self.extract_properties(
                self.oracle.get_structural_type(declaration), depth + 1, expanding
            )
            if own is not None or nested is not None:
                properties[prop.name] = replace(own or ExportDocumentation(), properties=nested)
        return properties or None

    def _type_text(self, declaration: Declaration) -> Optional[str]:
        text = self.oracle.render_type_text(declaration)
        if text.startswith(TYPEOF_PREFIX):
            return None
        return text
