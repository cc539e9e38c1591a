"""Loading and navigating TypeScript/JavaScript sources with tree-sitter.

A SourceFile holds one parsed file plus its top-level symbol tables
(local declarations, imports, expando assignments). SourceNode wraps a
tree-sitter node so the documentation extractor can walk parents and
read doc comments without knowing about tree-sitter.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import tree_sitter
import tree_sitter_javascript as tsjs
import tree_sitter_typescript as tsts

from markdown_reference.errors import SourceLoadError
from markdown_reference.parsers.jsdoc import is_jsdoc, parse_comment
from markdown_reference.parsers.structure import Language
from markdown_reference.parsers.types import DocComment

logger = logging.getLogger(__name__)

_LANGUAGES = {
    Language.TYPESCRIPT: tree_sitter.Language(tsts.language_typescript()),
    Language.TSX: tree_sitter.Language(tsts.language_tsx()),
    Language.JAVASCRIPT: tree_sitter.Language(tsjs.language()),
}

# Probed in order when resolving an extension-less module specifier
SOURCE_EXTENSIONS = (".ts", ".tsx", ".d.ts", ".mts", ".cts", ".js", ".jsx", ".mjs", ".cjs")

# `./foo.js` in a TypeScript project usually points at `./foo.ts`
_COMPILED_EXTENSIONS = {
    ".js": (".ts", ".tsx", ".d.ts"),
    ".jsx": (".tsx",),
    ".mjs": (".mts", ".d.mts"),
    ".cjs": (".cts", ".d.cts"),
}

# Top-level declaration node types, keyed to the namespace they declare in
TYPE_DECLARATIONS = {"interface_declaration", "type_alias_declaration"}
VALUE_DECLARATIONS = {
    "function_declaration",
    "generator_function_declaration",
    "function_signature",
    "lexical_declaration",
    "variable_declaration",
}
DUAL_DECLARATIONS = {"class_declaration", "abstract_class_declaration", "enum_declaration"}

# Nodes a doc comment attaches to, unless wrapped by `export` or `declare`
_DOCUMENTABLE = TYPE_DECLARATIONS | VALUE_DECLARATIONS | DUAL_DECLARATIONS | {
    "export_statement",
    "ambient_declaration",
    "expression_statement",
    "property_signature",
    "method_signature",
    "method_definition",
    "abstract_method_signature",
    "public_field_definition",
    "field_definition",
    "pair",
    "shorthand_property_identifier",
    "enum_assignment",
}
_WRAPPERS = {"export_statement", "ambient_declaration"}


def detect_language(path: Path) -> Language:
    """Pick the tree-sitter grammar for a file from its extension.

    Args:
        path: Source file path.

    Returns:
        Language.TSX for .tsx files, TYPESCRIPT for other TypeScript
        extensions, JAVASCRIPT otherwise.
    """
    if path.suffix == ".tsx":
        return Language.TSX
    if path.suffix in (".ts", ".mts", ".cts"):
        return Language.TYPESCRIPT
    return Language.JAVASCRIPT


@dataclass
class ImportBinding:
    """A name brought into a file by an import statement.

    Attributes:
        specifier: Module specifier as written (``./schema``).
        imported_name: Name exported by the target module, ``default``
            for default imports, or ``*`` for namespace imports.
    """

    specifier: str
    imported_name: str


@dataclass(eq=False)
class SourceFile:
    """A parsed source file and its top-level symbol tables.

    Attributes:
        path: Absolute path of the file.
        language: Grammar used to parse it.
        source_bytes: Raw UTF-8 source.
        tree: The tree-sitter syntax tree.
        locals: Top-level declaration nodes by declared name, in order.
        imports: Imported local names.
        expandos: ``fn.prop = ...`` assignment targets by function name.
    """

    path: Path
    language: Language
    source_bytes: bytes
    tree: tree_sitter.Tree
    locals: dict[str, list[tree_sitter.Node]] = field(default_factory=dict)
    imports: dict[str, ImportBinding] = field(default_factory=dict)
    expandos: dict[str, list[tuple[str, tree_sitter.Node]]] = field(default_factory=dict)

    @property
    def root(self) -> tree_sitter.Node:
        return self.tree.root_node

    def text(self, node: tree_sitter.Node) -> str:
        """Extract the text content of a tree-sitter node.

        Args:
            node: A tree-sitter Node of this file.

        Returns:
            The text content of the node.
        """
        return self.source_bytes[node.start_byte : node.end_byte].decode("utf-8")

    def doc_comment_before(self, node: tree_sitter.Node) -> Optional[DocComment]:
        """Find the JSDoc comment written directly before a node.

        Consecutive doc comments may precede a node; like the TypeScript
        compiler, the first of them is the one that documents it. Plain
        ``//`` comments in between are skipped.

        Args:
            node: The node to find a doc comment for.

        Returns:
            The parsed comment, or None.
        """
        found: Optional[str] = None
        prev = node.prev_named_sibling
        while prev is not None and prev.type == "comment":
            raw = self.text(prev)
            if is_jsdoc(raw):
                found = raw
            prev = prev.prev_named_sibling
        return parse_comment(found) if found is not None else None

    def declarations_of(self, name: str, node_types: set[str]) -> list[tree_sitter.Node]:
        """Return the local declarations of a name restricted to some node types."""
        return [n for n in self.locals.get(name, []) if n.type in node_types]


class SourceNode:
    """A tree-sitter node bound to the file it comes from."""

    def __init__(self, node: tree_sitter.Node, source: SourceFile) -> None:
        self.ts_node = node
        self.source = source

    @property
    def type(self) -> str:
        return self.ts_node.type

    def parent(self) -> Optional["SourceNode"]:
        parent = self.ts_node.parent
        return SourceNode(parent, self.source) if parent is not None else None

    def own_doc_comment(self) -> Optional[DocComment]:
        return self.source.doc_comment_before(self.ts_node)

    def is_documentable(self) -> bool:
        node = self.ts_node
        parent = node.parent
        if parent is not None and parent.type == "enum_body":
            return True
        if node.type not in _DOCUMENTABLE:
            return False
        return parent is None or parent.type not in _WRAPPERS

    def is_transparent(self) -> bool:
        return self.ts_node.type in _WRAPPERS

    def _key(self) -> tuple[Path, int, int, str]:
        node = self.ts_node
        return (self.source.path, node.start_byte, node.end_byte, node.type)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SourceNode):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __repr__(self) -> str:
        row = self.ts_node.start_point[0] + 1
        return f"SourceNode({self.type} at {self.source.path.name}:{row})"


def unwrap_declaration(node: tree_sitter.Node) -> Optional[tree_sitter.Node]:
    """Return the declaration wrapped by ``declare`` or ``export``, if any."""
    if node.type == "ambient_declaration":
        for child in node.named_children:
            if child.type in TYPE_DECLARATIONS | VALUE_DECLARATIONS | DUAL_DECLARATIONS:
                return child
        return None
    if node.type == "export_statement":
        declaration = node.child_by_field_name("declaration")
        return unwrap_declaration(declaration) if declaration is not None else None
    return node


def declared_names(node: tree_sitter.Node, source: SourceFile) -> list[tuple[str, tree_sitter.Node]]:
    """List the (name, declaration node) pairs a top-level declaration introduces.

    Variable statements yield one entry per declarator; destructuring
    patterns are not supported and yield nothing.

    Args:
        node: An unwrapped top-level declaration node.
        source: File the node belongs to.

    Returns:
        Declared names with the node that declares each.
    """
    if node.type in ("lexical_declaration", "variable_declaration"):
        names = []
        for declarator in node.named_children:
            if declarator.type != "variable_declarator":
                continue
            name_node = declarator.child_by_field_name("name")
            if name_node is not None and name_node.type == "identifier":
                names.append((source.text(name_node), declarator))
        return names

    name_node = node.child_by_field_name("name")
    if name_node is None:
        return []
    return [(source.text(name_node), node)]


class SourceLoader:
    """Reads, parses and indexes source files, resolving relative imports.

    Parsed files are cached for the lifetime of the loader, which is
    expected to be one documentation run.
    """

    def __init__(self) -> None:
        self._files: dict[Path, SourceFile] = {}

    def add_source(self, file_path: str, source: str) -> SourceFile:
        """Register in-memory source code under a (possibly virtual) path.

        Args:
            file_path: Path the source is known by.
            source: Source code.

        Returns:
            The parsed SourceFile.
        """
        path = Path(file_path).resolve()
        parsed = self._parse(path, source.encode("utf-8"))
        self._files[path] = parsed
        return parsed

    def load(self, file_path: str) -> SourceFile:
        """Load and parse a source file, using the cache when possible.

        Args:
            file_path: Path to a TS/JS file.

        Returns:
            The parsed SourceFile.

        Raises:
            FileNotFoundError: If the file does not exist.
            SourceLoadError: If the file cannot be read or decoded.
        """
        path = Path(file_path).resolve()
        cached = self._files.get(path)
        if cached is not None:
            return cached
        if not path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        try:
            source_bytes = path.read_bytes()
            source_bytes.decode("utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise SourceLoadError(path, str(e)) from e

        parsed = self._parse(path, source_bytes)
        self._files[path] = parsed
        return parsed

    def resolve_module(self, importer: SourceFile, specifier: str) -> Optional[Path]:
        """Resolve a relative module specifier to a source file path.

        Args:
            importer: File containing the import or re-export.
            specifier: Module specifier as written.

        Returns:
            The resolved path, or None for package imports and
            specifiers that match no file.
        """
        if not specifier.startswith("."):
            logger.debug("Not following package import %r from %s", specifier, importer.path)
            return None

        base = (importer.path.parent / specifier).resolve()
        candidates: list[Path] = []
        compiled = _COMPILED_EXTENSIONS.get(base.suffix)
        if compiled:
            stem = str(base)[: -len(base.suffix)]
            candidates.extend(Path(stem + ext) for ext in compiled)
        candidates.append(base)
        candidates.extend(Path(str(base) + ext) for ext in SOURCE_EXTENSIONS)
        candidates.extend(base / f"index{ext}" for ext in SOURCE_EXTENSIONS)

        for candidate in candidates:
            if candidate in self._files or candidate.is_file():
                return candidate

        logger.debug("Cannot resolve %r from %s", specifier, importer.path)
        return None

    def _parse(self, path: Path, source_bytes: bytes) -> SourceFile:
        """Parse source bytes and build the file's symbol tables."""
        language = detect_language(path)
        parser = tree_sitter.Parser(_LANGUAGES[language])
        tree = parser.parse(source_bytes)
        if tree.root_node.has_error:
            logger.warning("Syntax errors in %s, documenting what could be parsed", path)

        source = SourceFile(path=path, language=language, source_bytes=source_bytes, tree=tree)
        for statement in tree.root_node.named_children:
            self._index_statement(statement, source)

        logger.debug(
            "Parsed %s: %d local names, %d imports",
            path,
            len(source.locals),
            len(source.imports),
        )
        return source

    def _index_statement(self, statement: tree_sitter.Node, source: SourceFile) -> None:
        """Record the names a top-level statement declares, imports or expands."""
        if statement.type == "import_statement":
            self._index_import(statement, source)
            return

        if statement.type == "expression_statement":
            self._index_expando(statement, source)
            return

        declaration = unwrap_declaration(statement)
        if declaration is None:
            return
        for name, node in declared_names(declaration, source):
            source.locals.setdefault(name, []).append(node)

    def _index_import(self, statement: tree_sitter.Node, source: SourceFile) -> None:
        """Record the local names bound by an import statement."""
        source_node = statement.child_by_field_name("source")
        if source_node is None:
            return
        specifier = source.text(source_node).strip("'\"")

        for clause in statement.named_children:
            if clause.type != "import_clause":
                continue
            for child in clause.named_children:
                if child.type == "identifier":
                    source.imports[source.text(child)] = ImportBinding(specifier, "default")
                elif child.type == "namespace_import":
                    for ident in child.named_children:
                        if ident.type == "identifier":
                            source.imports[source.text(ident)] = ImportBinding(specifier, "*")
                elif child.type == "named_imports":
                    for element in child.named_children:
                        if element.type != "import_specifier":
                            continue
                        name_node = element.child_by_field_name("name")
                        alias_node = element.child_by_field_name("alias")
                        if name_node is None:
                            continue
                        imported = source.text(name_node).strip("'\"")
                        local = source.text(alias_node) if alias_node is not None else imported
                        source.imports[local] = ImportBinding(specifier, imported)

    def _index_expando(self, statement: tree_sitter.Node, source: SourceFile) -> None:
        """Record ``fn.prop = value`` assignments made at the top level."""
        for expression in statement.named_children:
            if expression.type != "assignment_expression":
                continue
            left = expression.child_by_field_name("left")
            if left is None or left.type != "member_expression":
                continue
            target = left.child_by_field_name("object")
            prop = left.child_by_field_name("property")
            if target is None or prop is None or target.type != "identifier":
                continue
            source.expandos.setdefault(source.text(target), []).append((source.text(prop), left))
