"""Type oracle for TypeScript and JavaScript sources built on tree-sitter.

Answers the questions the documentation extractor asks about a file:
which names it exports (following re-exports across files), what doc
comment a declaration carries, what structural shape its type has, and
how that type reads as text. Types are resolved syntactically: interface
and alias references, generics, the standard container types and a few
utility types are understood, anything else is opaque.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import tree_sitter

from markdown_reference.parsers.ts_source import (
    DUAL_DECLARATIONS,
    TYPE_DECLARATIONS,
    VALUE_DECLARATIONS,
    SourceFile,
    SourceLoader,
    SourceNode,
    declared_names,
    unwrap_declaration,
)
from markdown_reference.parsers.types import (
    ArrayType,
    ConditionalType,
    Declaration,
    DeclarationKind,
    DocComment,
    MapType,
    ObjectType,
    OpaqueType,
    PropertySymbol,
    SetType,
    TypeDescriptor,
)

logger = logging.getLogger(__name__)

# Alias chains and generic substitutions deeper than this are treated as cycles
MAX_RESOLVE_DEPTH = 64

_ARRAY_TYPES = {"Array", "ReadonlyArray"}
_SET_TYPES = {"Set", "ReadonlySet", "WeakSet"}
_MAP_TYPES = {"Map", "ReadonlyMap", "WeakMap"}
_PASS_THROUGH_TYPES = {"Partial", "Required", "Readonly", "NonNullable"}

_FUNCTION_EXPRESSIONS = {"arrow_function", "function_expression", "function"}
_REFERENCE_TYPES = {"type_identifier", "generic_type", "nested_type_identifier"}
_ANNOTATED_NODES = {
    "variable_declarator",
    "property_signature",
    "public_field_definition",
    "field_definition",
}
_VALUE_NODES = VALUE_DECLARATIONS | DUAL_DECLARATIONS | {"variable_declarator"}

_KIND_BY_NODE_TYPE = {
    "interface_declaration": DeclarationKind.INTERFACE,
    "type_alias_declaration": DeclarationKind.TYPE_ALIAS,
    "class_declaration": DeclarationKind.CLASS,
    "abstract_class_declaration": DeclarationKind.CLASS,
    "class": DeclarationKind.CLASS,
    "enum_declaration": DeclarationKind.ENUM,
    "function_declaration": DeclarationKind.FUNCTION,
    "generator_function_declaration": DeclarationKind.FUNCTION,
    "function_signature": DeclarationKind.FUNCTION,
    "variable_declarator": DeclarationKind.VARIABLE,
}

_STRING_LITERAL = re.compile(r"""^(['"])(.*)\1$""", re.DOTALL)


@dataclass(frozen=True, eq=False)
class TypeScope:
    """Where a type node is evaluated: its file and bound type parameters.

    A binding maps a type parameter name to the argument node and the
    scope that argument must be evaluated in, or to None when the
    parameter is unbound.
    """

    source: SourceFile
    bindings: dict[str, Optional[tuple[tree_sitter.Node, "TypeScope"]]] = field(
        default_factory=dict
    )


@dataclass(eq=False)
class SourceDeclaration(Declaration):
    """A declaration located in a parsed source file.

    Attributes:
        scope: Scope used to resolve the declaration's type annotation.
        target: Module a namespace declaration stands for.
    """

    scope: Optional[TypeScope] = None
    target: Optional[Path] = None

    @property
    def ts_node(self) -> tree_sitter.Node:
        return self.node.ts_node

    @property
    def source(self) -> SourceFile:
        return self.node.source


class TreeSitterOracle:
    """Type oracle over TS/JS files parsed with tree-sitter.

    One oracle is meant to serve one documentation run; parsed files and
    computed export tables are cached on the instance.
    """

    def __init__(self, loader: Optional[SourceLoader] = None) -> None:
        self.loader = loader or SourceLoader()
        self._exports: dict[Path, dict[str, SourceDeclaration]] = {}
        self._computing: set[Path] = set()

    def add_source(self, file_path: str, source: str) -> None:
        """Register in-memory source code, mostly useful in tests.

        Args:
            file_path: Path the code is known by; relative imports are
                resolved against it.
            source: TypeScript or JavaScript source code.
        """
        self.loader.add_source(file_path, source)

    # ------------------------------------------------------------------
    # Oracle contract

    def list_exported_declarations(self, file_path: str) -> list[tuple[str, Declaration]]:
        """Return the exported names of a file with their declarations.

        Args:
            file_path: Path to the entry point.

        Returns:
            (export name, declaration) pairs in source order.

        Raises:
            FileNotFoundError: If the file does not exist.
            SourceLoadError: If the file cannot be read.
        """
        source = self.loader.load(file_path)
        return list(self._file_exports(source).items())

    def get_documentation_comment(self, declaration: Declaration) -> Optional[DocComment]:
        return declaration.node.own_doc_comment()

    def get_structural_type(self, declaration: Declaration) -> TypeDescriptor:
        """Describe the shape of a declaration's type.

        Args:
            declaration: A declaration produced by this oracle.

        Returns:
            The structural type descriptor.

        Raises:
            TypeError: If the declaration comes from another oracle.
        """
        return self._declaration_type(_own_declaration(declaration), 0)

    def render_type_text(self, declaration: Declaration) -> str:
        """Render the type of a declaration the way a compiler would print it.

        Args:
            declaration: A declaration produced by this oracle.

        Returns:
            The type as untruncated text; ``typeof name`` for values
            whose type is only describable through their own symbol.

        Raises:
            TypeError: If the declaration comes from another oracle.
        """
        return self._declaration_text(_own_declaration(declaration), 0)

    # ------------------------------------------------------------------
    # Exports

    def _file_exports(self, source: SourceFile) -> dict[str, SourceDeclaration]:
        """Compute (and cache) the export table of a file."""
        cached = self._exports.get(source.path)
        if cached is not None:
            return cached
        if source.path in self._computing:
            logger.warning("Circular re-export through %s ignored", source.path)
            return {}

        self._computing.add(source.path)
        try:
            exports: dict[str, SourceDeclaration] = {}
            for statement in source.root.named_children:
                if statement.type == "export_statement":
                    for name, declaration in self._export_statement(statement, source):
                        if declaration is None:
                            logger.debug("Export %s of %s cannot be resolved", name, source.path)
                        else:
                            exports.setdefault(name, declaration)
        finally:
            self._computing.discard(source.path)

        self._exports[source.path] = exports
        return exports

    def _export_statement(
        self, statement: tree_sitter.Node, source: SourceFile
    ) -> list[tuple[str, Optional[SourceDeclaration]]]:
        """Resolve the names exported by one export statement."""
        is_default = any(child.type == "default" for child in statement.children)
        module_node = statement.child_by_field_name("source")

        declaration = unwrap_declaration(statement)
        if declaration is not None:
            declared = [
                (name, self._make_declaration(name, node, source))
                for name, node in declared_names(declaration, source)
            ]
            if is_default:
                if declared:
                    return [("default", declared[0][1])]
                return [("default", self._make_declaration("default", declaration, source))]
            return declared

        value = statement.child_by_field_name("value")
        if value is not None:
            if value.type == "identifier":
                return [("default", self._local_value(source.text(value), source))]
            return [("default", self._expression_declaration("default", value, source))]

        target: Optional[SourceFile] = None
        if module_node is not None:
            specifier = source.text(module_node).strip("'\"")
            path = self.loader.resolve_module(source, specifier)
            if path is None:
                return []
            target = self.loader.load(str(path))

        results: list[tuple[str, Optional[SourceDeclaration]]] = []
        for child in statement.named_children:
            if child.type == "export_clause":
                for element in child.named_children:
                    if element.type != "export_specifier":
                        continue
                    name_node = element.child_by_field_name("name")
                    alias_node = element.child_by_field_name("alias")
                    if name_node is None:
                        continue
                    local = source.text(name_node).strip("'\"")
                    exported = (
                        source.text(alias_node).strip("'\"") if alias_node is not None else local
                    )
                    if target is not None:
                        resolved = self._file_exports(target).get(local)
                    else:
                        resolved = self._local_value(local, source) or self._local_type(
                            local, source
                        )
                    results.append((exported, resolved))
            elif child.type == "namespace_export" and target is not None:
                ident = child.named_children[-1] if child.named_children else None
                if ident is not None:
                    name = source.text(ident).strip("'\"")
                    namespace = self._namespace_declaration(name, statement, source, target)
                    results.append((name, namespace))

        if target is not None and not results and any(
            child.type == "*" for child in statement.children
        ):
            for name, resolved in self._file_exports(target).items():
                if name != "default":
                    results.append((name, resolved))
        return results

    # ------------------------------------------------------------------
    # Declarations

    def _make_declaration(
        self, name: str, node: tree_sitter.Node, source: SourceFile
    ) -> SourceDeclaration:
        kind = _KIND_BY_NODE_TYPE.get(node.type, DeclarationKind.VARIABLE)
        return SourceDeclaration(
            name=name,
            kind=kind,
            node=SourceNode(node, source),
            scope=TypeScope(source),
        )

    def _expression_declaration(
        self, name: str, node: tree_sitter.Node, source: SourceFile
    ) -> SourceDeclaration:
        """Declaration for an anonymous value such as ``export default {...}``."""
        kind = _KIND_BY_NODE_TYPE.get(node.type, DeclarationKind.VARIABLE)
        return SourceDeclaration(
            name=name, kind=kind, node=SourceNode(node, source), scope=TypeScope(source)
        )

    def _namespace_declaration(
        self, name: str, node: tree_sitter.Node, source: SourceFile, target: SourceFile
    ) -> SourceDeclaration:
        """Declaration standing for every export of ``target``."""
        return SourceDeclaration(
            name=name,
            kind=DeclarationKind.NAMESPACE,
            node=SourceNode(node, source),
            target=target.path,
        )

    def _local_value(self, name: str, source: SourceFile) -> Optional[SourceDeclaration]:
        """Find the value declaration a name refers to inside a file."""
        nodes = source.declarations_of(name, _VALUE_NODES)
        if nodes:
            return self._make_declaration(name, nodes[0], source)
        return self._imported(name, source)

    def _local_type(self, name: str, source: SourceFile) -> Optional[SourceDeclaration]:
        """Find the type declaration a name refers to inside a file."""
        nodes = source.declarations_of(name, TYPE_DECLARATIONS | DUAL_DECLARATIONS)
        if nodes:
            return self._make_declaration(name, nodes[0], source)
        return self._imported(name, source)

    def _imported(self, name: str, source: SourceFile) -> Optional[SourceDeclaration]:
        """Follow an import binding to the declaration it stands for."""
        binding = source.imports.get(name)
        if binding is None:
            return None
        path = self.loader.resolve_module(source, binding.specifier)
        if path is None:
            return None
        target = self.loader.load(str(path))
        if binding.imported_name == "*":
            return self._namespace_declaration(name, source.root, source, target)
        return self._file_exports(target).get(binding.imported_name)

    # ------------------------------------------------------------------
    # Structural types

    def _declaration_type(self, declaration: SourceDeclaration, depth: int) -> TypeDescriptor:
        """Structural type of any declaration produced by this oracle."""
        if depth > MAX_RESOLVE_DEPTH:
            logger.warning("Type of %s is too deeply nested, treating it as opaque", declaration.name)
            return OpaqueType(declaration.name)

        node = declaration.ts_node
        source = declaration.source
        scope = declaration.scope or TypeScope(source)
        kind = declaration.kind

        if kind == DeclarationKind.NAMESPACE:
            if declaration.target is None:
                raise ValueError(f"Namespace {declaration.name} has no target module")
            target = self.loader.load(str(declaration.target))
            return ObjectType(
                tuple(
                    PropertySymbol(name, decl)
                    for name, decl in self._file_exports(target).items()
                )
            )
        if kind == DeclarationKind.INTERFACE:
            return self._interface_type(declaration.name, source, self._unbound(node, scope), depth)
        if kind == DeclarationKind.TYPE_ALIAS:
            value = node.child_by_field_name("value")
            if value is None:
                return OpaqueType(declaration.name)
            return self._resolve(value, self._unbound(node, scope), depth + 1, conditional=True)
        if kind == DeclarationKind.CLASS:
            return ObjectType(self._class_members(node, scope, static=True, depth=depth))
        if kind == DeclarationKind.ENUM:
            return ObjectType(self._enum_members(node, source))
        if kind == DeclarationKind.FUNCTION:
            return ObjectType(self._expando_members(declaration.name, source))
        if kind in (DeclarationKind.PROPERTY_SIGNATURE, DeclarationKind.FIELD):
            annotation = node.child_by_field_name("type")
            if annotation is not None:
                return self._resolve(annotation, scope, depth + 1)
            value = node.child_by_field_name("value")
            if value is not None:
                return self._infer(value, source, declaration.name, depth + 1)
            return OpaqueType("any")
        if kind == DeclarationKind.METHOD:
            return ObjectType()
        if kind == DeclarationKind.OBJECT_PROPERTY:
            value = node.child_by_field_name("value")
            if value is None:
                return OpaqueType("any")
            return self._infer(value, source, declaration.name, depth + 1)
        if kind == DeclarationKind.VARIABLE:
            if node.type != "variable_declarator":
                return self._infer(node, source, declaration.name, depth + 1)
            annotation = node.child_by_field_name("type")
            if annotation is not None:
                return self._resolve(annotation, scope, depth + 1)
            value = node.child_by_field_name("value")
            if value is not None:
                return self._infer(value, source, declaration.name, depth + 1)
        return OpaqueType(declaration.name)

    def _unbound(self, node: tree_sitter.Node, scope: TypeScope) -> TypeScope:
        """Scope of a generic declaration whose parameters are not bound."""
        params = self._type_parameter_names(node, scope.source)
        if not params:
            return scope
        bindings = dict(scope.bindings)
        bindings.update({name: None for name in params})
        return TypeScope(scope.source, bindings)

    def _resolve(
        self,
        node: tree_sitter.Node,
        scope: TypeScope,
        depth: int,
        conditional: bool = False,
    ) -> TypeDescriptor:
        """Resolve a type node to a structural descriptor.

        Args:
            node: A type (or type annotation) node.
            scope: File and generic bindings the node is evaluated in.
            depth: Current resolution depth.
            conditional: Whether a conditional type here is the definition
                of an alias (or a branch of one) and should be kept.

        Returns:
            The structural type descriptor.
        """
        source = scope.source
        if depth > MAX_RESOLVE_DEPTH:
            logger.warning("Type %s is too deeply nested, treating it as opaque", source.text(node))
            return OpaqueType(source.text(node))

        node_type = node.type
        if node_type in ("type_annotation", "parenthesized_type", "readonly_type", "default_type"):
            inner = _first_named(node)
            if inner is None:
                return OpaqueType("any")
            return self._resolve(inner, scope, depth + 1, conditional)

        if node_type == "array_type":
            element = _first_named(node)
            if element is None:
                return ArrayType(OpaqueType("any"))
            return ArrayType(self._resolve(element, scope, depth + 1))

        if node_type in ("object_type", "interface_body"):
            return ObjectType(self._type_members(node, scope))

        if node_type in ("function_type", "constructor_type"):
            return ObjectType()

        if node_type == "conditional_type" and conditional:
            consequence = node.child_by_field_name("consequence")
            alternative = node.child_by_field_name("alternative")
            if consequence is None or alternative is None:
                return OpaqueType(source.text(node))
            return ConditionalType(
                true_branch=self._resolve(consequence, scope, depth + 1, conditional=True),
                false_branch=self._resolve(alternative, scope, depth + 1, conditional=True),
            )

        if node_type == "type_identifier":
            return self._resolve_reference(source.text(node), [], scope, depth)

        if node_type == "generic_type":
            name_node = node.child_by_field_name("name")
            args_node = node.child_by_field_name("type_arguments")
            args = _type_arguments(args_node)
            if name_node is None:
                return OpaqueType(source.text(node))
            if name_node.type == "nested_type_identifier":
                return self._resolve_nested(name_node, args, scope, depth)
            return self._resolve_reference(source.text(name_node), args, scope, depth)

        if node_type == "nested_type_identifier":
            return self._resolve_nested(node, [], scope, depth)

        if node_type == "type_query":
            target = _first_named(node)
            if target is not None and target.type == "identifier":
                declaration = self._local_value(source.text(target), source)
                if declaration is not None:
                    return self._declaration_type(declaration, depth + 1)
            return OpaqueType(source.text(node))

        return OpaqueType(source.text(node))

    def _resolve_reference(
        self,
        name: str,
        args: list[tree_sitter.Node],
        scope: TypeScope,
        depth: int,
    ) -> TypeDescriptor:
        """Resolve a named type reference with optional type arguments."""
        source = scope.source

        if name in scope.bindings and not args:
            bound = scope.bindings[name]
            if bound is None:
                return OpaqueType(name)
            arg_node, arg_scope = bound
            return self._resolve(arg_node, arg_scope, depth + 1)

        declaration = self._local_type(name, source)
        if declaration is not None:
            return self._instantiate(declaration, args, scope, depth + 1)

        if name in _ARRAY_TYPES:
            if not args:
                return ArrayType(OpaqueType("any"))
            return ArrayType(self._resolve(args[0], scope, depth + 1))
        if name in _SET_TYPES:
            return SetType(self._resolve(args[0], scope, depth + 1) if args else None)
        if name in _MAP_TYPES:
            return MapType(self._resolve(args[1], scope, depth + 1) if len(args) > 1 else None)
        if name in _PASS_THROUGH_TYPES and args:
            return self._resolve(args[0], scope, depth + 1)
        if name in ("Pick", "Omit") and len(args) == 2:
            resolved = self._resolve(args[0], scope, depth + 1)
            if not isinstance(resolved, ObjectType):
                return resolved
            keys = _literal_keys(args[1], source)
            keep = (lambda n: n in keys) if name == "Pick" else (lambda n: n not in keys)
            return ObjectType(tuple(p for p in resolved.properties if keep(p.name)))
        if name == "Record":
            return ObjectType()

        return OpaqueType(name)

    def _resolve_nested(
        self,
        node: tree_sitter.Node,
        args: list[tree_sitter.Node],
        scope: TypeScope,
        depth: int,
    ) -> TypeDescriptor:
        """Resolve ``ns.Type`` where ``ns`` is a namespace import."""
        source = scope.source
        parts = source.text(node).split(".")
        if len(parts) != 2:
            return OpaqueType(source.text(node))
        namespace = self._imported(parts[0], source)
        if namespace is None or namespace.target is None:
            return OpaqueType(source.text(node))
        target = self.loader.load(str(namespace.target))
        declaration = self._file_exports(target).get(parts[1])
        if declaration is None:
            return OpaqueType(source.text(node))
        return self._instantiate(declaration, args, scope, depth + 1)

    def _instantiate(
        self,
        declaration: SourceDeclaration,
        args: list[tree_sitter.Node],
        arg_scope: TypeScope,
        depth: int,
    ) -> TypeDescriptor:
        """Structural type of a generic declaration applied to type arguments."""
        node = declaration.ts_node
        source = declaration.source
        bindings: dict[str, Optional[tuple[tree_sitter.Node, TypeScope]]] = {}
        decl_scope = TypeScope(source, bindings)
        for index, param in enumerate(self._type_parameters(node)):
            name_node = param.child_by_field_name("name")
            if name_node is None:
                continue
            default = param.child_by_field_name("value")
            if index < len(args):
                bindings[source.text(name_node)] = (args[index], arg_scope)
            elif default is not None:
                bindings[source.text(name_node)] = (default, decl_scope)
            else:
                bindings[source.text(name_node)] = None

        if declaration.kind == DeclarationKind.INTERFACE:
            return self._interface_type(declaration.name, source, decl_scope, depth)
        if declaration.kind == DeclarationKind.TYPE_ALIAS:
            value = node.child_by_field_name("value")
            if value is None:
                return OpaqueType(declaration.name)
            return self._resolve(value, decl_scope, depth + 1, conditional=True)
        if declaration.kind == DeclarationKind.CLASS:
            return ObjectType(self._class_members(node, decl_scope, static=False, depth=depth))
        if declaration.kind == DeclarationKind.ENUM:
            return OpaqueType(declaration.name)
        return self._declaration_type(declaration, depth + 1)

    def _interface_type(
        self, name: str, source: SourceFile, scope: TypeScope, depth: int
    ) -> ObjectType:
        """Members of an interface, merging same-named declarations and bases."""
        members: list[PropertySymbol] = []
        seen: set[str] = set()
        bases: list[tree_sitter.Node] = []
        for node in source.declarations_of(name, {"interface_declaration"}):
            body = node.child_by_field_name("body")
            if body is not None:
                for prop in self._type_members(body, scope):
                    if prop.name not in seen:
                        seen.add(prop.name)
                        members.append(prop)
            for child in node.named_children:
                if child.type == "extends_type_clause":
                    bases.extend(child.children_by_field_name("type") or child.named_children)

        for base in bases:
            resolved = self._resolve(base, scope, depth + 1)
            if isinstance(resolved, ObjectType):
                for prop in resolved.properties:
                    if prop.name not in seen:
                        seen.add(prop.name)
                        members.append(prop)
        return ObjectType(tuple(members))

    def _type_members(self, body: tree_sitter.Node, scope: TypeScope) -> tuple[PropertySymbol, ...]:
        """Properties of an object type literal or interface body."""
        source = scope.source
        members: list[PropertySymbol] = []
        seen: set[str] = set()
        for child in body.named_children:
            if child.type == "property_signature":
                kind = DeclarationKind.PROPERTY_SIGNATURE
            elif child.type == "method_signature":
                kind = DeclarationKind.METHOD
            else:
                continue
            name = _member_name(child, source)
            if name is None or name in seen:
                continue
            seen.add(name)
            members.append(
                PropertySymbol(
                    name,
                    SourceDeclaration(
                        name=name, kind=kind, node=SourceNode(child, source), scope=scope
                    ),
                )
            )
        return tuple(members)

    def _class_members(
        self,
        node: tree_sitter.Node,
        scope: TypeScope,
        static: bool,
        depth: int,
    ) -> tuple[PropertySymbol, ...]:
        """Static (value side) or instance (type side) members of a class."""
        source = scope.source
        members: list[PropertySymbol] = []
        seen: set[str] = set()
        body = node.child_by_field_name("body")
        for child in body.named_children if body is not None else []:
            if child.type in ("public_field_definition", "field_definition"):
                kind = DeclarationKind.FIELD
            elif child.type in ("method_definition", "method_signature", "abstract_method_signature"):
                kind = DeclarationKind.METHOD
            else:
                continue
            is_static = any(c.type == "static" for c in child.children)
            if is_static != static:
                continue
            name = _member_name(child, source)
            if name is None or name == "constructor" or name in seen:
                continue
            seen.add(name)
            members.append(
                PropertySymbol(
                    name,
                    SourceDeclaration(
                        name=name, kind=kind, node=SourceNode(child, source), scope=scope
                    ),
                )
            )

        if not static:
            base = self._class_base(node, source)
            if base is not None and depth < MAX_RESOLVE_DEPTH:
                for prop in self._class_members(
                    base.ts_node, TypeScope(base.source), static=False, depth=depth + 1
                ):
                    if prop.name not in seen:
                        seen.add(prop.name)
                        members.append(prop)
        return tuple(members)

    def _class_base(self, node: tree_sitter.Node, source: SourceFile) -> Optional[SourceDeclaration]:
        """The class a class declaration extends, when it can be found."""
        for heritage in node.named_children:
            if heritage.type != "class_heritage":
                continue
            clauses = [c for c in heritage.named_children if c.type == "extends_clause"] or [heritage]
            for clause in clauses:
                value = clause.child_by_field_name("value")
                if value is None:
                    value = _first_named(clause)
                if value is not None and value.type == "identifier":
                    base = self._local_value(source.text(value), source)
                    if base is not None and base.kind == DeclarationKind.CLASS:
                        return base
        return None

    def _enum_members(self, node: tree_sitter.Node, source: SourceFile) -> tuple[PropertySymbol, ...]:
        body = node.child_by_field_name("body")
        members: list[PropertySymbol] = []
        for child in body.named_children if body is not None else []:
            if child.type == "enum_assignment":
                name_node = child.child_by_field_name("name")
            elif child.type in ("property_identifier", "string"):
                name_node = child
            else:
                continue
            if name_node is None:
                continue
            name = _unquote(source.text(name_node))
            members.append(
                PropertySymbol(
                    name,
                    SourceDeclaration(
                        name=name,
                        kind=DeclarationKind.ENUM_MEMBER,
                        node=SourceNode(child, source),
                        scope=TypeScope(source),
                    ),
                )
            )
        return tuple(members)

    def _expando_members(self, name: str, source: SourceFile) -> tuple[PropertySymbol, ...]:
        """Properties assigned onto a function after its declaration."""
        members: list[PropertySymbol] = []
        seen: set[str] = set()
        for prop, target in source.expandos.get(name, []):
            if prop in seen:
                continue
            seen.add(prop)
            members.append(
                PropertySymbol(
                    prop,
                    SourceDeclaration(
                        name=prop,
                        kind=DeclarationKind.ASSIGNED_PROPERTY,
                        node=SourceNode(target, source),
                        scope=TypeScope(source),
                    ),
                )
            )
        return tuple(members)

    def _infer(
        self, expression: tree_sitter.Node, source: SourceFile, owner: str, depth: int
    ) -> TypeDescriptor:
        """Structural type of an unannotated value expression."""
        if depth > MAX_RESOLVE_DEPTH:
            return OpaqueType(owner)

        expr_type = expression.type
        if expr_type == "object":
            return ObjectType(self._object_literal_members(expression, source))
        if expr_type in _FUNCTION_EXPRESSIONS:
            return ObjectType(self._expando_members(owner, source))
        if expr_type in ("parenthesized_expression", "satisfies_expression", "non_null_expression"):
            inner = _first_named(expression)
            return self._infer(inner, source, owner, depth + 1) if inner else OpaqueType(owner)
        if expr_type == "as_expression":
            named = expression.named_children
            if len(named) > 1:
                return self._resolve(named[-1], TypeScope(source), depth + 1)
            return self._infer(named[0], source, owner, depth + 1) if named else OpaqueType(owner)
        if expr_type == "new_expression":
            constructor = expression.child_by_field_name("constructor")
            args = _type_arguments(expression.child_by_field_name("type_arguments"))
            if constructor is not None and constructor.type == "identifier":
                return self._resolve_reference(
                    source.text(constructor), args, TypeScope(source), depth + 1
                )
        if expr_type == "identifier":
            declaration = self._local_value(source.text(expression), source)
            if declaration is not None:
                return self._declaration_type(declaration, depth + 1)
        return OpaqueType(source.text(expression))

    def _object_literal_members(
        self, node: tree_sitter.Node, source: SourceFile
    ) -> tuple[PropertySymbol, ...]:
        members: list[PropertySymbol] = []
        seen: set[str] = set()
        for child in node.named_children:
            if child.type == "pair":
                kind = DeclarationKind.OBJECT_PROPERTY
                key = child.child_by_field_name("key")
                name = _unquote(source.text(key)) if key is not None else None
            elif child.type == "method_definition":
                kind = DeclarationKind.METHOD
                name = _member_name(child, source)
            elif child.type == "shorthand_property_identifier":
                kind = DeclarationKind.OBJECT_PROPERTY
                name = source.text(child)
            else:
                continue
            if name is None or name in seen:
                continue
            seen.add(name)
            members.append(
                PropertySymbol(
                    name,
                    SourceDeclaration(
                        name=name, kind=kind, node=SourceNode(child, source), scope=TypeScope(source)
                    ),
                )
            )
        return tuple(members)

    # ------------------------------------------------------------------
    # Type text

    def _declaration_text(self, declaration: SourceDeclaration, depth: int) -> str:
        """Printable type of a declaration."""
        node = declaration.ts_node
        source = declaration.source
        kind = declaration.kind

        if kind in (DeclarationKind.CLASS, DeclarationKind.ENUM, DeclarationKind.NAMESPACE):
            return f"typeof {declaration.name}"
        if kind == DeclarationKind.INTERFACE:
            return declaration.name + self._type_parameter_suffix(node, source)
        if kind == DeclarationKind.TYPE_ALIAS:
            value = node.child_by_field_name("value")
            if value is not None and value.type in _REFERENCE_TYPES | {
                "predefined_type",
                "literal_type",
            }:
                return _collapse(source.text(value))
            return declaration.name + self._type_parameter_suffix(node, source)
        if kind == DeclarationKind.FUNCTION:
            if source.expandos.get(declaration.name):
                return f"typeof {declaration.name}"
            return self._signature_text(node, source)
        if kind == DeclarationKind.METHOD:
            return self._signature_text(node, source)
        if kind == DeclarationKind.ENUM_MEMBER:
            return "number"
        if node.type in _ANNOTATED_NODES:
            annotation = node.child_by_field_name("type")
            if annotation is not None:
                inner = _first_named(annotation)
                return _collapse(source.text(inner if inner is not None else annotation))
            value = node.child_by_field_name("value")
        elif node.type == "pair":
            value = node.child_by_field_name("value")
        else:
            value = node
        if value is None:
            return "any"
        is_const = node.type == "variable_declarator" and any(
            c.type == "const" for c in node.parent.children
        )
        return self._expression_text(value, source, declaration.name, depth, keep_literal=is_const)

    def _expression_text(
        self,
        expression: tree_sitter.Node,
        source: SourceFile,
        owner: str,
        depth: int,
        keep_literal: bool = False,
    ) -> str:
        """Printable type inferred from a value expression."""
        if depth > MAX_RESOLVE_DEPTH:
            return "any"
        expr_type = expression.type
        text = source.text(expression)

        if expr_type in ("string", "template_string"):
            return _double_quoted(text) if keep_literal and expr_type == "string" else "string"
        if expr_type == "number":
            return text if keep_literal else "number"
        if expr_type in ("true", "false"):
            return text if keep_literal else "boolean"
        if expr_type in ("null", "undefined"):
            return "any"
        if expr_type in _FUNCTION_EXPRESSIONS:
            if source.expandos.get(owner):
                return f"typeof {owner}"
            return self._signature_text(expression, source)
        if expr_type == "object":
            parts = []
            for child in expression.named_children:
                if child.type == "pair":
                    key = child.child_by_field_name("key")
                    value = child.child_by_field_name("value")
                    if key is None or value is None:
                        continue
                    value_text = self._expression_text(value, source, owner, depth + 1)
                    parts.append(f"{source.text(key)}: {value_text};")
                elif child.type == "method_definition":
                    name = _member_name(child, source)
                    parts.append(f"{name}{self._signature_text(child, source, arrow=False)};")
                elif child.type == "shorthand_property_identifier":
                    name = source.text(child)
                    declaration = self._local_value(name, source)
                    value_text = (
                        self._declaration_text(declaration, depth + 1) if declaration else "any"
                    )
                    parts.append(f"{name}: {value_text};")
            return "{ " + " ".join(parts) + " }" if parts else "{}"
        if expr_type == "array":
            elements = [
                self._expression_text(e, source, owner, depth + 1)
                for e in expression.named_children
                if e.type != "comment"
            ]
            unique = list(dict.fromkeys(elements))
            if not unique:
                return "any[]"
            if len(unique) == 1:
                return f"{unique[0]}[]"
            return "(" + " | ".join(unique) + ")[]"
        if expr_type == "as_expression":
            named = expression.named_children
            if len(named) > 1:
                return _collapse(source.text(named[-1]))
            if named:
                return self._expression_text(named[0], source, owner, depth + 1, keep_literal=True)
        if expr_type in ("parenthesized_expression", "satisfies_expression", "non_null_expression"):
            inner = _first_named(expression)
            if inner is not None:
                return self._expression_text(inner, source, owner, depth + 1, keep_literal)
        if expr_type == "new_expression":
            constructor = expression.child_by_field_name("constructor")
            args = expression.child_by_field_name("type_arguments")
            if constructor is not None:
                return _collapse(source.text(constructor) + (source.text(args) if args else ""))
        if expr_type == "identifier":
            declaration = self._local_value(text, source)
            if declaration is not None:
                return self._declaration_text(declaration, depth + 1)
        if expr_type in ("class", "class_expression"):
            return f"typeof {owner}"
        return "any"

    def _signature_text(self, node: tree_sitter.Node, source: SourceFile, arrow: bool = True) -> str:
        """Printable call signature of a function-like node."""
        type_params = node.child_by_field_name("type_parameters")
        params = node.child_by_field_name("parameters")
        if params is not None:
            params_text = source.text(params)
        else:
            single = node.child_by_field_name("parameter")
            params_text = f"({source.text(single)})" if single is not None else "()"
        return_type = node.child_by_field_name("return_type")
        if return_type is not None:
            inner = _first_named(return_type)
            returns = source.text(inner if inner is not None else return_type)
        else:
            returns = "unknown" if _returns_value(node) else "void"
        prefix = source.text(type_params) if type_params is not None else ""
        separator = " => " if arrow else ": "
        return _collapse(f"{prefix}{params_text}{separator}{returns}")

    def _type_parameters(self, node: tree_sitter.Node) -> list[tree_sitter.Node]:
        params = node.child_by_field_name("type_parameters")
        if params is None:
            return []
        return [p for p in params.named_children if p.type == "type_parameter"]

    def _type_parameter_names(self, node: tree_sitter.Node, source: SourceFile) -> list[str]:
        names = []
        for param in self._type_parameters(node):
            name_node = param.child_by_field_name("name")
            if name_node is not None:
                names.append(source.text(name_node))
        return names

    def _type_parameter_suffix(self, node: tree_sitter.Node, source: SourceFile) -> str:
        names = self._type_parameter_names(node, source)
        return f"<{', '.join(names)}>" if names else ""


def _own_declaration(declaration: Declaration) -> SourceDeclaration:
    if not isinstance(declaration, SourceDeclaration):
        raise TypeError(
            f"Expected a declaration from TreeSitterOracle, got {type(declaration).__name__}"
        )
    return declaration


def _first_named(node: tree_sitter.Node) -> Optional[tree_sitter.Node]:
    for child in node.named_children:
        if child.type != "comment":
            return child
    return None


def _type_arguments(node: Optional[tree_sitter.Node]) -> list[tree_sitter.Node]:
    if node is None:
        return []
    return [child for child in node.named_children if child.type != "comment"]


def _member_name(node: tree_sitter.Node, source: SourceFile) -> Optional[str]:
    """Name of an object member, unquoted; None for computed names."""
    name_node = node.child_by_field_name("name")
    if name_node is None:
        name_node = node.child_by_field_name("property")
    if name_node is None or name_node.type == "computed_property_name":
        return None
    return _unquote(source.text(name_node))


def _unquote(text: str) -> str:
    match = _STRING_LITERAL.match(text)
    return match.group(2) if match else text


def _double_quoted(text: str) -> str:
    return '"' + _unquote(text) + '"'


def _literal_keys(node: tree_sitter.Node, source: SourceFile) -> set[str]:
    """String literal members of a key union such as ``"a" | "b"``."""
    keys: set[str] = set()
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == "string":
            keys.add(_unquote(source.text(current)))
            continue
        stack.extend(current.named_children)
    return keys


def _returns_value(node: tree_sitter.Node) -> bool:
    """Whether a function body returns a value (ignoring nested functions)."""
    body = node.child_by_field_name("body")
    if body is None:
        return False
    if body.type != "statement_block":
        return True
    stack = list(body.named_children)
    while stack:
        current = stack.pop()
        if current.type == "return_statement" and current.named_children:
            return True
        if current.type in _FUNCTION_EXPRESSIONS or current.type in (
            "function_declaration",
            "class_declaration",
            "class",
        ):
            continue
        stack.extend(current.named_children)
    return False


def _collapse(text: str) -> str:
    """Fold the whitespace of multi-line type text onto one line."""
    return " ".join(text.split())
