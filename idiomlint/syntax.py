"""Typed syntax model consumed by the rule engine.

The C++ front-end owns parsing and type resolution. This module only defines
the immutable node tree the engine reads, plus a loader that rebuilds that tree
from a front-end dump (YAML or JSON)::

    kind: VariableDecl
    loc: main.cpp:3:5
    attrs:
      name: arr
      type: {spelling: "int[10]", category: array, size: 40}
    children:
      init: {kind: Literal, attrs: {literal_kind: integer, value: 0}}

A ``children`` value may be a single node mapping or a list of them. Child
nodes inherit the file name of their parent when their location omits it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from .errors import SyntaxModelError
from .utils.fileio import read_yaml_file

UNKNOWN_FILE = "<unknown>"
LOC_PATTERN = re.compile(r"^(?:(?P<file>.*?):)?(?P<line>\d+):(?P<column>\d+)(?:-(?P<end_line>\d+):(?P<end_column>\d+))?$")


class NodeKind(str, Enum):
    """Node kinds emitted by the front-end."""

    TRANSLATION_UNIT = "TranslationUnit"
    NAMESPACE_DECL = "NamespaceDecl"
    LINKAGE_SPEC_DECL = "LinkageSpecDecl"
    NAMESPACE_USING_DIRECTIVE = "NamespaceUsingDirective"
    RECORD_DECL = "RecordDecl"
    FUNCTION_DECL = "FunctionDecl"
    METHOD_DECL = "MethodDecl"
    CONSTRUCTOR_DECL = "ConstructorDecl"
    LAMBDA_EXPR = "LambdaExpr"
    FIELD_DECL = "FieldDecl"
    PARAMETER_DECL = "ParameterDecl"
    VARIABLE_DECL = "VariableDecl"
    RAW_ARRAY_DECL = "RawArrayDecl"
    TYPEDEF_DECL = "TypedefDecl"
    ENUM_DECL = "EnumDecl"
    MACRO_OBJECT_LIKE_DECL = "MacroObjectLikeDecl"
    MACRO_FUNCTION_LIKE_DECL = "MacroFunctionLikeDecl"

    COMPOUND_STATEMENT = "CompoundStatement"
    EXPR_STATEMENT = "ExprStatement"
    IF_STATEMENT = "IfStatement"
    FOR_STATEMENT = "ForStatement"
    RANGE_FOR_STATEMENT = "RangeForStatement"
    ITERATION_VARIABLE_BINDING = "IterationVariableBinding"
    WHILE_STATEMENT = "WhileStatement"
    DO_STATEMENT = "DoStatement"
    SWITCH_STATEMENT = "SwitchStatement"
    RETURN_STATEMENT = "ReturnStatement"

    BINARY_OPERATOR = "BinaryOperator"
    UNARY_OPERATOR = "UnaryOperator"
    ASSIGNMENT_EXPR = "AssignmentExpr"
    PRE_INCREMENT_EXPR = "PreIncrementExpr"
    PRE_DECREMENT_EXPR = "PreDecrementExpr"
    POST_INCREMENT_EXPR = "PostIncrementExpr"
    POST_DECREMENT_EXPR = "PostDecrementExpr"
    DECL_REF_EXPR = "DeclRefExpr"
    MEMBER_EXPR = "MemberExpr"
    LITERAL = "Literal"
    PAREN_EXPR = "ParenExpr"
    IMPLICIT_CAST_EXPR = "ImplicitCastExpr"
    C_STYLE_CAST_EXPR = "CStyleCastExpr"
    CALL_EXPR = "CallExpr"
    MEMBER_CALL_EXPR = "MemberCallExpr"
    CONSTRUCT_EXPR = "ConstructExpr"
    NEW_EXPR = "NewExpr"
    DELETE_EXPR = "DeleteExpr"
    STREAM_INSERT_EXPR = "StreamInsertExpr"
    CONTAINER_INDEX_EXPR = "ContainerIndexExpr"

    ERROR_NODE = "ErrorNode"
    UNKNOWN = "Unknown"

    @classmethod
    def lookup(cls, value: str) -> "NodeKind":
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True, order=True)
class SourceSpan:
    """Half-open source range attached to every node."""

    file: str
    line: int
    column: int
    end_line: int
    end_column: int

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "end_line": self.end_line,
            "end_column": self.end_column,
        }


# ----------------------------------------------------------------------
# Types
# ----------------------------------------------------------------------
BUILTIN_TYPES: Dict[str, Tuple[int, bool, bool]] = {
    # spelling: (size in bytes, integral, signed)
    "bool": (1, True, False),
    "char": (1, True, True),
    "signed char": (1, True, True),
    "unsigned char": (1, True, False),
    "wchar_t": (4, True, True),
    "char8_t": (1, True, False),
    "char16_t": (2, True, False),
    "char32_t": (4, True, False),
    "short": (2, True, True),
    "unsigned short": (2, True, False),
    "int": (4, True, True),
    "unsigned": (4, True, False),
    "unsigned int": (4, True, False),
    "long": (8, True, True),
    "unsigned long": (8, True, False),
    "long long": (8, True, True),
    "unsigned long long": (8, True, False),
    "int8_t": (1, True, True),
    "int16_t": (2, True, True),
    "int32_t": (4, True, True),
    "int64_t": (8, True, True),
    "uint8_t": (1, True, False),
    "uint16_t": (2, True, False),
    "uint32_t": (4, True, False),
    "uint64_t": (8, True, False),
    "size_t": (8, True, False),
    "ptrdiff_t": (8, True, True),
    "ssize_t": (8, True, True),
    "float": (4, False, True),
    "double": (8, False, True),
    "long double": (16, False, True),
    "void": (0, False, False),
}

CATEGORIES = ("builtin", "class", "enum", "pointer", "reference", "array", "unresolved")


@dataclass(frozen=True)
class TypeRef:
    """A type as resolved by the front-end."""

    spelling: str
    category: str = "unresolved"
    size: Optional[int] = None
    is_const: bool = False
    element: Optional["TypeRef"] = None

    @classmethod
    def from_value(cls, value: Any) -> Optional["TypeRef"]:
        """Build a ``TypeRef`` from a dump value.

        Mappings are taken as-is. Plain strings are a shorthand the front-end
        may use for simple declarations; they are classified from the spelling.
        """

        if value is None:
            return None
        if isinstance(value, TypeRef):
            return value
        if isinstance(value, Mapping):
            category = str(value.get("category", "unresolved"))
            if category not in CATEGORIES:
                category = "unresolved"
            spelling = str(value.get("spelling", ""))
            size = value.get("size")
            info = _builtin_info(spelling)
            if size is None and category == "builtin" and info is not None:
                size = info[0]
            return cls(
                spelling=spelling,
                category=category,
                size=int(size) if size is not None else None,
                is_const=bool(value.get("is_const", False)),
                element=cls.from_value(value.get("element")),
            )
        if isinstance(value, str):
            return cls._from_spelling(value)
        return None

    @classmethod
    def _from_spelling(cls, spelling: str) -> "TypeRef":
        text = " ".join(spelling.split())
        if not text or text == "<unresolved>":
            return cls(spelling=text)
        is_const = text.startswith("const ") or text.endswith(" const")
        bare = text.replace("const ", "").replace(" const", "").strip()
        if bare.endswith("&"):
            return cls(text, "reference", 8, is_const, cls._from_spelling(bare.rstrip("&").strip()))
        if bare.endswith("*"):
            return cls(text, "pointer", 8, is_const, cls._from_spelling(bare[:-1].strip()))
        array = re.match(r"^(?P<element>.+?)\s*\[(?P<count>\d*)\]$", bare)
        if array:
            element = cls._from_spelling(array.group("element"))
            count = int(array.group("count")) if array.group("count") else None
            size = element.size * count if element.size is not None and count is not None else None
            return cls(text, "array", size, is_const, element)
        info = _builtin_info(bare)
        if info is not None:
            return cls(text, "builtin", info[0], is_const)
        if bare.startswith("enum "):
            return cls(text, "enum", 4, is_const)
        return cls(text, "class", None, is_const)

    @property
    def resolved(self) -> bool:
        return self.category != "unresolved"

    @property
    def base_spelling(self) -> str:
        text = self.spelling.replace("const ", "").replace(" const", "")
        return " ".join(text.split())

    @property
    def is_class(self) -> bool:
        return self.category == "class"

    @property
    def is_integral(self) -> bool:
        info = _builtin_info(self.base_spelling)
        return self.category == "builtin" and info is not None and info[1]

    @property
    def is_signed_integral(self) -> bool:
        info = _builtin_info(self.base_spelling)
        return self.is_integral and info is not None and info[2] and self.base_spelling != "bool"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"spelling": self.spelling, "category": self.category}
        if self.size is not None:
            data["size"] = self.size
        if self.is_const:
            data["is_const"] = True
        if self.element is not None:
            data["element"] = self.element.to_dict()
        return data


def _builtin_info(spelling: str) -> Optional[Tuple[int, bool, bool]]:
    text = spelling[5:] if spelling.startswith("std::") else spelling
    return BUILTIN_TYPES.get(text)


# ----------------------------------------------------------------------
# Nodes
# ----------------------------------------------------------------------
@dataclass(frozen=True, eq=False)
class SyntaxNode:
    """One immutable node of the syntax model.

    Nodes compare and hash by identity so they can key per-run lookup tables.
    """

    kind: NodeKind
    span: SourceSpan
    children: Mapping[str, Tuple["SyntaxNode", ...]] = field(default_factory=dict)
    attrs: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        frozen_children = {role: tuple(nodes) for role, nodes in self.children.items()}
        object.__setattr__(self, "children", MappingProxyType(frozen_children))
        object.__setattr__(self, "attrs", MappingProxyType(dict(self.attrs)))

    def __repr__(self) -> str:
        label = f" {self.name}" if self.name else ""
        return f"<{self.kind.value}{label} @ {self.span}>"

    @property
    def name(self) -> Optional[str]:
        value = self.attrs.get("name")
        return str(value) if value is not None else None

    def attr(self, name: str, default: Any = None) -> Any:
        return self.attrs.get(name, default)

    def type_of(self, name: str = "type") -> Optional[TypeRef]:
        """Return the resolved ``TypeRef`` stored under ``name``, if any."""

        return TypeRef.from_value(self.attrs.get(name))

    def child(self, role: str) -> Optional["SyntaxNode"]:
        nodes = self.children.get(role, ())
        return nodes[0] if nodes else None

    def children_of(self, role: str) -> Tuple["SyntaxNode", ...]:
        return self.children.get(role, ())

    def iter_children(self) -> Iterator[Tuple[str, "SyntaxNode"]]:
        for role, nodes in self.children.items():
            for node in nodes:
                yield role, node

    def walk(self) -> Iterator["SyntaxNode"]:
        """Yield this node and its descendants in pre-order."""

        stack: List[SyntaxNode] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed([child for _, child in node.iter_children()]))


KEY_ATTRS = ("name", "qualified_name", "operator", "value", "method", "member")


def structural_key(node: SyntaxNode) -> Tuple[Any, ...]:
    """Return a hashable form of ``node`` that ignores source locations.

    Two expressions with the same key are spelled the same way modulo
    whitespace and parentheses.
    """

    parts: List[Tuple[Any, ...]] = []
    stack: List[Tuple[int, str, SyntaxNode]] = [(0, "", node)]
    while stack:
        depth, role, current = stack.pop()
        if current.kind is NodeKind.PAREN_EXPR or current.kind is NodeKind.IMPLICIT_CAST_EXPR:
            inner = [child for _, child in current.iter_children()]
            if len(inner) == 1:
                stack.append((depth, role, inner[0]))
                continue
        attrs = tuple((key, _hashable(current.attrs[key])) for key in KEY_ATTRS if key in current.attrs)
        parts.append((depth, role, current.kind.value, attrs))
        for child_role, child in reversed(list(current.iter_children())):
            stack.append((depth + 1, child_role, child))
    return tuple(parts)


def _hashable(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return tuple(_hashable(item) for item in value)
    if isinstance(value, Mapping):
        return tuple(sorted((str(k), _hashable(v)) for k, v in value.items()))
    return value


# ----------------------------------------------------------------------
# Loading
# ----------------------------------------------------------------------
def parse_span(data: Mapping[str, Any], inherited_file: str) -> SourceSpan:
    """Read ``span`` or ``loc`` from a node mapping."""

    span = data.get("span")
    if isinstance(span, Mapping):
        file = str(span.get("file") or inherited_file)
        line = int(span.get("line", 0))
        column = int(span.get("column", 0))
        return SourceSpan(
            file=file,
            line=line,
            column=column,
            end_line=int(span.get("end_line", line)),
            end_column=int(span.get("end_column", column)),
        )
    loc = data.get("loc")
    if isinstance(loc, str):
        match = LOC_PATTERN.match(loc)
        if match is None:
            raise SyntaxModelError(f"Malformed location {loc!r}")
        file = match.group("file") or inherited_file
        line = int(match.group("line"))
        column = int(match.group("column"))
        end_line = int(match.group("end_line")) if match.group("end_line") else line
        end_column = int(match.group("end_column")) if match.group("end_column") else column
        return SourceSpan(file, line, column, end_line, end_column)
    return SourceSpan(inherited_file, 0, 0, 0, 0)


def node_from_dict(data: Mapping[str, Any], file: Optional[str] = None) -> SyntaxNode:
    """Build a node tree from a front-end dump mapping.

    The tree is built without recursion: nodes are first listed in pre-order,
    then constructed from the last one back so every child exists before its
    parent.
    """

    entries: List[Tuple[Mapping[str, Any], SourceSpan]] = []
    child_slots: List[List[Tuple[str, int]]] = []
    pending: List[Tuple[Any, str, Optional[int], str]] = [(data, file or UNKNOWN_FILE, None, "")]

    while pending:
        current, inherited_file, parent_index, role = pending.pop()
        if not isinstance(current, Mapping):
            raise SyntaxModelError(f"Expected a node mapping, got {type(current).__name__}")
        if "kind" not in current:
            raise SyntaxModelError("Node mapping is missing 'kind'")
        span = parse_span(current, inherited_file)
        index = len(entries)
        entries.append((current, span))
        child_slots.append([])
        if parent_index is not None:
            child_slots[parent_index].append((role, index))

        children = current.get("children") or {}
        if not isinstance(children, Mapping):
            raise SyntaxModelError(f"'children' of {current['kind']} must be a mapping")
        queued: List[Tuple[Any, str, Optional[int], str]] = []
        for child_role, value in children.items():
            values = value if isinstance(value, list) else [value]
            for item in values:
                queued.append((item, span.file, index, str(child_role)))
        pending.extend(reversed(queued))

    built: List[Optional[SyntaxNode]] = [None] * len(entries)
    for index in range(len(entries) - 1, -1, -1):
        mapping, span = entries[index]
        grouped: Dict[str, List[SyntaxNode]] = {}
        for role, child_index in child_slots[index]:
            child = built[child_index]
            assert child is not None
            grouped.setdefault(role, []).append(child)
        attrs = mapping.get("attrs") or {}
        if not isinstance(attrs, Mapping):
            raise SyntaxModelError(f"'attrs' of {mapping['kind']} must be a mapping")
        attrs = dict(attrs)
        kind = NodeKind.lookup(str(mapping["kind"]))
        if kind is NodeKind.UNKNOWN:
            attrs.setdefault("raw_kind", str(mapping["kind"]))
        built[index] = SyntaxNode(
            kind=kind,
            span=span,
            children={role: tuple(nodes) for role, nodes in grouped.items()},
            attrs=attrs,
        )
    root = built[0]
    assert root is not None
    return root


def load_syntax_model(path: Path) -> SyntaxNode:
    """Load a translation unit dump written by the front-end."""

    data = read_yaml_file(Path(path))
    if data is None:
        raise SyntaxModelError(f"Syntax model dump not found: {path}")
    if not isinstance(data, Mapping):
        raise SyntaxModelError(f"Syntax model at {path} is not a mapping")
    return node_from_dict(data, file=str(data.get("file") or path))
