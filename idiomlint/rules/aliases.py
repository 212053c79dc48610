"""Type declaration idioms: alias declarations and scoped enums."""

from __future__ import annotations

from typing import FrozenSet, Sequence

from idiomlint.result import Finding
from idiomlint.severity import Severity
from idiomlint.syntax import NodeKind, SyntaxNode

from . import NodeContext, Rule

TYPEDEF_KINDS = frozenset({NodeKind.TYPEDEF_DECL})
ENUM_KINDS = frozenset({NodeKind.ENUM_DECL})

TYPEDEF_ALIAS = Rule(
    id="R15",
    title="Prefer 'using' alias declarations over typedef",
    rationale=(
        "'using Name = Type;' reads left to right, handles function pointer types "
        "without the inside-out declarator syntax and, unlike typedef, can be templated."
    ),
    severity=Severity.INFO,
    node_kinds=TYPEDEF_KINDS,
)

UNSCOPED_ENUM = Rule(
    id="R16",
    title="Prefer scoped enums (enum class)",
    rationale=(
        "Enumerators of a plain enum leak into the enclosing scope and convert implicitly "
        "to int. 'enum class' keeps them qualified and strongly typed."
    ),
    severity=Severity.INFO,
    node_kinds=ENUM_KINDS,
)


def in_c_linkage(context: NodeContext) -> bool:
    """True inside ``extern "C" { ... }``: those headers must stay valid C."""

    for ancestor in context.ancestors():
        if ancestor.kind is NodeKind.LINKAGE_SPEC_DECL and str(ancestor.attr("language", "")).upper() == "C":
            return True
    return False


class TypedefDetector:
    """Report ``typedef`` declarations outside C linkage blocks."""

    def __init__(self, rule: Rule = TYPEDEF_ALIAS) -> None:
        self.rule = rule

    def interested_in(self) -> FrozenSet[NodeKind]:
        return TYPEDEF_KINDS

    def visit(self, node: SyntaxNode, context: NodeContext) -> Sequence[Finding]:
        if node.attr("system_header") or in_c_linkage(context):
            return []
        name = node.name or "alias"
        underlying = node.type_of("underlying")
        if underlying is not None and underlying.resolved and underlying.spelling:
            suggestion = f"'using {name} = {underlying.spelling};'"
        else:
            suggestion = f"'using {name} = ...;'"
        return [self.rule.finding(node, f"typedef '{name}' can be written as {suggestion}")]


class UnscopedEnumDetector:
    """Report named, unscoped enums."""

    def __init__(self, rule: Rule = UNSCOPED_ENUM) -> None:
        self.rule = rule

    def interested_in(self) -> FrozenSet[NodeKind]:
        return ENUM_KINDS

    def visit(self, node: SyntaxNode, context: NodeContext) -> Sequence[Finding]:
        if node.attr("scoped") or not node.name or node.attr("anonymous"):
            return []
        if node.attr("system_header") or in_c_linkage(context):
            return []
        return [
            self.rule.finding(
                node,
                f"unscoped enum '{node.name}' leaks its enumerators into the enclosing scope; "
                f"use 'enum class {node.name}'",
            )
        ]
