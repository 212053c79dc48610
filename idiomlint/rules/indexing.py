"""Flag container subscripts indexed with signed integers."""

from __future__ import annotations

from typing import FrozenSet, Sequence

from idiomlint.errors import UnresolvedContextError
from idiomlint.result import Finding
from idiomlint.severity import Severity
from idiomlint.syntax import NodeKind, SyntaxNode

from . import NodeContext, Rule, strip_parens

KINDS = frozenset({NodeKind.CONTAINER_INDEX_EXPR})

SIGNED_INDEX = Rule(
    id="R08",
    title="Use size types for container indices",
    rationale=(
        "Standard containers index with an unsigned size_type. A signed 'int' index is "
        "converted on every access, triggers sign-compare warnings against size(), and "
        "cannot address every element of a container larger than INT_MAX. Use std::size_t "
        "(or the container's size_type)."
    ),
    severity=Severity.INFO,
    node_kinds=KINDS,
)


class SignedIndexDetector:
    """Report ``container[i]`` where ``i`` has a signed built-in integer type."""

    def __init__(self, rule: Rule = SIGNED_INDEX) -> None:
        self.rule = rule

    def interested_in(self) -> FrozenSet[NodeKind]:
        return KINDS

    def visit(self, node: SyntaxNode, context: NodeContext) -> Sequence[Finding]:
        index = strip_parens(node.child("index"))
        if index is None or index.kind is NodeKind.LITERAL:
            return []
        try:
            index_type = context.require_type(index)
        except UnresolvedContextError:
            return []
        if not index_type.is_signed_integral:
            return []
        container = strip_parens(node.child("container"))
        if container is not None:
            container_type = container.type_of()
            if container_type is not None and container_type.resolved and not container_type.is_class:
                return []
        label = index.attr("text") or index.name or "index"
        return [
            self.rule.finding(
                index,
                f"index '{label}' has signed type '{index_type.spelling}'; index containers with std::size_t",
            )
        ]
