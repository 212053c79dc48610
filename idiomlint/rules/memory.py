"""Flag manual ownership through raw ``new`` and ``delete``."""

from __future__ import annotations

from typing import FrozenSet, Optional, Sequence

from idiomlint.result import Finding
from idiomlint.severity import Severity
from idiomlint.syntax import NodeKind, SyntaxNode

from . import NodeContext, Rule, strip_parens

KINDS = frozenset({NodeKind.NEW_EXPR, NodeKind.DELETE_EXPR})
WRAPPERS = (NodeKind.PAREN_EXPR, NodeKind.IMPLICIT_CAST_EXPR)
SMART_POINTERS = ("std::unique_ptr", "std::shared_ptr", "unique_ptr", "shared_ptr")

RAW_OWNERSHIP = Rule(
    id="R14",
    title="Manage ownership with smart pointers",
    rationale=(
        "A raw 'new' must be matched by exactly one 'delete' on every path, including "
        "exceptions. std::make_unique / std::make_shared tie the lifetime to an object "
        "and make leaks and double deletes structurally impossible."
    ),
    severity=Severity.WARNING,
    node_kinds=KINDS,
)


def is_smart_pointer(spelling: Optional[str]) -> bool:
    if not spelling:
        return False
    text = spelling.replace("const ", "").strip()
    return any(text == prefix or text.startswith(prefix + "<") for prefix in SMART_POINTERS)


class RawOwnershipDetector:
    """Report owning ``new``/``delete`` expressions.

    Placement new and a ``new`` handed straight to a smart pointer
    constructor or ``reset`` are not reported.
    """

    def __init__(self, rule: Rule = RAW_OWNERSHIP) -> None:
        self.rule = rule

    def interested_in(self) -> FrozenSet[NodeKind]:
        return KINDS

    def visit(self, node: SyntaxNode, context: NodeContext) -> Sequence[Finding]:
        if node.kind is NodeKind.DELETE_EXPR:
            operator = "delete[]" if node.attr("array") else "delete"
            return [
                self.rule.finding(
                    node,
                    f"manual '{operator}' releases memory owned through a raw pointer; "
                    "hold it in std::unique_ptr instead",
                )
            ]

        if node.attr("placement"):
            return []
        if self._wrapped_in_smart_pointer(context):
            return []
        allocated = node.type_of("allocated_type")
        spelling = allocated.spelling if allocated is not None and allocated.resolved else None
        what = f"'new {spelling}'" if spelling else "'new'"
        factory = f"std::make_unique<{spelling}>" if spelling else "std::make_unique"
        return [
            self.rule.finding(
                node,
                f"raw {what} hands out an owning pointer; use {factory} or std::make_shared",
            )
        ]

    def _wrapped_in_smart_pointer(self, context: NodeContext) -> bool:
        current = context
        parent = current.parent
        while parent is not None and parent.kind in WRAPPERS:
            current = current.at(parent)
            parent = current.parent
        if parent is None or current.role != "arguments":
            return False
        if parent.kind is NodeKind.CONSTRUCT_EXPR:
            constructed = parent.type_of()
            return constructed is not None and is_smart_pointer(constructed.spelling)
        if parent.kind is NodeKind.MEMBER_CALL_EXPR and parent.attr("method") == "reset":
            owner = strip_parens(parent.child("object"))
            owner_type = owner.type_of() if owner is not None else None
            return owner_type is not None and is_smart_pointer(owner_type.spelling)
        return False
