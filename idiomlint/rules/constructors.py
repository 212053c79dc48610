"""Flag converting constructors that are not ``explicit``."""

from __future__ import annotations

from typing import FrozenSet, Optional, Sequence

from idiomlint.result import Finding
from idiomlint.severity import Severity
from idiomlint.syntax import NodeKind, SyntaxNode, TypeRef

from . import NodeContext, Rule

KINDS = frozenset({NodeKind.CONSTRUCTOR_DECL})
INITIALIZER_LIST = "std::initializer_list"

IMPLICIT_CONVERSION = Rule(
    id="R18",
    title="Mark single-argument constructors explicit",
    rationale=(
        "A constructor callable with one argument doubles as an implicit conversion. "
        "Calls such as 'draw(42)' then silently build a temporary object. Marking the "
        "constructor explicit keeps conversions visible at the call site."
    ),
    severity=Severity.WARNING,
    node_kinds=KINDS,
)


class ImplicitConversionDetector:
    """Report non-explicit constructors callable with exactly one argument.

    Copy and move constructors, ``std::initializer_list`` constructors and
    deleted constructors are not conversions worth reporting.
    """

    def __init__(self, rule: Rule = IMPLICIT_CONVERSION) -> None:
        self.rule = rule

    def interested_in(self) -> FrozenSet[NodeKind]:
        return KINDS

    def visit(self, node: SyntaxNode, context: NodeContext) -> Sequence[Finding]:
        if node.attr("explicit") or node.attr("deleted"):
            return []
        if node.attr("is_copy") or node.attr("is_move"):
            return []
        parameters = node.children_of("parameters")
        if not parameters or node.attr("variadic"):
            return []
        required = [parameter for parameter in parameters if not parameter.attr("has_default")]
        if len(required) > 1:
            return []

        first = parameters[0]
        first_type = first.type_of()
        if first_type is None or not first_type.resolved:
            return []
        class_name = self._class_name(node, context)
        if self._is_copy_or_move(first_type, class_name):
            return []
        if first_type.base_spelling.startswith(INITIALIZER_LIST):
            return []

        label = class_name or node.name or "constructor"
        return [
            self.rule.finding(
                node,
                f"constructor '{label}({first_type.spelling})' allows implicit conversion from "
                f"'{first_type.spelling}'; mark it explicit",
            )
        ]

    def _class_name(self, node: SyntaxNode, context: NodeContext) -> Optional[str]:
        record = context.nearest(NodeKind.RECORD_DECL)
        if record is not None and record.name:
            return record.name
        return node.attr("class_name") or node.name

    def _is_copy_or_move(self, type_ref: TypeRef, class_name: Optional[str]) -> bool:
        if type_ref.category != "reference" or type_ref.element is None or not class_name:
            return False
        referenced = type_ref.element.base_spelling
        return referenced == class_name or referenced.endswith("::" + class_name)
