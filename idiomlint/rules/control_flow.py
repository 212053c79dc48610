"""Suggest ``switch`` for long if/else-if chains over one discriminant."""

from __future__ import annotations

from typing import Any, FrozenSet, List, Optional, Sequence, Tuple

from idiomlint.result import Finding
from idiomlint.severity import Severity
from idiomlint.syntax import NodeKind, SyntaxNode, structural_key

from . import NodeContext, Rule, strip_parens

KINDS = frozenset({NodeKind.IF_STATEMENT})
DEFAULT_MIN_BRANCHES = 4
SWITCHABLE_LITERALS = frozenset({"integer", "character", "bool"})
INTEGER_SUFFIXES = "uUlLzZ"
ESCAPES = {"n": 10, "t": 9, "r": 13, "0": 0, "a": 7, "b": 8, "f": 12, "v": 11, "\\": 92, "'": 39, '"': 34, "?": 63}

ELSE_IF_CHAIN = Rule(
    id="R03",
    title="Prefer switch over long else-if chains on one value",
    rationale=(
        "A chain of 'if (x == A) ... else if (x == B) ...' re-evaluates the discriminant "
        "for every branch and hides the fact that the branches are mutually exclusive "
        "constants. A switch states that intent, lets the compiler build a jump table and "
        "warn about unhandled enumerators."
    ),
    severity=Severity.INFO,
    node_kinds=KINDS,
)


def literal_value(node: SyntaxNode) -> Any:
    """Value of an integer, character or bool literal.

    ``1``, ``0x1`` and ``'\\x01'`` all give ``1``. Spellings that cannot be
    parsed are returned unchanged.
    """

    value = node.attr("value")
    if isinstance(value, (bool, int)):
        return int(value)
    text = str(value).strip()
    if text in ("true", "false"):
        return int(text == "true")
    if node.attr("literal_kind") == "character" or text.endswith("'"):
        return _character_value(text)
    digits = text.rstrip(INTEGER_SUFFIXES).replace("'", "")
    try:
        if len(digits) > 1 and digits.startswith("0") and digits.isdigit():
            return int(digits, 8)
        return int(digits, 0)
    except ValueError:
        return text


def _character_value(text: str) -> Any:
    body = text.lstrip("u8UL")
    if len(body) < 3 or body[0] != "'" or body[-1] != "'":
        return text
    body = body[1:-1]
    if len(body) == 1:
        return ord(body)
    if not body.startswith("\\"):
        return text
    escape = body[1:]
    try:
        if escape in ESCAPES:
            return ESCAPES[escape]
        if escape.startswith("x"):
            return int(escape[1:], 16)
        return int(escape, 8)
    except ValueError:
        return text


class ElseIfChainDetector:
    """Report the head of an if/else-if chain that a switch could express.

    Every condition must be ``discriminant == constant`` with the same
    discriminant and pairwise distinct constants. Range comparisons or a
    second discriminant disqualify the chain.
    """

    def __init__(self, rule: Rule = ELSE_IF_CHAIN, min_branches: int = DEFAULT_MIN_BRANCHES) -> None:
        self.rule = rule
        self.min_branches = min_branches

    def interested_in(self) -> FrozenSet[NodeKind]:
        return KINDS

    def visit(self, node: SyntaxNode, context: NodeContext) -> Sequence[Finding]:
        parent = context.parent
        if parent is not None and parent.kind is NodeKind.IF_STATEMENT and context.role == "else":
            return []
        conditions = self._collect_conditions(node)
        if conditions is None or len(conditions) < self.min_branches:
            return []

        discriminant_key: Optional[Tuple[Any, ...]] = None
        discriminant: Optional[SyntaxNode] = None
        constants = set()
        for condition in conditions:
            split = self._split_equality(condition)
            if split is None:
                return []
            subject, constant = split
            key = structural_key(subject)
            if discriminant_key is None:
                discriminant_key, discriminant = key, subject
            elif key != discriminant_key:
                return []
            if constant in constants:
                return []
            constants.add(constant)

        assert discriminant is not None
        if not self._switchable_type(discriminant):
            return []
        label = self._label(discriminant)
        return [
            self.rule.finding(
                node,
                f"if/else-if chain compares '{label}' against {len(conditions)} distinct constants; "
                "convert it to a switch statement",
            )
        ]

    # ------------------------------------------------------------------
    # Chain helpers
    # ------------------------------------------------------------------
    def _collect_conditions(self, head: SyntaxNode) -> Optional[List[SyntaxNode]]:
        conditions: List[SyntaxNode] = []
        current: Optional[SyntaxNode] = head
        while current is not None and current.kind is NodeKind.IF_STATEMENT:
            if current.attr("constexpr") or current.child("init") is not None:
                return None
            condition = current.child("condition")
            if condition is None:
                return None
            conditions.append(condition)
            current = current.child("else")
        return conditions

    def _split_equality(self, condition: SyntaxNode) -> Optional[Tuple[SyntaxNode, Tuple[str, Any]]]:
        expr = strip_parens(condition)
        if expr is None or expr.kind is not NodeKind.BINARY_OPERATOR or expr.attr("operator") != "==":
            return None
        lhs = strip_parens(expr.child("lhs"))
        rhs = strip_parens(expr.child("rhs"))
        if lhs is None or rhs is None:
            return None
        lhs_constant = self._constant(lhs)
        rhs_constant = self._constant(rhs)
        if rhs_constant is not None and lhs_constant is None:
            return lhs, rhs_constant
        if lhs_constant is not None and rhs_constant is None:
            return rhs, lhs_constant
        return None

    def _constant(self, node: SyntaxNode) -> Optional[Tuple[str, Any]]:
        if node.kind is NodeKind.LITERAL:
            if node.attr("literal_kind", "integer") not in SWITCHABLE_LITERALS:
                return None
            return ("literal", literal_value(node))
        if node.kind is NodeKind.DECL_REF_EXPR and node.attr("is_enumerator"):
            return ("enumerator", str(node.attr("qualified_name") or node.name))
        return None

    def _switchable_type(self, discriminant: SyntaxNode) -> bool:
        type_ref = discriminant.type_of()
        if type_ref is None or not type_ref.resolved:
            return True
        return type_ref.is_integral or type_ref.category == "enum"

    def _label(self, discriminant: SyntaxNode) -> str:
        text = discriminant.attr("text")
        if text:
            return str(text)
        if discriminant.name:
            return discriminant.name
        return "expression"
