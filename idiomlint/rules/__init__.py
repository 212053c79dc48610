"""Rule metadata, the detector protocol and the context handed to detectors."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterator, Mapping, Optional, Protocol, Sequence, Tuple

from idiomlint.errors import UnresolvedContextError
from idiomlint.result import Finding
from idiomlint.severity import Severity
from idiomlint.syntax import NodeKind, SyntaxNode, TypeRef

FUNCTION_SCOPES = frozenset(
    {
        NodeKind.FUNCTION_DECL,
        NodeKind.METHOD_DECL,
        NodeKind.CONSTRUCTOR_DECL,
        NodeKind.LAMBDA_EXPR,
        NodeKind.COMPOUND_STATEMENT,
    }
)


@dataclass(frozen=True)
class Rule:
    """Static metadata for one catalogued idiom."""

    id: str
    title: str
    rationale: str
    severity: Severity
    node_kinds: FrozenSet[NodeKind] = field(default_factory=frozenset)

    def finding(self, node: SyntaxNode, message: str) -> Finding:
        return Finding(rule_id=self.id, span=node.span, message=message, severity=self.severity)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "rationale": self.rationale,
            "severity": self.severity.value,
            "node_kinds": sorted(kind.value for kind in self.node_kinds),
        }


class Detector(Protocol):
    """Protocol implemented by all rule detectors.

    Detectors must not keep mutable state between calls: the same instance
    is shared by every analysis run in the process.
    """

    rule: Rule

    def interested_in(self) -> FrozenSet[NodeKind]:
        """Node kinds this detector wants to be called for."""

    def visit(self, node: SyntaxNode, context: "NodeContext") -> Sequence[Finding]:
        """Inspect ``node`` and return any findings."""


class NodeContext:
    """Read-only cursor over the tree around the node being visited.

    ``parents`` maps a node to ``(parent, role)``. It is filled by the engine
    as it walks, so every ancestor of the visited node is known. The mapping
    is a lookup table only; it does not own the nodes.
    """

    __slots__ = ("node", "_parents")

    def __init__(self, node: SyntaxNode, parents: Mapping[SyntaxNode, Tuple[SyntaxNode, str]]) -> None:
        self.node = node
        self._parents = parents

    @property
    def parent(self) -> Optional[SyntaxNode]:
        entry = self._parents.get(self.node)
        return entry[0] if entry else None

    @property
    def role(self) -> Optional[str]:
        """Role under which the node hangs from its parent."""

        entry = self._parents.get(self.node)
        return entry[1] if entry else None

    def at(self, node: SyntaxNode) -> "NodeContext":
        return NodeContext(node, self._parents)

    def ancestors(self) -> Iterator[SyntaxNode]:
        """Yield ancestors from the parent up to the root."""

        current = self._parents.get(self.node)
        while current is not None:
            yield current[0]
            current = self._parents.get(current[0])

    def nearest(self, *kinds: NodeKind) -> Optional[SyntaxNode]:
        for ancestor in self.ancestors():
            if ancestor.kind in kinds:
                return ancestor
        return None

    def siblings(self) -> Tuple[SyntaxNode, ...]:
        """Other children of the parent under the same role."""

        entry = self._parents.get(self.node)
        if entry is None:
            return ()
        parent, role = entry
        return tuple(child for child in parent.children_of(role) if child is not self.node)

    def scope(self) -> str:
        """Classify where the node is declared.

        One of ``parameter``, ``local``, ``member`` or ``namespace``.
        """

        if self.node.kind is NodeKind.PARAMETER_DECL or self.role == "parameters":
            return "parameter"
        for ancestor in self.ancestors():
            if ancestor.kind is NodeKind.PARAMETER_DECL:
                return "parameter"
            if ancestor.kind in FUNCTION_SCOPES:
                return "local"
            if ancestor.kind is NodeKind.RECORD_DECL:
                return "member"
        return "namespace"

    def require_type(self, node: Optional[SyntaxNode] = None, attr: str = "type") -> TypeRef:
        """Return the resolved type of ``node`` or raise ``UnresolvedContextError``."""

        target = node if node is not None else self.node
        if target.attr("resolved", True) is False:
            raise UnresolvedContextError(f"{attr} of {target.kind.value}", target)
        type_ref = target.type_of(attr)
        if type_ref is None or not type_ref.resolved:
            raise UnresolvedContextError(f"{attr} of {target.kind.value}", target)
        return type_ref


def strip_parens(node: Optional[SyntaxNode]) -> Optional[SyntaxNode]:
    """Skip ``ParenExpr`` and ``ImplicitCastExpr`` wrappers."""

    while node is not None and node.kind in (NodeKind.PAREN_EXPR, NodeKind.IMPLICIT_CAST_EXPR):
        inner = [child for _, child in node.iter_children()]
        if len(inner) != 1:
            break
        node = inner[0]
    return node


def base_object(node: Optional[SyntaxNode]) -> Optional[SyntaxNode]:
    """Follow member accesses and subscripts down to the accessed object.

    ``p.pos.x`` and ``p[0]`` both resolve to ``p``.
    """

    current = strip_parens(node)
    while current is not None:
        if current.kind is NodeKind.MEMBER_EXPR:
            current = strip_parens(current.child("base"))
        elif current.kind is NodeKind.CONTAINER_INDEX_EXPR:
            current = strip_parens(current.child("container"))
        else:
            break
    return current


def names_variable(node: Optional[SyntaxNode], name: str) -> bool:
    """True when ``node`` designates variable ``name`` or a part of it."""

    target = base_object(node)
    return target is not None and target.kind is NodeKind.DECL_REF_EXPR and target.name == name
