"""Flag namespace-wide ``using namespace`` directives."""

from __future__ import annotations

from typing import FrozenSet, List, Sequence

from idiomlint.result import Finding
from idiomlint.severity import Severity
from idiomlint.syntax import NodeKind, SyntaxNode

from . import NodeContext, Rule

KINDS = frozenset({NodeKind.NAMESPACE_USING_DIRECTIVE})

USING_NAMESPACE = Rule(
    id="R01",
    title="Avoid wildcard namespace imports",
    rationale=(
        "'using namespace' pulls every name of a namespace into the current scope. "
        "Names that collide with local declarations or with other imported namespaces "
        "become ambiguous or silently resolve to the wrong entity. Import the individual "
        "names you need ('using std::string;') or qualify them."
    ),
    severity=Severity.WARNING,
    node_kinds=KINDS,
)


class UsingNamespaceDetector:
    """Report every namespace-wide using directive.

    Each directive is reported on its own; whether two imported namespaces
    actually collide is a name-lookup question for the front-end.
    """

    def __init__(self, rule: Rule = USING_NAMESPACE) -> None:
        self.rule = rule

    def interested_in(self) -> FrozenSet[NodeKind]:
        return KINDS

    def visit(self, node: SyntaxNode, context: NodeContext) -> Sequence[Finding]:
        namespace = node.attr("namespace") or node.name
        findings: List[Finding] = []
        if namespace:
            message = f"'using namespace {namespace}' imports every name of '{namespace}' into this scope"
        else:
            message = "namespace-wide using directive imports every name of the namespace into this scope"
        if context.scope() == "namespace" and context.nearest(NodeKind.NAMESPACE_DECL) is None:
            message += " (file scope: affects every following declaration)"
        findings.append(self.rule.finding(node, message))
        return findings
