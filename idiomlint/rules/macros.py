"""Flag object-like macros that only name a literal constant."""

from __future__ import annotations

import re
from typing import FrozenSet, List, Optional, Sequence

from idiomlint.result import Finding
from idiomlint.severity import Severity
from idiomlint.syntax import NodeKind, SyntaxNode

from . import NodeContext, Rule

KINDS = frozenset({NodeKind.MACRO_OBJECT_LIKE_DECL})

TOKEN_PATTERN = re.compile(
    r"""(?:u8|[uUL])?"(?:\\.|[^"\\])*"      # string literal
      | (?:u8|[uUL])?'(?:\\.|[^'\\])+'      # character literal
      | \.?\d(?:[eEpP][+-]|[\w.'])*         # pp-number
      | [A-Za-z_]\w*                        # identifier
      | \S                                  # punctuator
    """,
    re.VERBOSE,
)
NUMBER_PATTERN = re.compile(
    r"""^(?:0[xX][0-9a-fA-F']+(?:\.[0-9a-fA-F']*)?(?:[pP][+-]?\d+)?
        |0[bB][01']+
        |(?:\d[\d']*\.?[\d']*|\.\d[\d']*)(?:[eE][+-]?\d+)?
       )[uUlLfFzZ]*$""",
    re.VERBOSE,
)
STRING_PATTERN = re.compile(r'^(?:u8|[uUL])?"(?:\\.|[^"\\])*"$')
CHAR_PATTERN = re.compile(r"^(?:u8|[uUL])?'(?:\\.|[^'\\])+'$")

MACRO_CONSTANT = Rule(
    id="R06",
    title="Prefer constexpr constants over #define",
    rationale=(
        "A macro constant has no type and no scope: it is substituted textually "
        "everywhere after its definition, is invisible to the debugger and can collide "
        "with any identifier. A constexpr variable is typed, scoped and still a "
        "compile-time value."
    ),
    severity=Severity.WARNING,
    node_kinds=KINDS,
)


def tokenize(text: str) -> List[str]:
    return TOKEN_PATTERN.findall(text)


class MacroConstantDetector:
    """Report ``#define NAME literal`` definitions."""

    def __init__(self, rule: Rule = MACRO_CONSTANT) -> None:
        self.rule = rule

    def interested_in(self) -> FrozenSet[NodeKind]:
        return KINDS

    def visit(self, node: SyntaxNode, context: NodeContext) -> Sequence[Finding]:
        if node.attr("predefined") or node.attr("system_header"):
            return []
        tokens = self._tokens(node)
        literal = self._single_literal(tokens)
        if literal is None:
            return []
        name = node.name or "<macro>"
        return [
            self.rule.finding(
                node,
                f"macro '{name}' only names the constant {literal}; "
                f"declare 'constexpr auto {name} = {literal};' instead",
            )
        ]

    def _tokens(self, node: SyntaxNode) -> List[str]:
        tokens = node.attr("tokens")
        if isinstance(tokens, (list, tuple)):
            return [str(token) for token in tokens if str(token).strip()]
        replacement = node.attr("replacement")
        if isinstance(replacement, str):
            return tokenize(replacement)
        return []

    def _single_literal(self, tokens: List[str]) -> Optional[str]:
        while len(tokens) >= 3 and tokens[0] == "(" and tokens[-1] == ")":
            tokens = tokens[1:-1]
        sign = ""
        if len(tokens) == 2 and tokens[0] in ("-", "+"):
            sign, tokens = tokens[0], tokens[1:]
        if len(tokens) != 1:
            return None
        token = tokens[0]
        if NUMBER_PATTERN.match(token):
            return f"{sign}{token}"
        if sign:
            return None
        if STRING_PATTERN.match(token) or CHAR_PATTERN.match(token):
            return token
        return None
