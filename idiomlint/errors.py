"""Exception hierarchy for the idiom rule engine."""

from __future__ import annotations

from typing import Any, Optional


class IdiomLintError(Exception):
    """Base class for all engine errors."""


class DuplicateRuleError(IdiomLintError):
    """A rule id was registered twice in the same catalog."""

    def __init__(self, rule_id: str) -> None:
        super().__init__(f"Rule {rule_id!r} is already registered")
        self.rule_id = rule_id


class CatalogFrozenError(IdiomLintError):
    """The catalog no longer accepts registrations."""


class CollectorClosedError(IdiomLintError):
    """A collector was used after ``finalize`` was called."""


class UnresolvedContextError(IdiomLintError):
    """A detector asked a question the syntax model cannot answer.

    Raised from ``NodeContext`` queries when the front-end left a type or
    reference unresolved. The engine treats it as "no finding" for the
    detector that raised it.
    """

    def __init__(self, what: str, node: Optional[Any] = None) -> None:
        location = f" at {node.span}" if node is not None else ""
        super().__init__(f"Unresolved {what}{location}")
        self.what = what
        self.node = node


class AnalysisCancelled(IdiomLintError):
    """An in-flight analysis run was abandoned."""


class SyntaxModelError(IdiomLintError):
    """A syntax model dump could not be turned into a node tree."""


class ConfigError(IdiomLintError):
    """Engine configuration is invalid."""
