"""C++ idiom rule engine."""

from importlib.metadata import version, PackageNotFoundError

from .catalog import RuleCatalog, build_catalog, default_catalog
from .collector import DiagnosticCollector
from .config import EngineConfig, load_config, parse_config
from .engine import TraversalEngine, analyze
from .errors import (
    AnalysisCancelled,
    CollectorClosedError,
    DuplicateRuleError,
    UnresolvedContextError,
)
from .log import configure_logging
from .result import Finding, Report, Summary, merge_reports
from .severity import Severity
from .syntax import NodeKind, SourceSpan, SyntaxNode, TypeRef, load_syntax_model, node_from_dict

try:
    __version__ = version("cpp-idiomlint")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.1.0-dev"

__all__ = [
    "__version__",
    "AnalysisCancelled",
    "CollectorClosedError",
    "DiagnosticCollector",
    "DuplicateRuleError",
    "EngineConfig",
    "Finding",
    "NodeKind",
    "Report",
    "RuleCatalog",
    "Severity",
    "SourceSpan",
    "Summary",
    "SyntaxNode",
    "TraversalEngine",
    "TypeRef",
    "UnresolvedContextError",
    "analyze",
    "build_catalog",
    "configure_logging",
    "default_catalog",
    "load_config",
    "load_syntax_model",
    "merge_reports",
    "node_from_dict",
    "parse_config",
]
