"""Traversal engine: walks a syntax model once and dispatches to detectors."""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

import structlog

from .catalog import DispatchTable, Entry, RuleCatalog, build_catalog, default_catalog
from .collector import DiagnosticCollector
from .config import EngineConfig
from .errors import AnalysisCancelled, UnresolvedContextError
from .result import Finding, Report, merge_reports
from .rules import NodeContext
from .syntax import SyntaxNode

logger = structlog.get_logger()


class EngineState(str, Enum):
    IDLE = "idle"
    TRAVERSING = "traversing"
    DONE = "done"
    CANCELLED = "cancelled"


class AnalysisRun:
    """State of one ``analyze`` call.

    Each run owns its collector and parent table, so runs on different trees
    never share mutable state.
    """

    def __init__(self, dispatch: DispatchTable, cancel: Optional[threading.Event] = None) -> None:
        self.dispatch = dispatch
        self.cancel = cancel
        self.state = EngineState.IDLE
        self.collector = DiagnosticCollector()
        self.parents: Dict[SyntaxNode, Tuple[SyntaxNode, str]] = {}
        self.nodes_visited = 0
        self.detector_failures = 0

    def execute(self, root: SyntaxNode) -> Report:
        self.state = EngineState.TRAVERSING
        # No recursion: trees may be deeper than the interpreter stack.
        stack: List[SyntaxNode] = [root]
        while stack:
            if self.cancel is not None and self.cancel.is_set():
                self.state = EngineState.CANCELLED
                raise AnalysisCancelled(f"Analysis of {root.span.file} was cancelled")
            node = stack.pop()
            self.nodes_visited += 1

            entries = self.dispatch.get(node.kind)
            if entries:
                context = NodeContext(node, self.parents)
                for entry in entries:
                    for finding in self._run_detector(entry, node, context):
                        self.collector.add(finding)

            children = list(node.iter_children())
            for role, child in children:
                self.parents[child] = (node, role)
            stack.extend(child for _, child in reversed(children))

        report = self.collector.finalize()
        self.state = EngineState.DONE
        return report

    def _run_detector(self, entry: Entry, node: SyntaxNode, context: NodeContext) -> List[Finding]:
        rule, detector = entry
        try:
            return list(detector.visit(node, context) or ())
        except UnresolvedContextError as exc:
            logger.debug("Unresolved context", rule=rule.id, node_kind=node.kind.value, detail=str(exc))
        except Exception:
            self.detector_failures += 1
            logger.warning(
                "Detector failed",
                rule=rule.id,
                node_kind=node.kind.value,
                location=str(node.span),
                exc_info=True,
            )
        return []


class TraversalEngine:
    """Run the rule catalog over syntax models.

    The engine holds only the frozen catalog and configuration. ``analyze``
    may be called repeatedly and from several threads at once.
    """

    def __init__(self, catalog: Optional[RuleCatalog] = None, config: Optional[EngineConfig] = None) -> None:
        self.config = config or EngineConfig()
        if catalog is None:
            catalog = default_catalog() if config is None else build_catalog(config)
        self.catalog = catalog.freeze()

    def analyze(
        self,
        root: SyntaxNode,
        excluded: Optional[Iterable[str]] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Report:
        """Analyze one translation unit and return its report.

        Rules in ``excluded`` (and in the configured exclusions) are never
        dispatched. Raises ``AnalysisCancelled`` when ``cancel`` is set before
        the walk completes; nothing from the partial run is returned.
        """

        skipped = self._excluded(excluded)
        run = AnalysisRun(self.catalog.dispatch_table(skipped), cancel)
        started = time.perf_counter()
        logger.debug("Analysis started", file=root.span.file, excluded=sorted(skipped))
        report = run.execute(root)
        logger.info(
            "Analysis finished",
            file=root.span.file,
            nodes=run.nodes_visited,
            findings=len(report),
            detector_failures=run.detector_failures,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return report

    def analyze_many(
        self,
        roots: Iterable[SyntaxNode],
        excluded: Optional[Iterable[str]] = None,
        max_workers: Optional[int] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Report:
        """Analyze independent translation units in parallel and merge the reports.

        Reports are merged once every worker has finished. A cancelled file
        contributes no findings.
        """

        roots = list(roots)
        excluded = tuple(excluded or ())
        reports: List[Report] = []
        with ThreadPoolExecutor(max_workers=max_workers or self.config.max_workers) as executor:
            futures = [executor.submit(self.analyze, root, excluded, cancel) for root in roots]
            for root, future in zip(roots, futures):
                try:
                    reports.append(future.result())
                except AnalysisCancelled:
                    logger.info("Analysis cancelled, dropping partial results", file=root.span.file)
        return merge_reports(reports)

    def _excluded(self, excluded: Optional[Iterable[str]]) -> frozenset:
        combined = set(self.config.excluded_rules)
        combined.update(str(rule_id).strip().upper() for rule_id in excluded or ())
        unknown = sorted(rule_id for rule_id in combined if rule_id not in self.catalog)
        if unknown:
            logger.warning("Ignoring unknown rule ids", rule_ids=unknown)
        return frozenset(combined)


def analyze(root: SyntaxNode, excluded: Optional[Iterable[str]] = None) -> Report:
    """Analyze ``root`` with the default catalog."""

    return TraversalEngine().analyze(root, excluded)
