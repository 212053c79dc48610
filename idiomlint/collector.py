"""Per-run accumulation of findings."""

from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from .errors import CollectorClosedError
from .result import Finding, Report
from .syntax import SourceSpan


class DiagnosticCollector:
    """Collect findings for one analysis run and hand out a single report.

    Exact duplicates (same rule id, span and message) are dropped on ``add``.
    A collector is closed by ``finalize``; any later use is a programming
    error.
    """

    def __init__(self) -> None:
        self._findings: List[Finding] = []
        self._seen: Dict[Tuple[str, SourceSpan, str], Finding] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._findings)

    def add(self, finding: Finding) -> bool:
        """Record ``finding``; return ``False`` if it was a duplicate."""

        if self._closed:
            raise CollectorClosedError("Cannot add findings after finalize()")
        if finding.key in self._seen:
            return False
        self._seen[finding.key] = finding
        self._findings.append(finding)
        return True

    def extend(self, findings: Iterable[Finding]) -> int:
        return sum(1 for finding in findings if self.add(finding))

    def finalize(self) -> Report:
        if self._closed:
            raise CollectorClosedError("finalize() may only be called once")
        self._closed = True
        ordered = sorted(self._findings, key=lambda finding: finding.sort_key)
        return Report(findings=tuple(ordered))
