"""Core result data structures for the engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from .severity import Severity
from .syntax import SourceSpan

SEVERITY_ORDER: Sequence[Severity] = (
    Severity.ERROR,
    Severity.WARNING,
    Severity.INFO,
)


@dataclass(frozen=True)
class Finding:
    """A single rule violation reported at one source span."""

    rule_id: str
    span: SourceSpan
    message: str
    severity: Severity

    @property
    def key(self) -> Tuple[str, SourceSpan, str]:
        """Identity used for de-duplication."""

        return (self.rule_id, self.span, self.message)

    @property
    def sort_key(self) -> Tuple[Any, ...]:
        span = self.span
        return (span.file, span.line, span.column, self.rule_id, span.end_line, span.end_column, self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule": self.rule_id,
            "severity": self.severity.value,
            "message": self.message,
            **self.span.to_dict(),
        }


@dataclass
class Summary:
    """Aggregate finding counts by severity and by rule."""

    error: int = 0
    warning: int = 0
    info: int = 0
    by_rule: Dict[str, int] = field(default_factory=dict)

    def increment(self, finding: Finding) -> None:
        attr = finding.severity.value.lower()
        setattr(self, attr, getattr(self, attr) + 1)
        self.by_rule[finding.rule_id] = self.by_rule.get(finding.rule_id, 0) + 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "error": self.error,
            "warning": self.warning,
            "info": self.info,
            "by_rule": dict(sorted(self.by_rule.items())),
        }

    def as_rows(self) -> List[Tuple[str, int]]:
        """Return severity/count pairs ordered for reporting."""

        return [(severity.value, getattr(self, severity.value.lower())) for severity in SEVERITY_ORDER]

    @property
    def total(self) -> int:
        return sum(getattr(self, severity.value.lower()) for severity in SEVERITY_ORDER)


@dataclass(frozen=True)
class Report:
    """Sorted, duplicate-free findings of one analysis run (or a merge of runs)."""

    findings: Tuple[Finding, ...] = ()

    @classmethod
    def from_findings(cls, findings: Iterable[Finding]) -> "Report":
        """Sort and de-duplicate ``findings`` into a report."""

        unique: Dict[Tuple[str, SourceSpan, str], Finding] = {}
        for finding in findings:
            unique.setdefault(finding.key, finding)
        return cls(findings=tuple(sorted(unique.values(), key=lambda finding: finding.sort_key)))

    def __len__(self) -> int:
        return len(self.findings)

    def __iter__(self):
        return iter(self.findings)

    @property
    def summary(self) -> Summary:
        summary = Summary()
        for finding in self.findings:
            summary.increment(finding)
        return summary

    @property
    def passed(self) -> bool:
        return not any(finding.severity is Severity.ERROR for finding in self.findings)

    def for_rule(self, rule_id: str) -> Tuple[Finding, ...]:
        return tuple(finding for finding in self.findings if finding.rule_id == rule_id)

    def exit_code(self) -> int:
        """2 with any error, 1 with any warning, else 0."""

        return max((finding.severity.rank for finding in self.findings), default=0)

    def to_dict(self) -> Dict[str, object]:
        return {
            "summary": self.summary.to_dict(),
            "findings": [finding.to_dict() for finding in self.findings],
            "passed": self.passed,
        }


def merge_reports(reports: Iterable[Report]) -> Report:
    """Join per-file reports into one, with a single final sort."""

    merged: List[Finding] = []
    for report in reports:
        merged.extend(report.findings)
    return Report.from_findings(merged)
