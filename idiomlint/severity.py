"""Severity definitions for idiom findings."""

from __future__ import annotations

from enum import Enum


class Severity(str, Enum):
    """Enumerate the supported severity levels for findings."""

    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"

    @property
    def rank(self) -> int:
        """Return an integer ranking; a report's exit code is its highest rank."""

        ordering = {
            Severity.ERROR: 2,
            Severity.WARNING: 1,
            Severity.INFO: 0,
        }
        return ordering[self]
