from __future__ import annotations

from collections.abc import Iterable

from .domain import Diagnostic, DiagnosticType

# Diagnostics that cast doubt on a computed figure; everything else is advisory.
ERROR_TYPES = frozenset({DiagnosticType.UNMATCHED_DISPOSAL})


class DiagnosticRecorder:
    """Collect diagnostics without side effects, split into errors and warnings."""

    def __init__(self) -> None:
        self._diagnostics: list[Diagnostic] = []

    def record(self, diagnostic: Diagnostic) -> None:
        self._diagnostics.append(diagnostic)

    def record_many(self, diagnostics: Iterable[Diagnostic]) -> None:
        for diagnostic in diagnostics:
            self.record(diagnostic)

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return self._diagnostics

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self._diagnostics if d.type in ERROR_TYPES]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self._diagnostics if d.type not in ERROR_TYPES]

    def clear(self) -> None:
        self._diagnostics.clear()
