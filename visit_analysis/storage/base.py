"""Storage interfaces the orchestrator depends on."""

from typing import Optional, Protocol

from visit_analysis.schemas.analysis_schema import (
    AnalysisLogEntry,
    AnalysisResult,
    PrioritizedVisit,
)

HIGH_PRIORITY_THRESHOLD = 7


class VisitStore(Protocol):
    """Holds the latest analysis stored on each visit record."""

    async def get_analysis(self, visit_id: str) -> Optional[AnalysisResult]:
        """Return the stored analysis, or None if absent or unreadable."""
        ...

    async def update_analysis(self, visit_id: str, result: AnalysisResult) -> None:
        """Overwrite the visit's analysis. Raises PersistenceError on failure."""
        ...

    async def list_high_priority(
        self, limit: int = 10, min_priority: int = HIGH_PRIORITY_THRESHOLD
    ) -> list[PrioritizedVisit]:
        """Visits ranked by priority then purchase probability, highest first."""
        ...


class AuditLogStore(Protocol):
    """Append-only record of every non-cached analysis."""

    async def append(self, entry: AnalysisLogEntry) -> None:
        """Append one entry. Raises PersistenceError on failure."""
        ...

    async def recent(self, limit: int = 50) -> list[AnalysisLogEntry]:
        """Most recent entries, newest first."""
        ...
