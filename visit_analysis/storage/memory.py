"""
In-memory visit and audit log stores.

Used for local development, the console demo, and tests. In production the
Supabase-backed stores in ``visit_analysis.storage.supabase`` are wired
instead.
"""

import logging
from typing import Optional

from visit_analysis.schemas.analysis_schema import (
    AnalysisLogEntry,
    AnalysisResult,
    PrioritizedVisit,
)
from visit_analysis.storage.base import HIGH_PRIORITY_THRESHOLD

logger = logging.getLogger(__name__)


class InMemoryVisitStore:
    """Visit analyses keyed by visit_id."""

    def __init__(self) -> None:
        self._analyses: dict[str, AnalysisResult] = {}

    @property
    def analyses(self) -> dict[str, AnalysisResult]:
        return dict(self._analyses)

    async def get_analysis(self, visit_id: str) -> Optional[AnalysisResult]:
        return self._analyses.get(visit_id)

    async def update_analysis(self, visit_id: str, result: AnalysisResult) -> None:
        self._analyses[visit_id] = result
        logger.debug("Stored analysis for visit %s", visit_id)

    async def list_high_priority(
        self, limit: int = 10, min_priority: int = HIGH_PRIORITY_THRESHOLD
    ) -> list[PrioritizedVisit]:
        ranked = sorted(
            (
                (visit_id, result) for visit_id, result in self._analyses.items()
                if result.priority_ranking >= min_priority
            ),
            key=lambda item: (item[1].priority_ranking, item[1].purchase_probability),
            reverse=True,
        )
        return [
            PrioritizedVisit(visit_id=visit_id, analysis=result)
            for visit_id, result in ranked[:limit]
        ]

    def reset(self) -> None:
        """Clear all analyses. Used by test fixtures for isolation."""
        self._analyses.clear()


class InMemoryAuditLog:
    """Append-only list of log entries."""

    def __init__(self) -> None:
        self._entries: list[AnalysisLogEntry] = []

    @property
    def entries(self) -> list[AnalysisLogEntry]:
        return list(self._entries)

    async def append(self, entry: AnalysisLogEntry) -> None:
        self._entries.append(entry)

    async def recent(self, limit: int = 50) -> list[AnalysisLogEntry]:
        return list(reversed(self._entries))[:limit]

    def reset(self) -> None:
        """Clear all entries. Used by test fixtures for isolation."""
        self._entries.clear()
