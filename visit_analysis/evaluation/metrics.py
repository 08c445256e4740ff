"""
Performance indicators for the visit analysis service.

Computed from audit log entries: method usage, success rate, latency,
confidence, and how many scored visits land in the high-priority band.
These back the manager dashboard's AI performance panel.
"""

import logging
from dataclasses import asdict, dataclass

from visit_analysis.schemas.analysis_schema import AnalysisLogEntry, ScoringMethod
from visit_analysis.storage.base import HIGH_PRIORITY_THRESHOLD

logger = logging.getLogger(__name__)


@dataclass
class AnalysisMetrics:
    """Aggregated metrics over a batch of log entries."""

    # Volume
    total_analyses: int = 0
    openai_count: int = 0
    fallback_count: int = 0

    # Reliability
    fallback_rate: float = 0.0
    success_rate: float = 0.0

    # Latency
    avg_processing_time_ms: float = 0.0
    max_processing_time_ms: float = 0.0

    # Scores
    avg_confidence: float = 0.0
    avg_purchase_probability: float = 0.0
    high_priority_count: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class MetricsCalculator:
    """Calculates service metrics from audit log entries."""

    def calculate(self, entries: list[AnalysisLogEntry]) -> AnalysisMetrics:
        metrics = AnalysisMetrics()
        if not entries:
            return metrics

        n = len(entries)
        metrics.total_analyses = n
        metrics.openai_count = sum(1 for e in entries if e.method == ScoringMethod.OPENAI)
        metrics.fallback_count = n - metrics.openai_count
        metrics.fallback_rate = metrics.fallback_count / n
        metrics.success_rate = sum(1 for e in entries if e.success) / n

        durations = [e.processing_time_ms for e in entries]
        metrics.avg_processing_time_ms = sum(durations) / n
        metrics.max_processing_time_ms = max(durations)

        results = [e.analysis_result for e in entries]
        metrics.avg_confidence = sum(r.confidence_score for r in results) / n
        metrics.avg_purchase_probability = sum(r.purchase_probability for r in results) / n
        metrics.high_priority_count = sum(
            1 for r in results if r.priority_ranking >= HIGH_PRIORITY_THRESHOLD
        )

        logger.debug(
            "Metrics over %d analyses: fallback_rate=%.2f success_rate=%.2f",
            n, metrics.fallback_rate, metrics.success_rate,
        )
        return metrics

    def format_report(self, metrics: AnalysisMetrics) -> str:
        lines = [
            "=" * 50,
            "VISIT ANALYSIS PERFORMANCE REPORT",
            "=" * 50,
            f"Total analyses:          {metrics.total_analyses}",
            f"  via OpenAI:            {metrics.openai_count}",
            f"  via fallback:          {metrics.fallback_count}",
            f"Fallback rate:           {metrics.fallback_rate:.1%}",
            f"Success rate:            {metrics.success_rate:.1%}",
            f"Avg processing time:     {metrics.avg_processing_time_ms:.1f} ms",
            f"Max processing time:     {metrics.max_processing_time_ms:.1f} ms",
            f"Avg confidence:          {metrics.avg_confidence:.1%}",
            f"Avg purchase likelihood: {metrics.avg_purchase_probability:.1%}",
            f"High-priority visits:    {metrics.high_priority_count}",
            "=" * 50,
        ]
        return "\n".join(lines)
