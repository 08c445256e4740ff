from visit_analysis.evaluation.metrics import AnalysisMetrics, MetricsCalculator

__all__ = ["AnalysisMetrics", "MetricsCalculator"]
