from visit_analysis.scoring.circuit_breaker import CircuitBreaker, CircuitState, is_breaker_open
from visit_analysis.scoring.fallback import FallbackScorer
from visit_analysis.scoring.model_client import OpenAIScorer

__all__ = [
    "CircuitBreaker", "CircuitState", "is_breaker_open",
    "FallbackScorer", "OpenAIScorer",
]
