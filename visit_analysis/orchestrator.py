"""
Analysis orchestrator: the single entry point for scoring a visit.

Flow for one invocation:
    validate -> cache check -> breaker gate -> model or fallback
             -> persist onto visit -> append audit log -> outcome

Only a missing visit_id fails the caller. Model failures degrade to the
fallback scorer and feed the circuit breaker; storage and log failures are
logged and otherwise ignored.
"""

import logging
import time
from datetime import datetime, timedelta
from typing import Callable, Optional

from visit_analysis.errors import PersistenceError, ValidationError
from visit_analysis.logging_context import visit_context
from visit_analysis.schemas.analysis_schema import (
    AnalysisLogEntry,
    AnalysisOutcome,
    AnalysisResult,
    ScoringMethod,
)
from visit_analysis.schemas.visit_schema import VisitAnalysisRequest
from visit_analysis.scoring.circuit_breaker import CircuitBreaker
from visit_analysis.scoring.fallback import FallbackScorer
from visit_analysis.storage.base import AuditLogStore, VisitStore
from visit_analysis.utils import utc_now

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE = timedelta(hours=24)


class AnalysisOrchestrator:
    """
    Decides which scoring path runs and owns the writes for each invocation.

    Collaborators are injected so tests can swap in fakes, a controllable
    clock, and an independent circuit breaker. ``model_scorer`` is any
    object with ``async score(request) -> AnalysisResult`` that raises on
    failure.
    """

    def __init__(
        self,
        visit_store: VisitStore,
        audit_log: AuditLogStore,
        model_scorer,
        fallback_scorer: Optional[FallbackScorer] = None,
        breaker: Optional[CircuitBreaker] = None,
        max_age: timedelta = DEFAULT_MAX_AGE,
        clock: Callable[[], datetime] = utc_now,
        timer: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.visit_store = visit_store
        self.audit_log = audit_log
        self.model_scorer = model_scorer
        self.fallback_scorer = fallback_scorer or FallbackScorer(clock=clock)
        self.breaker = breaker or CircuitBreaker()
        self.max_age = max_age
        self._clock = clock
        self._timer = timer

    async def analyze(self, request: VisitAnalysisRequest) -> AnalysisOutcome:
        """
        Score a visit, reusing a fresh stored analysis unless forced.

        Raises:
            ValidationError: If the request has no visit_id.
        """
        visit_id = (request.visit_id or "").strip()
        if not visit_id:
            raise ValidationError("visit_id is required")

        with visit_context(visit_id):
            return await self._analyze(visit_id, request)

    async def _analyze(self, visit_id: str, request: VisitAnalysisRequest) -> AnalysisOutcome:
        if not request.force_reanalysis:
            cached = await self._lookup_fresh(visit_id)
            if cached is not None:
                logger.info("Using cached analysis")
                return AnalysisOutcome(result=cached, cached=True)

        started = self._timer()
        result, method, error = await self._score(request)
        elapsed_ms = (self._timer() - started) * 1000

        await self._persist(visit_id, result)
        await self._append_log(AnalysisLogEntry(
            visit_id=visit_id,
            analysis_result=result,
            method=method,
            processing_time_ms=max(elapsed_ms, 0.0),
            success=error is None,
            confidence_score=result.confidence_score,
            error_message=error,
            created_at=self._clock(),
        ))

        logger.info(
            "Scored via %s in %.1fms (priority %d)",
            method.value, elapsed_ms, result.priority_ranking,
        )
        return AnalysisOutcome(result=result, cached=False, method=method)

    def is_fresh(self, result: AnalysisResult) -> bool:
        return self._clock() - result.generated_at < self.max_age

    async def _lookup_fresh(self, visit_id: str) -> Optional[AnalysisResult]:
        try:
            existing = await self.visit_store.get_analysis(visit_id)
        except PersistenceError as e:
            logger.error("Cache lookup failed: %s", e)
            return None
        except Exception:
            logger.exception("Unexpected error reading cached analysis")
            return None
        if existing is None or not self.is_fresh(existing):
            return None
        return existing

    async def _score(
        self, request: VisitAnalysisRequest
    ) -> tuple[AnalysisResult, ScoringMethod, Optional[str]]:
        """Return (result, method that produced it, model error if any)."""
        if self.breaker.is_open():
            logger.warning("Circuit breaker open, using fallback analysis")
            return self.fallback_scorer.score(request), ScoringMethod.FALLBACK, None

        try:
            result = await self.model_scorer.score(request)
        except Exception as e:
            self.breaker.record_failure()
            logger.warning("Model analysis failed, using fallback: %s", e)
            return self.fallback_scorer.score(request), ScoringMethod.FALLBACK, str(e)

        self.breaker.record_success()
        logger.debug("Model analysis completed successfully")
        return result, ScoringMethod.OPENAI, None

    async def _persist(self, visit_id: str, result: AnalysisResult) -> None:
        try:
            await self.visit_store.update_analysis(visit_id, result)
        except PersistenceError as e:
            logger.error("Failed to store analysis: %s", e)
        except Exception:
            logger.exception("Unexpected error storing analysis")

    async def _append_log(self, entry: AnalysisLogEntry) -> None:
        try:
            await self.audit_log.append(entry)
        except PersistenceError as e:
            logger.error("Failed to log analysis: %s", e)
        except Exception:
            logger.exception("Unexpected error logging analysis")
