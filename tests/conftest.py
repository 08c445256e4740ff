"""Shared test fixtures and helpers."""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import pytest

from visit_analysis.orchestrator import AnalysisOrchestrator
from visit_analysis.schemas.analysis_schema import AnalysisResult, parse_analysis_result
from visit_analysis.schemas.visit_schema import VisitAnalysisRequest
from visit_analysis.scoring.circuit_breaker import CircuitBreaker
from visit_analysis.scoring.fallback import FallbackScorer
from visit_analysis.storage.memory import InMemoryAuditLog, InMemoryVisitStore

START = datetime(2025, 3, 15, 10, 0, tzinfo=timezone.utc)


class FakeClock:
    """Controllable wall clock returning aware datetimes."""

    def __init__(self, start: datetime = START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FakeMonotonic:
    """Controllable monotonic clock in seconds, for the circuit breaker."""

    def __init__(self, start: float = 1000.0) -> None:
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


class FakeModelScorer:
    """Model scorer double that returns a fixed result or raises."""

    def __init__(
        self,
        result: Optional[AnalysisResult] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.result = result
        self.error = error
        self.calls = 0

    async def score(self, request: VisitAnalysisRequest) -> AnalysisResult:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result


def make_result(**overrides: Any) -> AnalysisResult:
    """Build a valid model-style AnalysisResult."""
    payload: dict[str, Any] = {
        "purchase_probability": 0.82,
        "sentiment_score": 0.6,
        "priority_ranking": 8,
        "confidence_score": 0.9,
        "recommended_actions": [
            "Call back within 24 hours",
            "Prepare RAV4 financing quote",
            "Invite family for test drive",
        ],
        "concerns": ["Comparing with Kia Sportage"],
        "opportunities": ["Eid bonus timing"],
        "next_contact_timing": "within 24 hours",
        "reasoning": "Clear budget and near-term timeline.",
        "cultural_considerations": "Spouse involved in the decision.",
        "generated_at": START,
    }
    payload.update(overrides)
    return parse_analysis_result(payload)


def make_request(
    visit_id: Optional[str] = "visit-001",
    vehicle_interest: Optional[dict] = None,
    consultant_notes: Optional[str] = None,
    visit_history: Optional[int] = None,
    force_reanalysis: bool = False,
    **visit_fields: Any,
) -> VisitAnalysisRequest:
    """Build a VisitAnalysisRequest with only the given fields set."""
    payload: dict[str, Any] = {
        "visit_id": visit_id,
        "visit_data": {
            "vehicle_interest": vehicle_interest or {},
            "consultant_notes": consultant_notes,
            **visit_fields,
        },
        "force_reanalysis": force_reanalysis,
    }
    if visit_history is not None:
        payload["customer_data"] = {
            "name": "Omar Haddad",
            "phone": "0791234567",
            "language_preference": "ar",
            "visit_history": visit_history,
        }
    return VisitAnalysisRequest.model_validate(payload)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def monotonic():
    return FakeMonotonic()


@pytest.fixture
def breaker(monotonic):
    return CircuitBreaker(max_failures=3, reset_timeout=60.0, clock=monotonic)


@pytest.fixture
def fallback(clock):
    return FallbackScorer(clock=clock)


@pytest.fixture
def visit_store():
    return InMemoryVisitStore()


@pytest.fixture
def audit_log():
    return InMemoryAuditLog()


@pytest.fixture
def model_scorer():
    return FakeModelScorer(result=make_result())


@pytest.fixture
def orchestrator(visit_store, audit_log, model_scorer, breaker, clock):
    return AnalysisOrchestrator(
        visit_store=visit_store,
        audit_log=audit_log,
        model_scorer=model_scorer,
        breaker=breaker,
        clock=clock,
    )
