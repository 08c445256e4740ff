"""Tests for the analysis orchestrator: caching, breaker gating, and writes."""

import logging

import pytest

from tests.conftest import FakeModelScorer, make_request, make_result
from visit_analysis.errors import PersistenceError, UpstreamError, ValidationError
from visit_analysis.logging_context import NO_VISIT, VisitIdFilter, get_visit_id
from visit_analysis.orchestrator import AnalysisOrchestrator
from visit_analysis.schemas.analysis_schema import ScoringMethod
from visit_analysis.storage.memory import InMemoryAuditLog, InMemoryVisitStore


class FailingVisitStore(InMemoryVisitStore):
    def __init__(self, fail_reads: bool = False, fail_writes: bool = False) -> None:
        super().__init__()
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes

    async def get_analysis(self, visit_id):
        if self.fail_reads:
            raise PersistenceError("visits read failed")
        return await super().get_analysis(visit_id)

    async def update_analysis(self, visit_id, result):
        if self.fail_writes:
            raise PersistenceError("visits write failed")
        await super().update_analysis(visit_id, result)


class FailingAuditLog(InMemoryAuditLog):
    async def append(self, entry):
        raise RuntimeError("log table unavailable")


def _orchestrator(visit_store, audit_log, model_scorer, breaker, clock):
    return AnalysisOrchestrator(
        visit_store=visit_store,
        audit_log=audit_log,
        model_scorer=model_scorer,
        breaker=breaker,
        clock=clock,
    )


class TestValidation:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("visit_id", [None, "", "   "])
    async def test_missing_visit_id_rejected(
        self, orchestrator, audit_log, visit_store, model_scorer, visit_id,
    ):
        with pytest.raises(ValidationError, match="visit_id is required"):
            await orchestrator.analyze(make_request(visit_id=visit_id))
        assert audit_log.entries == []
        assert visit_store.analyses == {}
        assert model_scorer.calls == 0


class TestModelPath:
    @pytest.mark.asyncio
    async def test_model_success(self, orchestrator, visit_store, audit_log, breaker):
        outcome = await orchestrator.analyze(make_request())

        assert outcome.cached is False
        assert outcome.method == ScoringMethod.OPENAI
        assert outcome.result == make_result()
        assert await visit_store.get_analysis("visit-001") == outcome.result
        assert breaker.failure_count == 0

        [entry] = audit_log.entries
        assert entry.visit_id == "visit-001"
        assert entry.method == ScoringMethod.OPENAI
        assert entry.success is True
        assert entry.error_message is None
        assert entry.confidence_score == outcome.result.confidence_score
        assert entry.processing_time_ms >= 0

    @pytest.mark.asyncio
    async def test_log_records_carry_visit_id(self, orchestrator, caplog):
        caplog.handler.addFilter(VisitIdFilter())
        with caplog.at_level(logging.INFO, logger="visit_analysis.orchestrator"):
            await orchestrator.analyze(make_request(visit_id="visit-77"))

        [scored] = [r for r in caplog.records if r.getMessage().startswith("Scored via")]
        assert scored.visit_id == "visit-77"
        assert get_visit_id() == NO_VISIT

    @pytest.mark.asyncio
    async def test_visit_id_is_trimmed(self, orchestrator, visit_store):
        await orchestrator.analyze(make_request(visit_id="  visit-9 "))
        assert await visit_store.get_analysis("visit-9") is not None


class TestFallbackPath:
    @pytest.mark.asyncio
    async def test_model_failure_falls_back(self, visit_store, audit_log, breaker, clock):
        scorer = FakeModelScorer(error=UpstreamError("OpenAI API error: 500"))
        orchestrator = _orchestrator(visit_store, audit_log, scorer, breaker, clock)

        outcome = await orchestrator.analyze(make_request(
            vehicle_interest={"budget_range": "25000-35000", "purchase_timeline": "within_month"},
            visit_history=2,
        ))

        assert outcome.method == ScoringMethod.FALLBACK
        assert outcome.result.purchase_probability == 0.9
        assert outcome.result.priority_ranking == 9
        assert outcome.result.confidence_score == 0.6
        assert breaker.failure_count == 1

        [entry] = audit_log.entries
        assert entry.method == ScoringMethod.FALLBACK
        assert entry.success is False
        assert "OpenAI API error: 500" in entry.error_message

    @pytest.mark.asyncio
    async def test_unexpected_model_exception_falls_back(self, visit_store, audit_log, breaker, clock):
        scorer = FakeModelScorer(error=KeyError("choices"))
        orchestrator = _orchestrator(visit_store, audit_log, scorer, breaker, clock)
        outcome = await orchestrator.analyze(make_request())
        assert outcome.method == ScoringMethod.FALLBACK
        assert breaker.failure_count == 1

    @pytest.mark.asyncio
    async def test_breaker_opens_and_skips_model(self, visit_store, audit_log, breaker, clock):
        scorer = FakeModelScorer(error=UpstreamError("timeout"))
        orchestrator = _orchestrator(visit_store, audit_log, scorer, breaker, clock)

        for i in range(5):
            outcome = await orchestrator.analyze(make_request(visit_id=f"visit-{i}"))
            assert outcome.method == ScoringMethod.FALLBACK

        assert scorer.calls == 3
        assert breaker.is_open() is True
        # Short-circuited invocations never reached the model.
        assert [e.success for e in audit_log.entries] == [False, False, False, True, True]

    @pytest.mark.asyncio
    async def test_third_call_after_two_failures_still_tries_model(
        self, visit_store, audit_log, breaker, clock,
    ):
        scorer = FakeModelScorer(error=UpstreamError("timeout"))
        orchestrator = _orchestrator(visit_store, audit_log, scorer, breaker, clock)
        await orchestrator.analyze(make_request(visit_id="a"))
        await orchestrator.analyze(make_request(visit_id="b"))

        scorer.error = None
        scorer.result = make_result()
        outcome = await orchestrator.analyze(make_request(visit_id="c"))

        assert scorer.calls == 3
        assert outcome.method == ScoringMethod.OPENAI
        assert breaker.failure_count == 0

    @pytest.mark.asyncio
    async def test_model_retried_after_cool_down(
        self, visit_store, audit_log, breaker, clock, monotonic,
    ):
        scorer = FakeModelScorer(error=UpstreamError("timeout"))
        orchestrator = _orchestrator(visit_store, audit_log, scorer, breaker, clock)
        for i in range(3):
            await orchestrator.analyze(make_request(visit_id=f"v{i}"))
        assert breaker.is_open() is True

        scorer.error = None
        scorer.result = make_result()
        monotonic.advance(61)
        outcome = await orchestrator.analyze(make_request(visit_id="later"))

        assert outcome.method == ScoringMethod.OPENAI
        assert scorer.calls == 4

    @pytest.mark.asyncio
    async def test_fallback_scores_within_ranges(self, visit_store, audit_log, breaker, clock):
        scorer = FakeModelScorer(error=UpstreamError("down"))
        orchestrator = _orchestrator(visit_store, audit_log, scorer, breaker, clock)
        outcome = await orchestrator.analyze(make_request(
            vehicle_interest={"budget_range": "x", "purchase_timeline": "this week"},
            consultant_notes="interested, excited, price, budget",
            visit_history=4,
        ))
        result = outcome.result
        assert 0.0 <= result.purchase_probability <= 1.0
        assert -1.0 <= result.sentiment_score <= 1.0
        assert 1 <= result.priority_ranking <= 10
        assert 0.0 <= result.confidence_score <= 1.0


class TestCaching:
    @pytest.mark.asyncio
    async def test_fresh_analysis_reused(self, orchestrator, audit_log, model_scorer, clock):
        first = await orchestrator.analyze(make_request())
        clock.advance(hours=2)
        second = await orchestrator.analyze(make_request())

        assert second.cached is True
        assert second.method is None
        assert second.result == first.result
        assert model_scorer.calls == 1
        assert len(audit_log.entries) == 1

    @pytest.mark.asyncio
    async def test_cache_reused_even_while_breaker_open(
        self, orchestrator, breaker,
    ):
        await orchestrator.analyze(make_request())
        for _ in range(3):
            breaker.record_failure()
        outcome = await orchestrator.analyze(make_request())
        assert outcome.cached is True

    @pytest.mark.asyncio
    async def test_force_reanalysis_bypasses_cache(self, orchestrator, audit_log, model_scorer):
        await orchestrator.analyze(make_request())
        outcome = await orchestrator.analyze(make_request(force_reanalysis=True))

        assert outcome.cached is False
        assert model_scorer.calls == 2
        assert len(audit_log.entries) == 2

    @pytest.mark.asyncio
    async def test_stale_analysis_recomputed(self, orchestrator, model_scorer, clock):
        await orchestrator.analyze(make_request())
        clock.advance(hours=25)
        outcome = await orchestrator.analyze(make_request())

        assert outcome.cached is False
        assert model_scorer.calls == 2

    @pytest.mark.asyncio
    async def test_analysis_exactly_at_max_age_is_stale(self, orchestrator, model_scorer, clock):
        await orchestrator.analyze(make_request())
        clock.advance(hours=24)
        outcome = await orchestrator.analyze(make_request())
        assert outcome.cached is False

    @pytest.mark.asyncio
    async def test_cache_is_per_visit(self, orchestrator, model_scorer):
        await orchestrator.analyze(make_request(visit_id="a"))
        outcome = await orchestrator.analyze(make_request(visit_id="b"))
        assert outcome.cached is False
        assert model_scorer.calls == 2


class TestStorageFailures:
    @pytest.mark.asyncio
    async def test_failed_write_still_returns_result(self, audit_log, model_scorer, breaker, clock):
        store = FailingVisitStore(fail_writes=True)
        orchestrator = _orchestrator(store, audit_log, model_scorer, breaker, clock)

        outcome = await orchestrator.analyze(make_request())

        assert outcome.method == ScoringMethod.OPENAI
        assert len(audit_log.entries) == 1

    @pytest.mark.asyncio
    async def test_failed_cache_read_is_a_miss(self, audit_log, model_scorer, breaker, clock):
        store = FailingVisitStore(fail_reads=True)
        orchestrator = _orchestrator(store, audit_log, model_scorer, breaker, clock)

        outcome = await orchestrator.analyze(make_request())

        assert outcome.cached is False
        assert model_scorer.calls == 1

    @pytest.mark.asyncio
    async def test_failed_log_append_still_returns_result(
        self, visit_store, model_scorer, breaker, clock,
    ):
        orchestrator = _orchestrator(visit_store, FailingAuditLog(), model_scorer, breaker, clock)

        outcome = await orchestrator.analyze(make_request())

        assert outcome.result == make_result()
        assert await visit_store.get_analysis("visit-001") == outcome.result
