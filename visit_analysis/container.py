"""Process-wide wiring of the orchestrator and its collaborators."""

import logging
from datetime import timedelta
from functools import lru_cache

import httpx

from visit_analysis.config import settings
from visit_analysis.orchestrator import AnalysisOrchestrator
from visit_analysis.scoring.circuit_breaker import CircuitBreaker
from visit_analysis.scoring.model_client import OpenAIScorer
from visit_analysis.storage.base import AuditLogStore, VisitStore
from visit_analysis.storage.memory import InMemoryAuditLog, InMemoryVisitStore
from visit_analysis.storage.supabase import (
    SupabaseAuditLog,
    SupabaseVisitStore,
    build_rest_client,
)

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_circuit_breaker() -> CircuitBreaker:
    """One breaker per process, shared by every invocation."""
    return CircuitBreaker(
        max_failures=settings.breaker.max_failures,
        reset_timeout=settings.breaker.reset_seconds,
    )


@lru_cache(maxsize=1)
def get_rest_client() -> httpx.AsyncClient:
    """REST client shared by both Supabase stores."""
    return build_rest_client(settings.store)


@lru_cache(maxsize=1)
def get_stores() -> tuple[VisitStore, AuditLogStore]:
    """Supabase stores when credentials are configured, otherwise in-memory."""
    if settings.store.is_remote:
        client = get_rest_client()
        logger.info("Using Supabase stores at %s", settings.store.supabase_url)
        return SupabaseVisitStore(client), SupabaseAuditLog(client)
    logger.warning("Supabase not configured, analyses will be kept in memory only")
    return InMemoryVisitStore(), InMemoryAuditLog()


@lru_cache(maxsize=1)
def get_model_scorer() -> OpenAIScorer:
    return OpenAIScorer(settings.model)


@lru_cache(maxsize=1)
def get_orchestrator() -> AnalysisOrchestrator:
    visit_store, audit_log = get_stores()
    return AnalysisOrchestrator(
        visit_store=visit_store,
        audit_log=audit_log,
        model_scorer=get_model_scorer(),
        breaker=get_circuit_breaker(),
        max_age=timedelta(hours=settings.cache.max_age_hours),
    )


async def close_resources() -> None:
    """
    Close the network clients opened so far and forget every singleton.

    Only clients that were actually created are closed; nothing is built
    here just to be torn down.
    """
    if get_model_scorer.cache_info().currsize:
        await get_model_scorer().aclose()
    if get_rest_client.cache_info().currsize:
        await get_rest_client().aclose()
    for factory in (
        get_orchestrator, get_stores, get_model_scorer, get_rest_client, get_circuit_breaker,
    ):
        factory.cache_clear()
    logger.info("Closed service clients")
