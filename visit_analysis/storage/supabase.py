"""
Supabase (PostgREST) backed visit and audit log stores.

Talks to the hosted Postgres REST API with the service-role key:
  - ``visits``           holds ``ai_analysis`` plus denormalised score columns
  - ``ai_analysis_log``  receives one row per non-cached analysis

Transport failures and non-2xx responses raise PersistenceError. A stored
analysis that no longer validates is treated as absent.
"""

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from visit_analysis.config import StoreConfig
from visit_analysis.errors import PersistenceError
from visit_analysis.schemas.analysis_schema import (
    AnalysisLogEntry,
    AnalysisResult,
    PrioritizedVisit,
    parse_analysis_result,
)
from visit_analysis.storage.base import HIGH_PRIORITY_THRESHOLD
from visit_analysis.utils import utc_now

logger = logging.getLogger(__name__)

VISITS_TABLE = "visits"
LOG_TABLE = "ai_analysis_log"
CLOSED_VISIT_STATUSES = ("completed", "lost")


def build_rest_client(config: StoreConfig) -> httpx.AsyncClient:
    """Create an AsyncClient pointed at the project's REST endpoint."""
    if not config.is_remote:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required")
    key = config.service_role_key
    return httpx.AsyncClient(
        base_url=f"{config.supabase_url.rstrip('/')}/rest/v1",
        headers={
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        },
        timeout=config.timeout_seconds,
    )


class _RestTable:
    """Thin request helper shared by both stores."""

    def __init__(self, client: httpx.AsyncClient, table: str) -> None:
        self._client = client
        self.table = table

    async def request(
        self,
        method: str,
        params: Optional[dict[str, str]] = None,
        json: Any = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        try:
            response = await self._client.request(
                method, f"/{self.table}", params=params, json=json, headers=headers,
            )
        except httpx.TimeoutException as e:
            raise PersistenceError(f"Timeout talking to {self.table}") from e
        except httpx.HTTPError as e:
            raise PersistenceError(f"{self.table} request failed: {e}") from e

        if response.status_code >= 400:
            raise PersistenceError(
                f"{self.table} {method} failed: {response.status_code} - {response.text[:200]}"
            )
        if not response.content:
            return None
        return response.json()


class SupabaseVisitStore:
    """Visit analyses stored on the ``visits`` table."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client
        self._visits = _RestTable(client, VISITS_TABLE)

    async def get_analysis(self, visit_id: str) -> Optional[AnalysisResult]:
        rows = await self._visits.request(
            "GET", params={"id": f"eq.{visit_id}", "select": "ai_analysis"},
        )
        if not rows:
            return None
        payload = rows[0].get("ai_analysis")
        if not isinstance(payload, dict) or not payload.get("generated_at"):
            return None
        try:
            return parse_analysis_result(payload)
        except PydanticValidationError as e:
            logger.warning("Stored analysis for visit %s is invalid: %s", visit_id, e)
            return None

    async def update_analysis(self, visit_id: str, result: AnalysisResult) -> None:
        await self._visits.request(
            "PATCH",
            params={"id": f"eq.{visit_id}"},
            json={
                "ai_analysis": result.model_dump(mode="json"),
                "ai_purchase_probability": result.purchase_probability,
                "ai_sentiment_score": result.sentiment_score,
                "ai_priority_ranking": result.priority_ranking,
                "updated_at": utc_now().isoformat(),
            },
            headers={"Prefer": "return=minimal"},
        )

    async def list_high_priority(
        self, limit: int = 10, min_priority: int = HIGH_PRIORITY_THRESHOLD
    ) -> list[PrioritizedVisit]:
        rows = await self._visits.request(
            "GET",
            params={
                "select": "id,ai_analysis",
                "ai_priority_ranking": f"gte.{min_priority}",
                "status": f"not.in.({','.join(CLOSED_VISIT_STATUSES)})",
                "order": "ai_priority_ranking.desc,ai_purchase_probability.desc",
                "limit": str(limit),
            },
        )
        visits: list[PrioritizedVisit] = []
        for row in rows or []:
            try:
                analysis = parse_analysis_result(row.get("ai_analysis") or {})
            except PydanticValidationError:
                logger.warning("Skipping visit %s with invalid stored analysis", row.get("id"))
                continue
            visits.append(PrioritizedVisit(visit_id=str(row["id"]), analysis=analysis))
        return visits

    async def aclose(self) -> None:
        await self._client.aclose()


class SupabaseAuditLog:
    """Audit entries appended to the ``ai_analysis_log`` table."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client
        self._log = _RestTable(client, LOG_TABLE)

    async def append(self, entry: AnalysisLogEntry) -> None:
        await self._log.request(
            "POST",
            json=entry.model_dump(mode="json"),
            headers={"Prefer": "return=minimal"},
        )

    async def recent(self, limit: int = 50) -> list[AnalysisLogEntry]:
        rows = await self._log.request(
            "GET",
            params={"select": "*", "order": "created_at.desc", "limit": str(limit)},
        )
        entries: list[AnalysisLogEntry] = []
        for row in rows or []:
            try:
                entries.append(AnalysisLogEntry.model_validate(row))
            except PydanticValidationError:
                logger.warning("Skipping malformed log row %s", row.get("id"))
        return entries

    async def aclose(self) -> None:
        await self._client.aclose()
