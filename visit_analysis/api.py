"""
HTTP surface for the visit analysis service.

ENDPOINTS:
  POST /ai-visit-analysis      score a visit (cached result reused for 24h)
  GET  /health                 liveness plus circuit breaker state
  GET  /ai-analysis-log        most recent audit entries
  GET  /ai-analysis-metrics    aggregate performance over recent entries
  GET  /high-priority-visits   visits ranked for follow-up

Any path answers a CORS pre-flight ``OPTIONS`` with an empty 200. Every
response carries ``Access-Control-Allow-Origin: *``. Errors are reported
as ``{"error": ...}`` bodies; unexpected failures as
``{"success": false, "error": ..., "message": ...}`` with status 500.

Run with:
    uvicorn visit_analysis.api:app --port 8000
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from visit_analysis import container
from visit_analysis.config import settings
from visit_analysis.errors import InternalError, PersistenceError, ValidationError
from visit_analysis.evaluation.metrics import MetricsCalculator
from visit_analysis.orchestrator import AnalysisOrchestrator
from visit_analysis.schemas.analysis_schema import (
    AnalysisResponse,
    ErrorResponse,
    FailureResponse,
)
from visit_analysis.schemas.visit_schema import VisitAnalysisRequest
from visit_analysis.scoring.circuit_breaker import CircuitBreaker
from visit_analysis.utils import utc_now

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

MAX_PAGE_SIZE = 500


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(ErrorResponse(error=message).model_dump(), status_code=status_code)


def create_app(
    orchestrator: Optional[AnalysisOrchestrator] = None,
    breaker: Optional[CircuitBreaker] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Without arguments the process-wide orchestrator and breaker from
    ``visit_analysis.container`` are resolved on first use and their
    network clients are closed on shutdown. An injected orchestrator
    belongs to the caller and is left open.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        if orchestrator is None:
            await container.close_resources()

    app = FastAPI(
        title=settings.service_name, version=settings.service_version, lifespan=lifespan,
    )

    def _orchestrator() -> AnalysisOrchestrator:
        return orchestrator or container.get_orchestrator()

    def _breaker() -> CircuitBreaker:
        if breaker is not None:
            return breaker
        if orchestrator is not None:
            return orchestrator.breaker
        return container.get_circuit_breaker()

    @app.middleware("http")
    async def add_cors_origin(request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("Access-Control-Allow-Origin", "*")
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 405:
            return _error(405, "Method not allowed")
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def query_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(p) for p in first.get("loc", ()))
        return _error(400, f"Invalid parameter {field}: {first.get('msg', 'invalid')}")

    @app.exception_handler(PersistenceError)
    async def store_error(request: Request, exc: PersistenceError) -> JSONResponse:
        logger.error("Store read failed for %s: %s", request.url.path, exc)
        failure = FailureResponse(error=InternalError.message, message=exc.message)
        return JSONResponse(failure.model_dump(), status_code=500)

    @app.options("/{path:path}")
    async def preflight(path: str) -> Response:
        return Response(status_code=200, headers=CORS_HEADERS)

    @app.post("/ai-visit-analysis")
    async def ai_visit_analysis(request: Request) -> JSONResponse:
        try:
            body = await request.json()
        except ValueError:
            return _error(400, "Request body must be valid JSON")
        if not isinstance(body, dict):
            return _error(400, "Request body must be a JSON object")

        try:
            analysis_request = VisitAnalysisRequest.model_validate(body)
            outcome = await _orchestrator().analyze(analysis_request)
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(p) for p in first["loc"])
            return _error(400, f"Invalid field {field}: {first['msg']}")
        except ValidationError as e:
            return _error(400, e.message)
        except Exception as e:
            logger.exception("Error in AI analysis")
            failure = FailureResponse(error=InternalError.message, message=str(e))
            return JSONResponse(failure.model_dump(), status_code=500)

        payload = AnalysisResponse(
            data=outcome.result,
            cached=outcome.cached,
            method=outcome.method,
            message=(
                "Using cached analysis" if outcome.cached
                else "Analysis completed successfully"
            ),
        ).model_dump(mode="json")
        if payload["method"] is None:
            del payload["method"]
        return JSONResponse(payload, status_code=200)

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {
            "status": "healthy",
            "timestamp": utc_now().isoformat(),
            "version": settings.service_version,
            "service": settings.service_name,
            "environment": settings.environment,
            "circuit_breaker": _breaker().snapshot(),
        }

    @app.get("/ai-analysis-log")
    async def analysis_log(limit: int = Query(50, ge=1, le=MAX_PAGE_SIZE)) -> dict[str, Any]:
        entries = await _orchestrator().audit_log.recent(limit)
        return {"data": [e.model_dump(mode="json") for e in entries], "count": len(entries)}

    @app.get("/ai-analysis-metrics")
    async def analysis_metrics(
        limit: int = Query(MAX_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    ) -> dict[str, Any]:
        entries = await _orchestrator().audit_log.recent(limit)
        return {"data": MetricsCalculator().calculate(entries).to_dict()}

    @app.get("/high-priority-visits")
    async def high_priority_visits(
        limit: int = Query(10, ge=1, le=100),
    ) -> dict[str, Any]:
        visits = await _orchestrator().visit_store.list_high_priority(limit)
        return {"data": [v.model_dump(mode="json") for v in visits], "count": len(visits)}

    return app


# Module-level app instance used by ``uvicorn visit_analysis.api:app``
app = create_app()
