"""Error taxonomy for the visit analysis service.

Only ValidationError and InternalError ever reach the HTTP boundary.
UpstreamError and PersistenceError are raised by collaborators and absorbed
by the orchestrator.
"""

from typing import Any, Optional


class VisitAnalysisError(Exception):
    """Base class for all service errors."""

    code: str = "GENERAL_ERROR"
    message: str = "An analysis service error occurred"

    def __init__(self, message: Optional[str] = None, **extra: Any) -> None:
        self.message = message or self.message
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, **self.extra}

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class ValidationError(VisitAnalysisError):
    """Malformed or incomplete analysis request."""

    code = "INVALID_REQUEST"
    message = "The analysis request is invalid"


class UpstreamError(VisitAnalysisError):
    """Language-model call failed or returned unusable content."""

    code = "UPSTREAM_FAILED"
    message = "The language-model call failed"


class PersistenceError(VisitAnalysisError):
    """Visit store or audit log write/read failed."""

    code = "PERSISTENCE_FAILED"
    message = "Failed to persist analysis data"


class InternalError(VisitAnalysisError):
    """Unexpected failure inside the service."""

    code = "INTERNAL_ERROR"
    message = "Internal server error"
