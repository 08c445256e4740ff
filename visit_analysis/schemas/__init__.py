from visit_analysis.schemas.analysis_schema import (
    AnalysisLogEntry,
    AnalysisOutcome,
    AnalysisResponse,
    AnalysisResult,
    ErrorResponse,
    FailureResponse,
    PrioritizedVisit,
    ScoringMethod,
    parse_analysis_result,
)
from visit_analysis.schemas.visit_schema import (
    CustomerData,
    LanguagePreference,
    VehicleInterest,
    VisitAnalysisRequest,
    VisitData,
)

__all__ = [
    "AnalysisResult", "AnalysisLogEntry", "AnalysisOutcome", "ScoringMethod",
    "AnalysisResponse", "ErrorResponse", "FailureResponse", "PrioritizedVisit",
    "parse_analysis_result",
    "VisitAnalysisRequest", "VisitData", "VehicleInterest", "CustomerData",
    "LanguagePreference",
]
