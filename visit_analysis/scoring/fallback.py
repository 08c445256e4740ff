"""
Rule-based fallback scorer.

Used whenever the model path is unavailable. Starts from a neutral
baseline and applies additive adjustments for budget, timeline, consultant
notes, and repeat visits, clamping only at the end. The recommendation
lists are static text and do not depend on the input.
"""

import logging
from datetime import datetime
from typing import Callable

from visit_analysis.schemas.analysis_schema import AnalysisResult, parse_analysis_result
from visit_analysis.schemas.visit_schema import VisitAnalysisRequest
from visit_analysis.utils import clamp, contains_any, utc_now

logger = logging.getLogger(__name__)

BASE_PROBABILITY = 0.5
BASE_PRIORITY = 5
BASE_SENTIMENT = 0.0
FALLBACK_CONFIDENCE = 0.6

POSITIVE_KEYWORDS = ("interested", "excited")
BUDGET_KEYWORDS = ("budget", "price")

RECOMMENDED_ACTIONS = [
    "Follow up within 48 hours",
    "Send vehicle information and pricing",
    "Schedule test drive appointment",
    "Discuss financing options",
]
CONCERNS = [
    "Budget constraints may affect decision",
    "May be comparison shopping with competitors",
]
OPPORTUNITIES = [
    "Strong interest in specific vehicle type",
    "Customer provided contact information",
]
NEXT_CONTACT_TIMING = "within 24-48 hours"
REASONING = (
    "Fallback analysis based on available visit data and customer interaction patterns."
)
CULTURAL_CONSIDERATIONS = (
    "Consider family decision-making process and value-focused messaging for Jordan market."
)


class FallbackScorer:
    """Deterministic heuristic scorer. Never raises for a parsed request."""

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = clock

    def score(self, request: VisitAnalysisRequest) -> AnalysisResult:
        visit = request.visit_data
        interest = visit.vehicle_interest

        probability = BASE_PROBABILITY
        priority: float = BASE_PRIORITY
        sentiment = BASE_SENTIMENT

        if interest.budget_range:
            probability += 0.15
            priority += 1

        if interest.purchase_timeline:
            timeline = interest.purchase_timeline.lower()
            if "week" in timeline:
                probability += 0.25
                priority += 3
            elif "month" in timeline:
                probability += 0.15
                priority += 2

        if visit.consultant_notes:
            if contains_any(visit.consultant_notes, POSITIVE_KEYWORDS):
                sentiment += 0.3
                probability += 0.1
            if contains_any(visit.consultant_notes, BUDGET_KEYWORDS):
                probability += 0.05

        customer = request.customer_data
        if customer is not None and customer.visit_history > 1:
            probability += 0.1
            priority += 1

        result = parse_analysis_result({
            # 4 d.p. so 0.5 + 0.15 + 0.15 + 0.1 reports exactly 0.9.
            "purchase_probability": round(clamp(probability, 0.0, 1.0), 4),
            "sentiment_score": round(clamp(sentiment, -1.0, 1.0), 4),
            "priority_ranking": int(clamp(round(priority), 1, 10)),
            "confidence_score": FALLBACK_CONFIDENCE,
            "recommended_actions": list(RECOMMENDED_ACTIONS),
            "concerns": list(CONCERNS),
            "opportunities": list(OPPORTUNITIES),
            "next_contact_timing": NEXT_CONTACT_TIMING,
            "reasoning": REASONING,
            "cultural_considerations": CULTURAL_CONSIDERATIONS,
            "generated_at": self._clock(),
        })
        logger.debug(
            "Fallback score: probability=%.2f priority=%d sentiment=%.2f",
            result.purchase_probability, result.priority_ranking, result.sentiment_score,
        )
        return result
