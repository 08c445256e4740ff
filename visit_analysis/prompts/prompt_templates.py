"""Visit analysis prompt construction.

The prompt is a pure function of the request: no timestamps, no random
ordering. Identical requests always produce identical text.
"""

from typing import Optional

from visit_analysis.schemas.visit_schema import LanguagePreference, VisitAnalysisRequest

NOT_SPECIFIED = "Not specified"
NOT_PROVIDED = "Not provided"

OUTPUT_SCHEMA = """Provide a JSON response with exactly these fields:
{
  "purchase_probability": number (0-1, where 1 is very likely to purchase),
  "sentiment_score": number (-1 to 1, where 1 is very positive),
  "priority_ranking": integer (1-10, where 10 is highest priority),
  "confidence_score": number (0-1, confidence in this analysis),
  "recommended_actions": array of 3-5 specific action recommendations,
  "concerns": array of potential issues or objections,
  "opportunities": array of ways to increase purchase likelihood,
  "next_contact_timing": string (when to follow up, e.g. "within 24 hours"),
  "reasoning": string (brief explanation of the analysis),
  "cultural_considerations": string (Jordan-specific cultural factors to consider)
}"""

ANALYSIS_CRITERIA = """Base your analysis on:
1. Budget alignment with vehicle interest
2. Purchase timeline urgency
3. Interaction quality and engagement level
4. Completeness of information provided
5. Cultural context for Jordan market
6. Consultant notes and customer behavior indicators"""


def _or(value: Optional[object], default: str) -> str:
    if value is None or value == "":
        return default
    return str(value)


def _format_duration(minutes: Optional[float]) -> str:
    if not minutes:
        return "Not tracked"
    if float(minutes).is_integer():
        return str(int(minutes))
    return str(minutes)


def build_analysis_prompt(request: VisitAnalysisRequest) -> str:
    """Render a visit's structured fields into the analysis request text."""
    customer = request.customer_data
    visit = request.visit_data
    interest = visit.vehicle_interest

    if customer is not None and customer.language_preference == LanguagePreference.ARABIC:
        language = "Arabic"
    else:
        language = "English"

    lines = [
        "Analyze this car dealership customer visit for purchase likelihood "
        "and provide recommendations.",
        "",
        "Customer Information:",
        f"- Name: {_or(customer.name if customer else None, NOT_PROVIDED)}",
        f"- Language: {language}",
        f"- Visit History: {customer.visit_history if customer else 0} previous visits",
        f"- Phone: {'Provided' if customer and customer.phone else NOT_PROVIDED}",
        "",
        "Vehicle Interest:",
        f"- Type: {_or(interest.type, NOT_SPECIFIED)}",
        f"- Brand: {_or(interest.brand, NOT_SPECIFIED)}",
        f"- Model: {_or(interest.model, NOT_SPECIFIED)}",
        f"- Budget: {_or(interest.budget_range, NOT_SPECIFIED)}",
        f"- Timeline: {_or(interest.purchase_timeline, NOT_SPECIFIED)}",
        f"- Features: {_or(', '.join(interest.features), NOT_SPECIFIED)}",
        f"- Financing: {_or(interest.financing_preference, NOT_SPECIFIED)}",
        "",
        "Visit Details:",
        f"- Source: {_or(visit.source, 'Walk-in')}",
        f"- Duration: {_format_duration(visit.visit_duration)} minutes",
        f"- Interaction Quality: {_or(visit.interaction_quality, 'Standard')}",
        f"- Consultant Notes: {_or(visit.consultant_notes, 'No notes provided')}",
        "",
        OUTPUT_SCHEMA,
        "",
        ANALYSIS_CRITERIA,
    ]
    return "\n".join(lines)
