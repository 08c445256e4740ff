"""Inbound visit analysis request models.

Intake forms send partial records: optional fields may arrive as null and
enumerated values in any case. Those are normalised here so that only a
missing ``visit_id`` can fail a request.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LanguagePreference(str, Enum):
    ARABIC = "ar"
    ENGLISH = "en"


class CustomerData(BaseModel):
    """Customer profile fields captured at intake."""
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    language_preference: LanguagePreference = LanguagePreference.ENGLISH
    visit_history: int = Field(default=0, ge=0)

    @field_validator("language_preference", mode="before")
    @classmethod
    def _normalise_language(cls, value: Any) -> LanguagePreference:
        # Anything other than Arabic is served in English.
        if isinstance(value, str) and value.strip().lower() == LanguagePreference.ARABIC.value:
            return LanguagePreference.ARABIC
        return LanguagePreference.ENGLISH

    @field_validator("visit_history", mode="before")
    @classmethod
    def _null_history(cls, value: Any) -> Any:
        return 0 if value is None else value


class VehicleInterest(BaseModel):
    """What the customer said they are shopping for. Every field is optional."""
    model_config = ConfigDict(extra="ignore")

    type: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    budget_range: Optional[str] = None
    purchase_timeline: Optional[str] = None
    features: list[str] = Field(default_factory=list)
    financing_preference: Optional[str] = None

    @field_validator("features", mode="before")
    @classmethod
    def _null_features(cls, value: Any) -> Any:
        return [] if value is None else value


class VisitData(BaseModel):
    """Visit details recorded by the consultant."""
    model_config = ConfigDict(extra="ignore")

    vehicle_interest: VehicleInterest = Field(default_factory=VehicleInterest)
    consultant_notes: Optional[str] = None
    source: Optional[str] = None
    visit_duration: Optional[float] = Field(default=None, ge=0)
    interaction_quality: Optional[str] = None

    @field_validator("vehicle_interest", mode="before")
    @classmethod
    def _null_interest(cls, value: Any) -> Any:
        return {} if value is None else value


class VisitAnalysisRequest(BaseModel):
    """
    Request to score a single visit.

    ``visit_id`` is optional at the model level so a missing id surfaces as
    the service's own ValidationError rather than a pydantic one. Numeric
    ids are accepted and kept as their string form.
    """
    model_config = ConfigDict(extra="ignore")

    visit_id: Optional[str] = None
    customer_data: Optional[CustomerData] = None
    visit_data: VisitData = Field(default_factory=VisitData)
    force_reanalysis: bool = False

    @field_validator("visit_id", mode="before")
    @classmethod
    def _stringify_visit_id(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("visit_data", mode="before")
    @classmethod
    def _null_visit_data(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("force_reanalysis", mode="before")
    @classmethod
    def _null_force(cls, value: Any) -> Any:
        return False if value is None else value
