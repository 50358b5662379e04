from __future__ import annotations

import math
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from concierge.models.profile import Profile
from concierge.services.regions import normalize_region

Category = Literal["lowestRate", "highestLtv", "fastestClosing", "additional"]

DEFAULT_LENDER_NAME = "Independent Broker"


def _lenient_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().rstrip("%").strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _lenient_int(value: Any) -> Optional[int]:
    number = _lenient_float(value)
    return int(number) if number is not None else None


class BrokerCandidate(BaseModel):
    """A broker as supplied by the pool provider. Bad numeric data reads as absent."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore", frozen=True)

    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    company: Optional[str] = None
    headline: Optional[str] = None
    notes: Optional[str] = None
    website: Optional[str] = None
    license_states: List[str] = Field(default_factory=list)
    min_rate: Optional[float] = None
    max_rate: Optional[float] = None
    max_loan_to_value: Optional[int] = None
    min_credit_score: Optional[int] = None
    closing_speed_days: Optional[int] = None
    years_experience: Optional[int] = None
    loan_programs: List[str] = Field(default_factory=list)
    active: bool = True

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @field_validator("min_rate", "max_rate", mode="before")
    @classmethod
    def _parse_rate(cls, value: Any) -> Optional[float]:
        return _lenient_float(value)

    @field_validator("max_loan_to_value", "min_credit_score", "closing_speed_days", "years_experience", mode="before")
    @classmethod
    def _parse_whole(cls, value: Any) -> Optional[int]:
        return _lenient_int(value)

    @field_validator("license_states", mode="before")
    @classmethod
    def _normalize_states(cls, value: Any) -> List[str]:
        if not value:
            return []
        if isinstance(value, str):
            value = value.split(",")
        states = []
        for raw in value:
            raw = str(raw).strip()
            if raw:
                states.append(normalize_region(raw) or raw.upper())
        return states

    @field_validator("loan_programs", mode="before")
    @classmethod
    def _clean_programs(cls, value: Any) -> List[str]:
        if not value:
            return []
        if isinstance(value, str):
            value = value.split(",")
        return [str(program).strip() for program in value if str(program).strip()]

    @property
    def lender_name(self) -> str:
        return self.company or self.name or DEFAULT_LENDER_NAME


class BrokerProjection(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    lender_name: str
    company: Optional[str] = None
    headline: Optional[str] = None
    notes: Optional[str] = None
    license_states: List[str] = Field(default_factory=list)
    min_rate: Optional[float] = None
    max_rate: Optional[float] = None
    loan_programs: List[str] = Field(default_factory=list)
    min_credit_score: Optional[int] = None
    max_loan_to_value: Optional[int] = None
    closing_speed_days: Optional[int] = None
    years_experience: Optional[int] = None
    website: Optional[str] = None
    contact_email: Optional[str] = None

    @classmethod
    def from_candidate(cls, candidate: BrokerCandidate) -> BrokerProjection:
        return cls(
            id=candidate.id,
            lender_name=candidate.lender_name,
            company=candidate.company,
            headline=candidate.headline,
            notes=candidate.notes,
            license_states=list(candidate.license_states),
            min_rate=candidate.min_rate,
            max_rate=candidate.max_rate,
            loan_programs=list(candidate.loan_programs),
            min_credit_score=candidate.min_credit_score,
            max_loan_to_value=candidate.max_loan_to_value,
            closing_speed_days=candidate.closing_speed_days,
            years_experience=candidate.years_experience,
            website=candidate.website,
            contact_email=candidate.email,
        )


class Recommendation(BaseModel):
    category: Category
    broker: BrokerProjection


class RecommendationRequest(BaseModel):
    summary: Profile = Field(default_factory=Profile)
    variant: int = 0

    @field_validator("summary", mode="before")
    @classmethod
    def _drop_nulls(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, dict):
            return {key: item for key, item in value.items() if item is not None}
        return value


class RecommendationResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    recommendations: List[Recommendation]
    total: int
    eligible: int
    region: Optional[str] = None
    region_relaxed: bool = False
    credit_relaxed: bool = False
