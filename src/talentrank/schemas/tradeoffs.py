from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

SpeedQuality = Literal["speed", "quality"]
RateExperience = Literal["rate", "experience"]
AvailabilityFit = Literal["availability", "domain_fit"]
RiskUpside = Literal["risk", "upside"]


class TradeoffDeclaration(BaseModel):
    """Four binary business tradeoffs declared for a requisition or tenant."""

    speed_quality: SpeedQuality = "quality"
    rate_experience: RateExperience = "experience"
    availability_fit: AvailabilityFit = "domain_fit"
    risk_upside: RiskUpside = "risk"

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


DEFAULT_TRADEOFF_DECLARATION = TradeoffDeclaration()
