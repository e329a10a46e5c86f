"""Classification and edge-assessment results - derived per request, never persisted."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Confidence = Literal["LOW", "MEDIUM", "HIGH"]

CONFIDENCE_ORDER: dict[str, int] = {"LOW": 0, "MEDIUM": 1, "HIGH": 2}


class Signal(BaseModel):
    """One classifier signal: name, numeric score and a human-readable detail."""

    model_config = ConfigDict(frozen=True)

    name: str
    score: float
    detail: str = ""


class ClassificationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_futures: bool
    confidence: Confidence
    signals: list[Signal] = Field(default_factory=list)
    total_score: float = 0.0
    conflicting_signals: bool = False
    reason: str = ""

    def signal(self, name: str) -> Signal | None:
        for s in self.signals:
            if s.name == name:
                return s
        return None


class WeatherContext(BaseModel):
    """Caller-supplied current conditions at the venue. Temperature in F, wind in mph, chance/humidity in %."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    temperature: float | None = None
    condition_text: str = Field("", alias="conditionText")
    precipitation_chance: float | None = Field(None, alias="precipitationChance")
    wind_speed: float | None = Field(None, alias="windSpeed")
    humidity: float | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any] | WeatherContext | None) -> WeatherContext | None:
        """Accept the flat shape or the weather-API shape ({current: {temp_f, wind_mph, ...}})."""
        if payload is None or isinstance(payload, WeatherContext):
            return payload
        if not isinstance(payload, dict):
            return None
        current = payload.get("current")
        if isinstance(current, dict):
            condition = current.get("condition")
            text = condition.get("text", "") if isinstance(condition, dict) else str(condition or "")
            return cls(
                temperature=current.get("temp_f"),
                condition_text=text,
                precipitation_chance=current.get("precip_chance", current.get("precip_prob")),
                wind_speed=current.get("wind_mph"),
                humidity=current.get("humidity"),
            )
        if not payload:
            return None
        return cls.model_validate(payload)


class WeatherSnapshot(BaseModel):
    """Weather context echoed back with an assessment; has_data is False when none was supplied."""

    model_config = ConfigDict(frozen=True)

    temperature: float | None = None
    condition: str = ""
    precipitation_chance: float = 0.0
    wind_speed: float | None = None
    humidity: float | None = None
    has_data: bool = False


class EdgeFactors(BaseModel):
    model_config = ConfigDict(frozen=True)

    weather_direct: float = 0.0
    weather_sensitive_event: float = 0.0
    contextual_weather_impact: float = 0.0
    asymmetry_signal: float = 0.0

    @property
    def base(self) -> float:
        return self.weather_direct + self.weather_sensitive_event + self.contextual_weather_impact


class EdgeAssessment(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_score: float = Field(0.0, ge=0, le=10)
    factors: EdgeFactors = Field(default_factory=EdgeFactors)
    confidence: Confidence = "LOW"
    is_weather_sensitive: bool = False
    weather_context: WeatherSnapshot | None = None
    details: list[str] = Field(default_factory=list)


class EfficiencyAssessment(BaseModel):
    """Discovery-mode score: volume, liquidity, volume trend and spread tiers. Never weather-sensitive."""

    model_config = ConfigDict(frozen=True)

    total_score: float = Field(0.0, ge=0, le=10)
    factors: dict[str, float] = Field(default_factory=dict)
    confidence: Confidence = "LOW"
    is_weather_sensitive: bool = False
