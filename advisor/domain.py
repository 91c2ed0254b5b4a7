"""Domain vocabulary and strict schemas for activity suggestions.

This module defines the contract between the suggestion engine and its
callers: enums, forecast and agricultural inputs, and the Pydantic models
for suggestions, alerts and results. Provider-shaped payloads are converted
here (``from_openweather``); no scoring or classification lives here.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class _StrictBaseModel(BaseModel):
    """Base model with strict extra handling."""

    model_config = ConfigDict(extra="forbid")


class _ProviderModel(BaseModel):
    """Base model for raw provider payloads; unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore")


class TimeOfDay(str, Enum):
    """Coarse day/night classification of a forecast slice."""
    DAY = "day"
    NIGHT = "night"


class AlertSeverity(str, Enum):
    """Severity of a planning disruption."""
    SOFT = "soft"
    MODERATE = "moderate"
    SEVERE = "severe"


class AirTrend(str, Enum):
    """Direction of air quality relative to the previous reading."""
    IMPROVING = "improving"
    WORSENING = "worsening"
    STABLE = "stable"


class StressLevel(str, Enum):
    """Plant stress band derived from vapour-pressure deficit."""
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class WaterDemand(str, Enum):
    """Daily water-demand band derived from ET0."""
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class SuggestionCategory(str, Enum):
    """Category tag for agricultural suggestions."""
    GARDENING = "gardening"
    PLANT_CARE = "plant_care"
    OUTDOOR_COMFORT = "outdoor_comfort"
    GENERAL = "general"


# ---------------------------------------------------------------------------
# Forecast inputs
# ---------------------------------------------------------------------------


class Location(_StrictBaseModel):
    """Where a forecast applies."""
    name: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    timezone_offset_seconds: int | None = None


class ForecastSlice(_StrictBaseModel):
    """One 3-hour forecast interval."""
    dt: int | None = None  # epoch seconds, UTC
    dt_txt: str
    temp: float | None = None
    feels_like: float | None = None
    humidity: float | None = None
    pressure: float | None = None
    wind_speed: float | None = None
    wind_deg: float | None = None
    cloud_cover: float | None = None
    rain_3h: float | None = None  # None when the provider sent no rain object
    weather_code: int | None = None
    weather_main: str | None = None

    @field_validator("dt_txt")
    @classmethod
    def _parseable_time(cls, v: str) -> str:
        datetime.fromisoformat(v)
        return v

    @property
    def time(self) -> datetime:
        """Slice start as given by the provider (no timezone attached)."""
        return datetime.fromisoformat(self.dt_txt)

    @classmethod
    def from_openweather(cls, item: Mapping[str, Any]) -> "ForecastSlice":
        """Convert one OpenWeather 3-hourly ``list`` entry."""
        main = item.get("main") or {}
        wind = item.get("wind") or {}
        clouds = item.get("clouds") or {}
        weather = (item.get("weather") or [{}])[0] or {}
        rain = item.get("rain")
        return cls(
            dt=item.get("dt"),
            dt_txt=item["dt_txt"],
            temp=main.get("temp"),
            feels_like=main.get("feels_like"),
            humidity=main.get("humidity"),
            pressure=main.get("pressure"),
            wind_speed=wind.get("speed"),
            wind_deg=wind.get("deg"),
            cloud_cover=clouds.get("all"),
            rain_3h=(rain.get("3h") or 0.0) if isinstance(rain, Mapping) else None,
            weather_code=weather.get("id"),
            weather_main=weather.get("main"),
        )


class ForecastSeries(_StrictBaseModel):
    """Ordered forecast slices plus location metadata."""
    slices: List[ForecastSlice] = Field(default_factory=list)
    location: Location | None = None

    @classmethod
    def from_openweather(cls, payload: Mapping[str, Any]) -> "ForecastSeries":
        """Convert an OpenWeather 5-day/3-hour forecast response."""
        city = payload.get("city") or {}
        coord = city.get("coord") or {}
        location = None
        if city:
            location = Location(
                name=city.get("name"),
                latitude=coord.get("lat"),
                longitude=coord.get("lon"),
                timezone_offset_seconds=city.get("timezone"),
            )
        return cls(
            slices=[ForecastSlice.from_openweather(item) for item in payload.get("list") or []],
            location=location,
        )


class AirQualityReading(_StrictBaseModel):
    """Scalar AQI class (1 best .. 5 worst) with optional pollutant concentrations."""
    aqi: int = Field(ge=1, le=5)
    components: Dict[str, float] = Field(default_factory=dict)

    @classmethod
    def from_openweather(cls, payload: Mapping[str, Any]) -> "AirQualityReading":
        """Read the first entry of an OpenWeather air-pollution response."""
        first = (payload.get("list") or [{}])[0]
        return cls(
            aqi=(first.get("main") or {}).get("aqi"),
            components=first.get("components") or {},
        )


class WeatherConditions(_StrictBaseModel):
    """Flat, decision-ready view of one forecast slice."""
    temp: float | None = None
    feels_like: float | None = None
    wind_speed: float | None = None
    cloud_cover: float | None = None
    precipitation: float = 0.0
    precipitation_type: str | None = None
    aqi: int | None = None
    visibility: int = 10000
    time_of_day: TimeOfDay


# ---------------------------------------------------------------------------
# Suggestions and alerts
# ---------------------------------------------------------------------------


class ActivitySuggestion(_StrictBaseModel):
    """A suggested activity valid over [start, end]."""
    activity: str
    description: str
    confidence: float = Field(ge=0.0, le=1.0)
    reasons: List[str] = Field(default_factory=list)
    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _end_not_before_start(self) -> "ActivitySuggestion":
        if self.end < self.start:
            raise ValueError("suggestion end must not precede start")
        return self


class PlanningDisruptionAlert(_StrictBaseModel):
    """Sharp weather transition that may disrupt plans."""
    type: Literal["weather"] = "weather"
    message: str
    severity: AlertSeverity
    affected_activities: List[str] = Field(default_factory=list)
    start: datetime | None = None


class AirQualityAlert(_StrictBaseModel):
    """Air quality threshold or trend notice."""
    type: Literal["air"] = "air"
    message: str
    aqi: int
    trend: AirTrend
    start: datetime | None = None


Alert = Annotated[Union[PlanningDisruptionAlert, AirQualityAlert], Field(discriminator="type")]


# ---------------------------------------------------------------------------
# Agricultural data
# ---------------------------------------------------------------------------


class AgriculturalTiming(_StrictBaseModel):
    """Hourly agricultural measurements with derived scores."""
    time: datetime
    vapour_pressure_deficit: float
    relative_humidity: float
    dew_point: float
    plant_stress_level: StressLevel
    watering_efficiency: int = Field(ge=0, le=100)
    comfort_index: int = Field(ge=0, le=100)


class DailyAgriculturalData(_StrictBaseModel):
    """Daily evapotranspiration summary with irrigation advice."""
    date: str
    et0_evapotranspiration: float
    precipitation_hours: float
    water_demand_level: WaterDemand
    irrigation_recommendation: str


class WateringWindow(_StrictBaseModel):
    """Run of hours with high watering efficiency."""
    start: datetime
    end: datetime
    efficiency_score: int
    reason: str


class StressWarning(_StrictBaseModel):
    """Hour where plants are under notable water stress."""
    time: datetime
    severity: Literal["moderate", "high"]
    message: str


class ComfortPeriod(_StrictBaseModel):
    """Run of hours comfortable for outdoor work."""
    start: datetime
    end: datetime
    comfort_score: int
    description: str


class GardeningInsights(_StrictBaseModel):
    """Interval-derived insights over the hourly series."""
    optimal_watering_windows: List[WateringWindow] = Field(default_factory=list)
    plant_stress_warnings: List[StressWarning] = Field(default_factory=list)
    outdoor_comfort_periods: List[ComfortPeriod] = Field(default_factory=list)


class WeeklySummary(_StrictBaseModel):
    """Aggregates across the whole agricultural forecast."""
    avg_vpd: float
    total_et0: float
    rain_hours: int
    irrigation_needed: bool
    best_gardening_days: List[str] = Field(default_factory=list)


class AgriculturalForecast(_StrictBaseModel):
    """Processed agricultural forecast ready for suggestion generation."""
    current: AgriculturalTiming | None = None
    hourly: List[AgriculturalTiming] = Field(default_factory=list)
    daily: List[DailyAgriculturalData] = Field(default_factory=list)
    gardening_insights: GardeningInsights = Field(default_factory=GardeningInsights)
    weekly_summary: WeeklySummary


class OpenMeteoAgriculturalHourly(_ProviderModel):
    time: List[str] = Field(default_factory=list)
    vapour_pressure_deficit: List[float | None] = Field(default_factory=list)
    relative_humidity_2m: List[float | None] = Field(default_factory=list)
    dew_point_2m: List[float | None] = Field(default_factory=list)


class OpenMeteoAgriculturalDaily(_ProviderModel):
    time: List[str] = Field(default_factory=list)
    et0_fao_evapotranspiration: List[float | None] = Field(default_factory=list)
    precipitation_hours: List[float | None] = Field(default_factory=list)


class OpenMeteoAgriculturalResponse(_ProviderModel):
    """Raw Open-Meteo forecast response for the agricultural variables."""
    latitude: float | None = None
    longitude: float | None = None
    timezone: str | None = None
    utc_offset_seconds: int = 0
    hourly: OpenMeteoAgriculturalHourly = Field(default_factory=OpenMeteoAgriculturalHourly)
    daily: OpenMeteoAgriculturalDaily = Field(default_factory=OpenMeteoAgriculturalDaily)


class AgriculturalSnapshot(_StrictBaseModel):
    """Measurements that justified a smart suggestion."""
    vpd: float
    humidity: float
    dew_point: float
    et0: float


class SmartActivitySuggestion(ActivitySuggestion):
    """Activity suggestion enriched with agricultural context."""
    id: str = ""
    category: SuggestionCategory
    professional_insight: str | None = None
    agricultural_data: AgriculturalSnapshot | None = None


class SuggestionResult(_StrictBaseModel):
    """Everything the engine produces for one invocation."""
    suggestions: List[ActivitySuggestion] = Field(default_factory=list)
    alerts: List[Alert] = Field(default_factory=list)
    forecast: List[ForecastSlice] = Field(default_factory=list)
    smart_suggestions: List[SmartActivitySuggestion] | None = None
