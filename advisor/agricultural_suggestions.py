"""Agricultural suggestions: watering, plant care, outdoor comfort and timing.

Four independent generators read the current agricultural snapshot (or the
first hourly entry) and the processed forecast; their output is concatenated
and stamped with synthetic ids.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Literal

from advisor.domain import (
    AgriculturalForecast,
    AgriculturalSnapshot,
    AgriculturalTiming,
    SmartActivitySuggestion,
    SuggestionCategory,
    WateringWindow,
)
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="agricultural_suggestions")

TimingMode = Literal["invocation", "forecast"]


@dataclass
class AgriculturalActivityContext:
    """Inputs for one round of agricultural suggestion generation."""
    current_time: datetime
    location_name: str
    agricultural_forecast: AgriculturalForecast
    timing_mode: TimingMode = "invocation"
    timing_windows: int = 3
    # applied to forecast times that arrive without one
    utc_offset_seconds: int = 0


@dataclass
class AgriculturalSuggestionOutcome:
    """Either the generated suggestions or the error that prevented them."""
    suggestions: list[SmartActivitySuggestion] = field(default_factory=list)
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _aware(value: datetime, tz: timezone) -> datetime:
    return value.replace(tzinfo=tz) if value.tzinfo is None else value


def localize_forecast(forecast: AgriculturalForecast, utc_offset_seconds: int = 0) -> AgriculturalForecast:
    """
    Return a copy whose naive times are pinned to the location's UTC offset.

    Forecasts built by process_agricultural_data() are already aware; ones
    supplied as mappings may carry provider-local text such as
    "2024-06-01T06:00".
    """
    tz = timezone(timedelta(seconds=utc_offset_seconds))
    insights = forecast.gardening_insights

    def hour(h: AgriculturalTiming) -> AgriculturalTiming:
        return h.model_copy(update={"time": _aware(h.time, tz)})

    return forecast.model_copy(update={
        "current": hour(forecast.current) if forecast.current is not None else None,
        "hourly": [hour(h) for h in forecast.hourly],
        "gardening_insights": insights.model_copy(update={
            "optimal_watering_windows": [
                w.model_copy(update={"start": _aware(w.start, tz), "end": _aware(w.end, tz)})
                for w in insights.optimal_watering_windows
            ],
            "plant_stress_warnings": [
                w.model_copy(update={"time": _aware(w.time, tz)}) for w in insights.plant_stress_warnings
            ],
            "outdoor_comfort_periods": [
                p.model_copy(update={"start": _aware(p.start, tz), "end": _aware(p.end, tz)})
                for p in insights.outdoor_comfort_periods
            ],
        }),
    })


def _hours_after(start: datetime, hours: float) -> datetime:
    return start + timedelta(hours=hours)


def _today_et0(forecast: AgriculturalForecast) -> float:
    return forecast.daily[0].et0_evapotranspiration if forecast.daily else 0.0


def _snapshot(hour: AgriculturalTiming, et0: float) -> AgriculturalSnapshot:
    return AgriculturalSnapshot(
        vpd=hour.vapour_pressure_deficit,
        humidity=hour.relative_humidity,
        dew_point=hour.dew_point,
        et0=et0,
    )


def _slug(activity: str) -> str:
    return re.sub(r"\s+", "_", activity.lower())


def generate_watering_recommendations(current: AgriculturalTiming, forecast: AgriculturalForecast,
                                      now: datetime) -> list[SmartActivitySuggestion]:
    """VPD-band watering advice; the three bands do not overlap."""
    suggestions: list[SmartActivitySuggestion] = []
    vpd = current.vapour_pressure_deficit
    efficiency = current.watering_efficiency
    snapshot = _snapshot(current, _today_et0(forecast))

    if 0.4 <= vpd <= 1.6 and efficiency >= 75:
        suggestions.append(SmartActivitySuggestion(
            activity="Optimal Plant Watering",
            category=SuggestionCategory.GARDENING,
            description=f"Perfect watering conditions detected with {efficiency}% efficiency",
            confidence=min(0.95, efficiency / 100),
            reasons=[
                f"VPD {vpd:.1f} kPa - ideal water uptake",
                f"{current.relative_humidity:.0f}% humidity reduces evaporation",
                f"Plant stress level: {current.plant_stress_level.value}",
                f"Watering efficiency: {efficiency}%",
            ],
            start=now,
            end=_hours_after(now, 2),
            professional_insight=(
                f"VPD of {vpd:.1f} kPa indicates plants can efficiently absorb water without stress. "
                "This is the sweet spot for watering where water loss through leaves is moderate and "
                "roots can uptake nutrients effectively."
            ),
            agricultural_data=snapshot,
        ))

    if vpd > 1.6:
        suggestions.append(SmartActivitySuggestion(
            activity="Avoid Watering - High VPD",
            category=SuggestionCategory.PLANT_CARE,
            description=f"Water stress conditions: VPD {vpd:.1f} kPa will cause rapid water loss",
            confidence=0.9,
            reasons=[
                f"High VPD {vpd:.1f} kPa - rapid evaporation",
                f"Plant stress level: {current.plant_stress_level.value}",
                "Water will evaporate quickly",
                "Wait for better conditions",
            ],
            start=now,
            end=_hours_after(now, 1),
            professional_insight=(
                "High VPD indicates the air is demanding water from plants faster than they can absorb it. "
                "Watering now would be wasteful as most water will evaporate before reaching roots."
            ),
            agricultural_data=snapshot,
        ))

    if vpd < 0.4:
        suggestions.append(SmartActivitySuggestion(
            activity="Light Watering Only",
            category=SuggestionCategory.GARDENING,
            description=f"Low transpiration conditions: VPD {vpd:.1f} kPa - minimal water demand",
            confidence=0.7,
            reasons=[
                f"Low VPD {vpd:.1f} kPa - reduced transpiration",
                f"High humidity {current.relative_humidity:.0f}%",
                "Minimal water stress",
                "Risk of overwatering",
            ],
            start=now,
            end=_hours_after(now, 1),
            professional_insight=(
                "Very low VPD means plants are barely transpiring. They need less water now, and "
                "overwatering could lead to root problems or fungal issues."
            ),
            agricultural_data=snapshot,
        ))

    return suggestions


def generate_plant_care_suggestions(current: AgriculturalTiming, forecast: AgriculturalForecast,
                                    now: datetime) -> list[SmartActivitySuggestion]:
    """Day-level advice from today's ET0."""
    if not forecast.daily:
        return []
    today = forecast.daily[0]
    et0 = today.et0_evapotranspiration
    snapshot = _snapshot(current, et0)
    suggestions: list[SmartActivitySuggestion] = []

    if et0 > 5:
        suggestions.append(SmartActivitySuggestion(
            activity="High Water Demand Day",
            category=SuggestionCategory.PLANT_CARE,
            description=f"ET₀ {et0:.1f}mm indicates high plant water demand today",
            confidence=0.85,
            reasons=[
                f"ET₀ rate: {et0:.1f}mm - high demand",
                f"{today.water_demand_level.value} water demand level",
                "Monitor plant hydration closely",
                "Consider shade for sensitive plants",
            ],
            start=now,
            end=_hours_after(now, 24),
            professional_insight=(
                f"ET₀ (reference evapotranspiration) of {et0:.1f}mm indicates high atmospheric water demand. "
                "Plants will lose water quickly today - ensure adequate hydration and consider temporary shading."
            ),
            agricultural_data=snapshot,
        ))

    if et0 < 2:
        suggestions.append(SmartActivitySuggestion(
            activity="Low Maintenance Day",
            category=SuggestionCategory.PLANT_CARE,
            description=f"Low ET₀ {et0:.1f}mm - minimal water stress expected",
            confidence=0.8,
            reasons=[
                f"Low ET₀ rate: {et0:.1f}mm",
                "Minimal atmospheric water demand",
                "Plants won't stress easily",
                "Good day for transplanting",
            ],
            start=now,
            end=_hours_after(now, 24),
            professional_insight=(
                "Low ET₀ means the atmosphere isn't pulling much water from plants. This is ideal for plant "
                "care activities like transplanting, pruning, or working with sensitive plants."
            ),
            agricultural_data=snapshot,
        ))

    return suggestions


def generate_outdoor_comfort_suggestions(current: AgriculturalTiming, forecast: AgriculturalForecast,
                                         now: datetime) -> list[SmartActivitySuggestion]:
    """Human comfort advice; each rule is evaluated independently."""
    suggestions: list[SmartActivitySuggestion] = []
    comfort = current.comfort_index
    dew_point = current.dew_point
    vpd = current.vapour_pressure_deficit
    snapshot = _snapshot(current, _today_et0(forecast))

    if comfort >= 80:
        horizon = forecast.hourly[min(3, len(forecast.hourly) - 1)].time if forecast.hourly else current.time
        suggestions.append(SmartActivitySuggestion(
            activity="Perfect Outdoor Conditions",
            category=SuggestionCategory.OUTDOOR_COMFORT,
            description=f"Excellent outdoor comfort with {comfort}% comfort index",
            confidence=0.9,
            reasons=[
                f"Comfort index: {comfort}%",
                f"Dew point: {dew_point:.1f}°C - not sticky",
                f"VPD {vpd:.1f} kPa - comfortable air",
                "Low dehydration risk",
            ],
            start=now,
            # forecast hours can already be in the past relative to now
            end=max(horizon, now),
            professional_insight=(
                "The combination of VPD and dew point creates optimal conditions for extended outdoor "
                "activities. Your body won't lose water excessively, and the air won't feel oppressive."
            ),
            agricultural_data=snapshot,
        ))

    if vpd > 1.8:
        suggestions.append(SmartActivitySuggestion(
            activity="High Dehydration Risk",
            category=SuggestionCategory.OUTDOOR_COMFORT,
            description=f"VPD {vpd:.1f} kPa will increase water loss through skin - stay hydrated",
            confidence=0.85,
            reasons=[
                f"High VPD {vpd:.1f} kPa - dry air",
                "Increased skin water loss",
                "Bring extra water",
                "Take breaks in shade",
            ],
            start=now,
            end=_hours_after(now, 2),
            professional_insight=(
                "High VPD doesn't just affect plants - it also increases water loss through your skin and "
                "respiratory system. You'll dehydrate faster in these conditions."
            ),
            agricultural_data=snapshot,
        ))

    if 15 <= dew_point <= 18:
        suggestions.append(SmartActivitySuggestion(
            activity="Ideal Outdoor Temperature Feel",
            category=SuggestionCategory.OUTDOOR_COMFORT,
            description=f"Perfect dew point {dew_point:.1f}°C - comfortable air moisture",
            confidence=0.8,
            reasons=[
                f"Dew point: {dew_point:.1f}°C - ideal range",
                "Air won't feel sticky or dry",
                "Comfortable for all activities",
                "Natural air conditioning effect",
            ],
            start=now,
            end=_hours_after(now, 2),
            professional_insight=(
                "Dew point between 15-18°C is the sweet spot where air feels neither too dry nor too humid. "
                "This is like natural air conditioning for outdoor comfort."
            ),
            agricultural_data=snapshot,
        ))

    return suggestions


def _window_snapshot(window: WateringWindow, forecast: AgriculturalForecast) -> AgriculturalSnapshot:
    """Measurements at the window's first hour, zeros if that hour is not in the series."""
    et0 = _today_et0(forecast)
    for hour in forecast.hourly:
        if hour.time == window.start:
            return _snapshot(hour, et0)
    return AgriculturalSnapshot(vpd=0.0, humidity=0.0, dew_point=0.0, et0=et0)


def generate_timing_based_suggestions(forecast: AgriculturalForecast, now: datetime, *,
                                      timing_mode: TimingMode = "invocation",
                                      limit: int = 3) -> list[SmartActivitySuggestion]:
    """
    Relabel the leading watering windows as "Optimal Watering Window N".

    In "invocation" mode window N is shown at now + 3*(N-1) hours for two
    hours, regardless of when the window actually occurs in the forecast.
    "forecast" mode keeps the window's own start and end.
    """
    suggestions: list[SmartActivitySuggestion] = []
    for index, window in enumerate(forecast.gardening_insights.optimal_watering_windows[:limit]):
        if timing_mode == "forecast":
            start, end = window.start, max(window.end, window.start)
        else:
            start = _hours_after(now, index * 3)
            end = _hours_after(start, 2)

        suggestions.append(SmartActivitySuggestion(
            activity=f"Optimal Watering Window {index + 1}",
            category=SuggestionCategory.GARDENING,
            description=window.reason,
            confidence=min(1.0, window.efficiency_score / 100),
            reasons=[
                f"Efficiency: {window.efficiency_score}%",
                "Optimal timing identified",
                "Professional agriculture data",
                "Maximize water uptake",
            ],
            start=start,
            end=end,
            professional_insight=(
                "This window was identified by analyzing VPD, humidity, and evapotranspiration patterns. "
                "Watering during this time maximizes plant water uptake while minimizing waste."
            ),
            agricultural_data=_window_snapshot(window, forecast),
        ))
    return suggestions


def generate_agricultural_suggestions(context: AgriculturalActivityContext) -> list[SmartActivitySuggestion]:
    """Run all four generators and assign ids of the form agri_<slug>_<epoch ms>."""
    forecast = localize_forecast(context.agricultural_forecast, context.utc_offset_seconds)
    current = forecast.current or (forecast.hourly[0] if forecast.hourly else None)
    if current is None:
        logger.debug("No agricultural hours available", extra={"location": context.location_name})
        return []

    now = context.current_time
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    suggestions: list[SmartActivitySuggestion] = []
    suggestions.extend(generate_watering_recommendations(current, forecast, now))
    suggestions.extend(generate_plant_care_suggestions(current, forecast, now))
    suggestions.extend(generate_outdoor_comfort_suggestions(current, forecast, now))
    suggestions.extend(generate_timing_based_suggestions(forecast, now, timing_mode=context.timing_mode,
                                                         limit=context.timing_windows))

    stamp = int(now.timestamp() * 1000)
    final = [s.model_copy(update={"id": f"agri_{_slug(s.activity)}_{stamp}"}) for s in suggestions]

    logger.info(
        "Generated agricultural suggestions",
        extra={"location": context.location_name, "suggestion_count": len(final)},
    )
    return final


def try_generate_agricultural_suggestions(context: AgriculturalActivityContext) -> AgriculturalSuggestionOutcome:
    """Generate suggestions, reporting failure as a value instead of raising."""
    try:
        return AgriculturalSuggestionOutcome(suggestions=generate_agricultural_suggestions(context))
    except Exception as exc:
        return AgriculturalSuggestionOutcome(error=exc)
