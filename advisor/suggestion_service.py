"""Combine base suggestions, alerts and agricultural suggestions into one result."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Sequence, Union

from advisor.activity_engine import AqiSeries, suggest_base_activities
from advisor.agricultural_suggestions import (
    AgriculturalActivityContext,
    TimingMode,
    try_generate_agricultural_suggestions,
)
from advisor.alerts import generate_planning_alerts
from advisor.config import settings
from advisor.domain import (
    AgriculturalForecast,
    ForecastSeries,
    ForecastSlice,
    SmartActivitySuggestion,
    SuggestionResult,
)
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="suggestion_service")


def _agricultural_suggestions(
    agricultural_forecast: AgriculturalForecast | Mapping[str, Any],
    location_name: str,
    current_time: datetime,
    timing_mode: TimingMode,
    utc_offset_seconds: int,
) -> list[SmartActivitySuggestion]:
    """Generate smart suggestions; any failure degrades to an empty list."""
    try:
        forecast = AgriculturalForecast.model_validate(agricultural_forecast)
    except ValueError as exc:
        logger.warning("Invalid agricultural forecast; skipping smart suggestions",
                       extra={"location": location_name, "error": str(exc)})
        return []

    outcome = try_generate_agricultural_suggestions(
        AgriculturalActivityContext(
            current_time=current_time,
            location_name=location_name,
            agricultural_forecast=forecast,
            timing_mode=timing_mode,
            timing_windows=settings.timing_suggestion_windows,
            utc_offset_seconds=utc_offset_seconds,
        )
    )
    if not outcome.ok:
        logger.warning("Failed to generate agricultural suggestions",
                       extra={"location": location_name, "error": repr(outcome.error)})
        return []
    return outcome.suggestions


def suggest_activities_from_forecast(
    forecast: Union[ForecastSeries, Sequence[ForecastSlice]],
    aqi: int,
    aqi_history: Sequence[int] = (),
    current_time: datetime | None = None,
    agricultural_forecast: AgriculturalForecast | Mapping[str, Any] | None = None,
    location_name: str | None = None,
    *,
    aqi_series: AqiSeries | None = None,
    utc_offset_seconds: int | None = None,
    timing_mode: TimingMode | None = None,
) -> SuggestionResult:
    """
    Pure entrypoint: forecast + AQI (+ agricultural data) -> SuggestionResult.

    Smart suggestions are produced only when both an agricultural forecast and
    a location name are given; otherwise `smart_suggestions` is None.
    Agricultural times without an offset are read at `utc_offset_seconds`
    (UTC when unknown).
    """
    if isinstance(forecast, ForecastSeries):
        slices = list(forecast.slices)
        if utc_offset_seconds is None and forecast.location is not None:
            utc_offset_seconds = forecast.location.timezone_offset_seconds
    else:
        slices = list(forecast)
    slices.sort(key=lambda s: s.time)

    suggestions = suggest_base_activities(
        slices, aqi, aqi_series=aqi_series, utc_offset_seconds=utc_offset_seconds,
    )
    alerts = generate_planning_alerts(slices, aqi_history, aqi, current_time)

    smart_suggestions = None
    if agricultural_forecast is not None and location_name:
        smart_suggestions = _agricultural_suggestions(
            agricultural_forecast,
            location_name,
            current_time or datetime.now(timezone.utc),
            timing_mode or settings.watering_window_timing,
            utc_offset_seconds or 0,
        )

    logger.info(
        "Built activity suggestions",
        extra={
            "suggestion_count": len(suggestions),
            "alert_count": len(alerts),
            "smart_suggestion_count": None if smart_suggestions is None else len(smart_suggestions),
        },
    )

    return SuggestionResult(
        suggestions=suggestions,
        alerts=alerts,
        forecast=slices,
        smart_suggestions=smart_suggestions,
    )
