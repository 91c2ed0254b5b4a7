"""Planning-disruption and air-quality alerts.

Weather alerts come from adjacent forecast slices; air alerts come from the
current AQI and the caller-supplied AQI history. Both are plain facts derived
once per invocation.
"""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from advisor.domain import (
    AirQualityAlert,
    AirTrend,
    AlertSeverity,
    ForecastSlice,
    PlanningDisruptionAlert,
)
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="alerts")

TEMP_DROP_THRESHOLD = 10.0
HIGH_WIND_THRESHOLD = 25.0
HEAVY_RAIN_THRESHOLD_MM = 5.0
POOR_AQI_THRESHOLD = 3

_AIR_TREND_MESSAGES = {
    AirTrend.WORSENING: "Air quality is worsening - consider limiting outdoor activities.",
    AirTrend.IMPROVING: "Air quality is improving.",
    AirTrend.STABLE: "Air quality stable.",
}


def _temperature_drop_alert(prev: ForecastSlice, curr: ForecastSlice) -> PlanningDisruptionAlert | None:
    if prev.temp is None or curr.temp is None:
        return None
    if prev.temp - curr.temp <= TEMP_DROP_THRESHOLD:
        return None
    return PlanningDisruptionAlert(
        message=(f"Significant temperature drop after {curr.dt_txt}: "
                 f"{prev.temp}°C → {curr.temp}°C. Consider indoor plans."),
        severity=AlertSeverity.MODERATE,
        affected_activities=["Outdoor"],
        start=curr.time,
    )


def _high_wind_alert(curr: ForecastSlice) -> PlanningDisruptionAlert | None:
    if curr.wind_speed is None or curr.wind_speed <= HIGH_WIND_THRESHOLD:
        return None
    return PlanningDisruptionAlert(
        message=(f"Strong winds ({curr.wind_speed}km/h) expected after {curr.dt_txt}. "
                 "Outdoor activities may be disrupted."),
        severity=AlertSeverity.MODERATE,
        affected_activities=["Outdoor", "Cycling", "Running"],
        start=curr.time,
    )


def _heavy_rain_alert(curr: ForecastSlice) -> PlanningDisruptionAlert | None:
    if not curr.rain_3h or curr.rain_3h <= HEAVY_RAIN_THRESHOLD_MM:
        return None
    return PlanningDisruptionAlert(
        message=(f"Heavy rain ({curr.rain_3h}mm/3h) expected after {curr.dt_txt}. "
                 "Consider indoor alternatives."),
        severity=AlertSeverity.MODERATE,
        affected_activities=["Outdoor", "Dining", "Running"],
        start=curr.time,
    )


def analyze_planning_disruptions(slices: Sequence[ForecastSlice]) -> list[PlanningDisruptionAlert]:
    """
    Scan adjacent slices for sharp transitions.

    Each pair is checked for a temperature drop, high wind and heavy rain, in
    that order; a pair may emit zero to three alerts.
    """
    alerts: list[PlanningDisruptionAlert] = []
    for prev, curr in zip(slices, slices[1:]):
        for alert in (_temperature_drop_alert(prev, curr), _high_wind_alert(curr), _heavy_rain_alert(curr)):
            if alert is not None:
                alerts.append(alert)

    if alerts:
        logger.debug("Planning disruptions detected", extra={"alert_count": len(alerts)})
    return alerts


def _air_trend(current_aqi: int, previous_aqi: int | None) -> AirTrend:
    if previous_aqi is None:
        return AirTrend.STABLE
    if current_aqi > previous_aqi:
        return AirTrend.WORSENING
    if current_aqi < previous_aqi:
        return AirTrend.IMPROVING
    return AirTrend.STABLE


def generate_air_quality_alerts(aqi_history: Sequence[int], current_aqi: int,
                                time: datetime | None = None) -> list[AirQualityAlert]:
    """Threshold alert (AQI > 3) first, then a trend alert when history has two or more entries."""
    alerts: list[AirQualityAlert] = []
    if current_aqi > POOR_AQI_THRESHOLD:
        alerts.append(
            AirQualityAlert(
                aqi=current_aqi,
                message="Air quality poor - consider indoor exercise instead.",
                trend=AirTrend.STABLE,
                start=time,
            )
        )

    if len(aqi_history) >= 2:
        # history is most-recent-last; compare against the entry before the latest
        trend = _air_trend(current_aqi, aqi_history[-2])
        alerts.append(
            AirQualityAlert(
                aqi=current_aqi,
                message=_AIR_TREND_MESSAGES[trend],
                trend=trend,
                start=time,
            )
        )
    return alerts


def generate_planning_alerts(slices: Sequence[ForecastSlice], aqi_history: Sequence[int], current_aqi: int,
                             time: datetime | None = None) -> list[PlanningDisruptionAlert | AirQualityAlert]:
    """Weather alerts followed by air-quality alerts."""
    weather_alerts = analyze_planning_disruptions(slices)
    air_alerts = generate_air_quality_alerts(aqi_history, current_aqi, time)
    return [*weather_alerts, *air_alerts]
