"""Turn raw Open-Meteo agricultural series into scored hours, days and insights.

Hourly inputs are VPD, relative humidity and dew point; daily inputs are
FAO ET0 and precipitation hours. Missing or null provider values count as 0.
Insights come from an interval scan over the scored hours; see
scan_intervals().
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Sequence

from advisor import scoring
from advisor.config import settings
from advisor.domain import (
    AgriculturalForecast,
    AgriculturalTiming,
    ComfortPeriod,
    DailyAgriculturalData,
    GardeningInsights,
    OpenMeteoAgriculturalResponse,
    StressLevel,
    StressWarning,
    WaterDemand,
    WateringWindow,
    WeeklySummary,
)
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="agricultural")

WATERING_START_THRESHOLD = 75
WATERING_CONTINUE_THRESHOLD = 70
COMFORT_START_THRESHOLD = 70
COMFORT_CONTINUE_THRESHOLD = 65
MODERATE_STRESS_WARNING_VPD = 1.4


def _value_at(values: Sequence[float | None], idx: int) -> float:
    """Provider array lookup where missing and null entries become 0."""
    if idx >= len(values):
        return 0.0
    return values[idx] or 0.0


def _iso_to_dt_with_offset(s: str, utc_offset_seconds: int) -> datetime:
    """Interpret an Open-Meteo local time string at the given UTC offset."""
    naive = datetime.fromisoformat(s)
    return naive.replace(tzinfo=timezone(timedelta(seconds=utc_offset_seconds)))


def build_hourly(response: OpenMeteoAgriculturalResponse, utc_offset_seconds: int) -> list[AgriculturalTiming]:
    """Score every hourly entry of the response."""
    hourly = response.hourly
    out: list[AgriculturalTiming] = []
    for i, t in enumerate(hourly.time):
        vpd = _value_at(hourly.vapour_pressure_deficit, i)
        humidity = _value_at(hourly.relative_humidity_2m, i)
        dew_point = _value_at(hourly.dew_point_2m, i)
        out.append(
            AgriculturalTiming(
                time=_iso_to_dt_with_offset(t, utc_offset_seconds),
                vapour_pressure_deficit=vpd,
                relative_humidity=humidity,
                dew_point=dew_point,
                plant_stress_level=scoring.plant_stress_level(vpd),
                watering_efficiency=scoring.watering_efficiency(vpd, humidity),
                comfort_index=scoring.comfort_index(vpd, dew_point),
            )
        )
    return out


def build_daily(response: OpenMeteoAgriculturalResponse) -> list[DailyAgriculturalData]:
    """Classify every daily entry of the response."""
    daily = response.daily
    out: list[DailyAgriculturalData] = []
    for i, date in enumerate(daily.time):
        et0 = _value_at(daily.et0_fao_evapotranspiration, i)
        precip_hours = _value_at(daily.precipitation_hours, i)
        out.append(
            DailyAgriculturalData(
                date=date,
                et0_evapotranspiration=et0,
                precipitation_hours=precip_hours,
                water_demand_level=scoring.water_demand_level(et0),
                irrigation_recommendation=scoring.irrigation_recommendation(et0, precip_hours),
            )
        )
    return out


def find_current(hourly: Sequence[AgriculturalTiming], now: datetime) -> AgriculturalTiming | None:
    """
    Pick the hourly entry for the current local hour.

    Entries carry their location offset, so `now` is converted into that
    offset first. An exact date+hour match wins; otherwise the first entry
    with the same hour of day is used.
    """
    if not hourly:
        return None
    local_now = now.astimezone(hourly[0].time.tzinfo)
    same_hour = [h for h in hourly if h.time.hour == local_now.hour]
    for h in same_hour:
        if h.time.date() == local_now.date():
            return h
    return same_hour[0] if same_hour else None


@dataclass
class Interval:
    """Closed run of hours [start_idx, end_idx] with the mean of their scores."""
    start_idx: int
    end_idx: int
    average: float


@dataclass
class _OpenInterval:
    start_idx: int
    last_idx: int
    total: float
    count: int

    def close(self) -> Interval:
        # a run that never extended still spans to the following hour
        return Interval(
            start_idx=self.start_idx,
            end_idx=max(self.last_idx, self.start_idx + 1),
            average=self.total / self.count,
        )


def scan_intervals(scores: Sequence[float], start_at: float, continue_at: float) -> list[Interval]:
    """
    Greedy run detection over a score series.

    A run opens on a score >= `start_at` (only where a following hour
    exists), extends while scores stay >= `continue_at`, and closes on the
    first score below that. Runs are returned in scan order.
    """
    intervals: list[Interval] = []
    open_run: _OpenInterval | None = None
    last = len(scores) - 1

    for idx, score in enumerate(scores):
        if open_run is not None:
            if score >= continue_at:
                open_run.last_idx = idx
                open_run.total += score
                open_run.count += 1
                continue
            intervals.append(open_run.close())
            open_run = None

        if idx < last and score >= start_at:
            open_run = _OpenInterval(start_idx=idx, last_idx=idx, total=score, count=1)

    if open_run is not None:
        intervals.append(open_run.close())
    return intervals


def find_watering_windows(hourly: Sequence[AgriculturalTiming], limit: int) -> list[WateringWindow]:
    """High watering-efficiency runs, first `limit` in scan order."""
    runs = scan_intervals([h.watering_efficiency for h in hourly],
                          WATERING_START_THRESHOLD, WATERING_CONTINUE_THRESHOLD)
    windows = [
        WateringWindow(
            start=hourly[run.start_idx].time,
            end=hourly[run.end_idx].time,
            efficiency_score=scoring.round_half_up(run.average),
            reason=scoring.watering_reason(run.average, hourly[run.start_idx].vapour_pressure_deficit),
        )
        for run in runs
    ]
    return windows[:limit]


def find_stress_warnings(hourly: Sequence[AgriculturalTiming], limit: int) -> list[StressWarning]:
    """High-stress hours, and moderate-stress hours above 1.4 kPa, in time order."""
    warnings: list[StressWarning] = []
    for h in hourly:
        vpd = h.vapour_pressure_deficit
        if h.plant_stress_level == StressLevel.HIGH:
            warnings.append(StressWarning(
                time=h.time,
                severity="high",
                message=f"High plant stress: VPD {vpd:.1f} kPa - water loss exceeds optimal range",
            ))
        elif h.plant_stress_level == StressLevel.MODERATE and vpd > MODERATE_STRESS_WARNING_VPD:
            warnings.append(StressWarning(
                time=h.time,
                severity="moderate",
                message=f"Moderate plant stress: VPD {vpd:.1f} kPa - monitor plant hydration",
            ))
    return warnings[:limit]


def find_comfort_periods(hourly: Sequence[AgriculturalTiming], limit: int) -> list[ComfortPeriod]:
    """Comfortable runs for outdoor work, first `limit` in scan order."""
    runs = scan_intervals([h.comfort_index for h in hourly],
                          COMFORT_START_THRESHOLD, COMFORT_CONTINUE_THRESHOLD)
    periods = [
        ComfortPeriod(
            start=hourly[run.start_idx].time,
            end=hourly[run.end_idx].time,
            comfort_score=scoring.round_half_up(run.average),
            description=scoring.comfort_description(run.average),
        )
        for run in runs
    ]
    return periods[:limit]


def generate_gardening_insights(
    hourly: Sequence[AgriculturalTiming],
    *,
    max_watering_windows: int | None = None,
    max_stress_warnings: int | None = None,
    max_comfort_periods: int | None = None,
) -> GardeningInsights:
    """Watering windows, stress warnings and comfort periods over the hourly series."""
    return GardeningInsights(
        optimal_watering_windows=find_watering_windows(
            hourly, max_watering_windows if max_watering_windows is not None else settings.max_watering_windows),
        plant_stress_warnings=find_stress_warnings(
            hourly, max_stress_warnings if max_stress_warnings is not None else settings.max_stress_warnings),
        outdoor_comfort_periods=find_comfort_periods(
            hourly, max_comfort_periods if max_comfort_periods is not None else settings.max_comfort_periods),
    )


def generate_weekly_summary(daily: Sequence[DailyAgriculturalData],
                            hourly: Sequence[AgriculturalTiming]) -> WeeklySummary:
    """Aggregate VPD, ET0 and rain hours; irrigation is a simple ET0-vs-rain heuristic."""
    avg_vpd = sum(h.vapour_pressure_deficit for h in hourly) / len(hourly) if hourly else 0.0
    total_et0 = sum(d.et0_evapotranspiration for d in daily)
    rain_hours = sum(d.precipitation_hours for d in daily)

    # ISO dates sort chronologically as text
    best_days = sorted(d.date for d in daily if d.water_demand_level != WaterDemand.HIGH)[:3]

    return WeeklySummary(
        avg_vpd=round(avg_vpd, 2),
        total_et0=round(total_et0, 1),
        rain_hours=scoring.round_half_up(rain_hours),
        irrigation_needed=total_et0 > rain_hours * 2,
        best_gardening_days=best_days,
    )


def process_agricultural_data(
    response: OpenMeteoAgriculturalResponse,
    *,
    now: datetime | None = None,
    utc_offset_seconds: int | None = None,
) -> AgriculturalForecast:
    """
    Build an AgriculturalForecast from a raw provider response.

    `utc_offset_seconds` defaults to the offset reported in the response; a
    naive `now` is taken as UTC.
    """
    offset = utc_offset_seconds if utc_offset_seconds is not None else response.utc_offset_seconds
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    hourly: List[AgriculturalTiming] = build_hourly(response, offset)
    daily: List[DailyAgriculturalData] = build_daily(response)
    current = find_current(hourly, now)

    insights = generate_gardening_insights(hourly)
    summary = generate_weekly_summary(daily, hourly)

    logger.info(
        "Processed agricultural data",
        extra={
            "hourly_count": len(hourly),
            "daily_count": len(daily),
            "has_current": current is not None,
            "watering_windows": len(insights.optimal_watering_windows),
        },
    )

    return AgriculturalForecast(
        current=current,
        hourly=hourly,
        daily=daily,
        gardening_insights=insights,
        weekly_summary=summary,
    )
