"""Deterministic per-slice activity suggestions.

Each forecast slice is flattened into WeatherConditions and run through a
set of independent activity rules; a slice may match several. A separate
pass over adjacent slices finds dry windows opening after rain.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable, Sequence, Tuple, Union

from advisor.conditions import extract_conditions
from advisor.domain import ActivitySuggestion, ForecastSlice, TimeOfDay, WeatherConditions
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="activity_engine")

DEFAULT_WINDOW = timedelta(hours=2)

AqiKey = Union[int, datetime]
AqiSeries = Iterable[Tuple[AqiKey, int]]


def _rain(item: ForecastSlice | None) -> float:
    """Rain volume over the trailing 3h, 0 when absent."""
    if item is None:
        return 0.0
    return item.rain_3h or 0.0


def _window_end(slices: Sequence[ForecastSlice], idx: int) -> datetime:
    """Next slice's start, or start + 2h for the final slice."""
    if idx + 1 < len(slices):
        return slices[idx + 1].time
    return slices[idx].time + DEFAULT_WINDOW


def _next_slice(slices: Sequence[ForecastSlice], idx: int) -> ForecastSlice | None:
    return slices[idx + 1] if idx + 1 < len(slices) else None


def _coerce_aqi(value: object) -> int | None:
    """AQI class 1..5, or None for anything malformed (fractions, text, out of range)."""
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int) or not 1 <= value <= 5:
        return None
    return value


def _index_aqi_series(aqi_series: AqiSeries | None) -> tuple[dict[int, object], dict[datetime, object]]:
    """
    Index (timestamp, aqi) pairs.

    Epoch seconds and aware datetimes are keyed by epoch seconds; naive
    datetimes are keyed by wall-clock time and match the slice's `dt_txt`.
    """
    by_epoch: dict[int, object] = {}
    by_local: dict[datetime, object] = {}
    for key, value in aqi_series or ():
        if isinstance(key, datetime):
            if key.tzinfo is None:
                by_local[key] = value
            else:
                by_epoch[int(key.timestamp())] = value
        elif isinstance(key, (int, float)) and not isinstance(key, bool):
            by_epoch[int(key)] = value
        else:
            logger.debug("Ignoring AQI series entry with unusable timestamp", extra={"key": repr(key)})
    return by_epoch, by_local


def _slice_epoch(item: ForecastSlice, utc_offset_seconds: int | None) -> int | None:
    if item.dt is not None:
        return item.dt
    if utc_offset_seconds is None:
        return None
    tz = timezone(timedelta(seconds=utc_offset_seconds))
    return int(item.time.replace(tzinfo=tz).timestamp())


def _aqi_for_slice(item: ForecastSlice, fallback: int | None,
                   index: tuple[dict[int, object], dict[datetime, object]],
                   utc_offset_seconds: int | None = None) -> int | None:
    """Per-slice AQI when supplied and well-formed, otherwise the scalar fallback."""
    by_epoch, by_local = index
    epoch = _slice_epoch(item, utc_offset_seconds)
    if epoch is not None and epoch in by_epoch:
        raw = by_epoch[epoch]
    elif item.time in by_local:
        raw = by_local[item.time]
    else:
        return fallback

    aqi = _coerce_aqi(raw)
    if aqi is None:
        logger.debug("Ignoring malformed per-slice AQI", extra={"dt_txt": item.dt_txt, "aqi": repr(raw)})
        return fallback
    return aqi


def _suggest_running(c: WeatherConditions, item: ForecastSlice, next_item: ForecastSlice | None,
                     end: datetime) -> ActivitySuggestion | None:
    if not (10 <= c.temp <= 25 and c.wind_speed < 15 and c.precipitation < 0.2 and c.aqi <= 3):
        return None
    rain_soon = _rain(next_item) > 0
    return ActivitySuggestion(
        activity="Running",
        description=f"Perfect for running in next 3 hours{', rain expected later' if rain_soon else ''}",
        confidence=1.0,
        reasons=[
            f"Comfortable {c.temp}°C",
            f"Gentle {c.wind_speed}km/h breeze",
            f"Rain {c.precipitation:.1f}mm over 3h",
            f"Air quality {'good' if c.aqi <= 2 else 'moderate'}",
        ],
        start=item.time,
        end=end,
    )


def _suggest_outdoor_dining(c: WeatherConditions, item: ForecastSlice, next_item: ForecastSlice | None,
                            end: datetime) -> ActivitySuggestion | None:
    if not (15 <= c.temp <= 28 and c.wind_speed < 10 and c.precipitation == 0):
        return None
    if _rain(next_item) > 0:
        return None
    return ActivitySuggestion(
        activity="Outdoor Dining",
        description=f"Great for outdoor dining: {c.temp}°C, calm wind, no rain next 3 hours",
        confidence=1.0,
        reasons=[
            "Comfortable temperature",
            f"Wind {c.wind_speed}km/h",
            "No rain expected",
        ],
        start=item.time,
        end=end,
    )


def _suggest_photography(c: WeatherConditions, item: ForecastSlice, end: datetime) -> ActivitySuggestion | None:
    if c.cloud_cover is None or not (30 <= c.cloud_cover <= 70) or c.time_of_day != TimeOfDay.DAY:
        return None
    return ActivitySuggestion(
        activity="Photography",
        description=f"Interesting clouds ({c.cloud_cover:.0f}%), good daylight",
        confidence=1.0,
        reasons=[f"Cloud cover {c.cloud_cover:.0f}%", "Daytime"],
        start=item.time,
        end=end,
    )


def _suggest_air_quality_sensitive(c: WeatherConditions, item: ForecastSlice,
                                   end: datetime) -> ActivitySuggestion | None:
    if c.aqi > 2:
        return None
    return ActivitySuggestion(
        activity="Air Quality Sensitive",
        description=f"Air quality good (AQI {c.aqi})",
        confidence=1.0,
        reasons=[f"AQI {c.aqi} ≤ 2"],
        start=item.time,
        end=end,
    )


def suggest_post_rain_windows(slices: Sequence[ForecastSlice]) -> list[ActivitySuggestion]:
    """Flag slices where rain has just stopped."""
    suggestions: list[ActivitySuggestion] = []
    for idx in range(1, len(slices)):
        prev, curr = slices[idx - 1], slices[idx]
        if _rain(prev) > 0 and _rain(curr) == 0:
            suggestions.append(
                ActivitySuggestion(
                    activity="Post-Rain Outdoor",
                    description=f"Rain ending at {curr.dt_txt}, outdoor activities possible",
                    confidence=0.8,
                    reasons=["Rain transition", "Dry window opening"],
                    start=curr.time,
                    end=_window_end(slices, idx),
                )
            )
    return suggestions


def suggest_base_activities(
    slices: Sequence[ForecastSlice],
    aqi: int | None,
    *,
    aqi_series: AqiSeries | None = None,
    utc_offset_seconds: int | None = None,
) -> list[ActivitySuggestion]:
    """
    Run every activity rule across the forecast and return the matches.

    `aqi` applies to every slice unless `aqi_series` carries a well-formed
    value for that slice's timestamp. Slices missing temperature, wind or a
    usable AQI are skipped.
    """
    ordered = sorted(slices, key=lambda s: s.time)
    aqi_index = _index_aqi_series(aqi_series)
    scalar_aqi = _coerce_aqi(aqi) if aqi is not None else None
    if aqi is not None and scalar_aqi is None:
        logger.debug("Ignoring malformed AQI", extra={"aqi": repr(aqi)})
    suggestions: list[ActivitySuggestion] = []
    skipped = 0

    for idx, item in enumerate(ordered):
        slice_aqi = _aqi_for_slice(item, scalar_aqi, aqi_index, utc_offset_seconds)
        conditions = extract_conditions(item, slice_aqi, utc_offset_seconds=utc_offset_seconds)
        if conditions.temp is None or conditions.wind_speed is None or conditions.aqi is None:
            skipped += 1
            continue

        next_item = _next_slice(ordered, idx)
        end = _window_end(ordered, idx)
        candidates = (
            _suggest_running(conditions, item, next_item, end),
            _suggest_outdoor_dining(conditions, item, next_item, end),
            _suggest_photography(conditions, item, end),
            _suggest_air_quality_sensitive(conditions, item, end),
        )
        suggestions.extend(s for s in candidates if s is not None)

    suggestions.extend(suggest_post_rain_windows(ordered))

    logger.debug(
        "Computed base activity suggestions",
        extra={"slice_count": len(ordered), "skipped": skipped, "suggestion_count": len(suggestions)},
    )
    return suggestions
