"""Flatten forecast slices into decision-ready conditions."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from advisor.domain import ForecastSlice, TimeOfDay, WeatherConditions

# OpenWeather's 3-hourly forecast does not include visibility.
PLACEHOLDER_VISIBILITY_M = 10000


def local_time(item: ForecastSlice, utc_offset_seconds: int | None = None) -> datetime:
    """
    Return the slice time in location-local wall-clock terms.

    With an explicit offset and an epoch timestamp the time is derived from
    UTC; otherwise the provider text is taken as-is.
    """
    if utc_offset_seconds is not None and item.dt is not None:
        tz = timezone(timedelta(seconds=utc_offset_seconds))
        return datetime.fromtimestamp(item.dt, tz=tz)
    return item.time


def time_of_day(item: ForecastSlice, utc_offset_seconds: int | None = None) -> TimeOfDay:
    """Daytime is local hours 06:00-17:59."""
    hour = local_time(item, utc_offset_seconds).hour
    if 6 <= hour < 18:
        return TimeOfDay.DAY
    return TimeOfDay.NIGHT


def extract_conditions(item: ForecastSlice, aqi: int | None, *,
                       utc_offset_seconds: int | None = None) -> WeatherConditions:
    """Pure function: normalize one slice plus an AQI value into WeatherConditions."""
    return WeatherConditions(
        temp=item.temp,
        feels_like=item.feels_like,
        wind_speed=item.wind_speed,
        cloud_cover=item.cloud_cover,
        precipitation=item.rain_3h or 0.0,
        precipitation_type="rain" if item.rain_3h is not None else None,
        aqi=aqi,
        visibility=PLACEHOLDER_VISIBILITY_M,
        time_of_day=time_of_day(item, utc_offset_seconds),
    )
