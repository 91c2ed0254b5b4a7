from advisor.conditions import extract_conditions, time_of_day
from advisor.domain import ForecastSlice, TimeOfDay

# 2024-06-01T03:00:00Z
EPOCH_0300_UTC = 1717210800


def _slice(**overrides):
    base = {
        "dt_txt": "2024-06-01 12:00:00",
        "temp": 20.0,
        "feels_like": 19.0,
        "wind_speed": 5.0,
        "cloud_cover": 40.0,
    }
    base.update(overrides)
    return ForecastSlice(**base)


def test_precipitation_defaults_to_zero_without_rain_object():
    c = extract_conditions(_slice(), 2)
    assert c.precipitation == 0
    assert c.precipitation_type is None
    assert c.visibility == 10000
    assert c.aqi == 2


def test_rain_object_sets_precipitation_type():
    c = extract_conditions(_slice(rain_3h=1.5), 2)
    assert c.precipitation == 1.5
    assert c.precipitation_type == "rain"

    dry = extract_conditions(_slice(rain_3h=0.0), 2)
    assert dry.precipitation == 0
    assert dry.precipitation_type == "rain"


def test_time_of_day_boundaries_use_provider_text():
    assert time_of_day(_slice(dt_txt="2024-06-01 06:00:00")) == TimeOfDay.DAY
    assert time_of_day(_slice(dt_txt="2024-06-01 17:59:00")) == TimeOfDay.DAY
    assert time_of_day(_slice(dt_txt="2024-06-01 18:00:00")) == TimeOfDay.NIGHT
    assert time_of_day(_slice(dt_txt="2024-06-01 05:00:00")) == TimeOfDay.NIGHT


def test_time_of_day_applies_explicit_offset():
    item = _slice(dt=EPOCH_0300_UTC, dt_txt="2024-06-01 03:00:00")
    assert time_of_day(item) == TimeOfDay.NIGHT
    # UTC+5 puts 03:00Z at 08:00 local
    assert time_of_day(item, utc_offset_seconds=5 * 3600) == TimeOfDay.DAY


def test_missing_numbers_are_absent_not_fatal():
    c = extract_conditions(_slice(temp=None, wind_speed=None), None)
    assert c.temp is None
    assert c.wind_speed is None
    assert c.aqi is None
    assert c.time_of_day in {TimeOfDay.DAY, TimeOfDay.NIGHT}
