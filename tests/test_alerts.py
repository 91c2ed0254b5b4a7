import datetime as dt

from advisor.alerts import (
    analyze_planning_disruptions,
    generate_air_quality_alerts,
    generate_planning_alerts,
)
from advisor.domain import AirTrend, AlertSeverity, ForecastSlice, PlanningDisruptionAlert, AirQualityAlert


def _slice(hour: int, **overrides):
    base = {"dt_txt": f"2024-06-01 {hour:02d}:00:00", "temp": 20.0, "wind_speed": 5.0}
    base.update(overrides)
    return ForecastSlice(**base)


def test_temperature_drop_over_ten_degrees():
    slices = [_slice(9, temp=25.0), _slice(12, temp=14.0)]
    alerts = analyze_planning_disruptions(slices)
    assert len(alerts) == 1
    assert alerts[0].severity == AlertSeverity.MODERATE
    assert alerts[0].affected_activities == ["Outdoor"]
    assert alerts[0].start == slices[1].time


def test_temperature_drop_of_exactly_ten_is_ignored():
    assert analyze_planning_disruptions([_slice(9, temp=25.0), _slice(12, temp=15.0)]) == []


def test_pair_emits_all_conditions_in_order():
    slices = [_slice(9, temp=30.0), _slice(12, temp=15.0, wind_speed=30.0, rain_3h=6.0)]
    alerts = analyze_planning_disruptions(slices)
    assert [a.affected_activities for a in alerts] == [
        ["Outdoor"],
        ["Outdoor", "Cycling", "Running"],
        ["Outdoor", "Dining", "Running"],
    ]


def test_missing_values_skip_only_that_check():
    slices = [_slice(9, temp=None), _slice(12, temp=10.0, wind_speed=None, rain_3h=7.5)]
    alerts = analyze_planning_disruptions(slices)
    assert len(alerts) == 1
    assert "Heavy rain" in alerts[0].message


def test_poor_aqi_and_worsening_trend():
    now = dt.datetime(2024, 6, 1, 12, tzinfo=dt.timezone.utc)
    alerts = generate_air_quality_alerts([2, 3], 4, now)
    assert len(alerts) == 2
    assert alerts[0].message.startswith("Air quality poor")
    assert alerts[0].trend == AirTrend.STABLE
    assert alerts[1].trend == AirTrend.WORSENING
    assert all(a.start == now for a in alerts)


def test_trend_compares_against_second_to_last_entry():
    assert generate_air_quality_alerts([3, 1], 2)[0].trend == AirTrend.IMPROVING
    stable = generate_air_quality_alerts([1, 2, 1], 2)
    assert stable[0].trend == AirTrend.STABLE
    assert stable[0].message == "Air quality stable."


def test_short_history_has_no_trend_alert():
    assert generate_air_quality_alerts([3], 2) == []
    assert len(generate_air_quality_alerts([], 5)) == 1


def test_planning_alerts_list_weather_before_air():
    slices = [_slice(9), _slice(12, wind_speed=40.0)]
    alerts = generate_planning_alerts(slices, [1, 1], 4)
    assert isinstance(alerts[0], PlanningDisruptionAlert)
    assert all(isinstance(a, AirQualityAlert) for a in alerts[1:])
    assert len(alerts) == 3
