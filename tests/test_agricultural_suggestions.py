import datetime as dt

from advisor import scoring
from advisor.agricultural_suggestions import (
    AgriculturalActivityContext,
    generate_agricultural_suggestions,
    generate_outdoor_comfort_suggestions,
    generate_plant_care_suggestions,
    generate_timing_based_suggestions,
    generate_watering_recommendations,
    localize_forecast,
    try_generate_agricultural_suggestions,
)
from advisor.domain import (
    AgriculturalForecast,
    AgriculturalTiming,
    DailyAgriculturalData,
    GardeningInsights,
    SuggestionCategory,
    WateringWindow,
    WeeklySummary,
)

NOW = dt.datetime(2024, 6, 1, 6, 0, tzinfo=dt.timezone.utc)
FORECAST_START = dt.datetime(2024, 6, 1, 8, 0, tzinfo=dt.timezone.utc)


def _hour(idx=0, *, vpd=0.8, humidity=70.0, dew_point=12.0, efficiency=90, comfort=50):
    return AgriculturalTiming(
        time=FORECAST_START + dt.timedelta(hours=idx),
        vapour_pressure_deficit=vpd,
        relative_humidity=humidity,
        dew_point=dew_point,
        plant_stress_level=scoring.plant_stress_level(vpd),
        watering_efficiency=efficiency,
        comfort_index=comfort,
    )


def _day(et0):
    return DailyAgriculturalData(
        date="2024-06-01",
        et0_evapotranspiration=et0,
        precipitation_hours=0,
        water_demand_level=scoring.water_demand_level(et0),
        irrigation_recommendation=scoring.irrigation_recommendation(et0, 0),
    )


def _window(idx, score=82):
    return WateringWindow(
        start=FORECAST_START + dt.timedelta(hours=idx),
        end=FORECAST_START + dt.timedelta(hours=idx + 2),
        efficiency_score=score,
        reason="Good watering conditions: optimal plant water uptake",
    )


def _forecast(current=None, hourly=None, daily=None, windows=()):
    return AgriculturalForecast(
        current=current,
        hourly=hourly if hourly is not None else [_hour(i) for i in range(6)],
        daily=daily if daily is not None else [_day(3.5)],
        gardening_insights=GardeningInsights(optimal_watering_windows=list(windows)),
        weekly_summary=WeeklySummary(avg_vpd=0.8, total_et0=3.5, rain_hours=0, irrigation_needed=True),
    )


def _activities(suggestions):
    return [s.activity for s in suggestions]


# ---------------------------------------------------------------------------
# Watering
# ---------------------------------------------------------------------------


def test_optimal_watering_in_good_band():
    current = _hour(vpd=0.8, efficiency=90)
    out = generate_watering_recommendations(current, _forecast(current), NOW)
    assert _activities(out) == ["Optimal Plant Watering"]
    assert out[0].confidence == 0.9
    assert out[0].category == SuggestionCategory.GARDENING
    assert out[0].end - out[0].start == dt.timedelta(hours=2)
    assert out[0].agricultural_data.et0 == 3.5


def test_optimal_watering_confidence_is_capped():
    current = _hour(vpd=0.8, efficiency=100)
    assert generate_watering_recommendations(current, _forecast(current), NOW)[0].confidence == 0.95


def test_high_vpd_avoids_watering():
    current = _hour(vpd=2.0, efficiency=40)
    out = generate_watering_recommendations(current, _forecast(current), NOW)
    assert _activities(out) == ["Avoid Watering - High VPD"]
    assert out[0].confidence == 0.9
    assert out[0].end - out[0].start == dt.timedelta(hours=1)


def test_low_vpd_light_watering():
    current = _hour(vpd=0.2, efficiency=90)
    out = generate_watering_recommendations(current, _forecast(current), NOW)
    assert _activities(out) == ["Light Watering Only"]
    assert out[0].confidence == 0.7


# ---------------------------------------------------------------------------
# Plant care and comfort
# ---------------------------------------------------------------------------


def test_plant_care_by_et0():
    current = _hour()
    high = generate_plant_care_suggestions(current, _forecast(current, daily=[_day(6.0)]), NOW)
    assert _activities(high) == ["High Water Demand Day"]
    assert high[0].end - high[0].start == dt.timedelta(hours=24)

    low = generate_plant_care_suggestions(current, _forecast(current, daily=[_day(1.0)]), NOW)
    assert _activities(low) == ["Low Maintenance Day"]

    assert generate_plant_care_suggestions(current, _forecast(current, daily=[_day(3.0)]), NOW) == []
    assert generate_plant_care_suggestions(current, _forecast(current, daily=[]), NOW) == []


def test_perfect_outdoor_conditions_ends_at_fourth_hour():
    current = _hour(comfort=85)
    forecast = _forecast(current)
    out = generate_outdoor_comfort_suggestions(current, forecast, NOW)
    assert _activities(out) == ["Perfect Outdoor Conditions"]
    assert out[0].start == NOW
    assert out[0].end == forecast.hourly[3].time


def test_perfect_outdoor_conditions_never_ends_before_now():
    current = _hour(comfort=85)
    late = FORECAST_START + dt.timedelta(days=1)
    out = generate_outdoor_comfort_suggestions(current, _forecast(current), late)
    assert out[0].end == late


def test_dehydration_and_dew_point_rules():
    dry = _hour(vpd=2.0, dew_point=12.0, comfort=40)
    assert _activities(generate_outdoor_comfort_suggestions(dry, _forecast(dry), NOW)) == ["High Dehydration Risk"]

    pleasant = _hour(vpd=1.0, dew_point=16.0, comfort=60)
    assert _activities(generate_outdoor_comfort_suggestions(pleasant, _forecast(pleasant), NOW)) == [
        "Ideal Outdoor Temperature Feel"
    ]


# ---------------------------------------------------------------------------
# Timing
# ---------------------------------------------------------------------------


def test_invocation_timing_spaces_windows_from_now():
    forecast = _forecast(windows=[_window(0), _window(4), _window(8), _window(12)])
    out = generate_timing_based_suggestions(forecast, NOW)

    assert _activities(out) == [
        "Optimal Watering Window 1",
        "Optimal Watering Window 2",
        "Optimal Watering Window 3",
    ]
    assert [s.start for s in out] == [NOW, NOW + dt.timedelta(hours=3), NOW + dt.timedelta(hours=6)]
    assert all(s.end - s.start == dt.timedelta(hours=2) for s in out)
    assert out[0].confidence == 0.82
    assert out[0].agricultural_data.vpd == 0.8


def test_forecast_timing_keeps_window_times():
    windows = [_window(2)]
    out = generate_timing_based_suggestions(_forecast(windows=windows), NOW, timing_mode="forecast")
    assert out[0].start == windows[0].start
    assert out[0].end == windows[0].end


def test_window_outside_hourly_series_has_zero_snapshot():
    out = generate_timing_based_suggestions(_forecast(windows=[_window(40)]), NOW)
    assert out[0].agricultural_data.vpd == 0.0
    assert out[0].agricultural_data.et0 == 3.5


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------


def test_generate_assigns_ids_and_uses_first_hour_without_current():
    forecast = _forecast(current=None, windows=[_window(0)])
    context = AgriculturalActivityContext(current_time=NOW, location_name="Allotment", agricultural_forecast=forecast)
    out = generate_agricultural_suggestions(context)

    stamp = int(NOW.timestamp() * 1000)
    assert out[0].activity == "Optimal Plant Watering"
    assert out[0].id == f"agri_optimal_plant_watering_{stamp}"
    assert out[-1].id == f"agri_optimal_watering_window_1_{stamp}"
    assert len({s.id for s in out}) == len(out)


def test_generate_without_hours_returns_nothing():
    context = AgriculturalActivityContext(
        current_time=NOW, location_name="Allotment", agricultural_forecast=_forecast(hourly=[]),
    )
    assert generate_agricultural_suggestions(context) == []


def test_try_generate_reports_failure():
    context = AgriculturalActivityContext(current_time=NOW, location_name="Allotment", agricultural_forecast=None)
    outcome = try_generate_agricultural_suggestions(context)
    assert not outcome.ok
    assert outcome.suggestions == []
    assert isinstance(outcome.error, AttributeError)


def test_try_generate_success():
    context = AgriculturalActivityContext(current_time=NOW, location_name="Allotment", agricultural_forecast=_forecast())
    outcome = try_generate_agricultural_suggestions(context)
    assert outcome.ok
    assert outcome.suggestions


def test_localize_forecast_pins_naive_times_only():
    naive = _hour(0, comfort=85).model_copy(update={"time": dt.datetime(2024, 6, 1, 8, 0)})
    window = _window(0).model_copy(update={"start": dt.datetime(2024, 6, 1, 8, 0),
                                           "end": dt.datetime(2024, 6, 1, 10, 0)})
    forecast = _forecast(current=naive, hourly=[naive, _hour(1)], windows=[window])

    localized = localize_forecast(forecast, 3600)
    plus_one = dt.timezone(dt.timedelta(hours=1))
    assert localized.current.time == dt.datetime(2024, 6, 1, 8, 0, tzinfo=plus_one)
    assert localized.hourly[1].time == forecast.hourly[1].time
    assert localized.gardening_insights.optimal_watering_windows[0].end.tzinfo == plus_one
    assert forecast.current.time.tzinfo is None


def test_generate_with_naive_times_and_high_comfort():
    naive_hours = [
        _hour(i, comfort=85).model_copy(update={"time": dt.datetime(2024, 6, 1, 8 + i, 0)}) for i in range(4)
    ]
    context = AgriculturalActivityContext(
        current_time=NOW, location_name="Allotment",
        agricultural_forecast=_forecast(current=naive_hours[0], hourly=naive_hours),
    )
    out = generate_agricultural_suggestions(context)
    assert "Perfect Outdoor Conditions" in _activities(out)
