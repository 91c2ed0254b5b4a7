"""Pure threshold-band classifiers and 0-100 scores.

Every function here is a single-responsibility mapping from measurements to a
band or score, shared by the agricultural processor and the suggestion
generators.
"""

from __future__ import annotations

import math

from advisor.domain import StressLevel, WaterDemand


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive scores (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


def _clamp_percent(score: float) -> float:
    """Clamp a score to the 0-100 range."""
    return max(0.0, min(100.0, score))


def plant_stress_level(vpd: float) -> StressLevel:
    """Classify plant stress from vapour-pressure deficit (kPa)."""
    if vpd < 0.4:
        return StressLevel.LOW
    if vpd <= 1.6:
        return StressLevel.MODERATE
    return StressLevel.HIGH


def watering_efficiency(vpd: float, humidity: float) -> int:
    """
    Score how much of applied water plants will actually use (0-100).

    VPD dominates (70%): best at 0.8 kPa inside the 0.4-1.2 band, rising
    toward the band from below and decaying above it. Humidity adds the rest.
    """
    if 0.4 <= vpd <= 1.2:
        vpd_score = 100 - abs(vpd - 0.8) * 50
    elif vpd < 0.4:
        vpd_score = 60 + vpd * 100
    else:
        vpd_score = max(0.0, 100 - (vpd - 1.2) * 30)

    humidity_score = min(100.0, humidity * 1.2)
    return round_half_up(_clamp_percent(vpd_score * 0.7 + humidity_score * 0.3))


def _vpd_comfort(vpd: float) -> float:
    """Human comfort from air dryness, peaking at 1.0 kPa."""
    if 0.6 <= vpd <= 1.4:
        return 100 - abs(vpd - 1.0) * 25
    return max(0.0, 100 - abs(vpd - 1.0) * 40)


def _dew_point_comfort(dew_point: float) -> float:
    """Human comfort from dew point (15-18 C is ideal)."""
    if 15 <= dew_point <= 18:
        return 100.0
    if 10 <= dew_point <= 22:
        return 80 - abs(dew_point - 16.5) * 3
    return max(0.0, 60 - abs(dew_point - 16.5) * 2)


def comfort_index(vpd: float, dew_point: float) -> int:
    """Blend VPD comfort (60%) and dew-point comfort (40%) into 0-100."""
    blended = _vpd_comfort(vpd) * 0.6 + _dew_point_comfort(dew_point) * 0.4
    return round_half_up(_clamp_percent(blended))


def water_demand_level(et0: float) -> WaterDemand:
    """Classify daily water demand from reference evapotranspiration (mm)."""
    if et0 < 3:
        return WaterDemand.LOW
    if et0 <= 6:
        return WaterDemand.MODERATE
    return WaterDemand.HIGH


def irrigation_recommendation(et0: float, precipitation_hours: float) -> str:
    """Priority-ordered irrigation advice for one day."""
    if precipitation_hours > 4:
        return "Natural irrigation sufficient - skip watering today"
    if et0 < 2:
        return "Low water demand - light watering if needed"
    if et0 < 5:
        return "Moderate watering recommended - check soil moisture"
    return "High water demand - ensure adequate irrigation"


def watering_reason(efficiency: float, vpd: float) -> str:
    """Explain a watering window by its average efficiency."""
    if efficiency >= 90:
        return f"Excellent conditions: VPD {vpd:.1f} kPa - water will be absorbed efficiently"
    if efficiency >= 80:
        return "Good watering conditions: optimal plant water uptake"
    return "Fair conditions: plants will benefit but monitor for stress"


def comfort_description(comfort: float) -> str:
    """Describe a comfort period by its average comfort index."""
    if comfort >= 85:
        return "Excellent outdoor conditions - perfect for gardening and activities"
    if comfort >= 75:
        return "Very comfortable - ideal for extended outdoor work"
    return "Comfortable conditions - suitable for most outdoor activities"
