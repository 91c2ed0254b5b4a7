"""HTTP API exposing the suggestion engine to UI clients.

Callers post already-fetched forecast, air-quality and agricultural payloads;
this layer performs no provider retrieval.
"""

import hmac
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status
from pydantic import BaseModel, Field

from .agricultural import process_agricultural_data
from .config import settings
from .domain import (
    AgriculturalForecast,
    AirQualityReading,
    ForecastSeries,
    OpenMeteoAgriculturalResponse,
    SuggestionResult,
)
from .suggestion_service import suggest_activities_from_forecast
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="advisor/api")


def require_api_key(x_api_key: str | None = Header(default=None)):
    """Validate the X-API-Key header against the configured key, if any."""
    if not settings.api_key:
        logger.debug("No API key configured; allowing all requests")
        return

    if not x_api_key:
        logger.debug("No API key provided")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing API key")

    if hmac.compare_digest(str(x_api_key), str(settings.api_key)):
        return

    logger.debug("Invalid API key provided")
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


router = APIRouter(dependencies=[Depends(require_api_key)])


class SuggestionRequest(BaseModel):
    """Incoming suggestion request."""
    forecast: ForecastSeries
    aqi: Optional[int] = Field(default=None, ge=1, le=5)
    air_quality: Optional[AirQualityReading] = None
    aqi_history: List[int] = Field(default_factory=list)
    current_time: Optional[datetime] = None
    utc_offset_seconds: Optional[int] = None
    agricultural: Optional[OpenMeteoAgriculturalResponse] = None
    location_name: Optional[str] = None


def _resolve_aqi(req: SuggestionRequest) -> int:
    """Prefer an explicit AQI, then the air-quality reading."""
    if req.aqi is not None:
        return req.aqi
    if req.air_quality is not None:
        return req.air_quality.aqi
    raise HTTPException(status_code=422,
                        detail="Either aqi or air_quality is required")


@router.post("/suggestions", response_model=SuggestionResult)
def create_suggestions(req: SuggestionRequest) -> SuggestionResult:
    """Run the full suggestion pipeline for one location."""
    aqi = _resolve_aqi(req)

    agricultural_forecast = None
    if req.agricultural is not None:
        agricultural_forecast = process_agricultural_data(
            req.agricultural, now=req.current_time, utc_offset_seconds=req.utc_offset_seconds,
        )

    logger.info(
        "Suggestion request",
        extra={
            "slice_count": len(req.forecast.slices),
            "aqi": aqi,
            "has_agricultural": agricultural_forecast is not None,
            "location": req.location_name,
        },
    )
    return suggest_activities_from_forecast(
        req.forecast,
        aqi,
        req.aqi_history,
        req.current_time,
        agricultural_forecast,
        req.location_name,
        utc_offset_seconds=req.utc_offset_seconds,
    )


@router.post("/agricultural", response_model=AgriculturalForecast)
def process_agricultural(payload: OpenMeteoAgriculturalResponse) -> AgriculturalForecast:
    """Score a raw Open-Meteo agricultural response."""
    return process_agricultural_data(payload)
