"""
Pydantic schemas.

Define the contract of the REST endpoints and validate incoming payloads.
"""

from datetime import date, datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class GeoResolved(BaseModel):
    """Normalized location data returned by geocoding."""
    name: str
    country: str = ""
    state: str = ""
    lat: float
    lon: float


class RecordCreate(BaseModel):
    """
    Payload for creating a stored record:
    location + date range.
    """
    location: str = Field(..., min_length=2, max_length=255)
    start_date: date
    end_date: date


class RecordUpdate(BaseModel):
    """
    Updates allow changing location and/or date range.
    Any change re-fetches the forecast and re-computes the averages.
    """
    location: Optional[str] = Field(None, min_length=2, max_length=255)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class RecordOut(BaseModel):
    """Record representation returned from the API."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    location: str
    resolved_name: str
    country: str
    state: str
    latitude: float
    longitude: float
    start_date: date
    end_date: date
    temperature_celsius: float
    temperature_fahrenheit: float
    description: str
    humidity: int
    wind_speed: float
    created_at: datetime
    updated_at: datetime


class WeatherOut(BaseModel):
    """
    Current weather + daily forecast cards.
    `current` is the OpenWeather payload shape, left loosely typed.
    """
    resolved: GeoResolved
    current: Any
    forecast: List[Any]
    unit: str


class VideoOut(BaseModel):
    id: str
    title: str
    thumbnail: str = ""
    channel_title: str = ""
    url: str


class MapsOut(BaseModel):
    location: str
    embed_url: str


class LocationDataOut(BaseModel):
    """Map + travel videos shown alongside a search result."""
    maps: MapsOut
    youtube: List[VideoOut]
    youtube_url: str
