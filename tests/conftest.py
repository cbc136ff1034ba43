"""
Pytest configuration and shared fixtures.

Settings are read at import time, so the environment is pointed at a
throwaway SQLite file before anything from weather_app is imported.
"""

import os
import tempfile
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

_TMP_DIR = tempfile.mkdtemp(prefix="weather_app_tests_")
os.environ["SQLITE_PATH"] = str(Path(_TMP_DIR) / "test.sqlite3")
os.environ["OPENWEATHER_API_KEY"] = "test-key"
os.environ["YOUTUBE_API_KEY"] = ""
os.environ["MAX_RANGE_DAYS"] = "5"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from weather_app.db import get_db, init_db
from weather_app.errors import LocationNotFoundError
from weather_app.locations import parse_location
from weather_app.weather_clients import OpenWeatherClient, ResolvedLocation, YouTubeClient


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def make_forecast(
    start: date,
    days: int = 5,
    temp: float = 20.0,
    humidity: float = 60,
    wind: float = 3.0,
    description: str = "clear sky",
    icon: str = "01d",
    tz_offset: int = 0,
) -> dict:
    """OpenWeather-shaped 3-hour forecast starting at midnight UTC on `start`."""
    base = datetime(start.year, start.month, start.day, tzinfo=timezone.utc)
    items = []
    for i in range(days * 8):
        dt = base + timedelta(hours=3 * i)
        items.append({
            "dt": int(dt.timestamp()),
            "main": {"temp": temp, "humidity": humidity},
            "wind": {"speed": wind},
            "weather": [{"icon": icon, "description": description}],
            "pop": 0.2,
        })
    return {"city": {"name": "Test City", "timezone": tz_offset}, "list": items}


class FakeWeatherClient(OpenWeatherClient):
    """OpenWeatherClient with canned responses; keeps the real parsing and summaries."""

    def __init__(self, forecast=None):
        super().__init__("test-key")
        self.forecast = forecast or make_forecast(utc_today())
        self.geocode_calls = []

    async def geocode(self, query):
        self.geocode_calls.append(query)
        parsed = parse_location(query)
        if "nowhere" in parsed.text.lower():
            raise LocationNotFoundError(f'Location "{parsed.text}" not found.')
        if parsed.lat is not None:
            return ResolvedLocation(name=parsed.name or "Coordinates", country="", state="",
                                    lat=parsed.lat, lon=parsed.lon)
        return ResolvedLocation(name=parsed.text.split(",")[0].title(), country="FR", state="",
                                lat=48.8566, lon=2.3522)

    async def current_weather(self, lat, lon, units="metric"):
        return {
            "name": "Weather Station 7",
            "main": {"temp": 21, "feels_like": 20, "temp_min": 18, "temp_max": 23, "humidity": 55},
            "wind": {"speed": 3.2},
            "weather": [{"icon": "01d", "description": "clear sky"}],
        }

    async def forecast_5day_3h(self, lat, lon, units="metric"):
        return self.forecast


class FakeVideoClient(YouTubeClient):
    def __init__(self):
        super().__init__("")

    async def search_videos(self, location, max_results=4):
        return [{
            "id": "abc123",
            "title": f"{location} in 4K",
            "thumbnail": "https://img.example/abc123.jpg",
            "channel_title": "Travel Channel",
            "url": "https://www.youtube.com/watch?v=abc123",
        }]


@pytest.fixture
def db_session():
    """In-memory SQLite session shared across threads (TestClient runs sync routes in a pool)."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def weather_client():
    return FakeWeatherClient()


@pytest.fixture
def client(db_session, weather_client):
    from weather_app.main import app, get_video_client, get_weather_client

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_weather_client] = lambda: weather_client
    app.dependency_overrides[get_video_client] = FakeVideoClient
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
