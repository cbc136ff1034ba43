"""
ORM models.

A weather record stores:
- the location string the user typed, plus the geocoded place and coordinates
- the requested date range
- forecast conditions averaged over that range
"""

from datetime import date, datetime, timezone

from sqlalchemy import String, Integer, Float, Date, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from .db import Base


def utcnow() -> datetime:
    """Naive UTC timestamp (SQLite has no timezone support)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class WeatherRecord(Base):
    __tablename__ = "weather_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    # What the user typed
    location: Mapped[str] = mapped_column(String(255), index=True)

    # Geocoded/normalized location details
    resolved_name: Mapped[str] = mapped_column(String(255), default="")
    country: Mapped[str] = mapped_column(String(32), default="")
    state: Mapped[str] = mapped_column(String(64), default="")
    latitude: Mapped[float] = mapped_column(Float)
    longitude: Mapped[float] = mapped_column(Float)

    start_date: Mapped[date] = mapped_column(Date)
    end_date: Mapped[date] = mapped_column(Date)

    # Averages over the forecast steps inside the date range (metric source data)
    temperature_celsius: Mapped[float] = mapped_column(Float)
    temperature_fahrenheit: Mapped[float] = mapped_column(Float)
    description: Mapped[str] = mapped_column(String(128), default="")
    humidity: Mapped[int] = mapped_column(Integer)
    wind_speed: Mapped[float] = mapped_column(Float)  # m/s

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
