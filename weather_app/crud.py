"""
CRUD functions for weather records.

Kept separate from main.py so routing stays readable and the record rules
(date range limits, location resolution, forecast averaging) can be unit tested.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from . import models
from .errors import WeatherError
from .schemas import RecordCreate, RecordUpdate
from .settings import settings
from .weather_clients import OpenWeatherClient

logger = logging.getLogger(__name__)

# Records are filled from the 5-day forecast, so longer windows would be empty.
MAX_RANGE_DAYS = settings.max_range_days


def validate_date_range(start: date, end: date, today: Optional[date] = None) -> None:
    """
    Business rule validations for date ranges.
    """
    if end < start:
        raise WeatherError("Start date must be before end date")

    today = today or date.today()
    if end < today:
        raise WeatherError("Cannot create records for past dates")

    if (end - start).days > MAX_RANGE_DAYS:
        raise WeatherError(f"Date range cannot exceed {MAX_RANGE_DAYS} days")


async def _fetch_conditions(owm: OpenWeatherClient, location: str, start: date, end: date):
    resolved = await owm.geocode(location)
    # Stored values are always metric; Fahrenheit is derived.
    forecast = await owm.forecast_5day_3h(resolved.lat, resolved.lon, units="metric")
    return resolved, owm.average_conditions(forecast, start, end)


async def create_record(db: Session, payload: RecordCreate, owm: OpenWeatherClient) -> models.WeatherRecord:
    """
    CREATE record:
    - validate date range
    - validate location exists (geocode)
    - average the forecast over the range
    - store in DB
    """
    validate_date_range(payload.start_date, payload.end_date)
    resolved, conditions = await _fetch_conditions(owm, payload.location, payload.start_date, payload.end_date)

    now = models.utcnow()
    record = models.WeatherRecord(
        location=payload.location.strip(),
        resolved_name=resolved.name,
        country=resolved.country,
        state=resolved.state,
        latitude=resolved.lat,
        longitude=resolved.lon,
        start_date=payload.start_date,
        end_date=payload.end_date,
        created_at=now,
        updated_at=now,
        **conditions,
    )

    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info("Created weather record %s for %r", record.id, record.location)
    return record


def list_records(db: Session, limit: int = 100, offset: int = 0):
    """List records with basic pagination, newest first."""
    return (
        db.query(models.WeatherRecord)
        .order_by(models.WeatherRecord.created_at.desc(), models.WeatherRecord.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def search_records(
    db: Session,
    location: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    limit: int = 1000,
):
    """
    Filter records for export.

    - location: case-insensitive substring of what the user typed or the resolved name
    - start/end: keep records whose range overlaps [start, end]
    """
    q = db.query(models.WeatherRecord)

    if location and location.strip():
        pattern = f"%{location.strip()}%"
        q = q.filter(or_(
            models.WeatherRecord.location.ilike(pattern),
            models.WeatherRecord.resolved_name.ilike(pattern),
        ))
    if end is not None:
        q = q.filter(models.WeatherRecord.start_date <= end)
    if start is not None:
        q = q.filter(models.WeatherRecord.end_date >= start)

    return (
        q.order_by(models.WeatherRecord.created_at.desc(), models.WeatherRecord.id.desc())
        .limit(limit)
        .all()
    )


def get_record(db: Session, record_id: int) -> models.WeatherRecord | None:
    """Fetch a single record by id."""
    return db.query(models.WeatherRecord).filter(models.WeatherRecord.id == record_id).first()


async def update_record(
    db: Session,
    record: models.WeatherRecord,
    payload: RecordUpdate,
    owm: OpenWeatherClient,
) -> models.WeatherRecord:
    """
    UPDATE record:
    - merge supplied values over the stored ones
    - validate date range
    - re-geocode and re-average the forecast
    - persist
    """
    location = payload.location.strip() if payload.location is not None else record.location
    start = payload.start_date if payload.start_date is not None else record.start_date
    end = payload.end_date if payload.end_date is not None else record.end_date

    validate_date_range(start, end)
    resolved, conditions = await _fetch_conditions(owm, location, start, end)

    record.location = location
    record.resolved_name = resolved.name
    record.country = resolved.country
    record.state = resolved.state
    record.latitude = resolved.lat
    record.longitude = resolved.lon
    record.start_date = start
    record.end_date = end
    for key, value in conditions.items():
        setattr(record, key, value)
    record.updated_at = models.utcnow()

    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info("Updated weather record %s", record.id)
    return record


def delete_record(db: Session, record: models.WeatherRecord) -> None:
    """DELETE record."""
    record_id = record.id
    db.delete(record)
    db.commit()
    logger.info("Deleted weather record %s", record_id)
