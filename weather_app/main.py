"""
FastAPI entrypoint.

This file focuses on:
- routing
- request/response handling
- wiring together DB + clients + templates
"""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import List, Optional

from fastapi import FastAPI, Request, Depends, HTTPException, Query
from fastapi.responses import HTMLResponse, Response
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from .settings import settings
from .logging_config import configure_logging
from .db import get_db, init_db
from . import models
from .schemas import LocationDataOut, RecordCreate, RecordOut, RecordUpdate, WeatherOut
from .errors import WeatherError
from .weather_clients import OpenWeatherClient, ResolvedLocation, YouTubeClient, map_embed_url
from .crud import create_record, list_records, search_records, get_record, update_record, delete_record
from .exporters import export_records

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent

UNITS_PATTERN = "^(metric|imperial)$"
EXPORT_PATTERN = "^(json|csv|xml|markdown|md|pdf)$"

init_db()

app = FastAPI(title=settings.app_name)

app.mount("/static", StaticFiles(directory=BASE_DIR / "static"), name="static")
templates = Jinja2Templates(directory=BASE_DIR / "templates")

# API clients (constructed once).
owm = OpenWeatherClient(settings.openweather_api_key, timeout_s=settings.http_timeout_s)
yt = YouTubeClient(settings.youtube_api_key, timeout_s=settings.http_timeout_s)


def get_weather_client() -> OpenWeatherClient:
    return owm


def get_video_client() -> YouTubeClient:
    return yt


def record_to_dict(model: models.WeatherRecord) -> dict:
    """Convert ORM model -> dict for JSON/templates/export."""
    return RecordOut.model_validate(model).model_dump()


def resolved_to_dict(resolved: ResolvedLocation) -> dict:
    return {
        "name": resolved.name,
        "country": resolved.country,
        "state": resolved.state,
        "lat": resolved.lat,
        "lon": resolved.lon,
    }


async def _weather_for(owm: OpenWeatherClient, resolved: ResolvedLocation, unit: str) -> dict:
    """Current conditions + daily forecast cards (today excluded)."""
    current = await owm.current_weather(resolved.lat, resolved.lon, units=unit)
    forecast_raw = await owm.forecast_5day_3h(resolved.lat, resolved.lon, units=unit)
    forecast = owm.summarize_to_5_days(forecast_raw, skip_date=owm.local_today(forecast_raw))

    # Show the place the user searched for, not the nearest weather station.
    current["name"] = resolved.name
    return {"resolved": resolved_to_dict(resolved), "current": current, "forecast": forecast, "unit": unit}


def _http_error(e: WeatherError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=str(e))


# -------------------------
# UI routes
# -------------------------

@app.get("/", response_class=HTMLResponse)
async def home(request: Request):
    """Landing page with search + geolocation."""
    return templates.TemplateResponse(
        request,
        "index.html",
        {"app_name": settings.app_name, "unit": settings.default_units},
    )


@app.get("/results", response_class=HTMLResponse)
async def results_page(
    request: Request,
    q: str = Query(..., min_length=1, max_length=255),
    unit: Optional[str] = Query(None, pattern=UNITS_PATTERN),
    owm: OpenWeatherClient = Depends(get_weather_client),
    yt: YouTubeClient = Depends(get_video_client),
):
    """
    Server-rendered weather result page.
    - resolve location -> lat/lon
    - current weather
    - 5-day forecast summarized to daily cards
    - map embed + travel videos
    """
    unit = unit or settings.default_units
    try:
        resolved = await owm.geocode(q)
        weather = await _weather_for(owm, resolved, unit)
    except WeatherError as e:
        logger.info("Search for %r failed: %s", q, e)
        return templates.TemplateResponse(
            request,
            "results.html",
            {"app_name": settings.app_name, "error": str(e), "q": q, "unit": unit},
            status_code=e.status_code,
        )

    videos = await yt.search_videos(resolved.name)
    return templates.TemplateResponse(
        request,
        "results.html",
        {
            "app_name": settings.app_name,
            "q": q,
            "unit": unit,
            "resolved": resolved,
            "current": weather["current"],
            "five_day": weather["forecast"],
            "map_url": map_embed_url(resolved.lat, resolved.lon),
            "videos": videos,
            "youtube_url": yt.search_url(resolved.label),
        },
    )


@app.get("/records", response_class=HTMLResponse)
async def records_page(request: Request, db: Session = Depends(get_db)):
    """List saved records with create/edit/delete and export controls."""
    records = [record_to_dict(r) for r in list_records(db)]
    return templates.TemplateResponse(
        request,
        "records.html",
        {
            "app_name": settings.app_name,
            "records": records,
            "today": date.today().isoformat(),
            "max_range_days": settings.max_range_days,
        },
    )


@app.get("/records/{record_id}", response_class=HTMLResponse)
async def record_detail_page(request: Request, record_id: int, db: Session = Depends(get_db)):
    """Show one record."""
    r = get_record(db, record_id)
    if not r:
        raise HTTPException(status_code=404, detail="Record not found")
    return templates.TemplateResponse(
        request,
        "record_detail.html",
        {
            "app_name": settings.app_name,
            "record": record_to_dict(r),
            "map_url": map_embed_url(r.latitude, r.longitude),
        },
    )


# -------------------------
# Weather APIs
# -------------------------

@app.get("/api/weather", response_model=WeatherOut)
async def api_weather(
    location: str = Query(..., min_length=1, max_length=255),
    unit: Optional[str] = Query(None, pattern=UNITS_PATTERN),
    owm: OpenWeatherClient = Depends(get_weather_client),
):
    """
    Location-based weather:
    - current weather
    - 5-day forecast (one card per day, today excluded)
    - icon codes returned by OpenWeather
    """
    try:
        resolved = await owm.geocode(location)
        return await _weather_for(owm, resolved, unit or settings.default_units)
    except WeatherError as e:
        raise _http_error(e) from e


@app.get("/api/weather/by-coords", response_model=WeatherOut)
async def api_weather_by_coords(
    lat: float,
    lon: float,
    unit: Optional[str] = Query(None, pattern=UNITS_PATTERN),
    owm: OpenWeatherClient = Depends(get_weather_client),
):
    """
    Current-location weather:
    - browser provides coords via Geolocation API
    - server returns current + 5-day forecast
    """
    try:
        resolved = await owm.geocode(f"{lat:.6f},{lon:.6f}")
        return await _weather_for(owm, resolved, unit or settings.default_units)
    except WeatherError as e:
        raise _http_error(e) from e


@app.get("/api/location-data", response_model=LocationDataOut)
async def api_location_data(
    location: str = Query(..., min_length=1, max_length=255),
    owm: OpenWeatherClient = Depends(get_weather_client),
    yt: YouTubeClient = Depends(get_video_client),
):
    """Map coordinates and travel videos for a location."""
    try:
        resolved = await owm.geocode(location)
    except WeatherError as e:
        raise _http_error(e) from e

    return {
        "maps": {
            "location": f"{resolved.lat},{resolved.lon}",
            "embed_url": map_embed_url(resolved.lat, resolved.lon),
        },
        "youtube": await yt.search_videos(location),
        "youtube_url": yt.search_url(resolved.label),
    }


# -------------------------
# Weather record CRUD APIs
# -------------------------

@app.post("/api/records", response_model=RecordOut)
async def api_create_record(
    payload: RecordCreate,
    db: Session = Depends(get_db),
    owm: OpenWeatherClient = Depends(get_weather_client),
):
    """Create a stored date-range record."""
    try:
        rec = await create_record(db, payload, owm)
        return record_to_dict(rec)
    except WeatherError as e:
        raise _http_error(e) from e


@app.get("/api/records", response_model=List[RecordOut])
def api_list_records(
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """List records with pagination."""
    recs = list_records(db, limit=limit, offset=offset)
    return [record_to_dict(r) for r in recs]


# -------------------------
# Export endpoint
# -------------------------

@app.get("/api/records/export")
def api_export_records(
    format: str = Query("json", pattern=EXPORT_PATTERN),
    location: Optional[str] = Query(None, max_length=255),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    """Export (optionally filtered) records to JSON/CSV/XML/Markdown/PDF."""
    recs = [
        record_to_dict(r)
        for r in search_records(db, location=location, start=start_date, end=end_date, limit=settings.export_limit)
    ]
    if not recs:
        raise HTTPException(status_code=404, detail="No records found to export")

    content, media_type, filename = export_records(recs, format)
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.get("/api/records/{record_id}", response_model=RecordOut)
def api_get_record(record_id: int, db: Session = Depends(get_db)):
    """Fetch a single record."""
    r = get_record(db, record_id)
    if not r:
        raise HTTPException(status_code=404, detail="Record not found")
    return record_to_dict(r)


@app.put("/api/records/{record_id}", response_model=RecordOut)
async def api_update_record(
    record_id: int,
    payload: RecordUpdate,
    db: Session = Depends(get_db),
    owm: OpenWeatherClient = Depends(get_weather_client),
):
    """Update location/date range, re-average the forecast, and persist."""
    r = get_record(db, record_id)
    if not r:
        raise HTTPException(status_code=404, detail="Record not found")
    try:
        updated = await update_record(db, r, payload, owm)
        return record_to_dict(updated)
    except WeatherError as e:
        raise _http_error(e) from e


@app.delete("/api/records/{record_id}")
def api_delete_record(record_id: int, db: Session = Depends(get_db)):
    """Delete a record."""
    r = get_record(db, record_id)
    if not r:
        raise HTTPException(status_code=404, detail="Record not found")
    delete_record(db, r)
    return {"ok": True, "message": "Record deleted successfully"}
