"""
Free-text location parsing.

A search box accepts several kinds of input. We classify it here, without any
network calls, so the API client knows which geocoding endpoint to use:

1) Coordinates: "40.7128,-74.0060"
2) Postal codes for ten countries: "10001", "SW1A 1AA", "K1A 0B1", "10115, DE"
3) Famous landmarks: "Eiffel Tower"
4) Anything else is treated as a place name ("Austin, TX", "Paris")
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from .errors import WeatherError


COORD_PATTERN = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*,\s*(-?\d+(?:\.\d+)?)\s*$")

# Insertion order is the order countries are tried for ambiguous codes
# (e.g. "75001" is a valid US, DE, FR and IT code).
POSTAL_CODE_FORMATS: Dict[str, re.Pattern] = {
    "US": re.compile(r"^\d{5}(-\d{4})?$"),
    "GB": re.compile(r"^[A-Z]{1,2}\d[A-Z\d]? ?\d[A-Z]{2}$"),
    "IN": re.compile(r"^\d{6}$"),
    "CA": re.compile(r"^[A-Z]\d[A-Z] \d[A-Z]\d$"),
    "AU": re.compile(r"^\d{4}$"),
    "DE": re.compile(r"^\d{5}$"),
    "FR": re.compile(r"^\d{5}$"),
    "IT": re.compile(r"^\d{5}$"),
    "JP": re.compile(r"^\d{3}-\d{4}$"),
    "BR": re.compile(r"^\d{5}-\d{3}$"),
}

# "10115, DE" or "SW1A 1AA,GB"
POSTAL_WITH_COUNTRY = re.compile(r"^\s*(.+?)\s*,\s*([A-Za-z]{2})\s*$")

FAMOUS_LANDMARKS: Dict[str, Tuple[str, float, float]] = {
    "statue of liberty": ("Statue of Liberty", 40.6892, -74.0445),
    "eiffel tower": ("Eiffel Tower", 48.8584, 2.2945),
    "taj mahal": ("Taj Mahal", 27.1751, 78.0421),
    "sydney opera house": ("Sydney Opera House", -33.8568, 151.2153),
    "big ben": ("Big Ben", 51.5007, -0.1246),
    "colosseum": ("Colosseum", 41.8902, 12.4922),
    "petra": ("Petra", 30.3285, 35.4444),
    "machu picchu": ("Machu Picchu", -13.1631, -72.545),
    "great wall of china": ("Great Wall of China", 40.4319, 116.5704),
    "christ the redeemer": ("Christ the Redeemer", -22.9519, -43.2105),
}

# Letters (any script), digits, spaces, commas, periods, apostrophes and
# hyphens only ("St. John's, CA").
INVALID_NAME_CHARS = re.compile(r"[^\w\s,.'-]|_")

MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 100

COORDINATES = "coordinates"
POSTAL = "postal"
LANDMARK = "landmark"
PLACE = "place"


@dataclass(frozen=True)
class LocationQuery:
    """Classified search input."""
    kind: str
    text: str
    lat: Optional[float] = None
    lon: Optional[float] = None
    name: str = ""
    countries: Tuple[str, ...] = field(default_factory=tuple)


def match_postal_code(text: str) -> Tuple[str, Tuple[str, ...]]:
    """
    Return (normalized code, candidate countries) for a postal code,
    or ("", ()) if the text doesn't look like one.
    """
    candidate = text.strip().upper()

    explicit = POSTAL_WITH_COUNTRY.match(candidate)
    if explicit and explicit.group(2) in POSTAL_CODE_FORMATS:
        code, country = explicit.group(1), explicit.group(2)
        if POSTAL_CODE_FORMATS[country].match(code):
            return code, (country,)

    countries = tuple(cc for cc, fmt in POSTAL_CODE_FORMATS.items() if fmt.match(candidate))
    if countries:
        return candidate, countries
    return "", ()


def parse_coordinates(text: str) -> Optional[Tuple[float, float]]:
    """Parse "lat,lon" and validate the ranges. Returns None if it isn't a pair."""
    m = COORD_PATTERN.match(text)
    if not m:
        return None

    lat = float(m.group(1))
    lon = float(m.group(2))
    if not (-90.0 <= lat <= 90.0) or not (-180.0 <= lon <= 180.0):
        raise WeatherError(
            "Invalid coordinates. Latitude must be between -90 and 90, "
            "longitude between -180 and 180"
        )
    return lat, lon


def parse_location(text: str) -> LocationQuery:
    """Classify a free-text search. Raises WeatherError for unusable input."""
    raw = (text or "").strip().strip("'\"").strip()
    if not raw:
        raise WeatherError("Please enter a location")

    coords = parse_coordinates(raw)
    if coords is not None:
        return LocationQuery(kind=COORDINATES, text=raw, lat=coords[0], lon=coords[1])

    code, countries = match_postal_code(raw)
    if countries:
        return LocationQuery(kind=POSTAL, text=code, countries=countries)

    landmark = FAMOUS_LANDMARKS.get(" ".join(raw.lower().split()))
    if landmark:
        name, lat, lon = landmark
        return LocationQuery(kind=LANDMARK, text=raw, lat=lat, lon=lon, name=name)

    if INVALID_NAME_CHARS.search(raw):
        raise WeatherError("Location name contains invalid characters")
    if len(raw) < MIN_NAME_LENGTH:
        raise WeatherError("Location name is too short")
    if len(raw) > MAX_NAME_LENGTH:
        raise WeatherError("Location name is too long")

    return LocationQuery(kind=PLACE, text=raw)
