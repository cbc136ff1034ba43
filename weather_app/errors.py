"""
Exceptions raised by location resolution, API clients and CRUD.

Routes translate these into HTTP responses using `status_code`.
"""


class WeatherError(RuntimeError):
    """Raised for user-facing weather lookup failures."""
    status_code = 400


class LocationNotFoundError(WeatherError):
    """Geocoding returned no match for the user's input."""
    status_code = 404


class UpstreamError(WeatherError):
    """A third-party API failed or could not be reached."""
    status_code = 502


class ConfigurationError(WeatherError):
    """The server is missing something it needs (usually an API key)."""
    status_code = 500
