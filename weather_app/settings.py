from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized configuration.

    Loaded from:
    - environment variables
    - .env file (if present)
    """
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # API keys. A missing OpenWeather key surfaces as a 500 on the first lookup;
    # a missing YouTube key just hides the video panel.
    openweather_api_key: str = ""
    youtube_api_key: str = ""

    app_name: str = "Weather Desk"

    # SQLite file path (simple local persistence)
    sqlite_path: str = "weather_app.sqlite3"

    # "metric" (Celsius, m/s) or "imperial" (Fahrenheit, mph)
    default_units: str = "metric"

    http_timeout_s: float = 10.0

    # Records are backed by the 5-day forecast, so longer ranges can't be filled.
    max_range_days: int = 5

    export_limit: int = 1000

    log_level: str = "INFO"


settings = Settings()
