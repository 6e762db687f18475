"""
Service configuration.

Environment variables (or .env):
- GEMINI_API_KEY: Google AI Studio key used for the Gemini calls
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Server
    port: int = 8000
    debug: bool = False

    # Google Gemini
    gemini_api_key: str = ""
    model_name: str = "gemini-2.5-flash"
    api_version: str = "v1beta"
    language_code: str = ""  # e.g. "en_US"; empty lets the model decide
    search_timeout_seconds: float = 60.0

    # Search settings
    brand_name: str = "7-Eleven"
    search_radius_km: float = 5.0

    # Default location (Ginza, Tokyo) used when the client has no position
    default_latitude: float = 35.6715
    default_longitude: float = 139.7649
    default_location_label: str = "Ginza, Tokyo"

    # Map rendering
    map_zoom: int = 15

    # In-memory sessions kept before the least recently used is dropped
    max_sessions: int = 1000

    # Placeholders for fields the model leaves empty
    store_name_placeholder: str = "7-Eleven"
    store_address_placeholder: str = "Tap the map for details"
    fallback_address_placeholder: str = "Open for directions"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    return Settings()
