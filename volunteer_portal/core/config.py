"""
Configuration settings for the application
"""

import os
from typing import List
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application settings"""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./volunteer_portal.db")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # CORS
    ALLOW_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
    ]

    # File limits
    MAX_UPLOAD_SIZE: int = 5 * 1024 * 1024  # 5MB

    # Rate limiting (FAQ chat)
    RATE_LIMIT_PER_MINUTE: int = 20

    # Outbound HTTP
    HTTP_TIMEOUT_SECONDS: float = 10.0

    # Ship24 package tracking
    SHIP24_API_KEY: str | None = os.getenv("SHIP24_API_KEY")
    SHIP24_API_BASE: str = os.getenv("SHIP24_API_BASE", "https://api.ship24.com/public/v1")
    SHIP24_WEBHOOK_SECRET: str | None = os.getenv("SHIP24_WEBHOOK_SECRET")

    # FAQ chat
    OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY")
    OPENAI_BASE_URL: str | None = os.getenv("OPENAI_BASE_URL")
    EMBEDDING_MODEL: str = "text-embedding-3-small"
    CHAT_MODEL: str = "gpt-4o-mini"
    CHAT_MAX_TOKENS: int = 500
    FAQ_PDF_PATH: str = os.getenv("FAQ_PDF_PATH", "content/faq.pdf")

    # Geocoding (Nominatim) and weather (Open-Meteo)
    NOMINATIM_URL: str = "https://nominatim.openstreetmap.org/search"
    NOMINATIM_USER_AGENT: str = "PAPAVolunteerApp/1.0 (https://www.asianpilots.org)"
    GEOCODE_CACHE_SECONDS: int = 86400
    OPEN_METEO_URL: str = "https://api.open-meteo.com/v1/forecast"
    WEATHER_CACHE_SECONDS: int = 900
    WEATHER_TIMEZONE: str = "America/New_York"

    class Config:
        env_file = ".env"

settings = Settings()
