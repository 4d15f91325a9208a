"""
Configuration de l'application / Application configuration.
Utilise pydantic-settings pour charger depuis .env ou variables d'environnement.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "BusTrack"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = True

    # Database - SQLite par défaut pour le développement
    # Database - SQLite by default for development
    DATABASE_URL: str = "sqlite+aiosqlite:///./bustrack.db"

    # Stockage temps reel : "memory" (dev/tests) ou "redis" (prod)
    # Real-time store: "memory" (dev/tests) or "redis" (prod)
    REALTIME_BACKEND: str = "memory"
    REDIS_URL: str = "redis://localhost:6379/0"

    # CORS - origines autorisées / allowed origins
    CORS_ORIGINS: list[str] = ["http://localhost:5173", "http://localhost:3000", "http://localhost:8081", "http://localhost:19006"]

    # Rate Limiting
    RATE_LIMIT_GPS: str = "60/minute"
    RATE_LIMIT_ETA: str = "30/minute"
    RATE_LIMIT_SOS: str = "10/minute"
    RATE_LIMIT_DEFAULT: str = "60/minute"

    # Fenetre de suivi / Tracking window
    LOCAL_TIMEZONE: str = "UTC"
    TRACKING_WINDOW_MINUTES: int = 60

    # Paramètres par défaut / Default parameters
    DEFAULT_AVERAGE_SPEED_KMH: float = 40.0
    SOS_DEFAULT_MESSAGE: str = "Emergency SOS Alert from Driver"
    SOS_MESSAGE_MAX_LENGTH: int = 500

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
