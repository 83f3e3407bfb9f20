"""
API configuration and settings management.
"""
import os


class Config:
    """Application configuration."""

    # Database
    DB_PATH: str = os.getenv("VEHICLE_DB", "./data/vehicles.db")

    # Retention: newest vehicles kept after each scrape
    MAX_VEHICLES: int = int(os.getenv("MAX_VEHICLES", "1000"))

    # API settings
    API_TITLE: str = "Vehicle Scraper API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Scrape, search and export vehicle listings from automotive marketplaces"

    # CORS settings
    CORS_ORIGINS: list = ["*"]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: list = ["*"]
    CORS_ALLOW_HEADERS: list = ["*"]

    # Pagination defaults
    DEFAULT_API_LIMIT: int = 50
    MAX_API_LIMIT: int = 500

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: str = os.getenv("API_LOG_FILE", "api.log")

    @classmethod
    def validate(cls) -> None:
        """Validate configuration on startup."""
        if not cls.DB_PATH:
            raise ValueError("Database path not configured")
        if cls.MAX_VEHICLES < 1:
            raise ValueError(f"MAX_VEHICLES must be positive, got {cls.MAX_VEHICLES}")
        db_dir = os.path.dirname(cls.DB_PATH)
        if db_dir and cls.DB_PATH != ":memory:":
            os.makedirs(db_dir, exist_ok=True)


# Global config instance
config = Config()
