"""Application configuration using pydantic-settings."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    FIREBASE_CREDENTIALS: str = ""
    FIREBASE_STORAGE_BUCKET: str = ""
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:8080"
    RATE_LIMIT: str = "100/minute"
    DEBUG: bool = False

    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    MAX_PHOTO_SIZE_MB: int = 5
    MAX_VIDEO_SIZE_MB: int = 50
    PRESIGNED_URL_TTL: int = 3600
    MEDIA_BASE_URL: str = "http://localhost:8000/media"

    @property
    def allowed_origins_list(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
