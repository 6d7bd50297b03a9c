"""
Configuration management for the school directory API.
Uses Pydantic Settings for environment variable management.
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    API_TITLE: str = "School Directory API"
    API_VERSION: str = "0.1.0"
    API_DESCRIPTION: str = "Backend API for school listings, galleries, ratings and the admin back-office"

    # CORS Configuration
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8080",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:8080",
    ]

    # Database Configuration
    # Empty means an in-memory SQLite database (local runs and tests)
    DATABASE_URL: str = ""

    # Cloudinary Configuration (object storage for school images)
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""
    STORAGE_FOLDER: str = "school-images"

    # Image set synchronization
    MAX_SCHOOL_IMAGES: int = 20
    UPLOAD_TIMEOUT_SECONDS: float = 30.0
    UPLOAD_MAX_RETRIES: int = 3

    # Shown instead of an image whose URL is missing
    PLACEHOLDER_IMAGE_URL: str = (
        "https://images.unsplash.com/photo-1580582932707-520aed937b7b"
        "?auto=format&fit=crop&w=400&q=80"
    )

    # JWT Configuration
    # SECRET_KEY should be a long random string (e.g., generated with: openssl rand -hex 32)
    JWT_SECRET_KEY: str = "your-secret-key-change-this-in-production-use-openssl-rand-hex-32"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    RESET_TOKEN_EXPIRE_MINUTES: int = 30
    # Local development only: write reset tokens to the DEBUG log when no mail relay is wired up
    LOG_RESET_TOKENS: bool = False

    # slowapi limits on login, signup and uploads
    RATE_LIMIT_ENABLED: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings


# Global settings instance
settings = Settings()
