"""
Configuration management for the admin console service.
Uses Pydantic Settings for environment variable management.
"""
from pydantic_settings import BaseSettings
from typing import List, Literal


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    API_TITLE: str = "CMS Admin Console"
    API_VERSION: str = "0.1.0"
    API_DESCRIPTION: str = "Admin console for events, press releases, sliders and videos"

    # CORS Configuration
    # Origins the console frontend is served from
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:3002",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:3002",
    ]

    # Remote CMS API
    # Injected into the shared HTTP client at startup, never read per request
    CMS_API_URL: str = "http://localhost:3002/api"
    CMS_API_TIMEOUT: float = 30.0

    # Media uploads for photo events
    # "cloudinary" uploads directly, "api" posts each file to the CMS upload endpoint,
    # "inline" sends the files inside the create request as repeated multipart fields
    MEDIA_BACKEND: Literal["cloudinary", "api", "inline"] = "api"
    MEDIA_UPLOAD_PATH: str = "/upload"
    MEDIA_FOLDER: str = "events"
    MAX_UPLOAD_MB: int = 10

    # Cloudinary Configuration
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""

    # Slider ordering
    # "pairwise" writes both swapped sliders, "batch" sends one reorder request
    SLIDER_REORDER_MODE: Literal["pairwise", "batch"] = "pairwise"

    # Admin Password
    # Should be bcrypt hashed password (see generate_password_hash.py)
    ADMIN_PASSWORD_HASH: str = ""

    # JWT Configuration
    # SECRET_KEY should be a long random string (e.g., generated with: openssl rand -hex 32)
    JWT_SECRET_KEY: str = "your-secret-key-change-this-in-production-use-openssl-rand-hex-32"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings


# Global settings instance
settings = Settings()
