"""
Configuration settings for the application.
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()


# bcrypt only hashes the first 72 bytes and newer releases reject longer input
BCRYPT_MAX_PASSWORD_BYTES = 72


def _parse_int_list(raw: str) -> tuple[int, ...]:
    return tuple(int(part) for part in raw.split(",") if part.strip())


class Settings:
    """Application settings loaded from environment variables."""

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Redis settings (product, category, settings and job records)
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    REDIS_KEY_PREFIX: str = os.getenv("REDIS_KEY_PREFIX", "storefront:")
    ICON_JOB_TTL_SECONDS: int = int(os.getenv("ICON_JOB_TTL_SECONDS", "86400"))

    # Object storage (Supabase Storage REST API)
    STORAGE_URL: str | None = os.getenv("STORAGE_URL")
    STORAGE_SERVICE_KEY: str | None = os.getenv("STORAGE_SERVICE_KEY")
    STORAGE_TIMEOUT_SECONDS: float = float(os.getenv("STORAGE_TIMEOUT_SECONDS", "30"))
    STORAGE_RETRIES: int = int(os.getenv("STORAGE_RETRIES", "3"))
    STORAGE_CACHE_CONTROL: str = os.getenv("STORAGE_CACHE_CONTROL", "3600")
    MEDIA_BUCKET: str = os.getenv("MEDIA_BUCKET", "media")
    STATIC_BUCKET: str = os.getenv("STATIC_BUCKET", "static")

    # PWA icon generation
    PWA_ICON_SIZES: str = os.getenv("PWA_ICON_SIZES", "72,96,128,144,152,192,384,512")
    PWA_MASKABLE_PADDING: float = float(os.getenv("PWA_MASKABLE_PADDING", "0.1"))
    PWA_ICON_FOLDER: str = os.getenv("PWA_ICON_FOLDER", "pwa")
    WEBP_QUALITY: int = int(os.getenv("WEBP_QUALITY", "90"))

    # Storefront presentation
    PLACEHOLDER_IMAGE_URL: str = os.getenv("PLACEHOLDER_IMAGE_URL", "/placeholder.svg")
    MINIMUM_AGE: int = int(os.getenv("MINIMUM_AGE", "21"))

    # Gate passwords, hashed into the settings record on first load
    STOREFRONT_PASSWORD: str | None = os.getenv("STOREFRONT_PASSWORD")
    ADMIN_PASSWORD: str | None = os.getenv("ADMIN_PASSWORD")
    BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "12"))

    @property
    def is_production(self) -> bool:
        """
        Check if running in production environment.
        """
        return self.ENVIRONMENT.lower() == "production"

    @property
    def storage_configured(self) -> bool:
        """Return True when an object storage client can be initialized."""
        return bool(self.STORAGE_URL and self.STORAGE_SERVICE_KEY)

    @property
    def icon_sizes(self) -> tuple[int, ...]:
        """Square pixel sizes generated for the PWA icon set."""
        return _parse_int_list(self.PWA_ICON_SIZES)

    def __init__(self):
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        logging.basicConfig(level=self.log_level)
        self.logger = logging.getLogger(__name__)

        self.logger.debug(
            f"Config initialized with environment={self.ENVIRONMENT}, "
            f"log_level={self.log_level}"
        )
        self._check_seed_passwords()

    def _check_seed_passwords(self) -> None:
        for name in ("STOREFRONT_PASSWORD", "ADMIN_PASSWORD"):
            value = getattr(self, name)
            if value and len(value.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
                raise ValueError(
                    f"{name} must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes"
                )


# Create a global settings instance for import
settings = Settings()
