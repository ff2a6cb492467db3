from datetime import timedelta
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def choose_env_file() -> str:
    return ".env.local" if Path(".env.local").exists() else ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=choose_env_file(),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # tolerate unrelated env vars
    )

    # Content and output
    CONTENT_DIR: str = "src/content/blog"
    PUBLIC_DIR: str = "public"
    OUTPUT_DIR: str = "dist"

    # Site
    SITE_URL: str = "http://localhost:4321"
    SITE_TITLE: str = "PaperBlog"
    SITE_DESCRIPTION: str = "A minimal, accessible and SEO-friendly blog."
    SITE_AUTHOR: str = ""
    SITE_LANG: str = "en"
    TIMEZONE: str = "UTC"

    # Listing
    POSTS_PER_INDEX: int = 4
    POSTS_PER_PAGE: int = 3
    SCHEDULED_POST_MARGIN_MINUTES: int = 15
    SHOW_ARCHIVES: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"

    # Servers
    DEV_HOST: str = "127.0.0.1"
    DEV_PORT: int = 4321
    PREVIEW_PORT: int = 4322

    @field_validator("TIMEZONE")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown timezone {value!r}") from e
        return value

    @property
    def content_path(self) -> Path:
        return Path(self.CONTENT_DIR)

    @property
    def public_path(self) -> Path:
        return Path(self.PUBLIC_DIR)

    @property
    def output_path(self) -> Path:
        return Path(self.OUTPUT_DIR)

    @property
    def site_base_url(self) -> str:
        return self.SITE_URL.rstrip("/")

    @property
    def scheduled_margin(self) -> timedelta:
        return timedelta(minutes=self.SCHEDULED_POST_MARGIN_MINUTES)


# Global settings instance (evaluated at import, but reads env on construction)
settings = Settings()
