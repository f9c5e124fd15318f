"""
Configuration for public-api-diff.

Values are read from environment variables (optionally from a `.env` file)
via pydantic-settings; command line flags override them.

Environment variables:
    PUBLIC_API_DIFF_WORKING_DIRECTORY    (path, default ".public-api-diff")  where sources are checked out
    PUBLIC_API_DIFF_BUILD_CONFIGURATION  (str, default "Debug")
    PUBLIC_API_DIFF_PLATFORM             (str, default "maccatalyst")        products directory suffix
    PUBLIC_API_DIFF_DESTINATION          (str, default Mac Catalyst)         xcodebuild -destination
    PUBLIC_API_DIFF_DERIVED_DATA_PATH    (str, default ".build")
    PUBLIC_API_DIFF_MAX_WORKERS          (int, optional)                     per-target diff pool size
    PUBLIC_API_DIFF_LOG_LEVEL            (str, default "INFO")
    PUBLIC_API_DIFF_LOG_FORMAT           ("console" | "json", default "console")
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Build and runtime settings shared by the pipeline components."""

    model_config = SettingsConfigDict(
        env_prefix="PUBLIC_API_DIFF_",
        env_file=".env",
        extra="ignore",
    )

    working_directory: Path = Path(".public-api-diff")
    build_configuration: str = "Debug"
    platform: str = "maccatalyst"
    destination: str = "platform=macOS,variant=Mac Catalyst"
    derived_data_path: str = ".build"
    max_workers: int | None = Field(default=None, ge=1)
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.strip().upper()

    @property
    def products_subpath(self) -> Path:
        """Build products directory relative to a project root."""
        return Path(self.derived_data_path) / "Build" / "Products" / f"{self.build_configuration}-{self.platform}"

    @property
    def diff_workers(self) -> int:
        return self.max_workers or os.cpu_count() or 1


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings accessor."""
    return Settings()


__all__ = ["Settings", "get_settings"]
