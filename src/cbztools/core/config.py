# cbztools/src/cbztools/core/config.py

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Upscaling defaults
    jpg_quality: int = Field(default=90, ge=1, le=100)
    model: str = Field(default="realesrgan-x4plus")
    model_scale: int = Field(default=4, ge=1)
    resize_percent: int = Field(default=50, ge=1, le=1000)
    normalize: bool = Field(default=False)

    # Real-ESRGAN installation
    model_dir: Path = Field(default=Path(".model"))
    realesrgan_release_api: str = Field(
        default="https://api.github.com/repos/xinntao/Real-ESRGAN/releases/tags/v0.2.5.0"
    )
    download_timeout: int = Field(default=60)

    log_level: str = Field(default="WARNING")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CBZTOOLS_",
        extra="ignore",
    )


# Instantiate settings
settings = Settings()
