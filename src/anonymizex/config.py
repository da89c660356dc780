"""Environment-based configuration for AnonymizeX."""

from __future__ import annotations

from typing import Literal, Self

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from anonymizex.export import DEFAULT_EXPORT_FILENAME
from anonymizex.imaging.compositor import BlurConfig
from anonymizex.imaging.shape_mask import ShapeKind


class Settings(BaseSettings):
    """Application settings loaded from ANONYMIZEX_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ANONYMIZEX_",
        case_sensitive=False,
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Concurrency
    max_concurrent: int = Field(default=2, ge=1)

    # Input limits
    max_image_pixels: int = Field(default=16_777_216, ge=1)
    max_file_size: int = Field(default=209_715_200, ge=1)
    max_regions: int = Field(default=50, ge=1)
    max_blur_radius: float = Field(default=200, gt=0, allow_inf_nan=False)
    max_blur_passes: int = Field(default=10, ge=1)

    # Default anonymization options
    blur_radius: float = Field(default=40, gt=0, allow_inf_nan=False)
    padding: float = Field(default=20, ge=0, allow_inf_nan=False)
    shape: ShapeKind = ShapeKind.ELLIPSE
    blur_passes: int = Field(default=3, ge=1)

    # Export
    default_filename: str = DEFAULT_EXPORT_FILENAME

    @model_validator(mode="after")
    def _defaults_within_limits(self) -> Self:
        if self.blur_radius > self.max_blur_radius:
            raise ValueError(f"blur_radius {self.blur_radius} exceeds max_blur_radius {self.max_blur_radius}")
        if self.blur_passes > self.max_blur_passes:
            raise ValueError(f"blur_passes {self.blur_passes} exceeds max_blur_passes {self.max_blur_passes}")
        return self

    def blur_config(self) -> BlurConfig:
        """Default per-run options built from these settings."""
        return BlurConfig(
            blur_radius=self.blur_radius,
            padding=self.padding,
            shape=self.shape,
            blur_passes=self.blur_passes,
        )


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()
