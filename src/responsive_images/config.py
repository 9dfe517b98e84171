"""Settings for the responsive images middleware.

Values are read from ``RESPONSIVE_IMAGES_*`` environment variables (list
values as JSON) or passed explicitly. The model is frozen and normalised once
at startup: file types are lower-cased without a leading dot and the
breakpoint ladder is sorted ascending, so request handling never has to
touch or re-sort configuration.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


DEFAULT_BREAKPOINTS = (
    320, 480, 640, 800, 1024, 1280, 1366, 1440, 1600, 1920, 2048, 2560, 3440, 4096,
)


class ScaleBy(str, Enum):
    """Sizing strategy applied when no direct width was requested."""

    BREAKPOINT = "breakpoint"
    VIEWPORT = "viewport"


def _normalise_file_type(value: str) -> str:
    return value.strip().lstrip(".").lower()


class ResponsiveImagesSettings(BaseSettings):
    """Immutable configuration snapshot consumed by the engine."""

    model_config = SettingsConfigDict(env_prefix="RESPONSIVE_IMAGES_", frozen=True)

    static_dir: Path = Field(
        default=Path("."),
        description="Filesystem root that request paths are resolved against.",
    )
    watched_directories: tuple[str, ...] = Field(
        default=("/images",),
        description="Directory patterns eligible for resizing; '*' matches one segment or more.",
    )
    file_types: tuple[str, ...] = Field(
        default=("webp", "jpg", "jpeg", "png", "gif"),
        description="Extensions handled by the middleware.",
    )
    file_type_conversion: str = Field(
        default="",
        description="Global conversion target, empty to keep the origin format.",
    )
    cache_suffix: str = Field(
        default="-cache",
        min_length=1,
        description="Suffix appended to the origin directory to form the cache directory.",
    )
    cookie_name: str = Field(
        default="screen",
        min_length=1,
        description="Cookie carrying '<density>,<width>' of the client viewport.",
    )
    scale_by: ScaleBy = Field(
        default=ScaleBy.BREAKPOINT,
        description="Sizing strategy used when the width is not requested directly.",
    )
    breakpoints: tuple[int, ...] = Field(
        default=DEFAULT_BREAKPOINTS,
        description="Width ladder used by the breakpoint strategy.",
    )
    direct_scaling: bool = Field(
        default=False,
        description="Allow clients to request an explicit width via query parameter.",
    )
    direct_scaling_param: str = Field(
        default="w",
        min_length=1,
        description="Query key carrying the explicit width.",
    )
    direct_scale_sizes: tuple[int, ...] = Field(
        default=(),
        description="Allowed explicit widths; empty means unrestricted.",
    )
    convertible_file_types: tuple[str, ...] = Field(
        default=(),
        description="Formats clients may request via the conversion query parameter.",
    )
    convertible_param: str = Field(
        default="as",
        min_length=1,
        description="Query key carrying the requested output format.",
    )
    save_with_metadata: bool = Field(
        default=True,
        description="Keep EXIF and ICC metadata in generated variants.",
    )
    ignore_cookie_error_method: int = Field(
        default=0,
        ge=0,
        le=1,
        description="1 lets direct-width requests proceed without a sizing cookie.",
    )
    animated: bool = Field(
        default=False,
        description="Resize every frame of multi-page images instead of the first one.",
    )
    transform_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Upper bound for a single resize/encode operation.",
    )
    debug: bool = Field(
        default=False,
        description="Emit DEBUG level engine logs.",
    )

    @field_validator("file_types", "convertible_file_types")
    @classmethod
    def _normalise_types(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        normalised = tuple(_normalise_file_type(item) for item in value)
        if any(not item for item in normalised):
            raise ValueError("file types must not be empty")
        return normalised

    @field_validator("file_type_conversion")
    @classmethod
    def _normalise_conversion(cls, value: str) -> str:
        return _normalise_file_type(value)

    @field_validator("breakpoints")
    @classmethod
    def _sort_breakpoints(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        if any(item < 1 for item in value):
            raise ValueError("breakpoints must be positive integers")
        return tuple(sorted(set(value)))

    @field_validator("direct_scale_sizes")
    @classmethod
    def _check_sizes(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        if any(item < 1 for item in value):
            raise ValueError("direct scale sizes must be positive integers")
        return value

    @field_validator("watched_directories")
    @classmethod
    def _check_directories(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        for item in value:
            if not item.startswith("/"):
                raise ValueError(f"watched directory '{item}' must start with '/'")
        return tuple(item.rstrip("/") or "/" for item in value)

    @property
    def static_root(self) -> Path:
        return self.static_dir.resolve()


def load_settings(**overrides: Any) -> ResponsiveImagesSettings:
    """Build settings from the environment plus ``overrides``.

    Raises:
        ConfigurationError: If any value fails validation.
    """

    try:
        return ResponsiveImagesSettings(**overrides)
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc


__all__ = ["DEFAULT_BREAKPOINTS", "ResponsiveImagesSettings", "ScaleBy", "load_settings"]
