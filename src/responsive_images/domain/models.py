"""Value objects flowing through the resolution pipeline.

Every stage receives immutable values and produces new ones; nothing here is
mutated after construction. ``RequestContext`` is built once per request by
the classifier, ``ScalingDecision`` by the scaling resolver and
``CacheLocator`` by the cache path builder.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class ScaleStrategy(str, Enum):
    """How the final width of a variant was chosen."""

    DIRECT = "direct"
    VIEWPORT = "viewport"
    BREAKPOINT = "breakpoint"


class CacheState(str, Enum):
    """Validity of a cached variant compared to its origin."""

    MISSING = "missing"
    FRESH = "fresh"
    STALE = "stale"


@dataclass(frozen=True, slots=True)
class WatchRule:
    """Directory pattern eligible for resizing, compiled once at startup."""

    pattern: str
    regex: re.Pattern[str]

    def matches(self, directory: str) -> bool:
        return self.regex.fullmatch(directory) is not None


@dataclass(frozen=True, slots=True)
class DeviceSignal:
    """Device pixel ratio and logical viewport width sent by the client."""

    density: float
    width: float


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Everything the engine needs to know about one image request."""

    url_path: str
    origin_path: Path
    base_name: str
    extension: str
    query_width: int | None = None
    query_format: str | None = None
    signal: DeviceSignal | None = None
    accepts_webp: bool = False

    @property
    def directory(self) -> str:
        """URL directory of the requested file, without trailing slash."""

        head, _, _ = self.url_path.rpartition("/")
        return head or "/"

    @property
    def file_type(self) -> str:
        return self.extension.lstrip(".").lower()


@dataclass(frozen=True, slots=True)
class ImageMetadata:
    """Intrinsic properties of an origin image."""

    width: int
    height: int
    page_count: int = 1

    @property
    def is_animated(self) -> bool:
        return self.page_count > 1


@dataclass(frozen=True, slots=True)
class ScalingDecision:
    """Target width and encoding selected for a request."""

    width: int
    strategy: ScaleStrategy
    extension: str
    conversion_only: bool = False

    @property
    def target_format(self) -> str:
        return self.extension.lstrip(".").lower()


@dataclass(frozen=True, slots=True)
class CacheLocator:
    """Where a variant lives on disk and under which URL it is served."""

    directory: Path
    file_path: Path
    rewrite_path: str


__all__ = [
    "CacheLocator",
    "CacheState",
    "DeviceSignal",
    "ImageMetadata",
    "RequestContext",
    "ScaleStrategy",
    "ScalingDecision",
    "WatchRule",
]
