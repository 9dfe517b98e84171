"""Domain values shared by the engine stages."""

from .models import (
    CacheLocator,
    CacheState,
    DeviceSignal,
    ImageMetadata,
    RequestContext,
    ScaleStrategy,
    ScalingDecision,
    WatchRule,
)

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
