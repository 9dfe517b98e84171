"""Image backends consumed by the resolution engine."""

from .imaging_base import ImageBackend
from .imaging_pillow import PillowImageBackend

__all__ = ["ImageBackend", "PillowImageBackend"]
