"""Responsive images middleware.

Requests for watched image directories are rewritten to device-sized
variants that are generated on first access and cached next to the origin
(``/images/photo.jpg`` → ``/images-cache/640/photo.jpg``). Everything else
reaches the static file server untouched.
"""

from .config import ResponsiveImagesSettings, load_settings
from .engine.pipeline import ResponsiveImageEngine
from .middleware import ResponsiveImagesMiddleware

__all__ = [
    "ResponsiveImageEngine",
    "ResponsiveImagesMiddleware",
    "ResponsiveImagesSettings",
    "load_settings",
]
