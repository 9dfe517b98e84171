"""Error taxonomy for the image resolution engine.

Every per-request failure is a subclass of :class:`ResponsiveImageError`.
The pipeline catches them in a single place and forwards the original,
unmodified request; callers outside the engine never see these errors.
:class:`ConfigurationError` is the exception: it is raised while loading
settings and stops the application before it serves anything.
"""

from __future__ import annotations

__all__ = [
    "ResponsiveImageError",
    "NotEligibleError",
    "SignalMissingError",
    "RejectedByPolicyError",
    "TransformFailureError",
    "FilesystemFailureError",
    "ImageBackendError",
    "ConfigurationError",
]


class ResponsiveImageError(Exception):
    """Base class for per-request engine failures."""

    event = "images.request.rejected"


class NotEligibleError(ResponsiveImageError):
    """Raised when the request path or file type is not watched."""

    event = "images.classify.not_eligible"


class SignalMissingError(ResponsiveImageError):
    """Raised when no sizing signal can be resolved for the request."""

    event = "images.scaling.signal_missing"


class RejectedByPolicyError(ResponsiveImageError):
    """Raised when configuration forbids serving a variant."""

    event = "images.scaling.rejected"


class TransformFailureError(ResponsiveImageError):
    """Raised when the image backend fails or exceeds its time budget."""

    event = "images.materialize.transform_failed"


class FilesystemFailureError(ResponsiveImageError):
    """Raised when the cache tree cannot be prepared or written."""

    event = "images.materialize.filesystem_failed"


class ImageBackendError(Exception):
    """Raised by image backends for unreadable sources or failed encodes."""


class ConfigurationError(ValueError):
    """Raised when settings fail validation at startup."""
