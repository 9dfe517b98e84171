"""Abstract image capability consumed by the engine.

The engine never decodes pixels itself. It asks a backend for the intrinsic
size of an origin and for a resized/re-encoded copy written to a given
destination. Implementations are synchronous and are run in worker threads by
the materializer; they report every failure as
:class:`~src.responsive_images.exceptions.ImageBackendError`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from ..domain.models import ImageMetadata


class ImageBackend(ABC):
    """Decode, resize and encode images on behalf of the engine."""

    @abstractmethod
    def read_metadata(self, path: Path) -> ImageMetadata:
        """Return width, height and page count of ``path``."""

    @abstractmethod
    def transform(
        self,
        source: Path,
        destination: Path,
        *,
        width: int,
        target_format: str,
        preserve_metadata: bool,
        animated: bool,
    ) -> None:
        """Write ``source`` scaled to ``width`` as ``target_format`` to ``destination``.

        ``target_format`` is a lower-case extension without dot (``"webp"``).
        The height follows the aspect ratio of the source.
        """


__all__ = ["ImageBackend"]
