"""Generate variants on disk through the image backend.

Builds are single-flight per cache path: while one coroutine renders a
variant, concurrent requests for the same path wait for that build instead of
starting their own. Rendering writes to a temporary file inside the cache
directory which is renamed onto the final path only after the backend
finished, so readers never observe a partially written variant.
"""

from __future__ import annotations

import asyncio
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from ..domain.models import CacheLocator, CacheState, ImageMetadata, ScalingDecision
from ..exceptions import (
    FilesystemFailureError,
    ImageBackendError,
    ResponsiveImageError,
    TransformFailureError,
)
from ..imaging.imaging_base import ImageBackend
from .coherency import check_cache_state, invalidate


logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class _Flight:
    done: asyncio.Event = field(default_factory=asyncio.Event)
    error: ResponsiveImageError | None = None


class ArtifactMaterializer:
    """Render variants with at most one concurrent build per cache path."""

    def __init__(
        self,
        backend: ImageBackend,
        *,
        preserve_metadata: bool = True,
        animated: bool = False,
        timeout_seconds: float = 30.0,
    ) -> None:
        self.backend = backend
        self.preserve_metadata = preserve_metadata
        self.animated = animated
        self.timeout_seconds = timeout_seconds
        self._in_flight: dict[Path, _Flight] = {}

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    async def materialize(
        self,
        origin_path: Path,
        locator: CacheLocator,
        decision: ScalingDecision,
        metadata: ImageMetadata,
    ) -> None:
        """Ensure a fresh variant exists at ``locator.file_path``.

        Raises:
            FilesystemFailureError: If the cache tree cannot be written.
            TransformFailureError: If the backend fails or times out.
        """

        key = locator.file_path
        flight = self._in_flight.get(key)
        if flight is not None:
            logger.debug("images.materialize.joined", path=str(key))
            await flight.done.wait()
            if flight.error is not None:
                raise flight.error
            return

        flight = _Flight()
        self._in_flight[key] = flight
        try:
            await self._build(origin_path, locator, decision, metadata)
        except ResponsiveImageError as exc:
            flight.error = exc
            raise
        except BaseException:
            flight.error = TransformFailureError(f"build of '{key}' was abandoned")
            raise
        finally:
            del self._in_flight[key]
            flight.done.set()

    async def _build(
        self,
        origin_path: Path,
        locator: CacheLocator,
        decision: ScalingDecision,
        metadata: ImageMetadata,
    ) -> None:
        state = check_cache_state(origin_path, locator.file_path)
        if state is CacheState.FRESH:
            return
        if state is CacheState.STALE:
            invalidate(locator.file_path)

        try:
            locator.directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FilesystemFailureError(
                f"failed to create cache directory '{locator.directory}': {exc}"
            ) from exc

        try:
            await asyncio.wait_for(
                asyncio.to_thread(self._render, origin_path, locator, decision, metadata),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise TransformFailureError(
                f"rendering '{locator.file_path}' exceeded {self.timeout_seconds}s"
            ) from exc
        except ImageBackendError as exc:
            raise TransformFailureError(str(exc)) from exc

        logger.info(
            "images.materialize.created",
            path=str(locator.file_path),
            width=decision.width,
            strategy=decision.strategy.value,
        )

    def _render(
        self,
        origin_path: Path,
        locator: CacheLocator,
        decision: ScalingDecision,
        metadata: ImageMetadata,
    ) -> None:
        try:
            fd, raw_path = tempfile.mkstemp(
                dir=locator.directory,
                prefix=f".{locator.file_path.name}.",
                suffix=".tmp",
            )
            os.close(fd)
        except OSError as exc:
            raise FilesystemFailureError(f"cannot write into '{locator.directory}': {exc}") from exc

        temp_path = Path(raw_path)
        try:
            self.backend.transform(
                origin_path,
                temp_path,
                width=decision.width,
                target_format=decision.target_format,
                preserve_metadata=self.preserve_metadata,
                animated=self.animated and metadata.is_animated,
            )
            os.replace(temp_path, locator.file_path)
        except OSError as exc:
            temp_path.unlink(missing_ok=True)
            raise FilesystemFailureError(
                f"cannot move variant into '{locator.file_path}': {exc}"
            ) from exc
        except BaseException:
            temp_path.unlink(missing_ok=True)
            raise


__all__ = ["ArtifactMaterializer"]
