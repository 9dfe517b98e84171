"""Request pipeline tying the engine stages together."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Mapping

import structlog

from ..config import ResponsiveImagesSettings
from ..domain.models import CacheState, ImageMetadata
from ..exceptions import (
    FilesystemFailureError,
    ImageBackendError,
    NotEligibleError,
    RejectedByPolicyError,
    ResponsiveImageError,
    SignalMissingError,
    TransformFailureError,
)
from ..imaging.imaging_base import ImageBackend
from ..imaging.imaging_pillow import PillowImageBackend
from .cache_paths import build_cache_locator
from .classifier import RequestClassifier
from .coherency import check_cache_state
from .materializer import ArtifactMaterializer
from .scaling import ScalingResolver, read_request_signals


logger = structlog.get_logger(__name__)

_LOG_LEVELS: dict[type[ResponsiveImageError], str] = {
    NotEligibleError: "debug",
    SignalMissingError: "warning",
    RejectedByPolicyError: "info",
    TransformFailureError: "error",
    FilesystemFailureError: "error",
}


class ResponsiveImageEngine:
    """Decide which path serves an image request, generating it if needed.

    :meth:`resolve` returns the rewritten URL path of a cached variant, or
    ``None`` when the original request must be served unchanged. It never
    raises for per-request failures; those are logged and degrade to
    pass-through.
    """

    def __init__(
        self,
        settings: ResponsiveImagesSettings,
        backend: ImageBackend | None = None,
    ) -> None:
        self.settings = settings
        self.backend = backend or PillowImageBackend()
        self.classifier = RequestClassifier(settings)
        self.resolver = ScalingResolver(settings)
        self.materializer = ArtifactMaterializer(
            self.backend,
            preserve_metadata=settings.save_with_metadata,
            animated=settings.animated,
            timeout_seconds=settings.transform_timeout_seconds,
        )

    async def resolve(
        self,
        url_path: str,
        *,
        query_params: Mapping[str, str] | None = None,
        cookie_header: str | None = None,
        accept_header: str | None = None,
    ) -> str | None:
        try:
            return await self._resolve(
                url_path,
                query_params=query_params or {},
                cookie_header=cookie_header,
                accept_header=accept_header,
            )
        except ResponsiveImageError as exc:
            level = _LOG_LEVELS.get(type(exc), "error")
            getattr(logger, level)(exc.event, path=url_path, reason=str(exc))
            return None

    async def _resolve(
        self,
        url_path: str,
        *,
        query_params: Mapping[str, str],
        cookie_header: str | None,
        accept_header: str | None,
    ) -> str:
        context = self.classifier.classify(url_path)
        context = read_request_signals(
            context,
            self.settings,
            query_params=query_params,
            cookie_header=cookie_header,
            accept_header=accept_header,
        )
        metadata = await self.read_metadata(context.origin_path)
        decision = self.resolver.resolve(context, metadata.width)
        locator = build_cache_locator(
            context,
            decision,
            static_root=self.classifier.static_root,
            cache_suffix=self.settings.cache_suffix,
        )

        state = check_cache_state(context.origin_path, locator.file_path)
        if state is CacheState.FRESH:
            logger.debug("images.cache.hit", path=url_path, cached=locator.rewrite_path)
            return locator.rewrite_path

        logger.info(
            "images.cache.miss",
            path=url_path,
            cached=locator.rewrite_path,
            state=state.value,
        )
        await self.materializer.materialize(context.origin_path, locator, decision, metadata)
        return locator.rewrite_path

    async def read_metadata(self, origin_path: Path) -> ImageMetadata:
        try:
            return await asyncio.to_thread(self.backend.read_metadata, origin_path)
        except ImageBackendError as exc:
            raise TransformFailureError(str(exc)) from exc


__all__ = ["ResponsiveImageEngine"]
