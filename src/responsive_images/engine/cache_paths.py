"""Deterministic cache locations for generated variants.

``/images/photo.jpg`` resized to 640px lives at
``<static_root>/images-cache/640/photo.jpg`` and is served as
``/images-cache/640/photo.jpg``. Conversion-only variants drop the width
directory: ``/images-cache/photo.webp``.
"""

from __future__ import annotations

from pathlib import Path

from ..domain.models import CacheLocator, RequestContext, ScalingDecision


def cache_url_directory(url_directory: str, cache_suffix: str, decision: ScalingDecision) -> str:
    base = url_directory.rstrip("/")
    if not base:
        base = "/"
    parts = [f"{base}{cache_suffix}"]
    if not decision.conversion_only:
        parts.append(str(decision.width))
    return "/".join(parts)


def build_cache_locator(
    context: RequestContext,
    decision: ScalingDecision,
    *,
    static_root: Path,
    cache_suffix: str,
) -> CacheLocator:
    """Return where the variant for ``decision`` is stored and served from."""

    url_directory = cache_url_directory(context.directory, cache_suffix, decision)
    filename = f"{context.base_name}{decision.extension}"
    directory = static_root / url_directory.lstrip("/")
    return CacheLocator(
        directory=directory,
        file_path=directory / filename,
        rewrite_path=f"{url_directory}/{filename}",
    )


__all__ = ["build_cache_locator", "cache_url_directory"]
