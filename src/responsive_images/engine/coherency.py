"""Cache validity checks based on modification timestamps."""

from __future__ import annotations

from pathlib import Path

import structlog

from ..domain.models import CacheState
from ..exceptions import NotEligibleError


logger = structlog.get_logger(__name__)


def check_cache_state(origin_path: Path, cache_path: Path) -> CacheState:
    """Compare ``cache_path`` with ``origin_path``.

    A variant is stale only when the origin was modified strictly later than
    the variant was written.

    Raises:
        NotEligibleError: If the origin disappeared after classification.
    """

    try:
        origin = origin_path.stat()
    except (FileNotFoundError, NotADirectoryError) as exc:
        raise NotEligibleError(f"origin '{origin_path}' no longer exists") from exc
    try:
        cached = cache_path.stat()
    except (FileNotFoundError, NotADirectoryError):
        return CacheState.MISSING
    if origin.st_mtime_ns > cached.st_mtime_ns:
        return CacheState.STALE
    return CacheState.FRESH


def invalidate(cache_path: Path) -> None:
    """Delete a stale variant so it can be regenerated."""

    cache_path.unlink(missing_ok=True)
    logger.info("images.cache.invalidated", path=str(cache_path))


__all__ = ["check_cache_state", "invalidate"]
