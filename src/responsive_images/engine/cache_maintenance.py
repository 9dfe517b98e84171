"""Offline maintenance of the variant cache tree.

Requests only ever fix the variant they touch. Variants of deleted origins,
stale variants nobody requests any more and temporary files left behind by
abandoned builds are removed here, from a cron job or by hand.
"""

from __future__ import annotations

import glob
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import structlog

from ..config import ResponsiveImagesSettings
from .classifier import compile_watch_rules


logger = structlog.get_logger(__name__)

TEMP_SUFFIX = ".tmp"


@dataclass(frozen=True, slots=True)
class CacheDirectory:
    """A cache tree and the origin directory it was derived from."""

    path: Path
    origin_directory: Path


@dataclass(slots=True)
class PurgeSummary:
    scanned: int
    removed: int
    dry_run: bool


def find_cache_directories(settings: ResponsiveImagesSettings) -> list[CacheDirectory]:
    """Return cache trees below the static root that belong to watched directories."""

    root = settings.static_root
    suffix = settings.cache_suffix
    rules = compile_watch_rules(settings.watched_directories)
    found: list[CacheDirectory] = []
    for directory in sorted(root.rglob(f"*{glob.escape(suffix)}")):
        if not directory.is_dir():
            continue
        url_directory = "/" + directory.relative_to(root).as_posix()
        origin_url = url_directory[: -len(suffix)] or "/"
        if any(rule.matches(origin_url) for rule in rules):
            found.append(
                CacheDirectory(path=directory, origin_directory=root / origin_url.lstrip("/"))
            )
    return found


def iter_artifacts(cache_directory: CacheDirectory) -> Iterator[Path]:
    for path in sorted(cache_directory.path.rglob("*")):
        if path.is_file():
            yield path


def is_obsolete(artifact: Path, origin_directory: Path, file_types: frozenset[str]) -> bool:
    """Whether ``artifact`` is a leftover temp file, orphaned or stale."""

    if artifact.name.startswith(".") and artifact.suffix == TEMP_SUFFIX:
        return True
    stem = artifact.name.rsplit(".", 1)[0]
    origins = [
        candidate
        for candidate in origin_directory.glob(f"{glob.escape(stem)}.*")
        if candidate.is_file() and candidate.suffix[1:].lower() in file_types
    ]
    if not origins:
        return True
    written = artifact.stat().st_mtime_ns
    return all(origin.stat().st_mtime_ns > written for origin in origins)


def purge_cache(
    settings: ResponsiveImagesSettings,
    *,
    everything: bool = False,
    dry_run: bool = False,
) -> PurgeSummary:
    """Remove obsolete variants, or every variant when ``everything`` is set."""

    file_types = frozenset(settings.file_types)
    scanned = 0
    removed = 0
    for cache_directory in find_cache_directories(settings):
        for artifact in iter_artifacts(cache_directory):
            scanned += 1
            if not everything and not is_obsolete(
                artifact, cache_directory.origin_directory, file_types
            ):
                continue
            removed += 1
            if dry_run:
                continue
            artifact.unlink(missing_ok=True)
            logger.info("images.cache.purged", path=str(artifact))
    return PurgeSummary(scanned=scanned, removed=removed, dry_run=dry_run)


__all__ = [
    "CacheDirectory",
    "PurgeSummary",
    "find_cache_directories",
    "is_obsolete",
    "iter_artifacts",
    "purge_cache",
]
