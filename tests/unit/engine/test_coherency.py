from __future__ import annotations

from pathlib import Path

import pytest

from src.responsive_images.domain.models import CacheState
from src.responsive_images.engine.coherency import check_cache_state, invalidate
from src.responsive_images.exceptions import NotEligibleError
from tests.helpers.images import set_mtime

pytestmark = pytest.mark.unit


@pytest.fixture()
def origin(tmp_path: Path) -> Path:
    path = tmp_path / "images" / "photo.jpg"
    path.parent.mkdir(parents=True)
    path.write_bytes(b"origin")
    set_mtime(path, 1_700_000_000)
    return path


@pytest.fixture()
def cached(tmp_path: Path) -> Path:
    path = tmp_path / "images-cache" / "640" / "photo.jpg"
    path.parent.mkdir(parents=True)
    path.write_bytes(b"variant")
    return path


def test_missing_variant(origin: Path, tmp_path: Path) -> None:
    assert check_cache_state(origin, tmp_path / "images-cache" / "photo.jpg") is CacheState.MISSING


def test_variant_below_regular_file_is_missing(origin: Path, tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_bytes(b"")

    assert check_cache_state(origin, blocker / "photo.jpg") is CacheState.MISSING


def test_newer_variant_is_fresh(origin: Path, cached: Path) -> None:
    set_mtime(cached, 1_700_000_100)

    assert check_cache_state(origin, cached) is CacheState.FRESH


def test_equal_timestamps_are_fresh(origin: Path, cached: Path) -> None:
    set_mtime(cached, 1_700_000_000)

    assert check_cache_state(origin, cached) is CacheState.FRESH


def test_origin_modified_later_is_stale(origin: Path, cached: Path) -> None:
    set_mtime(cached, 1_699_999_000)

    assert check_cache_state(origin, cached) is CacheState.STALE


def test_invalidate_removes_variant(cached: Path) -> None:
    invalidate(cached)
    invalidate(cached)

    assert not cached.exists()


def test_missing_origin_is_not_eligible(tmp_path: Path, cached: Path) -> None:
    with pytest.raises(NotEligibleError, match="no longer exists"):
        check_cache_state(tmp_path / "images" / "gone.jpg", cached)
