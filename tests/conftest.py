from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest

from src.responsive_images.config import ResponsiveImagesSettings


TEST_BREAKPOINTS = [320, 480, 640, 800, 1024]


@pytest.fixture()
def static_root(tmp_path: Path) -> Path:
    root = tmp_path / "public"
    (root / "images").mkdir(parents=True)
    return root


@pytest.fixture()
def make_settings(static_root: Path) -> Callable[..., ResponsiveImagesSettings]:
    def factory(**overrides: Any) -> ResponsiveImagesSettings:
        values: dict[str, Any] = {
            "static_dir": static_root,
            "breakpoints": TEST_BREAKPOINTS,
        }
        values.update(overrides)
        return ResponsiveImagesSettings(**values)

    return factory


@pytest.fixture()
def anyio_backend() -> str:
    return "asyncio"
