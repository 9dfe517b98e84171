"""Smoke-check imports for the responsive images package.

Guards the public wiring between config, engine, imaging and the ASGI
middleware against refactors that would break it.
"""

from __future__ import annotations

from importlib import import_module
from types import ModuleType

import pytest

MODULES_AND_SYMBOLS = [
    ("src.responsive_images", "ResponsiveImageEngine"),
    ("src.responsive_images", "ResponsiveImagesMiddleware"),
    ("src.responsive_images", "load_settings"),
    ("src.responsive_images.config", "ResponsiveImagesSettings"),
    ("src.responsive_images.exceptions", "ResponsiveImageError"),
    ("src.responsive_images.logging", "configure_logging"),
    ("src.responsive_images.domain", "RequestContext"),
    ("src.responsive_images.domain", "ScalingDecision"),
    ("src.responsive_images.engine", "RequestClassifier"),
    ("src.responsive_images.engine", "ScalingResolver"),
    ("src.responsive_images.engine", "ArtifactMaterializer"),
    ("src.responsive_images.engine.cache_paths", "build_cache_locator"),
    ("src.responsive_images.engine.coherency", "check_cache_state"),
    ("src.responsive_images.engine.cache_maintenance", "purge_cache"),
    ("src.responsive_images.imaging", "ImageBackend"),
    ("src.responsive_images.imaging", "PillowImageBackend"),
    ("src.responsive_images.middleware", "ResponsiveImagesMiddleware"),
    ("src.responsive_images.main", "create_app"),
]


@pytest.mark.parametrize(("module_name", "symbol"), MODULES_AND_SYMBOLS)
def test_importable_symbols(module_name: str, symbol: str) -> None:
    """Import modules and verify that public symbols are exposed."""

    module: ModuleType = import_module(module_name)
    assert hasattr(module, symbol), f"{module_name} missing {symbol}"
