"""FastAPI application entry point."""

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from .config import ResponsiveImagesSettings, load_settings
from .engine.pipeline import ResponsiveImageEngine
from .imaging.imaging_base import ImageBackend
from .logging import configure_logging
from .middleware import ResponsiveImagesMiddleware


def create_app(
    settings: ResponsiveImagesSettings | None = None,
    backend: ImageBackend | None = None,
) -> FastAPI:
    """Serve ``static_dir`` with image requests routed through the engine."""
    cfg = settings or load_settings()
    configure_logging(debug=cfg.debug)
    engine = ResponsiveImageEngine(cfg, backend)

    app = FastAPI(title="Responsive Images")
    app.state.settings = cfg
    app.state.engine = engine
    app.add_middleware(ResponsiveImagesMiddleware, engine=engine)
    app.mount("/", StaticFiles(directory=cfg.static_root), name="static")
    return app


app = create_app()
