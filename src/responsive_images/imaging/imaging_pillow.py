"""Pillow implementation of :class:`ImageBackend`."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from PIL import Image, ImageSequence

from ..domain.models import ImageMetadata
from ..exceptions import ImageBackendError
from .imaging_base import ImageBackend


ANIMATED_FORMATS = frozenset({"GIF", "WEBP", "PNG"})
OPAQUE_FORMATS = frozenset({"JPEG", "BMP"})

_PILLOW_ERRORS = (OSError, ValueError, SyntaxError, Image.DecompressionBombError)


def pillow_format(target_format: str) -> str:
    """Map an extension such as ``"jpg"`` to Pillow's format name."""

    registered = Image.registered_extensions()
    try:
        return registered[f".{target_format.lower()}"]
    except KeyError as exc:
        raise ImageBackendError(f"unsupported target format '{target_format}'") from exc


def scaled_height(width: int, source_width: int, source_height: int) -> int:
    return max(1, int(source_height * width / source_width + 0.5))


class PillowImageBackend(ImageBackend):
    """Resize images with Lanczos resampling."""

    resample = Image.Resampling.LANCZOS

    def read_metadata(self, path: Path) -> ImageMetadata:
        try:
            with Image.open(path) as image:
                return ImageMetadata(
                    width=image.width,
                    height=image.height,
                    page_count=getattr(image, "n_frames", 1),
                )
        except _PILLOW_ERRORS as exc:
            raise ImageBackendError(f"cannot read metadata of '{path}': {exc}") from exc

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
        fmt = pillow_format(target_format)
        try:
            with Image.open(source) as image:
                params = self._save_params(image, preserve_metadata)
                if animated and getattr(image, "n_frames", 1) > 1 and fmt in ANIMATED_FORMATS:
                    self._save_animated(image, destination, width, fmt, params)
                    return
                resized = self._prepare(self._resize(image, width), fmt)
                resized.save(destination, format=fmt, **params)
        except _PILLOW_ERRORS as exc:
            raise ImageBackendError(f"cannot transform '{source}': {exc}") from exc

    def _save_animated(
        self,
        image: Image.Image,
        destination: Path,
        width: int,
        fmt: str,
        params: dict[str, Any],
    ) -> None:
        frames = [self._resize(frame.copy(), width) for frame in ImageSequence.Iterator(image)]
        if "duration" in image.info:
            params["duration"] = image.info["duration"]
        params["loop"] = image.info.get("loop", 0)
        frames[0].save(
            destination,
            format=fmt,
            save_all=True,
            append_images=frames[1:],
            **params,
        )

    def _resize(self, image: Image.Image, width: int) -> Image.Image:
        if image.mode in ("1", "P"):
            image = image.convert("RGBA")
        height = scaled_height(width, image.width, image.height)
        return image.resize((width, height), self.resample)

    @staticmethod
    def _prepare(image: Image.Image, fmt: str) -> Image.Image:
        if fmt in OPAQUE_FORMATS and image.mode not in ("RGB", "L"):
            return image.convert("RGB")
        return image

    @staticmethod
    def _save_params(image: Image.Image, preserve_metadata: bool) -> dict[str, Any]:
        if not preserve_metadata:
            return {}
        params: dict[str, Any] = {}
        exif = image.info.get("exif")
        if exif:
            params["exif"] = exif
        icc_profile = image.info.get("icc_profile")
        if icc_profile:
            params["icc_profile"] = icc_profile
        return params


__all__ = ["PillowImageBackend", "pillow_format", "scaled_height"]
