"""Resolution and cache-coherency engine."""

from .classifier import RequestClassifier
from .materializer import ArtifactMaterializer
from .pipeline import ResponsiveImageEngine
from .scaling import ScalingResolver

__all__ = [
    "ArtifactMaterializer",
    "RequestClassifier",
    "ResponsiveImageEngine",
    "ScalingResolver",
]
