from .base import ImageBuilder, image_reference
from .docker import DockerImageBuilder

__all__ = [
    "DockerImageBuilder",
    "ImageBuilder",
    "image_reference",
]
