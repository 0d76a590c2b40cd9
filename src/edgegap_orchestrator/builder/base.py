from typing import Protocol, Tuple

from edgegap_orchestrator.domain.publish import ProgressCallback


def image_reference(registry: str, name: str, tag: str) -> str:
    """registry/name:tag, or name:tag when no registry host is given."""
    repository = f"{registry.rstrip('/')}/{name}" if registry else name
    return f"{repository}:{tag}"


class ImageBuilder(Protocol):
    """Builds and publishes the container image. Internals are opaque to the orchestrator."""

    async def check_toolchain(self) -> bool:
        """True when the container tool is installed and its daemon answers."""
        ...  # pragma: no cover

    async def build_artifact(self) -> Tuple[bool, str]:
        """Produces the deployable server build. Returns (succeeded, details)."""
        ...  # pragma: no cover

    async def build_image(self, registry: str, name: str, tag: str, on_progress: ProgressCallback) -> bool:
        ...  # pragma: no cover

    async def login(self, registry: str, username: str, token: str, on_progress: ProgressCallback) -> bool:
        ...  # pragma: no cover

    async def push(self, registry: str, name: str, tag: str, on_progress: ProgressCallback) -> bool:
        ...  # pragma: no cover
