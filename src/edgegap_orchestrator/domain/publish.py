from typing import Callable, Optional, Protocol

from pydantic import BaseModel, Field, SecretStr

ProgressCallback = Callable[[str], None]


class RegistryLogin(BaseModel):
    username: str = Field(..., description="Registry username.")
    token: SecretStr = Field(..., description="Registry token or password.")


class PublishContext(BaseModel):
    """
    Inputs shared by every step of one publish run.
    """

    registry: str = Field(..., description="Registry host the image is pushed to.")
    image_name: str = Field(..., description="Image repository inside the registry.")
    tag: str = Field(..., description="Image tag.")
    app_name: str = Field(..., description="Application whose version points at the pushed image.")
    version_name: str = Field(..., description="Application version to create or update.")
    credentials: Optional[RegistryLogin] = None

    model_config = {"frozen": True}


class StepResult(BaseModel):
    success: bool = Field(..., description="Whether the step passed.")
    message: str = Field(default="", description="Descriptive message or failure reason.")
    warning: Optional[str] = Field(default=None, description="Set when the step succeeded softly.")


class PublishStep(Protocol):
    """One gate of the image publish pipeline."""

    code: str
    description: str
    skipped: bool

    async def execute(self, context: PublishContext, progress: ProgressCallback) -> StepResult:
        """
        Runs the step.

        Args:
            context: PublishContext for this run.
            progress: Receives human-readable progress lines.

        Returns:
            StepResult indicating success or failure.
        """
        ...  # pragma: no cover
