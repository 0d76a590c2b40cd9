from typing import Optional

from pydantic import BaseModel, Field, SecretStr

from edgegap_orchestrator.config import ApiEnvironment, Settings
from edgegap_orchestrator.domain.models import DeploymentHandle
from edgegap_orchestrator.domain.state import ToolState


class Session(BaseModel):
    """
    Working state of one orchestration session.

    The deployment handle is written only by DeploymentLifecycle and the state only by
    ToolStateMachine; everything else is supplied by the host. Persistence is the host's concern.
    """

    app_name: str = Field(default="", description="Selected application name.")
    version_name: str = Field(default="latest", description="Selected version name / image tag.")
    environment: ApiEnvironment = Field(default="production", description="Selects the API base URL.")

    registry_url: str = Field(default="", description="Container registry host.")
    image_repository: str = Field(default="", description="Image repository inside the registry.")
    registry_username: str = Field(default="", description="Registry username.")
    registry_token: Optional[SecretStr] = Field(default=None, description="Registry token, never logged.")

    deployment: Optional[DeploymentHandle] = Field(default=None, description="Active deployment, if any.")
    state: ToolState = Field(default=ToolState.DISCONNECTED, description="Current tool state.")

    @property
    def has_active_deployment(self) -> bool:
        return self.deployment is not None

    @classmethod
    def from_settings(cls, settings: Settings, app_name: str = "", version_name: Optional[str] = None) -> "Session":
        return cls(
            app_name=app_name,
            version_name=version_name or settings.default_version_tag,
            environment=settings.environment,
            registry_url=settings.registry_url,
            image_repository=settings.image_repository,
            registry_username=settings.registry_username,
            registry_token=settings.registry_token,
        )
