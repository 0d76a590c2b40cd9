"""
Request and response models for the Edgegap endpoints the orchestrator touches.

Only the fields the orchestrator inspects are typed; everything else is ignored.
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

READY_STATUS = "Status.READY"
TERMINATED_STATUS = "Status.TERMINATED"


class ServerStatus(str, Enum):
    """Deployment status labels reported by the platform."""

    NA = "Status.NA"
    INITIALIZING = "Status.INITIALIZING"
    SEEKING = "Status.SEEKING"
    SEEKED = "Status.SEEKED"
    SCANNING = "Status.SCANNING"
    DEPLOYING = "Status.DEPLOYING"
    READY = READY_STATUS
    ERROR = "Status.ERROR"
    TERMINATED = TERMINATED_STATUS

    @classmethod
    def from_label(cls, label: Optional[str]) -> "ServerStatus":
        for member in cls:
            if member.value == label:
                return member
        return cls.NA

    @property
    def is_ready_or_error(self) -> bool:
        return self in (ServerStatus.READY, ServerStatus.ERROR)

    @property
    def is_terminated(self) -> bool:
        return self == ServerStatus.TERMINATED


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# --- Applications ---


class CreateApplicationRequest(_Payload):
    name: str = Field(..., description="Application name.")
    is_active: bool = True
    is_telemetry_agent_active: bool = False
    image: str = Field(default="", description="Base64 application icon.")


class ApplicationInfo(_Payload):
    name: str = ""
    is_active: bool = False
    create_time: Optional[str] = None
    last_updated: Optional[str] = None


# --- Application versions ---


class ResourceRequirements(_Payload):
    req_cpu: int = Field(default=256, description="vCPU units.")
    req_memory: int = Field(default=256, description="Memory in MB.")


class CreateAppVersionSpec(_Payload):
    """Create-shaped version spec: POST v1/app/{app_name}/version."""

    kind: Literal["create"] = "create"
    app_name: str = Field(..., description="Path parameter; not part of the wire body.")
    name: str = Field(..., description="Version name.")
    docker_repository: str = Field(default="", description="Registry host.")
    docker_image: str = Field(default="", description="Image repository inside the registry.")
    docker_tag: str = Field(default="latest", description="Image tag.")
    resources: ResourceRequirements = Field(default_factory=ResourceRequirements)

    def to_create(self) -> "CreateAppVersionSpec":
        return self

    def wire_body(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "docker_repository": self.docker_repository,
            "docker_image": self.docker_image,
            "docker_tag": self.docker_tag,
            "req_cpu": self.resources.req_cpu,
            "req_memory": self.resources.req_memory,
        }


class UpdateAppVersionSpec(_Payload):
    """
    Update-shaped version spec: PATCH v1/app/{app_name}/version/{name}.

    app_name and name identify the version and travel in the path, never the body,
    but are kept here so to_create() is lossless.
    """

    kind: Literal["update"] = "update"
    app_name: str
    name: str
    docker_repository: str = ""
    docker_image: str = ""
    docker_tag: str = "latest"
    resources: ResourceRequirements = Field(default_factory=ResourceRequirements)

    def to_create(self) -> CreateAppVersionSpec:
        return CreateAppVersionSpec(
            app_name=self.app_name,
            name=self.name,
            docker_repository=self.docker_repository,
            docker_image=self.docker_image,
            docker_tag=self.docker_tag,
            resources=self.resources,
        )

    def wire_body(self) -> Dict[str, Any]:
        return {
            "docker_repository": self.docker_repository,
            "docker_image": self.docker_image,
            "docker_tag": self.docker_tag,
        }


AppVersionSpec = Union[CreateAppVersionSpec, UpdateAppVersionSpec]


class AppVersionInfo(_Payload):
    name: str = ""
    docker_repository: str = ""
    docker_image: str = ""
    docker_tag: str = ""
    is_active: bool = True


class RegistryCredentials(_Payload):
    registry_url: str = ""
    project: str = ""
    username: str = ""
    token: str = ""


# --- Deployments ---


class CreateDeploymentRequest(_Payload):
    app_name: str
    version_name: str
    ip_list: List[str] = Field(default_factory=list, description="Public IPs of the expected clients.")


class DeploymentHandle(_Payload):
    """Correlation key for every later status/stop call on a deployment."""

    request_id: str
    request_dns: Optional[str] = None
    request_app: Optional[str] = None
    request_version: Optional[str] = None


class DeploymentStatus(_Payload):
    request_id: str = ""
    fqdn: Optional[str] = None
    app_name: Optional[str] = None
    app_version: Optional[str] = None
    current_status: str = ServerStatus.NA.value
    running: bool = False
    public_ip: Optional[str] = None
    error: bool = False
    error_detail: Optional[str] = None
    # Array in some responses, keyed object in others; never inspected.
    ports: Any = None

    @property
    def server_status(self) -> ServerStatus:
        return ServerStatus.from_label(self.current_status)

    @property
    def is_ready(self) -> bool:
        return self.current_status == READY_STATUS


class StopDeploymentResult(_Payload):
    message: str = ""
    deployment_summary: Optional[DeploymentStatus] = None
