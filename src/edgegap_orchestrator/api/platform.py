from typing import Any, Dict, Optional, Protocol

from edgegap_orchestrator.domain.envelope import RawResponse, RemoteCallResult
from edgegap_orchestrator.domain.models import (
    AppVersionInfo,
    ApplicationInfo,
    CreateAppVersionSpec,
    CreateApplicationRequest,
    CreateDeploymentRequest,
    DeploymentHandle,
    DeploymentStatus,
    RegistryCredentials,
    StopDeploymentResult,
    UpdateAppVersionSpec,
)


class Transport(Protocol):
    async def send(
        self,
        method: str,
        path: str,
        query: Optional[Dict[str, str]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> RawResponse: ...


class PlatformApi:
    """
    The Edgegap endpoints the orchestrator uses, each returning a RemoteCallResult.

    - API Doc | https://docs.edgegap.com/api/
    """

    def __init__(self, client: Transport) -> None:
        self.client = client

    # --- Wizard ---

    async def init_quick_start(self) -> RemoteCallResult[None]:
        """POST v1/wizard/init-quick-start. Answers 204 for a valid token."""
        raw = await self.client.send("POST", "v1/wizard/init-quick-start")
        return RemoteCallResult.from_response(raw)

    async def get_registry_credentials(self) -> RemoteCallResult[RegistryCredentials]:
        """GET v1/wizard/registry-credentials. 200 when the account has a managed registry."""
        raw = await self.client.send("GET", "v1/wizard/registry-credentials")
        return RemoteCallResult.from_response(raw, RegistryCredentials)

    # --- Applications ---

    async def create_application(self, request: CreateApplicationRequest) -> RemoteCallResult[ApplicationInfo]:
        """POST v1/app. 409 when it already exists, 400 when the plan limit is reached."""
        raw = await self.client.send("POST", "v1/app", json_body=request.model_dump())
        return RemoteCallResult.from_response(raw, ApplicationInfo)

    async def create_app_version(self, spec: CreateAppVersionSpec) -> RemoteCallResult[AppVersionInfo]:
        """POST v1/app/{app_name}/version."""
        raw = await self.client.send("POST", f"v1/app/{spec.app_name}/version", json_body=spec.wire_body())
        return RemoteCallResult.from_response(raw, AppVersionInfo)

    async def update_app_version(self, spec: UpdateAppVersionSpec) -> RemoteCallResult[AppVersionInfo]:
        """PATCH v1/app/{app_name}/version/{name}. 404 when the version does not exist."""
        raw = await self.client.send(
            "PATCH", f"v1/app/{spec.app_name}/version/{spec.name}", json_body=spec.wire_body()
        )
        return RemoteCallResult.from_response(raw, AppVersionInfo)

    # --- Deployments ---

    async def create_deployment(self, request: CreateDeploymentRequest) -> RemoteCallResult[DeploymentHandle]:
        """POST v1/deploy."""
        raw = await self.client.send("POST", "v1/deploy", json_body=request.model_dump())
        return RemoteCallResult.from_response(raw, DeploymentHandle)

    async def get_deployment_status(self, request_id: str) -> RemoteCallResult[DeploymentStatus]:
        """GET v1/status/{request_id}."""
        raw = await self.client.send("GET", f"v1/status/{request_id}")
        return RemoteCallResult.from_response(raw, DeploymentStatus)

    async def stop_deployment(self, request_id: str) -> RemoteCallResult[StopDeploymentResult]:
        """DELETE v1/stop/{request_id}."""
        raw = await self.client.send("DELETE", f"v1/stop/{request_id}")
        return RemoteCallResult.from_response(raw, StopDeploymentResult)


__all__ = ["PlatformApi", "Transport"]
