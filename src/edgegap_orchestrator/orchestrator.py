# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/edgegap_orchestrator

import asyncio
from typing import Callable, List, Optional

from pydantic import SecretStr

from edgegap_orchestrator.api.client import ApiClient
from edgegap_orchestrator.api.platform import PlatformApi
from edgegap_orchestrator.config import Settings
from edgegap_orchestrator.domain.envelope import RemoteCallResult
from edgegap_orchestrator.domain.models import (
    AppVersionInfo,
    AppVersionSpec,
    ApplicationInfo,
    DeploymentHandle,
    DeploymentStatus,
    ResourceRequirements,
    ServerStatus,
    StopDeploymentResult,
    UpdateAppVersionSpec,
)
from edgegap_orchestrator.domain.publish import ProgressCallback, RegistryLogin
from edgegap_orchestrator.domain.session import Session
from edgegap_orchestrator.domain.state import ToolState, Trigger
from edgegap_orchestrator.events import DeploymentEvent, EventEmitter, EventType, LoguruEmitter
from edgegap_orchestrator.exceptions import ConfigurationError, IllegalTransitionError, TransportError
from edgegap_orchestrator.lifecycle import DeploymentLifecycle
from edgegap_orchestrator.pipeline import ImagePublishPipeline
from edgegap_orchestrator.reconciler import AppReconciler
from edgegap_orchestrator.state_machine import ToolStateMachine
from edgegap_orchestrator.utils.logger import logger


class DeploymentOrchestrator:
    """
    Session facade hosts call into.

    Every operation is checked against the ToolStateMachine before any remote call,
    and the outcome of each call decides the next tool state.
    """

    def __init__(
        self,
        settings: Settings,
        session: Session,
        client: ApiClient,
        api: PlatformApi,
        reconciler: AppReconciler,
        pipeline: ImagePublishPipeline,
        lifecycle: DeploymentLifecycle,
        state_machine: ToolStateMachine,
        event_emitter: Optional[EventEmitter] = None,
    ) -> None:
        self.settings = settings
        self.session = session
        self.client = client
        self.api = api
        self.reconciler = reconciler
        self.pipeline = pipeline
        self.lifecycle = lifecycle
        self.state_machine = state_machine
        self.event_emitter = event_emitter or LoguruEmitter()
        self._cancel_event = asyncio.Event()

    @property
    def state(self) -> ToolState:
        return self.state_machine.state

    # --- Connection ---

    async def verify(self, token: str) -> RemoteCallResult[None]:
        """
        Validates the API token. On success the registry fields left empty on the
        session are prefilled from the account's managed registry, when it has one.
        """
        self.state_machine.fire(Trigger.VERIFY_STARTED)
        self.client.set_token(token)
        if not self.client.has_token:
            self.state_machine.fire(Trigger.VERIFY_FAILED)
            return RemoteCallResult.local_failure("verify", "An API token is required.")

        try:
            result = await self.api.init_quick_start()
        except TransportError:
            self.state_machine.fire(Trigger.VERIFY_FAILED)
            raise

        if not result.is_success:
            logger.error(f"Token verification failed ({result.status_code}): {result.human_message()}")
            self.state_machine.fire(Trigger.VERIFY_FAILED)
            return result

        self.state_machine.fire(Trigger.VERIFY_SUCCEEDED)
        await self._prefill_registry()
        return result

    async def _prefill_registry(self) -> None:
        try:
            credentials = await self.api.get_registry_credentials()
        except TransportError as e:
            logger.warning(f"Could not fetch registry credentials: {e}")
            return

        if not credentials.is_success or credentials.data is None:
            logger.debug("No managed registry available for this account.")
            return

        data = credentials.data
        if not self.session.registry_url and data.registry_url:
            self.session.registry_url = data.registry_url
        if not self.session.image_repository and data.project:
            self.session.image_repository = data.project
        if not self.session.registry_username and data.username:
            self.session.registry_username = data.username
        if self.session.registry_token is None and data.token:
            self.session.registry_token = SecretStr(data.token)
        logger.info(f"Registry prefilled from account: {self.session.registry_url}")

    def disconnect(self) -> None:
        self.state_machine.fire(Trigger.DISCONNECT)
        self.client.set_token("")

    # --- Applications ---

    async def ensure_application(
        self, app_name: Optional[str] = None, image: Optional[str] = None
    ) -> RemoteCallResult[ApplicationInfo]:
        self._require_connected("ensure_application")
        name = self._resolve_app_name(app_name)
        result = await self.reconciler.ensure_application(name, image=image)
        if result.is_success:
            self.session.app_name = name
        return result

    async def ensure_application_version(
        self,
        app_name: Optional[str] = None,
        version_name: Optional[str] = None,
        spec: Optional[AppVersionSpec] = None,
    ) -> RemoteCallResult[AppVersionInfo]:
        """
        Creates or updates a version. Without an explicit spec, the version points at
        the session's registry image tagged with the version name.
        """
        self._require_connected("ensure_application_version")
        name = self._resolve_app_name(app_name)
        version = version_name or self.session.version_name
        if spec is None:
            spec = UpdateAppVersionSpec(
                app_name=name,
                name=version,
                docker_repository=self.session.registry_url,
                docker_image=self.session.image_repository,
                docker_tag=version,
                resources=ResourceRequirements(req_cpu=self.settings.req_cpu, req_memory=self.settings.req_memory),
            )
        result = await self.reconciler.ensure_application_version(name, spec)
        if result.is_success:
            self.session.app_name = name
            self.session.version_name = spec.name
        return result

    # --- Build & Push ---

    async def build_and_push(
        self, progress: Optional[ProgressCallback] = None, tag: Optional[str] = None
    ) -> RemoteCallResult[None]:
        """
        Runs the image publish pipeline. The tool is Building until the login step,
        Pushing afterwards, and Connected again once the pipeline ends.
        """
        self.state_machine.require(Trigger.BUILD_STARTED)
        app_name = self._resolve_app_name(None)
        credentials = self._registry_login()
        if not self.session.image_repository:
            raise ConfigurationError("An image repository is required to build and push.")

        image_tag = tag or self.session.version_name
        self.state_machine.fire(Trigger.BUILD_STARTED)

        def on_step(code: str) -> None:
            if code == "registry_login" and self.state_machine.can_fire(Trigger.PUSH_STARTED):
                self.state_machine.fire(Trigger.PUSH_STARTED)

        try:
            result = await self.pipeline.publish(
                registry=self.session.registry_url,
                image_name=self.session.image_repository,
                tag=image_tag,
                progress=progress,
                credentials=credentials,
                app_name=app_name,
                version_name=image_tag,
                on_step=on_step,
            )
        finally:
            self.state_machine.fire(Trigger.PIPELINE_FINISHED)

        if result.is_success:
            self.session.version_name = image_tag
        return result

    def _registry_login(self) -> RegistryLogin:
        if not self.session.registry_url:
            raise ConfigurationError("A registry URL is required to build and push.")
        if not self.session.registry_username or self.session.registry_token is None:
            raise ConfigurationError("Registry username and token are required to build and push.")
        return RegistryLogin(username=self.session.registry_username, token=self.session.registry_token)

    # --- Deployments ---

    async def start_deployment(
        self,
        client_origins: List[str],
        app_name: Optional[str] = None,
        version_name: Optional[str] = None,
    ) -> RemoteCallResult[DeploymentHandle]:
        """
        Creates a deployment and waits (bounded) for it to become ready.

        Returns:
            The create envelope. The tool ends in DeploymentRunning when READY was
            observed, ProcessingDeployment when it is still starting, or Connected
            when the create failed.
        """
        self.state_machine.require(Trigger.DEPLOY_REQUESTED)
        if self.session.has_active_deployment:
            raise IllegalTransitionError(self.state.value, "deploy_while_active")

        name = self._resolve_app_name(app_name)
        version = version_name or self.session.version_name
        self.state_machine.fire(Trigger.DEPLOY_REQUESTED)

        try:
            result = await self.lifecycle.create_and_await_ready(
                name,
                version,
                client_origins,
                poll_interval=self.settings.poll_interval_seconds,
                cancel_event=self._cancel_event,
            )
        except TransportError:
            self.state_machine.fire(Trigger.DEPLOY_FAILED)
            raise

        if not result.is_success:
            self.state_machine.fire(Trigger.DEPLOY_FAILED)
            return result

        self._apply_status(self.lifecycle.last_status)
        return result

    async def refresh_status(self) -> RemoteCallResult[DeploymentStatus]:
        """Fetches the active deployment's status once and moves the tool state accordingly."""
        self.state_machine.require(Trigger.STATUS_PENDING)
        handle = self.session.deployment
        if handle is None:
            self.state_machine.fire(Trigger.STATUS_TERMINATED)
            return RemoteCallResult.local_failure("no_deployment", "There is no active deployment.")

        result = await self.lifecycle.fetch_status(handle)
        self._apply_status(result)
        return result

    async def resume_deployment(self, handle: Optional[DeploymentHandle] = None) -> RemoteCallResult[DeploymentStatus]:
        """Re-attaches to a known deployment and refreshes its status."""
        self.state_machine.require(Trigger.RESUME_REQUESTED)
        if handle is not None:
            self.lifecycle.attach(handle)
        if self.session.deployment is None:
            raise ConfigurationError("No deployment to resume.")

        self.state_machine.fire(Trigger.RESUME_REQUESTED)
        return await self.refresh_status()

    async def watch_status(
        self,
        interval: Optional[float] = None,
        on_status: Optional[Callable[[RemoteCallResult[DeploymentStatus]], None]] = None,
    ) -> None:
        """Refreshes the status periodically until the deployment ends or the orchestrator closes."""
        delay = interval or self.settings.status_refresh_interval_seconds
        while self.session.has_active_deployment and not self._cancel_event.is_set():
            result = await self.refresh_status()
            if on_status:
                on_status(result)
            if not self.session.has_active_deployment:
                break
            try:
                await asyncio.wait_for(self._cancel_event.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass

    async def stop_deployment(self) -> RemoteCallResult[StopDeploymentResult]:
        self.state_machine.require(Trigger.STOP_REQUESTED)
        handle = self.session.deployment
        if handle is None:
            raise ConfigurationError("There is no active deployment to stop.")

        self.state_machine.fire(Trigger.STOP_REQUESTED)
        try:
            result = await self.lifecycle.stop(handle)
        except TransportError:
            await self._recover_after_failed_stop()
            raise

        if result.is_success:
            self.state_machine.fire(Trigger.STATUS_TERMINATED)
        else:
            await self._recover_after_failed_stop()
        return result

    async def _recover_after_failed_stop(self) -> None:
        try:
            await self.refresh_status()
        except TransportError as e:
            logger.warning(f"Status unknown after failed stop: {e}")
            self.state_machine.fire(Trigger.STATUS_READY)

    def _apply_status(self, result: Optional[RemoteCallResult[DeploymentStatus]]) -> None:
        if result is None or not result.is_success or result.data is None:
            return

        status = result.data.server_status
        if status.is_terminated:
            trigger = Trigger.STATUS_TERMINATED
        elif status.is_ready_or_error:
            trigger = Trigger.STATUS_READY
        else:
            trigger = Trigger.STATUS_PENDING

        if not self.state_machine.can_fire(trigger):
            logger.debug(f"Ignoring status {status.value} in state {self.state.value}")
            return

        self.state_machine.fire(trigger)
        if status == ServerStatus.ERROR:
            self.event_emitter.emit(
                DeploymentEvent(
                    type=EventType.ERROR,
                    message=result.data.error_detail or "The deployment reported an error.",
                    payload={"request_id": result.data.request_id},
                )
            )

    # --- Lifetime ---

    async def close(self) -> None:
        """Stops any outstanding poll and releases the HTTP client."""
        self._cancel_event.set()
        await self.client.aclose()

    def _require_connected(self, operation: str) -> None:
        if self.state != ToolState.CONNECTED:
            raise IllegalTransitionError(self.state.value, operation)

    def _resolve_app_name(self, app_name: Optional[str]) -> str:
        name = app_name or self.session.app_name
        if not name:
            raise ConfigurationError("An application name is required.")
        return name
