import asyncio
from typing import List, Optional

from edgegap_orchestrator.api.platform import PlatformApi
from edgegap_orchestrator.domain.envelope import RemoteCallResult, StatusClass
from edgegap_orchestrator.domain.models import (
    CreateDeploymentRequest,
    DeploymentHandle,
    DeploymentStatus,
    ServerStatus,
    StopDeploymentResult,
)
from edgegap_orchestrator.domain.session import Session
from edgegap_orchestrator.events import DeploymentEvent, EventEmitter, EventType, LoguruEmitter
from edgegap_orchestrator.exceptions import TransportError
from edgegap_orchestrator.poller import StatusPoller
from edgegap_orchestrator.utils.logger import logger


class DeploymentLifecycle:
    """
    Creates, observes and stops a deployment.

    The session's deployment handle is written only here: set on a successful create,
    cleared when a terminal status is observed or a stop succeeds.
    """

    def __init__(
        self,
        api: PlatformApi,
        session: Session,
        poller: Optional[StatusPoller] = None,
        ready_timeout: float = 60.0,
        event_emitter: Optional[EventEmitter] = None,
    ) -> None:
        self.api = api
        self.session = session
        self.poller = poller or StatusPoller()
        self.ready_timeout = ready_timeout
        self.event_emitter = event_emitter or LoguruEmitter()
        self.last_status: Optional[RemoteCallResult[DeploymentStatus]] = None

    @property
    def handle(self) -> Optional[DeploymentHandle]:
        return self.session.deployment

    def attach(self, handle: DeploymentHandle) -> None:
        """Adopts a deployment started earlier, e.g. by a previous process."""
        logger.info(f"Attaching to deployment {handle.request_id}")
        self.session.deployment = handle

    async def create(
        self, app_name: str, version_name: str, client_origins: List[str]
    ) -> RemoteCallResult[DeploymentHandle]:
        logger.info(f"Deploying {app_name}/{version_name} near {len(client_origins)} client(s)")
        result = await self.api.create_deployment(
            CreateDeploymentRequest(app_name=app_name, version_name=version_name, ip_list=client_origins)
        )
        if result.is_success and result.data is not None:
            self.session.deployment = result.data
            self.event_emitter.emit(
                DeploymentEvent(
                    type=EventType.PROGRESS,
                    message=f"Deployment requested: {result.data.request_id}",
                    payload={"request_id": result.data.request_id},
                )
            )
        elif result.is_success:
            logger.error("Deployment was accepted but the response carried no request id.")
            return RemoteCallResult.local_failure("deploy", "The deployment response did not include a request id.")
        else:
            logger.error(f"Deployment of {app_name}/{version_name} failed: {result.human_message()}")
        return result

    async def create_and_await_ready(
        self,
        app_name: str,
        version_name: str,
        client_origins: List[str],
        poll_interval: float,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> RemoteCallResult[DeploymentHandle]:
        """
        Creates a deployment, then polls its status until it is READY or the ceiling elapses.

        Returns:
            The create envelope, whatever the readiness outcome. The last polled
            status is kept in `last_status`.
        """
        result = await self.create(app_name, version_name, client_origins)
        handle = self.handle
        if not result.is_success or handle is None:
            return result

        terminal_logged = False

        async def _fetch() -> RemoteCallResult[DeploymentStatus]:
            nonlocal terminal_logged
            status = await self.fetch_status(handle)
            if not terminal_logged and status.is_success and status.data is not None:
                server_status = status.data.server_status
                if server_status in (ServerStatus.ERROR, ServerStatus.TERMINATED):
                    terminal_logged = True
                    logger.warning(
                        f"Deployment {handle.request_id} reported {server_status.value} while waiting for readiness"
                    )
            return status

        try:
            self.last_status = await self.poller.await_condition(
                fetch=_fetch,
                is_satisfied=lambda status: status.is_ready,
                interval=poll_interval,
                timeout=self.ready_timeout,
                cancel_event=cancel_event,
            )
        except TransportError as e:
            logger.warning(f"Could not observe deployment {handle.request_id}: {e}")
            self.last_status = RemoteCallResult.local_failure("transport", str(e))

        if self.last_status.is_success and self.last_status.data is not None and self.last_status.data.is_ready:
            logger.info(f"Deployment {handle.request_id} is ready at {self.last_status.data.fqdn}")
        else:
            logger.warning(f"Deployment {handle.request_id} was not ready within {self.ready_timeout}s")
        return result

    async def fetch_status(self, handle: DeploymentHandle) -> RemoteCallResult[DeploymentStatus]:
        """
        Fetches the current status of a deployment.

        A 404, or the 400 the platform answers for unknown request ids, means the
        deployment is gone: it is reported as a successful TERMINATED status.
        """
        result = await self.api.get_deployment_status(handle.request_id)

        if result.is_not_found or result.is_bad_request:
            logger.info(f"Deployment {handle.request_id} no longer exists ({result.status_code}).")
            result = result.model_copy(
                update={
                    "classification": StatusClass.SUCCESS,
                    "error": None,
                    "data": DeploymentStatus(
                        request_id=handle.request_id, current_status=ServerStatus.TERMINATED.value
                    ),
                }
            )

        if result.is_success and result.data is not None and result.data.server_status.is_terminated:
            self._clear(handle)
        return result

    async def stop(self, handle: DeploymentHandle) -> RemoteCallResult[StopDeploymentResult]:
        logger.info(f"Stopping deployment {handle.request_id}")
        result = await self.api.stop_deployment(handle.request_id)
        if result.is_success:
            self._clear(handle)
        else:
            logger.error(f"Failed to stop deployment {handle.request_id}: {result.human_message()}")
        return result

    def _clear(self, handle: DeploymentHandle) -> None:
        if self.session.deployment is not None and self.session.deployment.request_id == handle.request_id:
            self.session.deployment = None
