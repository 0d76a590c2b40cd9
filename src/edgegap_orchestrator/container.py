from typing import List, Optional

import httpx

from edgegap_orchestrator.api.client import ApiClient
from edgegap_orchestrator.api.platform import PlatformApi
from edgegap_orchestrator.builder.base import ImageBuilder
from edgegap_orchestrator.builder.docker import DockerImageBuilder
from edgegap_orchestrator.config import Settings, get_settings
from edgegap_orchestrator.domain.session import Session
from edgegap_orchestrator.events import CompositeEmitter, EventCollector, EventEmitter, LoguruEmitter
from edgegap_orchestrator.lifecycle import DeploymentLifecycle
from edgegap_orchestrator.orchestrator import DeploymentOrchestrator
from edgegap_orchestrator.pipeline import PipelineBuilder
from edgegap_orchestrator.poller import StatusPoller
from edgegap_orchestrator.reconciler import AppReconciler
from edgegap_orchestrator.state_machine import ToolStateMachine
from edgegap_orchestrator.utils.shell import AsyncShellExecutor


class Container:
    """
    Dependency Injection Container for the Edgegap deployment orchestrator.
    Wires up one session's components.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session: Optional[Session] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        image_builder: Optional[ImageBuilder] = None,
        emitters: Optional[List[EventEmitter]] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.session = session or Session.from_settings(self.settings)

        # Events
        self.log_emitter = LoguruEmitter()
        self.event_collector = EventCollector()
        self.composite_emitter = CompositeEmitter([self.log_emitter, self.event_collector, *(emitters or [])])

        # Platform
        token = self.settings.api_token.get_secret_value() if self.settings.api_token else ""
        self.client = ApiClient(
            environment=self.session.environment,
            token=token,
            source_name=self.settings.source_name,
            timeout=self.settings.request_timeout_seconds,
            transport=transport,
        )
        self.api = PlatformApi(self.client)

        # Build
        self.shell_executor = AsyncShellExecutor()
        self.image_builder: ImageBuilder = image_builder or DockerImageBuilder(
            executable=self.settings.docker_executable,
            artifact_command=self.settings.artifact_build_command,
            shell=self.shell_executor,
        )

        # Services
        self.reconciler = AppReconciler(api=self.api, event_emitter=self.composite_emitter)
        self.pipeline = PipelineBuilder(
            settings=self.settings,
            builder=self.image_builder,
            reconciler=self.reconciler,
            event_emitter=self.composite_emitter,
        ).build()
        self.lifecycle = DeploymentLifecycle(
            api=self.api,
            session=self.session,
            poller=StatusPoller(),
            ready_timeout=self.settings.ready_timeout_seconds,
            event_emitter=self.composite_emitter,
        )
        self.state_machine = ToolStateMachine(self.session, event_emitter=self.composite_emitter)

        # Orchestrator
        self.orchestrator = DeploymentOrchestrator(
            settings=self.settings,
            session=self.session,
            client=self.client,
            api=self.api,
            reconciler=self.reconciler,
            pipeline=self.pipeline,
            lifecycle=self.lifecycle,
            state_machine=self.state_machine,
            event_emitter=self.composite_emitter,
        )

    def get_orchestrator(self) -> DeploymentOrchestrator:
        return self.orchestrator
