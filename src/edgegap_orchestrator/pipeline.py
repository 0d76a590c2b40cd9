from typing import Callable, List, Optional

from edgegap_orchestrator.builder.base import ImageBuilder
from edgegap_orchestrator.config import Settings
from edgegap_orchestrator.domain.envelope import RemoteCallResult
from edgegap_orchestrator.domain.models import ResourceRequirements
from edgegap_orchestrator.domain.publish import ProgressCallback, PublishContext, PublishStep, RegistryLogin, StepResult
from edgegap_orchestrator.events import DeploymentEvent, EventEmitter, EventType, LoguruEmitter
from edgegap_orchestrator.reconciler import AppReconciler
from edgegap_orchestrator.steps import (
    ArtifactBuildStep,
    ImageBuildStep,
    ImagePushStep,
    RegistryLoginStep,
    ToolchainCheckStep,
    VersionReconcileStep,
)
from edgegap_orchestrator.utils.logger import logger


def _ignore_progress(_: str) -> None:
    pass


class ImagePublishPipeline:
    """
    Builds, pushes and registers a container image as an ordered list of steps.

    The first failing step aborts the run; later steps are never attempted.
    There is no mid-run cancellation.
    """

    def __init__(self, steps: List[PublishStep], event_emitter: Optional[EventEmitter] = None):
        self.steps = steps
        self.event_emitter = event_emitter or LoguruEmitter()

    async def publish(
        self,
        registry: str,
        image_name: str,
        tag: str,
        progress: Optional[ProgressCallback] = None,
        credentials: Optional[RegistryLogin] = None,
        app_name: str = "",
        version_name: Optional[str] = None,
        on_step: Optional[Callable[[str], None]] = None,
    ) -> RemoteCallResult[None]:
        """
        Runs every step in order.

        Args:
            registry: Registry host.
            image_name: Image repository inside the registry.
            tag: Image tag.
            progress: Receives one line when each step begins, plus streamed tool output.
            credentials: Registry login.
            app_name: Application to reconcile; defaults to image_name.
            version_name: Version to reconcile; defaults to tag.
            on_step: Called with a step's code right before it begins.

        Returns:
            Success (possibly carrying a warning), or a failure whose error code
            names the step that failed.
        """
        report = progress or _ignore_progress
        context = PublishContext(
            registry=registry,
            image_name=image_name,
            tag=tag,
            app_name=app_name or image_name,
            version_name=version_name or tag,
            credentials=credentials,
        )
        warning: Optional[str] = None

        for index, step in enumerate(self.steps, start=1):
            if on_step:
                on_step(step.code)

            if step.skipped:
                report(f"[{index}/{len(self.steps)}] {step.description} (skipped)")
                logger.info(f"Skipping step '{step.code}' as configured.")
                self._emit_result(step, "skip", f"{step.description} skipped")
                continue

            report(f"[{index}/{len(self.steps)}] {step.description}")
            self.event_emitter.emit(
                DeploymentEvent(type=EventType.STEP_START, message=step.description, payload={"step": step.code})
            )

            try:
                result = await step.execute(context, report)
            except Exception as e:
                logger.exception(f"Step '{step.code}' raised: {e}")
                result = StepResult(success=False, message=f"{step.description} failed unexpectedly: {e}")

            if not result.success:
                self._emit_result(step, "fail", result.message)
                return RemoteCallResult.local_failure(step.code, result.message)

            if result.warning:
                warning = result.warning
                self._emit_result(step, "warn", result.warning)
            else:
                self._emit_result(step, "pass", result.message)

        logger.info(f"Published {image_name}:{tag} to {registry or 'local daemon'}")
        return RemoteCallResult.local_success(warning=warning)

    def _emit_result(self, step: PublishStep, status: str, message: str) -> None:
        self.event_emitter.emit(
            DeploymentEvent(
                type=EventType.STEP_RESULT,
                message=message,
                payload={"step": step.code, "status": status},
            )
        )


class PipelineBuilder:
    """Builder for the image publish pipeline."""

    def __init__(
        self,
        settings: Settings,
        builder: ImageBuilder,
        reconciler: AppReconciler,
        event_emitter: Optional[EventEmitter] = None,
    ):
        self.settings = settings
        self.builder = builder
        self.reconciler = reconciler
        self.event_emitter = event_emitter

    def build(self) -> ImagePublishPipeline:
        resources = ResourceRequirements(req_cpu=self.settings.req_cpu, req_memory=self.settings.req_memory)
        steps: List[PublishStep] = [
            # 1. Toolchain
            ToolchainCheckStep(builder=self.builder),
            # 2. Server build
            ArtifactBuildStep(builder=self.builder, skipped=self.settings.skip_artifact_build),
            # 3. Image build
            ImageBuildStep(builder=self.builder, skipped=self.settings.skip_image_build),
            # 4. Login
            RegistryLoginStep(builder=self.builder),
            # 5. Push
            ImagePushStep(builder=self.builder),
            # 6. Version
            VersionReconcileStep(reconciler=self.reconciler, resources=resources),
        ]
        return ImagePublishPipeline(steps=steps, event_emitter=self.event_emitter)
