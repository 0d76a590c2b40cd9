from typing import Optional

from edgegap_orchestrator.builder.base import ImageBuilder
from edgegap_orchestrator.domain.models import ResourceRequirements, UpdateAppVersionSpec
from edgegap_orchestrator.domain.publish import ProgressCallback, PublishContext, StepResult
from edgegap_orchestrator.reconciler import AppReconciler
from edgegap_orchestrator.utils.logger import logger


class ToolchainCheckStep:
    """Step to verify the container tool is installed and running."""

    code = "toolchain"
    description = "Checking container toolchain"

    def __init__(self, builder: ImageBuilder):
        self.builder = builder
        self.skipped = False

    async def execute(self, context: PublishContext, progress: ProgressCallback) -> StepResult:
        if not await self.builder.check_toolchain():
            return StepResult(
                success=False,
                message="The container tool is not installed or its daemon is not running.",
            )
        return StepResult(success=True, message="Container toolchain available")


class ArtifactBuildStep:
    """Step to build the deployable server artifact."""

    code = "artifact_build"
    description = "Building server artifact"

    def __init__(self, builder: ImageBuilder, skipped: bool = False):
        self.builder = builder
        self.skipped = skipped

    async def execute(self, context: PublishContext, progress: ProgressCallback) -> StepResult:
        succeeded, details = await self.builder.build_artifact()
        if not succeeded:
            logger.error(f"Artifact build failed: {details}")
            return StepResult(success=False, message=f"Server build failed: {details}")
        return StepResult(success=True, message=details or "Server artifact built")


class ImageBuildStep:
    """Step to build the container image, streaming build output."""

    code = "image_build"
    description = "Building container image"

    def __init__(self, builder: ImageBuilder, skipped: bool = False):
        self.builder = builder
        self.skipped = skipped

    async def execute(self, context: PublishContext, progress: ProgressCallback) -> StepResult:
        if not await self.builder.build_image(context.registry, context.image_name, context.tag, progress):
            return StepResult(success=False, message="Container image build failed. See the build output for details.")
        return StepResult(success=True, message="Container image built")


class RegistryLoginStep:
    """Step to authenticate the container tool against the registry."""

    code = "registry_login"
    description = "Logging in to container registry"

    def __init__(self, builder: ImageBuilder):
        self.builder = builder
        self.skipped = False

    async def execute(self, context: PublishContext, progress: ProgressCallback) -> StepResult:
        if context.credentials is None:
            return StepResult(success=False, message="Registry credentials are missing.")

        logged_in = await self.builder.login(
            context.registry,
            context.credentials.username,
            context.credentials.token.get_secret_value(),
            progress,
        )
        if not logged_in:
            return StepResult(success=False, message=f"Could not log in to {context.registry}. Check your credentials.")
        return StepResult(success=True, message="Logged in")


class ImagePushStep:
    """Step to push the built image."""

    code = "image_push"
    description = "Pushing container image"

    def __init__(self, builder: ImageBuilder):
        self.builder = builder
        self.skipped = False

    async def execute(self, context: PublishContext, progress: ProgressCallback) -> StepResult:
        if not await self.builder.push(context.registry, context.image_name, context.tag, progress):
            return StepResult(success=False, message="Pushing the container image failed.")
        return StepResult(success=True, message="Image pushed")


class VersionReconcileStep:
    """Step to point the application version at the pushed image."""

    code = "version_reconcile"
    description = "Updating application version"

    def __init__(self, reconciler: AppReconciler, resources: Optional[ResourceRequirements] = None):
        self.reconciler = reconciler
        self.resources = resources or ResourceRequirements()
        self.skipped = False

    async def execute(self, context: PublishContext, progress: ProgressCallback) -> StepResult:
        spec = UpdateAppVersionSpec(
            app_name=context.app_name,
            name=context.version_name,
            docker_repository=context.registry,
            docker_image=context.image_name,
            docker_tag=context.tag,
            resources=self.resources,
        )
        result = await self.reconciler.ensure_application_version(context.app_name, spec)
        if not result.is_success:
            return StepResult(success=False, message=result.human_message())
        return StepResult(
            success=True,
            message=f"Version '{context.version_name}' points at {context.image_name}:{context.tag}",
            warning=result.warning,
        )
