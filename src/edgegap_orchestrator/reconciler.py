from typing import Optional

from edgegap_orchestrator.api.platform import PlatformApi
from edgegap_orchestrator.domain.envelope import RemoteCallResult
from edgegap_orchestrator.domain.models import (
    AppVersionInfo,
    AppVersionSpec,
    ApplicationInfo,
    CreateAppVersionSpec,
    CreateApplicationRequest,
    UpdateAppVersionSpec,
)
from edgegap_orchestrator.events import DeploymentEvent, EventEmitter, EventType, LoguruEmitter
from edgegap_orchestrator.utils.logger import logger

PLAN_LIMIT_MESSAGE = (
    "You have reached the application limit of your plan. Upgrade your plan to register more applications."
)


class AppReconciler:
    """
    Makes the remote application and its versions match a desired spec,
    whether or not they already exist.
    """

    def __init__(self, api: PlatformApi, event_emitter: Optional[EventEmitter] = None) -> None:
        self.api = api
        self.event_emitter = event_emitter or LoguruEmitter()

    async def ensure_application(self, app_name: str, image: Optional[str] = None) -> RemoteCallResult[ApplicationInfo]:
        """
        Creates the application; an existing one counts as success with a warning.

        Returns:
            The create envelope. `is_plan_limit_reached` is set when the account
            cannot hold another application.
        """
        logger.info(f"Ensuring application '{app_name}' exists")
        result = await self.api.create_application(CreateApplicationRequest(name=app_name, image=image or ""))

        if result.is_conflict:
            return self._soft_success(result, f"Application '{app_name}' already exists.")

        if result.is_plan_limit_reached:
            self.event_emitter.emit(
                DeploymentEvent(
                    type=EventType.PLAN_LIMIT,
                    message=PLAN_LIMIT_MESSAGE,
                    payload={"app_name": app_name, "detail": result.human_message()},
                )
            )
            return result

        if not result.is_success:
            logger.error(f"Failed to create application '{app_name}': {result.human_message()}")
        return result

    async def ensure_application_version(self, app_name: str, spec: AppVersionSpec) -> RemoteCallResult[AppVersionInfo]:
        """
        Update first; fall back to create when the version does not exist yet.

        Args:
            app_name: Application owning the version.
            spec: Desired version. A create-shaped spec skips the update attempt.

        Returns:
            The final envelope. A create conflict is returned as soft success
            carrying the conflict's message as a warning.
        """
        if isinstance(spec, UpdateAppVersionSpec):
            update_spec = spec.model_copy(update={"app_name": app_name})
            logger.info(f"Updating version '{update_spec.name}' of '{app_name}'")
            result = await self.api.update_app_version(update_spec)
            if not result.is_not_found:
                if not result.is_success:
                    logger.error(f"Failed to update version '{update_spec.name}': {result.human_message()}")
                return result
            logger.info(f"Version '{update_spec.name}' not found; creating it instead.")
            create_spec: CreateAppVersionSpec = update_spec.to_create()
        else:
            create_spec = spec.model_copy(update={"app_name": app_name})

        result = await self.api.create_app_version(create_spec)
        if result.is_conflict:
            return self._soft_success(result, f"Version '{create_spec.name}' already exists.")
        if not result.is_success:
            logger.error(f"Failed to create version '{create_spec.name}': {result.human_message()}")
        return result

    def _soft_success(self, result: RemoteCallResult, fallback: str) -> RemoteCallResult:
        soft = result.as_soft_success()
        if soft.warning is None:
            soft = soft.model_copy(update={"warning": fallback})
        self.event_emitter.emit(
            DeploymentEvent(type=EventType.WARNING, message=soft.warning or fallback, payload={"status": "warn"})
        )
        return soft
