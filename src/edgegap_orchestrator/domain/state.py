from enum import Enum


class ToolState(str, Enum):
    """Exactly one is active per session."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    BUILDING = "building"
    PUSHING = "pushing"
    PROCESSING_DEPLOYMENT = "processing_deployment"
    DEPLOYMENT_RUNNING = "deployment_running"

    @property
    def can_edit_connection_info(self) -> bool:
        return self == ToolState.DISCONNECTED

    @property
    def can_start_deployment(self) -> bool:
        return self == ToolState.CONNECTED

    @property
    def can_stop_deployment(self) -> bool:
        return self == ToolState.DEPLOYMENT_RUNNING


class Trigger(str, Enum):
    """Orchestration outcomes that move the tool from one state to another."""

    VERIFY_STARTED = "verify_started"
    VERIFY_SUCCEEDED = "verify_succeeded"
    VERIFY_FAILED = "verify_failed"
    BUILD_STARTED = "build_started"
    PUSH_STARTED = "push_started"
    PIPELINE_FINISHED = "pipeline_finished"
    DEPLOY_REQUESTED = "deploy_requested"
    DEPLOY_FAILED = "deploy_failed"
    STATUS_READY = "status_ready"
    STATUS_PENDING = "status_pending"
    STATUS_TERMINATED = "status_terminated"
    STOP_REQUESTED = "stop_requested"
    RESUME_REQUESTED = "resume_requested"
    DISCONNECT = "disconnect"
