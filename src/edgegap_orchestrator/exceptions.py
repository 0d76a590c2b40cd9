class OrchestratorError(Exception):
    """Base exception for the Edgegap deployment orchestrator."""

    pass


class TransportError(OrchestratorError):
    """Raised when a request never produced an HTTP response (DNS, refused connection, timeout)."""

    def __init__(self, message: str, method: str = "", path: str = "") -> None:
        super().__init__(message)
        self.method = method
        self.path = path


class IllegalTransitionError(OrchestratorError):
    """Raised when an operation is not permitted in the current tool state."""

    def __init__(self, state: str, trigger: str) -> None:
        super().__init__(f"Trigger '{trigger}' is not allowed while in state '{state}'.")
        self.state = state
        self.trigger = trigger


class ConfigurationError(OrchestratorError):
    """Raised when the session is missing information an operation needs."""

    pass
