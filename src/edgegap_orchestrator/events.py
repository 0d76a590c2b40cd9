import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Protocol

from edgegap_orchestrator.utils.logger import logger


class EventType(Enum):
    STATE_CHANGED = "state_changed"
    STEP_START = "step_start"
    STEP_RESULT = "step_result"
    PROGRESS = "progress"
    WARNING = "warning"
    PLAN_LIMIT = "plan_limit"
    ERROR = "error"


@dataclass
class DeploymentEvent:
    type: EventType
    message: str
    timestamp: float = field(default_factory=time.time)
    payload: Dict[str, Any] = field(default_factory=dict)


class EventEmitter(Protocol):
    def emit(self, event: DeploymentEvent) -> None:
        """Emits a deployment event."""
        ...  # pragma: no cover


class LoguruEmitter:
    """Adapter that logs events to Loguru."""

    def emit(self, event: DeploymentEvent) -> None:
        if event.type == EventType.ERROR:
            logger.error(f"[{event.type.value}] {event.message} | {event.payload}")
        elif event.type in (EventType.WARNING, EventType.PLAN_LIMIT):
            logger.warning(f"[{event.type.value}] {event.message} | {event.payload}")
        elif event.type == EventType.STEP_RESULT and event.payload.get("status") == "fail":
            logger.error(f"[{event.type.value}] {event.message} | {event.payload}")
        elif event.type == EventType.PROGRESS:
            logger.debug(f"[{event.type.value}] {event.message}")
        else:
            logger.info(f"[{event.type.value}] {event.message} | {event.payload}")


class EventCollector:
    """Collects events in memory."""

    def __init__(self) -> None:
        self.events: List[DeploymentEvent] = []

    def emit(self, event: DeploymentEvent) -> None:
        self.events.append(event)

    def get_events(self) -> List[DeploymentEvent]:
        return self.events

    def of_type(self, event_type: EventType) -> List[DeploymentEvent]:
        return [e for e in self.events if e.type == event_type]


class CompositeEmitter:
    """Broadcasts events to multiple emitters."""

    def __init__(self, emitters: List[EventEmitter]) -> None:
        self.emitters = emitters

    def emit(self, event: DeploymentEvent) -> None:
        for emitter in self.emitters:
            emitter.emit(event)
