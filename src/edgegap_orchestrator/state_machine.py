# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/edgegap_orchestrator

from typing import Dict, FrozenSet, Optional, Tuple

from edgegap_orchestrator.domain.session import Session
from edgegap_orchestrator.domain.state import ToolState, Trigger
from edgegap_orchestrator.events import DeploymentEvent, EventEmitter, EventType, LoguruEmitter
from edgegap_orchestrator.exceptions import IllegalTransitionError
from edgegap_orchestrator.utils.logger import logger

_ANY_DEPLOYMENT: FrozenSet[ToolState] = frozenset({ToolState.PROCESSING_DEPLOYMENT, ToolState.DEPLOYMENT_RUNNING})
_ANY_PIPELINE: FrozenSet[ToolState] = frozenset({ToolState.BUILDING, ToolState.PUSHING})


def _build_table() -> Dict[Tuple[ToolState, Trigger], ToolState]:
    table: Dict[Tuple[ToolState, Trigger], ToolState] = {
        (ToolState.DISCONNECTED, Trigger.VERIFY_STARTED): ToolState.CONNECTING,
        (ToolState.CONNECTING, Trigger.VERIFY_SUCCEEDED): ToolState.CONNECTED,
        (ToolState.CONNECTING, Trigger.VERIFY_FAILED): ToolState.DISCONNECTED,
        (ToolState.CONNECTED, Trigger.BUILD_STARTED): ToolState.BUILDING,
        (ToolState.BUILDING, Trigger.PUSH_STARTED): ToolState.PUSHING,
        (ToolState.CONNECTED, Trigger.DEPLOY_REQUESTED): ToolState.PROCESSING_DEPLOYMENT,
        (ToolState.CONNECTED, Trigger.RESUME_REQUESTED): ToolState.PROCESSING_DEPLOYMENT,
        (ToolState.PROCESSING_DEPLOYMENT, Trigger.DEPLOY_FAILED): ToolState.CONNECTED,
        (ToolState.PROCESSING_DEPLOYMENT, Trigger.STATUS_PENDING): ToolState.PROCESSING_DEPLOYMENT,
        (ToolState.DEPLOYMENT_RUNNING, Trigger.STATUS_PENDING): ToolState.DEPLOYMENT_RUNNING,
        (ToolState.DEPLOYMENT_RUNNING, Trigger.STOP_REQUESTED): ToolState.PROCESSING_DEPLOYMENT,
        (ToolState.CONNECTED, Trigger.DISCONNECT): ToolState.DISCONNECTED,
    }
    for state in _ANY_PIPELINE:
        table[(state, Trigger.PIPELINE_FINISHED)] = ToolState.CONNECTED
    for state in _ANY_DEPLOYMENT:
        table[(state, Trigger.STATUS_READY)] = ToolState.DEPLOYMENT_RUNNING
        table[(state, Trigger.STATUS_TERMINATED)] = ToolState.CONNECTED
    return table


TRANSITIONS = _build_table()


class ToolStateMachine:
    """
    Gates which operations are legal for a session.

    The current state lives on the Session; this class is the only writer.
    Capabilities are read straight off the state and cannot be set independently.
    """

    def __init__(self, session: Session, event_emitter: Optional[EventEmitter] = None) -> None:
        self.session = session
        self.event_emitter = event_emitter or LoguruEmitter()

    @property
    def state(self) -> ToolState:
        return self.session.state

    @property
    def can_edit_connection_info(self) -> bool:
        return self.state.can_edit_connection_info

    @property
    def can_start_deployment(self) -> bool:
        return self.state.can_start_deployment

    @property
    def can_stop_deployment(self) -> bool:
        return self.state.can_stop_deployment

    def can_fire(self, trigger: Trigger) -> bool:
        return (self.state, trigger) in TRANSITIONS

    def require(self, trigger: Trigger) -> None:
        """Raises IllegalTransitionError unless trigger is legal right now."""
        if not self.can_fire(trigger):
            raise IllegalTransitionError(self.state.value, trigger.value)

    def fire(self, trigger: Trigger) -> ToolState:
        """
        Applies a trigger.

        Returns:
            The new state.

        Raises:
            IllegalTransitionError: If the trigger is not allowed in the current state.
        """
        self.require(trigger)
        previous = self.state
        target = TRANSITIONS[(previous, trigger)]
        self.session.state = target

        if target != previous:
            logger.debug(f"Tool state {previous.value} -> {target.value} ({trigger.value})")
            self.event_emitter.emit(
                DeploymentEvent(
                    type=EventType.STATE_CHANGED,
                    message=f"{previous.value} -> {target.value}",
                    payload={"from": previous.value, "to": target.value, "trigger": trigger.value},
                )
            )
        return target
