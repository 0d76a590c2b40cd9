from unittest.mock import MagicMock

from rich.console import Console

from edgegap_orchestrator.events import DeploymentEvent, EventType
from edgegap_orchestrator.ui.console import RichConsoleEmitter


def test_rows_follow_step_events() -> None:
    emitter = RichConsoleEmitter(console=Console(record=True))
    emitter.live = MagicMock()

    emitter.emit(DeploymentEvent(type=EventType.STEP_START, message="Building container image", payload={"step": "image_build"}))
    assert emitter.rows["image_build"]["status"] == "running"

    emitter.emit(DeploymentEvent(type=EventType.STEP_RESULT, message="built", payload={"step": "image_build", "status": "pass"}))
    assert emitter.rows["image_build"] == {"status": "pass", "message": "built"}
    assert emitter.live.update.call_count == 2


def test_state_and_progress_are_tracked() -> None:
    emitter = RichConsoleEmitter(console=Console(record=True))

    emitter.emit(DeploymentEvent(type=EventType.STATE_CHANGED, message="", payload={"to": "building"}))
    emitter.emit(DeploymentEvent(type=EventType.PROGRESS, message="Step 2/9"))

    table = emitter.generate_table()
    assert "building" in str(table.title)
    assert table.caption == "Step 2/9"


def test_warnings_are_printed_without_live_view() -> None:
    console = Console(record=True)
    emitter = RichConsoleEmitter(console=console)

    emitter.emit(DeploymentEvent(type=EventType.PLAN_LIMIT, message="Upgrade your plan"))

    assert "Upgrade your plan" in console.export_text()
    assert emitter.rows["plan_limit"]["status"] == "warn"


def test_start_and_stop() -> None:
    emitter = RichConsoleEmitter(console=Console(record=True))
    emitter.start()
    assert emitter.live is not None
    emitter.stop()
    assert emitter.live is None
