# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/edgegap_orchestrator

from typing import Dict, Optional

from rich.console import Console
from rich.live import Live
from rich.table import Table

from edgegap_orchestrator.events import DeploymentEvent, EventType

_ICONS = {
    "pass": ("✅", "green"),
    "fail": ("❌", "red"),
    "warn": ("⚠️", "yellow"),
    "skip": ("⏭", "dim"),
    "info": ("•", "cyan"),
}


class RichConsoleEmitter:
    """
    Renders deployment events to a rich terminal UI.
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()
        self.rows: Dict[str, Dict[str, str]] = {}  # step/row name -> {status, message}
        self.live: Optional[Live] = None
        self.tool_state = "disconnected"
        self.last_progress = ""

    def start(self) -> None:
        self.live = Live(self.generate_table(), console=self.console, refresh_per_second=4)
        self.live.start()

    def stop(self) -> None:
        if self.live:
            self.live.stop()
            self.live = None

    def generate_table(self) -> Table:
        table = Table(title=f"Edgegap Deployment ({self.tool_state})", expand=True)
        table.add_column("Step", style="cyan")
        table.add_column("Status", justify="center")
        table.add_column("Details", style="dim")

        for name, data in self.rows.items():
            icon, style = _ICONS.get(data.get("status", "running"), ("⏳", "yellow"))
            table.add_row(name, icon, data.get("message", ""), style=style)

        if self.last_progress:
            table.caption = self.last_progress
        return table

    def emit(self, event: DeploymentEvent) -> None:
        if event.type == EventType.STATE_CHANGED:
            self.tool_state = event.payload.get("to", self.tool_state)
        elif event.type == EventType.STEP_START:
            step = event.payload.get("step", event.message)
            self.rows[step] = {"status": "running", "message": event.message}
        elif event.type == EventType.STEP_RESULT:
            step = event.payload.get("step", "Result")
            self.rows[step] = {"status": event.payload.get("status", "pass"), "message": event.message}
        elif event.type == EventType.PROGRESS:
            self.last_progress = event.message
        elif event.type in (EventType.WARNING, EventType.PLAN_LIMIT):
            self.rows[event.type.value] = {"status": "warn", "message": event.message}
        elif event.type == EventType.ERROR:
            self.rows["Error"] = {"status": "fail", "message": event.message}

        if self.live:
            self.live.update(self.generate_table())
        elif event.type in (EventType.WARNING, EventType.PLAN_LIMIT, EventType.ERROR):
            self.console.print(f"[yellow]{event.message}[/yellow]")
