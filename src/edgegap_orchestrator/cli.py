# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/edgegap_orchestrator

import asyncio
import sys
from typing import Awaitable, Callable, List, Optional

import typer
from rich.console import Console

from edgegap_orchestrator.container import Container
from edgegap_orchestrator.domain.envelope import RemoteCallResult
from edgegap_orchestrator.domain.models import DeploymentHandle, DeploymentStatus
from edgegap_orchestrator.orchestrator import DeploymentOrchestrator
from edgegap_orchestrator.ui.console import RichConsoleEmitter
from edgegap_orchestrator.utils.logger import logger

app = typer.Typer(
    name="edgegap-orchestrator",
    help="Edgegap Orchestrator: build, publish and deploy game servers on Edgegap.",
    add_completion=False,
)

console = Console()

TokenOption = typer.Option(None, "--token", "-t", help="Edgegap API token. Defaults to EDGEGAP_API_TOKEN.")


def _run(
    token: Optional[str],
    operation: Callable[[DeploymentOrchestrator], Awaitable[bool]],
    renderer: Optional[RichConsoleEmitter] = None,
) -> None:
    """Verifies the token, runs one operation, and exits 0 on success or 1 on failure."""

    async def _session() -> bool:
        container = Container(emitters=[renderer] if renderer else None)
        orchestrator = container.get_orchestrator()
        try:
            api_token = token
            if api_token is None and container.settings.api_token is not None:
                api_token = container.settings.api_token.get_secret_value()
            verified = await orchestrator.verify(api_token or "")
            if not verified.is_success:
                console.print(f"[red]Token verification failed:[/red] {verified.human_message()}")
                return False
            return await operation(orchestrator)
        finally:
            await orchestrator.close()

    try:
        success = asyncio.run(_session())
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    sys.exit(0 if success else 1)


def _report(result: RemoteCallResult, success_message: str) -> bool:
    if result.is_success:
        console.print(f"[green]{success_message}[/green]")
        if result.warning:
            console.print(f"[yellow]{result.warning}[/yellow]")
        return True
    console.print(f"[red]{result.human_message()}[/red]")
    return False


def _print_status(result: RemoteCallResult[DeploymentStatus]) -> None:
    if not result.is_success or result.data is None:
        console.print(f"[red]{result.human_message()}[/red]")
        return
    status = result.data
    console.print(f"{status.request_id}: [bold]{status.current_status}[/bold]")
    if status.fqdn:
        console.print(f"  host: {status.fqdn} ({status.public_ip or 'no public ip yet'})")
    if status.error_detail:
        console.print(f"  [red]{status.error_detail}[/red]")


@app.command(name="verify")
def verify(token: Optional[str] = TokenOption) -> None:
    """
    Checks that the API token is accepted by Edgegap.
    """

    async def _op(orchestrator: DeploymentOrchestrator) -> bool:
        console.print(f"[green]Connected to {orchestrator.client.base_url}[/green]")
        return True

    _run(token, _op)


@app.command(name="create-app")
def create_app(
    name: str = typer.Argument(..., help="Application name."),
    token: Optional[str] = TokenOption,
) -> None:
    """
    Creates the application; an existing one is reported as a warning.
    """

    async def _op(orchestrator: DeploymentOrchestrator) -> bool:
        result = await orchestrator.ensure_application(name)
        return _report(result, f"Application '{name}' is ready.")

    _run(token, _op)


@app.command(name="publish")
def publish(
    app_name: str = typer.Option(..., "--app", "-a", help="Application name."),
    tag: Optional[str] = typer.Option(None, "--tag", help="Image tag and version name."),
    token: Optional[str] = TokenOption,
) -> None:
    """
    Builds and pushes the container image, then points the application version at it.
    """
    renderer = RichConsoleEmitter(console=console)

    async def _op(orchestrator: DeploymentOrchestrator) -> bool:
        orchestrator.session.app_name = app_name
        renderer.start()
        try:
            result = await orchestrator.build_and_push(progress=lambda line: logger.debug(line), tag=tag)
        finally:
            renderer.stop()
        return _report(result, f"Published {orchestrator.session.image_repository}:{orchestrator.session.version_name}")

    _run(token, _op, renderer)


@app.command(name="deploy")
def deploy(
    app_name: str = typer.Option(..., "--app", "-a", help="Application name."),
    version: Optional[str] = typer.Option(None, "--version", "-v", help="Version name."),
    ips: List[str] = typer.Option([], "--ip", help="Public IP of an expected client. Repeatable."),
    token: Optional[str] = TokenOption,
) -> None:
    """
    Starts a deployment and waits for it to be ready.
    """

    async def _op(orchestrator: DeploymentOrchestrator) -> bool:
        result = await orchestrator.start_deployment(ips, app_name=app_name, version_name=version)
        if not result.is_success or result.data is None:
            console.print(f"[red]{result.human_message()}[/red]")
            return False
        console.print(f"Deployment request id: [bold]{result.data.request_id}[/bold]")
        if orchestrator.lifecycle.last_status is not None:
            _print_status(orchestrator.lifecycle.last_status)
        console.print(f"Tool state: {orchestrator.state.value}")
        return True

    _run(token, _op)


@app.command(name="status")
def status(
    request_id: str = typer.Argument(..., help="Deployment request id."),
    watch: bool = typer.Option(False, "--watch", "-w", help="Keep refreshing until the deployment ends."),
    token: Optional[str] = TokenOption,
) -> None:
    """
    Shows a deployment's status.
    """

    async def _op(orchestrator: DeploymentOrchestrator) -> bool:
        result = await orchestrator.resume_deployment(DeploymentHandle(request_id=request_id))
        _print_status(result)
        if watch and result.is_success:
            await orchestrator.watch_status(on_status=_print_status)
        return result.is_success

    _run(token, _op)


@app.command(name="stop")
def stop(
    request_id: str = typer.Argument(..., help="Deployment request id."),
    token: Optional[str] = TokenOption,
) -> None:
    """
    Stops a running deployment.
    """

    async def _op(orchestrator: DeploymentOrchestrator) -> bool:
        current = await orchestrator.resume_deployment(DeploymentHandle(request_id=request_id))
        if current.is_success and not orchestrator.session.has_active_deployment:
            console.print(f"[green]Deployment {request_id} is already terminated.[/green]")
            return True
        if not orchestrator.state_machine.can_stop_deployment:
            _print_status(current)
            console.print(f"[yellow]Deployment cannot be stopped while {orchestrator.state.value}.[/yellow]")
            return False
        result = await orchestrator.stop_deployment()
        return _report(result, f"Deployment {request_id} stopped.")

    _run(token, _op)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
