from typing import List
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from edgegap_orchestrator.builder import DockerImageBuilder, image_reference
from edgegap_orchestrator.utils.shell import AsyncShellExecutor, CommandResult


def _shell(ok: bool = True) -> MagicMock:
    shell = MagicMock(spec=AsyncShellExecutor)
    result = CommandResult(exit_code=0 if ok else 1, stdout="done", stderr="" if ok else "failure")
    shell.run = AsyncMock(return_value=result)
    shell.stream = AsyncMock(return_value=result)
    return shell


def test_image_reference() -> None:
    assert image_reference("registry.edgegap.com/", "studio/demo", "v1") == "registry.edgegap.com/studio/demo:v1"
    assert image_reference("", "demo", "latest") == "demo:latest"


@pytest.mark.asyncio
async def test_check_toolchain_missing_executable() -> None:
    shell = _shell()
    with patch("edgegap_orchestrator.builder.docker.shutil.which", return_value=None):
        assert await DockerImageBuilder(shell=shell).check_toolchain() is False
    shell.run.assert_not_awaited()


@pytest.mark.asyncio
async def test_check_toolchain_daemon_down() -> None:
    with patch("edgegap_orchestrator.builder.docker.shutil.which", return_value="/usr/bin/docker"):
        assert await DockerImageBuilder(shell=_shell(ok=False)).check_toolchain() is False


@pytest.mark.asyncio
async def test_build_artifact_without_command_succeeds() -> None:
    shell = _shell()
    succeeded, details = await DockerImageBuilder(shell=shell).build_artifact()

    assert succeeded
    assert "No artifact build command" in details
    shell.run.assert_not_awaited()


@pytest.mark.asyncio
async def test_build_artifact_failure_reports_stderr() -> None:
    builder = DockerImageBuilder(artifact_command=["make", "server"], shell=_shell(ok=False))
    succeeded, details = await builder.build_artifact()

    assert not succeeded
    assert details == "failure"


@pytest.mark.asyncio
async def test_build_image_targets_linux_amd64() -> None:
    shell = _shell()
    lines: List[str] = []

    assert await DockerImageBuilder(shell=shell).build_image("registry.edgegap.com", "studio/demo", "v1", lines.append)

    command = shell.stream.await_args.args[0]
    assert command[:4] == ["docker", "build", "--platform", "linux/amd64"]
    assert "registry.edgegap.com/studio/demo:v1" in command


@pytest.mark.asyncio
async def test_login_sends_token_on_stdin() -> None:
    shell = _shell()

    assert await DockerImageBuilder(shell=shell).login("registry.edgegap.com", "robot", "secret", lambda _: None)

    command = shell.run.await_args.args[0]
    assert "secret" not in command
    assert "--password-stdin" in command
    assert shell.run.await_args.kwargs["input_text"] == "secret"


@pytest.mark.asyncio
async def test_push_failure() -> None:
    assert not await DockerImageBuilder(shell=_shell(ok=False)).push("r", "demo", "v1", lambda _: None)
