import shutil
from pathlib import Path
from typing import List, Optional, Tuple

from edgegap_orchestrator.builder.base import ProgressCallback, image_reference
from edgegap_orchestrator.utils.logger import logger
from edgegap_orchestrator.utils.shell import AsyncShellExecutor

# Edgegap runs linux/amd64 hosts only.
TARGET_PLATFORM = "linux/amd64"


class DockerImageBuilder:
    """
    ImageBuilder backed by the docker CLI.
    """

    def __init__(
        self,
        executable: str = "docker",
        artifact_command: Optional[List[str]] = None,
        context_dir: Path = Path("."),
        shell: Optional[AsyncShellExecutor] = None,
    ) -> None:
        self.executable = executable
        self.artifact_command = artifact_command or []
        self.context_dir = context_dir
        self.shell = shell or AsyncShellExecutor()

    async def check_toolchain(self) -> bool:
        if not shutil.which(self.executable):
            logger.error(f"Container tool '{self.executable}' not found in PATH.")
            return False
        result = await self.shell.run([self.executable, "info"], timeout=60)
        if not result.ok:
            logger.error(f"'{self.executable} info' failed; is the daemon running? {result.stderr.strip()}")
        return result.ok

    async def build_artifact(self) -> Tuple[bool, str]:
        if not self.artifact_command:
            return True, "No artifact build command configured."
        result = await self.shell.run(self.artifact_command, timeout=3600)
        if not result.ok:
            return False, result.stderr.strip() or result.stdout.strip() or f"exit code {result.exit_code}"
        return True, result.stdout.strip()

    async def build_image(self, registry: str, name: str, tag: str, on_progress: ProgressCallback) -> bool:
        reference = image_reference(registry, name, tag)
        command = [
            self.executable,
            "build",
            "--platform",
            TARGET_PLATFORM,
            "-t",
            reference,
            str(self.context_dir),
        ]
        result = await self.shell.stream(command, on_line=on_progress)
        if not result.ok:
            logger.error(f"Image build for {reference} failed with exit code {result.exit_code}")
        return result.ok

    async def login(self, registry: str, username: str, token: str, on_progress: ProgressCallback) -> bool:
        on_progress(f"Logging in to {registry}")
        result = await self.shell.run(
            [self.executable, "login", registry, "--username", username, "--password-stdin"],
            timeout=120,
            input_text=token,
        )
        if not result.ok:
            logger.error(f"Registry login to {registry} failed: {result.stderr.strip()}")
        return result.ok

    async def push(self, registry: str, name: str, tag: str, on_progress: ProgressCallback) -> bool:
        reference = image_reference(registry, name, tag)
        result = await self.shell.stream([self.executable, "push", reference], on_line=on_progress)
        if not result.ok:
            logger.error(f"Push of {reference} failed with exit code {result.exit_code}")
        return result.ok
