import asyncio
from dataclasses import dataclass
from typing import Callable, List, Optional

from edgegap_orchestrator.utils.logger import logger


@dataclass
class CommandResult:
    """Result of a shell command execution."""

    exit_code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class ShellError(RuntimeError):
    """Raised when a shell command fails."""

    def __init__(self, message: str, result: CommandResult):
        super().__init__(message)
        self.result = result


class AsyncShellExecutor:
    """Executes external commands asynchronously."""

    async def run(
        self,
        command: List[str],
        timeout: float = 300,
        check: bool = False,
        input_text: Optional[str] = None,
    ) -> CommandResult:
        """
        Executes a command and captures its output.

        Args:
            command: The command to execute as a list of arguments.
            timeout: Timeout in seconds.
            check: If True, raise ShellError if exit code is non-zero.
            input_text: Text written to the process stdin (e.g. a password).

        Returns:
            CommandResult containing exit code, stdout, and stderr.
        """
        # Only the executable and subcommand are logged; arguments may hold credentials.
        logger.debug(f"Executing async: {' '.join(command[:2])}")

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.PIPE if input_text is not None else None,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except Exception as e:
            result = CommandResult(exit_code=-1, stdout="", stderr=str(e))
            if check:
                raise ShellError(f"Failed to execute command: {e}", result) from e
            return result

        try:
            stdin_bytes = input_text.encode() if input_text is not None else None
            stdout_bytes, stderr_bytes = await asyncio.wait_for(process.communicate(stdin_bytes), timeout=timeout)
        except asyncio.TimeoutError as e:
            process.kill()
            await process.wait()
            result = CommandResult(exit_code=-1, stdout="", stderr=f"Command timed out after {timeout}s")
            if check:
                raise ShellError(f"Command timed out: {command[0]}", result) from e
            return result

        exit_code = process.returncode if process.returncode is not None else -1
        result = CommandResult(exit_code=exit_code, stdout=stdout_bytes.decode(), stderr=stderr_bytes.decode())

        if check and result.exit_code != 0:
            error_msg = f"Command failed with exit code {result.exit_code}"
            if result.stderr:
                error_msg += f": {result.stderr.strip()}"
            raise ShellError(error_msg, result)

        return result

    async def stream(
        self,
        command: List[str],
        on_line: Callable[[str], None],
        timeout: float = 1800,
    ) -> CommandResult:
        """
        Executes a command, forwarding each output line (stdout and stderr merged) to `on_line`.

        Returns:
            CommandResult with the full merged output in stdout.
        """
        logger.debug(f"Streaming async: {' '.join(command[:2])}")

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except Exception as e:
            return CommandResult(exit_code=-1, stdout="", stderr=str(e))

        lines: List[str] = []

        async def _pump() -> None:
            if process.stdout:
                async for raw in process.stdout:
                    line = raw.decode(errors="replace").rstrip()
                    if line:
                        lines.append(line)
                        on_line(line)
            await process.wait()

        try:
            await asyncio.wait_for(_pump(), timeout=timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            return CommandResult(exit_code=-1, stdout="\n".join(lines), stderr=f"Command timed out after {timeout}s")

        exit_code = process.returncode if process.returncode is not None else -1
        return CommandResult(exit_code=exit_code, stdout="\n".join(lines), stderr="")
