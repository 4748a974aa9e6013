"""External command execution."""

import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from .log import get_logger

logger = get_logger("shell")


@dataclass
class CommandResult:
    """Output of a finished command."""

    command: list[str]
    returncode: int
    stdout: str
    stderr: str


class CommandError(Exception):
    """Raised when an external command cannot be run or exits non-zero."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: int | None,
        stdout: str = "",
        stderr: str = "",
    ):
        self.command = list(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr

        message = f"Command failed: {' '.join(self.command)}"
        if returncode is not None:
            message = f"{message} (exit code {returncode})"
        if stderr:
            message = f"{message}\n{stderr.strip()}"
        super().__init__(message)


class CommandRunner:
    """Runs external commands through subprocess.

    Anything with a compatible ``run`` method can stand in for it.
    """

    def __init__(self, timeout: int | None = None):
        self.timeout = timeout

    def run(
        self,
        command: str,
        args: Sequence[str],
        cwd: Path | str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        """Run a command and return its output.

        Args:
            command: Executable to run (e.g., 'npm')
            args: Arguments to the executable
            cwd: Working directory for the command
            env: Full environment for the command (default: inherit)

        Returns:
            CommandResult with captured output

        Raises:
            CommandError: If the command is missing, times out or exits non-zero
        """
        cmd = [command, *args]
        logger.debug("Running command", command=" ".join(cmd), cwd=str(cwd) if cwd else None)

        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                env=dict(env) if env is not None else None,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise CommandError(cmd, None, stderr=f"{command} not found: {e}") from e
        except subprocess.TimeoutExpired as e:
            logger.error("Command timed out", command=" ".join(cmd))
            raise CommandError(cmd, None, stderr=f"timed out after {e.timeout}s") from e

        if result.returncode != 0:
            raise CommandError(cmd, result.returncode, result.stdout, result.stderr)

        return CommandResult(cmd, result.returncode, result.stdout, result.stderr)
