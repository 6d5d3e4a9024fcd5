"""Process execution for external tools."""

import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Protocol, Sequence

import structlog

logger = structlog.get_logger()


@dataclass
class CommandResult:
    """Result of an external command."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ProcessRunner(Protocol):
    def run(
        self,
        args: Sequence[str],
        cwd: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
        stream: bool = False,
    ) -> CommandResult: ...

    def which(self, tool: str) -> Optional[str]: ...


class SubprocessRunner:
    """Runs commands with subprocess and waits for them to finish."""

    def run(
        self,
        args: Sequence[str],
        cwd: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
        stream: bool = False,
    ) -> CommandResult:
        """
        Run a command to completion.

        Args:
            args: Command and arguments
            cwd: Working directory
            env: Variables added to the current environment
            stream: Let the command write straight to the terminal instead of
                capturing its output

        Returns:
            CommandResult; stdout and stderr are empty when streaming
        """
        logger.debug("Running command", args=list(args), cwd=str(cwd) if cwd else None)

        completed = subprocess.run(
            list(args),
            cwd=cwd,
            capture_output=not stream,
            text=True,
            env={**os.environ, **(env or {})},
        )

        result = CommandResult(
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
        logger.debug("Command finished", args=list(args), returncode=result.returncode)

        return result

    def which(self, tool: str) -> Optional[str]:
        return shutil.which(tool)
