"""External analysis tool runner.

Usage:
    runner = ToolRunner(launcher=["bunx"], cwd=".")
    output = runner.run("oxlint", ["--format", "json"])
    output.stdout, output.stderr, output.exit_code
"""

import logging
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ToolRunnerError(Exception):
    """Base exception for all runner errors."""


class ToolNotFoundError(ToolRunnerError):
    """Raised when the launcher or tool executable is not on PATH."""


class ToolTimeoutError(ToolRunnerError):
    """Raised when a tool exceeds the configured timeout."""


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ToolOutput:
    stdout: str
    stderr: str
    exit_code: int

    @property
    def combined(self) -> str:
        return self.stdout + self.stderr


class ToolRunner:
    """Thin wrapper around ``subprocess.run`` for analysis tools.

    No timeout is applied unless one is configured, so a hung tool blocks
    the run until it exits.
    """

    def __init__(self, launcher: list[str] | None = None, cwd: str | Path = ".",
                 timeout: float | None = None) -> None:
        self.launcher = list(launcher or [])
        self.cwd = Path(cwd)
        self._timeout = timeout

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def run(self, tool: str, args: list[str] | None = None) -> ToolOutput:
        """Run *tool* with *args* and return its captured output.

        Both streams are drained before the exit code is inspected.

        Raises:
            ToolNotFoundError: the executable cannot be resolved
            ToolTimeoutError:  the configured timeout elapsed
        """
        command = self._command(tool, list(args or []))
        logger.debug("$ %s", shlex.join(command))
        try:
            completed = subprocess.run(
                command,
                cwd=str(self.cwd),
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self._timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise ToolTimeoutError(
                f"'{tool}' did not finish within {self._timeout}s"
            ) from exc
        except FileNotFoundError as exc:
            raise ToolNotFoundError(f"Unable to start '{command[0]}': {exc}") from exc

        logger.debug("'%s' exited with %d", tool, completed.returncode)
        return ToolOutput(
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
            exit_code=completed.returncode,
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _command(self, tool: str, args: list[str]) -> list[str]:
        head, *rest = [*self.launcher, tool, *args]
        if Path(head).is_absolute():
            return [head, *rest]
        resolved = shutil.which(head)
        if resolved is None:
            raise ToolNotFoundError(f"Executable '{head}' was not found on PATH")
        return [resolved, *rest]
