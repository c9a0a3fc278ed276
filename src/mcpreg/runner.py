# ABOUTME: Process execution adapter for `claude mcp ...`
# ABOUTME: Only this module starts child processes
import logging
import os
import shutil
import subprocess
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path

from mcpreg.errors import ClaudeNotFoundError, ProcessFailure
from mcpreg.models import CommandResult
from mcpreg.utils.env import DEFAULT_ENV_ALLOWLIST, build_child_env

logger = logging.getLogger(__name__)

# ABOUTME: Binary name looked up on PATH
CLAUDE_BINARY_NAME = "claude"


def candidate_paths(home: Path) -> list[Path]:
    """Well-known install locations checked when claude is not on PATH."""
    return [
        home / ".claude" / "local" / "claude",
        home / ".local" / "bin" / "claude",
        home / ".npm-global" / "bin" / "claude",
        Path("/opt/homebrew/bin/claude"),
        Path("/usr/local/bin/claude"),
        Path("/usr/bin/claude"),
    ]


def find_claude_binary(
    configured: str | None = None,
    home: Path | None = None,
    search_path: str | None = None,
) -> str:
    """Locate the claude executable.

    ABOUTME: Order: configured path, PATH lookup, well-known install locations
    ABOUTME: Raises ClaudeNotFoundError when nothing is found

    Args:
        configured: Explicit binary from settings, used as-is if it exists
        home: Home directory for install locations (default Path.home())
        search_path: PATH string for shutil.which (default: process PATH)

    Returns:
        Path or name of the binary to execute
    """
    if configured:
        resolved = shutil.which(configured, path=search_path)
        if resolved:
            return resolved
        if Path(configured).expanduser().is_file():
            return str(Path(configured).expanduser())
        raise ClaudeNotFoundError(f"Configured claude binary not found: {configured}")

    on_path = shutil.which(CLAUDE_BINARY_NAME, path=search_path)
    if on_path:
        return on_path

    for candidate in candidate_paths(home if home is not None else Path.home()):
        if candidate.is_file() and os.access(candidate, os.X_OK):
            logger.debug(f"Using claude binary at {candidate}")
            return str(candidate)

    raise ClaudeNotFoundError(
        "Could not find the claude binary. Install Claude Code or set claude.binary in settings."
    )


class ClaudeRunner:
    """Runs `claude mcp <args>` as a child process.

    ABOUTME: Implements the ProcessRunner protocol
    ABOUTME: Child environment comes from environ (default: a snapshot of os.environ) filtered by the allow-list
    ABOUTME: Blocks until the child exits; timeout is optional and kills the child
    """

    def __init__(
        self,
        binary: str | None = None,
        env_allowlist: Iterable[str] = DEFAULT_ENV_ALLOWLIST,
        environ: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> None:
        self._binary = binary
        self._env_allowlist = tuple(env_allowlist)
        self._environ = dict(environ) if environ is not None else dict(os.environ)
        self._timeout = timeout

    @property
    def binary(self) -> str:
        """Resolved binary, looked up lazily on first use."""
        if self._binary is None or not Path(self._binary).is_absolute():
            self._binary = find_claude_binary(self._binary, search_path=self._environ.get("PATH"))
        return self._binary

    def _command_line(self, args: Sequence[str]) -> list[str]:
        return [self.binary, "mcp", *args]

    def _child_env(self) -> dict[str, str]:
        return build_child_env(self._environ, self._env_allowlist)

    def run(self, args: Sequence[str], cwd: Path | None = None) -> CommandResult:
        """Run a subcommand to completion and capture its output.

        Raises:
            ProcessFailure: If the process cannot be started or times out
        """
        cmd = self._command_line(args)
        logger.info(f"Executing claude mcp command with args: {list(args)}")

        try:
            completed = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                env=self._child_env(),
                cwd=cwd,
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ProcessFailure(f"Command timed out after {e.timeout} seconds") from e
        except OSError as e:
            raise ProcessFailure(f"Failed to execute {cmd[0]}: {e}") from e

        logger.debug(f"claude mcp {' '.join(args)} exited with {completed.returncode}")
        return CommandResult(
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
            exit_code=completed.returncode,
        )

    def spawn(self, args: Sequence[str], cwd: Path | None = None) -> None:
        """Start a subcommand in the background without waiting.

        Raises:
            ProcessFailure: If the process cannot be started
        """
        cmd = self._command_line(args)
        logger.info(f"Spawning claude mcp command with args: {list(args)}")
        try:
            subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                env=self._child_env(),
                cwd=cwd,
            )
        except OSError as e:
            raise ProcessFailure(f"Failed to start {cmd[0]}: {e}") from e


def check_result(result: CommandResult) -> str:
    """Return stdout of a successful run or raise ProcessFailure.

    ABOUTME: Failure message is combined stdout+stderr, trimmed
    """
    if result.ok:
        return result.stdout
    raise ProcessFailure(result.combined_output, result.exit_code)
