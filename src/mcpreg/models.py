# Core data models for mcpreg
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Protocol, runtime_checkable

# ABOUTME: Transports and scopes understood by `claude mcp add`
Transport = Literal["stdio", "sse"]
Scope = Literal["local", "project", "user"]

TRANSPORTS: tuple[str, ...] = ("stdio", "sse")
SCOPES: tuple[str, ...] = ("local", "project", "user")


@dataclass(frozen=True)
class ServerStatus:
    """Advisory runtime status of an MCP server.

    ABOUTME: Never authoritative, defaults to unknown/not running
    ABOUTME: last_checked is unix seconds when known
    """
    running: bool = False
    error: str | None = None
    last_checked: int | None = None


@dataclass(frozen=True)
class ServerRecord:
    """One MCP server as reported by the claude CLI.

    ABOUTME: Frozen so the overlay merge always produces a new record
    ABOUTME: Only `disabled` comes from .mcp.json, the rest is derived from CLI text
    """
    name: str
    transport: Transport = "stdio"
    command: str | None = None
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)
    url: str | None = None
    scope: Scope = "local"
    active: bool = False
    disabled: bool = False
    status: ServerStatus = field(default_factory=ServerStatus)


@dataclass
class ServerConfigEntry:
    """One server entry of the project .mcp.json file.

    ABOUTME: The only server structure persisted by mcpreg
    ABOUTME: `extra` keeps keys we do not own (type, url, ...) for write-back
    """
    command: str = ""
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)
    disabled: bool = False
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class ProjectConfig:
    """Contents of <project>/.mcp.json.

    ABOUTME: Server name is the map key, no name field is stored
    """
    servers: dict[str, ServerConfigEntry] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AddResult:
    """Outcome of an add or add-json request."""
    success: bool
    message: str
    server_name: str | None = None


@dataclass(frozen=True)
class ImportServerResult:
    """Outcome for a single imported server."""
    name: str
    success: bool
    error: str | None = None


@dataclass
class ImportOutcome:
    """Report from a Claude Desktop import.

    ABOUTME: Per-server results keep the input order
    """
    imported_count: int = 0
    failed_count: int = 0
    servers: list[ImportServerResult] = field(default_factory=list)

    def add_success(self, name: str) -> None:
        self.imported_count += 1
        self.servers.append(ImportServerResult(name=name, success=True))

    def add_failure(self, name: str, error: str) -> None:
        self.failed_count += 1
        self.servers.append(ImportServerResult(name=name, success=False, error=error))


@dataclass(frozen=True)
class CommandResult:
    """Raw result of one `claude mcp ...` invocation."""
    stdout: str
    stderr: str
    exit_code: int

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def combined_output(self) -> str:
        """stdout and stderr joined, trimmed."""
        if not self.stderr:
            return self.stdout.strip()
        return f"{self.stdout}\n{self.stderr}".strip()


@runtime_checkable
class ProcessRunner(Protocol):
    """Protocol for the process execution adapter.

    ABOUTME: Runs `claude mcp <args>` and hands back raw text and exit status
    ABOUTME: Uses @runtime_checkable for isinstance() support
    """

    def run(self, args: Sequence[str], cwd: Path | None = None) -> CommandResult:
        """Run a subcommand to completion."""
        ...

    def spawn(self, args: Sequence[str], cwd: Path | None = None) -> None:
        """Start a subcommand without waiting for it."""
        ...
