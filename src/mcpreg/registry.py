# MCP server registry operations on top of `claude mcp`
import json
import logging
import os
from collections.abc import Mapping, Sequence
from pathlib import Path

from mcpreg.errors import McpRegError, ProcessFailure
from mcpreg.importer import get_desktop_config_path, import_desktop_servers, load_desktop_servers
from mcpreg.models import (
    AddResult,
    ImportOutcome,
    ProcessRunner,
    ProjectConfig,
    ServerRecord,
    ServerStatus,
)
from mcpreg.parsing import parse_detail_output, parse_list_output
from mcpreg.project_config import (
    config_to_dict,
    read_project_config,
    save_project_config,
    update_project_config,
)
from mcpreg.reconcile import describe_state, toggle_disabled
from mcpreg.runner import ClaudeRunner, check_result
from mcpreg.settings import Settings
from mcpreg.utils.backup import DEFAULT_MAX_BACKUPS
from mcpreg.utils.env import format_env_flags
from mcpreg.utils.validation import first_error, validate_add_json, validate_add_request

logger = logging.getLogger(__name__)


def build_add_args(
    name: str,
    transport: str,
    command: str | None,
    args: Sequence[str],
    env: Mapping[str, str],
    url: str | None,
    scope: str,
) -> list[str]:
    """Build the argument vector for `claude mcp add`.

    ABOUTME: stdio: add -s SCOPE [-e K=V]... NAME -- COMMAND ARGS...
    ABOUTME: sse:   add -s SCOPE --transport sse [-e K=V]... NAME URL
    ABOUTME: "--" keeps claude from reading the server's own flags as its own

    Examples:
        >>> build_add_args("fs", "stdio", "npx", ["-y", "fs"], {"A": "1"}, None, "user")
        ['add', '-s', 'user', '-e', 'A=1', 'fs', '--', 'npx', '-y', 'fs']
    """
    cmd_args = ["add", "-s", scope]
    if transport == "sse":
        cmd_args.extend(["--transport", "sse"])
    cmd_args.extend(format_env_flags(env))
    cmd_args.append(name)

    if transport == "sse":
        cmd_args.append(url or "")
    else:
        cmd_args.extend(["--", command or "", *args])
    return cmd_args


class McpRegistry:
    """Manage MCP servers registered with Claude Code.

    ABOUTME: claude owns the servers, .mcp.json in project_dir owns the disabled flags
    ABOUTME: All operations are blocking and single-flight
    """

    def __init__(
        self,
        runner: ProcessRunner,
        project_dir: Path | None = None,
        backup_dir: Path | None = None,
        max_backups: int = DEFAULT_MAX_BACKUPS,
    ) -> None:
        self.runner = runner
        self.project_dir = Path(project_dir) if project_dir is not None else Path.cwd()
        self.backup_dir = backup_dir
        self.max_backups = max_backups

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        project_dir: Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> "McpRegistry":
        """Create a registry backed by the real claude binary."""
        runner = ClaudeRunner(
            binary=settings.claude_binary,
            env_allowlist=settings.env_allowlist,
            environ=environ if environ is not None else dict(os.environ),
            timeout=settings.timeout,
        )
        return cls(
            runner,
            project_dir=project_dir,
            backup_dir=settings.effective_backup_dir,
            max_backups=settings.max_backups,
        )

    def _execute(self, args: Sequence[str]) -> str:
        return check_result(self.runner.run(args, cwd=self.project_dir))

    def _overlay(self) -> ProjectConfig:
        try:
            return read_project_config(self.project_dir)
        except McpRegError as e:
            logger.warning(f"Ignoring unreadable project config: {e}")
            return ProjectConfig()

    def _resolve_project(self, path: Path | str | None) -> Path:
        return Path(path) if path is not None else self.project_dir

    def add(
        self,
        name: str,
        transport: str = "stdio",
        command: str | None = None,
        args: Sequence[str] = (),
        env: Mapping[str, str] | None = None,
        url: str | None = None,
        scope: str = "local",
    ) -> AddResult:
        """Register a server with claude.

        ABOUTME: Validation and process failures come back as AddResult(success=False)
        """
        logger.info(f"Adding MCP server: {name} with transport: {transport}")

        error = first_error(validate_add_request(name, transport, command, url, scope))
        if error:
            return AddResult(success=False, message=error.message)

        cmd_args = build_add_args(name, transport, command, args, env or {}, url, scope)
        try:
            output = self._execute(cmd_args)
        except ProcessFailure as e:
            logger.error(f"Failed to add MCP server: {e}")
            return AddResult(success=False, message=str(e))

        logger.info(f"Successfully added MCP server: {name}")
        return AddResult(success=True, message=output.strip(), server_name=name)

    def add_json(self, name: str, json_config: str, scope: str = "local") -> AddResult:
        """Register a server from a JSON definition via `claude mcp add-json`."""
        logger.info(f"Adding MCP server from JSON: {name} with scope: {scope}")

        error = first_error(validate_add_json(name, json_config, scope))
        if error:
            return AddResult(success=False, message=error.message)

        try:
            output = self._execute(["add-json", name, json_config, "-s", scope])
        except ProcessFailure as e:
            logger.error(f"Failed to add MCP server from JSON: {e}")
            return AddResult(success=False, message=str(e))

        logger.info(f"Successfully added MCP server from JSON: {name}")
        return AddResult(success=True, message=output.strip(), server_name=name)

    def list_servers(self) -> list[ServerRecord]:
        """List servers known to claude, with disabled flags from .mcp.json.

        Raises:
            ProcessFailure: If `claude mcp list` fails
        """
        logger.info("Listing MCP servers")
        try:
            output = self._execute(["list"])
        except ProcessFailure as e:
            logger.error(f"Failed to list MCP servers: {e}")
            raise
        return parse_list_output(output, self._overlay())

    def get_server(self, name: str) -> ServerRecord:
        """Full detail for one server.

        Raises:
            ProcessFailure: If `claude mcp get` fails (e.g. unknown server)
        """
        logger.info(f"Getting MCP server details for: {name}")
        try:
            output = self._execute(["get", name])
        except ProcessFailure as e:
            logger.error(f"Failed to get MCP server: {e}")
            raise
        return parse_detail_output(name, output, self._overlay())

    def remove(self, name: str) -> str:
        """Remove a server from claude. The .mcp.json entry is left alone."""
        logger.info(f"Removing MCP server: {name}")
        try:
            output = self._execute(["remove", name])
        except ProcessFailure as e:
            logger.error(f"Failed to remove MCP server: {e}")
            raise
        logger.info(f"Successfully removed MCP server: {name}")
        return output.strip()

    def toggle_disabled(self, name: str, disabled: bool, project_path: Path | str | None = None) -> str:
        """Enable or disable a server by rewriting .mcp.json only.

        ABOUTME: Never asks claude to remove or hide anything
        ABOUTME: Unknown servers get an entry built from `claude mcp get`

        Raises:
            ConfigParseError, ConfigIOError: If .mcp.json cannot be read or written
        """
        logger.info(f"Toggling MCP server '{name}' disabled status to: {disabled}")
        project = self._resolve_project(project_path)

        def fetch_detail(server_name: str) -> ServerRecord:
            output = check_result(self.runner.run(["get", server_name], cwd=project))
            return parse_detail_output(server_name, output)

        update_project_config(
            project,
            lambda config: toggle_disabled(config, name, disabled, fetch_detail),
            backup_dir=self.backup_dir,
            max_backups=self.max_backups,
        )

        status = describe_state(disabled)
        logger.info(f"Successfully {status} MCP server: {name}")
        return f"Server '{name}' has been {status}"

    def import_from_desktop(self, scope: str = "local", config_path: Path | None = None) -> ImportOutcome:
        """Import every server from the Claude Desktop config.

        Raises:
            DesktopImportError: If the desktop config cannot be located or read
        """
        logger.info(f"Importing MCP servers from Claude Desktop with scope: {scope}")
        path = config_path if config_path is not None else get_desktop_config_path()
        servers = load_desktop_servers(path)
        return import_desktop_servers(servers, lambda name, payload: self.add_json(name, payload, scope))

    def reset_project_choices(self) -> str:
        """Forget approvals of project-scoped (.mcp.json) servers."""
        logger.info("Resetting MCP project choices")
        try:
            output = self._execute(["reset-project-choices"])
        except ProcessFailure as e:
            logger.error(f"Failed to reset project choices: {e}")
            raise
        return output.strip()

    def serve(self) -> str:
        """Start Claude Code itself as an MCP server, without waiting for it."""
        logger.info("Starting Claude Code as MCP server")
        try:
            self.runner.spawn(["serve"], cwd=self.project_dir)
        except ProcessFailure as e:
            logger.error(f"Failed to start MCP server: {e}")
            raise
        return "Claude Code MCP server started"

    def test_connection(self, name: str) -> str:
        """Check that claude can resolve the server."""
        logger.info(f"Testing connection to MCP server: {name}")
        try:
            self._execute(["get", name])
        except ProcessFailure as e:
            logger.error(f"Failed to test connection to MCP server: {e}")
            raise
        return f"Connection to {name} successful"

    def server_status(self) -> dict[str, ServerStatus]:
        """Status of every listed server, as reported by `claude mcp list`."""
        return {record.name: record.status for record in self.list_servers()}

    def read_project_config(self, path: Path | str | None = None) -> ProjectConfig:
        return read_project_config(self._resolve_project(path))

    def save_project_config(self, config: ProjectConfig, path: Path | str | None = None) -> str:
        save_project_config(
            self._resolve_project(path),
            config,
            backup_dir=self.backup_dir,
            max_backups=self.max_backups,
        )
        return "Project MCP configuration saved"


def dump_project_config(config: ProjectConfig) -> str:
    """Render a ProjectConfig as the JSON text it would be saved as."""
    return json.dumps(config_to_dict(config), indent=2, sort_keys=True)
