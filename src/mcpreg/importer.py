# Import of MCP servers from the Claude Desktop app config
import json
import logging
import os
import platform
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from mcpreg.errors import DesktopImportError
from mcpreg.models import AddResult, ImportOutcome

logger = logging.getLogger(__name__)

# ABOUTME: File name used by Claude Desktop on every platform
DESKTOP_CONFIG_NAME = "claude_desktop_config.json"


def get_desktop_config_path(
    system: str | None = None,
    home: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Path:
    """Return where Claude Desktop keeps its config on this platform.

    ABOUTME: macOS: ~/Library/Application Support/Claude
    ABOUTME: Linux/WSL: $XDG_CONFIG_HOME/Claude (default ~/.config/Claude)
    ABOUTME: Windows: %APPDATA%\\Claude

    Raises:
        DesktopImportError: If the platform is not supported
    """
    system = system if system is not None else platform.system()
    home = home if home is not None else Path.home()
    environ = environ if environ is not None else os.environ

    if system == "Darwin":
        return home / "Library" / "Application Support" / "Claude" / DESKTOP_CONFIG_NAME
    if system == "Linux":
        config_home = environ.get("XDG_CONFIG_HOME")
        base = Path(config_home) if config_home else home / ".config"
        return base / "Claude" / DESKTOP_CONFIG_NAME
    if system == "Windows":
        appdata = environ.get("APPDATA")
        base = Path(appdata) if appdata else home / "AppData" / "Roaming"
        return base / "Claude" / DESKTOP_CONFIG_NAME

    raise DesktopImportError(f"Import from Claude Desktop is not supported on {system}")


def load_desktop_servers(path: Path) -> dict[str, Any]:
    """Read the mcpServers map from a Claude Desktop config.

    ABOUTME: Read-only, the desktop file is never written
    ABOUTME: Any problem here fails the whole import

    Raises:
        DesktopImportError: If the file is missing, unreadable, or has no mcpServers object
    """
    if not path.exists():
        raise DesktopImportError(
            "Claude Desktop configuration not found. Make sure Claude Desktop is installed."
        )

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise DesktopImportError(f"Failed to parse Claude Desktop config: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise DesktopImportError(f"Failed to read Claude Desktop config: {e}") from e

    servers = data.get("mcpServers") if isinstance(data, dict) else None
    if not isinstance(servers, dict):
        raise DesktopImportError("No MCP servers found in Claude Desktop config")
    return servers


def desktop_entry_to_add_json(entry: Any) -> dict[str, Any]:
    """Convert one Claude Desktop server entry to the add-json payload.

    ABOUTME: Desktop servers are always stdio
    ABOUTME: Missing args/env default to empty, missing command is an error

    Raises:
        ValueError: "Missing command field" when there is no usable command

    Examples:
        >>> desktop_entry_to_add_json({"command": "npx", "args": ["-y", "pkg"]})
        {'type': 'stdio', 'command': 'npx', 'args': ['-y', 'pkg'], 'env': {}}
    """
    command = entry.get("command") if isinstance(entry, dict) else None
    if not isinstance(command, str):
        raise ValueError("Missing command field")

    args = entry.get("args")
    env = entry.get("env")
    return {
        "type": "stdio",
        "command": command,
        "args": list(args) if isinstance(args, list) else [],
        "env": dict(env) if isinstance(env, dict) else {},
    }


def import_desktop_servers(
    servers: Mapping[str, Any],
    add_json: Callable[[str, str], AddResult],
) -> ImportOutcome:
    """Add each desktop server through the add-json path.

    ABOUTME: One failing entry never stops the rest
    ABOUTME: Results keep the order of the input mapping

    Args:
        servers: mcpServers map from the desktop config
        add_json: Called with (name, json payload), returns the add result

    Returns:
        ImportOutcome with counts and per-server results
    """
    outcome = ImportOutcome()

    for name, entry in servers.items():
        logger.info(f"Importing server: {name}")

        try:
            payload = desktop_entry_to_add_json(entry)
        except ValueError as e:
            outcome.add_failure(name, str(e))
            logger.error(f"Failed to import server {name}: {e}")
            continue

        result = add_json(name, json.dumps(payload))
        if result.success:
            outcome.add_success(name)
            logger.info(f"Successfully imported server: {name}")
        else:
            outcome.add_failure(name, result.message)
            logger.error(f"Failed to import server {name}: {result.message}")

    logger.info(
        f"Import complete: {outcome.imported_count} imported, {outcome.failed_count} failed"
    )
    return outcome
