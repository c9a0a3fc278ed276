# Config store for the project-level .mcp.json sidecar
import json
import logging
import os
import tempfile
import threading
import weakref
from collections.abc import Callable
from pathlib import Path
from typing import Any

from mcpreg.errors import ConfigIOError, ConfigParseError
from mcpreg.models import ProjectConfig, ServerConfigEntry
from mcpreg.utils.backup import DEFAULT_MAX_BACKUPS, create_backup

logger = logging.getLogger(__name__)

# ABOUTME: File name of the sidecar inside a project directory
PROJECT_CONFIG_NAME = ".mcp.json"

# ABOUTME: Top-level key holding the server map
SERVERS_KEY = "mcpServers"

# Keys of an entry that ServerConfigEntry models directly
ENTRY_KEYS = ("command", "args", "env", "disabled")

# One lock per resolved sidecar path, guarded by _locks_guard
# Entries disappear once no caller holds the lock
_locks: "weakref.WeakValueDictionary[Path, threading.Lock]" = weakref.WeakValueDictionary()
_locks_guard = threading.Lock()


def get_project_config_path(project_dir: Path) -> Path:
    """Return <project_dir>/.mcp.json."""
    return Path(project_dir) / PROJECT_CONFIG_NAME


def _lock_for(path: Path) -> threading.Lock:
    key = path.resolve()
    with _locks_guard:
        lock = _locks.get(key)
        if lock is None:
            lock = threading.Lock()
            _locks[key] = lock
        return lock


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def _is_str_map(value: Any) -> bool:
    return isinstance(value, dict) and all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    )


def dict_to_entry(name: str, data: Any) -> ServerConfigEntry:
    """Convert one JSON entry to a ServerConfigEntry.

    ABOUTME: Missing command reads as "" (claude writes url-only SSE entries)
    ABOUTME: Unknown keys are kept in `extra`
    ABOUTME: Raises ConfigParseError on wrong value types
    """
    if not isinstance(data, dict):
        raise ConfigParseError(f"Server '{name}' must be a JSON object")

    command = data.get("command", "")
    if not isinstance(command, str):
        raise ConfigParseError(f"Server '{name}' field 'command' must be a string")

    args = data.get("args", [])
    if not _is_str_list(args):
        raise ConfigParseError(f"Server '{name}' field 'args' must be a list of strings")

    env = data.get("env", {})
    if not _is_str_map(env):
        raise ConfigParseError(f"Server '{name}' field 'env' must map strings to strings")

    disabled = data.get("disabled", False)
    if not isinstance(disabled, bool):
        raise ConfigParseError(f"Server '{name}' field 'disabled' must be true or false")

    extra = {key: value for key, value in data.items() if key not in ENTRY_KEYS}

    return ServerConfigEntry(
        command=command,
        args=list(args),
        env=dict(env),
        disabled=disabled,
        extra=extra,
    )


def entry_to_dict(entry: ServerConfigEntry) -> dict[str, Any]:
    """Convert a ServerConfigEntry back to its JSON form.

    ABOUTME: Always writes all four owned keys so the file round-trips
    ABOUTME: `extra` never overrides owned keys
    """
    result: dict[str, Any] = dict(entry.extra)
    result["command"] = entry.command
    result["args"] = list(entry.args)
    result["env"] = dict(entry.env)
    result["disabled"] = entry.disabled
    return result


def dict_to_config(data: Any) -> ProjectConfig:
    """Convert parsed .mcp.json content to a ProjectConfig.

    Raises:
        ConfigParseError: If the document does not match the schema
    """
    if not isinstance(data, dict):
        raise ConfigParseError("Top level of .mcp.json must be a JSON object")

    servers_data = data.get(SERVERS_KEY, {})
    if not isinstance(servers_data, dict):
        raise ConfigParseError(f"'{SERVERS_KEY}' must be a JSON object")

    servers = {name: dict_to_entry(name, entry) for name, entry in servers_data.items()}
    extra = {key: value for key, value in data.items() if key != SERVERS_KEY}
    return ProjectConfig(servers=servers, extra=extra)


def config_to_dict(config: ProjectConfig) -> dict[str, Any]:
    """Convert a ProjectConfig to the JSON document written to disk."""
    data: dict[str, Any] = dict(config.extra)
    data[SERVERS_KEY] = {name: entry_to_dict(entry) for name, entry in config.servers.items()}
    return data


def read_project_config(project_dir: Path) -> ProjectConfig:
    """Read <project_dir>/.mcp.json.

    ABOUTME: Absent file is an empty config, not an error
    ABOUTME: Fail-fast on invalid JSON or schema mismatch

    Args:
        project_dir: Project directory holding .mcp.json

    Returns:
        Parsed ProjectConfig

    Raises:
        ConfigParseError: If the file is not valid JSON of the expected shape
        ConfigIOError: If the file exists but cannot be read
    """
    path = get_project_config_path(project_dir)
    logger.info(f"Reading {PROJECT_CONFIG_NAME} from project: {project_dir}")

    if not path.exists():
        return ProjectConfig()

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse {path}: {e}")
        raise ConfigParseError(f"Failed to parse {path}: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Failed to read {path}: {e}")
        raise ConfigIOError(f"Failed to read {path}: {e}") from e

    try:
        return dict_to_config(data)
    except ConfigParseError as e:
        logger.error(f"Invalid {path}: {e}")
        raise ConfigParseError(f"Invalid {path}: {e}") from e


def save_project_config(
    project_dir: Path,
    config: ProjectConfig,
    backup_dir: Path | None = None,
    max_backups: int = DEFAULT_MAX_BACKUPS,
) -> Path:
    """Write <project_dir>/.mcp.json.

    ABOUTME: 2-space indentation, sorted keys, trailing newline
    ABOUTME: Serialized first, then written to a temp file and moved into place
    ABOUTME: Backs up the previous file first when backup_dir is given
    ABOUTME: No locking here, see update_project_config

    Args:
        project_dir: Project directory holding .mcp.json
        config: Config to write
        backup_dir: Where to keep a copy of the previous file, or None
        max_backups: Backups kept per project

    Returns:
        Path of the written file

    Raises:
        ConfigIOError: If the config cannot be serialized, or the file (or its backup) cannot be written
    """
    path = get_project_config_path(project_dir)
    logger.info(f"Saving {PROJECT_CONFIG_NAME} to project: {project_dir}")

    try:
        text = json.dumps(config_to_dict(config), indent=2, sort_keys=True) + "\n"
    except (TypeError, ValueError) as e:
        logger.error(f"Failed to serialize {path}: {e}")
        raise ConfigIOError(f"Failed to serialize {path}: {e}") from e

    tmp_name = None
    try:
        if backup_dir is not None and path.exists():
            create_backup(path, backup_dir, max_backups)

        path.parent.mkdir(parents=True, exist_ok=True)
        # temp file in the same directory so os.replace stays atomic
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=path.parent,
            prefix=f"{PROJECT_CONFIG_NAME}.",
            suffix=".tmp",
            delete=False,
        ) as f:
            tmp_name = f.name
            f.write(text)
        # NamedTemporaryFile creates 0600, keep the sidecar's usual mode
        os.chmod(tmp_name, path.stat().st_mode & 0o777 if path.exists() else 0o644)
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        logger.error(f"Failed to write {path}: {e}")
        raise ConfigIOError(f"Failed to write {path}: {e}") from e

    return path


def update_project_config(
    project_dir: Path,
    mutate: Callable[[ProjectConfig], ProjectConfig],
    backup_dir: Path | None = None,
    max_backups: int = DEFAULT_MAX_BACKUPS,
) -> ProjectConfig:
    """Read, transform and write .mcp.json as one step.

    ABOUTME: Serialized per file path with an in-process lock
    ABOUTME: Separate processes writing the same file can still race, last writer wins

    Args:
        project_dir: Project directory holding .mcp.json
        mutate: Receives the current config, returns the config to write
        backup_dir: Passed through to save_project_config
        max_backups: Passed through to save_project_config

    Returns:
        The config that was written
    """
    with _lock_for(get_project_config_path(project_dir)):
        current = read_project_config(project_dir)
        updated = mutate(current)
        save_project_config(project_dir, updated, backup_dir, max_backups)
        return updated
