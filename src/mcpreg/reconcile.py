# Reconciliation between claude's live server view and the .mcp.json overlay
import logging
from collections.abc import Callable
from dataclasses import replace

from mcpreg.errors import McpRegError
from mcpreg.models import ProjectConfig, ServerConfigEntry, ServerRecord

logger = logging.getLogger(__name__)


def merge_record(live: ServerRecord, overlay: ServerConfigEntry | None) -> ServerRecord:
    """Merge one live record with its overlay entry.

    ABOUTME: claude owns existence/command/args/env, .mcp.json owns `disabled`
    ABOUTME: Pure, returns a new record and leaves both inputs untouched

    Examples:
        >>> live = ServerRecord(name="fs", command="npx fs")
        >>> merge_record(live, ServerConfigEntry(disabled=True)).disabled
        True
        >>> merge_record(live, None).disabled
        False
    """
    disabled = overlay.disabled if overlay is not None else False
    return replace(live, disabled=disabled)


def apply_overlay(records: list[ServerRecord], config: ProjectConfig) -> list[ServerRecord]:
    """Merge every record with the entry of the same name, order preserved."""
    return [merge_record(record, config.servers.get(record.name)) for record in records]


def entry_from_record(record: ServerRecord, disabled: bool) -> ServerConfigEntry:
    """Build a new .mcp.json entry from a parsed server record.

    ABOUTME: `claude mcp get` prints the whole command line, so the first token
    ABOUTME: becomes `command` and the rest lead the args

    Examples:
        >>> entry_from_record(ServerRecord(name="x", command="npx -y pkg"), True)
        ServerConfigEntry(command='npx', args=['-y', 'pkg'], env={}, disabled=True, extra={})
    """
    parts = (record.command or "").split()
    command = parts[0] if parts else ""
    return ServerConfigEntry(
        command=command,
        args=parts[1:] + list(record.args),
        env=dict(record.env),
        disabled=disabled,
    )


def toggle_disabled(
    config: ProjectConfig,
    name: str,
    disabled: bool,
    fetch_detail: Callable[[str], ServerRecord],
) -> ProjectConfig:
    """Set the disabled flag for `name`, creating the entry on demand.

    ABOUTME: Existing entry: only `disabled` changes, every other key is kept
    ABOUTME: Unknown name: entry built from `claude mcp get`, or a minimal one if that fails
    ABOUTME: Idempotent, never creates a second entry for the same name

    Args:
        config: Current project config (not mutated)
        name: Server name
        disabled: Requested state
        fetch_detail: Looks up full server detail, raises McpRegError on failure

    Returns:
        New ProjectConfig with the change applied
    """
    servers = dict(config.servers)

    existing = servers.get(name)
    if existing is not None:
        servers[name] = replace(existing, disabled=disabled)
        return replace(config, servers=servers)

    logger.info(f"Server '{name}' not found in .mcp.json, attempting to create config entry")
    try:
        record = fetch_detail(name)
    except McpRegError as e:
        logger.info(f"Could not get server details for '{name}': {e}, creating minimal config entry")
        servers[name] = ServerConfigEntry(disabled=disabled)
    else:
        servers[name] = entry_from_record(record, disabled)
        logger.info(f"Created new config entry for server '{name}'")

    return replace(config, servers=servers)


def describe_state(disabled: bool) -> str:
    return "disabled" if disabled else "enabled"
