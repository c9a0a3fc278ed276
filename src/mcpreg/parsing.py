# ABOUTME: Parsers for the human-oriented text printed by `claude mcp list` and `claude mcp get`
# ABOUTME: Text in, ServerRecords out; nothing here runs processes or touches files
import logging
import re
import time
from collections.abc import Callable

from mcpreg.models import ProjectConfig, ServerRecord, ServerStatus, Transport
from mcpreg.reconcile import apply_overlay, merge_record

logger = logging.getLogger(__name__)

# ABOUTME: Printed by `claude mcp list` when nothing is registered
NO_SERVERS_SENTINEL = "No MCP servers configured"

# Health marker claude appends to list lines, e.g. "npx server - ✓ Connected"
HEALTH_SUFFIX = re.compile(r"\s+-\s+([✓✗])\s+(.+?)\s*$")

# (prefix, field) pairs recognised in `claude mcp get` output
DETAIL_PREFIXES = (
    ("Scope:", "scope"),
    ("Type:", "transport"),
    ("Command:", "command"),
    ("Args:", "args"),
    ("URL:", "url"),
)


def record_start_name(line: str) -> str | None:
    """Return the server name if `line` starts a list record, else None.

    ABOUTME: A record starts with "<name>:" where name has no path separators
    ABOUTME: Rejects path-like continuations such as "/opt/run.js --url http://host"

    Examples:
        >>> record_start_name("github: npx -y @mcp/github")
        'github'
        >>> record_start_name("  /opt/run.js --url http://localhost") is None
        True
    """
    if ":" not in line:
        return None
    name = line.split(":", 1)[0].strip()
    if not name or "/" in name or "\\" in name:
        return None
    return name


def split_health_suffix(command: str, now: int | None = None) -> tuple[str, ServerStatus]:
    """Strip a trailing "- ✓ Connected" style marker into a ServerStatus.

    Commands without a marker come back unchanged with an unknown status.
    """
    match = HEALTH_SUFFIX.search(command)
    if not match:
        return command, ServerStatus()

    checked = now if now is not None else int(time.time())
    marker, text = match.group(1), match.group(2)
    stripped = command[:match.start()]
    if marker == "✓":
        return stripped, ServerStatus(running=True, last_checked=checked)
    return stripped, ServerStatus(running=False, error=text, last_checked=checked)


def parse_list_output(
    text: str,
    overlay: ProjectConfig | None = None,
    clock: Callable[[], float] = time.time,
) -> list[ServerRecord]:
    """Parse `claude mcp list` output into server stubs.

    ABOUTME: Long commands wrap over several lines, continuation lines are folded back
    ABOUTME: Transport and scope are not printed, so they default to stdio/local
    ABOUTME: Never raises; unrecognised text just yields fewer records

    Args:
        text: Raw stdout of `claude mcp list`
        overlay: Project config supplying the disabled flags
        clock: Source of the health-check timestamp

    Returns:
        Records in output order

    Examples:
        >>> [r.command for r in parse_list_output("foo: run server.js\\n  --port 3000")]
        ['run server.js   --port 3000']
    """
    trimmed = text.strip()
    if not trimmed or NO_SERVERS_SENTINEL in trimmed:
        logger.info("No servers found in list output")
        return []

    lines = trimmed.splitlines()
    records: list[ServerRecord] = []
    i = 0

    while i < len(lines):
        name = record_start_name(lines[i])
        if name is None:
            logger.debug(f"Skipping noise line {i}: {lines[i]!r}")
            i += 1
            continue

        fragments = [lines[i].split(":", 1)[1].strip()]
        i += 1
        while i < len(lines) and record_start_name(lines[i]) is None:
            continuation = lines[i].rstrip()
            if continuation.strip():
                fragments.append(continuation)
            i += 1

        command, status = split_health_suffix(" ".join(fragments), int(clock()))
        logger.debug(f"Parsed server {name!r} with command {command!r}")
        records.append(ServerRecord(name=name, command=command, status=status))

    logger.info(f"Found {len(records)} MCP server(s) in list output")
    if overlay is None:
        return records
    return apply_overlay(records, overlay)


def _parse_scope(value: str) -> str:
    # "User config (available in all your projects)": only the label counts
    lowered = value.split("(", 1)[0].lower()
    if "local" in lowered:
        return "local"
    if "project" in lowered:
        return "project"
    if "user" in lowered or "global" in lowered:
        return "user"
    return "local"


def _parse_transport(value: str) -> Transport:
    return "sse" if value.strip().lower() == "sse" else "stdio"


def parse_detail_output(name: str, text: str, overlay: ProjectConfig | None = None) -> ServerRecord:
    """Parse `claude mcp get <name>` output into one record.

    ABOUTME: Recognises Scope/Type/Command/Args/URL prefixes, ignores other lines
    ABOUTME: The Environment block is not parsed, env stays empty

    Args:
        name: Server name the output belongs to
        text: Raw stdout of `claude mcp get <name>`
        overlay: Project config supplying the disabled flag

    Returns:
        Fully populated ServerRecord

    Examples:
        >>> record = parse_detail_output("fs", "Scope: User config\\nCommand: node index.js")
        >>> (record.scope, record.command)
        ('user', 'node index.js')
    """
    fields: dict[str, object] = {}

    for raw_line in text.splitlines():
        line = raw_line.strip()
        for prefix, field_name in DETAIL_PREFIXES:
            if not line.startswith(prefix):
                continue
            value = line[len(prefix):].strip()
            if field_name == "scope":
                fields["scope"] = _parse_scope(value)
            elif field_name == "transport":
                fields["transport"] = _parse_transport(value)
            elif field_name == "args":
                if value:
                    fields["args"] = value.split()
            else:
                fields[field_name] = value
            break

    record = ServerRecord(name=name, **fields)  # type: ignore[arg-type]
    return merge_record(record, overlay.servers.get(name) if overlay else None)
