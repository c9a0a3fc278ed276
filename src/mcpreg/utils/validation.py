# ABOUTME: Validation utilities for add requests
# ABOUTME: Errors block the request, warnings are only reported
import json
import shutil
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

from mcpreg.models import SCOPES, TRANSPORTS

# Characters that would make a name unreadable in `claude mcp list` output
FORBIDDEN_NAME_CHARS = (":", "/", "\\")


@dataclass(frozen=True)
class ValidationError:
    """Represents a validation error or warning.

    ABOUTME: Uses frozen dataclass for immutability
    ABOUTME: Severity level distinguishes between blocking errors and warnings
    """
    server_name: str
    message: str
    severity: str  # 'error' or 'warning'


def validate_command_exists(command: str) -> ValidationError | None:
    """Validate that a command exists on the system.

    ABOUTME: Uses shutil.which() for cross-platform command lookup
    ABOUTME: Returns None if command found, ValidationError otherwise
    ABOUTME: Only a warning, claude resolves the command in its own environment
    """
    if shutil.which(command) is None:
        return ValidationError(
            server_name="",
            message=f"Command not found: {command}",
            severity="warning"
        )
    return None


def validate_url(url: str) -> ValidationError | None:
    """Validate that an SSE endpoint URL is properly formatted.

    ABOUTME: Requires HTTP or HTTPS scheme and a host
    """
    try:
        parsed = urlparse(url)
    except ValueError as e:
        return ValidationError(
            server_name="",
            message=f"Invalid URL format '{url}': {e}",
            severity="error"
        )
    if parsed.scheme not in ("http", "https"):
        return ValidationError(
            server_name="",
            message=f"URL must use HTTP or HTTPS scheme: {url}",
            severity="error"
        )
    if not parsed.netloc:
        return ValidationError(
            server_name="",
            message=f"URL missing host/domain: {url}",
            severity="error"
        )
    return None


def validate_server_name(name: str) -> ValidationError | None:
    """Check that a name can round-trip through `claude mcp list` output."""
    if not name or not name.strip():
        return ValidationError(server_name=name, message="Server name is required", severity="error")
    if name != name.strip():
        return ValidationError(
            server_name=name,
            message=f"Server name '{name}' has leading or trailing whitespace",
            severity="error"
        )
    for char in FORBIDDEN_NAME_CHARS:
        if char in name:
            return ValidationError(
                server_name=name,
                message=f"Server name '{name}' must not contain '{char}'",
                severity="error"
            )
    return None


def validate_scope(scope: str) -> ValidationError | None:
    if scope not in SCOPES:
        return ValidationError(
            server_name="",
            message=f"Invalid scope '{scope}'. Must be one of: {', '.join(SCOPES)}",
            severity="error"
        )
    return None


def validate_add_request(
    name: str,
    transport: str,
    command: str | None,
    url: str | None,
    scope: str,
) -> list[ValidationError]:
    """Validate an add request before anything is sent to claude.

    ABOUTME: stdio needs a command, sse needs a URL
    ABOUTME: Returns list of all validation errors/warnings

    Examples:
        >>> validate_add_request("fs", "stdio", None, None, "local")[0].message
        'Command is required for stdio transport'
    """
    errors: list[ValidationError] = []

    name_error = validate_server_name(name)
    if name_error:
        errors.append(name_error)

    scope_error = validate_scope(scope)
    if scope_error:
        errors.append(ValidationError(server_name=name, message=scope_error.message, severity="error"))

    if transport == "stdio":
        if not command or not command.strip():
            errors.append(ValidationError(
                server_name=name,
                message="Command is required for stdio transport",
                severity="error"
            ))
        else:
            cmd_warning = validate_command_exists(command)
            if cmd_warning:
                errors.append(ValidationError(
                    server_name=name,
                    message=cmd_warning.message,
                    severity=cmd_warning.severity
                ))
    elif transport == "sse":
        if not url or not url.strip():
            errors.append(ValidationError(
                server_name=name,
                message="URL is required for SSE transport",
                severity="error"
            ))
        else:
            url_error = validate_url(url)
            if url_error:
                errors.append(ValidationError(
                    server_name=name,
                    message=url_error.message,
                    severity=url_error.severity
                ))
    else:
        errors.append(ValidationError(
            server_name=name,
            message=f"Invalid transport '{transport}'. Must be one of: {', '.join(TRANSPORTS)}",
            severity="error"
        ))

    return errors


def validate_add_json(name: str, json_config: str, scope: str) -> list[ValidationError]:
    """Validate an add-json request.

    ABOUTME: The payload must be a JSON object, claude checks the rest
    """
    errors: list[ValidationError] = []

    name_error = validate_server_name(name)
    if name_error:
        errors.append(name_error)

    scope_error = validate_scope(scope)
    if scope_error:
        errors.append(ValidationError(server_name=name, message=scope_error.message, severity="error"))

    try:
        payload: Any = json.loads(json_config)
    except json.JSONDecodeError as e:
        errors.append(ValidationError(
            server_name=name,
            message=f"Invalid JSON configuration: {e}",
            severity="error"
        ))
    else:
        if not isinstance(payload, dict):
            errors.append(ValidationError(
                server_name=name,
                message="JSON configuration must be an object",
                severity="error"
            ))

    return errors


def first_error(errors: list[ValidationError]) -> ValidationError | None:
    """Return the first blocking error, ignoring warnings."""
    for error in errors:
        if error.severity == "error":
            return error
    return None
