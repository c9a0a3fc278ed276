# ABOUTME: Utility modules for mcpreg
# ABOUTME: Exports backup, child environment, and validation helpers

from mcpreg.utils.backup import cleanup_old_backups, create_backup, get_backup_dir
from mcpreg.utils.env import DEFAULT_ENV_ALLOWLIST, build_child_env, format_env_flags, parse_env_pairs
from mcpreg.utils.validation import (
    ValidationError,
    first_error,
    validate_add_json,
    validate_add_request,
    validate_command_exists,
    validate_server_name,
    validate_url,
)

__all__ = [
    "DEFAULT_ENV_ALLOWLIST",
    "build_child_env",
    "format_env_flags",
    "parse_env_pairs",
    "ValidationError",
    "first_error",
    "validate_add_json",
    "validate_add_request",
    "validate_command_exists",
    "validate_server_name",
    "validate_url",
    "cleanup_old_backups",
    "create_backup",
    "get_backup_dir",
]
