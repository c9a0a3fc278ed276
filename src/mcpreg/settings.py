# User settings for mcpreg (~/.mcpreg/settings.toml)
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomli

from mcpreg.utils.backup import DEFAULT_MAX_BACKUPS, get_backup_dir
from mcpreg.utils.env import DEFAULT_ENV_ALLOWLIST

# ABOUTME: Default settings directory in user's home
SETTINGS_DIR = Path.home() / ".mcpreg"

# ABOUTME: Settings file location (TOML format)
SETTINGS_FILE = SETTINGS_DIR / "settings.toml"


@dataclass(frozen=True)
class Settings:
    """mcpreg settings loaded from settings.toml.

    ABOUTME: Every field has a default, an absent file means all defaults
    ABOUTME: env_allowlist is what the claude child process may see
    """
    claude_binary: str | None = None
    timeout: float | None = None
    env_allowlist: tuple[str, ...] = DEFAULT_ENV_ALLOWLIST
    backup_enabled: bool = True
    backup_dir: Path = field(default_factory=get_backup_dir)
    max_backups: int = DEFAULT_MAX_BACKUPS

    @property
    def effective_backup_dir(self) -> Path | None:
        """Backup directory, or None when backups are switched off."""
        return self.backup_dir if self.backup_enabled else None


def get_settings_path() -> Path:
    """Return the path to the settings file.

    ABOUTME: Returns ~/.mcpreg/settings.toml, which may not exist
    """
    return SETTINGS_FILE


def _section(data: dict[str, Any], name: str, path: Path) -> dict[str, Any]:
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise ValueError(f"Invalid settings in {path}: [{name}] must be a table")
    return section


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from a TOML file.

    ABOUTME: Uses tomli for TOML parsing
    ABOUTME: Fail-fast on parse errors with clear error messages

    Args:
        path: Settings file (default ~/.mcpreg/settings.toml)

    Returns:
        Parsed Settings, defaults for anything not set

    Raises:
        ValueError: If TOML syntax is invalid or a value has the wrong type
    """
    path = path if path is not None else get_settings_path()
    if not path.exists():
        return Settings()

    try:
        with open(path, "rb") as f:
            data = tomli.load(f)
    except tomli.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in {path}: {e}") from e

    claude = _section(data, "claude", path)
    backup = _section(data, "backup", path)
    values: dict[str, Any] = {}

    if "binary" in claude:
        if not isinstance(claude["binary"], str):
            raise ValueError(f"Invalid settings in {path}: claude.binary must be a string")
        values["claude_binary"] = claude["binary"]

    if "timeout" in claude:
        timeout = claude["timeout"]
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ValueError(f"Invalid settings in {path}: claude.timeout must be a positive number")
        values["timeout"] = float(timeout)

    if "env_allowlist" in claude:
        allowlist = claude["env_allowlist"]
        if not isinstance(allowlist, list) or not all(isinstance(v, str) for v in allowlist):
            raise ValueError(f"Invalid settings in {path}: claude.env_allowlist must be a list of strings")
        values["env_allowlist"] = tuple(allowlist)

    if "enabled" in backup:
        if not isinstance(backup["enabled"], bool):
            raise ValueError(f"Invalid settings in {path}: backup.enabled must be true or false")
        values["backup_enabled"] = backup["enabled"]

    if "dir" in backup:
        if not isinstance(backup["dir"], str):
            raise ValueError(f"Invalid settings in {path}: backup.dir must be a string")
        values["backup_dir"] = Path(backup["dir"]).expanduser()

    if "keep" in backup:
        keep = backup["keep"]
        if isinstance(keep, bool) or not isinstance(keep, int) or keep < 1:
            raise ValueError(f"Invalid settings in {path}: backup.keep must be a positive integer")
        values["max_backups"] = keep

    return Settings(**values)
