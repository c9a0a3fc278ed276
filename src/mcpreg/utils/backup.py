# ABOUTME: Backup utilities for project .mcp.json files.
# ABOUTME: Handles timestamped backups with automatic retention cleanup per project.
import hashlib
import logging
import re
import shutil
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)

# ABOUTME: Default number of backups kept for each project
DEFAULT_MAX_BACKUPS = 5

# Matches {prefix}_{YYYYMMDD}_{HHMMSS}_{microseconds}.{ext},
# e.g. myapp-mcp-1a2b3c4d_20261016_143022_123456.json
BACKUP_PATTERN = re.compile(r"^(.+?)_(\d{8}_\d{6}_\d{6})\.(.+)$")

# Hex digits of the path hash kept in the prefix
PATH_HASH_LENGTH = 8


def backup_prefix(source_path: Path) -> str:
    """Derive the backup name prefix for a sidecar file.

    ABOUTME: <project_dir>/.mcp.json -> <project_dir name>-mcp-<path hash>
    ABOUTME: The hash of the resolved path keeps same-named projects apart

    Examples:
        >>> backup_prefix(Path("/work/webapp/.mcp.json")).startswith("webapp-mcp-")
        True
    """
    project = source_path.parent.name or "root"
    stem = source_path.name.lstrip(".").split(".")[0] or "config"
    digest = hashlib.sha256(str(source_path.resolve()).encode("utf-8")).hexdigest()[:PATH_HASH_LENGTH]
    # underscores would confuse the retention pattern
    return f"{project}-{stem}".replace("_", "-") + f"-{digest}"


def _timestamp() -> str:
    return datetime.now().strftime("%Y%m%d_%H%M%S_%f")


def create_backup(
    source_path: Path,
    backup_dir: Path,
    max_backups: int = DEFAULT_MAX_BACKUPS,
) -> Path:
    """Create a timestamped backup of a file.

    ABOUTME: Backup format: {project}-{stem}-{hash}_{YYYYMMDD}_{HHMMSS}_{micro}.{ext}
    ABOUTME: Uses shutil.copy2() to preserve file metadata
    ABOUTME: Creates backup_dir if it doesn't exist

    Args:
        source_path: Path to file to backup
        backup_dir: Directory where backup should be created
        max_backups: Backups kept per prefix after cleanup

    Returns:
        Path to created backup file

    Raises:
        FileNotFoundError: If source_path doesn't exist
        OSError: If backup creation fails
    """
    if not source_path.exists():
        raise FileNotFoundError(f"Source file not found: {source_path}")

    backup_dir.mkdir(parents=True, exist_ok=True)

    prefix = backup_prefix(source_path)
    extension = source_path.suffix or ".bak"
    backup_path = backup_dir / f"{prefix}_{_timestamp()}{extension}"
    # coarse clocks can repeat a microsecond value
    while backup_path.exists():
        backup_path = backup_dir / f"{prefix}_{_timestamp()}{extension}"

    shutil.copy2(source_path, backup_path)
    logger.debug(f"Backed up {source_path} to {backup_path}")

    cleanup_old_backups(backup_dir, max_backups)

    return backup_path


def get_backup_dir() -> Path:
    """Get the default backup directory path.

    ABOUTME: Returns ~/.mcpreg/backups
    ABOUTME: Does not create the directory
    """
    return Path.home() / ".mcpreg" / "backups"


def cleanup_old_backups(backup_dir: Path, max_backups: int = DEFAULT_MAX_BACKUPS) -> list[Path]:
    """Remove old backup files, keeping only the most recent per prefix.

    ABOUTME: Groups backups by prefix (before _timestamp)
    ABOUTME: Deletes backups beyond max_backups for each prefix, newest kept
    ABOUTME: Logs warnings on errors but does not raise exceptions

    Args:
        backup_dir: Directory containing backup files
        max_backups: Maximum backups to keep per prefix

    Returns:
        List of paths that were deleted
    """
    deleted_files: list[Path] = []

    if not backup_dir.exists():
        return deleted_files

    backups_by_prefix: dict[str, list[tuple[str, Path]]] = {}

    for file_path in backup_dir.iterdir():
        if not file_path.is_file():
            continue

        match = BACKUP_PATTERN.match(file_path.name)
        if not match:
            continue

        backups_by_prefix.setdefault(match.group(1), []).append((match.group(2), file_path))

    for backups in backups_by_prefix.values():
        backups.sort(key=lambda x: x[0], reverse=True)

        for _timestamp, file_path in backups[max_backups:]:
            try:
                file_path.unlink()
                deleted_files.append(file_path)
                logger.debug(f"Deleted old backup: {file_path}")
            except OSError as e:
                logger.warning(f"Failed to delete old backup {file_path}: {e}")

    return deleted_files
