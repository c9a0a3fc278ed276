# mcpreg - MCP server registry for Claude Code
# ABOUTME: Version information
__version__ = "0.1.0"

# ABOUTME: Export core data models and errors
from mcpreg.errors import (
    ClaudeNotFoundError,
    ConfigIOError,
    ConfigParseError,
    DesktopImportError,
    McpRegError,
    ProcessFailure,
)
from mcpreg.models import (
    AddResult,
    CommandResult,
    ImportOutcome,
    ImportServerResult,
    ProcessRunner,
    ProjectConfig,
    ServerConfigEntry,
    ServerRecord,
    ServerStatus,
)

# ABOUTME: Export parsers, config store and the registry facade
from mcpreg.parsing import parse_detail_output, parse_list_output
from mcpreg.project_config import read_project_config, save_project_config
from mcpreg.reconcile import merge_record
from mcpreg.registry import McpRegistry
from mcpreg.runner import ClaudeRunner
from mcpreg.settings import Settings, load_settings

__all__ = [
    "__version__",
    "AddResult",
    "ClaudeNotFoundError",
    "ClaudeRunner",
    "CommandResult",
    "ConfigIOError",
    "ConfigParseError",
    "DesktopImportError",
    "ImportOutcome",
    "ImportServerResult",
    "McpRegError",
    "McpRegistry",
    "ProcessFailure",
    "ProcessRunner",
    "ProjectConfig",
    "ServerConfigEntry",
    "ServerRecord",
    "ServerStatus",
    "Settings",
    "load_settings",
    "merge_record",
    "parse_detail_output",
    "parse_list_output",
    "read_project_config",
    "save_project_config",
]
