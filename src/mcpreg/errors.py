# ABOUTME: Exception hierarchy for mcpreg
# ABOUTME: Validation problems are not exceptions, they come back as AddResult


class McpRegError(Exception):
    """Base class for all mcpreg errors."""


class ProcessFailure(McpRegError):
    """The claude command could not run or exited non-zero.

    ABOUTME: `output` is combined stdout+stderr, trimmed
    """

    def __init__(self, output: str, exit_code: int = -1) -> None:
        super().__init__(output)
        self.output = output
        self.exit_code = exit_code


class ClaudeNotFoundError(ProcessFailure):
    """No claude binary could be located."""


class ConfigIOError(McpRegError):
    """Reading or writing .mcp.json failed at the filesystem level."""


class ConfigParseError(McpRegError, ValueError):
    """.mcp.json exists but is not valid JSON of the expected shape."""


class DesktopImportError(McpRegError):
    """The Claude Desktop config could not be located or read."""
