# CLI interface for mcpreg
import argparse
import logging
import sys
from pathlib import Path

from mcpreg import __version__
from mcpreg.errors import ConfigIOError, ConfigParseError, DesktopImportError, McpRegError
from mcpreg.models import SCOPES, TRANSPORTS, ServerRecord
from mcpreg.registry import McpRegistry, dump_project_config
from mcpreg.settings import load_settings
from mcpreg.utils.env import parse_env_pairs
from mcpreg.utils.validation import validate_add_request

# ABOUTME: Exit codes
# 0 = success, 1 = partial success, 2 = config error, 3 = fatal
EXIT_SUCCESS = 0
EXIT_PARTIAL = 1
EXIT_CONFIG_ERROR = 2
EXIT_FATAL = 3

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr, DEBUG when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def build_registry(args: argparse.Namespace) -> McpRegistry:
    """Create the registry for the selected project and settings file."""
    settings = load_settings(Path(args.settings) if args.settings else None)
    project_dir = Path(args.project) if args.project else None
    return McpRegistry.from_settings(settings, project_dir=project_dir)


def print_server(server: ServerRecord, detailed: bool = False) -> None:
    state = "disabled" if server.disabled else "enabled"
    print(f"  {server.name} ({state})")
    if server.command:
        print(f"    command: {server.command}")
    if server.url:
        print(f"    url: {server.url}")
    if detailed:
        print(f"    type: {server.transport}")
        print(f"    scope: {server.scope}")
        if server.args:
            print(f"    args: {' '.join(server.args)}")
    if server.status.running:
        print("    status: connected")
    elif server.status.error:
        print(f"    status: {server.status.error}")
    print()


def cmd_list(registry: McpRegistry, args: argparse.Namespace) -> int:
    """Execute list command.

    ABOUTME: Shows every server claude knows with its enabled/disabled state
    """
    servers = registry.list_servers()
    if not servers:
        print("No MCP servers configured.")
        return EXIT_SUCCESS

    print(f"MCP servers for {registry.project_dir}:")
    print()
    for server in servers:
        print_server(server)
    print(f"Total: {len(servers)} server(s)")
    return EXIT_SUCCESS


def cmd_get(registry: McpRegistry, args: argparse.Namespace) -> int:
    print_server(registry.get_server(args.name), detailed=True)
    return EXIT_SUCCESS


def cmd_add(registry: McpRegistry, args: argparse.Namespace) -> int:
    """Execute add command.

    ABOUTME: Non-interactive, everything comes from flags
    ABOUTME: Warnings (e.g. command not on PATH) are printed but do not block
    """
    server_args = [arg.strip() for arg in args.args.split(",")] if args.args else []
    env_vars = parse_env_pairs(args.env.split(",")) if args.env else {}

    for issue in validate_add_request(args.name, args.transport, args.server_command, args.url, args.scope):
        if issue.severity == "warning":
            print(f"Warning: {issue.message}")

    result = registry.add(
        args.name,
        transport=args.transport,
        command=args.server_command,
        args=server_args,
        env=env_vars,
        url=args.url,
        scope=args.scope,
    )

    if not result.success:
        print(f"Error: {result.message}")
        return EXIT_CONFIG_ERROR

    if result.message:
        print(result.message)
    print(f"Server '{args.name}' added ({args.scope} scope).")
    return EXIT_SUCCESS


def cmd_add_json(registry: McpRegistry, args: argparse.Namespace) -> int:
    result = registry.add_json(args.name, args.json, scope=args.scope)
    if not result.success:
        print(f"Error: {result.message}")
        return EXIT_CONFIG_ERROR
    if result.message:
        print(result.message)
    return EXIT_SUCCESS


def cmd_remove(registry: McpRegistry, args: argparse.Namespace) -> int:
    output = registry.remove(args.name)
    print(output or f"Server '{args.name}' removed.")
    return EXIT_SUCCESS


def cmd_enable(registry: McpRegistry, args: argparse.Namespace) -> int:
    print(registry.toggle_disabled(args.name, False))
    return EXIT_SUCCESS


def cmd_disable(registry: McpRegistry, args: argparse.Namespace) -> int:
    print(registry.toggle_disabled(args.name, True))
    return EXIT_SUCCESS


def cmd_import_desktop(registry: McpRegistry, args: argparse.Namespace) -> int:
    """Execute import-desktop command.

    ABOUTME: Returns EXIT_PARTIAL if some servers failed to import
    """
    config_path = Path(args.config) if args.config else None
    outcome = registry.import_from_desktop(scope=args.scope, config_path=config_path)

    for server in outcome.servers:
        if server.success:
            print(f"  ✓ {server.name}")
        else:
            print(f"  ✗ {server.name}: {server.error}")

    print()
    print(f"Import complete: {outcome.imported_count} imported, {outcome.failed_count} failed")
    if outcome.failed_count:
        return EXIT_PARTIAL
    return EXIT_SUCCESS


def cmd_reset_project_choices(registry: McpRegistry, args: argparse.Namespace) -> int:
    print(registry.reset_project_choices() or "Project choices reset.")
    return EXIT_SUCCESS


def cmd_serve(registry: McpRegistry, args: argparse.Namespace) -> int:
    print(registry.serve())
    return EXIT_SUCCESS


def cmd_test(registry: McpRegistry, args: argparse.Namespace) -> int:
    print(registry.test_connection(args.name))
    return EXIT_SUCCESS


def cmd_show_config(registry: McpRegistry, args: argparse.Namespace) -> int:
    print(dump_project_config(registry.read_project_config()))
    return EXIT_SUCCESS


COMMANDS = {
    "list": cmd_list,
    "get": cmd_get,
    "add": cmd_add,
    "add-json": cmd_add_json,
    "remove": cmd_remove,
    "enable": cmd_enable,
    "disable": cmd_disable,
    "import-desktop": cmd_import_desktop,
    "reset-project-choices": cmd_reset_project_choices,
    "serve": cmd_serve,
    "test": cmd_test,
    "show-config": cmd_show_config,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mcpreg",
        description="Manage MCP servers registered with Claude Code"
    )

    parser.add_argument(
        "--version", "-V",
        action="version",
        version=f"mcpreg v{__version__}"
    )
    parser.add_argument(
        "--project",
        help="Project directory holding .mcp.json (default: current directory)"
    )
    parser.add_argument(
        "--settings",
        help="Settings file (default: ~/.mcpreg/settings.toml)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("list", help="List MCP servers known to claude")

    get_parser = subparsers.add_parser("get", help="Show details for one server")
    get_parser.add_argument("name", help="Server name")

    add_parser = subparsers.add_parser("add", help="Add a new MCP server")
    add_parser.add_argument("name", help="Name of the MCP server to add")
    add_parser.add_argument(
        "--transport",
        choices=list(TRANSPORTS),
        default="stdio",
        help="Transport type (stdio or sse)"
    )
    add_parser.add_argument(
        "--scope",
        choices=list(SCOPES),
        default="local",
        help="Where claude stores the server"
    )
    add_parser.add_argument("--command", dest="server_command", help="Command to run (for stdio transport)")
    add_parser.add_argument("--url", help="URL endpoint (for sse transport)")
    add_parser.add_argument("--args", help="Comma-separated arguments (for stdio transport)")
    add_parser.add_argument("--env", help="Comma-separated KEY=VALUE environment variables")

    add_json_parser = subparsers.add_parser("add-json", help="Add a server from a JSON definition")
    add_json_parser.add_argument("name", help="Name of the MCP server to add")
    add_json_parser.add_argument("json", help="JSON server definition")
    add_json_parser.add_argument("--scope", choices=list(SCOPES), default="local")

    remove_parser = subparsers.add_parser("remove", help="Remove an MCP server from claude")
    remove_parser.add_argument("name", help="Name of the MCP server to remove")

    enable_parser = subparsers.add_parser("enable", help="Mark a server enabled in .mcp.json")
    enable_parser.add_argument("name", help="Server name")

    disable_parser = subparsers.add_parser("disable", help="Mark a server disabled in .mcp.json")
    disable_parser.add_argument("name", help="Server name")

    import_parser = subparsers.add_parser(
        "import-desktop",
        help="Import servers from the Claude Desktop config"
    )
    import_parser.add_argument("--scope", choices=list(SCOPES), default="local")
    import_parser.add_argument("--config", help="Path to claude_desktop_config.json")

    subparsers.add_parser(
        "reset-project-choices",
        help="Reset approvals of project-scoped servers"
    )
    subparsers.add_parser("serve", help="Start Claude Code as an MCP server")

    test_parser = subparsers.add_parser("test", help="Check that claude can resolve a server")
    test_parser.add_argument("name", help="Server name")

    subparsers.add_parser("show-config", help="Print the project .mcp.json")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    ABOUTME: Parses args and dispatches to appropriate command
    ABOUTME: Returns exit code for sys.exit()
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_SUCCESS

    configure_logging(args.verbose)

    try:
        registry = build_registry(args)
        return COMMANDS[args.command](registry, args)
    except (ConfigParseError, ConfigIOError, DesktopImportError) as e:
        print(f"Error: {e}")
        return EXIT_CONFIG_ERROR
    except ValueError as e:
        # invalid settings file
        print(f"Error: {e}")
        return EXIT_CONFIG_ERROR
    except McpRegError as e:
        print(f"Fatal error: {e}")
        return EXIT_FATAL
    except Exception as e:
        logger.exception("Unexpected error")
        print(f"Fatal error: {e}")
        return EXIT_FATAL


if __name__ == "__main__":
    sys.exit(main())
