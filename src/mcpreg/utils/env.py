# Environment handling for the claude child process
import fnmatch
from collections.abc import Iterable, Mapping

# ABOUTME: Variables forwarded to `claude` when no allow-list is configured
# ABOUTME: Glob patterns are allowed, e.g. LC_* covers every locale variable
DEFAULT_ENV_ALLOWLIST: tuple[str, ...] = (
    "PATH",
    "HOME",
    "USER",
    "SHELL",
    "LANG",
    "LC_ALL",
    "LC_*",
    "NODE_PATH",
    "NVM_DIR",
    "NVM_BIN",
    "HOMEBREW_PREFIX",
    "HOMEBREW_CELLAR",
    "HTTP_PROXY",
    "HTTPS_PROXY",
    "NO_PROXY",
    "ALL_PROXY",
)


def is_allowed(name: str, allowlist: Iterable[str]) -> bool:
    """Return True if `name` matches an allow-list entry.

    Matching is case-sensitive; entries may be fnmatch globs.
    """
    return any(fnmatch.fnmatchcase(name, pattern) for pattern in allowlist)


def build_child_env(
    environ: Mapping[str, str],
    allowlist: Iterable[str] = DEFAULT_ENV_ALLOWLIST,
    extra: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Build the environment for a child process.

    ABOUTME: Only variables named by the allow-list are copied from `environ`
    ABOUTME: The caller injects `environ`, nothing here reads os.environ

    Args:
        environ: Source environment (usually a snapshot of os.environ)
        allowlist: Variable names or glob patterns to forward
        extra: Variables set unconditionally, applied last

    Returns:
        New dict suitable for subprocess `env=`

    Examples:
        >>> build_child_env({"PATH": "/bin", "SECRET": "x", "LC_TIME": "C"})
        {'PATH': '/bin', 'LC_TIME': 'C'}
    """
    patterns = tuple(allowlist)
    env = {key: value for key, value in environ.items() if is_allowed(key, patterns)}
    if extra:
        env.update(extra)
    return env


def format_env_flags(env: Mapping[str, str]) -> list[str]:
    """Turn an env mapping into repeated `-e KEY=VALUE` flags for `claude mcp add`."""
    flags: list[str] = []
    for key, value in env.items():
        flags.extend(["-e", f"{key}={value}"])
    return flags


def parse_env_pairs(pairs: Iterable[str]) -> dict[str, str]:
    """Parse KEY=VALUE strings into a dict.

    Entries without '=' are skipped. Keys and values are stripped.
    """
    env: dict[str, str] = {}
    for pair in pairs:
        if "=" in pair:
            key, value = pair.split("=", 1)
            if key.strip():
                env[key.strip()] = value.strip()
    return env
