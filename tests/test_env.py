# Tests for child process environment handling
from mcpreg.utils.env import (
    DEFAULT_ENV_ALLOWLIST,
    build_child_env,
    format_env_flags,
    is_allowed,
    parse_env_pairs,
)


def test_default_allowlist_drops_secrets():
    """Test that unlisted variables never reach the child."""
    environ = {
        "PATH": "/usr/bin",
        "HOME": "/home/dev",
        "GITHUB_TOKEN": "ghp_secret",
        "AWS_SECRET_ACCESS_KEY": "hunter2",
    }

    env = build_child_env(environ)

    assert env == {"PATH": "/usr/bin", "HOME": "/home/dev"}


def test_glob_patterns():
    """Test that LC_* forwards every locale variable."""
    env = build_child_env({"LC_TIME": "C", "LC_CTYPE": "UTF-8", "LCX": "no"})
    assert env == {"LC_TIME": "C", "LC_CTYPE": "UTF-8"}


def test_matching_is_case_sensitive():
    assert is_allowed("PATH", DEFAULT_ENV_ALLOWLIST) is True
    assert is_allowed("path", DEFAULT_ENV_ALLOWLIST) is False


def test_custom_allowlist():
    env = build_child_env({"PATH": "/bin", "NPM_TOKEN": "x"}, allowlist=["NPM_*"])
    assert env == {"NPM_TOKEN": "x"}


def test_empty_allowlist_gives_empty_env():
    assert build_child_env({"PATH": "/bin"}, allowlist=[]) == {}


def test_extra_applied_last():
    env = build_child_env({"PATH": "/bin"}, extra={"PATH": "/opt/bin", "FORCE_COLOR": "0"})
    assert env == {"PATH": "/opt/bin", "FORCE_COLOR": "0"}


def test_source_environ_not_mutated():
    environ = {"PATH": "/bin", "SECRET": "x"}
    build_child_env(environ, extra={"A": "1"})
    assert environ == {"PATH": "/bin", "SECRET": "x"}


def test_format_env_flags():
    assert format_env_flags({"A": "1", "B": "x=y"}) == ["-e", "A=1", "-e", "B=x=y"]
    assert format_env_flags({}) == []


def test_parse_env_pairs():
    """Test KEY=VALUE parsing, entries without '=' are skipped."""
    pairs = ["TOKEN=abc", " DEBUG = 1 ", "broken", "URL=http://x?a=b", "=orphan"]
    assert parse_env_pairs(pairs) == {"TOKEN": "abc", "DEBUG": "1", "URL": "http://x?a=b"}
