# ABOUTME: Shared fixtures for mcpreg tests
# ABOUTME: FakeRunner stands in for the claude binary
from collections.abc import Sequence
from pathlib import Path

import pytest

from mcpreg.models import CommandResult
from mcpreg.registry import McpRegistry

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


def ok(stdout: str = "") -> CommandResult:
    return CommandResult(stdout=stdout, stderr="", exit_code=0)


def failed(stderr: str, stdout: str = "", exit_code: int = 1) -> CommandResult:
    return CommandResult(stdout=stdout, stderr=stderr, exit_code=exit_code)


class FakeRunner:
    """ProcessRunner that replays canned results and records every call.

    Responses are looked up by the full argument tuple first, then by the
    subcommand alone. Unknown calls fail like an unknown claude subcommand.
    """

    def __init__(self, responses: dict[tuple[str, ...], CommandResult] | None = None) -> None:
        self.responses = dict(responses or {})
        self.calls: list[tuple[str, ...]] = []
        self.cwds: list[Path | None] = []
        self.spawned: list[tuple[str, ...]] = []

    def run(self, args: Sequence[str], cwd: Path | None = None) -> CommandResult:
        key = tuple(args)
        self.calls.append(key)
        self.cwds.append(cwd)
        if key in self.responses:
            return self.responses[key]
        if key[:1] in self.responses:
            return self.responses[key[:1]]
        return failed(f"error: unknown command {' '.join(key)}")

    def spawn(self, args: Sequence[str], cwd: Path | None = None) -> None:
        self.spawned.append(tuple(args))


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def registry(fake_runner: FakeRunner, tmp_path: Path) -> McpRegistry:
    return McpRegistry(fake_runner, project_dir=tmp_path)
