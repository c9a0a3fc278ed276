# Tests for the live/overlay reconciliation engine
import pytest

from mcpreg.errors import ProcessFailure
from mcpreg.models import ProjectConfig, ServerConfigEntry, ServerRecord, ServerStatus
from mcpreg.reconcile import (
    apply_overlay,
    describe_state,
    entry_from_record,
    merge_record,
    toggle_disabled,
)


def no_lookup(name: str) -> ServerRecord:
    raise AssertionError(f"detail lookup should not happen for {name}")


def lookup_fails(name: str) -> ServerRecord:
    raise ProcessFailure(f'No MCP server found with name: "{name}"', 1)


class TestMergeRecord:
    """Tests for merge_record function."""

    def test_overlay_sets_disabled_only(self):
        live = ServerRecord(
            name="fs",
            command="npx fs",
            scope="user",
            status=ServerStatus(running=True),
        )
        overlay = ServerConfigEntry(command="something-else", args=["x"], disabled=True)

        merged = merge_record(live, overlay)

        assert merged.disabled is True
        assert merged.command == "npx fs"
        assert merged.args == []
        assert merged.scope == "user"
        assert merged.status.running is True

    def test_inputs_untouched(self):
        live = ServerRecord(name="fs", command="npx fs")
        overlay = ServerConfigEntry(disabled=True)

        merge_record(live, overlay)

        assert live.disabled is False
        assert overlay.disabled is True

    def test_missing_overlay_means_enabled(self):
        live = ServerRecord(name="fs", disabled=True)
        assert merge_record(live, None).disabled is False

    def test_apply_overlay_keeps_order(self):
        records = [ServerRecord(name=n) for n in ("c", "a", "b")]
        config = ProjectConfig(servers={"a": ServerConfigEntry(disabled=True)})

        merged = apply_overlay(records, config)

        assert [(r.name, r.disabled) for r in merged] == [("c", False), ("a", True), ("b", False)]


class TestEntryFromRecord:
    """Tests for entry_from_record function."""

    def test_splits_command_line(self):
        record = ServerRecord(name="gh", command="npx -y @mcp/github", env={"T": "1"})
        entry = entry_from_record(record, disabled=True)

        assert entry.command == "npx"
        assert entry.args == ["-y", "@mcp/github"]
        assert entry.env == {"T": "1"}
        assert entry.disabled is True

    def test_parsed_args_follow_command_tokens(self):
        record = ServerRecord(name="gh", command="npx", args=["-y", "@mcp/github"])
        entry = entry_from_record(record, disabled=False)

        assert entry.command == "npx"
        assert entry.args == ["-y", "@mcp/github"]

    def test_no_command(self):
        entry = entry_from_record(ServerRecord(name="events", transport="sse"), disabled=True)
        assert entry.command == ""
        assert entry.args == []


class TestToggleDisabled:
    """Tests for toggle_disabled function."""

    def test_existing_entry_only_flag_changes(self):
        config = ProjectConfig(servers={
            "gh": ServerConfigEntry(
                command="npx",
                args=["-y", "gh"],
                env={"T": "1"},
                extra={"type": "stdio"},
            ),
        })

        updated = toggle_disabled(config, "gh", True, no_lookup)

        entry = updated.servers["gh"]
        assert entry.disabled is True
        assert entry.command == "npx"
        assert entry.args == ["-y", "gh"]
        assert entry.env == {"T": "1"}
        assert entry.extra == {"type": "stdio"}
        # input not mutated
        assert config.servers["gh"].disabled is False

    def test_unknown_entry_built_from_detail(self):
        def lookup(name: str) -> ServerRecord:
            return ServerRecord(name=name, command="node", args=["server.js"], scope="user")

        updated = toggle_disabled(ProjectConfig(), "fs", True, lookup)

        assert updated.servers["fs"] == ServerConfigEntry(
            command="node", args=["server.js"], env={}, disabled=True
        )

    def test_unknown_entry_minimal_on_lookup_failure(self):
        updated = toggle_disabled(ProjectConfig(), "ghost", True, lookup_fails)

        assert updated.servers["ghost"] == ServerConfigEntry(command="", args=[], env={}, disabled=True)

    def test_unexpected_lookup_errors_propagate(self):
        def broken(name: str) -> ServerRecord:
            raise RuntimeError("bug")

        with pytest.raises(RuntimeError):
            toggle_disabled(ProjectConfig(), "x", True, broken)

    def test_round_trip_leaves_one_entry(self):
        """Test disable then enable on a fresh config."""
        config = toggle_disabled(ProjectConfig(), "fs", True, lookup_fails)
        config = toggle_disabled(config, "fs", False, no_lookup)

        assert list(config.servers) == ["fs"]
        assert config.servers["fs"].disabled is False

    def test_idempotent(self):
        once = toggle_disabled(ProjectConfig(), "fs", True, lookup_fails)
        twice = toggle_disabled(once, "fs", True, no_lookup)

        assert twice.servers == once.servers

    def test_other_entries_untouched(self):
        config = ProjectConfig(servers={"a": ServerConfigEntry(command="x", disabled=True)})
        updated = toggle_disabled(config, "b", False, lookup_fails)

        assert updated.servers["a"] == ServerConfigEntry(command="x", disabled=True)


def test_describe_state():
    assert describe_state(True) == "disabled"
    assert describe_state(False) == "enabled"
