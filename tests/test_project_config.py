# ABOUTME: Tests for the .mcp.json config store
# ABOUTME: Covers absent files, schema errors, round-trips and backups
import json
import threading
from pathlib import Path

import pytest

from mcpreg import project_config
from mcpreg.errors import ConfigIOError, ConfigParseError
from mcpreg.models import ProjectConfig, ServerConfigEntry
from mcpreg.project_config import (
    get_project_config_path,
    read_project_config,
    save_project_config,
    update_project_config,
)


class TestReadProjectConfig:
    """Tests for read_project_config function."""

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        config = read_project_config(tmp_path)
        assert config.servers == {}
        assert config.extra == {}

    def test_reads_entries(self, tmp_path: Path) -> None:
        (tmp_path / ".mcp.json").write_text(json.dumps({
            "mcpServers": {
                "github": {
                    "command": "npx",
                    "args": ["-y", "@modelcontextprotocol/server-github"],
                    "env": {"GITHUB_TOKEN": "ghp_xxxx"},
                    "disabled": True,
                },
                "fs": {"command": "node"},
            }
        }))

        config = read_project_config(tmp_path)

        github = config.servers["github"]
        assert github.command == "npx"
        assert github.args == ["-y", "@modelcontextprotocol/server-github"]
        assert github.env == {"GITHUB_TOKEN": "ghp_xxxx"}
        assert github.disabled is True

        fs = config.servers["fs"]
        assert fs.args == []
        assert fs.env == {}
        assert fs.disabled is False

    def test_url_only_entry_keeps_extra_keys(self, tmp_path: Path) -> None:
        """Test that entries claude wrote for SSE servers are readable."""
        (tmp_path / ".mcp.json").write_text(json.dumps({
            "mcpServers": {"events": {"type": "sse", "url": "https://example.com/sse"}}
        }))

        entry = read_project_config(tmp_path).servers["events"]
        assert entry.command == ""
        assert entry.extra == {"type": "sse", "url": "https://example.com/sse"}

    def test_missing_servers_key_is_empty(self, tmp_path: Path) -> None:
        (tmp_path / ".mcp.json").write_text('{"other": 1}')
        config = read_project_config(tmp_path)
        assert config.servers == {}
        assert config.extra == {"other": 1}

    def test_invalid_json_raises(self, tmp_path: Path) -> None:
        (tmp_path / ".mcp.json").write_text("{not json")
        with pytest.raises(ConfigParseError, match="Failed to parse"):
            read_project_config(tmp_path)

    def test_parse_error_is_value_error(self, tmp_path: Path) -> None:
        (tmp_path / ".mcp.json").write_text("[]")
        with pytest.raises(ValueError):
            read_project_config(tmp_path)

    @pytest.mark.parametrize(
        "entry",
        [
            "npx",
            {"command": 42},
            {"command": "npx", "args": "-y"},
            {"command": "npx", "args": [1, 2]},
            {"command": "npx", "env": {"A": 1}},
            {"command": "npx", "disabled": "yes"},
        ],
    )
    def test_schema_mismatch_raises(self, tmp_path: Path, entry: object) -> None:
        (tmp_path / ".mcp.json").write_text(json.dumps({"mcpServers": {"bad": entry}}))
        with pytest.raises(ConfigParseError, match="bad"):
            read_project_config(tmp_path)

    def test_servers_not_object_raises(self, tmp_path: Path) -> None:
        (tmp_path / ".mcp.json").write_text('{"mcpServers": []}')
        with pytest.raises(ConfigParseError):
            read_project_config(tmp_path)

    def test_unreadable_file_raises_io_error(self, tmp_path: Path) -> None:
        # a directory in place of the file cannot be opened for reading
        (tmp_path / ".mcp.json").mkdir()
        with pytest.raises(ConfigIOError):
            read_project_config(tmp_path)


class TestSaveProjectConfig:
    """Tests for save_project_config function."""

    def test_round_trip(self, tmp_path: Path) -> None:
        original = ProjectConfig(servers={
            "github": ServerConfigEntry(
                command="npx",
                args=["-y", "@modelcontextprotocol/server-github"],
                env={"GITHUB_TOKEN": "ghp_xxxx"},
                disabled=True,
            ),
            "fs": ServerConfigEntry(command="node", args=["index.js"]),
        })

        save_project_config(tmp_path, original)
        loaded = read_project_config(tmp_path)

        assert loaded.servers == original.servers

    def test_format(self, tmp_path: Path) -> None:
        """Test 2-space indent, mcpServers wrapper and trailing newline."""
        path = save_project_config(tmp_path, ProjectConfig(servers={
            "fs": ServerConfigEntry(command="node"),
        }))

        content = path.read_text()
        assert path == get_project_config_path(tmp_path)
        assert content.endswith("\n")
        assert '  "mcpServers": {' in content
        data = json.loads(content)
        assert data == {
            "mcpServers": {"fs": {"command": "node", "args": [], "env": {}, "disabled": False}}
        }

    def test_preserves_unknown_keys(self, tmp_path: Path) -> None:
        (tmp_path / ".mcp.json").write_text(json.dumps({
            "version": 2,
            "mcpServers": {"events": {"type": "sse", "url": "https://example.com/sse"}},
        }))

        config = read_project_config(tmp_path)
        config.servers["events"].disabled = True
        save_project_config(tmp_path, config)

        data = json.loads((tmp_path / ".mcp.json").read_text())
        assert data["version"] == 2
        assert data["mcpServers"]["events"]["url"] == "https://example.com/sse"
        assert data["mcpServers"]["events"]["type"] == "sse"
        assert data["mcpServers"]["events"]["disabled"] is True

    def test_write_failure_raises(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("")
        with pytest.raises(ConfigIOError):
            save_project_config(blocker / "project", ProjectConfig())

    def test_unserializable_config_leaves_file_intact(self, tmp_path: Path) -> None:
        save_project_config(tmp_path, ProjectConfig(servers={"fs": ServerConfigEntry(command="node")}))
        before = (tmp_path / ".mcp.json").read_text()

        broken = ProjectConfig(servers={"fs": ServerConfigEntry(command="node", extra={"x": {1, 2}})})
        with pytest.raises(ConfigIOError, match="Failed to serialize"):
            save_project_config(tmp_path, broken)

        assert (tmp_path / ".mcp.json").read_text() == before
        assert read_project_config(tmp_path).servers["fs"].command == "node"
        assert sorted(p.name for p in tmp_path.iterdir()) == [".mcp.json"]

    def test_no_temp_files_left_behind(self, tmp_path: Path) -> None:
        save_project_config(tmp_path, ProjectConfig())
        save_project_config(tmp_path, ProjectConfig())
        assert sorted(p.name for p in tmp_path.iterdir()) == [".mcp.json"]

    def test_keeps_existing_file_mode(self, tmp_path: Path) -> None:
        path = save_project_config(tmp_path, ProjectConfig())
        assert path.stat().st_mode & 0o777 == 0o644

        path.chmod(0o640)
        save_project_config(tmp_path, ProjectConfig())
        assert path.stat().st_mode & 0o777 == 0o640

    def test_backup_taken_when_file_exists(self, tmp_path: Path) -> None:
        project = tmp_path / "webapp"
        backups = tmp_path / "backups"
        save_project_config(project, ProjectConfig(), backup_dir=backups)
        assert not backups.exists()

        save_project_config(project, ProjectConfig(), backup_dir=backups)
        copies = list(backups.glob("webapp-mcp-*_*.json"))
        assert len(copies) == 1


class TestUpdateProjectConfig:
    """Tests for update_project_config function."""

    def test_applies_mutation(self, tmp_path: Path) -> None:
        def add_entry(config: ProjectConfig) -> ProjectConfig:
            config.servers["fs"] = ServerConfigEntry(command="node")
            return config

        written = update_project_config(tmp_path, add_entry)

        assert "fs" in written.servers
        assert read_project_config(tmp_path).servers["fs"].command == "node"

    def test_concurrent_updates_in_one_process_do_not_lose_writes(self, tmp_path: Path) -> None:
        names = [f"server{i}" for i in range(20)]

        def add(name: str) -> None:
            def mutate(config: ProjectConfig) -> ProjectConfig:
                config.servers[name] = ServerConfigEntry(command="node")
                return config
            update_project_config(tmp_path, mutate)

        threads = [threading.Thread(target=add, args=(name,)) for name in names]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert set(read_project_config(tmp_path).servers) == set(names)

    def test_lock_registry_does_not_grow(self, tmp_path: Path) -> None:
        """Test that per-path locks are released once no update is running."""
        for i in range(10):
            update_project_config(tmp_path / f"project{i}", lambda config: config)

        root = str(tmp_path.resolve())
        assert not any(str(key).startswith(root) for key in list(project_config._locks.keys()))
