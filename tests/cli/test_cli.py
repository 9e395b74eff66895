"""Tests for vaultpack CLI."""

from collections.abc import Callable
from pathlib import Path

import pytest
from typer.testing import CliRunner

# Stderr is folded into result.output, so error text is asserted there.
runner = CliRunner()


def _settings(tmp_path: Path, source: Path, redundancy_level: int = 1) -> Path:
    config_file = tmp_path / "settings.yaml"
    config_file.write_text(f"""
source_dir: "{source}/"
alias_dir: /alias/
destination_root: "{tmp_path / 'backup'}"
redundancy_level: {redundancy_level}
""")
    return config_file


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_version_flag(self) -> None:
        from vaultpack.cli import app

        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "vaultpack" in result.stdout.lower()

    def test_help_flag(self) -> None:
        from vaultpack.cli import app

        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("backup", "list", "verify", "recover", "restore"):
            assert command in result.stdout

    def test_missing_settings_file(self, tmp_path: Path) -> None:
        from vaultpack.cli import app

        result = runner.invoke(app, ["list", "--settings", str(tmp_path / "nope.yaml")])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_invalid_settings_reported(self, tmp_path: Path) -> None:
        from vaultpack.cli import app

        config_file = tmp_path / "settings.yaml"
        config_file.write_text("source_dir: /src/\ndestination_root: /b\nredundancy_level: 5\n")

        result = runner.invoke(app, ["list", "--settings", str(config_file)])

        assert result.exit_code == 1
        assert "redundancy_level" in result.output


class TestBackupCommands:
    """End-to-end runs of each command against a temporary pack."""

    def test_backup_then_list(self, tmp_path: Path, source_tree: Path) -> None:
        from vaultpack.cli import app

        config_file = _settings(tmp_path, source_tree)

        result = runner.invoke(app, ["backup", "-s", str(config_file), "--no-interactive"])
        assert result.exit_code == 0, result.output
        assert "3 file(s)" in result.output

        result = runner.invoke(app, ["list", "-s", str(config_file)])
        assert result.exit_code == 0, result.output
        listed = [line for line in result.stdout.splitlines() if line.startswith("/alias/")]
        assert listed == ["/alias/a", "/alias/b", "/alias/c"]

    def test_backup_conflict_fails_non_interactive(self, tmp_path: Path, source_tree: Path) -> None:
        from vaultpack.cli import app

        config_file = _settings(tmp_path, source_tree)
        runner.invoke(app, ["backup", "-s", str(config_file), "--no-interactive"])
        (source_tree / "b").write_bytes(b"edited")

        result = runner.invoke(app, ["backup", "-s", str(config_file), "--no-interactive"])

        assert result.exit_code == 1
        assert "has changed since backup" in result.output

    def test_verify_passes_then_fails(
        self, tmp_path: Path, source_tree: Path, corrupt: Callable[[Path], None]
    ) -> None:
        from vaultpack.cli import app
        from vaultpack.core.content_store import FilesystemContentStore
        from vaultpack.core.hashing import digest_file

        config_file = _settings(tmp_path, source_tree)
        runner.invoke(app, ["backup", "-s", str(config_file), "--no-interactive"])

        result = runner.invoke(app, ["verify", "-s", str(config_file)])
        assert result.exit_code == 0, result.output
        assert "passed" in result.output

        store = FilesystemContentStore(tmp_path / "backup")
        corrupt(store.locate(digest_file(source_tree / "c")))

        result = runner.invoke(app, ["verify", "-s", str(config_file)])
        assert result.exit_code == 1
        assert "FAILED /alias/c" in result.output

    def test_recover_repairs(
        self, tmp_path: Path, source_tree: Path, corrupt: Callable[[Path], None]
    ) -> None:
        from vaultpack.cli import app
        from vaultpack.core.content_store import FilesystemContentStore
        from vaultpack.core.hashing import digest_file

        config_file = _settings(tmp_path, source_tree)
        runner.invoke(app, ["backup", "-s", str(config_file), "--no-interactive"])
        store = FilesystemContentStore(tmp_path / "backup")
        corrupt(store.locate(digest_file(source_tree / "a")))

        result = runner.invoke(app, ["recover", "-s", str(config_file)])

        assert result.exit_code == 0, result.output
        assert "1 corrupt file(s) were recovered" in result.output
        assert runner.invoke(app, ["verify", "-s", str(config_file)]).exit_code == 0

    def test_recover_without_mirror_fails(
        self, tmp_path: Path, source_tree: Path, corrupt: Callable[[Path], None]
    ) -> None:
        from vaultpack.cli import app
        from vaultpack.core.content_store import FilesystemContentStore
        from vaultpack.core.hashing import digest_file

        config_file = _settings(tmp_path, source_tree, redundancy_level=0)
        runner.invoke(app, ["backup", "-s", str(config_file), "--no-interactive"])
        store = FilesystemContentStore(tmp_path / "backup")
        corrupt(store.locate(digest_file(source_tree / "a")))

        result = runner.invoke(app, ["recover", "-s", str(config_file)])

        assert result.exit_code == 1
        assert "failed to recover 1 file(s)" in result.output

    @pytest.mark.parametrize("form", ["logical", "local"])
    def test_restore(self, tmp_path: Path, source_tree: Path, form: str) -> None:
        from vaultpack.cli import app

        config_file = _settings(tmp_path, source_tree)
        original = (source_tree / "b").read_bytes()
        runner.invoke(app, ["backup", "-s", str(config_file), "--no-interactive"])
        (source_tree / "b").write_bytes(b"oops")

        target = "/alias/b" if form == "logical" else str(source_tree / "b")
        result = runner.invoke(app, ["restore", target, "-s", str(config_file)])

        assert result.exit_code == 0, result.output
        assert f"restore of {source_tree}/b done" in result.output
        assert (source_tree / "b").read_bytes() == original

    def test_restore_path_outside_backup(self, tmp_path: Path, source_tree: Path) -> None:
        from vaultpack.cli import app

        config_file = _settings(tmp_path, source_tree)
        runner.invoke(app, ["backup", "-s", str(config_file), "--no-interactive"])

        result = runner.invoke(app, ["restore", "/etc/hosts", "-s", str(config_file)])

        assert result.exit_code == 1
        assert "is not under" in result.output

    def test_restore_untracked(self, tmp_path: Path, source_tree: Path) -> None:
        from vaultpack.cli import app

        config_file = _settings(tmp_path, source_tree)
        runner.invoke(app, ["backup", "-s", str(config_file), "--no-interactive"])

        result = runner.invoke(app, ["restore", "/alias/zzz", "-s", str(config_file)])

        assert result.exit_code == 1
        assert "not in backup" in result.output
