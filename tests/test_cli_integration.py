"""Integration tests for CLI commands against a real storage directory."""

import pytest
from typer.testing import CliRunner

from stable_storage.cli import app
from stable_storage.hashing import encode_key


# ========== Fixtures ==========

@pytest.fixture
def runner():
    """Create a CliRunner for in-process testing."""
    return CliRunner()


@pytest.fixture
def root_args(storage_root):
    """--root arguments pointing at the test storage root."""
    return ["--root", str(storage_root)]


# ========== Tests ==========

class TestPutGetRemove:
    """Test the basic command workflow."""

    def test_put_and_get(self, runner, root_args, tmp_path):
        """put stores a value that get writes back out."""
        result = runner.invoke(app, ["put", "greeting", "hello", *root_args])
        assert result.exit_code == 0, result.output

        out = tmp_path / "out.bin"
        result = runner.invoke(app, ["get", "greeting", "--output", str(out), *root_args])
        assert result.exit_code == 0, result.output
        assert out.read_bytes() == b"hello"

    def test_get_to_stdout(self, runner, root_args):
        """Without --output the value is echoed."""
        runner.invoke(app, ["put", "greeting", "hello", *root_args])
        result = runner.invoke(app, ["get", "greeting", *root_args])
        assert result.exit_code == 0
        assert "hello" in result.output

    def test_put_from_file(self, runner, root_args, tmp_path, storage_root):
        """--file stores the file's bytes."""
        payload = tmp_path / "payload.bin"
        payload.write_bytes(b"\x00\x01binary")

        result = runner.invoke(app, ["put", "blob", "--file", str(payload), *root_args])
        assert result.exit_code == 0, result.output
        assert (storage_root / f"{encode_key('blob')}.data").read_bytes() == b"\x00\x01binary"

    def test_put_from_stdin(self, runner, root_args, storage_root):
        """Value is read from stdin when omitted."""
        result = runner.invoke(app, ["put", "piped", *root_args], input="from stdin")
        assert result.exit_code == 0, result.output
        assert (storage_root / f"{encode_key('piped')}.data").read_bytes() == b"from stdin"

    def test_value_and_file_conflict(self, runner, root_args, tmp_path):
        """VALUE and --file are mutually exclusive."""
        payload = tmp_path / "payload.bin"
        payload.write_bytes(b"x")
        result = runner.invoke(app, ["put", "k", "v", "--file", str(payload), *root_args])
        assert result.exit_code == 2

    def test_get_missing(self, runner, root_args):
        """get exits 1 for an absent key."""
        result = runner.invoke(app, ["get", "nope", *root_args])
        assert result.exit_code == 1
        assert "Key not found" in result.output

    def test_remove(self, runner, root_args, storage_root):
        """remove exits 0 once and 1 afterwards."""
        runner.invoke(app, ["put", "k", "v", *root_args])

        assert runner.invoke(app, ["remove", "k", *root_args]).exit_code == 0
        assert list(storage_root.iterdir()) == []
        assert runner.invoke(app, ["remove", "k", *root_args]).exit_code == 1

    def test_get_unwritable_output(self, runner, root_args, tmp_path):
        """An --output path that cannot be written exits 1 with a message."""
        runner.invoke(app, ["put", "k", "v", *root_args])
        out = tmp_path / "missing-dir" / "out.bin"

        result = runner.invoke(app, ["get", "k", "--output", str(out), *root_args])
        assert result.exit_code == 1
        assert "Cannot write" in result.output
        assert not isinstance(result.exception, OSError)

    def test_put_unreadable_file(self, runner, root_args, tmp_path, storage_root):
        """A --file that cannot be read exits 1 and stores nothing."""
        result = runner.invoke(
            app, ["put", "k", "--file", str(tmp_path / "absent.bin"), *root_args]
        )
        assert result.exit_code == 1
        assert "Cannot read" in result.output
        assert list(storage_root.iterdir()) == []

    def test_put_key_too_long(self, runner, root_args, storage_root):
        """Oversized keys exit 1 and write nothing."""
        result = runner.invoke(app, ["put", "k" * 256, "v", *root_args])
        assert result.exit_code == 1
        assert "Invalid key length" in result.output
        assert list(storage_root.iterdir()) == []


class TestStoreSelection:
    """Test how commands find the storage root."""

    def test_root_from_env(self, runner, storage_root, monkeypatch):
        """STABLE_STORAGE_ROOT is used when --root is absent."""
        monkeypatch.setenv("STABLE_STORAGE_ROOT", str(storage_root))
        result = runner.invoke(app, ["put", "k", "v"])
        assert result.exit_code == 0, result.output
        assert len(list(storage_root.iterdir())) == 1

    def test_root_from_config_file(self, runner, storage_root, tmp_path):
        """--config reads the root from YAML."""
        cfg = tmp_path / "store.yaml"
        cfg.write_text(f"stable_storage:\n  root: {storage_root}\n")
        result = runner.invoke(app, ["put", "k", "v", "--config", str(cfg)])
        assert result.exit_code == 0, result.output
        assert len(list(storage_root.iterdir())) == 1

    def test_no_root(self, runner, monkeypatch):
        """Missing root configuration exits 1."""
        monkeypatch.delenv("STABLE_STORAGE_ROOT", raising=False)
        result = runner.invoke(app, ["get", "k"])
        assert result.exit_code == 1
        assert "STABLE_STORAGE_ROOT" in result.output

    def test_missing_directory(self, runner, tmp_path):
        """A root that does not exist is not created."""
        missing = tmp_path / "missing"
        result = runner.invoke(app, ["get", "k", "--root", str(missing)])
        assert result.exit_code == 1
        assert not missing.exists()


class TestUtilityCommands:
    """Test digest and cleanup."""

    def test_digest(self, runner):
        """digest prints the derived file name stem."""
        result = runner.invoke(app, ["digest", "a/b"])
        assert result.exit_code == 0
        assert encode_key("a/b") in result.output

    def test_cleanup(self, runner, root_args, storage_root):
        """cleanup removes stale temp files only."""
        (storage_root / f"{encode_key('x')}.tmp").write_bytes(b"stale")
        runner.invoke(app, ["put", "k", "v", *root_args])

        result = runner.invoke(app, ["cleanup", *root_args])
        assert result.exit_code == 0, result.output
        assert "Removed 1" in result.output
        assert [p.suffix for p in storage_root.iterdir()] == [".data"]

    def test_verbose_flag(self, runner, root_args):
        """--verbose is accepted before the command."""
        result = runner.invoke(app, ["--verbose", "put", "k", "v", *root_args])
        assert result.exit_code == 0, result.output
