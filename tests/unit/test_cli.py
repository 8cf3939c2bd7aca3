"""
Tests for the DocUploader CLI.
"""

from unittest.mock import patch

import pytest
from click.testing import CliRunner
from fastapi.testclient import TestClient

from docuploader import cli as cli_module
from docuploader.cli import cli
from docuploader.client import DocUploaderClient


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def connected(app, monkeypatch):
    """Point every client command at the in-process application."""
    monkeypatch.setattr(
        cli_module,
        "_make_client",
        lambda ctx: DocUploaderClient(http_client=TestClient(app), chunk_size=128),
    )


class TestServe:
    """Test the serve command."""

    def test_serve_memory_backend(self, runner):
        """Test serve builds the app from CLI overrides and runs uvicorn."""
        with patch("docuploader.cli.uvicorn.run") as run, patch("docuploader.cli.setup_logging"):
            result = runner.invoke(cli, ["serve", "--storage", "memory", "--port", "8080", "--host", "127.0.0.1"])

        assert result.exit_code == 0, result.output
        assert "Storage: memory" in result.output
        app = run.call_args.args[0]
        assert app.state.storage.__class__.__name__ == "InMemoryBlobBackend"
        assert run.call_args.kwargs["host"] == "127.0.0.1"
        assert run.call_args.kwargs["port"] == 8080

    def test_serve_reload_uses_factory(self, runner, monkeypatch):
        """Test reload mode hands uvicorn the factory import string."""
        with patch("docuploader.cli.uvicorn.run") as run, patch("docuploader.cli.setup_logging"):
            result = runner.invoke(cli, ["serve", "--storage", "memory", "--reload"])

        assert result.exit_code == 0, result.output
        assert run.call_args.args[0] == "docuploader.app:create_app"
        assert run.call_args.kwargs["factory"] is True
        assert run.call_args.kwargs["reload"] is True

    def test_serve_without_connection_string(self, runner):
        """Test serve fails cleanly when Azure credentials are missing."""
        with patch("docuploader.cli.uvicorn.run") as run, patch("docuploader.cli.setup_logging"):
            result = runner.invoke(cli, ["serve"])

        assert result.exit_code == 1
        assert "Azure Storage connection string not found" in result.output
        run.assert_not_called()

    def test_serve_invalid_config(self, runner, tmp_path):
        """Test an invalid configuration file is reported."""
        config_file = tmp_path / "docuploader.yaml"
        config_file.write_text("server:\n  port: 99999\n")

        with patch("docuploader.cli.uvicorn.run") as run, patch("docuploader.cli.setup_logging"):
            result = runner.invoke(cli, ["serve", "--config", str(config_file)])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
        run.assert_not_called()


class TestClientCommands:
    """Test commands that talk to a running server."""

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "docuploader" in result.output

    def test_health(self, runner, connected):
        result = runner.invoke(cli, ["health"])

        assert result.exit_code == 0
        assert "[OK] OK" in result.output

    def test_containers_create_and_list(self, runner, connected):
        """Test creating then listing containers."""
        result = runner.invoke(cli, ["containers", "create", "test-docs"])
        assert result.exit_code == 0, result.output
        assert "Container created successfully: test-docs" in result.output

        result = runner.invoke(cli, ["containers", "list"])
        assert result.exit_code == 0
        assert result.output.startswith("test-docs\t")

    def test_containers_list_empty(self, runner, connected):
        result = runner.invoke(cli, ["containers", "list"])

        assert result.output.strip() == "No containers found"

    def test_containers_create_invalid_name(self, runner, connected, storage):
        """Test an invalid name is reported without calling the server."""
        result = runner.invoke(cli, ["containers", "create", "AB"])

        assert result.exit_code == 1
        assert "Container name must be between 3 and 63 characters" in result.output

    def test_containers_create_duplicate(self, runner, connected):
        """Test a duplicate is reported with the server's message."""
        runner.invoke(cli, ["containers", "create", "test-docs"])

        result = runner.invoke(cli, ["containers", "create", "test-docs"])

        assert result.exit_code == 1
        assert "Container already exists (HTTP 409)" in result.output

    def test_files_upload_list_download_delete(self, runner, connected, tmp_path):
        """Test the full file workflow."""
        source = tmp_path / "report.pdf"
        source.write_bytes(b"x" * 600)

        result = runner.invoke(cli, ["files", "upload", "test-docs", str(source)])
        assert result.exit_code == 0, result.output
        assert "File uploaded successfully" in result.output
        assert "Size: 600 B" in result.output

        result = runner.invoke(cli, ["files", "list", "test-docs"])
        assert result.exit_code == 0
        line = result.output.strip()
        assert line.startswith("report.pdf\t600 B\tapplication/pdf\t")
        blob_name = line.split("\t")[-1]

        destination = tmp_path / "copy.pdf"
        result = runner.invoke(cli, ["files", "download", "test-docs", blob_name, "-o", str(destination)])
        assert result.exit_code == 0, result.output
        assert destination.read_bytes() == b"x" * 600

        result = runner.invoke(cli, ["files", "delete", "test-docs", blob_name])
        assert result.exit_code == 0
        assert "File deleted successfully" in result.output

        result = runner.invoke(cli, ["files", "list", "test-docs"])
        assert "No files in 'test-docs'" in result.output

    def test_files_upload_unsupported_type(self, runner, connected, tmp_path, storage):
        """Test an unsupported file is refused before upload."""
        source = tmp_path / "archive.zip"
        source.write_bytes(b"PK")

        result = runner.invoke(cli, ["files", "upload", "test-docs", str(source)])

        assert result.exit_code == 1
        assert "File type not supported: application/zip" in result.output

    def test_files_upload_max_size_option(self, runner, connected, tmp_path):
        """Test --max-size sets the ceiling checked before sending."""
        source = tmp_path / "report.pdf"
        source.write_bytes(b"x" * 600)

        result = runner.invoke(cli, ["files", "upload", "test-docs", str(source), "--max-size", "100"])
        assert result.exit_code == 1
        assert "File too large" in result.output

        result = runner.invoke(cli, ["files", "list", "test-docs"])
        assert "HTTP 404" in result.output

    def test_files_upload_max_size_from_environment(self, runner, connected, tmp_path):
        """Test the ceiling follows DOCUPLOADER_MAX_UPLOAD_SIZE."""
        source = tmp_path / "report.pdf"
        source.write_bytes(b"x" * 600)

        result = runner.invoke(
            cli, ["files", "upload", "test-docs", str(source)], env={"DOCUPLOADER_MAX_UPLOAD_SIZE": "100"}
        )

        assert result.exit_code == 1
        assert "File too large" in result.output

    def test_files_upload_content_type_override(self, runner, connected, tmp_path):
        """Test --content-type replaces the guessed type."""
        source = tmp_path / "notes.data"
        source.write_bytes(b"hello")

        result = runner.invoke(
            cli, ["files", "upload", "test-docs", str(source), "--content-type", "text/plain"]
        )

        assert result.exit_code == 0, result.output

    def test_files_list_missing_container(self, runner, connected):
        """Test listing a missing container reports the 404."""
        result = runner.invoke(cli, ["files", "list", "missing"])

        assert result.exit_code == 1
        assert "HTTP 404" in result.output

    def test_files_delete_missing(self, runner, connected):
        """Test deleting a missing file reports the 404."""
        runner.invoke(cli, ["containers", "create", "test-docs"])

        result = runner.invoke(cli, ["files", "delete", "test-docs", "nope.pdf"])

        assert result.exit_code == 1
        assert "HTTP 404" in result.output

    def test_connection_error(self, runner, monkeypatch):
        """Test an unreachable server is reported."""
        result = runner.invoke(cli, ["--api-url", "http://127.0.0.1:1", "--timeout", "2", "health"])

        assert result.exit_code == 1
        assert "[ERROR] Health check failed" in result.output
