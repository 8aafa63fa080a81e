"""Tests for the command-line entry point."""
import os
import pytest
from unittest.mock import patch

from typer.testing import CliRunner

from chaos_exporter.cli import app

runner = CliRunner()

CLI_ENV = ("KUBECONFIG", "HOST", "PORT", "LOG_LEVEL")


@pytest.fixture
def uvicorn_run():
    with patch.dict(os.environ), patch("chaos_exporter.cli.uvicorn.run") as run:
        for name in CLI_ENV:
            os.environ.pop(name, None)
        yield run


class TestServe:
    """Tests for the serve command."""

    def test_options_reach_environment_and_server(self, uvicorn_run):
        """Test that command-line options configure the app and the server."""
        result = runner.invoke(app, [
            "--kubeconfig", "/tmp/kubeconfig",
            "--host", "127.0.0.1",
            "--port", "9100",
            "--log-level", "DEBUG",
        ])

        assert result.exit_code == 0, result.output
        assert os.environ["KUBECONFIG"] == "/tmp/kubeconfig"
        assert os.environ["LOG_LEVEL"] == "DEBUG"
        uvicorn_run.assert_called_once_with(
            "chaos_exporter.main:app",
            host="127.0.0.1",
            port=9100,
            log_level="debug",
        )

    def test_defaults(self, uvicorn_run):
        """Test serving with default options."""
        result = runner.invoke(app, [])

        assert result.exit_code == 0, result.output
        assert "KUBECONFIG" not in os.environ
        assert os.environ["LOG_LEVEL"] == "INFO"
        uvicorn_run.assert_called_once_with(
            "chaos_exporter.main:app",
            host="0.0.0.0",
            port=8080,
            log_level="info",
        )

    def test_environment_fallback(self, uvicorn_run):
        """Test that options fall back to their environment variables."""
        os.environ["PORT"] = "9200"
        os.environ["KUBECONFIG"] = "/etc/kube/config"

        result = runner.invoke(app, [])

        assert result.exit_code == 0, result.output
        assert os.environ["KUBECONFIG"] == "/etc/kube/config"
        _, kwargs = uvicorn_run.call_args
        assert kwargs["port"] == 9200

    def test_invalid_port(self, uvicorn_run):
        """Test that a non-numeric port is rejected."""
        result = runner.invoke(app, ["--port", "metrics"])

        assert result.exit_code != 0
        uvicorn_run.assert_not_called()
