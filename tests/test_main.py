"""Tests for application wiring, the CLI and log redaction."""

from click.testing import CliRunner

from rehook import __version__
from rehook.config import Settings
from rehook.main import Rehook, cli
from rehook.utils.logging import _filter_sensitive


def test_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_invalid_listen_address(tmp_path, monkeypatch):
    monkeypatch.setenv("REHOOK_CONFIG_DIR", str(tmp_path))
    result = CliRunner().invoke(cli, ["--http", "nowhere"])
    assert result.exit_code == 2
    assert "invalid listen address" in result.output


async def test_start_and_stop(tmp_path):
    settings = Settings(
        server={"bind": "127.0.0.1", "port": 0, "admin_port": 0},
        storage={"db_path": str(tmp_path / "rehook.db")},
    )
    app = Rehook(settings)
    assert app.registry.names() == [
        "github-review-request",
        "github-signed-off-checker",
        "github-validator",
    ]
    await app.start()
    try:
        assert await app.hooks.list_hooks() == []
    finally:
        await app.stop()
    assert (tmp_path / "rehook.db").exists()


class TestFilterSensitive:
    def test_sensitive_keys_are_redacted(self):
        event = _filter_sensitive(None, "info", {"event": "x", "token": "abc", "secret": ""})
        assert event["token"] == "***REDACTED***"
        assert event["secret"] == ""

    def test_sensitive_values_are_redacted(self):
        event = _filter_sensitive(None, "info", {"event": "x", "detail": "token=abc123"})
        assert "abc123" not in event["detail"]
