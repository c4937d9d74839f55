"""Tests for settings loading and command line overrides."""

import pytest

from rehook.config import Settings, _parse_listen_addr, apply_overrides, load_settings


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    monkeypatch.setenv("REHOOK_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.setenv("REHOOK_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("REHOOK_CONFIG", raising=False)


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.server.bind == "0.0.0.0"
        assert settings.server.port == 9000
        assert settings.server.admin_bind == "127.0.0.1"
        assert settings.server.admin_port == 9001
        assert settings.github.api_url == "https://api.github.com"
        assert settings.github.user_agent.startswith("rehook/v")
        assert settings.log_level == "INFO"

    def test_default_db_path(self, tmp_path):
        assert Settings().get_db_path() == tmp_path / "data" / "data.db"

    def test_explicit_db_path(self, tmp_path):
        settings = Settings(storage={"db_path": str(tmp_path / "x.db")})
        assert settings.get_db_path() == tmp_path / "x.db"

    def test_env_vars(self, monkeypatch):
        monkeypatch.setenv("REHOOK_SERVER__PORT", "8080")
        monkeypatch.setenv("REHOOK_LOG_LEVEL", "DEBUG")
        settings = Settings()
        assert settings.server.port == 8080
        assert settings.log_level == "DEBUG"


class TestLoadSettings:
    def test_yaml_file(self, tmp_path):
        path = tmp_path / "rehook.yaml"
        path.write_text("server:\n  port: 7000\ngithub:\n  per_page: 50\n")
        settings = load_settings(path)
        assert settings.server.port == 7000
        assert settings.server.bind == "0.0.0.0"
        assert settings.github.per_page == 50

    def test_missing_file_uses_defaults(self, tmp_path):
        settings = load_settings(tmp_path / "absent.yaml")
        assert settings.server.port == 9000

    def test_config_env_var(self, tmp_path, monkeypatch):
        path = tmp_path / "env.yaml"
        path.write_text("log_level: WARNING\n")
        monkeypatch.setenv("REHOOK_CONFIG", str(path))
        assert load_settings().log_level == "WARNING"

    def test_default_config_location(self, tmp_path):
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "config.yaml").write_text("log_json: true\n")
        assert load_settings().log_json is True

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_settings(path).server.port == 9000


class TestOverrides:
    def test_listen_addresses(self):
        settings = apply_overrides(Settings(), http=":8000", admin="0.0.0.0:8001")
        assert (settings.server.bind, settings.server.port) == ("0.0.0.0", 8000)
        assert (settings.server.admin_bind, settings.server.admin_port) == ("0.0.0.0", 8001)

    def test_admin_defaults_to_loopback(self):
        settings = apply_overrides(Settings(), admin=":8001")
        assert settings.server.admin_bind == "127.0.0.1"

    def test_db_and_log_level(self):
        settings = apply_overrides(Settings(), db="/tmp/x.db", log_level="DEBUG")
        assert settings.storage.db_path == "/tmp/x.db"
        assert settings.log_level == "DEBUG"

    def test_none_leaves_settings(self):
        settings = apply_overrides(Settings())
        assert settings.server.port == 9000

    @pytest.mark.parametrize("addr", ["localhost", "host:", "host:port"])
    def test_invalid_listen_addr(self, addr):
        with pytest.raises(ValueError):
            _parse_listen_addr(addr, "0.0.0.0")
