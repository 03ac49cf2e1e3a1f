"""Unit tests for configuration loading and the email override."""

import stat

import pytest

from lecert.core.config import (
    ACME_PRODUCTION_URL,
    FALLBACK_EMAIL,
    AppConfig,
    LecertConfig,
    get_example_config,
    init_config,
)
from lecert.core.exceptions import ConfigurationError


class TestLecertConfig:
    """Tests for LecertConfig."""

    def test_defaults(self):
        """Defaults match a stock certbot install."""
        config = LecertConfig()
        assert str(config.live_dir) == "/etc/letsencrypt/live"
        assert str(config.renewal_dir) == "/etc/letsencrypt/renewal"
        assert config.acme_server == ACME_PRODUCTION_URL
        assert config.warning_days == 30
        assert config.web_servers == [["nginx"], ["apache2", "httpd"]]

    def test_load(self, tmp_path):
        """Values from YAML override defaults."""
        path = tmp_path / "config.yaml"
        path.write_text("warning_days: 14\ndefault_email: ops@example.com\n")

        config = LecertConfig.load(path)

        assert config.warning_days == 14
        assert config.default_email == "ops@example.com"

    def test_empty_file(self, tmp_path):
        """An empty file gives defaults."""
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert LecertConfig.load(path).warning_days == 30

    def test_missing_file(self, tmp_path):
        """load requires the file; load_or_default does not."""
        path = tmp_path / "missing.yaml"
        with pytest.raises(ConfigurationError) as exc:
            LecertConfig.load(path)
        assert exc.value.exit_code == 2
        assert LecertConfig.load_or_default(path).warning_days == 30

    def test_invalid_yaml(self, tmp_path):
        """Broken YAML is a configuration error."""
        path = tmp_path / "config.yaml"
        path.write_text("warning_days: [1, 2\n")
        with pytest.raises(ConfigurationError) as exc:
            LecertConfig.load(path)
        assert "Invalid YAML" in str(exc.value)

    def test_not_a_mapping(self, tmp_path):
        """Top-level lists are rejected."""
        path = tmp_path / "config.yaml"
        path.write_text("- nginx\n")
        with pytest.raises(ConfigurationError):
            LecertConfig.load(path)

    @pytest.mark.parametrize("content", [
        "default_email: not-an-email\n",
        "acme_server: http://acme.example.com/directory\n",
        "warning_days: -1\n",
        "renewal_timeout: 0\n",
        "web_servers: [[]]\n",
        "letsencrypt_dir: relative/path\n",
    ])
    def test_invalid_values(self, tmp_path, content):
        """Invalid values are configuration errors."""
        path = tmp_path / "config.yaml"
        path.write_text(content)
        with pytest.raises(ConfigurationError):
            LecertConfig.load(path)

    def test_yaml_round_trip(self, tmp_path):
        """to_yaml output loads back to the same settings."""
        original = LecertConfig(warning_days=7, default_email="ops@example.com")
        path = tmp_path / "config.yaml"
        path.write_text(original.to_yaml())
        assert LecertConfig.load(path) == original

    def test_example_config_is_valid(self, tmp_path):
        """The example file loads cleanly."""
        path = tmp_path / "config.yaml"
        path.write_text(get_example_config())
        assert LecertConfig.load(path) == LecertConfig()


class TestAppConfigEmail:
    """Tests for the effective ACME email."""

    def test_environment_wins(self, monkeypatch):
        """LETSENCRYPT_EMAIL overrides the config file."""
        monkeypatch.setenv("LETSENCRYPT_EMAIL", "env@example.com")
        app_config = AppConfig(config=LecertConfig(default_email="file@example.com"))
        assert app_config.email == "env@example.com"
        assert app_config.email_source == "LETSENCRYPT_EMAIL"

    def test_config_file(self, monkeypatch):
        """The config file is used without the variable."""
        monkeypatch.delenv("LETSENCRYPT_EMAIL", raising=False)
        app_config = AppConfig(config=LecertConfig(default_email="file@example.com"))
        assert app_config.email == "file@example.com"
        assert app_config.email_source == "config file"

    def test_fallback(self, monkeypatch):
        """Nothing configured gives the placeholder address."""
        monkeypatch.delenv("LETSENCRYPT_EMAIL", raising=False)
        app_config = AppConfig(config=LecertConfig())
        assert app_config.email == FALLBACK_EMAIL
        assert app_config.email_source == "built-in fallback"

    def test_empty_variable_ignored(self, monkeypatch):
        """An empty variable does not count as set."""
        monkeypatch.setenv("LETSENCRYPT_EMAIL", "")
        app_config = AppConfig(config=LecertConfig(default_email="file@example.com"))
        assert app_config.email == "file@example.com"


class TestInitConfig:
    """Tests for init_config."""

    def test_creates_private_file(self, tmp_path):
        """The file is written with owner-only permissions."""
        path = tmp_path / "lecert" / "config.yaml"
        init_config(path)
        assert path.read_text() == get_example_config()
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_refuses_overwrite(self, tmp_path):
        """Existing files need force."""
        path = tmp_path / "config.yaml"
        path.write_text("warning_days: 1\n")
        with pytest.raises(ConfigurationError):
            init_config(path)
        init_config(path, force=True)
        assert "warning_days: 30" in path.read_text()
