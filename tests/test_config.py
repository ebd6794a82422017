"""
Test suite for configuration management module.

Covers:
- Defaults when no config file is given
- Loading configuration from a YAML file
- Environment variable overrides
- Error handling for missing/invalid config
- Credentials resolution
"""

import os
from unittest.mock import patch

import pytest

from hdw_mcp.config import Config, ConfigManager, Credentials
from hdw_mcp.exceptions import ConfigurationError, ErrorCodes, MissingConfigurationError


def _write(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestDefaults:
    """Configuration without any file or environment."""

    def test_defaults(self):
        config = ConfigManager().load_config()

        assert config.server.transport == "stdio"
        assert config.server.port == 3033
        assert config.hdw.base_url == "https://api.horizondatawave.ai"
        assert config.hdw.access_token == ""
        assert config.hdw.account_id is None
        assert config.hdw.default_timeout == 300
        assert config.mcp.name == "hdw-mcp"

    def test_config_class_can_be_instantiated(self):
        config = Config()
        for attr in ("server", "logging", "hdw", "mcp"):
            assert hasattr(config, attr), f"Config missing required attribute: {attr}"


class TestYamlLoading:
    """Test cases for loading configuration from YAML."""

    def test_load_config_from_yaml(self, tmp_path):
        path = _write(tmp_path, """
server:
  host: "0.0.0.0"
  port: 8080
  transport: http
logging:
  level: DEBUG
  format_json: false
hdw:
  base_url: "https://hdw.example.test"
  access_token: "yaml-token"
  account_id: "acc-yaml"
""")
        config = ConfigManager().load_config(path)

        assert config.server.host == "0.0.0.0"
        assert config.server.port == 8080
        assert config.server.transport == "http"
        assert config.logging.level == "DEBUG"
        assert config.logging.format_json is False
        assert config.hdw.base_url == "https://hdw.example.test"
        assert config.hdw.access_token == "yaml-token"

    def test_empty_yaml_uses_defaults(self, tmp_path):
        config = ConfigManager().load_config(_write(tmp_path, ""))
        assert config.server.port == 3033

    def test_missing_config_file_raises_error(self):
        with pytest.raises(FileNotFoundError):
            ConfigManager().load_config("nonexistent-config.yaml")

    def test_invalid_yaml_format_raises_error(self, tmp_path):
        path = _write(tmp_path, "hdw:\n  base_url: [unclosed bracket\n")
        with pytest.raises(ConfigurationError) as ei:
            ConfigManager().load_config(path)
        assert "Invalid YAML format" in ei.value.message

    def test_non_mapping_root_raises_error(self, tmp_path):
        with pytest.raises(ConfigurationError):
            ConfigManager().load_config(_write(tmp_path, "- just\n- a list\n"))

    def test_invalid_values_raise_configuration_error(self, tmp_path):
        path = _write(tmp_path, "server:\n  port: 70000\n")
        with pytest.raises(ConfigurationError) as ei:
            ConfigManager().load_config(path)
        assert ei.value.error_code == ErrorCodes.CONFIGURATION_ERROR

    def test_unknown_transport_rejected(self, tmp_path):
        with pytest.raises(ConfigurationError):
            ConfigManager().load_config(_write(tmp_path, "server:\n  transport: websocket\n"))


class TestEnvironmentVariableOverrides:
    """Environment variables win over YAML values."""

    @patch.dict(os.environ, {
        "HDW_ACCESS_TOKEN": "env-token",
        "HDW_ACCOUNT_ID": "env-account",
        "HDW_BASE_URL": "https://override.example.test",
    })
    def test_hdw_env_vars_override_yaml(self, tmp_path):
        path = _write(tmp_path, "hdw:\n  access_token: yaml-token\n  account_id: yaml-account\n")
        config = ConfigManager().load_config(path)

        assert config.hdw.access_token == "env-token"
        assert config.hdw.account_id == "env-account"
        assert config.hdw.base_url == "https://override.example.test"

    @patch.dict(os.environ, {"PORT": "9000", "HDW_MCP_TRANSPORT": "HTTP", "LOG_LEVEL": "warning"})
    def test_server_env_vars(self):
        config = ConfigManager().load_config()
        assert config.server.port == 9000
        assert config.server.transport == "http"
        assert config.logging.level == "warning"

    @patch.dict(os.environ, {"PORT": "not-a-port"})
    def test_non_integer_port(self):
        with pytest.raises(ConfigurationError) as ei:
            ConfigManager().load_config()
        assert ei.value.setting == "PORT"

    @patch.dict(os.environ, {"HDW_ACCESS_TOKEN": "env-token", "LOG_LEVEL": "DEBUG", "PORT": "9100"})
    def test_empty_sections_accept_env_overrides(self, tmp_path):
        config = ConfigManager().load_config(_write(tmp_path, "server:\nlogging:\nhdw:\n"))
        assert config.hdw.access_token == "env-token"
        assert config.logging.level == "DEBUG"
        assert config.server.port == 9100

    def test_non_mapping_section_raises_error(self, tmp_path):
        with pytest.raises(ConfigurationError) as ei:
            ConfigManager().load_config(_write(tmp_path, "hdw: just-a-string\n"))
        assert ei.value.setting == "hdw"

    @patch.dict(os.environ, {"HDW_ACCESS_TOKEN": ""})
    def test_empty_env_var_is_ignored(self, tmp_path):
        config = ConfigManager().load_config(_write(tmp_path, "hdw:\n  access_token: yaml-token\n"))
        assert config.hdw.access_token == "yaml-token"


class TestCredentials:
    """Test cases for credential resolution."""

    def test_missing_token(self):
        with pytest.raises(MissingConfigurationError) as ei:
            Config().credentials()
        assert ei.value.message == "HDW_ACCESS_TOKEN environment variable is required"
        assert ei.value.error_code == ErrorCodes.CONFIGURATION_ERROR

    def test_token_without_account(self):
        creds = Config(hdw={"access_token": "t"}).credentials()
        assert creds == Credentials(access_token="t", account_id=None)

    def test_empty_account_treated_as_absent(self):
        creds = Config(hdw={"access_token": "t", "account_id": ""}).credentials()
        assert creds.account_id is None

    def test_with_overrides(self):
        base = Credentials("t", "acc")
        assert base.with_overrides("t2", None) == Credentials("t2", "acc")
        assert base.with_overrides(None, "acc2") == Credentials("t", "acc2")
        assert base.with_overrides() is not base

    def test_credentials_are_immutable(self):
        creds = Credentials("t")
        with pytest.raises(AttributeError):
            creds.access_token = "other"
