"""
Configuration management module for the HDW MCP server.

This module provides YAML-based configuration with environment variable overrides,
validation, and type safety using Pydantic models.

Example usage:
    >>> config_manager = ConfigManager()
    >>> config = config_manager.load_config("config.yaml")
    >>> print(config.hdw.base_url)

Environment variable overrides:
    - HDW_ACCESS_TOKEN: Overrides hdw.access_token
    - HDW_ACCOUNT_ID: Overrides hdw.account_id
    - HDW_BASE_URL: Overrides hdw.base_url
    - PORT: Overrides server.port
    - HDW_MCP_TRANSPORT: Overrides server.transport
    - LOG_LEVEL: Overrides logging.level
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import ConfigurationError, MissingConfigurationError


# Constants for validation and defaults
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3033
DEFAULT_BASE_URL = "https://api.horizondatawave.ai"
DEFAULT_TIMEOUT = 300
DEFAULT_CONNECT_TIMEOUT = 10

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credentials:
    """Opaque access token plus the optional account the token acts for."""

    access_token: str
    account_id: Optional[str] = None

    def with_overrides(
        self, access_token: Optional[str] = None, account_id: Optional[str] = None
    ) -> "Credentials":
        """Return a copy with any non-empty override applied."""
        return Credentials(
            access_token=access_token or self.access_token,
            account_id=account_id or self.account_id,
        )


class ServerConfig(BaseModel):
    """Server configuration section.

    Attributes:
        host (str): Bind address for the streamable HTTP transport.
        port (int): Port for the streamable HTTP transport. Defaults to 3033.
        transport (str): ``stdio`` (default) or ``http``.
    """
    host: str = Field(default=DEFAULT_HOST, description="Server bind address")
    port: int = Field(default=DEFAULT_PORT, description="Server port number", ge=1, le=65535)
    transport: Literal["stdio", "http"] = Field(default="stdio", description="MCP transport")


class LoggingConfig(BaseModel):
    """Logging configuration section."""
    level: str = Field(default="INFO", description="Logging level")
    format_json: bool = Field(default=True, description="Emit JSON log lines")


class HDWConfig(BaseModel):
    """HorizonDataWave API connection settings.

    Attributes:
        base_url (str): API root, without trailing slash.
        access_token (str): Token sent in the ``access-token`` header.
                           Keep this secure and never log it.
        account_id (str): Account used by management tools (messaging,
                          posting, connections). Optional for read-only use.
        default_timeout (int): ``timeout`` forwarded upstream when a caller
                               does not supply one.
        connect_timeout (float): Local TCP connect timeout in seconds.
    """
    base_url: str = Field(default=DEFAULT_BASE_URL, description="HDW API base URL")
    access_token: str = Field(default="", description="HDW API access token")
    account_id: Optional[str] = Field(default=None, description="HDW account ID for management tools")
    default_timeout: int = Field(default=DEFAULT_TIMEOUT, description="Forwarded timeout in seconds", gt=0)
    connect_timeout: float = Field(default=DEFAULT_CONNECT_TIMEOUT, description="Connect timeout in seconds", gt=0)


class McpConfig(BaseModel):
    """MCP server identification."""
    name: str = Field(default="hdw-mcp", description="MCP server name identifier")
    version: str = Field(default="0.1.0", description="Server version")


class Config(BaseModel):
    """Main configuration container.

    Example:
        >>> config = Config(hdw={"access_token": "secret"})
        >>> config.server.port = 8080
    """
    model_config = ConfigDict(validate_assignment=True)

    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    hdw: HDWConfig = Field(default_factory=HDWConfig)
    mcp: McpConfig = Field(default_factory=McpConfig)

    def credentials(self) -> Credentials:
        """Process-wide credentials.

        Raises:
            MissingConfigurationError: If no access token is configured
        """
        if not self.hdw.access_token:
            raise MissingConfigurationError(
                "HDW_ACCESS_TOKEN",
                message="HDW_ACCESS_TOKEN environment variable is required",
            )
        return Credentials(access_token=self.hdw.access_token, account_id=self.hdw.account_id or None)


class ConfigManager:
    """Configuration manager for loading and managing configuration.

    Example:
        >>> manager = ConfigManager()
        >>> config = manager.load_config()
        >>> print(config.hdw.base_url)
    """

    def __init__(self) -> None:
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def load_config(self, config_path: Optional[str] = None) -> Config:
        """
        Load configuration from an optional YAML file plus environment overrides.

        Args:
            config_path: Path to the YAML configuration file. When omitted,
                         defaults and environment variables are used.

        Returns:
            Config: Populated configuration object

        Raises:
            FileNotFoundError: If an explicit config file doesn't exist
            ConfigurationError: If YAML parsing or validation fails
        """
        yaml_data: Dict[str, Any] = {}

        if config_path is not None:
            yaml_data = self._read_yaml(config_path)

        self.logger.debug("Applying environment variable overrides")
        yaml_data = self._apply_env_overrides(yaml_data)

        try:
            config = Config(**yaml_data)
        except ValidationError as e:
            self.logger.error(f"Configuration validation failed: {e}")
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

        self.logger.info(
            "Configuration loaded",
            extra={"transport": config.server.transport, "base_url": config.hdw.base_url},
        )
        return config

    def _read_yaml(self, config_path: str) -> Dict[str, Any]:
        self.logger.info(f"Loading configuration from: {config_path}")

        config_file = Path(config_path)
        if not config_file.exists():
            self.logger.error(f"Configuration file not found: {config_path}")
            raise FileNotFoundError(
                f"Configuration file not found: {config_path}\n"
                f"Please ensure the file exists and is readable."
            )

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                yaml_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            self.logger.error(f"Invalid YAML format in {config_path}: {e}")
            raise ConfigurationError(
                f"Invalid YAML format in {config_path}: {e}\n"
                f"Please check the YAML syntax and ensure proper indentation."
            ) from e

        if yaml_data is None:
            self.logger.warning("YAML file is empty, using default configuration")
            return {}
        if not isinstance(yaml_data, dict):
            raise ConfigurationError(f"Configuration root in {config_path} must be a mapping")

        self.logger.debug(f"Loaded YAML sections: {list(yaml_data.keys())}")
        return yaml_data

    def _apply_env_overrides(self, yaml_data: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides to YAML data."""
        for section in ("server", "logging", "hdw"):
            # An empty "hdw:" key loads as None
            if yaml_data.get(section) is None:
                yaml_data[section] = {}
            elif not isinstance(yaml_data[section], dict):
                raise ConfigurationError(f"Configuration section '{section}' must be a mapping", setting=section)

        if os.environ.get('HDW_ACCESS_TOKEN'):
            yaml_data['hdw']['access_token'] = os.environ['HDW_ACCESS_TOKEN']
        if os.environ.get('HDW_ACCOUNT_ID'):
            yaml_data['hdw']['account_id'] = os.environ['HDW_ACCOUNT_ID']
        if os.environ.get('HDW_BASE_URL'):
            yaml_data['hdw']['base_url'] = os.environ['HDW_BASE_URL']

        if os.environ.get('PORT'):
            try:
                yaml_data['server']['port'] = int(os.environ['PORT'])
            except ValueError as e:
                raise ConfigurationError(f"PORT must be an integer, got {os.environ['PORT']!r}", setting="PORT") from e
        if os.environ.get('HDW_MCP_TRANSPORT'):
            yaml_data['server']['transport'] = os.environ['HDW_MCP_TRANSPORT'].lower()

        if os.environ.get('LOG_LEVEL'):
            yaml_data['logging']['level'] = os.environ['LOG_LEVEL']

        return yaml_data
