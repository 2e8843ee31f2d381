"""
Configuration management for GDPS Launcher.

Provides hierarchical configuration loading with validation using Pydantic.
Supports TOML configuration files and environment variable overrides
(``GDPS_LAUNCHER_`` prefix, ``__`` as nested delimiter).
"""

import os
from pathlib import Path
from typing import Any, List, Optional, Union

import toml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gdps_launcher.core.exceptions import ConfigError
from gdps_launcher.utils.logging import get_logger

logger = get_logger(__name__)


class LoggingConfig(BaseModel):
    """Logging configuration."""
    
    enabled: bool = Field(default=True, description="Enable logging completely")
    level: str = Field(default="INFO", description="File logging level")
    console_level: str = Field(default="WARNING", description="Console logging level")
    format_type: str = Field(default="text", description="Log format (text/json)")
    file: Optional[str] = Field(default="gdps-launcher.log", description="Log file path")
    enable_rich: bool = Field(default=True, description="Enable Rich console output")
    max_bytes: int = Field(default=5 * 1024 * 1024, description="Max log file size")
    backup_count: int = Field(default=3, description="Number of backup files")
    suppress_http: bool = Field(default=True, description="Suppress HTTP request logging")
    
    @field_validator("level", "console_level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate logging level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()
        
    @field_validator("format_type")
    @classmethod
    def validate_format_type(cls, v: str) -> str:
        """Validate format type."""
        if v not in ["text", "json"]:
            raise ValueError(f"Invalid format type: {v}")
        return v


class DirectoryConfig(BaseModel):
    """Remote server directory configuration."""
    
    api_base_url: str = Field(
        default="https://api.rigby.host",
        description="Base URL of the GDPS directory API"
    )
    timeout: float = Field(
        default=300.0,
        description="Metadata request timeout in seconds"
    )
    
    @field_validator("api_base_url")
    @classmethod
    def validate_api_base_url(cls, v: str) -> str:
        """Validate directory URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Directory URL must be http(s): {v}")
        return v.rstrip("/")
    
    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """The metadata request must always be bounded."""
        if v <= 0:
            raise ValueError("Timeout must be positive")
        return v


class HostConfig(BaseModel):
    """Local game host configuration."""
    
    data_dir: str = Field(
        default="~/.local/share/gdps-launcher",
        description="Directory holding patched server copies"
    )
    cache_dir: str = Field(
        default="~/.cache/gdps-launcher",
        description="Directory holding the unpatched base game"
    )
    gdps_url_template: str = Field(
        default="https://gdps.rigby.host/{id}/db////",
        description="Database URL written into the game binary"
    )
    original_url: str = Field(
        default="https://www.boomlings.com/database/",
        description="Database URL shipped with the game"
    )
    windows_game_url: str = Field(
        default="https://cdn.rigby.host/GeometryDash.zip",
        description="Base game archive for Windows"
    )
    macos_game_url: str = Field(
        default="https://cdn.rigby.host/GeometryDash.app.zip",
        description="Base game archive for macOS"
    )
    download_timeout: float = Field(
        default=600.0,
        description="Base game download timeout in seconds"
    )
    
    @field_validator("gdps_url_template")
    @classmethod
    def validate_template(cls, v: str) -> str:
        """Validate URL template."""
        if "{id}" not in v:
            raise ValueError("gdps_url_template must contain '{id}'")
        return v
    
    def get_data_dir(self) -> Path:
        """Get data directory path."""
        return Path(os.path.expanduser(self.data_dir))
    
    def get_cache_dir(self) -> Path:
        """Get cache directory path."""
        return Path(os.path.expanduser(self.cache_dir))
    
    def get_servers_dir(self) -> Path:
        """Directory with one sub-directory per registered server."""
        return self.get_data_dir() / "servers"


class Config(BaseSettings):
    """Main configuration class."""
    
    debug: bool = Field(default=False, description="Enable debug mode")
    verbose: bool = Field(default=False, description="Enable verbose output")
    config_dir: str = Field(
        default="~/.config/gdps-launcher",
        description="Configuration directory"
    )
    
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    directory: DirectoryConfig = Field(default_factory=DirectoryConfig)
    host: HostConfig = Field(default_factory=HostConfig)
    
    model_config = SettingsConfigDict(
        env_prefix="GDPS_LAUNCHER_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )
        
    def get_config_dir(self) -> Path:
        """Get configuration directory path."""
        return Path(os.path.expanduser(self.config_dir))
        
    def get_log_file(self) -> Optional[Path]:
        """Get log file path."""
        if self.logging.file:
            log_path = Path(os.path.expanduser(self.logging.file))
            if not log_path.is_absolute():
                log_path = self.get_config_dir() / log_path
            return log_path
        return None


class ConfigManager:
    """Configuration manager with hierarchical loading."""
    
    DEFAULT_FILES = [
        "/etc/gdps-launcher/config.toml",
        "~/.config/gdps-launcher/config.toml",
        "./.gdps-launcher.toml",
    ]
    
    def __init__(self):
        self._config: Optional[Config] = None
        
    def load_config(
        self,
        config_files: Optional[List[Union[str, Path]]] = None,
        **overrides: Any,
    ) -> Config:
        """
        Load configuration from multiple sources.
        
        Later files win over earlier ones, keyword overrides win over files.
        
        Args:
            config_files: List of configuration files to load
            **overrides: Configuration overrides
            
        Returns:
            Loaded configuration
            
        Raises:
            ConfigError: If the merged configuration does not validate
        """
        if self._config is not None:
            return self._config
            
        if config_files is None:
            config_files = self.DEFAULT_FILES
            
        config_data: dict = {}
        
        for config_file in config_files:
            file_path = Path(os.path.expanduser(str(config_file)))
            if file_path.exists():
                try:
                    _merge(config_data, toml.load(file_path))
                    logger.debug(f"Loaded configuration from {file_path}")
                except (OSError, toml.TomlDecodeError) as e:
                    logger.warning(f"Failed to load config from {file_path}: {e}")
                    
        _merge(config_data, overrides)
        
        try:
            self._config = Config(**config_data)
        except ValueError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e
        
        return self._config
        
    def get_config(self) -> Config:
        """Get current configuration."""
        if self._config is None:
            return self.load_config()
        return self._config
        
    def reload_config(self, **overrides: Any) -> Config:
        """Reload configuration."""
        self._config = None
        return self.load_config(**overrides)


def _merge(target: dict, source: dict) -> None:
    """Merge nested tables so a file can override a single key of a section."""
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = value


# Global configuration manager
_config_manager = ConfigManager()

load_config = _config_manager.load_config
get_config = _config_manager.get_config
reload_config = _config_manager.reload_config
