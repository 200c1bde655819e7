"""
Configuration management for MeloMo

This module handles loading, validation, and management of application settings
from multiple sources including YAML files and environment variables. It provides
a centralized configuration system that supports reloading and validation.

The configuration is organized into logical sections using dataclasses:
- Apple Music API settings (developer token, storefront, limits)
- Generation policy (cooldown, recent history cap, popularity threshold)
- Local state storage location
- Logging, network and security settings

All sensitive data (developer and user tokens) can be loaded from environment
variables, while non-sensitive settings can be stored in YAML files.
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional
from dataclasses import dataclass
from dotenv import load_dotenv

# Load environment variables from .env file if present
load_dotenv()


@dataclass
class AppleMusicConfig:
    """
    Apple Music API configuration

    The developer token is a signed JWT issued for the Apple Developer account.
    It is required for any catalog request and should come from the environment.
    """
    developer_token: str = ""
    storefront: str = "us"
    api_base_url: str = "https://api.music.apple.com/v1"
    search_limit: int = 25
    requests_per_second: int = 5


@dataclass
class GenerationConfig:
    """
    Playlist generation policy

    Controls how often generation may run and how much history is kept.
    The defaults match the behaviour users know from the mobile app.
    """
    cooldown_seconds: float = 2.0
    recent_moods_limit: int = 10
    popular_threshold: int = 4
    auto_open_handoff: bool = True


@dataclass
class StorageConfig:
    """
    Local state storage

    Every persisted aggregate (provider, preferences, statistics, recent and
    favorite moods) is written as its own JSON document inside this directory.
    """
    directory: str = "~/.melomo/state"


@dataclass
class LoggingConfig:
    """
    Logging configuration and output settings

    Controls application logging behavior including log levels, file output,
    rotation, and console formatting.
    """
    level: str = "INFO"
    file: str = ""
    max_size: str = "10MB"
    backup_count: int = 3
    console_output: bool = True
    colored_output: bool = True


@dataclass
class NetworkConfig:
    """
    Network and HTTP configuration settings

    Controls timeouts and retry behaviour of the Apple Music client.
    """
    user_agent: str = "MeloMo/1.0"
    request_timeout: int = 30
    max_retries: int = 3
    retry_delay: float = 1.0


@dataclass
class SecurityConfig:
    """
    Security and storage configuration

    Controls where the Apple Music user token is stored.
    """
    token_storage_path: str = "~/.melomo/tokens.json"
    config_directory: str = "~/.melomo/"


class Settings:
    """
    Main settings class that manages all configuration

    This class serves as the central configuration manager, loading settings
    from multiple sources (YAML files, environment variables) and providing
    a unified interface for accessing configuration throughout the application.

    The class handles:
    - Loading configuration from YAML files
    - Overriding with environment variables
    - Validating configuration values
    - Saving configuration back to files
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize settings from config file or environment variables

        Args:
            config_path: Path to custom config file, if None uses default locations
        """
        self.config_path = config_path
        self.config_dir = Path.home() / ".melomo"

        # Initialize all configuration objects with default values
        self.apple_music = AppleMusicConfig()
        self.generation = GenerationConfig()
        self.storage = StorageConfig()
        self.logging = LoggingConfig()
        self.network = NetworkConfig()
        self.security = SecurityConfig()

        # Load configuration from various sources in order of precedence
        self._load_config()
        self._load_environment_variables()

    def _sections(self) -> Dict[str, Any]:
        return {
            'apple_music': self.apple_music,
            'generation': self.generation,
            'storage': self.storage,
            'logging': self.logging,
            'network': self.network,
            'security': self.security,
        }

    def _load_config(self) -> None:
        """
        Load configuration from YAML file

        Searches for configuration files in multiple locations in order of
        precedence. The first file found will be used.
        """
        config_paths = [
            self.config_path,
            self.config_dir / "config.yaml",
            Path("config/config.yaml"),
            Path("config.yaml")
        ]

        config_data = {}
        for path in config_paths:
            if path and Path(path).exists():
                try:
                    with open(path, 'r', encoding='utf-8') as f:
                        config_data = yaml.safe_load(f) or {}
                    break
                except (OSError, yaml.YAMLError) as e:
                    print(f"Warning: Failed to load config from {path}: {e}")

        self._apply_config(config_data)

    def _apply_config(self, config_data: Dict[str, Any]) -> None:
        """
        Apply configuration data to dataclass instances

        Only attributes that exist on both sides are updated; unknown sections
        and keys are ignored.

        Args:
            config_data: Dictionary containing configuration sections
        """
        config_mapping = self._sections()

        for section_name, section_data in config_data.items():
            if section_name in config_mapping and isinstance(section_data, dict):
                config_obj = config_mapping[section_name]
                for key, value in section_data.items():
                    if hasattr(config_obj, key):
                        setattr(config_obj, key, value)

    def _load_environment_variables(self) -> None:
        """
        Load sensitive configuration from environment variables

        Environment variables take precedence over file-based configuration.
        """
        env_mappings = {
            'APPLE_MUSIC_DEVELOPER_TOKEN': lambda v: setattr(self.apple_music, 'developer_token', v),
            'APPLE_MUSIC_STOREFRONT': lambda v: setattr(self.apple_music, 'storefront', v),
            'MELOMO_STATE_DIR': lambda v: setattr(self.storage, 'directory', v),
            'MELOMO_LOG_LEVEL': lambda v: setattr(self.logging, 'level', v),
        }

        for env_var, setter in env_mappings.items():
            value = os.getenv(env_var)
            if value:
                setter(value)

    def get_storage_directory(self) -> Path:
        """Return the expanded state directory path"""
        return Path(self.storage.directory).expanduser()

    def get_config_directory(self) -> Path:
        """Return the expanded config directory path"""
        return Path(self.security.config_directory).expanduser()

    def get_token_storage_path(self) -> Path:
        """Return the expanded token storage path"""
        return Path(self.security.token_storage_path).expanduser()

    def save_config(self, path: Optional[str] = None) -> Path:
        """
        Save current configuration to file

        Serializes the current configuration to a YAML file, excluding
        the developer token.

        Args:
            path: Custom path to save config, defaults to user config directory

        Returns:
            Path the configuration was written to

        Raises:
            ConfigError: If the configuration cannot be saved
        """
        from ..utils.exceptions import ConfigError

        target = Path(path) if path else self.get_config_directory() / "config.yaml"

        config_data = {
            name: self._dataclass_to_dict(section)
            for name, section in self._sections().items()
        }

        # Never write secrets to disk
        config_data['apple_music']['developer_token'] = ""

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, 'w', encoding='utf-8') as f:
                yaml.safe_dump(config_data, f, default_flow_style=False, indent=2)
        except OSError as e:
            raise ConfigError(f"Failed to save config to {target}: {e}", details={'path': str(target)}) from e
        return target

    def _dataclass_to_dict(self, obj) -> Dict[str, Any]:
        return dict(obj.__dict__)

    def validate(self) -> List[str]:
        """
        Validate current configuration

        Returns:
            List of human-readable problems; empty when the configuration is valid
        """
        errors = []

        if self.generation.cooldown_seconds < 0:
            errors.append(f"Invalid cooldown: {self.generation.cooldown_seconds}")

        if self.generation.recent_moods_limit < 1:
            errors.append(f"Invalid recent moods limit: {self.generation.recent_moods_limit}")

        if not 1 <= self.apple_music.search_limit <= 25:
            errors.append(f"Search limit must be between 1 and 25: {self.apple_music.search_limit}")

        if self.apple_music.requests_per_second < 1:
            errors.append(f"Invalid request rate: {self.apple_music.requests_per_second}")

        if not self.apple_music.storefront:
            errors.append("Apple Music storefront is required")

        return errors

    def __str__(self) -> str:
        sections = [
            f"Storefront: {self.apple_music.storefront}",
            f"Cooldown: {self.generation.cooldown_seconds}s",
            f"Recent: {self.generation.recent_moods_limit}",
            f"State: {self.storage.directory}",
        ]
        return f"Settings({', '.join(sections)})"


# Global settings instance, created on first access
settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the global settings instance

    Returns:
        The global Settings instance
    """
    global settings
    if settings is None:
        settings = Settings()
    return settings


def reload_settings(config_path: Optional[str] = None) -> Settings:
    """
    Reload settings from configuration files

    Args:
        config_path: Optional path to specific config file

    Returns:
        New Settings instance with reloaded configuration
    """
    global settings
    settings = Settings(config_path)
    return settings
