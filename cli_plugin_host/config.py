"""Unified configuration management using YAML with environment overlay."""

import os
import yaml
import logging
from pathlib import Path
from functools import lru_cache
from typing import Optional, Dict, Any, List, Tuple
from pydantic import BaseModel, Field, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

CONFIG_FILE = Path("cli_host.yaml")
CONFIG_FILE_ENV = "CLI_HOST_CONFIG_FILE"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field("INFO", description="Logging level")
    enabled: bool = Field(True, description="Attach a stderr handler")
    format: str = Field(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log record format",
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()


class HostConfig(BaseModel):
    """Plugin host behaviour."""

    max_concurrent_apps: int = Field(
        10, ge=1, description="Maximum number of running app instances"
    )
    default_library: str = Field("ink", description="Library assumed by new apps")
    default_library_version: str = Field(
        ">=6.6.0", description="Library range assumed by new apps"
    )
    default_adapters: List[str] = Field(
        default_factory=lambda: ["ink"],
        description="Built-in adapters registered on initialize",
    )
    apps: List[str] = Field(
        default_factory=list,
        description="App import strings (module:attribute) registered on initialize",
    )
    command_prefix: str = Field("cli", description="Prefix of host shell commands")


class TerminalConfig(BaseModel):
    """Defaults for each per-instance terminal bridge."""

    columns: int = Field(80, ge=1, description="Initial terminal width")
    rows: int = Field(24, ge=1, description="Initial terminal height")
    default_prompt: str = Field("> ", description="Prompt shown for input")
    process_ansi_codes: bool = Field(
        True, description="Strip ANSI escapes from written text"
    )


class AdapterConfig(BaseModel):
    """Per-library adapter settings."""

    library_version: Optional[str] = Field(
        None, description="Installed library version (None uses the adapter default)"
    )
    debug: bool = Field(False, description="Adapter debug mode")
    features: Dict[str, List[str]] = Field(
        default_factory=dict,
        description="Extra or replacement version -> feature table entries",
    )


class PastelTheme(BaseModel):
    primary: str = "cyan"
    secondary: str = "magenta"
    background: str = "black"
    text: str = "white"


class PastelAdapterConfig(AdapterConfig):
    theme: PastelTheme = Field(default_factory=PastelTheme)


class AdaptersConfig(BaseModel):
    ink: AdapterConfig = Field(default_factory=AdapterConfig)
    pastel: PastelAdapterConfig = Field(default_factory=PastelAdapterConfig)

    def for_library(self, library: str) -> AdapterConfig:
        config = getattr(self, library, None)
        if isinstance(config, AdapterConfig):
            return config
        return AdapterConfig()


class Settings(BaseSettings):
    """Unified settings for the CLI plugin host."""

    host: HostConfig = Field(default_factory=HostConfig)
    terminal: TerminalConfig = Field(default_factory=TerminalConfig)
    adapters: AdaptersConfig = Field(default_factory=AdaptersConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",  # Allows HOST__MAX_CONCURRENT_APPS env var
        extra="ignore",
        validate_default=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        """Customize settings sources to include a YAML file and flat env vars."""
        from pydantic_settings.sources import PydanticBaseSettingsSource

        class YamlConfigSource(PydanticBaseSettingsSource):
            """Load settings from the YAML config file."""

            def get_field_value(
                self, field: FieldInfo, field_name: str
            ) -> Tuple[Any, str, bool]:
                data = self()
                if field_name in data:
                    return data[field_name], field_name, True
                return None, field_name, False

            def __call__(self) -> Dict[str, Any]:
                return cls._yaml_config_source()

        class FlatEnvVars(PydanticBaseSettingsSource):
            """Load flat CLI_HOST_* environment variables."""

            def get_field_value(
                self, field: FieldInfo, field_name: str
            ) -> Tuple[Any, str, bool]:
                data = self()
                if field_name in data:
                    return data[field_name], field_name, True
                return None, field_name, False

            def __call__(self) -> Dict[str, Any]:
                return cls._flat_env_source()

        # Precedence (first source wins):
        # init > nested env > flat env > yaml > defaults
        return (
            init_settings,
            env_settings,
            FlatEnvVars(settings_cls),
            YamlConfigSource(settings_cls),
            file_secret_settings,
        )

    @classmethod
    def _yaml_config_source(cls) -> Dict[str, Any]:
        """Load configuration from the YAML file."""
        import sys

        # Tests never read a stray cli_host.yaml unless they point at one
        if "pytest" in sys.modules and CONFIG_FILE_ENV not in os.environ:
            return {}

        config_file = Path(os.getenv(CONFIG_FILE_ENV, str(CONFIG_FILE)))
        config_data: Dict[str, Any] = {}

        if config_file.exists():
            try:
                with open(config_file) as f:
                    config_data = yaml.safe_load(f) or {}
                logger.debug(f"Loaded configuration from {config_file}")
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load {config_file}: {e}")
                return {}

        if not isinstance(config_data, dict):
            logger.warning(f"Ignoring {config_file}: top level is not a mapping")
            return {}

        # "adapters:" with no content
        for key in list(config_data.keys()):
            if config_data[key] is None:
                config_data[key] = {}

        return config_data

    @classmethod
    def _flat_env_source(cls) -> Dict[str, Any]:
        """Support short flat environment variables."""
        config_data: Dict[str, Any] = {}

        flat_mappings = {
            "CLI_HOST_LOG_LEVEL": ("logging", "level"),
            "CLI_HOST_MAX_APPS": ("host", "max_concurrent_apps"),
            "CLI_HOST_DEFAULT_LIBRARY": ("host", "default_library"),
            "CLI_HOST_INK_VERSION": ("adapters", "ink", "library_version"),
            "CLI_HOST_PASTEL_VERSION": ("adapters", "pastel", "library_version"),
        }

        for env_key, path in flat_mappings.items():
            value = os.getenv(env_key)
            if value is None:
                continue
            current = config_data
            for key in path[:-1]:
                current = current.setdefault(key, {})
            current[path[-1]] = value

        return config_data

    def export_yaml(self) -> str:
        """Render the effective settings as YAML."""
        return yaml.safe_dump(self.model_dump(), sort_keys=False)


def _deep_merge(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries, with b taking precedence."""
    result = a.copy()

    for key, value in b.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def settings_with_overrides(overrides: Dict[str, Any]) -> Settings:
    """Cached settings with nested ``overrides`` merged on top."""
    base = get_settings().model_dump()
    return Settings.model_validate(_deep_merge(base, overrides))


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
