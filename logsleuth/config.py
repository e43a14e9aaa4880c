"""
Configuration management for logsleuth.

Implements multi-level configuration loading with precedence:
1. Environment variables (highest priority)
2. .env files (./.env, ~/.logsleuth/.env)
3. Project config (./.logsleuth/config.yaml)
4. User config (~/.logsleuth/config.yaml)
5. System config (/etc/logsleuth/config.yaml)
"""

import os
from pathlib import Path
from typing import Dict, Optional, Tuple

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict, YamlConfigSettingsSource, PydanticBaseSettingsSource

from logsleuth.queries.loki import DEFAULT_LIMIT, DEFAULT_LOKI_URL


class ConfigError(Exception):
    """Raised when configuration required for an operation is missing."""


class Config(BaseSettings):
    """Complete configuration schema for logsleuth with flat structure."""

    model_config = SettingsConfigDict(
        # Load from .env files in order of precedence (lowest to highest)
        env_file=[
            ".env",  # Project-specific
            str(Path.home() / ".logsleuth" / ".env"),  # User-specific
        ],
        # Load from YAML files in order of precedence (lowest to highest)
        yaml_file=[
            "/etc/logsleuth/config.yaml",  # System-wide
            str(Path.home() / ".logsleuth" / "config.yaml"),  # User-specific
            ".logsleuth/config.yaml",  # Project-specific, relative to the working directory
        ],
        env_prefix="LOGSLEUTH_",
        case_sensitive=False,
        # Ignore extra fields (like OPENAI_API_KEY that aren't part of config schema)
        extra="ignore",
        env_file_encoding="utf-8",
    )

    # =================================================================
    # LLM Configuration
    # =================================================================

    llm_endpoint: Optional[str] = Field(
        default=None, description="Chat-completion endpoint URL"
    )
    llm_model: str = Field(default="gpt-4o", description="Model used for every request")
    llm_timeout_seconds: float = Field(
        default=60.0, gt=0, description="Timeout for non-streaming requests in seconds"
    )

    # Names of the environment variables holding the credential headers
    api_key_env: str = Field(
        default="K8s_APIKEY", description="Environment variable for the Authorization header"
    )
    openai_key_env: str = Field(
        default="OPENAI_API_KEY", description="Environment variable for the OpenAI-Api-Key header"
    )

    prompt_templates_dir: Optional[str] = Field(
        default=None, description="Directory containing custom prompt templates"
    )

    # =================================================================
    # Output Configuration
    # =================================================================

    stream_delay_ms: int = Field(
        default=10, ge=0, description="Delay in milliseconds between streamed chunks"
    )
    output_file: str = Field(
        default="output.md", description="Markdown report written in non-interactive mode"
    )

    # =================================================================
    # Log Files and Loki
    # =================================================================

    log_directory: str = Field(default="LOGS", description="Directory searched for log files")
    loki_url: str = Field(default=DEFAULT_LOKI_URL, description="Loki query_range endpoint")
    loki_limit: int = Field(default=DEFAULT_LIMIT, ge=1, description="Loki query result limit")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to include YAML support."""
        yaml_settings = YamlConfigSettingsSource(settings_cls)
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            yaml_settings,
            file_secret_settings,
        )

    def get_endpoint(self) -> str:
        """Return the chat-completion endpoint.

        Raises:
            ConfigError: If no endpoint is configured
        """
        if not self.llm_endpoint:
            raise ConfigError(
                "No chat-completion endpoint configured. "
                "Set LOGSLEUTH_LLM_ENDPOINT or llm_endpoint in config.yaml."
            )
        return self.llm_endpoint

    def build_headers(self) -> Dict[str, str]:
        """Build request headers from the credential environment variables.

        The credential values are passed through untouched.

        Raises:
            ConfigError: If a credential environment variable is not set
        """
        api_key = os.getenv(self.api_key_env)
        if not api_key:
            raise ConfigError(f"{self.api_key_env} environment variable is not set.")

        openai_key = os.getenv(self.openai_key_env)
        if not openai_key:
            raise ConfigError(f"{self.openai_key_env} environment variable is not set.")

        return {
            "Content-Type": "application/json",
            "Authorization": api_key,
            "OpenAI-Api-Key": openai_key,
        }

    def get_stream_delay(self) -> float:
        """Return the streaming delay in seconds."""
        return self.stream_delay_ms / 1000.0


def load_config() -> Config:
    """
    Load configuration from all sources with proper precedence.

    Precedence (highest to lowest):
    1. Environment variables (LOGSLEUTH_*)
    2. User .env (~/.logsleuth/.env)
    3. Project .env (./.env)
    4. Project config (./.logsleuth/config.yaml)
    5. User config (~/.logsleuth/config.yaml)
    6. System config (/etc/logsleuth/config.yaml)
    7. Default values

    Examples:
        >>> config = load_config()
        >>> print(config.llm_model)
        'gpt-4o'

        # export LOGSLEUTH_LLM_ENDPOINT=https://llm.example.com/v1/chat/completions
        # export K8s_APIKEY=... OPENAI_API_KEY=...
        >>> headers = load_config().build_headers()
    """
    return Config()
