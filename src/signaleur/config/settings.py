"""
Configuration management for Signaleur.

Hybrid configuration system using YAML files and environment variables.
Priority: Environment variables > YAML config > Pydantic defaults
"""

import os
import string
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Signaleur configuration schema.

    Loads configuration from:
    1. Environment variables (highest priority)
    2. YAML configuration files
    3. Pydantic defaults (lowest priority)

    Configuration files:
        - config/default.yaml: Base defaults
        - config/production.yaml: Production overrides
        - config/development.yaml: Development overrides
        - config/test.yaml: Test overrides
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow",
    )

    # Application
    APP_NAME: str = "Signaleur"
    APP_VERSION: str = "0.1.0"
    ENV: str = Field(default="production", description="Environment name")
    DEBUG: bool = Field(default=False, description="Debug mode")

    # Relay listener
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, ge=1, le=65535)

    # Channel code generation
    channel_code_alphabet: str = Field(
        default=string.ascii_uppercase,
        min_length=1,
        description="Characters channel codes are drawn from",
    )
    channel_code_length: int = Field(default=4, ge=1, le=32)
    channel_code_max_attempts: int = Field(
        default=20,
        ge=1,
        description="Collisions tolerated before a code request fails",
    )

    # Connections
    max_message_size: int = Field(
        default=65_536,
        ge=64,
        description="Maximum inbound message size in bytes",
    )
    max_pending_messages: int = Field(
        default=256,
        ge=1,
        description="Outbound messages buffered per connection",
    )
    close_flush_timeout: float = Field(
        default=1.0,
        ge=0,
        description="Seconds to flush pending messages before closing",
    )

    # Unclaimed channel sweep (0 disables)
    unclaimed_channel_ttl: int = Field(
        default=3600,
        ge=0,
        description="Seconds an empty, never-joined channel is kept",
    )
    cleanup_interval: int = Field(default=60, ge=1, le=3600)

    # Graceful Shutdown
    shutdown_timeout: int = Field(
        default=30,
        ge=1,
        description="Maximum seconds to wait for graceful shutdown",
    )

    # Metrics server (separate listener, off by default)
    METRICS_ENABLED: bool = Field(default=False)
    METRICS_HOST: str = Field(default="0.0.0.0")
    METRICS_PORT: int = Field(default=9090, ge=1, le=65535)

    # Logging
    log_level: str = Field(default="info")
    log_file: Optional[str] = Field(default=None)
    verbose: int = Field(default=1, ge=0, le=3)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = ["debug", "info", "warning", "error", "critical"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"Invalid log_level. Must be one of: {allowed}")
        return v_lower

    @field_validator("channel_code_alphabet")
    @classmethod
    def validate_alphabet(cls, v: str) -> str:
        """Reject alphabets with repeated characters."""
        if len(set(v)) != len(v):
            raise ValueError("channel_code_alphabet must not repeat characters")
        return v


def load_config(
    config_file: Optional[str] = None,
    env_file: Optional[str] = None,
    env: Optional[str] = None,
) -> Settings:
    """
    Load configuration from YAML files and environment variables.

    Priority: ENV vars > environment-specific YAML > default YAML > defaults

    Args:
        config_file: Optional YAML config filename override
        env_file: Optional .env filename (e.g., ".env.development")
        env: Optional environment name override

    Returns:
        Settings instance

    Raises:
        ValidationError: If a configured value is out of range
    """
    # Project root is 4 levels up (src/signaleur/config/settings.py)
    current_file = Path(__file__).resolve()
    project_root = current_file.parent.parent.parent.parent
    config_dir = project_root / "config"

    environment = env or os.getenv("ENV", "production")

    env_map = {
        "production": (".env.production", "production.yaml"),
        "development": (".env.development", "development.yaml"),
        "test": (".env.test", "test.yaml"),
    }

    default_env_file, default_config_file = env_map.get(
        environment, (".env.production", "production.yaml")
    )
    if env_file is None:
        env_file = default_env_file
    if config_file is None:
        config_file = default_config_file

    # Load .env file FIRST (before Settings initialization)
    env_file_path = project_root / env_file
    if env_file_path.exists():
        load_dotenv(env_file_path, override=True)

    merged_config = {}

    default_config_path = config_dir / "default.yaml"
    if default_config_path.exists():
        with open(default_config_path, "r") as f:
            loaded = yaml.safe_load(f)
            if loaded:
                merged_config = loaded

    env_config_path = config_dir / config_file
    if env_config_path.exists():
        with open(env_config_path, "r") as f:
            loaded = yaml.safe_load(f)
            if loaded:
                merged_config.update(loaded)

    # Environment variables win over YAML values
    for key in list(merged_config):
        if key in os.environ:
            del merged_config[key]

    return Settings(**merged_config)
