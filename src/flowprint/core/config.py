"""
Configuration management for flowprint.

Uses Pydantic Settings for validation and environment variable support.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SALT = "flowprint-static-salt"


class MaskingSettings(BaseSettings):
    """Key derivation and sensitive value masking configuration."""

    passphrase: SecretStr = Field(default=SecretStr(""), description="Passphrase the masking key is derived from")
    salt: str = Field(default=DEFAULT_SALT, description="Salt for key derivation (at least 8 bytes)")

    # Argon2id parameters, defaults take roughly one second on current hardware
    time_cost: int = Field(default=5, ge=1, le=100, description="Argon2 iterations")
    memory_cost_kib: int = Field(default=65536, ge=8, description="Argon2 memory in KiB")
    parallelism: int = Field(default=8, ge=1, le=64, description="Argon2 lanes")
    key_length: int = Field(default=32, ge=16, le=64, description="Derived key length in bytes")


class CanonicalSettings(BaseSettings):
    """Canonicalization configuration."""

    mask_decrypted_values: bool = Field(
        default=False,
        description="Mask every decrypted value, even when it is not tagged sensitive",
    )
    allow_non_finite_floats: bool = Field(default=False, description="Accept NaN and infinity values")
    defaults: dict[str, dict[str, Any]] = Field(
        default_factory=dict,
        description="Default attribute values per node name, filled in when an attribute is absent",
    )


class ParserSettings(BaseSettings):
    """Flow document parser configuration."""

    sensitive_attributes: list[str] = Field(
        default=[
            "password",
            "passphrase",
            "secret",
            "token",
            "api_key",
            "private_key",
            "client_secret",
        ],
        description="Attribute names always treated as sensitive (case-insensitive)",
    )


class OutputSettings(BaseSettings):
    """Fingerprint output configuration."""

    mode: str = Field(default="canonical", description="Output mode: canonical or digest")
    digest_algorithm: str = Field(default="sha256", description="Digest algorithm for digest mode")
    max_workers: int = Field(default=4, ge=1, le=64, description="Workers for batch fingerprinting")

    @field_validator("mode")
    @classmethod
    def validate_mode(cls, v: str) -> str:
        """Validate output mode."""
        valid = ["canonical", "digest"]
        if v not in valid:
            raise ValueError(f"mode must be one of {valid}")
        return v

    @field_validator("digest_algorithm")
    @classmethod
    def validate_digest_algorithm(cls, v: str) -> str:
        """Validate digest algorithm."""
        valid = ["sha256", "sha512"]
        if v not in valid:
            raise ValueError(f"digest_algorithm must be one of {valid}")
        return v


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    file: Optional[str] = Field(default=None, description="Log file path")


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration.

    Settings are loaded from:
    1. YAML config file or keyword arguments (highest priority)
    2. Environment variables, e.g. FLOWPRINT_MASKING__PASSPHRASE
    3. .env file
    4. Default values (lowest priority)

    Nested groups are merged, so environment variables still fill the
    fields a YAML file leaves out.
    """

    model_config = SettingsConfigDict(
        env_prefix="FLOWPRINT_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    masking: MaskingSettings = Field(default_factory=MaskingSettings)
    canonical: CanonicalSettings = Field(default_factory=CanonicalSettings)
    parser: ParserSettings = Field(default_factory=ParserSettings)
    output: OutputSettings = Field(default_factory=OutputSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        # Process environment variable references in the YAML
        data = cls._process_env_vars(data)

        return cls(**data)

    @classmethod
    def _process_env_vars(cls, data: Any) -> Any:
        """Recursively process environment variable references in config."""
        if isinstance(data, dict):
            return {k: cls._process_env_vars(v) for k, v in data.items()}
        elif isinstance(data, list):
            return [cls._process_env_vars(item) for item in data]
        elif isinstance(data, str):
            # Handle ${ENV_VAR} syntax
            if data.startswith("${") and data.endswith("}"):
                env_var = data[2:-1]
                return os.environ.get(env_var, "")
            return data
        return data


@lru_cache
def get_settings(config_path: Optional[str] = None) -> Settings:
    """
    Get cached settings instance.

    Args:
        config_path: Optional path to a YAML config file

    Returns:
        Settings instance
    """
    if config_path:
        return Settings.from_yaml(config_path)

    possible_configs = [
        Path.cwd() / "flowprint.yaml",
        Path.home() / ".config" / "flowprint" / "config.yaml",
    ]

    for config in possible_configs:
        if config.exists():
            return Settings.from_yaml(config)

    return Settings()
