"""
Configuration Management for the Confidential Accumulator

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The protocol identifier and the service's own identity are deployment
constants. Settings.accumulator reads the environment again on every
access, so each ConfidentialAccumulator takes one snapshot at construction
and keeps it for its lifetime.
"""

import warnings
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SERVICE_ADDRESS = "0x00000000000000000000000000000000000ac0de"


class KeySettings(BaseSettings):
    """Paillier key material configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ACCUMULATOR_KEY_",
        extra="ignore"
    )

    file: Optional[str] = Field(
        default=None,
        description="Path to a JSON key file with n, p, q. Generated in-process when unset."
    )
    bits: int = Field(
        default=2048,
        ge=512,
        le=4096,
        description="Modulus size used when generating a fresh keypair"
    )

    @field_validator('file')
    @classmethod
    def validate_key_file(cls, v: Optional[str]) -> Optional[str]:
        """Warn if the key file doesn't exist (but don't fail - might be mounted later)."""
        if v and not Path(v).exists():
            warnings.warn(
                f"Key file not found at {v}. "
                "Make sure it exists before the service starts."
            )
        return v


class AccumulatorSettings(BaseSettings):
    """
    Main service settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="ACCUMULATOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    protocol_id: str = Field(
        default="paillier-uint32-v1",
        min_length=1,
        description="Identifier of the deployment/backend; stable per deployment"
    )
    service_address: str = Field(
        default=DEFAULT_SERVICE_ADDRESS,
        min_length=1,
        description="The accumulator's own identity (proof binding context, self grants)"
    )
    max_audit_events: int = Field(
        default=10000,
        ge=1,
        description="Retention limit for the in-memory audit storage"
    )

    @field_validator('service_address')
    @classmethod
    def validate_service_address(cls, v: str) -> str:
        """The service identity cannot be a null principal."""
        # Imported here to keep config free of model imports at module load
        from confidential_accumulator.models.ciphertext import is_null_principal

        if is_null_principal(v):
            raise ValueError("service_address cannot be the null identity")
        return v


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def accumulator(self) -> AccumulatorSettings:
        return AccumulatorSettings()

    @property
    def keys(self) -> KeySettings:
        return KeySettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.accumulator
        results["accumulator"] = True
    except Exception as e:
        results["accumulator"] = False
        results["accumulator_error"] = str(e)

    try:
        _ = settings.keys
        results["keys"] = True
    except Exception as e:
        results["keys"] = False
        results["keys_error"] = str(e)

    return results
