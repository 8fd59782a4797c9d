"""
Configuration Management for the Cosmos DB MongoDB Database Reconciler

Settings are read from environment variables (optionally from a ``.env``
file) into dataclasses validated on construction.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from .exceptions import InvalidConfigurationError, MissingConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class AzureConfig:
    """Subscription and credentials used to reach the Cosmos DB control plane."""

    subscription_id: str = field(
        default_factory=lambda: os.getenv("AZURE_SUBSCRIPTION_ID", "")
    )
    tenant_id: Optional[str] = field(
        default_factory=lambda: os.getenv("AZURE_TENANT_ID")
    )
    client_id: Optional[str] = field(
        default_factory=lambda: os.getenv("AZURE_CLIENT_ID")
    )
    client_secret: Optional[str] = field(
        default_factory=lambda: os.getenv("AZURE_CLIENT_SECRET")
    )

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.subscription_id:
            raise MissingConfigurationError(
                "Azure subscription ID is required",
                missing_keys=["AZURE_SUBSCRIPTION_ID"],
            )
        secrets = {
            "AZURE_TENANT_ID": self.tenant_id,
            "AZURE_CLIENT_ID": self.client_id,
            "AZURE_CLIENT_SECRET": self.client_secret,
        }
        provided = [key for key, value in secrets.items() if value]
        if provided and len(provided) != len(secrets):
            missing = [key for key, value in secrets.items() if not value]
            raise MissingConfigurationError(
                "Service principal credentials are incomplete",
                missing_keys=missing,
            )

    @property
    def uses_service_principal(self) -> bool:
        """True when explicit client-secret credentials are configured."""
        return bool(self.tenant_id and self.client_id and self.client_secret)

    def get_safe_summary(self) -> str:
        """Describe the configuration for logging without secrets."""
        mode = "service principal" if self.uses_service_principal else "default"
        return f"subscription {self.subscription_id} ({mode} credential)"


@dataclass
class LoggingConfig:
    """Configuration for logging behavior."""

    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    def __post_init__(self) -> None:
        """Validate logging configuration."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.level.upper() not in valid_levels:
            raise InvalidConfigurationError(
                f"Log level must be one of: {valid_levels}",
                config_section="logging",
            )
        self.level = self.level.upper()

    def get_log_level(self) -> int:
        """Convert string log level to logging constant."""
        return int(getattr(logging, self.level))


@dataclass
class ReconcilerConfig:
    """Top-level configuration of the reconciler."""

    azure: AzureConfig = field(default_factory=AzureConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "ReconcilerConfig":
        """Load configuration from the environment, reading ``.env`` first if present."""
        load_dotenv(dotenv_path=dotenv_path)
        config = cls()
        logger.debug(f"Loaded configuration for {config.azure.get_safe_summary()}")
        return config
