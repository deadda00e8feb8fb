"""Configuration management for hosted-cluster platform adapters."""

import logging
import os
import sys
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthMode(str, Enum):
    """Authentication mode for Kubernetes API."""

    AUTO = "auto"
    KUBECONFIG = "kubeconfig"
    TOKEN = "token"


class LogLevel(str, Enum):
    """Logging level."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class CredentialNaming(str, Enum):
    """How the credential copy in the control plane namespace is named."""

    # Same name as the user's credential secret
    IDENTITY = "identity"
    # <cluster>-<platform>-credentials
    DERIVED = "derived"


class HCPPlatformConfig(BaseSettings):
    """Configuration for platform adapters.

    Configuration is loaded from environment variables with HCP_PLATFORM_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="HCP_PLATFORM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Authentication settings
    auth_mode: AuthMode = Field(
        default=AuthMode.AUTO,
        description="Authentication mode: auto, kubeconfig, or token",
    )
    kubeconfig_path: Path | None = Field(
        default=None,
        description="Path to kubeconfig file (defaults to ~/.kube/config)",
    )
    kubeconfig_context: str | None = Field(
        default=None,
        description="Kubeconfig context to use",
    )
    api_server: str | None = Field(
        default=None,
        description="Kubernetes API server URL (for token auth)",
    )
    api_token: str | None = Field(
        default=None,
        description="Kubernetes API token (for token auth)",
    )

    # Provider controller
    capi_provider_image: str = Field(
        default="ghcr.io/spectrocloud/cluster-api-provider-maas:v0.6.1",
        description="Default image for the MAAS CAPI provider controller",
    )

    # Defaults applied when specs leave fields unset
    default_dns_domain: str = Field(
        default="maas.local",
        min_length=1,
        description="DNS domain used when the cluster spec does not set one",
    )
    default_machine_image: str = Field(
        default="ubuntu/focal",
        min_length=1,
        description="MAAS image used when the node pool does not set one",
    )

    # Credential propagation
    credential_naming: CredentialNaming = Field(
        default=CredentialNaming.IDENTITY,
        description="Naming mode for the control plane credential copy: identity or derived",
    )

    # Write behaviour
    conflict_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for a create-or-update that hits write conflicts",
    )

    # Logging
    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level",
    )

    @field_validator("kubeconfig_path", mode="before")
    @classmethod
    def resolve_kubeconfig_path(cls, v: str | Path | None) -> Path | None:
        """Resolve kubeconfig path, defaulting to standard location."""
        if v is None:
            return None
        path = Path(v).expanduser().resolve()
        return path

    @property
    def effective_kubeconfig_path(self) -> Path:
        """Get the effective kubeconfig path, with default."""
        if self.kubeconfig_path:
            return self.kubeconfig_path
        # Check KUBECONFIG env var
        env_path = os.environ.get("KUBECONFIG")
        if env_path:
            return Path(env_path).expanduser().resolve()
        # Default to ~/.kube/config
        return Path.home() / ".kube" / "config"

    def validate_auth_config(self) -> list[str]:
        """Validate authentication configuration and return any warnings."""
        warnings = []

        if self.auth_mode == AuthMode.TOKEN:
            if not self.api_server:
                raise ValueError("api_server is required when auth_mode is 'token'")
            if not self.api_token:
                raise ValueError("api_token is required when auth_mode is 'token'")

        if self.auth_mode == AuthMode.KUBECONFIG and not self.effective_kubeconfig_path.exists():
            raise ValueError(f"Kubeconfig file not found: {self.effective_kubeconfig_path}")

        if self.auth_mode == AuthMode.AUTO:
            if Path("/var/run/secrets/kubernetes.io/serviceaccount/token").exists():
                warnings.append("Running in-cluster, will use service account")
            elif not self.effective_kubeconfig_path.exists():
                warnings.append(
                    f"No kubeconfig found at {self.effective_kubeconfig_path}, "
                    "will attempt in-cluster auth"
                )

        return warnings


def setup_logging(level: LogLevel) -> None:
    """Configure logging for the embedding process."""
    logging.basicConfig(
        level=level.value,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


# Global configuration instance
_config: HCPPlatformConfig | None = None


def get_config() -> HCPPlatformConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = HCPPlatformConfig()
    return _config


def configure(**kwargs: Any) -> HCPPlatformConfig:
    """Configure the global settings.

    This should be called before get_config() if you want to override defaults.
    """
    global _config
    _config = HCPPlatformConfig(**kwargs)
    return _config
