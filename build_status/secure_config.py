"""
Secure Configuration Management

Provides centralized, validated configuration for the build status client.
Replaces scattered os.getenv() calls with strict validation and fail-fast behavior.

Usage:
    from build_status.secure_config import get_config

    config = get_config().get_build_status_config()
    print(config.organization_url)
    print(config.release_url)

Security Features:
    - Strict validation of all configuration values
    - Fail-fast on missing/invalid configuration
    - Placeholder detection (e.g., "your_pat_here")
    - HTTPS enforcement for URLs
    - Length validation for credentials

Raises:
    ConfigurationError: If configuration is missing or invalid
"""

import os
import re
from dataclasses import dataclass

from dotenv import load_dotenv

from build_status.domain.builds import Project

DEFAULT_COLLECTION = "DefaultCollection"
DEFAULT_HTTP_TIMEOUT = 30.0


class ConfigurationError(Exception):
    """Raised when configuration is missing or invalid."""

    pass


def derive_release_url(organization_url: str) -> str:
    """
    Derive the release management host from the build host.

    Examples:
        https://devdiv.visualstudio.com -> https://devdiv.vsrm.visualstudio.com
        https://dev.azure.com/myorg    -> https://vsrm.dev.azure.com/myorg
    """
    url = organization_url.rstrip("/")
    if "://dev.azure.com" in url:
        return url.replace("://dev.azure.com", "://vsrm.dev.azure.com", 1)
    if ".visualstudio.com" in url and ".vsrm." not in url:
        return url.replace(".visualstudio.com", ".vsrm.visualstudio.com", 1)
    return url


@dataclass
class BuildStatusConfig:
    """
    Validated Azure DevOps build/release configuration.
    """

    organization_url: str
    pat: str
    release_url: str = ""
    collection: str = DEFAULT_COLLECTION
    project_id: str | None = None
    project_name: str = ""
    build_definition_id: int | None = None
    timeout: float = DEFAULT_HTTP_TIMEOUT

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate()
        self.organization_url = self.organization_url.rstrip("/")
        self.release_url = (self.release_url or derive_release_url(self.organization_url)).rstrip("/")

    def _validate(self):
        """
        Validate build status configuration.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if not self.organization_url:
            raise ConfigurationError("ADO_ORGANIZATION_URL is required")

        if not self.organization_url.startswith("https://"):
            raise ConfigurationError(f"ADO_ORGANIZATION_URL must use HTTPS: {self.organization_url}")

        if not ("dev.azure.com" in self.organization_url or "visualstudio.com" in self.organization_url):
            raise ConfigurationError(
                f"ADO_ORGANIZATION_URL must be a valid Azure DevOps URL: {self.organization_url}"
            )

        if self.release_url and not self.release_url.startswith("https://"):
            raise ConfigurationError(f"ADO_RELEASE_URL must use HTTPS: {self.release_url}")

        if not self.pat:
            raise ConfigurationError("ADO_PAT is required")

        if len(self.pat) < 20:
            raise ConfigurationError(f"ADO_PAT appears invalid (too short: {len(self.pat)} chars, expected >=20)")

        placeholders = ["your_pat", "your_token", "example", "placeholder", "xxx", "replace_me"]
        if any(placeholder in self.pat.lower() for placeholder in placeholders):
            raise ConfigurationError("ADO_PAT contains a placeholder value - please set a real Personal Access Token")

        if self.collection and not re.match(r"^[a-zA-Z0-9_\-\.]+$", self.collection):
            raise ConfigurationError(f"ADO_COLLECTION contains invalid characters: {self.collection}")

        if self.project_id and not re.match(r"^[a-zA-Z0-9 _\-\.]+$", self.project_id):
            raise ConfigurationError(f"ADO_PROJECT_ID contains invalid characters: {self.project_id}")

        if self.timeout <= 0:
            raise ConfigurationError(f"ADO_HTTP_TIMEOUT must be positive: {self.timeout}")


class SecureConfig:
    """
    Centralized secure configuration manager.

    Loads and validates configuration from environment variables (and .env).
    """

    def __init__(self):
        """Initialize configuration (loads .env file)."""
        load_dotenv()

    def get_build_status_config(self) -> BuildStatusConfig:
        """
        Get validated build status configuration.

        Returns:
            BuildStatusConfig: Validated configuration

        Raises:
            ConfigurationError: If configuration is missing or invalid
        """
        definition_id = _parse_optional_int("ADO_BUILD_DEFINITION_ID", os.getenv("ADO_BUILD_DEFINITION_ID"))
        timeout = _parse_float("ADO_HTTP_TIMEOUT", os.getenv("ADO_HTTP_TIMEOUT"), DEFAULT_HTTP_TIMEOUT)

        return BuildStatusConfig(
            organization_url=os.getenv("ADO_ORGANIZATION_URL") or "",
            pat=os.getenv("ADO_PAT") or "",
            release_url=os.getenv("ADO_RELEASE_URL") or "",
            collection=os.getenv("ADO_COLLECTION", DEFAULT_COLLECTION).strip(),
            project_id=os.getenv("ADO_PROJECT_ID") or None,
            project_name=os.getenv("ADO_PROJECT_NAME") or "",
            build_definition_id=definition_id,
            timeout=timeout,
        )


def _parse_optional_int(name: str, raw: str | None) -> int | None:
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer: {raw}") from e


def _parse_float(name: str, raw: str | None, default: float) -> float:
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number: {raw}") from e


def project_from_config(config: BuildStatusConfig) -> Project:
    """
    Build the Project every resolution starts from.

    Raises:
        ConfigurationError: If ADO_PROJECT_ID is not set
    """
    if not config.project_id:
        raise ConfigurationError("ADO_PROJECT_ID is required")
    return Project(id=config.project_id, name=config.project_name)


# Convenience function for getting configuration
_config_instance = None


def get_config() -> SecureConfig:
    """
    Get the global configuration instance (singleton pattern).

    Returns:
        SecureConfig: The configuration manager
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = SecureConfig()
    return _config_instance


def validate_config_on_startup() -> BuildStatusConfig:
    """
    Validate required configuration at application startup.

    Call this in main() to fail fast if configuration is invalid.

    Returns:
        BuildStatusConfig: The validated configuration

    Raises:
        ConfigurationError: If configuration is missing or invalid
    """
    config = get_config().get_build_status_config()
    project_from_config(config)
    return config
