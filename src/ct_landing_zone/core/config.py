"""Configuration management for Control Tower landing zone assembly.

This module handles YAML configuration loading, validation, and
environment variable override support, and converts the configuration
into a ProvisioningRequest.
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional
import yaml

from .exceptions import ConfigurationError, ValidationError
from .graph import Environment
from .request import ProvisioningRequest

__all__ = ["Configuration", "ConfigurationError"]


class Configuration:
    """Configuration management with YAML loading and validation.

    This class handles loading configuration from YAML files,
    validating the structure, and supporting environment variable
    overrides.
    """

    def __init__(self, config_path: Optional[str] = None) -> None:
        """Initialize configuration manager.

        Args:
            config_path: Optional path to configuration file.
                        If None, auto-detects config.yaml in current directory.

        Raises:
            ConfigurationError: When configuration file is invalid
        """
        self._config: Dict[str, Any] = {}
        self._config_path = self._resolve_config_path(config_path)
        self._load_configuration()
        self._apply_environment_overrides()
        self._validate_configuration()

    @property
    def path(self) -> Path:
        return self._config_path

    def _resolve_config_path(self, config_path: Optional[str]) -> Path:
        """Resolve configuration file path.

        Args:
            config_path: Optional path to configuration file

        Returns:
            Resolved Path object to configuration file

        Raises:
            ConfigurationError: When configuration file not found
        """
        if config_path:
            path = Path(config_path)
        else:
            # Auto-detect config.yaml in current directory
            path = Path("config.yaml")
            if not path.exists():
                path = Path("config/settings.yaml")

        if not path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {path}. "
                "Please create a configuration file or specify a valid path."
            )

        return path

    def _load_configuration(self) -> None:
        """Load configuration from YAML file.

        Raises:
            ConfigurationError: When YAML file is invalid
        """
        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                self._config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in configuration file {self._config_path}: {e}"
            )
        except IOError as e:
            raise ConfigurationError(
                f"Unable to read configuration file {self._config_path}: {e}"
            )

        if not isinstance(self._config, dict):
            raise ConfigurationError(
                f"Configuration file {self._config_path} must contain a mapping"
            )

    def _validate_configuration(self) -> None:
        """Validate configuration has required fields.

        Raises:
            ConfigurationError: When required fields are missing
        """
        if 'aws' not in self._config:
            raise ConfigurationError("Required configuration section 'aws' is missing")

        aws_config = self._config['aws']
        if not isinstance(aws_config, dict):
            raise ConfigurationError("Configuration section 'aws' must be a mapping")

        if 'home_region' not in aws_config:
            raise ConfigurationError("Required field 'aws.home_region' is missing")

        home_region = aws_config["home_region"]
        if not isinstance(home_region, str) or not home_region:
            raise ConfigurationError("Field 'aws.home_region' must be a non-empty string")

        if 'governed_regions' in aws_config:
            governed_regions = aws_config["governed_regions"]
            if not isinstance(governed_regions, list):
                raise ConfigurationError("Field 'aws.governed_regions' must be a list")

            # The home region is always governed
            if home_region not in governed_regions:
                governed_regions.insert(0, home_region)
                self._config["aws"]["governed_regions"] = governed_regions

        for section in ("organization", "accounts", "logging", "encryption", "landing_zone"):
            value = self._config.get(section)
            if value is not None and not isinstance(value, dict):
                raise ConfigurationError(f"Configuration section '{section}' must be a mapping")

    def _apply_environment_overrides(self) -> None:
        """Apply environment variable overrides to configuration."""
        # AWS region override
        if "AWS_REGION" in os.environ:
            self._set_nested_value("aws.home_region", os.environ["AWS_REGION"])

        # AWS profile override
        if "AWS_PROFILE" in os.environ:
            self._set_nested_value(
                "aws.profile_name", os.environ["AWS_PROFILE"]
            )

        if "CT_LANDING_ZONE_VERSION" in os.environ:
            self._set_nested_value(
                "landing_zone.version", os.environ["CT_LANDING_ZONE_VERSION"]
            )

    def _set_nested_value(self, key_path: str, value: Any) -> None:
        """Set nested configuration value using dot notation.

        Args:
            key_path: Dot-separated key path (e.g., 'aws.home_region')
            value: Value to set
        """
        keys = key_path.split(".")
        current = self._config

        for key in keys[:-1]:
            if key not in current or current[key] is None:
                current[key] = {}
            current = current[key]

        current[keys[-1]] = value

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation.

        Args:
            key_path: Dot-separated key path (e.g., 'aws.home_region')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split(".")
        current = self._config

        try:
            for key in keys:
                current = current[key]
        except (KeyError, TypeError):
            return default
        return default if current is None else current

    def set_home_region(self, region: str) -> None:
        """Override the home region and re-validate.

        Args:
            region: AWS region name
        """
        self._set_nested_value("aws.home_region", region)
        self._validate_configuration()

    def get_home_region(self) -> str:
        """Get AWS home region."""
        return self.get("aws.home_region")

    def get_governed_regions(self) -> List[str]:
        """Get list of governed regions.

        Returns:
            List of AWS region strings
        """
        regions = self.get("aws.governed_regions", [])
        if not regions:
            regions = [self.get_home_region()]
        return regions

    def get_profile_name(self) -> Optional[str]:
        return self.get("aws.profile_name")

    def get_environment(self) -> Environment:
        """Get the deployment environment pinned in the configuration.

        Returns:
            Environment with the configured account and partition, and the
            home region
        """
        return Environment(
            account=self._account_id("aws.account_id"),
            region=self.get_home_region(),
            partition=self.get("aws.partition"),
        )

    def to_provisioning_request(self) -> ProvisioningRequest:
        """Convert the configuration into a provisioning request.

        Returns:
            ProvisioningRequest

        Raises:
            ConfigurationError: When the request cannot be built
        """
        try:
            return ProvisioningRequest(
                governed_regions=tuple(self.get_governed_regions()),
                encryption=self._flag("encryption.enabled", True),
                kms_key_arn=self.get("encryption.kms_key_arn"),
                create_organization=self._flag("organization.create", False),
                core_ou=self.get("organization.security_ou_name"),
                custom_ou=self.get("organization.sandbox_ou_name"),
                logging_account_email=self.get("accounts.log_archive.email"),
                logging_account_name=self.get("accounts.log_archive.name"),
                logging_account_id=self._account_id("accounts.log_archive.account_id"),
                security_account_email=self.get("accounts.audit.email"),
                security_account_name=self.get("accounts.audit.name"),
                security_account_id=self._account_id("accounts.audit.account_id"),
                landing_zone_version=self._optional_str("landing_zone.version"),
                logging_bucket_retention_period=self.get("logging.bucket_retention_days"),
                access_logging_bucket_retention_period=self.get(
                    "logging.access_logging_bucket_retention_days"
                ),
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}")

    def _account_id(self, key_path: str) -> Optional[str]:
        """Read an account ID, accepting unquoted 12-digit numbers.

        Raises:
            ConfigurationError: When YAML has read the ID as an octal number
        """
        value = self.get(key_path)
        if isinstance(value, int) and not isinstance(value, bool):
            # Unquoted IDs with a leading zero and only digits 0-7 are octal
            if len(str(value)) <= 10:
                raise ConfigurationError(
                    f"Field '{key_path}' was read as the number {value}. "
                    "Quote the account ID, e.g. account_id: \"012345678901\""
                )
            return str(value)
        return value

    def _flag(self, key_path: str, default: bool) -> bool:
        """Read a boolean field without coercing strings such as "false".

        Raises:
            ConfigurationError: When the value is not true or false
        """
        value = self.get(key_path, default)
        if not isinstance(value, bool):
            raise ConfigurationError(
                f"Field '{key_path}' must be true or false, got {value!r}"
            )
        return value

    def _optional_str(self, key_path: str) -> Optional[str]:
        value = self.get(key_path)
        return None if value is None else str(value)

    def to_dict(self) -> Dict[str, Any]:
        """Get complete configuration as dictionary.

        Returns:
            Complete configuration dictionary
        """
        return self._config.copy()
