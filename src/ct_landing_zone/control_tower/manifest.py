"""AWS Control Tower manifest generation and validation.

This module provides the ManifestGenerator class for building the landing
zone manifest from a provisioning request and the resolved account and key
references, and for validating the manifest structure before it is attached
to the landing zone resource.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from ..core.exceptions import LandingZoneError
from ..core.request import ProvisioningRequest, RetentionPeriod
from ..prerequisites.accounts import AccountRef, OrganizationAccounts, is_valid_account_id
from ..prerequisites.kms_key import KeyRef

DEFAULT_SECURITY_OU_NAME = "Security"
DEFAULT_SANDBOX_OU_NAME = "Sandbox"
DEFAULT_LOGGING_BUCKET_RETENTION_DAYS = 365
DEFAULT_ACCESS_LOGGING_BUCKET_RETENTION_DAYS = 3600


class ManifestValidationError(LandingZoneError):
    """Raised when manifest validation fails."""
    pass


@dataclass(frozen=True)
class Manifest:
    """Landing zone manifest consumed by the Control Tower resource."""

    governed_regions: Tuple[str, ...]
    security_ou_name: str
    sandbox_ou_name: str
    logging_account: AccountRef
    security_account: AccountRef
    logging_bucket_retention_days: RetentionPeriod
    access_logging_bucket_retention_days: RetentionPeriod
    kms_key_arn: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        """Build the manifest document.

        kmsKeyArn is left out entirely when no key is in use.
        """
        configurations: Dict[str, Any] = {
            'loggingBucket': {
                'retentionDays': self.logging_bucket_retention_days
            },
            'accessLoggingBucket': {
                'retentionDays': self.access_logging_bucket_retention_days
            },
        }
        if self.kms_key_arn is not None:
            configurations['kmsKeyArn'] = self.kms_key_arn

        return {
            'governedRegions': list(self.governed_regions),
            'organizationStructure': {
                'security': {'name': self.security_ou_name},
                'sandbox': {'name': self.sandbox_ou_name},
            },
            'centralizedLogging': {
                'accountId': self.logging_account.account_id,
                'configurations': configurations,
                'enabled': True,
            },
            'securityRoles': {
                'accountId': self.security_account.account_id
            },
            'accessManagement': {
                'enabled': True
            },
        }


class ManifestGenerator:
    """Generates and validates Control Tower landing zone manifests."""

    def __init__(self, request: ProvisioningRequest) -> None:
        """Initialize the manifest generator.

        Args:
            request: Provisioning request
        """
        self.request = request

    def generate_manifest(self, accounts: OrganizationAccounts, key: KeyRef) -> Manifest:
        """Generate the manifest from the resolved references.

        Args:
            accounts: Resolved organization and shared accounts
            key: Resolved KMS key reference

        Returns:
            Validated Manifest

        Raises:
            ManifestValidationError: When the manifest is invalid
        """
        request = self.request
        manifest = Manifest(
            governed_regions=request.governed_regions,
            security_ou_name=request.core_ou or DEFAULT_SECURITY_OU_NAME,
            sandbox_ou_name=request.custom_ou or DEFAULT_SANDBOX_OU_NAME,
            logging_account=accounts.logging,
            security_account=accounts.security,
            logging_bucket_retention_days=self._retention(
                request.logging_bucket_retention_period, DEFAULT_LOGGING_BUCKET_RETENTION_DAYS
            ),
            access_logging_bucket_retention_days=self._retention(
                request.access_logging_bucket_retention_period,
                DEFAULT_ACCESS_LOGGING_BUCKET_RETENTION_DAYS,
            ),
            kms_key_arn=key.arn if key.present else None,
        )
        self.validate_manifest(manifest.to_dict())
        return manifest

    @staticmethod
    def _retention(value: Optional[RetentionPeriod], default: int) -> RetentionPeriod:
        if value is None or value == '':
            return default
        return value

    def validate_manifest(self, manifest: Dict[str, Any]) -> bool:
        """Validate manifest against Control Tower schema requirements.

        Account IDs that are still references to accounts being created are
        only checked for presence.

        Args:
            manifest: Landing zone manifest dictionary

        Returns:
            True if manifest is valid

        Raises:
            ManifestValidationError: When manifest validation fails
        """
        required_fields = ['governedRegions', 'organizationStructure', 'centralizedLogging', 'securityRoles']

        for field in required_fields:
            if field not in manifest:
                raise ManifestValidationError(f"Missing required field: {field}")

        self._validate_governed_regions(manifest['governedRegions'])
        self._validate_organization_structure(manifest['organizationStructure'])
        self._validate_account_id('centralizedLogging', manifest['centralizedLogging'])
        self._validate_account_id('securityRoles', manifest['securityRoles'])

        return True

    def _validate_governed_regions(self, governed_regions: Any) -> None:
        if not isinstance(governed_regions, list):
            raise ManifestValidationError("governedRegions must be a list")

        if not governed_regions:
            raise ManifestValidationError("governedRegions cannot be empty")

    def _validate_organization_structure(self, org_structure: Dict[str, Any]) -> None:
        for ou_key in ('security', 'sandbox'):
            ou = org_structure.get(ou_key)
            if not isinstance(ou, dict) or not ou.get('name'):
                raise ManifestValidationError(f"Organization structure '{ou_key}' OU must have a name")

    def _validate_account_id(self, section: str, block: Dict[str, Any]) -> None:
        account_id = block.get('accountId')
        if account_id is None:
            raise ManifestValidationError(f"{section} must contain 'accountId'")

        if isinstance(account_id, str) and not is_valid_account_id(account_id):
            raise ManifestValidationError(f"Invalid account ID format in {section}: {account_id}")
