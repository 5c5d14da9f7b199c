"""Pre-flight validation framework for landing zone requests.

This module checks a provisioning request before it is assembled and
reports every problem at once, with remediation steps, instead of stopping
at the first error the assembly would raise.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from ..prerequisites.accounts import AccountRole, validate_account_identifiers
from .exceptions import ValidationError
from .request import ProvisioningRequest

REGION_PATTERN = re.compile(r"[a-z]{2}(-gov|-iso[a-z]?)?-[a-z]+-[0-9]+")
EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
KMS_KEY_ARN_PATTERN = re.compile(r"arn:aws[a-z-]*:kms:[a-z0-9-]+:[0-9]{12}:key/[a-zA-Z0-9-]+")


class ValidationStatus(Enum):
    """Validation result status."""

    PASSED = "PASSED"
    FAILED = "FAILED"
    WARNING = "WARNING"
    SKIPPED = "SKIPPED"


@dataclass
class ValidationResult:
    """Result of a validation check."""

    validator_name: str
    status: ValidationStatus
    message: str
    remediation_steps: Optional[List[str]] = None
    details: Optional[Dict[str, Any]] = None


class BaseValidator(ABC):
    """Base class for all request validators."""

    def __init__(self, request: ProvisioningRequest) -> None:
        """Initialize validator with the request to check.

        Args:
            request: Provisioning request
        """
        self.request = request

    @abstractmethod
    def validate(self) -> ValidationResult:
        """Perform validation check.

        Returns:
            ValidationResult with status and details
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Get validator name."""
        pass

    def passed(self, message: str, **details: Any) -> ValidationResult:
        return ValidationResult(
            validator_name=self.name,
            status=ValidationStatus.PASSED,
            message=message,
            details=details or None,
        )


class AccountIdentifiersValidator(BaseValidator):
    """Validates each shared account has a usable identifier."""

    @property
    def name(self) -> str:
        """Get validator name."""
        return "Account Identifiers"

    def validate(self) -> ValidationResult:
        request = self.request
        problems = []
        for role, email, account_id in (
            (AccountRole.LOGGING, request.logging_account_email, request.logging_account_id),
            (AccountRole.SECURITY, request.security_account_email, request.security_account_id),
        ):
            try:
                validate_account_identifiers(role, email, account_id)
            except ValidationError as e:
                problems.append({"field": e.field, "rule": e.rule, "message": str(e)})

        if problems:
            return ValidationResult(
                validator_name=self.name,
                status=ValidationStatus.FAILED,
                message=f"{len(problems)} account identifier problem(s) found",
                details={"problems": problems},
                remediation_steps=[p["message"] for p in problems],
            )
        return self.passed("Account identifiers are valid")


class AccountSeparationValidator(BaseValidator):
    """Validates logging and security roles use different accounts."""

    @property
    def name(self) -> str:
        """Get validator name."""
        return "Account Separation"

    def validate(self) -> ValidationResult:
        request = self.request
        same_id = bool(request.logging_account_id) and (
            request.logging_account_id == request.security_account_id
        )
        same_email = (
            not request.logging_account_id
            and not request.security_account_id
            and bool(request.logging_account_email)
            and (request.logging_account_email or "").lower()
            == (request.security_account_email or "").lower()
        )

        if same_id or same_email:
            return ValidationResult(
                validator_name=self.name,
                status=ValidationStatus.FAILED,
                message="Logging and security accounts must be different accounts",
                remediation_steps=[
                    "Use a distinct account ID or email for the Log Archive account",
                    "Use a distinct account ID or email for the Audit account",
                ],
            )
        return self.passed("Logging and security accounts are distinct")


class EmailFormatValidator(BaseValidator):
    """Checks the format of emails used to create new accounts."""

    @property
    def name(self) -> str:
        """Get validator name."""
        return "Account Emails"

    def validate(self) -> ValidationResult:
        request = self.request
        emails = {}
        if not request.logging_account_id and request.logging_account_email:
            emails["logging_account_email"] = request.logging_account_email
        if not request.security_account_id and request.security_account_email:
            emails["security_account_email"] = request.security_account_email

        if not emails:
            return ValidationResult(
                validator_name=self.name,
                status=ValidationStatus.SKIPPED,
                message="No new accounts are created",
            )

        invalid = [field for field, email in emails.items() if not EMAIL_PATTERN.fullmatch(email)]
        if invalid:
            return ValidationResult(
                validator_name=self.name,
                status=ValidationStatus.WARNING,
                message=f"Email address format looks invalid: {', '.join(invalid)}",
                details={"fields": invalid},
                remediation_steps=["Account creation fails for malformed email addresses"],
            )
        return self.passed("Account emails are well formed")


class GovernedRegionsValidator(BaseValidator):
    """Validates governed region names."""

    @property
    def name(self) -> str:
        """Get validator name."""
        return "Governed Regions"

    def validate(self) -> ValidationResult:
        regions = self.request.governed_regions
        invalid = [region for region in regions if not REGION_PATTERN.fullmatch(region)]
        duplicates = sorted({region for region in regions if regions.count(region) > 1})

        if invalid:
            return ValidationResult(
                validator_name=self.name,
                status=ValidationStatus.FAILED,
                message=f"Invalid region format: {', '.join(invalid)}",
                details={"invalid_regions": invalid},
                remediation_steps=["Use region codes such as 'us-east-1' or 'eu-west-2'"],
            )
        if duplicates:
            return ValidationResult(
                validator_name=self.name,
                status=ValidationStatus.WARNING,
                message=f"Duplicate governed regions: {', '.join(duplicates)}",
                details={"duplicate_regions": duplicates},
            )
        return self.passed(f"{len(regions)} governed region(s)", regions=list(regions))


class RetentionPeriodValidator(BaseValidator):
    """Validates log retention overrides are positive day counts."""

    @property
    def name(self) -> str:
        """Get validator name."""
        return "Log Retention"

    def validate(self) -> ValidationResult:
        invalid = []
        for field in ("logging_bucket_retention_period", "access_logging_bucket_retention_period"):
            value = getattr(self.request, field)
            if value is None or value == '':
                continue
            if isinstance(value, bool) or not str(value).isdigit() or int(value) < 1:
                invalid.append(field)

        if invalid:
            return ValidationResult(
                validator_name=self.name,
                status=ValidationStatus.FAILED,
                message=f"Retention periods must be positive whole days: {', '.join(invalid)}",
                details={"fields": invalid},
            )
        return self.passed("Retention periods are valid")


class EncryptionValidator(BaseValidator):
    """Checks the KMS key settings."""

    @property
    def name(self) -> str:
        """Get validator name."""
        return "KMS Encryption"

    def validate(self) -> ValidationResult:
        request = self.request
        if not request.encryption:
            message = "Encryption disabled"
            if request.kms_key_arn:
                return ValidationResult(
                    validator_name=self.name,
                    status=ValidationStatus.WARNING,
                    message=f"{message}, supplied KMS key ARN is ignored",
                )
            return ValidationResult(
                validator_name=self.name,
                status=ValidationStatus.WARNING,
                message=f"{message}, Control Tower data is encrypted with S3 managed keys only",
            )

        if request.kms_key_arn and not KMS_KEY_ARN_PATTERN.fullmatch(request.kms_key_arn):
            return ValidationResult(
                validator_name=self.name,
                status=ValidationStatus.WARNING,
                message=f"KMS key ARN does not look like a key ARN: {request.kms_key_arn}",
                remediation_steps=[
                    "Supply the ARN of a customer managed key, not an alias",
                    "The key policy must allow CloudTrail and AWS Config to use the key",
                ],
            )
        if request.kms_key_arn:
            return self.passed("Using supplied KMS key", kms_key_arn=request.kms_key_arn)
        return self.passed("A new KMS key will be created")


class RequestValidator:
    """Runs every request validator."""

    def __init__(self, request: ProvisioningRequest) -> None:
        """Initialize request validator.

        Args:
            request: Provisioning request
        """
        self.request = request
        self.validators: List[BaseValidator] = [
            AccountIdentifiersValidator(request),
            AccountSeparationValidator(request),
            EmailFormatValidator(request),
            GovernedRegionsValidator(request),
            RetentionPeriodValidator(request),
            EncryptionValidator(request),
        ]

    def validate_all(self) -> List[ValidationResult]:
        """Run all validation checks.

        Returns:
            List of ValidationResult objects
        """
        return [validator.validate() for validator in self.validators]

    def is_ready_for_synthesis(self, results: List[ValidationResult]) -> bool:
        """Check no validation result failed.

        Args:
            results: List of validation results

        Returns:
            True if the request can be assembled
        """
        for result in results:
            if result.status == ValidationStatus.FAILED:
                return False
        return True
