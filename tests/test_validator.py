"""Tests for request pre-flight validation."""

import pytest

from ct_landing_zone.core.request import ProvisioningRequest
from ct_landing_zone.core.validator import (
    AccountIdentifiersValidator,
    AccountSeparationValidator,
    EmailFormatValidator,
    EncryptionValidator,
    GovernedRegionsValidator,
    RequestValidator,
    RetentionPeriodValidator,
    ValidationResult,
    ValidationStatus,
)


def make_request(**overrides):
    options = {
        "governed_regions": ["us-east-1"],
        "logging_account_email": "logs@example.com",
        "security_account_email": "audit@example.com",
    }
    options.update(overrides)
    return ProvisioningRequest(**options)


class TestAccountIdentifiersValidator:
    """Test AccountIdentifiersValidator."""

    def test_passed(self):
        result = AccountIdentifiersValidator(make_request()).validate()

        assert result.status == ValidationStatus.PASSED
        assert result.validator_name == "Account Identifiers"

    def test_reports_every_problem(self):
        """Test both roles are checked even when the first fails."""
        request = make_request(logging_account_email=None, security_account_id="123")

        result = AccountIdentifiersValidator(request).validate()

        assert result.status == ValidationStatus.FAILED
        fields = [p["field"] for p in result.details["problems"]]
        assert fields == ["logging_account_id", "security_account_id"]
        assert len(result.remediation_steps) == 2


class TestAccountSeparationValidator:
    """Test AccountSeparationValidator."""

    def test_same_account_id(self):
        request = make_request(logging_account_id="111111111111",
                               security_account_id="111111111111")

        assert AccountSeparationValidator(request).validate().status == ValidationStatus.FAILED

    def test_same_email(self):
        request = make_request(security_account_email="LOGS@example.com")

        assert AccountSeparationValidator(request).validate().status == ValidationStatus.FAILED

    def test_distinct(self):
        assert AccountSeparationValidator(make_request()).validate().status == ValidationStatus.PASSED


class TestEmailFormatValidator:
    """Test EmailFormatValidator."""

    def test_invalid_email_warns(self):
        result = EmailFormatValidator(make_request(security_account_email="not-an-email")).validate()

        assert result.status == ValidationStatus.WARNING
        assert result.details == {"fields": ["security_account_email"]}

    def test_skipped_when_reusing_accounts(self):
        request = make_request(logging_account_id="111111111111",
                               security_account_id="222222222222")

        assert EmailFormatValidator(request).validate().status == ValidationStatus.SKIPPED


class TestGovernedRegionsValidator:
    """Test GovernedRegionsValidator."""

    @pytest.mark.parametrize("region", ["us-east-1", "eu-central-2", "us-gov-west-1", "ap-southeast-4"])
    def test_valid_regions(self, region):
        result = GovernedRegionsValidator(make_request(governed_regions=[region])).validate()

        assert result.status == ValidationStatus.PASSED

    def test_invalid_region(self):
        result = GovernedRegionsValidator(
            make_request(governed_regions=["us-east-1", "YOUR_HOME_REGION"])
        ).validate()

        assert result.status == ValidationStatus.FAILED
        assert result.details == {"invalid_regions": ["YOUR_HOME_REGION"]}

    def test_duplicate_region(self):
        result = GovernedRegionsValidator(
            make_request(governed_regions=["us-east-1", "us-east-1"])
        ).validate()

        assert result.status == ValidationStatus.WARNING


class TestRetentionPeriodValidator:
    """Test RetentionPeriodValidator."""

    @pytest.mark.parametrize("value", [None, 365, "3600"])
    def test_valid(self, value):
        request = make_request(logging_bucket_retention_period=value)

        assert RetentionPeriodValidator(request).validate().status == ValidationStatus.PASSED

    @pytest.mark.parametrize("value", [0, -1, "abc", "1.5", True])
    def test_invalid(self, value):
        request = make_request(access_logging_bucket_retention_period=value)

        result = RetentionPeriodValidator(request).validate()

        assert result.status == ValidationStatus.FAILED
        assert result.details == {"fields": ["access_logging_bucket_retention_period"]}


class TestEncryptionValidator:
    """Test EncryptionValidator."""

    def test_new_key(self):
        assert EncryptionValidator(make_request()).validate().status == ValidationStatus.PASSED

    def test_key_arn(self):
        arn = "arn:aws:kms:us-east-1:123456789012:key/1234abcd-12ab-34cd-56ef-1234567890ab"

        result = EncryptionValidator(make_request(kms_key_arn=arn)).validate()

        assert result.status == ValidationStatus.PASSED

    def test_alias_arn_warns(self):
        arn = "arn:aws:kms:us-east-1:123456789012:alias/my-key"

        result = EncryptionValidator(make_request(kms_key_arn=arn)).validate()

        assert result.status == ValidationStatus.WARNING

    def test_disabled_warns(self):
        result = EncryptionValidator(make_request(encryption=False, kms_key_arn="arn:X")).validate()

        assert result.status == ValidationStatus.WARNING
        assert "ignored" in result.message


class TestRequestValidator:
    """Test RequestValidator."""

    def test_validate_all(self):
        validator = RequestValidator(make_request())

        results = validator.validate_all()

        assert len(results) == len(validator.validators) == 6
        assert all(isinstance(r, ValidationResult) for r in results)
        assert validator.is_ready_for_synthesis(results)

    def test_not_ready_on_failure(self):
        validator = RequestValidator(make_request(security_account_email=None))

        results = validator.validate_all()

        assert not validator.is_ready_for_synthesis(results)

    def test_warnings_do_not_block(self):
        validator = RequestValidator(make_request(encryption=False))

        assert validator.is_ready_for_synthesis(validator.validate_all())
