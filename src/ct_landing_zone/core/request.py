"""Provisioning request for a landing zone assembly."""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

from .exceptions import ValidationError

RetentionPeriod = Union[int, str]


@dataclass(frozen=True)
class ProvisioningRequest:
    """Caller options for one landing zone assembly.

    Account identifiers are checked per role by the account resolver;
    this class only checks the shape of the request itself.
    """

    governed_regions: Tuple[str, ...]
    encryption: bool = True
    create_organization: bool = False
    logging_account_email: Optional[str] = None
    logging_account_name: Optional[str] = None
    logging_account_id: Optional[str] = None
    security_account_email: Optional[str] = None
    security_account_name: Optional[str] = None
    security_account_id: Optional[str] = None
    landing_zone_version: Optional[str] = None
    logging_bucket_retention_period: Optional[RetentionPeriod] = None
    access_logging_bucket_retention_period: Optional[RetentionPeriod] = None
    kms_key_arn: Optional[str] = None
    core_ou: Optional[str] = None
    custom_ou: Optional[str] = None

    def __post_init__(self) -> None:
        regions = self.governed_regions
        if isinstance(regions, str) or not isinstance(regions, Sequence):
            raise ValidationError("governed_regions", "must be a list of region names")
        if not regions:
            raise ValidationError("governed_regions", "must contain at least one region")
        for region in regions:
            if not isinstance(region, str) or not region:
                raise ValidationError(
                    "governed_regions", f"region names must be non-empty strings, got {region!r}"
                )

        # Frozen: normalise through object.__setattr__
        object.__setattr__(self, "governed_regions", tuple(regions))