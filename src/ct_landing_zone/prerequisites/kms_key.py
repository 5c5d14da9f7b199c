"""KMS key resolution for Control Tower encryption.

The key encrypts data written by Control Tower enabled services (AWS
CloudTrail, AWS Config) and the associated S3 buckets. A caller supplied key
is used verbatim; otherwise a key with rotation enabled is declared.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from ..core.graph import GetAtt, RemovalPolicy, Resource, ResourceGraph

logger = logging.getLogger(__name__)

KEY_RESOURCE_TYPE = "AWS::KMS::Key"
ALIAS_RESOURCE_TYPE = "AWS::KMS::Alias"
KEY_LOGICAL_ID = "ControlTowerLandingZoneKmsKey"
ALIAS_LOGICAL_ID = "ControlTowerLandingZoneKmsKeyAlias"
KEY_ALIAS = "alias/control-tower-landing-zone"
BASELINE_TRAIL_NAME = "aws-controltower-BaselineCloudTrail"


@dataclass(frozen=True)
class NoKey:
    """Encryption disabled, no key in use."""

    present: bool = False
    reused: bool = False

    @property
    def arn(self) -> None:
        return None


@dataclass(frozen=True)
class ReusedKey:
    """A caller supplied customer managed key."""

    arn: str
    present: bool = True
    reused: bool = True


@dataclass(frozen=True)
class DeclaredKey:
    """A key declared in the graph."""

    key: Resource
    alias: Resource
    present: bool = True
    reused: bool = False

    @property
    def arn(self) -> GetAtt:
        return self.key.get_att("Arn")


KeyRef = Union[NoKey, ReusedKey, DeclaredKey]


class KeyResolver:
    """Resolves the KMS key used by the landing zone."""

    def __init__(self, graph: ResourceGraph) -> None:
        self.graph = graph

    def resolve(self, encryption_enabled: bool, caller_arn: Optional[str] = None) -> KeyRef:
        """Resolve the key reference.

        Args:
            encryption_enabled: Whether KMS encryption is enabled
            caller_arn: ARN of an existing customer managed key

        Returns:
            NoKey, ReusedKey or DeclaredKey
        """
        if not encryption_enabled:
            if caller_arn:
                logger.warning("Encryption is disabled, ignoring supplied KMS key ARN")
            return NoKey()

        # The key must meet Control Tower's key policy requirements; not checked here
        if caller_arn:
            logger.info(f"Using supplied KMS key {caller_arn}")
            return ReusedKey(caller_arn)

        return self._declare_key()

    def _declare_key(self) -> DeclaredKey:
        logger.info(f"Declaring new KMS key with alias {KEY_ALIAS}")
        key = self.graph.declare(
            KEY_LOGICAL_ID,
            KEY_RESOURCE_TYPE,
            {
                "EnableKeyRotation": True,
                "Enabled": True,
                "KeyPolicy": {
                    "Version": "2012-10-17",
                    "Statement": self._key_policy_statements(),
                },
            },
            removal_policy=RemovalPolicy.RETAIN,
        )
        alias = self.graph.declare(
            ALIAS_LOGICAL_ID,
            ALIAS_RESOURCE_TYPE,
            {"AliasName": KEY_ALIAS, "TargetKeyId": key.ref()},
        )
        return DeclaredKey(key=key, alias=alias)

    def _key_policy_statements(self) -> List[Dict[str, Any]]:
        resolve = self.graph.resolve
        return [
            {
                "Sid": "Enable IAM User Permissions",
                "Effect": "Allow",
                "Principal": {"AWS": resolve("arn:${AWS::Partition}:iam::${AWS::AccountId}:root")},
                "Action": "kms:*",
                "Resource": "*",
            },
            {
                "Sid": "Allow CloudTrail to encrypt/decrypt logs",
                "Effect": "Allow",
                "Principal": {"Service": "cloudtrail.amazonaws.com"},
                "Action": ["kms:GenerateDataKey*", "kms:Decrypt"],
                "Resource": "*",
                "Condition": {
                    "StringEquals": {
                        "AWS:SourceArn": resolve(
                            "arn:${AWS::Partition}:cloudtrail:${AWS::Region}:${AWS::AccountId}"
                            f":trail/{BASELINE_TRAIL_NAME}"
                        ),
                    },
                    "StringLike": {
                        "kms:EncryptionContext:aws:cloudtrail:arn": resolve(
                            "arn:${AWS::Partition}:cloudtrail:*:${AWS::AccountId}:trail/*"
                        ),
                    },
                },
            },
            {
                "Sid": "Allow AWS Config to encrypt/decrypt logs",
                "Effect": "Allow",
                "Principal": {"Service": "config.amazonaws.com"},
                "Action": ["kms:GenerateDataKey", "kms:Decrypt"],
                "Resource": "*",
            },
        ]
