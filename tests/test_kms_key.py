"""Tests for KMS key resolution."""

import pytest

from ct_landing_zone.core.graph import Environment, GetAtt, Ref, RemovalPolicy, ResourceGraph, Sub
from ct_landing_zone.prerequisites.kms_key import (
    ALIAS_RESOURCE_TYPE,
    KEY_ALIAS,
    KEY_RESOURCE_TYPE,
    DeclaredKey,
    KeyResolver,
    NoKey,
    ReusedKey,
)


@pytest.fixture
def graph():
    """Empty resource graph."""
    return ResourceGraph()


@pytest.fixture
def resolver(graph):
    return KeyResolver(graph)


def statement_by_sid(key, sid):
    for statement in key.properties["KeyPolicy"]["Statement"]:
        if statement["Sid"] == sid:
            return statement
    raise AssertionError(f"No statement {sid}")


class TestKeyResolver:
    """Test KeyResolver.resolve."""

    @pytest.mark.parametrize("caller_arn", [None, "arn:X"])
    def test_encryption_disabled(self, resolver, graph, caller_arn):
        """Test no key is used when encryption is off, even with an ARN."""
        ref = resolver.resolve(False, caller_arn)

        assert isinstance(ref, NoKey)
        assert ref.present is False
        assert ref.arn is None
        assert len(graph) == 0

    def test_reuse_caller_key(self, resolver, graph):
        """Test a caller supplied ARN is used verbatim."""
        ref = resolver.resolve(True, "arn:X")

        assert isinstance(ref, ReusedKey)
        assert ref.present is True
        assert ref.reused is True
        assert ref.arn == "arn:X"
        assert len(graph) == 0

    def test_declare_new_key(self, resolver, graph):
        """Test a key and alias are declared when no ARN is supplied."""
        ref = resolver.resolve(True)

        assert isinstance(ref, DeclaredKey)
        assert ref.present is True
        assert ref.reused is False
        assert ref.arn == GetAtt("ControlTowerLandingZoneKmsKey", "Arn")

        keys = graph.resources_of_type(KEY_RESOURCE_TYPE)
        assert keys == [ref.key]
        assert ref.key.properties["EnableKeyRotation"] is True
        assert ref.key.properties["Enabled"] is True
        assert ref.key.removal_policy is RemovalPolicy.RETAIN

        aliases = graph.resources_of_type(ALIAS_RESOURCE_TYPE)
        assert aliases == [ref.alias]
        assert ref.alias.properties == {
            "AliasName": KEY_ALIAS,
            "TargetKeyId": Ref("ControlTowerLandingZoneKmsKey"),
        }
        assert KEY_ALIAS == "alias/control-tower-landing-zone"

    def test_root_statement(self, resolver):
        """Test the account root keeps full access to the key."""
        key = resolver.resolve(True).key

        statement = statement_by_sid(key, "Enable IAM User Permissions")
        assert statement["Principal"] == {
            "AWS": Sub("arn:${AWS::Partition}:iam::${AWS::AccountId}:root")
        }
        assert statement["Action"] == "kms:*"

    def test_cloudtrail_statement(self, resolver):
        """Test CloudTrail access is limited to the baseline trail."""
        key = resolver.resolve(True).key

        statement = statement_by_sid(key, "Allow CloudTrail to encrypt/decrypt logs")
        assert statement["Principal"] == {"Service": "cloudtrail.amazonaws.com"}
        assert statement["Action"] == ["kms:GenerateDataKey*", "kms:Decrypt"]
        assert statement["Condition"]["StringEquals"] == {
            "AWS:SourceArn": Sub(
                "arn:${AWS::Partition}:cloudtrail:${AWS::Region}:${AWS::AccountId}"
                ":trail/aws-controltower-BaselineCloudTrail"
            )
        }
        assert statement["Condition"]["StringLike"] == {
            "kms:EncryptionContext:aws:cloudtrail:arn": Sub(
                "arn:${AWS::Partition}:cloudtrail:*:${AWS::AccountId}:trail/*"
            )
        }

    def test_config_statement(self, resolver):
        """Test AWS Config access is unconditional."""
        key = resolver.resolve(True).key

        statement = statement_by_sid(key, "Allow AWS Config to encrypt/decrypt logs")
        assert statement["Principal"] == {"Service": "config.amazonaws.com"}
        assert statement["Action"] == ["kms:GenerateDataKey", "kms:Decrypt"]
        assert "Condition" not in statement

    def test_known_environment(self):
        """Test a pinned environment yields literal ARNs in the key policy."""
        graph = ResourceGraph(Environment("123456789012", "eu-west-1", "aws"))

        key = KeyResolver(graph).resolve(True).key

        statement = statement_by_sid(key, "Allow CloudTrail to encrypt/decrypt logs")
        assert statement["Condition"]["StringEquals"]["AWS:SourceArn"] == (
            "arn:aws:cloudtrail:eu-west-1:123456789012:trail/aws-controltower-BaselineCloudTrail"
        )

    def test_rendered_key_is_retained(self, resolver, graph):
        """Test the synthesized key keeps its retain policies."""
        resolver.resolve(True)

        entry = graph.synth()["Resources"]["ControlTowerLandingZoneKmsKey"]
        assert entry["DeletionPolicy"] == "Retain"
        assert entry["UpdateReplacePolicy"] == "Retain"
