"""Tests for Control Tower IAM role declarations."""

import pytest

from ct_landing_zone.core.exceptions import DuplicateResourceError
from ct_landing_zone.core.graph import Environment, ResourceGraph, Sub
from ct_landing_zone.prerequisites.iam_roles import (
    ROLE_PATH,
    ROLE_RESOURCE_TYPE,
    RoleSet,
    RoleSetDeclarator,
)


@pytest.fixture
def graph():
    """Empty resource graph."""
    return ResourceGraph()


@pytest.fixture
def role_set(graph):
    """Declared role set."""
    return RoleSetDeclarator(graph).declare()


def statement_of(role):
    """Return the single inline policy statement of a role."""
    policies = role.properties["Policies"]
    assert len(policies) == 1
    statements = policies[0]["PolicyDocument"]["Statement"]
    assert len(statements) == 1
    return statements[0]


def trusted_service(role):
    statement = role.properties["AssumeRolePolicyDocument"]["Statement"][0]
    assert statement["Action"] == "sts:AssumeRole"
    return statement["Principal"]["Service"]


class TestRoleSetDeclarator:
    """Test RoleSetDeclarator class."""

    def test_declares_four_roles(self, graph, role_set):
        """Test exactly the four fixed roles are declared."""
        assert isinstance(role_set, RoleSet)
        assert [r.logical_id for r in graph.resources_of_type(ROLE_RESOURCE_TYPE)] == [
            "AWSControlTowerAdmin",
            "AWSControlTowerCloudTrailRole",
            "AWSControlTowerConfigAggregatorRoleForOrganizations",
            "AWSControlTowerStackSetRole",
        ]

    def test_names_and_paths_are_fixed(self, role_set):
        """Test role names match logical IDs and use the service-role path."""
        for role in (role_set.admin, role_set.cloudtrail,
                     role_set.config_aggregator, role_set.stackset):
            assert role.properties["RoleName"] == role.logical_id
            assert role.properties["Path"] == ROLE_PATH == "/service-role/"

    def test_admin_role(self, role_set):
        """Test the Control Tower admin role."""
        role = role_set.admin

        assert trusted_service(role) == "controltower.amazonaws.com"
        assert role.properties["ManagedPolicyArns"] == [
            Sub("arn:${AWS::Partition}:iam::aws:policy/service-role/AWSControlTowerServiceRolePolicy")
        ]
        statement = statement_of(role)
        assert statement["Effect"] == "Allow"
        assert statement["Action"] == ["ec2:DescribeAvailabilityZones"]
        assert statement["Resource"] == ["*"]

    def test_cloudtrail_role(self, role_set):
        """Test the CloudTrail delivery role."""
        role = role_set.cloudtrail

        assert trusted_service(role) == "cloudtrail.amazonaws.com"
        assert "ManagedPolicyArns" not in role.properties
        statement = statement_of(role)
        assert statement["Action"] == ["logs:CreateLogStream", "logs:PutLogEvents"]
        assert statement["Resource"] == [
            Sub("arn:${AWS::Partition}:logs:*:*:log-group:aws-controltower/CloudTrailLogs:*")
        ]

    def test_config_aggregator_role(self, role_set):
        """Test the Config aggregator role has no inline permissions."""
        role = role_set.config_aggregator

        assert trusted_service(role) == "config.amazonaws.com"
        assert role.properties["ManagedPolicyArns"] == [
            Sub("arn:${AWS::Partition}:iam::aws:policy/service-role/AWSConfigRoleForOrganizations")
        ]
        assert "Policies" not in role.properties

    def test_stackset_role(self, role_set):
        """Test the StackSet role may assume the execution role anywhere."""
        role = role_set.stackset

        assert trusted_service(role) == "cloudformation.amazonaws.com"
        assert "ManagedPolicyArns" not in role.properties
        statement = statement_of(role)
        assert statement["Action"] == ["sts:AssumeRole"]
        assert statement["Resource"] == [
            Sub("arn:${AWS::Partition}:iam::*:role/AWSControlTowerExecution")
        ]

    def test_known_partition_resolves_arns(self):
        """Test a pinned partition produces literal ARNs."""
        graph = ResourceGraph(Environment(partition="aws-us-gov"))

        role_set = RoleSetDeclarator(graph).declare()

        assert statement_of(role_set.stackset)["Resource"] == [
            "arn:aws-us-gov:iam::*:role/AWSControlTowerExecution"
        ]

    def test_second_declaration_collides(self, graph, role_set):
        """Test fixed role names collide within one graph."""
        with pytest.raises(DuplicateResourceError):
            RoleSetDeclarator(graph).declare()

    def test_table_drives_declarations(self):
        """Test every table entry maps to a RoleSet attribute."""
        attributes = {d["attribute"] for d in RoleSetDeclarator.CONTROL_TOWER_ROLES.values()}

        assert attributes == {"admin", "cloudtrail", "config_aggregator", "stackset"}
