"""IAM roles declaration for Control Tower prerequisites.

This module declares the service roles a Control Tower landing zone needs
before it can be created. The roles, their trusted services and their
permissions are fixed and kept in a single table.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..core.graph import Resource, ResourceGraph

logger = logging.getLogger(__name__)

ROLE_RESOURCE_TYPE = "AWS::IAM::Role"
ROLE_PATH = "/service-role/"
POLICY_VERSION = "2012-10-17"


@dataclass(frozen=True)
class RoleSet:
    """The four declared Control Tower roles."""

    admin: Resource
    cloudtrail: Resource
    config_aggregator: Resource
    stackset: Resource


class RoleSetDeclarator:
    """Declares the IAM roles used by the Control Tower service.

    Role names are literals, so declaring the set twice into the same graph
    collides on the logical IDs.
    """

    # Role name -> trust, managed policy and inline permissions.
    # Resource ARNs use ${AWS::Partition} placeholders.
    CONTROL_TOWER_ROLES: Dict[str, Dict[str, Any]] = {
        'AWSControlTowerAdmin': {
            'attribute': 'admin',
            'trust_service': 'controltower.amazonaws.com',
            'managed_policy': 'service-role/AWSControlTowerServiceRolePolicy',
            'actions': ['ec2:DescribeAvailabilityZones'],
            'resources': ['*'],
        },
        'AWSControlTowerCloudTrailRole': {
            'attribute': 'cloudtrail',
            'trust_service': 'cloudtrail.amazonaws.com',
            'managed_policy': None,
            'actions': ['logs:CreateLogStream', 'logs:PutLogEvents'],
            'resources': [
                'arn:${AWS::Partition}:logs:*:*:log-group:aws-controltower/CloudTrailLogs:*'
            ],
        },
        'AWSControlTowerConfigAggregatorRoleForOrganizations': {
            'attribute': 'config_aggregator',
            'trust_service': 'config.amazonaws.com',
            'managed_policy': 'service-role/AWSConfigRoleForOrganizations',
            'actions': [],
            'resources': [],
        },
        'AWSControlTowerStackSetRole': {
            'attribute': 'stackset',
            'trust_service': 'cloudformation.amazonaws.com',
            'managed_policy': None,
            'actions': ['sts:AssumeRole'],
            'resources': ['arn:${AWS::Partition}:iam::*:role/AWSControlTowerExecution'],
        },
    }

    def __init__(self, graph: ResourceGraph) -> None:
        """Initialize IAM roles declarator.

        Args:
            graph: Resource graph to declare into
        """
        self.graph = graph

    def declare(self) -> RoleSet:
        """Declare every role in CONTROL_TOWER_ROLES.

        Returns:
            RoleSet with the declared role resources

        Raises:
            DuplicateResourceError: When the roles are already declared
        """
        declared = {}
        for role_name, definition in self.CONTROL_TOWER_ROLES.items():
            declared[definition['attribute']] = self._declare_role(role_name, definition)
        return RoleSet(**declared)

    def _declare_role(self, role_name: str, definition: Dict[str, Any]) -> Resource:
        properties: Dict[str, Any] = {
            'RoleName': role_name,
            'Path': ROLE_PATH,
            'AssumeRolePolicyDocument': self._trust_policy(definition['trust_service']),
        }

        managed_policy_arn = self._managed_policy_arn(definition['managed_policy'])
        if managed_policy_arn is not None:
            properties['ManagedPolicyArns'] = [managed_policy_arn]

        if definition['actions']:
            properties['Policies'] = [{
                'PolicyName': f"{role_name}Policy",
                'PolicyDocument': {
                    'Version': POLICY_VERSION,
                    'Statement': [{
                        'Effect': 'Allow',
                        'Action': list(definition['actions']),
                        'Resource': [self.graph.resolve(arn) for arn in definition['resources']],
                    }],
                },
            }]

        logger.info(f"Declaring IAM role {role_name} trusted by {definition['trust_service']}")
        return self.graph.declare(role_name, ROLE_RESOURCE_TYPE, properties)

    @staticmethod
    def _trust_policy(service: str) -> Dict[str, Any]:
        return {
            'Version': POLICY_VERSION,
            'Statement': [{
                'Effect': 'Allow',
                'Principal': {'Service': service},
                'Action': 'sts:AssumeRole',
            }],
        }

    def _managed_policy_arn(self, policy_name: Optional[str]) -> Optional[Any]:
        if policy_name is None:
            return None
        return self.graph.resolve(f"arn:${{AWS::Partition}}:iam::aws:policy/{policy_name}")
