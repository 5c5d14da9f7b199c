"""AWS Organizations declaration for Control Tower prerequisites.

This module declares the organization resource when the caller opts in to
creating a new organization. Control Tower requires all features enabled,
so the organization is always declared with the ALL feature set.
"""

import logging
from typing import Optional

from ..core.graph import Resource, ResourceGraph

logger = logging.getLogger(__name__)

ORGANIZATION_LOGICAL_ID = "Organization"
ORGANIZATION_RESOURCE_TYPE = "AWS::Organizations::Organization"
FEATURE_SET_ALL = "ALL"


class OrganizationDeclarator:
    """Declares the AWS Organization, at most once per graph."""

    def __init__(self, graph: ResourceGraph) -> None:
        """Initialize Organizations declarator.

        Args:
            graph: Resource graph to declare into
        """
        self.graph = graph

    def declare(self) -> Resource:
        """Declare the organization or return the one already in the graph.

        Returns:
            The organization resource
        """
        existing = self.graph.get(ORGANIZATION_LOGICAL_ID)
        if existing is not None:
            return existing

        logger.info("Declaring new AWS Organization with all features enabled")
        return self.graph.declare(
            ORGANIZATION_LOGICAL_ID,
            ORGANIZATION_RESOURCE_TYPE,
            {"FeatureSet": FEATURE_SET_ALL},
        )

    def resolve(self, create_organization: Optional[bool]) -> Optional[Resource]:
        """Declare the organization only when requested."""
        if not create_organization:
            return None
        return self.declare()
