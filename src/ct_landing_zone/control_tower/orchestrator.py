"""AWS Control Tower landing zone assembly.

This module provides the LandingZoneAssembler class that coordinates the
prerequisite resolvers (organization and accounts, IAM roles, KMS key),
builds the landing zone manifest and declares the landing zone resource
with explicit dependencies on any newly declared accounts.
"""

import logging
from typing import Optional, Tuple

from ..core.graph import Resource, ResourceGraph
from ..core.request import ProvisioningRequest
from ..prerequisites.accounts import AccountResolver, DeclaredAccount, OrganizationAccounts
from ..prerequisites.iam_roles import RoleSet, RoleSetDeclarator
from ..prerequisites.kms_key import KeyRef, KeyResolver
from .manifest import Manifest, ManifestGenerator

logger = logging.getLogger(__name__)

# Replace when the API supports retrieval of the latest version
DEFAULT_LANDING_ZONE_VERSION = "3.3"

LANDING_ZONE_LOGICAL_ID = "ControlTowerLandingZone"
LANDING_ZONE_RESOURCE_TYPE = "AWS::ControlTower::LandingZone"


class LandingZoneAssembler:
    """Assembles a Control Tower landing zone into a resource graph.

    The whole assembly runs in the constructor. Validation errors from the
    resolvers propagate unchanged and abort the assembly; resources declared
    before the failure are left in the graph.

    Attributes:
        request: The provisioning request
        graph: The graph everything was declared into
        accounts: Resolved organization and shared accounts
        roles: Declared IAM roles
        key: Resolved KMS key reference
        manifest: The landing zone manifest
        landing_zone: The declared landing zone resource
    """

    def __init__(self, request: ProvisioningRequest,
                 graph: Optional[ResourceGraph] = None) -> None:
        """Initialize and run the assembly.

        Args:
            request: Provisioning request
            graph: Graph to declare into (a new one when omitted)

        Raises:
            ValidationError: When an account identifier is missing or invalid
            ManifestValidationError: When the manifest is invalid
            DuplicateResourceError: When the graph already holds these resources
        """
        self.request = request
        self.graph = graph if graph is not None else ResourceGraph()

        logger.info("Assembling Control Tower landing zone")
        self.accounts: OrganizationAccounts = AccountResolver(self.graph).resolve_all(request)
        self.roles: RoleSet = RoleSetDeclarator(self.graph).declare()
        self.key: KeyRef = KeyResolver(self.graph).resolve(request.encryption, request.kms_key_arn)

        self.manifest: Manifest = ManifestGenerator(request).generate_manifest(self.accounts, self.key)
        self.landing_zone: Resource = self._declare_landing_zone()
        self._add_account_dependencies()
        self._add_outputs()
        logger.info(f"Landing zone assembled with {len(self.graph)} resources")

    @property
    def version(self) -> str:
        return self.request.landing_zone_version or DEFAULT_LANDING_ZONE_VERSION

    def _declare_landing_zone(self) -> Resource:
        logger.info(f"Declaring Control Tower landing zone version {self.version}")
        return self.graph.declare(
            LANDING_ZONE_LOGICAL_ID,
            LANDING_ZONE_RESOURCE_TYPE,
            {
                'Version': self.version,
                'Manifest': self.manifest.to_dict(),
            },
        )

    def _add_account_dependencies(self) -> None:
        """Order the landing zone after accounts declared in this assembly.

        Reused accounts already exist and get no edge.
        """
        for account in (self.accounts.logging, self.accounts.security):
            if isinstance(account, DeclaredAccount):
                self.graph.add_dependency(self.landing_zone, account.resource)

    def _add_outputs(self) -> None:
        self.graph.add_output(
            'LandingZoneArn', self.landing_zone.get_att('Arn'), 'Control Tower landing zone ARN'
        )
        self.graph.add_output(
            'LoggingAccountId', self.accounts.logging.account_id, 'Centralized logging account ID'
        )
        self.graph.add_output(
            'SecurityAccountId', self.accounts.security.account_id, 'Security tooling account ID'
        )
        if self.key.present:
            self.graph.add_output('KmsKeyArn', self.key.arn, 'Control Tower KMS key ARN')


def assemble(request: ProvisioningRequest,
             graph: Optional[ResourceGraph] = None) -> Tuple[Manifest, ResourceGraph]:
    """Assemble a landing zone and return its manifest and graph."""
    assembler = LandingZoneAssembler(request, graph)
    return assembler.manifest, assembler.graph
