"""Account resolution for Control Tower prerequisites.

This module decides, for the Log Archive and Audit roles, whether to reuse
an existing AWS account or declare a new one, and validates the account
identifiers supplied by the caller before anything is declared.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from ..core.exceptions import InvalidAccountIdError, MissingIdentifierError
from ..core.graph import GetAtt, Resource, ResourceGraph
from ..core.request import ProvisioningRequest
from .organizations import OrganizationDeclarator

logger = logging.getLogger(__name__)

ACCOUNT_RESOURCE_TYPE = "AWS::Organizations::Account"
ACCOUNT_ID_PATTERN = re.compile(r"[0-9]{12}")


class AccountRole(Enum):
    """Shared accounts required by a landing zone."""

    LOGGING = "logging"
    SECURITY = "security"

    @property
    def default_name(self) -> str:
        return {AccountRole.LOGGING: "Log Archive", AccountRole.SECURITY: "Audit"}[self]

    @property
    def logical_id(self) -> str:
        return {AccountRole.LOGGING: "LoggingAccount", AccountRole.SECURITY: "SecurityAccount"}[self]

    @property
    def description(self) -> str:
        return {AccountRole.LOGGING: "logging", AccountRole.SECURITY: "security tooling"}[self]


@dataclass(frozen=True)
class ReusedAccount:
    """An existing account referenced by ID."""

    account_id: str
    reused: bool = True


@dataclass(frozen=True)
class DeclaredAccount:
    """A new account declared in the graph."""

    resource: Resource
    reused: bool = False

    @property
    def account_id(self) -> GetAtt:
        return self.resource.get_att("AccountId")


AccountRef = Union[ReusedAccount, DeclaredAccount]


@dataclass(frozen=True)
class OrganizationAccounts:
    """Resolved organization and shared accounts."""

    organization: Optional[Resource]
    logging: AccountRef
    security: AccountRef


def is_valid_account_id(account_id: str) -> bool:
    """Check an account ID is exactly 12 ASCII digits."""
    return isinstance(account_id, str) and ACCOUNT_ID_PATTERN.fullmatch(account_id) is not None


def validate_account_identifiers(role: AccountRole, email: Optional[str],
                                 account_id: Optional[str]) -> None:
    """Validate the identifiers supplied for a role.

    Raises:
        MissingIdentifierError: When neither email nor account ID is given
        InvalidAccountIdError: When the account ID is not 12 digits
    """
    field = f"{role.value}_account_id"
    if not account_id and not email:
        raise MissingIdentifierError(
            field,
            "email or existing account ID required",
            f"You must provide an email to create the {role.description} account "
            f"or the account ID of an existing AWS account ({role.value}_account_email "
            f"or {field}).",
        )
    if account_id and not is_valid_account_id(account_id):
        raise InvalidAccountIdError(
            field,
            "must be a 12-digit string",
            f"The {role.description} account ID '{account_id}' is not valid. "
            "It must be a 12-digit string.",
        )


class AccountResolver:
    """Resolves the shared accounts for a landing zone.

    An account ID always wins over an email: the existing account is reused
    and nothing is declared. Otherwise a new account is declared and its
    eventual ID is referenced through the AccountId attribute.
    """

    def __init__(self, graph: ResourceGraph) -> None:
        """Initialize Account resolver.

        Args:
            graph: Resource graph to declare into
        """
        self.graph = graph

    def resolve(self, role: AccountRole, email: Optional[str] = None,
                name: Optional[str] = None,
                account_id: Optional[str] = None) -> AccountRef:
        """Resolve the account for a role.

        Args:
            role: Logging or security role
            email: Email address for a new account
            name: Name for a new account (defaults per role)
            account_id: ID of an existing account to reuse

        Returns:
            ReusedAccount or DeclaredAccount

        Raises:
            MissingIdentifierError: When neither email nor account ID is given
            InvalidAccountIdError: When the account ID is not 12 digits
        """
        validate_account_identifiers(role, email, account_id)

        if account_id:
            logger.info(f"Reusing existing {role.description} account {account_id}")
            return ReusedAccount(account_id)

        account_name = name or role.default_name
        logger.info(f"Declaring new {role.description} account '{account_name}' <{email}>")
        resource = self.graph.declare(
            role.logical_id,
            ACCOUNT_RESOURCE_TYPE,
            {"AccountName": account_name, "Email": email},
        )
        return DeclaredAccount(resource)

    def resolve_all(self, request: ProvisioningRequest) -> OrganizationAccounts:
        """Resolve the organization and both shared accounts of a request.

        The logging role is resolved first; a failure on the security role
        leaves the logging declarations in place.
        """
        organization = OrganizationDeclarator(self.graph).resolve(request.create_organization)

        logging_account = self.resolve(
            AccountRole.LOGGING,
            email=request.logging_account_email,
            name=request.logging_account_name,
            account_id=request.logging_account_id,
        )
        security_account = self.resolve(
            AccountRole.SECURITY,
            email=request.security_account_email,
            name=request.security_account_name,
            account_id=request.security_account_id,
        )
        return OrganizationAccounts(
            organization=organization,
            logging=logging_account,
            security=security_account,
        )
