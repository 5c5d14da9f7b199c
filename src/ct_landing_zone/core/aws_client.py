"""AWS session handling for environment resolution.

This module resolves the account, region and partition a landing zone
template targets from the caller's AWS credentials, so the synthesized
template can carry concrete ARNs instead of pseudo parameters.
"""

from typing import Dict, Optional
import boto3
from botocore.exceptions import (
    NoCredentialsError,
    ClientError,
    ProfileNotFound,
)

from .graph import Environment

DEFAULT_REGION = "us-east-1"


class AWSClientManager:
    """Boto3 session and client management.

    Credentials are checked once on construction with STS
    GetCallerIdentity; the caller's account ID is kept from that call.
    """

    def __init__(self, profile_name: Optional[str] = None,
                 region_name: Optional[str] = None) -> None:
        """Initialize AWS client manager.

        Args:
            profile_name: Optional AWS profile name for credentials
            region_name: Optional region overriding the session default

        Raises:
            NoCredentialsError: When AWS credentials are not available
            ProfileNotFound: When specified profile doesn't exist
        """
        self._session: Optional[boto3.Session] = None
        self._clients: Dict[str, object] = {}
        self._profile_name = profile_name
        self._region_name = region_name
        self._account_id: Optional[str] = None
        self._validate_credentials()

    def _validate_credentials(self) -> None:
        """Validate AWS credentials are available and working.

        Raises:
            NoCredentialsError: When AWS credentials are not available
            ProfileNotFound: When specified profile doesn't exist
        """
        try:
            sts_client = self.get_client("sts", self.get_current_region())
            self._account_id = sts_client.get_caller_identity()["Account"]
        except ProfileNotFound:
            raise ProfileNotFound(profile=self._profile_name)
        except ClientError as e:
            if e.response["Error"]["Code"] in ("InvalidClientTokenId", "ExpiredToken"):
                raise NoCredentialsError()
            raise

    def _get_session(self) -> boto3.Session:
        """Get or create boto3 session.

        Returns:
            Configured boto3 session
        """
        if self._session is None:
            if self._profile_name:
                self._session = boto3.Session(profile_name=self._profile_name)
            else:
                self._session = boto3.Session()
        return self._session

    def get_client(self, service_name: str, region_name: str):
        """Get AWS service client for specified region.

        Args:
            service_name: AWS service name (e.g., 'sts')
            region_name: AWS region name (e.g., 'us-east-1')

        Returns:
            Configured boto3 client for the service and region
        """
        client_key = f"{service_name}_{region_name}"

        if client_key not in self._clients:
            session = self._get_session()
            self._clients[client_key] = session.client(
                service_name, region_name=region_name
            )

        return self._clients[client_key]

    def get_current_region(self) -> str:
        """Get current AWS region.

        Returns:
            Explicit region, else the session region, else us-east-1
        """
        if self._region_name:
            return self._region_name
        session = self._get_session()
        return session.region_name or DEFAULT_REGION

    def get_account_id(self) -> str:
        """Get current AWS account ID.

        Raises:
            ClientError: When unable to get account information
        """
        if self._account_id is None:
            sts_client = self.get_client("sts", self.get_current_region())
            self._account_id = sts_client.get_caller_identity()["Account"]
        return self._account_id

    def get_partition(self) -> str:
        """Get the partition of the current region (aws, aws-cn, aws-us-gov)."""
        return self._get_session().get_partition_for_region(self.get_current_region())

    def resolve_environment(self) -> Environment:
        """Resolve the deployment environment from the session.

        Returns:
            Environment with concrete account, region and partition
        """
        return Environment(
            account=self.get_account_id(),
            region=self.get_current_region(),
            partition=self.get_partition(),
        )
