"""
AWS Client Module
=================

Thin wrapper around boto3 used by the collector to talk to AWS, with
retry configuration, credential validation and per-region cloning.

Nothing in the rule-evaluation path imports this module: rules only read
the source cache.

Example
-------
>>> from cloudwarden.core.aws_client import AWSClient
>>>
>>> client = AWSClient(region="us-east-1", profile="audit")
>>> client.validate_credentials()
True
>>> ec2 = client.get_client("ec2")

See Also
--------
boto3 : AWS SDK for Python
AWSCollector : Fills the source cache through this client.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import (
    ClientError,
    NoCredentialsError,
    NoRegionError,
    ProfileNotFound,
)

from cloudwarden.core.exceptions import (
    AWSClientError,
    CredentialsError,
    RegionError,
    ServiceError,
)

# Module logger
logger = logging.getLogger(__name__)


class AWSClient:
    """
    boto3 session wrapper with retry logic and credential management.

    Parameters
    ----------
    region : str, default="us-east-1"
        AWS region to connect to.
    profile : str, optional
        AWS profile name from ~/.aws/credentials.
    max_retries : int, default=3
        Maximum number of attempts for failed API calls.
    timeout : int, default=30
        Connect and read timeout in seconds.

    Raises
    ------
    CredentialsError
        If AWS credentials are not found or invalid.
    RegionError
        If the specified region is invalid.
    ServiceError
        If unable to create a service client.

    Notes
    -----
    The session and service clients are created lazily and cached per
    instance. Use :meth:`with_region` to get a client for another region;
    instances are not shared between threads.
    """

    def __init__(
        self,
        region: str = "us-east-1",
        profile: Optional[str] = None,
        max_retries: int = 3,
        timeout: int = 30,
    ) -> None:
        """Initialize AWS client with the specified configuration."""
        self.region = region
        self.profile = profile
        self.max_retries = max_retries
        self.timeout = timeout

        self._session: Optional[boto3.Session] = None
        self._clients: Dict[str, Any] = {}
        self._config = Config(
            retries={"max_attempts": max_retries, "mode": "adaptive"},
            connect_timeout=timeout,
            read_timeout=timeout,
        )

        logger.debug(f"Initialized AWSClient for {region} (profile={profile})")

    @property
    def session(self) -> boto3.Session:
        """The boto3 session, created on first use."""
        if self._session is None:
            self._session = self._create_session()
        return self._session

    def _create_session(self) -> boto3.Session:
        try:
            session_kwargs = {"region_name": self.region}
            if self.profile:
                session_kwargs["profile_name"] = self.profile
            return boto3.Session(**session_kwargs)

        except ProfileNotFound:
            raise CredentialsError(
                f"AWS profile '{self.profile}' not found",
                details={
                    "profile": self.profile,
                    "hint": "Check ~/.aws/credentials for available profiles",
                },
            )
        except NoRegionError:
            raise RegionError(
                f"Invalid or missing region: {self.region}",
                region=self.region,
            )
        except Exception as e:
            logger.exception("Failed to create AWS session")
            raise AWSClientError(f"Failed to create AWS session: {e}", region=self.region)

    def get_client(self, service_name: str) -> Any:
        """
        Get or create a boto3 client for a service.

        Parameters
        ----------
        service_name : str
            boto3 service name (e.g. 'ec2', 'lambda', 'cloudfront').

        Raises
        ------
        CredentialsError
            If credentials are not found.
        ServiceError
            If the client cannot be created.
        """
        if service_name in self._clients:
            return self._clients[service_name]

        try:
            client = self.session.client(service_name, config=self._config)
        except NoCredentialsError:
            raise CredentialsError(
                "AWS credentials not found",
                details={"hint": "Configure credentials using 'aws configure'"},
            )
        except Exception as e:
            logger.exception(f"Failed to create {service_name} client")
            raise ServiceError(
                f"Failed to create {service_name} client: {e}",
                service=service_name,
                region=self.region,
            )

        self._clients[service_name] = client
        logger.debug(f"Created {service_name} client for {self.region}")
        return client

    def validate_credentials(self) -> bool:
        """
        Validate credentials with STS GetCallerIdentity.

        Raises
        ------
        CredentialsError
            If credentials are invalid, expired, or missing.
        """
        try:
            identity = self.get_client("sts").get_caller_identity()
            logger.info(f"Credentials validated for account {identity['Account']}")
            return True

        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            raise CredentialsError(
                f"Failed to validate credentials: {e}",
                details={"error_code": error_code},
            )
        except CredentialsError:
            raise
        except Exception as e:
            logger.exception("Credential validation failed")
            raise CredentialsError(f"Failed to validate credentials: {e}")

    def get_account_id(self) -> str:
        """The 12-digit account id of the current credentials."""
        try:
            return self.get_client("sts").get_caller_identity()["Account"]
        except Exception as e:
            logger.exception("Failed to get account ID")
            raise AWSClientError(f"Failed to get account ID: {e}")

    def with_region(self, region: str) -> AWSClient:
        """New client for ``region`` with the same profile, retries and timeout."""
        return AWSClient(
            region=region,
            profile=self.profile,
            max_retries=self.max_retries,
            timeout=self.timeout,
        )

    def __repr__(self) -> str:
        """Return string representation of the client."""
        return (
            f"AWSClient(region='{self.region}', "
            f"profile={self.profile!r}, "
            f"max_retries={self.max_retries})"
        )
