import logging
import warnings
from dataclasses import dataclass
from enum import Enum

import boto3
from botocore.client import BaseClient
from botocore.config import Config

logger = logging.getLogger(__name__)  # noqa

_DEFAULT_ENDPOINTS = {
    "b2": "https://s3.us-west-002.backblazeb2.com",
}
_MAX_CONNECTIONS = 10
_TIMEOUT_READ = 120
_TIMEOUT_CONNECT = 60


class S3Provider(Enum):
    S3 = "s3"  # generic S3
    BACKBLAZE = "b2"
    DIGITAL_OCEAN = "DigitalOcean"
    IBM_COS = "IBMCOS"

    @staticmethod
    def from_str(value: str) -> "S3Provider":
        for provider in S3Provider:
            if provider.value.lower() == value.lower():
                return provider
        raise ValueError(f"Unknown S3 provider: {value}")

    def default_endpoint(self) -> str | None:
        return _DEFAULT_ENDPOINTS.get(self.value)


@dataclass
class S3Credentials:
    provider: S3Provider
    access_key_id: str
    secret_access_key: str
    session_token: str | None = None
    region_name: str | None = None
    endpoint_url: str | None = None


@dataclass
class S3Config:
    """Connection tuning, unset fields fall back to module defaults."""

    max_pool_connections: int | None = None
    timeout_connection: int | None = None
    timeout_read: int | None = None

    def resolve_defaults(self) -> None:
        self.max_pool_connections = self.max_pool_connections or _MAX_CONNECTIONS
        self.timeout_connection = self.timeout_connection or _TIMEOUT_CONNECT
        self.timeout_read = self.timeout_read or _TIMEOUT_READ


def _endpoint_url(creds: S3Credentials) -> str | None:
    endpoint_url = creds.endpoint_url or creds.provider.default_endpoint()
    if endpoint_url is not None and not endpoint_url.startswith("http"):
        warnings.warn(f"Endpoint URL has no scheme: {endpoint_url}, assuming https")
        endpoint_url = f"https://{endpoint_url}"
    return endpoint_url


def _botocore_config(creds: S3Credentials, s3_config: S3Config) -> Config:
    options: dict = {}
    if creds.provider == S3Provider.BACKBLAZE:
        # B2 rejects the checksum headers newer botocore versions send.
        options["s3"] = {"payload_signing_enabled": False}
    return Config(
        signature_version="s3v4",
        region_name=creds.region_name,
        max_pool_connections=s3_config.max_pool_connections,
        read_timeout=s3_config.timeout_read,
        connect_timeout=s3_config.timeout_connection,
        **options,
    )


def create_s3_client(
    creds: S3Credentials, s3_config: S3Config | None = None
) -> BaseClient:
    """Create a boto3 S3 client for `creds.provider`."""
    s3_config = s3_config or S3Config()
    s3_config.resolve_defaults()
    endpoint_url = _endpoint_url(creds)
    logger.debug(
        f"Creating {creds.provider.value} S3 client for {endpoint_url or 'AWS'}"
    )
    session = boto3.session.Session()  # type: ignore
    return session.client(
        service_name="s3",
        aws_access_key_id=creds.access_key_id,
        aws_secret_access_key=creds.secret_access_key,
        aws_session_token=creds.session_token,
        endpoint_url=endpoint_url,
        config=_botocore_config(creds, s3_config),
    )
