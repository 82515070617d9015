from .create import S3Config, S3Credentials, S3Provider, create_s3_client
from .store import S3Store

__all__ = [
    "S3Config",
    "S3Credentials",
    "S3Provider",
    "S3Store",
    "create_s3_client",
]
