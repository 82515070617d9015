import base64
from typing import TYPE_CHECKING

from botocore.client import BaseClient
from botocore.exceptions import BotoCoreError, ClientError

from large_objects.exceptions import StorageError
from large_objects.storage.base import ObjectInfo, strip_etag
from large_objects.storage.s3.create import (
    S3Config,
    S3Credentials,
    create_s3_client,
)
from large_objects.storage.s3.merge import (
    DEFAULT_MAX_WORKERS,
    MIN_PART_SIZE,
    merge_segments,
)

if TYPE_CHECKING:
    from large_objects.slo.manifest import Manifest

_META_PREFIX = "x-object-meta-"


def _status_code(e: Exception) -> int | None:
    if isinstance(e, ClientError):
        code = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        if code is not None:
            return int(code)
    return None


def _to_put_kwargs(headers: dict[str, str]) -> dict:
    out: dict = {}
    metadata: dict[str, str] = {}
    for key, value in headers.items():
        lower = key.lower()
        if lower == "content-type":
            out["ContentType"] = value
        elif lower.startswith(_META_PREFIX):
            metadata[lower[len(_META_PREFIX) :]] = value
        else:
            raise StorageError(f"Header {key} is not supported by S3 storage")
    if metadata:
        out["Metadata"] = metadata
    return out


class S3Store:
    """Object store backed by any S3 compatible service.

    Containers map to buckets. Manifests are committed by merging the
    segments server side into a single object.
    """

    min_segment_size = MIN_PART_SIZE

    def __init__(
        self,
        credentials: S3Credentials | None = None,
        s3_config: S3Config | None = None,
        client: BaseClient | None = None,
    ) -> None:
        if client is None:
            assert credentials is not None, "credentials or client required"
            client = create_s3_client(credentials, s3_config)
        self.client: BaseClient = client
        self.merge_workers = (
            s3_config.max_pool_connections
            if s3_config and s3_config.max_pool_connections
            else DEFAULT_MAX_WORKERS
        )

    def put_object(
        self,
        container: str,
        name: str,
        data: bytes,
        etag: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> str:
        kwargs = _to_put_kwargs(headers or {})
        if etag is not None:
            kwargs["ContentMD5"] = base64.b64encode(bytes.fromhex(etag)).decode(
                "ascii"
            )
        try:
            response = self.client.put_object(
                Bucket=container, Key=name, Body=data, **kwargs
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(
                f"Upload of {container}/{name} failed: {e}", _status_code(e)
            ) from e
        return strip_etag(response.get("ETag")) or etag or ""

    def get_object(self, container: str, name: str) -> bytes:
        try:
            response = self.client.get_object(Bucket=container, Key=name)
            return response["Body"].read()
        except (BotoCoreError, ClientError) as e:
            raise StorageError(
                f"Download of {container}/{name} failed: {e}", _status_code(e)
            ) from e

    def head_object(self, container: str, name: str) -> ObjectInfo | None:
        try:
            response = self.client.head_object(Bucket=container, Key=name)
        except ClientError as e:
            if _status_code(e) == 404:
                return None
            raise StorageError(
                f"Metadata fetch of {container}/{name} failed: {e}", _status_code(e)
            ) from e
        except BotoCoreError as e:
            raise StorageError(f"Metadata fetch of {container}/{name} failed: {e}") from e
        return ObjectInfo(
            name, int(response["ContentLength"]), strip_etag(response.get("ETag"))
        )

    def list_objects(self, container: str, prefix: str = "") -> list[ObjectInfo]:
        out: list[ObjectInfo] = []
        try:
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=container, Prefix=prefix):
                for obj in page.get("Contents", []):
                    out.append(
                        ObjectInfo(obj["Key"], int(obj["Size"]), strip_etag(obj.get("ETag")))
                    )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(
                f"Listing of {container} failed: {e}", _status_code(e)
            ) from e
        return out

    def delete_object(self, container: str, name: str) -> None:
        try:
            self.client.delete_object(Bucket=container, Key=name)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(
                f"Delete of {container}/{name} failed: {e}", _status_code(e)
            ) from e

    def put_manifest(self, container: str, name: str, manifest: "Manifest") -> str:
        try:
            return merge_segments(
                self.client,
                bucket=container,
                key=name,
                manifest=manifest,
                max_workers=self.merge_workers,
            )
        except (BotoCoreError, ClientError, ValueError) as e:
            raise StorageError(
                f"Merge of {container}/{name} failed: {e}", _status_code(e)
            ) from e
