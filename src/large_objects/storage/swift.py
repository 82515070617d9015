"""
OpenStack Swift object storage over plain HTTP.

https://docs.openstack.org/swift/latest/overview_large_objects.html
  * PUT /{container}/{object}?multipart-manifest=put  stores an SLO manifest
  * X-Object-Manifest: {container}/{prefix}           marks a DLO manifest
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx

from large_objects.exceptions import StorageError
from large_objects.storage.base import ObjectInfo, strip_etag

if TYPE_CHECKING:
    from large_objects.slo.manifest import Manifest

logger = logging.getLogger(__name__)  # noqa

_MAX_CONNECTIONS = 10
_TIMEOUT_READ = 120
_TIMEOUT_CONNECT = 60
_LISTING_LIMIT = 10000


@dataclass
class SwiftConfig:
    max_pool_connections: int | None = None
    timeout_connection: int | None = None
    timeout_read: int | None = None

    def resolve_defaults(self) -> None:
        self.max_pool_connections = self.max_pool_connections or _MAX_CONNECTIONS
        self.timeout_connection = self.timeout_connection or _TIMEOUT_CONNECT
        self.timeout_read = self.timeout_read or _TIMEOUT_READ


@dataclass
class SwiftDestination:
    """An already authenticated Swift account: its storage URL and token."""

    storage_url: str
    auth_token: str


def _object_path(container: str, name: str) -> str:
    return f"/{quote(container, safe='')}/{quote(name)}"


class SwiftStore:
    min_segment_size = 0

    def __init__(
        self,
        destination: SwiftDestination,
        config: SwiftConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        config = config or SwiftConfig()
        config.resolve_defaults()
        assert config.timeout_read is not None
        self.destination = destination
        self.client = httpx.Client(
            base_url=destination.storage_url.rstrip("/"),
            headers={"X-Auth-Token": destination.auth_token},
            timeout=httpx.Timeout(
                config.timeout_read, connect=config.timeout_connection
            ),
            limits=httpx.Limits(max_connections=config.max_pool_connections),
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "SwiftStore":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            return self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise StorageError(f"{method} {path} failed: {e}") from e

    @staticmethod
    def _check(response: httpx.Response, what: str) -> None:
        if response.is_success:
            return
        body = response.text[:200]
        raise StorageError(
            f"{what} failed with HTTP {response.status_code}: {body}",
            status_code=response.status_code,
        )

    def put_object(
        self,
        container: str,
        name: str,
        data: bytes,
        etag: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> str:
        req_headers: dict[str, str] = dict(headers or {})
        if etag is not None:
            req_headers["Etag"] = etag
        response = self._request(
            "PUT", _object_path(container, name), content=data, headers=req_headers
        )
        self._check(response, f"Upload of {container}/{name}")
        return strip_etag(response.headers.get("Etag")) or etag or ""

    def get_object(self, container: str, name: str) -> bytes:
        response = self._request("GET", _object_path(container, name))
        self._check(response, f"Download of {container}/{name}")
        return response.content

    def head_object(self, container: str, name: str) -> ObjectInfo | None:
        response = self._request("HEAD", _object_path(container, name))
        if response.status_code == 404:
            return None
        self._check(response, f"Metadata fetch of {container}/{name}")
        size = int(response.headers.get("Content-Length", "0"))
        return ObjectInfo(name, size, strip_etag(response.headers.get("Etag")))

    def list_objects(self, container: str, prefix: str = "") -> list[ObjectInfo]:
        out: list[ObjectInfo] = []
        marker = ""
        while True:
            params: dict[str, str | int] = {
                "format": "json",
                "limit": _LISTING_LIMIT,
            }
            if prefix:
                params["prefix"] = prefix
            if marker:
                params["marker"] = marker
            response = self._request(
                "GET", f"/{quote(container, safe='')}", params=params
            )
            if response.status_code == 204:
                break
            self._check(response, f"Listing of {container}")
            page = response.json()
            if not page:
                break
            for item in page:
                # pseudo directories only carry "subdir"
                if "name" not in item:
                    continue
                out.append(
                    ObjectInfo(
                        name=item["name"],
                        size=int(item["bytes"]),
                        etag=strip_etag(item.get("hash")),
                    )
                )
            marker = page[-1].get("name") or page[-1].get("subdir", "")
            if len(page) < _LISTING_LIMIT:
                break
        logger.debug(f"Listed {len(out)} objects in {container} with prefix {prefix!r}")
        return out

    def delete_object(self, container: str, name: str) -> None:
        response = self._request("DELETE", _object_path(container, name))
        if response.status_code == 404:
            return
        self._check(response, f"Delete of {container}/{name}")

    def put_manifest(self, container: str, name: str, manifest: "Manifest") -> str:
        response = self._request(
            "PUT",
            _object_path(container, name),
            params={"multipart-manifest": "put"},
            content=manifest.to_json_str().encode("utf-8"),
        )
        self._check(response, f"Manifest upload of {container}/{name}")
        return strip_etag(response.headers.get("Etag")) or ""
