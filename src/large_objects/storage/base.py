from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from large_objects.slo.manifest import Manifest


@dataclass(frozen=True)
class ObjectInfo:
    name: str
    size: int
    etag: str | None = None


def strip_etag(etag: str | None) -> str | None:
    if etag is None:
        return None
    return etag.replace('"', "")


class ObjectStore(Protocol):
    """The storage operations the large object engine needs.

    Implementations raise `StorageError` on any failed request.
    `min_segment_size` is the smallest size the backend accepts for every
    segment but the last of a manifest.
    """

    min_segment_size: int

    def put_object(
        self,
        container: str,
        name: str,
        data: bytes,
        etag: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> str:
        """Create or overwrite an object, returning the stored etag.

        When `etag` (an MD5 hex digest) is given the backend verifies the
        payload against it.
        """
        ...

    def get_object(self, container: str, name: str) -> bytes: ...

    def head_object(self, container: str, name: str) -> ObjectInfo | None: ...

    def list_objects(self, container: str, prefix: str = "") -> list[ObjectInfo]: ...

    def delete_object(self, container: str, name: str) -> None: ...

    def put_manifest(self, container: str, name: str, manifest: "Manifest") -> str:
        """Store `manifest` so that `name` reads back as its segments in order."""
        ...
