import logging
import time
from dataclasses import dataclass
from threading import Lock
from typing import TYPE_CHECKING

from large_objects.exceptions import StorageError
from large_objects.storage.base import ObjectInfo
from large_objects.util import md5_hex

if TYPE_CHECKING:
    from large_objects.slo.manifest import Manifest

logger = logging.getLogger(__name__)  # noqa

_DLO_HEADER = "X-Object-Manifest"


@dataclass
class _Stored:
    data: bytes
    etag: str
    headers: dict[str, str]
    manifest: "Manifest | None" = None


class MemoryStore:
    """Thread safe in-process object store.

    Behaves like a Swift cluster for the operations the engine uses: etags are
    verified on write, SLO manifests must reference existing segments with
    matching size and etag, and manifests read back as the concatenation of
    their segments. `latency` adds an artificial delay to every write and
    `min_segment_size` imitates a backend with a minimum part size.
    """

    def __init__(self, latency: float = 0.0, min_segment_size: int = 0) -> None:
        self.latency = latency
        self.min_segment_size = min_segment_size
        self._lock = Lock()
        self._objects: dict[tuple[str, str], _Stored] = {}
        self.put_log: list[tuple[str, str]] = []
        self.manifest_log: list[tuple[str, str]] = []

    def _sleep(self) -> None:
        if self.latency > 0:
            time.sleep(self.latency)

    def put_object(
        self,
        container: str,
        name: str,
        data: bytes,
        etag: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> str:
        self._sleep()
        actual = md5_hex(data)
        if etag is not None and etag != actual:
            raise StorageError(
                f"Etag mismatch for {container}/{name}: sent {etag}, computed {actual}",
                status_code=422,
            )
        with self._lock:
            self._objects[(container, name)] = _Stored(
                data=bytes(data), etag=actual, headers=dict(headers or {})
            )
            self.put_log.append((container, name))
        return actual

    def _resolve(self, container: str, name: str) -> bytes:
        stored = self._objects.get((container, name))
        if stored is None:
            raise StorageError(f"Object not found: {container}/{name}", 404)
        if stored.manifest is not None:
            out = bytearray()
            for entry in stored.manifest.entries:
                out += self._resolve(entry.container, entry.name)
            return bytes(out)
        dlo = stored.headers.get(_DLO_HEADER)
        if dlo is not None:
            seg_container, _, prefix = dlo.partition("/")
            out = bytearray()
            keys = sorted(
                k
                for k in self._objects
                if k[0] == seg_container and k[1].startswith(prefix)
            )
            for key in keys:
                out += self._objects[key].data
            return bytes(out)
        return stored.data

    def get_object(self, container: str, name: str) -> bytes:
        with self._lock:
            return self._resolve(container, name)

    def head_object(self, container: str, name: str) -> ObjectInfo | None:
        with self._lock:
            stored = self._objects.get((container, name))
            if stored is None:
                return None
            if stored.manifest is not None:
                return ObjectInfo(name, stored.manifest.total_size(), stored.etag)
            return ObjectInfo(name, len(stored.data), stored.etag)

    def list_objects(self, container: str, prefix: str = "") -> list[ObjectInfo]:
        with self._lock:
            out = [
                ObjectInfo(name, len(stored.data), stored.etag)
                for (c, name), stored in self._objects.items()
                if c == container and name.startswith(prefix)
            ]
        out.sort(key=lambda info: info.name)
        return out

    def delete_object(self, container: str, name: str) -> None:
        with self._lock:
            self._objects.pop((container, name), None)

    def put_manifest(self, container: str, name: str, manifest: "Manifest") -> str:
        self._sleep()
        with self._lock:
            for entry in manifest.entries[:-1]:
                if entry.size_bytes < self.min_segment_size:
                    raise StorageError(
                        f"Segment {entry.path} is smaller than {self.min_segment_size} bytes", 400
                    )
            for entry in manifest.entries:
                seg = self._objects.get((entry.container, entry.name))
                if seg is None:
                    raise StorageError(f"Segment missing: {entry.path}", 400)
                if len(seg.data) != entry.size_bytes:
                    raise StorageError(
                        f"Segment size mismatch for {entry.path}: {len(seg.data)} != {entry.size_bytes}",
                        400,
                    )
                if entry.etag is not None and seg.etag != entry.etag:
                    raise StorageError(f"Segment etag mismatch for {entry.path}", 400)
            body = manifest.to_json_str().encode("utf-8")
            etag = md5_hex(body)
            self._objects[(container, name)] = _Stored(
                data=body, etag=etag, headers={}, manifest=manifest
            )
            self.manifest_log.append((container, name))
        logger.info(f"Stored manifest {container}/{name} ({len(manifest)} segments)")
        return etag
