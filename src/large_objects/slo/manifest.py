import json
import logging
from dataclasses import dataclass

from large_objects.exceptions import ManifestCommitError
from large_objects.slo.segment import Segment
from large_objects.storage.base import ObjectStore

logger = logging.getLogger(__name__)  # noqa


@dataclass(frozen=True)
class ManifestEntry:
    container: str
    name: str
    size_bytes: int
    etag: str | None

    @property
    def path(self) -> str:
        return f"/{self.container}/{self.name}"

    def to_json(self) -> dict:
        # swift SLO manifest style dict
        return {"path": self.path, "etag": self.etag, "size_bytes": self.size_bytes}

    @staticmethod
    def from_json(json_dict: dict) -> "ManifestEntry":
        path: str = json_dict["path"]
        container, _, name = path.lstrip("/").partition("/")
        return ManifestEntry(
            container=container,
            name=name,
            size_bytes=int(json_dict["size_bytes"]),
            etag=json_dict.get("etag"),
        )


@dataclass(frozen=True)
class Manifest:
    entries: tuple[ManifestEntry, ...]

    def __len__(self) -> int:
        return len(self.entries)

    def total_size(self) -> int:
        return sum(e.size_bytes for e in self.entries)

    def to_json(self) -> list[dict]:
        return [e.to_json() for e in self.entries]

    def to_json_str(self) -> str:
        return json.dumps(self.to_json())

    @staticmethod
    def from_json_str(json_str: str) -> "Manifest":
        return Manifest(tuple(ManifestEntry.from_json(j) for j in json.loads(json_str)))

    @staticmethod
    def from_segments(container: str, segments: list[Segment]) -> "Manifest":
        """Build the manifest in sequence order.

        Every segment must already be confirmed present on the backend.
        """
        ordered = sorted(segments, key=lambda s: s.index)
        for expected, segment in enumerate(ordered):
            if segment.index != expected:
                raise ValueError(f"Segment {expected} is missing from the manifest")
            if not segment.status.is_present():
                raise ValueError(
                    f"Segment {segment.index} is {segment.status.value}, not uploaded"
                )
        return Manifest(
            tuple(
                ManifestEntry(
                    container=container,
                    name=s.name,
                    size_bytes=s.length,
                    etag=s.etag,
                )
                for s in ordered
            )
        )


def commit_manifest(
    store: ObjectStore, container: str, object_name: str, manifest: Manifest
) -> Exception | None:
    """Upload `manifest` as `container/object_name`, the large object itself."""
    try:
        etag = store.put_manifest(container, object_name, manifest)
    except Exception as e:
        logger.error(f"Manifest commit for {container}/{object_name} failed: {e}")
        return ManifestCommitError(
            f"failed to upload manifest {container}/{object_name}", e
        )
    logger.info(
        f"Committed manifest {container}/{object_name} with {len(manifest)} segments, etag {etag}"
    )
    return None
