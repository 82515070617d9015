from .dlo import make_dlo
from .exceptions import (
    ConfigError,
    InterruptedUpload,
    LargeObjectError,
    ManifestCommitError,
    PlanningError,
    ProbeError,
    SegmentUploadError,
    StorageError,
)
from .put_object import put_object
from .slo import (
    Manifest,
    ManifestEntry,
    Segment,
    SloUploader,
    UploadJob,
    UploadStatus,
    plan,
    upload_slo,
)
from .storage import MemoryStore, ObjectInfo, ObjectStore, SwiftDestination, SwiftStore
from .types import JobState, SegmentStatus, SizeSuffix

__all__ = [
    "SloUploader",
    "UploadJob",
    "UploadStatus",
    "upload_slo",
    "plan",
    "Segment",
    "Manifest",
    "ManifestEntry",
    "make_dlo",
    "put_object",
    "ObjectStore",
    "ObjectInfo",
    "MemoryStore",
    "SwiftStore",
    "SwiftDestination",
    "JobState",
    "SegmentStatus",
    "SizeSuffix",
    "LargeObjectError",
    "PlanningError",
    "ProbeError",
    "SegmentUploadError",
    "InterruptedUpload",
    "ManifestCommitError",
    "StorageError",
    "ConfigError",
]
