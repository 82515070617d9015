from .coordinator import SloUploader, UploadJob, upload_slo
from .manifest import Manifest, ManifestEntry, commit_manifest
from .probe import probe
from .progress import ProgressReporter, ProgressSnapshot, UploadStatus
from .segment import Segment, plan, segment_name
from .uploader import upload_segment

__all__ = [
    "SloUploader",
    "UploadJob",
    "upload_slo",
    "Manifest",
    "ManifestEntry",
    "commit_manifest",
    "probe",
    "ProgressReporter",
    "ProgressSnapshot",
    "UploadStatus",
    "Segment",
    "plan",
    "segment_name",
    "upload_segment",
]
