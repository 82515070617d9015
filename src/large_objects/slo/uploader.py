import logging
from pathlib import Path

from large_objects.exceptions import SegmentUploadError
from large_objects.slo.progress import UploadStatus
from large_objects.slo.segment import Segment
from large_objects.storage.base import ObjectStore
from large_objects.types import SegmentStatus
from large_objects.util import md5_hex

logger = logging.getLogger(__name__)  # noqa


def upload_segment(
    store: ObjectStore,
    container: str,
    source: Path,
    segment: Segment,
    status: UploadStatus,
) -> SegmentUploadError | None:
    """Read one segment from `source` and PUT it under its deterministic name.

    Only this segment's bytes are held in memory. The MD5 goes along with
    the request so the backend can reject a corrupted body. No retries.
    """
    segment.status = SegmentStatus.UPLOADING
    try:
        data = segment.read(source)
        etag = md5_hex(data)
        logger.debug(
            f"Uploading segment {segment.index} ({segment.length} bytes at {segment.offset}) as {container}/{segment.name}"
        )
        store.put_object(container, segment.name, data, etag=etag)
        del data
    except Exception as e:
        segment.status = SegmentStatus.FAILED
        logger.warning(f"Segment {segment.index} failed: {e}")
        return SegmentUploadError(segment.index, segment.name, e)

    segment.etag = etag
    segment.status = SegmentStatus.UPLOADED
    status.add_bytes(segment.length)
    logger.info(f"Uploaded segment {segment.index} as {container}/{segment.name}")
    return None
