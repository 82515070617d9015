import logging
from dataclasses import dataclass
from pathlib import Path

from large_objects.exceptions import PlanningError
from large_objects.types import SegmentStatus
from large_objects.util import md5_hex, read_range

logger = logging.getLogger(__name__)  # noqa

DEFAULT_SEGMENT_COUNT = 1000
# Swift's default min_segment_size; derived chunk sizes never go below it.
MIN_DEFAULT_SEGMENT_SIZE = 1024 * 1024
# Swift's default max_manifest_segments.
MAX_MANIFEST_SEGMENTS = 1000


@dataclass
class Segment:
    index: int
    offset: int
    length: int
    name: str
    status: SegmentStatus = SegmentStatus.PENDING
    etag: str | None = None

    def __post_init__(self):
        assert self.index >= 0
        assert self.offset >= 0
        assert self.length > 0

    @property
    def end(self) -> int:
        """Exclusive end offset."""
        return self.offset + self.length

    def read(self, source: Path | str) -> bytes:
        return read_range(str(source), self.offset, self.length)

    def compute_etag(self, source: Path | str) -> str:
        if self.etag is None:
            self.etag = md5_hex(self.read(source))
        return self.etag


def segment_prefix(object_name: str) -> str:
    return f"{object_name}-chunk-"


def segment_name(object_name: str, index: int, length: int, width: int = 4) -> str:
    """Deterministic segment name.

    The index is zero padded to `width` so lexicographic order matches
    sequence order. The length is part of the name so segments from a run
    with a different chunk size never match.
    """
    return f"{segment_prefix(object_name)}{index:0{width}d}-size-{length}"


def resolve_chunk_size(file_size: int, chunk_size: int, min_segment_size: int = 0) -> int:
    """Pick the segment size.

    A non-positive `chunk_size` derives ceil(file_size / 1000), raised to
    the larger of 1 MiB and `min_segment_size` (never above the file size).
    An explicit size below `min_segment_size` is rejected unless the whole
    file fits in one segment.
    """
    if file_size <= 0:
        raise PlanningError(f"Invalid file size {file_size}, must be positive")
    if chunk_size <= 0:
        derived = -(-file_size // DEFAULT_SEGMENT_COUNT)  # ceil
        floor = max(MIN_DEFAULT_SEGMENT_SIZE, min_segment_size)
        chunk_size = max(derived, min(file_size, floor))
    elif chunk_size < min_segment_size and chunk_size < file_size:
        raise PlanningError(
            f"Segment size {chunk_size} is below the storage minimum of {min_segment_size} bytes"
        )
    if chunk_size > file_size:
        chunk_size = file_size
    return chunk_size


def plan(
    file_size: int, chunk_size: int, object_name: str, min_segment_size: int = 0
) -> list[Segment]:
    """Split `file_size` bytes into ordered segments of `chunk_size` bytes.

    A non-positive `chunk_size` derives one that yields about
    DEFAULT_SEGMENT_COUNT segments. Only the last segment may be short and
    every other one is at least `min_segment_size` bytes.
    """
    chunk_size = resolve_chunk_size(file_size, chunk_size, min_segment_size)
    count = -(-file_size // chunk_size)
    width = max(4, len(str(count - 1)))
    if count > MAX_MANIFEST_SEGMENTS:
        logger.warning(
            f"{count} segments planned for {object_name}, more than the {MAX_MANIFEST_SEGMENTS} most Swift clusters accept in one manifest"
        )

    segments: list[Segment] = []
    for index in range(count):
        offset = index * chunk_size
        length = min(chunk_size, file_size - offset)
        segments.append(
            Segment(
                index=index,
                offset=offset,
                length=length,
                name=segment_name(object_name, index, length, width),
            )
        )
    logger.info(
        f"Planned {count} segments of {chunk_size} bytes for {object_name} ({file_size} bytes)"
    )
    return segments
