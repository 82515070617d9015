import logging
from typing import Callable, Iterable

from large_objects.slo.segment import Segment
from large_objects.storage.base import ObjectInfo
from large_objects.types import SegmentStatus

logger = logging.getLogger(__name__)  # noqa


def collapse_runs(numbers: list[int]) -> list[str]:
    """[0, 1, 2, 5, 7, 8] -> ["0-2", "5", "7-8"]"""
    if not numbers:
        return []

    runs = []
    start = numbers[0]
    prev = numbers[0]

    for num in numbers[1:]:
        if num == prev + 1:
            prev = num
        else:
            runs.append(str(start) if start == prev else f"{start}-{prev}")
            start = num
            prev = num

    runs.append(str(start) if start == prev else f"{start}-{prev}")
    return runs


def probe(
    existing: Iterable[ObjectInfo],
    planned: list[Segment],
    only_missing: bool,
    hasher: Callable[[Segment], str] | None = None,
) -> list[Segment]:
    """Mark each planned segment as pending or skipped-existing.

    With `only_missing` a segment is skipped when a remote object with the
    same name and byte size exists. Passing `hasher` also requires the remote
    etag to equal the segment's local hash.
    """
    if not only_missing:
        for segment in planned:
            segment.status = SegmentStatus.PENDING
        return planned

    remote: dict[str, ObjectInfo] = {info.name: info for info in existing}
    skipped: list[int] = []
    for segment in planned:
        info = remote.get(segment.name)
        segment.status = SegmentStatus.PENDING
        if info is None or info.size != segment.length:
            continue
        if hasher is not None:
            local = hasher(segment)
            if info.etag is None or info.etag != local:
                logger.info(
                    f"Segment {segment.index} exists but its etag differs, uploading again"
                )
                continue
        segment.status = SegmentStatus.SKIPPED_EXISTING
        segment.etag = info.etag if info.etag is not None else segment.etag
        skipped.append(segment.index)

    if skipped:
        logger.info(
            f"Skipping {len(skipped)} of {len(planned)} segments already uploaded: {collapse_runs(skipped)}"
        )
    return planned
