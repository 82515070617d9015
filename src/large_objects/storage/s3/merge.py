"""
https://boto3.amazonaws.com/v1/documentation/api/latest/reference/services/s3/client/upload_part_copy.html
  *  client.upload_part_copy

S3 has no static large object manifest, so committing one is done as a server
side merge: every segment object is copied into a part of a new multipart
upload which is then completed under the manifest name.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING

from botocore.client import BaseClient

if TYPE_CHECKING:
    from large_objects.slo.manifest import Manifest

logger = logging.getLogger(__name__)  # noqa

MIN_PART_SIZE = 5 * 1024 * 1024
MAX_PART_NUMBER = 10000
DEFAULT_MAX_WORKERS = 5


@dataclass
class FinishedPiece:
    part_number: int
    etag: str

    def to_json(self) -> dict:
        # amazon s3 style dict
        return {"PartNumber": self.part_number, "ETag": self.etag}


def check_mergeable(manifest: "Manifest") -> Exception | None:
    entries = manifest.entries
    if len(entries) == 0:
        return ValueError("No segments to merge")
    if len(entries) > MAX_PART_NUMBER:
        return ValueError(
            f"{len(entries)} segments exceeds the S3 limit of {MAX_PART_NUMBER} parts"
        )
    for entry in entries[:-1]:
        if entry.size_bytes < MIN_PART_SIZE:
            return ValueError(
                f"Segment {entry.path} is {entry.size_bytes} bytes, S3 needs at least {MIN_PART_SIZE} bytes for every segment but the last"
            )
    return None


def _copy_part(
    s3_client: BaseClient,
    bucket: str,
    key: str,
    upload_id: str,
    part_number: int,
    source_bucket: str,
    source_key: str,
) -> FinishedPiece:
    part = s3_client.upload_part_copy(
        Bucket=bucket,
        Key=key,
        PartNumber=part_number,
        UploadId=upload_id,
        CopySource={"Bucket": source_bucket, "Key": source_key},
    )
    etag = part["CopyPartResult"]["ETag"]
    logger.debug(f"Copied part {part_number} for {bucket}/{key} from {source_key}")
    return FinishedPiece(part_number=part_number, etag=etag)


def merge_segments(
    s3_client: BaseClient,
    bucket: str,
    key: str,
    manifest: "Manifest",
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> str:
    """Merge the manifest's segments into `bucket/key`, returning the etag."""
    err = check_mergeable(manifest)
    if err is not None:
        raise err

    mpu = s3_client.create_multipart_upload(Bucket=bucket, Key=key)
    upload_id = mpu["UploadId"]
    logger.info(
        f"Merging {len(manifest)} segments into {bucket}/{key} (upload id {upload_id})"
    )
    try:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [
                executor.submit(
                    _copy_part,
                    s3_client,
                    bucket,
                    key,
                    upload_id,
                    part_number,
                    entry.container,
                    entry.name,
                )
                for part_number, entry in enumerate(manifest.entries, start=1)
            ]
            finished: list[FinishedPiece] = [fut.result() for fut in futures]
        finished.sort(key=lambda x: x.part_number)
        response = s3_client.complete_multipart_upload(
            Bucket=bucket,
            Key=key,
            UploadId=upload_id,
            MultipartUpload={"Parts": [p.to_json() for p in finished]},
        )
    except Exception:
        try:
            s3_client.abort_multipart_upload(
                Bucket=bucket, Key=key, UploadId=upload_id
            )
        except Exception as abort_err:
            logger.warning(f"Error aborting merge of {bucket}/{key}: {abort_err}")
        raise
    return str(response.get("ETag", "")).replace('"', "")
