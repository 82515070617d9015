import os
import random
import tempfile
import unittest
from pathlib import Path

from dotenv import load_dotenv

from large_objects import UploadJob, upload_slo
from large_objects.storage.s3 import S3Credentials, S3Provider, S3Store
from large_objects.storage.s3.merge import MIN_PART_SIZE

load_dotenv()

_ENABLED = all(
    os.getenv(key)
    for key in (
        "B2_BUCKET_NAME",
        "B2_ACCESS_KEY_ID",
        "B2_SECRET_ACCESS_KEY",
        "B2_ENDPOINT_URL",
    )
)


class S3LargeObjectTester(unittest.TestCase):
    """Upload a large object to a real S3 compatible bucket."""

    @unittest.skipIf(not _ENABLED, "B2 credentials not set")
    def test_upload_and_merge(self) -> None:
        bucket = os.environ["B2_BUCKET_NAME"]
        credentials = S3Credentials(
            provider=S3Provider.BACKBLAZE,
            access_key_id=os.environ["B2_ACCESS_KEY_ID"],
            secret_access_key=os.environ["B2_SECRET_ACCESS_KEY"],
            endpoint_url=os.environ["B2_ENDPOINT_URL"],
        )
        store = S3Store(credentials)
        payload = random.Random(7).randbytes(2 * MIN_PART_SIZE + 123)
        dst = "test_data/large_objects/testfile"

        with tempfile.TemporaryDirectory() as tempdir:
            src = Path(tempdir) / "testfile"
            src.write_bytes(payload)
            job = UploadJob(
                source=src,
                container=bucket,
                object_name=dst,
                chunk_size=MIN_PART_SIZE,
                threads=3,
                only_missing=True,
            )
            err = upload_slo(store, job)
            self.assertIsNone(err, f"Upload failed: {err}")

        info = store.head_object(bucket, dst)
        assert info is not None
        self.assertEqual(info.size, len(payload))
        self.assertEqual(store.get_object(bucket, dst), payload)

        for seg in store.list_objects(bucket, prefix=f"{dst}-chunk-"):
            store.delete_object(bucket, seg.name)
        store.delete_object(bucket, dst)


if __name__ == "__main__":
    unittest.main()
