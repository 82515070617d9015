"""
Unit test file.
"""

import json
import unittest

from large_objects import (
    Manifest,
    ManifestCommitError,
    MemoryStore,
    SegmentStatus,
    StorageError,
    plan,
)
from large_objects.slo.manifest import commit_manifest
from large_objects.util import md5_hex


def _uploaded(file_size: int, chunk_size: int):
    segments = plan(file_size, chunk_size, "big")
    for seg in segments:
        seg.status = SegmentStatus.UPLOADED
        seg.etag = f"{seg.index:032x}"
    return segments


class ManifestTester(unittest.TestCase):
    """Test manifest construction and commit."""

    def test_entries_follow_sequence_order(self) -> None:
        segments = _uploaded(5000, 1000)
        shuffled = [segments[3], segments[0], segments[4], segments[1], segments[2]]
        manifest = Manifest.from_segments("cont", shuffled)
        self.assertEqual([e.name for e in manifest.entries], [s.name for s in segments])
        self.assertEqual(manifest.total_size(), 5000)

    def test_swift_json_format(self) -> None:
        segments = _uploaded(1500, 1000)
        manifest = Manifest.from_segments("cont", segments)
        data = json.loads(manifest.to_json_str())
        self.assertEqual(
            data[0],
            {
                "path": f"/cont/{segments[0].name}",
                "etag": segments[0].etag,
                "size_bytes": 1000,
            },
        )
        self.assertEqual(data[1]["size_bytes"], 500)
        self.assertEqual(Manifest.from_json_str(manifest.to_json_str()), manifest)

    def test_refuses_unconfirmed_segments(self) -> None:
        segments = _uploaded(3000, 1000)
        segments[1].status = SegmentStatus.FAILED
        with self.assertRaises(ValueError):
            Manifest.from_segments("cont", segments)
        with self.assertRaises(ValueError):
            Manifest.from_segments("cont", segments[1:])

    def test_skipped_segments_count_as_present(self) -> None:
        segments = _uploaded(2000, 1000)
        segments[0].status = SegmentStatus.SKIPPED_EXISTING
        self.assertEqual(len(Manifest.from_segments("cont", segments)), 2)

    def test_commit_to_memory_store(self) -> None:
        store = MemoryStore()
        payload = bytes(range(256)) * 10
        segments = plan(len(payload), 1000, "big")
        for seg in segments:
            chunk = payload[seg.offset : seg.end]
            seg.etag = store.put_object("cont", seg.name, chunk, etag=md5_hex(chunk))
            seg.status = SegmentStatus.UPLOADED
        manifest = Manifest.from_segments("cont", segments)
        self.assertIsNone(commit_manifest(store, "cont", "big", manifest))
        self.assertEqual(store.get_object("cont", "big"), payload)
        info = store.head_object("cont", "big")
        assert info is not None
        self.assertEqual(info.size, len(payload))

    def test_commit_failure_is_wrapped(self) -> None:
        class RejectingStore(MemoryStore):
            def put_manifest(self, container, name, manifest):
                raise StorageError("manifest rejected", 400)

        manifest = Manifest.from_segments("cont", _uploaded(1000, 1000))
        err = commit_manifest(RejectingStore(), "cont", "big", manifest)
        self.assertIsInstance(err, ManifestCommitError)
        self.assertIsInstance(err.__cause__, StorageError)
        self.assertIn("committing", str(err))


if __name__ == "__main__":
    unittest.main()
