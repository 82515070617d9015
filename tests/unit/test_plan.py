"""
Unit test file.
"""

import random
import unittest

from large_objects import PlanningError, SegmentStatus, plan
from large_objects.slo.segment import (
    MIN_DEFAULT_SEGMENT_SIZE,
    resolve_chunk_size,
    segment_name,
)


def _check_partition(test: unittest.TestCase, file_size: int, chunk_size: int) -> None:
    segments = plan(file_size, chunk_size, "obj")
    expected_offset = 0
    for i, seg in enumerate(segments):
        test.assertEqual(seg.index, i)
        test.assertEqual(seg.offset, expected_offset)
        test.assertGreater(seg.length, 0)
        expected_offset = seg.end
    test.assertEqual(expected_offset, file_size)
    test.assertEqual(sum(s.length for s in segments), file_size)
    nominal = segments[0].length
    for seg in segments[:-1]:
        test.assertEqual(seg.length, nominal)
    test.assertLessEqual(segments[-1].length, nominal)


class PlanTester(unittest.TestCase):
    """Test the segment planner."""

    def test_partition_invariant(self) -> None:
        rng = random.Random(1234)
        cases = [(1, 1), (1, 10), (10, 3), (999, 1000), (1000, 1000), (1001, 1000)]
        for _ in range(200):
            file_size = rng.randint(1, 10_000_000)
            chunk_size = rng.choice(
                [-1, 0, rng.randint(max(1, file_size // 2000), file_size * 2)]
            )
            cases.append((file_size, chunk_size))
        for file_size, chunk_size in cases:
            with self.subTest(file_size=file_size, chunk_size=chunk_size):
                _check_partition(self, file_size, chunk_size)

    def test_segment_count(self) -> None:
        segments = plan(10_000, 1000, "obj")
        self.assertEqual(len(segments), 10)
        segments = plan(10_001, 1000, "obj")
        self.assertEqual(len(segments), 11)
        self.assertEqual(segments[-1].length, 1)

    def test_default_chunk_size_large_file(self) -> None:
        # 2.5 GB with the default options
        file_size = 2_500_000_000
        segments = plan(file_size, -1, "big.img")
        self.assertEqual(len(segments), 1000)
        self.assertEqual(segments[0].length, 2_500_000)
        self.assertEqual(resolve_chunk_size(file_size, 0), 2_500_000)

    def test_default_chunk_size_rounds_up(self) -> None:
        file_size = 2 * 1024**3 + 7
        chunk = resolve_chunk_size(file_size, -1)
        self.assertEqual(chunk, -(-file_size // 1000))
        self.assertEqual(len(plan(file_size, -1, "obj")), 1000)

    def test_small_file_default_is_one_segment(self) -> None:
        segments = plan(100, -1, "small")
        self.assertEqual(len(segments), 1)
        self.assertEqual(segments[0].offset, 0)
        self.assertEqual(segments[0].length, 100)

    def test_medium_file_default_respects_min_segment(self) -> None:
        file_size = 10 * MIN_DEFAULT_SEGMENT_SIZE
        segments = plan(file_size, -1, "obj")
        self.assertEqual(len(segments), 10)

    def test_chunk_larger_than_file(self) -> None:
        segments = plan(500, 10_000, "obj")
        self.assertEqual(len(segments), 1)
        self.assertEqual(segments[0].length, 500)

    def test_rejects_non_positive_size(self) -> None:
        with self.assertRaises(PlanningError):
            plan(0, 100, "obj")
        with self.assertRaises(PlanningError):
            plan(-1, 100, "obj")

    def test_names_sort_in_sequence_order(self) -> None:
        segments = plan(12_345, 1, "obj")
        names = [s.name for s in segments]
        self.assertEqual(names, sorted(names))
        self.assertEqual(len(set(names)), len(names))

    def test_segment_name(self) -> None:
        self.assertEqual(segment_name("a/b.img", 7, 100), "a/b.img-chunk-0007-size-100")
        self.assertEqual(segment_name("x", 7, 5, width=6), "x-chunk-000007-size-5")

    def test_storage_minimum_raises_derived_size(self) -> None:
        five_mib = 5 * 1024 * 1024
        segments = plan(12 * 1024 * 1024, -1, "obj", min_segment_size=five_mib)
        self.assertEqual([s.length for s in segments], [five_mib, five_mib, 2 * 1024 * 1024])
        # 2.5 GB derives 2.5 MB segments, below the S3 part minimum
        self.assertEqual(resolve_chunk_size(2_500_000_000, -1, five_mib), five_mib)
        self.assertEqual(resolve_chunk_size(100, -1, five_mib), 100)

    def test_explicit_size_below_storage_minimum(self) -> None:
        with self.assertRaises(PlanningError):
            plan(12 * 1024 * 1024, 1024 * 1024, "obj", min_segment_size=5 * 1024 * 1024)
        # a single short segment is always allowed
        self.assertEqual(len(plan(1000, 100_000, "obj", min_segment_size=5000)), 1)

    def test_plan_is_deterministic(self) -> None:
        a = plan(98765, 1000, "obj")
        b = plan(98765, 1000, "obj")
        self.assertEqual([(s.name, s.offset, s.length) for s in a], [(s.name, s.offset, s.length) for s in b])
        self.assertTrue(all(s.status is SegmentStatus.PENDING for s in a))
        self.assertTrue(all(s.etag is None for s in a))


if __name__ == "__main__":
    unittest.main()
