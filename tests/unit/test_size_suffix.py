"""
Unit test file.
"""

import unittest

from large_objects import SizeSuffix


class SizeSuffixTester(unittest.TestCase):
    """Test size suffix parsing and formatting."""

    def test_simple_suffix(self) -> None:
        size_suffix = SizeSuffix("16MB")
        self.assertEqual(size_suffix.as_int(), 16 * 1024 * 1024)

    def test_plain_bytes(self) -> None:
        self.assertEqual(SizeSuffix("1048576").as_int(), 1048576)
        self.assertEqual(SizeSuffix("-1").as_int(), -1)
        self.assertEqual(SizeSuffix(100).as_str(), "100B")

    def test_float_suffix(self) -> None:
        size_suffix = SizeSuffix("16.5M")
        self.assertEqual(size_suffix.as_int(), int(16.5 * 1024 * 1024))
        self.assertEqual(str(size_suffix), "16.5M")

    def test_float_suffix_border(self) -> None:
        size_int = SizeSuffix("1M").as_int() - 1
        self.assertEqual(SizeSuffix(size_int).as_str(), "1M")

    def test_invalid(self) -> None:
        with self.assertRaises(ValueError):
            SizeSuffix("sixteen")
        with self.assertRaises(ValueError):
            SizeSuffix("16X")

    def test_comparisons(self) -> None:
        self.assertTrue(SizeSuffix("1M") <= SizeSuffix("1M"))
        self.assertTrue(SizeSuffix("1K") < 1025)
        self.assertTrue(SizeSuffix("2K") != SizeSuffix("1K"))
        self.assertEqual(SizeSuffix("1K") + 1024, SizeSuffix("2K"))


if __name__ == "__main__":
    unittest.main()
