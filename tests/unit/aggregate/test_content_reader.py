"""Tests for file-content retrieval collaborators."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from contextbuilder.aggregate import read_file_text, read_many


class ContentReaderTests(unittest.TestCase):
    def test_read_file_text_decodes_with_fallbacks(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            utf8 = root / "u.txt"
            utf8.write_text("héllo\n", encoding="utf-8")
            latin = root / "l.txt"
            latin.write_bytes("caf\xe9\n".encode("latin-1"))

            self.assertEqual(read_file_text(str(utf8)), "héllo\n")
            self.assertEqual(read_file_text(str(latin)), "café\n")

    def test_read_file_text_strips_utf8_bom_and_keeps_line_endings(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "bom.py"
            path.write_bytes(b"\xef\xbb\xbfx = 1\r\ny = 2\r\n")

            self.assertEqual(read_file_text(str(path)), "x = 1\r\ny = 2\r\n")

    def test_read_file_text_rejects_missing_and_directories(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(FileNotFoundError):
                read_file_text(str(Path(tmp) / "missing.txt"))
            with self.assertRaises(IsADirectoryError):
                read_file_text(tmp)

    def test_read_many_maps_each_failure_to_its_path(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            good = root / "good.py"
            good.write_text("ok = True\n", encoding="utf-8")
            missing = root / "missing.py"

            results = read_many([str(good), str(missing), str(root), str(good)])

            self.assertEqual(set(results), {str(good), str(missing), str(root)})
            self.assertTrue(results[str(good)].ok)
            self.assertEqual(results[str(good)].content, "ok = True\n")
            self.assertFalse(results[str(missing)].ok)
            self.assertIn("does not exist", results[str(missing)].error or "")
            self.assertFalse(results[str(root)].ok)

    def test_read_many_of_nothing_is_empty(self) -> None:
        self.assertEqual(read_many([]), {})


if __name__ == "__main__":
    unittest.main()
