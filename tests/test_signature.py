"""Unit tests for archive signature detection."""

import os
import shutil
import tempfile
import unittest
import zipfile

from cbztools.archive import ArchiveFormat, detect_format, is_rar, is_zip, read_header


class TestSignature(unittest.TestCase):
    """Test cases for header sniffing."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()

        self.zip_path = os.path.join(self.temp_dir, "comic.cbz")
        with zipfile.ZipFile(self.zip_path, "w") as zipf:
            zipf.writestr("001.jpg", b"fake image data")

        self.empty_zip_path = os.path.join(self.temp_dir, "empty.cbz")
        with zipfile.ZipFile(self.empty_zip_path, "w"):
            pass

        self.rar4_path = self._write("old.cbr", b"Rar!\x1a\x07\x00" + b"\x00" * 16)
        self.rar5_path = self._write("new.cbr", b"Rar!\x1a\x07\x01\x00" + b"\x00" * 16)
        self.pdf_path = self._write("scan.cbz", b"%PDF-1.7\n")
        self.empty_path = self._write("zero.cbz", b"")
        self.short_path = self._write("short.cbz", b"PK")

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.temp_dir)

    def _write(self, name, data):
        path = os.path.join(self.temp_dir, name)
        with open(path, "wb") as f:
            f.write(data)
        return path

    def test_zip_archive(self):
        self.assertTrue(is_zip(self.zip_path))
        self.assertFalse(is_rar(self.zip_path))
        self.assertEqual(detect_format(self.zip_path), ArchiveFormat.ZIP)

    def test_empty_zip_archive_uses_end_of_central_directory_signature(self):
        self.assertEqual(read_header(self.empty_zip_path), b"PK\x05\x06")
        self.assertEqual(detect_format(self.empty_zip_path), ArchiveFormat.ZIP)

    def test_rar_versions(self):
        for path in (self.rar4_path, self.rar5_path):
            self.assertTrue(is_rar(path))
            self.assertFalse(is_zip(path))
            self.assertEqual(detect_format(path), ArchiveFormat.RAR)

    def test_unknown_content(self):
        self.assertEqual(detect_format(self.pdf_path), ArchiveFormat.UNKNOWN)

    def test_empty_and_short_files_are_unknown(self):
        self.assertEqual(detect_format(self.empty_path), ArchiveFormat.UNKNOWN)
        self.assertEqual(detect_format(self.short_path), ArchiveFormat.UNKNOWN)
        self.assertEqual(read_header(self.short_path), b"PK")

    def test_nonexistent_file(self):
        with self.assertRaises(FileNotFoundError):
            detect_format(os.path.join(self.temp_dir, "missing.cbz"))


if __name__ == "__main__":
    unittest.main()
