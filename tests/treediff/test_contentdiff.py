# Copyright Red Hat
#
# tests/treediff/test_contentdiff.py - Line differ tests.
#
# This file is part of the builddiff project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
from unittest.mock import patch, MagicMock
from pathlib import Path
import tempfile

from builddiff import BuilddiffCalloutError
from builddiff.treediff.contentdiff import SystemDiffer, UnifiedDiffer


class TestUnifiedDiffer(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp_dir.cleanup)

    def _create_file(self, name, content):
        path = Path(self.tmp_dir.name) / name
        path.write_bytes(content)
        return str(path)

    def test_unified_diff(self):
        old = self._create_file("old.txt", b"line1\nline2\n")
        new = self._create_file("new.txt", b"line1\nline2 modified\n")
        diff = UnifiedDiffer().diff(old, new)
        self.assertIn(f"--- {old}", diff)
        self.assertIn("-line2\n", diff)
        self.assertIn("+line2 modified\n", diff)

    def test_unified_diff_no_line_difference(self):
        old = self._create_file("old.txt", b"same\n")
        new = self._create_file("new.txt", b"same\n")
        self.assertEqual(UnifiedDiffer().diff(old, new), "")

    def test_unified_diff_missing_newline(self):
        old = self._create_file("old.txt", b"a")
        new = self._create_file("new.txt", b"b")
        diff = UnifiedDiffer().diff(old, new)
        self.assertIn("-a\n+b\n", diff)

    def test_unified_diff_undecodable(self):
        old = self._create_file("old.bin", b"\xff a\n")
        new = self._create_file("new.bin", b"\xff b\n")
        self.assertNotEqual(UnifiedDiffer().diff(old, new), "")


class TestSystemDiffer(unittest.TestCase):
    @patch("builddiff.treediff.contentdiff.run")
    def test_system_diff(self, mock_run):
        mock_run.return_value = MagicMock(returncode=1, stdout="1c1\n< a\n---\n> b\n")
        differ = SystemDiffer("diff", ["-u"])
        self.assertEqual(differ.diff("/a", "/b"), "1c1\n< a\n---\n> b\n")
        self.assertEqual(mock_run.call_args[0][0], ["diff", "-u", "/a", "/b"])

    @patch("builddiff.treediff.contentdiff.run")
    def test_system_diff_equal(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="")
        self.assertEqual(SystemDiffer().diff("/a", "/b"), "")

    @patch("builddiff.treediff.contentdiff.run")
    def test_system_diff_trouble(self, mock_run):
        mock_run.return_value = MagicMock(returncode=2, stdout="", stderr="oops\n")
        with self.assertRaises(BuilddiffCalloutError) as cm:
            SystemDiffer().diff("/a", "/b")
        self.assertIn("status=2", str(cm.exception))

    @patch("builddiff.treediff.contentdiff.run", side_effect=FileNotFoundError("nope"))
    def test_system_diff_missing_program(self, _mock_run):
        with self.assertRaises(BuilddiffCalloutError):
            SystemDiffer("no-such-diff").diff("/a", "/b")
